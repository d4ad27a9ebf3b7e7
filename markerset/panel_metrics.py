"""
Panel Metrics and Reporting System

Breaks a selected marker panel down into per-marker and per-group
statistics for review before assay design.
"""

import statistics
from typing import Any, Dict, List

import numpy as np

from .annealing import OptimizationResult
from .frequency_matrix import AlleleFrequencyMatrix
from .scoring import DifferentiationScorer, DiversityScorer, expected_heterozygosity


class PanelMetrics:
    """Metrics calculator for a selected marker panel"""

    def __init__(self, matrix: AlleleFrequencyMatrix):
        self.matrix = matrix
        self.diversity_scorer = DiversityScorer(matrix)
        self.differentiation_scorer = DifferentiationScorer(matrix)

    def analyze_panel(self, result: OptimizationResult) -> Dict[str, Any]:
        """
        Comprehensive analysis of an optimization result

        Returns:
            Dictionary containing all metrics and analysis results
        """
        rows = list(result.rows)
        return {
            'marker_metrics': self._analyze_markers(result.marker_ids, rows),
            'group_metrics': self._analyze_groups(rows),
            'pair_metrics': self._analyze_group_pairs(rows),
            'search_summary': self._summarize_search(result),
            'scores': {
                'diversity': result.score.diversity,
                'differentiation': result.score.differentiation,
                'objective': result.objective,
            },
        }

    def _analyze_markers(self, marker_ids: List[str], rows: List[int]) -> List[Dict[str, Any]]:
        """He per group and mean pairwise D for each selected marker"""
        freqs = self.matrix.rows(rows)
        he = expected_heterozygosity(freqs)
        d_values = self.differentiation_scorer.marker_values(rows)

        markers = []
        for i, marker_id in enumerate(marker_ids):
            called = he[i][~np.isnan(he[i])]
            markers.append({
                'marker_id': marker_id,
                'frequencies': {g: _clean(freqs[i, j]) for j, g in enumerate(self.matrix.group_labels)},
                'heterozygosity': {g: _clean(he[i, j]) for j, g in enumerate(self.matrix.group_labels)},
                'min_heterozygosity': float(called.min()) if called.size else None,
                'mean_differentiation': _clean(d_values[i]),
                'missing_groups': int(np.isnan(freqs[i]).sum()),
            })
        return markers

    def _analyze_groups(self, rows: List[int]) -> Dict[str, Any]:
        """Mean He and call coverage per group"""
        group_means = self.diversity_scorer.group_means(rows)
        freqs = self.matrix.rows(rows)

        groups = {}
        for j, label in enumerate(self.matrix.group_labels):
            called = int((~np.isnan(freqs[:, j])).sum())
            groups[label] = {
                'mean_heterozygosity': float(group_means[j]),
                'called_markers': called,
                'coverage_rate': called / len(rows) if rows else 0.0,
            }
        return groups

    def _analyze_group_pairs(self, rows: List[int]) -> Dict[str, Any]:
        """Mean D over the panel for every group pair"""
        pair_means = self.differentiation_scorer.pair_means(rows)
        labels = self.matrix.group_labels

        pairs = {}
        for a, b in self.differentiation_scorer.pairs:
            pairs[f'{labels[a]}|{labels[b]}'] = _clean(pair_means[a, b])

        defined = {k: v for k, v in pairs.items() if v is not None}
        return {
            'pairwise_differentiation': pairs,
            'weakest_pair': min(defined, key=defined.get) if defined else None,
            'mean_pairwise_differentiation': statistics.mean(defined.values()) if defined else None,
        }

    def _summarize_search(self, result: OptimizationResult) -> Dict[str, Any]:
        return {
            'iterations': result.iterations,
            'accepted_moves': result.accepted_moves,
            'improving_moves': result.improving_moves,
            'acceptance_rate': result.acceptance_rate,
            'initial_objective': result.initial_objective,
            'improvement': result.objective - result.initial_objective,
            'final_temperature': result.final_temperature,
            'stop_reason': result.stop_reason.value,
            'random_seed': result.random_seed,
            'elapsed_seconds': result.elapsed_seconds,
        }


def _clean(value: float):
    """NaN to None so metrics serialize cleanly"""
    value = float(value)
    return None if np.isnan(value) else value


def _format(value) -> str:
    return "n/a" if value is None else f"{value:.4f}"


def print_panel_report(metrics: Dict[str, Any], detailed: bool = True) -> str:
    """Generate a human-readable panel quality report"""
    lines = []
    lines.append("=" * 60)
    lines.append("MARKER PANEL QUALITY REPORT")
    lines.append("=" * 60)

    scores = metrics['scores']
    lines.append(f"Objective: {scores['objective']:.4f}")
    lines.append(f"Diversity (geometric mean He): {scores['diversity']:.4f}")
    lines.append(f"Differentiation (geometric mean D): {scores['differentiation']:.4f}")
    lines.append("")

    search = metrics['search_summary']
    lines.append("SEARCH:")
    lines.append(f"  Iterations: {search['iterations']} (stopped: {search['stop_reason']})")
    lines.append(f"  Acceptance rate: {search['acceptance_rate']:.3f}")
    lines.append(f"  Improvement over initial panel: {search['improvement']:+.4f}")
    lines.append("")

    lines.append("GROUP DIVERSITY:")
    for label, group in metrics['group_metrics'].items():
        lines.append(
            f"  {label}: mean He {group['mean_heterozygosity']:.4f}, "
            f"called {group['called_markers']} markers"
        )
    lines.append("")

    pairs = metrics['pair_metrics']
    if pairs['pairwise_differentiation']:
        lines.append("GROUP DIFFERENTIATION:")
        for pair, value in pairs['pairwise_differentiation'].items():
            lines.append(f"  {pair}: mean D {_format(value)}")
        lines.append(f"  Weakest pair: {pairs['weakest_pair']}")
        lines.append("")

    if detailed:
        lines.append("MARKERS:")
        for marker in metrics['marker_metrics']:
            min_he = _format(marker['min_heterozygosity'])
            d_value = _format(marker['mean_differentiation'])
            lines.append(f"  {marker['marker_id']}: min He {min_he}, mean D {d_value}")
        lines.append("")

    lines.append("=" * 60)

    return "\n".join(lines)
