"""
Panel Export System

Exports a selected marker panel to CSV for downstream assay design, with
a JSON side file recording the scores and search settings that produced it.
"""

import csv
import json
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .annealing import OptimizationResult
from .frequency_matrix import AlleleFrequencyMatrix
from .panel_metrics import PanelMetrics


@dataclass
class PanelEntry:
    """One selected marker with its per-group statistics"""
    marker_id: str
    frequencies: Dict[str, Optional[float]]
    heterozygosity: Dict[str, Optional[float]]
    mean_differentiation: Optional[float]


@dataclass
class PanelConfiguration:
    """Complete panel description for export"""
    entries: List[PanelEntry]
    group_labels: List[str]
    metadata: Dict[str, Any]


class PanelExporter:
    """Exports optimization results to CSV and JSON"""

    def create_panel_config(self,
                            result: OptimizationResult,
                            matrix: AlleleFrequencyMatrix) -> PanelConfiguration:
        """
        Convert an optimization result into an exportable panel description

        Args:
            result: Result from MarkerSetOptimizer
            matrix: Frequency matrix the result was computed on

        Returns:
            Panel configuration with one entry per selected marker
        """
        metrics = PanelMetrics(matrix).analyze_panel(result)

        entries = [
            PanelEntry(
                marker_id=marker['marker_id'],
                frequencies=marker['frequencies'],
                heterozygosity=marker['heterozygosity'],
                mean_differentiation=marker['mean_differentiation']
            )
            for marker in metrics['marker_metrics']
        ]

        metadata = {
            'timestamp': datetime.now().isoformat(),
            'generator': 'markerset_annealing',
            'panel_size': len(result.marker_ids),
            'groups': list(matrix.group_labels),
            'result': result.summary(),
            'config': asdict(result.config) if result.config is not None else None,
            'group_metrics': metrics['group_metrics'],
            'pair_metrics': metrics['pair_metrics'],
        }

        return PanelConfiguration(
            entries=entries,
            group_labels=list(matrix.group_labels),
            metadata=metadata
        )

    def export_csv(self, config: PanelConfiguration, output_path: str) -> str:
        """Export the marker table; missing values are written as NA"""
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, 'w', newline='') as f:
            writer = csv.writer(f)

            header = ['marker_id']
            header += [f'freq_{g}' for g in config.group_labels]
            header += [f'he_{g}' for g in config.group_labels]
            header += ['mean_jost_d']
            writer.writerow(header)

            for entry in config.entries:
                row = [entry.marker_id]
                row += [_cell(entry.frequencies[g]) for g in config.group_labels]
                row += [_cell(entry.heterozygosity[g]) for g in config.group_labels]
                row += [_cell(entry.mean_differentiation)]
                writer.writerow(row)

        return str(output_file)

    def export_metadata(self, config: PanelConfiguration, output_path: str) -> str:
        """Export scores and search settings as JSON"""
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, 'w') as f:
            json.dump(config.metadata, f, indent=2)

        return str(output_file)


def _cell(value: Optional[float]) -> str:
    return 'NA' if value is None else f'{value:.6f}'


def create_panel_file(result: OptimizationResult,
                      matrix: AlleleFrequencyMatrix,
                      output_name: Optional[str] = None,
                      output_dir: str = "output") -> str:
    """
    Convenience function to create the panel CSV and its JSON metadata

    Args:
        result: Optimization result
        matrix: Frequency matrix
        output_name: Base name for output files
        output_dir: Directory for output files

    Returns:
        Path to generated CSV file
    """
    if output_name is None:
        timestamp = int(time.time())
        output_name = f"panel_{timestamp}"

    exporter = PanelExporter()
    config = exporter.create_panel_config(result, matrix)

    exporter.export_metadata(config, f"{output_dir}/{output_name}.json")
    return exporter.export_csv(config, f"{output_dir}/{output_name}.csv")
