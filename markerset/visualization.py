"""
Visualization for the Marker Panel Optimizer

Plots the annealing trace, per-group diversity of the selected panel and
the group-by-group differentiation heatmap.
"""

from typing import Any, Dict, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .annealing import OptimizationResult
from .frequency_matrix import AlleleFrequencyMatrix
from .scoring import MAX_DIVERSITY, DifferentiationScorer


class AnnealingVisualizer:
    """Visualization of an annealing run and the panel it selected"""

    def __init__(self, matrix: AlleleFrequencyMatrix):
        self.matrix = matrix

    def plot_comprehensive_analysis(self,
                                    result: OptimizationResult,
                                    metrics: Dict[str, Any],
                                    figsize: Tuple[int, int] = (14, 10),
                                    save_path: Optional[str] = None,
                                    show: bool = False):
        """
        Create a multi-panel visualization

        Args:
            result: Optimization result with a recorded trace
            metrics: Analysis metrics from PanelMetrics
            figsize: Figure size (width, height)
            save_path: Optional path to save the figure
            show: Display the figure interactively
        """
        fig = plt.figure(figsize=figsize)
        gs = fig.add_gridspec(2, 2, height_ratios=[1, 1])

        ax_trace = fig.add_subplot(gs[0, :])
        self.plot_trace(result, ax_trace)

        ax_groups = fig.add_subplot(gs[1, 0])
        self.plot_group_diversity(metrics, ax_groups)

        ax_heatmap = fig.add_subplot(gs[1, 1])
        self.plot_differentiation_heatmap(result, ax_heatmap)

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=300, bbox_inches='tight')

        if show:
            plt.show()
        return fig

    def plot_trace(self, result: OptimizationResult, ax: plt.Axes = None):
        """Current and best objective per iteration, with temperature on a log axis"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(10, 4))

        if not result.trace:
            ax.text(0.5, 0.5, 'No trace recorded', ha='center', va='center', transform=ax.transAxes)
            ax.set_axis_off()
            return ax

        iterations = [t.iteration for t in result.trace]
        ax.plot(iterations, [t.current_objective for t in result.trace],
                color='gray', linewidth=0.8, alpha=0.8, label='Current')
        ax.plot(iterations, [t.best_objective for t in result.trace],
                color='red', linewidth=2, label='Best')
        ax.set_xlabel('Iteration')
        ax.set_ylabel('Objective')
        ax.set_title(f'Annealing Trace (seed {result.random_seed}, '
                     f'acceptance {result.acceptance_rate:.2f})')

        ax_temp = ax.twinx()
        temperatures = [t.temperature for t in result.trace]
        ax_temp.plot(iterations, temperatures, color='blue', linestyle='--', linewidth=1, label='Temperature')
        if min(temperatures) > 0:
            ax_temp.set_yscale('log')
        ax_temp.set_ylabel('Temperature')

        lines, labels = ax.get_legend_handles_labels()
        temp_lines, temp_labels = ax_temp.get_legend_handles_labels()
        ax.legend(lines + temp_lines, labels + temp_labels, loc='lower right', fontsize=8)
        ax.grid(True, alpha=0.3)
        return ax

    def plot_group_diversity(self, metrics: Dict[str, Any], ax: plt.Axes = None):
        """Bar chart of mean He per group against the diploid maximum"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(6, 4))

        groups = metrics['group_metrics']
        labels = list(groups.keys())
        values = [groups[g]['mean_heterozygosity'] for g in labels]

        ax.bar(labels, values, color='seagreen', alpha=0.8)
        ax.axhline(MAX_DIVERSITY, color='black', linestyle=':', linewidth=1, label='Maximum (0.5)')
        ax.set_ylim(0, MAX_DIVERSITY * 1.1)
        ax.set_ylabel('Mean expected heterozygosity')
        ax.set_title('Within-Group Diversity')
        ax.legend(fontsize=8)
        return ax

    def plot_differentiation_heatmap(self, result: OptimizationResult, ax: plt.Axes = None):
        """Heatmap of mean Jost's D between every pair of groups"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(6, 5))

        pair_means = DifferentiationScorer(self.matrix).pair_means(list(result.rows))
        labels = self.matrix.group_labels

        image = ax.imshow(np.ma.masked_invalid(pair_means), cmap='viridis', vmin=0, vmax=1)
        ax.set_xticks(range(len(labels)))
        ax.set_yticks(range(len(labels)))
        ax.set_xticklabels(labels, rotation=45, ha='right')
        ax.set_yticklabels(labels)
        ax.set_title("Between-Group Jost's D")
        plt.colorbar(image, ax=ax, fraction=0.046, pad=0.04)
        return ax
