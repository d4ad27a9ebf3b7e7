#!/usr/bin/env python3
"""
Marker Panel Optimizer

Main entry point for simulated-annealing marker panel selection.
This is the primary interface users should use to run a search.
Supports a basic mode and a detailed mode with a full quality report.
"""

import sys
import argparse
import time
from pathlib import Path

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))

from markerset.config_loader import (
    create_optimizer_from_config,
    print_config_summary,
    get_output_config,
    get_visualization_config
)
from markerset.panel_metrics import PanelMetrics, print_panel_report
from markerset.panel_exporter import create_panel_file


def run_basic_search(config_path="config.yaml", show_summary=True, output_name=None, save_plots=None):
    """Run one annealing search and show results"""
    if show_summary:
        print("=" * 60)
        print("MARKER PANEL OPTIMIZER")
        print("=" * 60)
        print_config_summary(config_path)

    output_config = get_output_config(config_path)
    output_dir = output_config.get('root', 'output')
    if output_name is None:
        output_name = output_config.get('name') or f"panel_{int(time.time())}"
    if save_plots is None:
        save_plots = output_config.get('save_plots', True)

    optimizer = create_optimizer_from_config(config_path)
    matrix = optimizer.matrix

    print(f"\nRunning annealing search...")
    start_time = time.time()
    result = optimizer.optimize()
    elapsed_time = time.time() - start_time
    print(f"Search completed in {elapsed_time:.3f} seconds")

    print(f"\nResults Summary:")
    print(f"  Markers selected: {len(result.marker_ids)}/{len(optimizer.pool)}")
    print(f"  Diversity: {result.score.diversity:.4f}")
    print(f"  Differentiation: {result.score.differentiation:.4f}")
    print(f"  Objective: {result.objective:.4f} (initial {result.initial_objective:.4f})")
    print(f"  Iterations: {result.iterations} ({result.stop_reason.value})")
    print(f"  Acceptance rate: {result.acceptance_rate:.3f}")
    print(f"  Panel: {', '.join(result.marker_ids)}")

    print(f"\nExporting panel file as '{output_name}.csv'...")
    try:
        file_path = create_panel_file(result, matrix, output_name, output_dir)
        print(f"  ✓ CSV: {file_path}")
    except OSError as e:
        print(f"  ✗ CSV: Failed - {e}")

    if save_plots:
        print(f"\nGenerating visualization plot...")
        try:
            # Set matplotlib to non-interactive backend to avoid display issues
            import matplotlib
            matplotlib.use('Agg')
            from markerset.visualization import AnnealingVisualizer

            metrics = PanelMetrics(matrix).analyze_panel(result)
            vis_config = get_visualization_config(config_path)
            visualizer = AnnealingVisualizer(matrix)

            Path(output_dir).mkdir(parents=True, exist_ok=True)
            plot_path = f"{output_dir}/{output_name}_plot.png"
            visualizer.plot_comprehensive_analysis(
                result,
                metrics,
                figsize=vis_config.get('figure_size', [14, 10]),
                save_path=plot_path
            )
            print(f"  ✓ Plot: {plot_path}")

        except Exception as e:
            print(f"  ✗ Plot: Failed - {e}")
            import traceback
            traceback.print_exc()

    return optimizer, result


def run_detailed_analysis(config_path="config.yaml", output_name=None, save_plots=None):
    """Run the search with detailed quality analysis"""
    optimizer, result = run_basic_search(config_path, output_name=output_name, save_plots=save_plots)

    print("\nAnalyzing panel quality...")
    metrics = PanelMetrics(optimizer.matrix).analyze_panel(result)

    # Print comprehensive report
    report = print_panel_report(metrics)
    print("\n" + report)

    return optimizer, result, metrics


def main():
    """Main entry point with command-line argument parsing"""
    parser = argparse.ArgumentParser(
        description="Marker Panel Optimizer - Simulated Annealing Panel Selection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 main.py                               # Basic search (CSV + JSON + plot)
  python3 main.py --mode detailed               # With quality report
  python3 main.py --output-name "panel_v1"      # Custom filenames (panel_v1.csv + panel_v1_plot.png)
  python3 main.py --no-plots                    # Skip the plot
  python3 main.py --config custom.yaml          # Custom config file

For independent restarts use panel_cli.py with a run configuration.
        """
    )

    parser.add_argument(
        '--config', '-c',
        default='config.yaml',
        help='Configuration file path (default: config.yaml)'
    )

    parser.add_argument(
        '--mode', '-m',
        choices=['basic', 'detailed'],
        default='basic',
        help='Run mode (default: basic)'
    )

    parser.add_argument(
        '--output-name', '-n',
        type=str,
        metavar='NAME',
        help='Base name for output files (default: output.name or panel_TIMESTAMP)'
    )

    parser.add_argument(
        '--no-plots',
        action='store_true',
        help='Do not generate the analysis plot'
    )

    args = parser.parse_args()
    save_plots = False if args.no_plots else None

    try:
        if args.mode == 'detailed':
            run_detailed_analysis(args.config, args.output_name, save_plots=save_plots)
        else:
            run_basic_search(args.config, output_name=args.output_name, save_plots=save_plots)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
