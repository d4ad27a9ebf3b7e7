"""
Orchestration module for the restart extension.

Implements the single, restarts and score run modes.
"""

import concurrent.futures
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Tuple

from markerset.annealing import AnnealingConfig, MarkerSetOptimizer, OptimizationResult
from markerset.config_loader import (
    create_annealing_config,
    create_pool_from_config,
    load_config,
    load_matrix_from_config,
    resolve_random_seed
)
from markerset.errors import DataError
from markerset.frequency_matrix import AlleleFrequencyMatrix, MarkerPool
from markerset.panel_exporter import create_panel_file
from markerset.panel_metrics import PanelMetrics, print_panel_report
from markerset.scoring import Evaluator

from .data_models import RestartRecord, RestartSummary
from .io_utils import (
    load_panel_marker_ids,
    prepare_output_folder,
    restart_panel_name,
    save_restart_log
)


@dataclass
class RestartTask:
    """Everything one worker process needs to run a restart"""
    index: int
    matrix: AlleleFrequencyMatrix
    pool: MarkerPool
    config: AnnealingConfig


def run_restart(task: RestartTask) -> Tuple[int, OptimizationResult]:
    """Run one restart; module-level so process pools can pickle it"""
    optimizer = MarkerSetOptimizer(matrix=task.matrix, config=task.config, pool=task.pool)
    return task.index, optimizer.optimize()


def load_problem(run_config: Dict[str, Any]) -> Tuple[AlleleFrequencyMatrix, MarkerPool, AnnealingConfig]:
    """
    Load the optimizer configuration referenced by a run configuration.

    A top-level 'random_seed' in the run configuration overrides the
    optimizer configuration's seed.

    Returns:
        Tuple of (matrix, pool, annealing config)
    """
    config_path = Path(run_config['config'])
    print(f"Loading optimizer config from: {config_path}")
    config = load_config(config_path)

    matrix = load_matrix_from_config(config, config_path.parent)
    pool = create_pool_from_config(config, matrix)
    annealing_config = create_annealing_config(config)

    if 'random_seed' in run_config:
        annealing_config = replace(annealing_config,
                                   random_seed=resolve_random_seed(run_config['random_seed']))

    print(f"Matrix: {matrix.n_markers} markers x {matrix.n_groups} groups")
    print(f"Marker pool: {len(pool)} markers, panel size {annealing_config.panel_size}")
    print(f"Random seed: {annealing_config.random_seed}")
    return matrix, pool, annealing_config


def _output_root(run_config: Dict[str, Any]) -> Path:
    output_config = run_config['output']
    output_root = prepare_output_folder(output_config['root'],
                                        overwrite=output_config.get('overwrite', False))
    print(f"Output directory: {output_root}\n")
    return output_root


def run_single_mode(run_config: Dict[str, Any]) -> OptimizationResult:
    """
    Run one annealing search and export its best panel.

    Args:
        run_config: Run configuration dict from YAML

    Algorithm:
        1. Load matrix, pool and annealing parameters
        2. Create output directory: run_config['output']['root']
        3. Optimize to termination
        4. Print the panel report
        5. Save output_root/best_panel.csv and best_panel.json

    Returns:
        OptimizationResult of the run
    """
    print("=" * 70)
    print("SINGLE MODE")
    print("=" * 70)

    matrix, pool, annealing_config = load_problem(run_config)
    output_root = _output_root(run_config)

    result = MarkerSetOptimizer(matrix=matrix, config=annealing_config, pool=pool).optimize()

    metrics = PanelMetrics(matrix).analyze_panel(result)
    print(print_panel_report(metrics, detailed=run_config.get('detailed', False)))

    panel_path = create_panel_file(result, matrix, 'best_panel', str(output_root))

    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Objective: {result.objective:.6f} (initial {result.initial_objective:.6f})")
    print(f"Stop reason: {result.stop_reason.value} after {result.iterations} iterations")
    print(f"Best panel: {panel_path}")
    return result


def run_restarts_mode(run_config: Dict[str, Any]) -> RestartSummary:
    """
    Run independent annealing restarts and keep the best panel.

    Restart i runs with seed base_seed + i, so a batch is reproducible
    regardless of the number of workers.

    Args:
        run_config: Run configuration dict from YAML

    Algorithm:
        1. Load matrix, pool and annealing parameters
        2. Create output directory: run_config['output']['root']
        3. For i in range(run_config['restarts']['count']):
           a. Optimize with seed base_seed + i (in a worker process if workers > 1)
           b. Save to output_root/restart_{i:03d}.csv
           c. Create RestartRecord
        4. Save restart log to output_root/restart_log.csv
        5. Save the best restart's panel as output_root/best_panel.csv
        6. Print summary report

    Returns:
        RestartSummary of the batch
    """
    print("=" * 70)
    print("RESTARTS MODE")
    print("=" * 70)

    matrix, pool, annealing_config = load_problem(run_config)
    output_root = _output_root(run_config)

    restart_config = run_config['restarts']
    num_restarts = restart_config['count']
    num_workers = min(restart_config.get('workers', 1), num_restarts)
    base_seed = annealing_config.random_seed

    tasks = [
        RestartTask(index=i, matrix=matrix, pool=pool,
                    config=replace(annealing_config, random_seed=base_seed + i))
        for i in range(num_restarts)
    ]

    print(f"Running {num_restarts} restarts on {num_workers} worker(s)...")
    print()

    results: Dict[int, OptimizationResult] = {}
    if num_workers > 1:
        with concurrent.futures.ProcessPoolExecutor(max_workers=num_workers) as executor:
            future_to_idx = {executor.submit(run_restart, task): task.index for task in tasks}
            for future in concurrent.futures.as_completed(future_to_idx):
                i = future_to_idx[future]
                try:
                    _, results[i] = future.result()
                except Exception as e:
                    print(f"[ERROR] Restart {i} failed: {e}")
                    raise
                _report_progress(len(results), num_restarts)
    else:
        for task in tasks:
            _, results[task.index] = run_restart(task)
            _report_progress(len(results), num_restarts)

    records = []
    for i in range(num_restarts):
        result = results[i]
        panel_path = create_panel_file(result, matrix, restart_panel_name(i), str(output_root))
        records.append(
            RestartRecord(
                index=i,
                seed=result.random_seed,
                panel_path=Path(panel_path),
                marker_ids=list(result.marker_ids),
                objective=result.objective,
                diversity=result.score.diversity,
                differentiation=result.score.differentiation,
                iterations=result.iterations,
                acceptance_rate=result.acceptance_rate,
                stop_reason=result.stop_reason.value,
                elapsed_seconds=result.elapsed_seconds
            )
        )

    summary = RestartSummary(
        records=records,
        metadata={'base_seed': base_seed, 'workers': num_workers}
    )

    restart_log_path = output_root / 'restart_log.csv'
    save_restart_log(records, restart_log_path, overwrite=True)

    best = summary.best()
    best_panel_path = create_panel_file(results[best.index], matrix, 'best_panel', str(output_root))

    low, high = summary.objective_range()
    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Restarts: {len(summary)} ({summary.distinct_panels()} distinct panels)")
    print(f"Objective range: {low:.6f} - {high:.6f}")
    print(f"Best restart: {best.index} (seed {best.seed}, objective {best.objective:.6f})")
    print(f"Best panel: {best_panel_path}")
    print(f"Restart log: {restart_log_path}")
    return summary


def _report_progress(done: int, total: int):
    if done % 10 == 0 or done == total:
        print(f"  Progress: {done}/{total} restarts finished")


def run_score_mode(run_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Score an existing panel CSV without searching.

    Args:
        run_config: Run configuration dict from YAML; 'input.panel' names the panel

    Returns:
        Dictionary with marker_ids, diversity, differentiation and objective

    Raises:
        DataError: If the panel names markers outside the marker pool
    """
    print("=" * 70)
    print("SCORE MODE")
    print("=" * 70)

    matrix, pool, annealing_config = load_problem(run_config)

    panel_path = run_config['input']['panel']
    print(f"Loading panel from: {panel_path}")
    marker_ids = load_panel_marker_ids(panel_path)
    if not marker_ids:
        raise DataError(f"Panel file lists no markers: {panel_path}")

    position_of = {marker_id: i for i, marker_id in enumerate(pool.marker_ids)}
    unknown = [m for m in marker_ids if m not in position_of]
    if unknown:
        raise DataError(f"Panel markers not in marker pool: {unknown}")

    positions = sorted(position_of[m] for m in marker_ids)
    evaluator = Evaluator(matrix, annealing_config.diversity_weight)
    objective, score = evaluator.evaluate(pool.rows[positions])

    if len(marker_ids) != annealing_config.panel_size:
        print(f"Note: panel has {len(marker_ids)} markers, configured size is "
              f"{annealing_config.panel_size}")

    print()
    print("=" * 70)
    print("SCORES")
    print("=" * 70)
    print(f"Markers: {len(marker_ids)}")
    print(f"Diversity (geometric mean He): {score.diversity:.6f}")
    print(f"Differentiation (geometric mean Jost's D): {score.differentiation:.6f}")
    print(f"Objective: {objective:.6f}")

    return {
        'marker_ids': pool.ids_at(positions),
        'diversity': score.diversity,
        'differentiation': score.differentiation,
        'objective': objective,
    }
