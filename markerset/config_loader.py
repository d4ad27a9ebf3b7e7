"""
Configuration Loading System

Loads YAML configuration files and converts them to the data structures
of the marker panel optimizer.
"""

import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .annealing import AnnealingConfig, MarkerSetOptimizer
from .errors import ConfigurationError
from .frequency_matrix import AlleleFrequencyMatrix, MarkerPool
from .table_io import load_frequency_table, load_matrix_from_genotypes


def load_config(config_path: Union[str, Path] = "config.yaml") -> Dict[str, Any]:
    """Load configuration from YAML file"""
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigurationError(f"Configuration file is empty: {config_path}")
    return config


def _resolve_path(value: str, base_dir: Optional[Path]) -> Path:
    path = Path(value)
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return path


def load_matrix_from_config(config: Dict[str, Any],
                            base_dir: Optional[Path] = None) -> AlleleFrequencyMatrix:
    """
    Load the allele frequency matrix named in the 'data' section

    Args:
        config: Configuration dictionary
        base_dir: Directory relative data paths are resolved against

    Returns:
        AlleleFrequencyMatrix built from a frequency table, or derived from
        a genotype table plus group assignments
    """
    data_config = config.get("data", {}) or {}

    if "frequencies" in data_config:
        return load_frequency_table(_resolve_path(data_config["frequencies"], base_dir))

    if "genotypes" in data_config and "groups" in data_config:
        return load_matrix_from_genotypes(
            _resolve_path(data_config["genotypes"], base_dir),
            _resolve_path(data_config["groups"], base_dir)
        )

    raise ConfigurationError(
        "Data section must name either 'frequencies' or both 'genotypes' and 'groups'"
    )


def resolve_random_seed(random_seed: Any) -> int:
    """Turn a configured seed into an integer, drawing one if none is fixed"""
    if random_seed is None or random_seed == "random":
        random_seed = int(time.time() * 1000000) % 2147483647
        print(f"Using random seed: {random_seed}")
    elif isinstance(random_seed, str) and random_seed.isdigit():
        random_seed = int(random_seed)

    if not isinstance(random_seed, int) or isinstance(random_seed, bool):
        raise ConfigurationError(f"Invalid random seed: {random_seed!r}")
    return random_seed


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def create_annealing_config(config: Dict[str, Any]) -> AnnealingConfig:
    """Build annealing parameters from the 'panel', 'annealing' and 'objective' sections"""
    panel_config = config.get("panel", {}) or {}
    annealing_config = config.get("annealing", {}) or {}
    objective_config = config.get("objective", {}) or {}

    if "size" not in panel_config:
        raise ConfigurationError("Missing required field: 'panel.size'")

    try:
        return AnnealingConfig(
            panel_size=int(panel_config["size"]),
            initial_temperature=float(annealing_config.get("initial_temperature", 1.0)),
            cooling_factor=float(annealing_config.get("cooling_factor", 0.95)),
            max_iterations=int(annealing_config.get("max_iterations", 1000)),
            min_temperature=_optional_float(annealing_config.get("min_temperature")),
            max_seconds=_optional_float(annealing_config.get("max_seconds")),
            diversity_weight=float(objective_config.get("diversity_weight", 0.5)),
            random_seed=resolve_random_seed(annealing_config.get("random_seed", 0)),
            record_trace=bool(annealing_config.get("record_trace", True))
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid annealing parameter: {e}")


def create_pool_from_config(config: Dict[str, Any], matrix: AlleleFrequencyMatrix) -> MarkerPool:
    """Marker pool from 'panel.markers', or every marker in the matrix"""
    panel_config = config.get("panel", {}) or {}
    return MarkerPool.from_matrix(matrix, panel_config.get("markers"))


def create_optimizer_from_config(config_path: Union[str, Path] = "config.yaml") -> MarkerSetOptimizer:
    """
    Create a configured MarkerSetOptimizer from YAML configuration

    Args:
        config_path: Path to the configuration file

    Returns:
        Configured MarkerSetOptimizer instance
    """
    config = load_config(config_path)
    base_dir = Path(config_path).parent

    matrix = load_matrix_from_config(config, base_dir)
    pool = create_pool_from_config(config, matrix)
    annealing_config = create_annealing_config(config)

    return MarkerSetOptimizer(matrix=matrix, config=annealing_config, pool=pool)


def get_output_config(config_path: Union[str, Path] = "config.yaml") -> Dict[str, Any]:
    """Get output configuration; 'root' is resolved against the config file's folder"""
    config = load_config(config_path)
    output_config = dict(config.get("output", {}) or {})
    output_config["root"] = str(_resolve_path(output_config.get("root", "output"), Path(config_path).parent))
    return output_config


def get_visualization_config(config_path: Union[str, Path] = "config.yaml") -> Dict[str, Any]:
    """Get visualization configuration"""
    config = load_config(config_path)
    return config.get("visualization", {}) or {}


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration and return list of issues

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = []

    required_sections = ["data", "panel"]
    for section in required_sections:
        if section not in config:
            issues.append(f"Missing required section: {section}")

    data_config = config.get("data", {}) or {}
    if "data" in config:
        has_frequencies = "frequencies" in data_config
        has_genotypes = "genotypes" in data_config and "groups" in data_config
        if not has_frequencies and not has_genotypes:
            issues.append("Data section must name 'frequencies' or 'genotypes' and 'groups'")

    panel_config = config.get("panel", {}) or {}
    if "panel" in config:
        size = panel_config.get("size", 0)
        if not isinstance(size, int) or size <= 0:
            issues.append("Panel size must be a positive integer")

        markers = panel_config.get("markers")
        if markers is not None:
            if len(set(markers)) != len(markers):
                issues.append("Panel marker list contains duplicates")
            if isinstance(size, int) and size > len(markers):
                issues.append(f"Panel size ({size}) exceeds marker list length ({len(markers)})")

    annealing_config = config.get("annealing", {}) or {}
    temperature = annealing_config.get("initial_temperature", 1.0)
    if not isinstance(temperature, (int, float)) or temperature <= 0:
        issues.append("Initial temperature must be positive")

    alpha = annealing_config.get("cooling_factor", 0.95)
    if not isinstance(alpha, (int, float)) or not 0 < alpha < 1:
        issues.append("Cooling factor must lie in (0, 1)")

    iterations = annealing_config.get("max_iterations", 1000)
    if not isinstance(iterations, int) or iterations < 0:
        issues.append("Maximum iterations must be a non-negative integer")

    max_seconds = annealing_config.get("max_seconds")
    if max_seconds is not None and (not isinstance(max_seconds, (int, float)) or max_seconds <= 0):
        issues.append("Time budget must be positive")

    objective_config = config.get("objective", {}) or {}
    weight = objective_config.get("diversity_weight", 0.5)
    if not isinstance(weight, (int, float)) or not 0 <= weight <= 1:
        issues.append("Diversity weight must lie in [0, 1]")

    return issues


def print_config_summary(config_path: Union[str, Path] = "config.yaml"):
    """Print a summary of the configuration"""
    try:
        config = load_config(config_path)

        print("=" * 50)
        print("CONFIGURATION SUMMARY")
        print("=" * 50)

        data_config = config.get("data", {}) or {}
        if "frequencies" in data_config:
            print(f"Frequency table: {data_config['frequencies']}")
        else:
            print(f"Genotype table: {data_config.get('genotypes', 'N/A')}")
            print(f"Group assignments: {data_config.get('groups', 'N/A')}")

        panel_config = config.get("panel", {}) or {}
        markers = panel_config.get("markers")
        print(f"Panel size: {panel_config.get('size', 'N/A')}")
        print(f"Marker pool: {len(markers) if markers else 'All markers'}")

        annealing_config = config.get("annealing", {}) or {}
        print(f"\nInitial temperature: {annealing_config.get('initial_temperature', 1.0)}")
        print(f"Cooling factor: {annealing_config.get('cooling_factor', 0.95)}")
        print(f"Max iterations: {annealing_config.get('max_iterations', 1000)}")
        print(f"Random seed: {annealing_config.get('random_seed', 0)}")

        objective_config = config.get("objective", {}) or {}
        print(f"Diversity weight: {objective_config.get('diversity_weight', 0.5)}")

        issues = validate_config(config)
        if issues:
            print(f"\nValidation Issues ({len(issues)}):")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print("\nConfiguration is valid ✓")

        print("=" * 50)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}")
