"""
CLI module for the restart extension.

Handles run configuration loading, validation, and mode dispatching.
"""

from pathlib import Path
from typing import Any, Dict

import yaml

MODES = ('single', 'restarts', 'score')


class ConfigValidationError(Exception):
    """Raised when run configuration is invalid."""
    pass


def _resolve(value: Any, base_dir: Path) -> Any:
    if not isinstance(value, str):
        return value
    path = Path(value)
    return str(path if path.is_absolute() else base_dir / path)


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Load run configuration from YAML file.

    Relative paths in 'config', 'input.panel' and 'output.root' are
    resolved against the directory holding the run configuration.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Dictionary containing run configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigValidationError("Configuration file is empty")
    if not isinstance(config, dict):
        raise ConfigValidationError("Run configuration must be a mapping")

    base_dir = config_file.parent
    if 'config' in config:
        config['config'] = _resolve(config['config'], base_dir)
    if isinstance(config.get('input'), dict) and 'panel' in config['input']:
        config['input']['panel'] = _resolve(config['input']['panel'], base_dir)
    if isinstance(config.get('output'), dict) and 'root' in config['output']:
        config['output']['root'] = _resolve(config['output']['root'], base_dir)

    return config


def _require_positive_int(section: Dict[str, Any], key: str, name: str) -> None:
    value = section[key]
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ConfigValidationError(f"'{name}' must be a positive integer, got: {value}")


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Validate run configuration structure.

    Args:
        config: Run configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    # Check mode field
    if 'mode' not in config:
        raise ConfigValidationError("Missing required field: 'mode'")

    mode = config['mode']
    if mode not in MODES:
        raise ConfigValidationError(
            f"Invalid mode: '{mode}'. Must be 'single', 'restarts' or 'score'"
        )

    if 'config' not in config:
        raise ConfigValidationError("Missing required field: 'config'")

    optimizer_config = Path(config['config'])
    if not optimizer_config.exists():
        raise ConfigValidationError(f"Optimizer config not found: {optimizer_config}")

    seed = config.get('random_seed')
    if 'random_seed' in config and seed != 'random' and (
            not isinstance(seed, int) or isinstance(seed, bool) or seed < 0):
        raise ConfigValidationError(
            f"'random_seed' must be a non-negative integer or 'random', got: {seed}"
        )

    # Mode-specific validation
    if mode == 'score':
        _validate_score_config(config)
    else:
        _validate_output_config(config)
        if mode == 'restarts':
            _validate_restarts_config(config)


def _validate_output_config(config: Dict[str, Any]) -> None:
    if 'output' not in config:
        raise ConfigValidationError("Missing required field: 'output'")

    if not isinstance(config['output'], dict):
        raise ConfigValidationError("'output' must be a dictionary")

    if 'root' not in config['output']:
        raise ConfigValidationError("Missing required field: 'output.root'")


def _validate_restarts_config(config: Dict[str, Any]) -> None:
    """
    Validate restarts mode configuration.

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    if 'restarts' not in config:
        raise ConfigValidationError("Restarts mode requires 'restarts' section")

    restarts = config['restarts']
    if not isinstance(restarts, dict):
        raise ConfigValidationError("'restarts' must be a dictionary")

    if 'count' not in restarts:
        raise ConfigValidationError("Restarts mode requires 'restarts.count' field")
    _require_positive_int(restarts, 'count', 'restarts.count')

    if 'workers' in restarts:
        _require_positive_int(restarts, 'workers', 'restarts.workers')


def _validate_score_config(config: Dict[str, Any]) -> None:
    """
    Validate score mode configuration.

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    input_config = config.get('input')
    if not isinstance(input_config, dict) or 'panel' not in input_config:
        raise ConfigValidationError("Score mode requires 'input.panel' field")

    panel_path = Path(input_config['panel'])
    if not panel_path.exists():
        raise ConfigValidationError(f"Panel file not found: {panel_path}")


def run_from_config(config_path: str) -> Any:
    """
    Load run configuration and execute appropriate mode.

    This is the main entry point called by panel_cli.py.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Whatever the mode returns (result, restart summary or scores)

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
        Various exceptions from mode implementations
    """
    # Load and validate config
    print(f"Loading configuration from: {config_path}")
    config = load_run_config(config_path)

    print(f"Validating configuration...")
    validate_run_config(config)

    mode = config['mode']
    print(f"Mode: {mode}\n")

    # Dispatch to appropriate mode
    if mode == 'single':
        from .orchestration import run_single_mode
        outcome = run_single_mode(config)
    elif mode == 'restarts':
        from .orchestration import run_restarts_mode
        outcome = run_restarts_mode(config)
    else:
        from .orchestration import run_score_mode
        outcome = run_score_mode(config)

    print("\n✅ Run completed successfully!")
    return outcome
