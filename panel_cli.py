#!/usr/bin/env python3
"""
Marker Panel Runs

Runs a YAML run configuration through the restart extension. The run
configuration names the optimizer config and picks one of three modes:
one search (single), independent seeded restarts that keep the best panel
(restarts), or scoring an existing panel file (score).
"""

import argparse
import sys
from pathlib import Path

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))

from restart_ext.cli import MODES, ConfigValidationError, run_from_config
from markerset.errors import MarkerSetError


def main(argv=None):
    """Parse arguments and dispatch the run configuration"""
    parser = argparse.ArgumentParser(
        description="Marker Panel Runs - single search, restarts or panel scoring",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Modes: {', '.join(MODES)}

Examples:
  python3 panel_cli.py examples/single_run.yaml      # One seeded search
  python3 panel_cli.py examples/restarts_run.yaml    # 8 restarts on 4 workers
  python3 panel_cli.py examples/score_run.yaml       # Score panel_to_score.csv

Relative paths inside a run configuration are read from its own folder.
        """
    )
    parser.add_argument('run_config', nargs='?', help='Run configuration file')
    parser.add_argument('--config', '-c', dest='config_option',
                        help='Run configuration file (alternative to the positional form)')

    args = parser.parse_args(argv)
    run_config = args.config_option or args.run_config
    if run_config is None:
        parser.error("a run configuration file is required")

    try:
        return run_from_config(run_config)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(1)
    except (ConfigValidationError, MarkerSetError, OSError, ValueError) as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
