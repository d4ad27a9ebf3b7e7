#!/usr/bin/env python3
"""
Configuration Validation Tool

Validates YAML configuration files for the marker panel optimizer
and provides detailed feedback about parameter values and potential issues.
"""

import sys
import argparse
from pathlib import Path
from typing import Dict, Any, Optional

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))

from markerset.config_loader import (
    load_config,
    load_matrix_from_config,
    validate_config
)
from markerset.errors import ConfigurationError, DataError
from markerset.frequency_matrix import AlleleFrequencyMatrix

# Below this temperature exp(delta / T) is zero for any realistic delta
NEGLIGIBLE_TEMPERATURE = 1e-12


class ConfigValidator:
    """Advanced configuration validator with detailed feedback"""

    def __init__(self):
        self.warnings = []
        self.errors = []
        self.recommendations = []

    def validate_comprehensive(self, config_path: str) -> Dict[str, Any]:
        """Perform comprehensive validation with detailed feedback"""
        try:
            config = load_config(config_path)
        except ConfigurationError as e:
            return {
                'valid': False,
                'errors': [f"Failed to load configuration: {e}"],
                'warnings': [],
                'recommendations': [],
                'summary': {}
            }

        self.warnings = []
        self.errors = []
        self.recommendations = []

        # Basic validation
        self.errors.extend(validate_config(config))

        # Data-dependent validation
        matrix = self._load_matrix(config, Path(config_path).parent)
        if matrix is not None:
            self._validate_data(matrix)
            self._validate_panel(config.get('panel', {}) or {}, matrix)

        self._validate_annealing(config.get('annealing', {}) or {})
        self._validate_objective(config.get('objective', {}) or {})
        self._validate_visualization(config.get('visualization', {}) or {})

        summary = self._generate_summary(config, matrix)

        return {
            'valid': len(self.errors) == 0,
            'errors': self.errors,
            'warnings': self.warnings,
            'recommendations': self.recommendations,
            'summary': summary
        }

    def _load_matrix(self, config: Dict[str, Any], base_dir: Path) -> Optional[AlleleFrequencyMatrix]:
        """Load the frequency matrix, recording any failure as an error"""
        if 'data' not in config:
            return None
        try:
            return load_matrix_from_config(config, base_dir)
        except (ConfigurationError, DataError) as e:
            self.errors.append(f"Could not load data: {e}")
            return None

    def _validate_data(self, matrix: AlleleFrequencyMatrix):
        """Validate the loaded frequency matrix"""
        if matrix.n_groups < 2:
            self.warnings.append(
                f"Only {matrix.n_groups} group - differentiation is always 0"
            )

        incomplete = matrix.n_markers - matrix.drop_incomplete_markers().n_markers
        if incomplete:
            self.warnings.append(f"{incomplete} marker(s) have missing frequencies in some group")
            if incomplete > matrix.n_markers / 2:
                self.recommendations.append(
                    "Many markers are incomplete; consider dropping poorly sampled groups"
                )

    def _validate_panel(self, panel_config: Dict[str, Any], matrix: AlleleFrequencyMatrix):
        """Validate panel size against the marker pool"""
        markers = panel_config.get('markers')
        if markers is not None:
            missing = [m for m in markers if not matrix.has_marker(m)]
            if missing:
                self.errors.append(f"Panel markers not in data: {missing}")
            pool_size = len(markers)
        else:
            pool_size = matrix.n_markers

        size = panel_config.get('size')
        if not isinstance(size, int) or size <= 0:
            return

        if size > pool_size:
            self.errors.append(f"Panel size ({size}) exceeds marker pool ({pool_size})")
        elif size == pool_size:
            self.warnings.append("Panel size equals marker pool - no search is possible")
        elif size > pool_size / 2:
            self.recommendations.append(
                f"Panel size ({size}) is more than half of the pool ({pool_size}); "
                f"consider a larger pool"
            )

    def _validate_annealing(self, annealing_config: Dict[str, Any]):
        """Validate annealing schedule"""
        temperature = annealing_config.get('initial_temperature', 1.0)
        alpha = annealing_config.get('cooling_factor', 0.95)
        max_iterations = annealing_config.get('max_iterations', 1000)
        random_seed = annealing_config.get('random_seed', 0)

        if isinstance(max_iterations, int) and 0 <= max_iterations < 50:
            self.warnings.append(f"Low max_iterations ({max_iterations}) may reduce panel quality")

        numeric = all(isinstance(v, (int, float)) for v in (temperature, alpha, max_iterations))
        if numeric and temperature > 0 and 0 < alpha < 1 and max_iterations > 0:
            final_temperature = temperature * alpha ** max_iterations
            if final_temperature < NEGLIGIBLE_TEMPERATURE:
                self.warnings.append(
                    f"Final temperature ({final_temperature:.2e}) is negligible - "
                    f"late iterations are pure hill climbing"
                )
                self.recommendations.append(
                    "Raise cooling_factor or set min_temperature to stop cooling runs earlier"
                )

        if random_seed is None or random_seed == "random":
            self.recommendations.append("Set a fixed random_seed to make runs reproducible")
        elif isinstance(random_seed, int) and (random_seed < 0 or random_seed > 2**31):
            self.warnings.append(f"random_seed ({random_seed}) outside typical range")

    def _validate_objective(self, objective_config: Dict[str, Any]):
        """Validate objective weighting"""
        weight = objective_config.get('diversity_weight', 0.5)
        if weight == 0:
            self.warnings.append("diversity_weight is 0 - only differentiation is optimized")
        elif weight == 1:
            self.warnings.append("diversity_weight is 1 - only diversity is optimized")

    def _validate_visualization(self, vis_config: Dict[str, Any]):
        """Validate visualization configuration"""
        figure_size = vis_config.get('figure_size', [14, 10])

        if isinstance(figure_size, list) and len(figure_size) == 2:
            width, height = figure_size
            if width <= 0 or height <= 0:
                self.errors.append("figure_size dimensions must be positive")
            elif width > 30 or height > 30:
                self.warnings.append(f"Large figure_size {figure_size} may cause display issues")

    def _generate_summary(self, config: Dict[str, Any],
                          matrix: Optional[AlleleFrequencyMatrix]) -> Dict[str, Any]:
        """Generate configuration summary"""
        summary = {}

        if matrix is not None:
            summary['data'] = {
                'markers': matrix.n_markers,
                'groups': matrix.n_groups,
                'group_labels': list(matrix.group_labels)
            }

        panel_config = config.get('panel', {}) or {}
        if panel_config:
            markers = panel_config.get('markers')
            summary['panel'] = {
                'size': panel_config.get('size', 'N/A'),
                'pool': len(markers) if markers else 'all markers'
            }

        annealing_config = config.get('annealing', {}) or {}
        random_seed = annealing_config.get('random_seed', 0)
        summary['annealing'] = {
            'initial_temperature': annealing_config.get('initial_temperature', 1.0),
            'cooling_factor': annealing_config.get('cooling_factor', 0.95),
            'max_iterations': annealing_config.get('max_iterations', 1000),
            'random_seed': random_seed,
            'reproducible': random_seed is not None and random_seed != "random"
        }

        return summary


def main():
    """Main validation function"""
    parser = argparse.ArgumentParser(
        description="Validate YAML configuration files for the marker panel optimizer",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        'config_file',
        nargs='?',
        default='config.yaml',
        help='Configuration file to validate (default: config.yaml)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show detailed validation information'
    )

    parser.add_argument(
        '--warnings-only', '-w',
        action='store_true',
        help='Show only warnings and errors (no recommendations)'
    )

    args = parser.parse_args()

    validator = ConfigValidator()
    result = validator.validate_comprehensive(args.config_file)

    # Print results
    print("=" * 60)
    print("CONFIGURATION VALIDATION REPORT")
    print("=" * 60)
    print(f"File: {args.config_file}")
    print(f"Status: {'✅ VALID' if result['valid'] else '❌ INVALID'}")
    print()

    if result['errors']:
        print("🚨 ERRORS:")
        for error in result['errors']:
            print(f"  • {error}")
        print()

    if result['warnings']:
        print("⚠️  WARNINGS:")
        for warning in result['warnings']:
            print(f"  • {warning}")
        print()

    if result['recommendations'] and not args.warnings_only:
        print("💡 RECOMMENDATIONS:")
        for rec in result['recommendations']:
            print(f"  • {rec}")
        print()

    if result['summary'] and args.verbose:
        print("📊 SUMMARY:")
        for section, data in result['summary'].items():
            print(f"  {section.title()}:")
            for key, value in data.items():
                print(f"    {key}: {value}")
        print()

    # Quick stats
    if not args.verbose:
        summary = result['summary']
        if 'data' in summary and 'panel' in summary:
            data_info = summary['data']
            panel_info = summary['panel']
            print(f"Markers: {data_info['markers']}, Groups: {data_info['groups']}, "
                  f"Panel size: {panel_info['size']}")

    print("=" * 60)

    sys.exit(0 if result['valid'] else 1)


if __name__ == "__main__":
    main()
