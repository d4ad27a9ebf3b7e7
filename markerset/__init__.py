"""
Marker Panel Optimizer

Simulated-annealing selection of fixed-size SNP panels that capture
diversity within subpopulations and differentiate them from one another.
"""

__version__ = "1.0.0"
__author__ = "Marker Panel Team"

from .errors import MarkerSetError, ConfigurationError, DataError, NumericalError
from .frequency_matrix import AlleleFrequencyMatrix, MarkerPool
from .scoring import (
    Score,
    DiversityScorer,
    DifferentiationScorer,
    Evaluator,
    expected_heterozygosity,
    jost_d,
    geometric_mean
)
from .candidate_set import CandidateMarkerSet, RandomMoveGenerator, Move
from .annealing import (
    AnnealingConfig,
    MarkerSetOptimizer,
    OptimizationResult,
    OptimizationState,
    RunPhase,
    StopReason,
    TraceEntry
)
from .panel_metrics import PanelMetrics, print_panel_report
from .panel_exporter import PanelExporter, create_panel_file
from .config_loader import create_optimizer_from_config, load_config

__all__ = [
    'MarkerSetError',
    'ConfigurationError',
    'DataError',
    'NumericalError',
    'AlleleFrequencyMatrix',
    'MarkerPool',
    'Score',
    'DiversityScorer',
    'DifferentiationScorer',
    'Evaluator',
    'expected_heterozygosity',
    'jost_d',
    'geometric_mean',
    'CandidateMarkerSet',
    'RandomMoveGenerator',
    'Move',
    'AnnealingConfig',
    'MarkerSetOptimizer',
    'OptimizationResult',
    'OptimizationState',
    'RunPhase',
    'StopReason',
    'TraceEntry',
    'PanelMetrics',
    'print_panel_report',
    'PanelExporter',
    'create_panel_file',
    'create_optimizer_from_config',
    'load_config'
]
