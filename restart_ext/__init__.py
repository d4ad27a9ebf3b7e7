"""
Restart Extension for the Marker Panel Optimizer

This package drives the annealing optimizer from YAML run configurations:
a single search, a batch of independent restarts run in parallel, or
scoring an existing panel.

Modules:
- data_models: Restart records and batch summary
- io_utils: Panel CSV reading, restart logging, output folders
- orchestration: single, restarts and score modes
- cli: Run configuration loading, validation and dispatch
"""

__version__ = "0.1.0"
__author__ = "Marker Panel Team"

from .data_models import RestartRecord, RestartSummary

__all__ = [
    "RestartRecord",
    "RestartSummary",
]
