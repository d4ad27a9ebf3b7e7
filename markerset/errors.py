"""
Error taxonomy for the marker panel optimizer.
"""


class MarkerSetError(Exception):
    """Base class for all marker panel errors"""
    pass


class ConfigurationError(MarkerSetError):
    """Raised when run parameters are invalid or no legal move exists"""
    pass


class DataError(MarkerSetError):
    """Raised when the allele frequency data cannot support a score"""
    pass


class NumericalError(MarkerSetError):
    """Raised when a value entering a geometric mean is negative"""
    pass
