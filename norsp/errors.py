"""
errors.py: Exceptions raised by the response driver and its collaborators.
"""


class ConfigurationError(Exception):
    """Inconsistent or missing input: options, occupations, operators, frequencies."""


class NumericalError(Exception):
    """A numerical hazard that makes the result meaningless, e.g., a vanishing denominator."""


class ConvergenceError(NumericalError):
    """The iterative solver did not reach the requested residual within maxiter iterations."""
