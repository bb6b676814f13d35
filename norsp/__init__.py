"""Frequency-dependent linear response in a non-orthogonal MO basis."""

# Add imports here
from .config import rspconfig
from .errors import ConfigurationError, NumericalError, ConvergenceError
from .operators import perturbation
from .matvec import matvec, uncoupled_matvec, explicit_matvec, eri_matvec
from .solvers import lrsolver, diis_solver, jacobi_solver, exact_solver, make_solver
from .driver import linresp, solve_linear_response

__all__ = ['rspconfig', 'ConfigurationError', 'NumericalError', 'ConvergenceError', 'perturbation',
           'matvec', 'uncoupled_matvec', 'explicit_matvec', 'eri_matvec',
           'lrsolver', 'diis_solver', 'jacobi_solver', 'exact_solver', 'make_solver',
           'linresp', 'solve_linear_response']

from ._version import __version__
