"""
solvers.py: Solvers for the linear response equations of all operators at one frequency.

For spin channel s the equations for the supervector x = [X | Y] read

    [ X E^T - w X | Y E^T + w Y ] + G(x) = [ b | b ]

with E the orbital-energy-difference matrix and G the coupling supplied by a
matvec object (which may couple the alpha and beta channels).
"""

import time
import numpy as np
from .ediff import ediff_diagonal
from .errors import ConfigurationError, ConvergenceError, NumericalError
from .utils import helper_diis, print_ia_vec


class lrsolver(object):
    """
    Base class of all response solvers.

    Usage: set the occupations once, then for every frequency call init() and
    run(). run() overwrites the rspvecs_alph/rspvecs_beta of each operator with
    the solution; the property vectors are never modified.
    """
    def __init__(self):
        self.occupations = None
        self.fragment_occupations = None
        self.operators = None
        self.cfg = None
        self.matvec = None
        self.C = None
        self.ediff_alph = None
        self.ediff_beta = None
        self.frequency = 0.0
        self.maxiter = 0
        self.conv = 0.0
        self.nden = 0

    def set_orbital_occupations(self, nocc_alph, nvirt_alph, nocc_beta, nvirt_beta):
        self.occupations = [nocc_alph, nvirt_alph, nocc_beta, nvirt_beta]

    def set_fragment_occupations(self, fragment_occupations):
        self.fragment_occupations = fragment_occupations

    def init(self, operators, cfg, matvec, C, ediff_alph, ediff_beta, frequency, maxiter, conv):
        """
        Parameters
        ----------
        operators : list of perturbation objects
            operators with property vectors and (guess) response vectors
        cfg : rspconfig object
        matvec : matvec object
            two-electron coupling of the orbital Hessian
        C : NumPy array
            MO coefficients, shape (nbasis, norb, nden)
        ediff_alph, ediff_beta : NumPy arrays
            orbital-energy-difference matrices (ediff_beta is ignored for one channel)
        frequency : float
            external field frequency (E_h)
        maxiter : int
            maximum number of iterations
        conv : float
            residual norm threshold
        """
        if self.occupations is None:
            raise ConfigurationError("Orbital occupations must be set before the solver is initialized.")
        self.operators = operators
        self.cfg = cfg
        self.matvec = matvec
        self.C = C
        self.nden = C.shape[2]
        self.ediff_alph = ediff_alph
        self.ediff_beta = ediff_beta if self.nden == 2 else None
        self.frequency = frequency
        self.maxiter = maxiter
        self.conv = conv

    def run(self):
        if self.operators is None:
            raise ConfigurationError("The solver must be initialized before it is run.")
        for operator in self.operators:
            if operator.do_response:
                self.solve(operator)

    def solve(self, operator):
        raise NotImplementedError

    def ediffs(self):
        ediffs = [self.ediff_alph]
        if self.nden == 2:
            ediffs.append(self.ediff_beta)
        return ediffs

    def lhs(self, x):
        """Apply the full left-hand side to the list of per-channel supervector batches x."""
        w = self.frequency
        g = self.matvec(*x)
        out = []
        for xs, gs, ediff in zip(x, g, self.ediffs()):
            nov = ediff.shape[0]
            X = xs[:, :nov]
            Y = xs[:, nov:]
            out.append(np.concatenate((X @ ediff.T - w*X, Y @ ediff.T + w*Y), axis=1) + gs)
        return out

    def masks(self, operator):
        masks = []
        for is_beta, ediff in enumerate(self.ediffs()):
            masks.append(operator.response_mask(ediff.shape[0], bool(is_beta), self.cfg))
        return masks

    def channel_vectors(self, operator):
        x = [operator.rspvecs_alph]
        b = [operator.propvecs_alph]
        if self.nden == 2:
            x.append(operator.rspvecs_beta)
            b.append(operator.propvecs_beta)
        return x, b

    def store(self, operator, x):
        operator.rspvecs_alph[...] = x[0]
        if self.nden == 2:
            operator.rspvecs_beta[...] = x[1]

    def pseudoresponse(self, b, x):
        return sum(np.sum(bs * xs) for bs, xs in zip(b, x))


class diis_solver(lrsolver):
    """
    Diagonally preconditioned (Jacobi) iterations with DIIS extrapolation.
    """
    use_diis = True

    def solve(self, operator):
        solver_start = time.time()
        cfg = self.cfg
        w = self.frequency

        x, b = self.channel_vectors(operator)
        masks = self.masks(operator)
        precond = []
        for ediff, mask in zip(self.ediffs(), masks):
            d = ediff_diagonal(ediff, w)
            if np.any(mask & (np.abs(d) < cfg.denominator_threshold)):
                raise NumericalError("The frequency %.6f is resonant with an orbital energy difference; cannot precondition %s." % (w, operator.label))
            precond.append(np.where(mask, d, 1.0))
        x = [xs * mask for xs, mask in zip(x, masks)]

        pseudo = self.pseudoresponse(b, x)
        if cfg.print_level >= 2:
            print("Solving response equations for %s at omega = %.6f:" % (operator.label, w))
            print(f"Iter {0:3d}: Pseudoresponse = {pseudo:.15f} dP = {pseudo:.5E}")

        max_diis = cfg.max_diis if self.use_diis else 0
        diis = helper_diis(x, max_diis)

        # the residual of the last update is checked in the final pass
        for niter in range(1, self.maxiter+2):
            pseudo_last = pseudo

            r = [(bs - ls) * mask for bs, ls, mask in zip(b, self.lhs(x), masks)]
            rms = np.sqrt(sum(np.sum(rs**2, axis=1) for rs in r))

            if np.max(rms) < self.conv:
                if cfg.print_level >= 2:
                    print("\nResponse vectors for %s converged in %.3f seconds." % (operator.label, time.time() - solver_start))
                    if cfg.print_level >= 10:
                        nvirt = self.occupations[1]
                        print("\nLargest X elements (alpha):")
                        for comp in range(x[0].shape[0]):
                            print_ia_vec(x[0][comp, :x[0].shape[1]//2], nvirt)
                self.store(operator, x)
                return niter - 1

            if niter > self.maxiter:
                break

            x = [xs + rs/ps for xs, rs, ps in zip(x, r, precond)]

            pseudo = self.pseudoresponse(b, x)
            pseudodiff = pseudo - pseudo_last
            if cfg.print_level >= 2:
                print(f"Iter {niter:3d}: Pseudoresponse = {pseudo:.15f} dP = {pseudodiff:.5E} rms = {np.max(rms):.5E}")

            diis.add_error_vector(x)
            if niter >= cfg.start_diis:
                x = diis.extrapolate(x)

        raise ConvergenceError("Response vectors for %s did not converge in %d iterations (omega = %.6f)." % (operator.label, self.maxiter, w))


class jacobi_solver(diis_solver):
    """
    Diagonally preconditioned iterations without extrapolation.
    """
    use_diis = False


class exact_solver(lrsolver):
    """
    Build the full left-hand side from unit vectors and solve it directly.
    """
    def solve(self, operator):
        solver_start = time.time()
        x, b = self.channel_vectors(operator)
        masks = self.masks(operator)
        dims = [xs.shape[1] for xs in x]

        # columns of the explicit matrix, one block of unit vectors per channel
        blocks = []
        for k, dim in enumerate(dims):
            units = [np.zeros((dim, d)) for d in dims]
            units[k] = np.eye(dim)
            blocks.append(np.concatenate(self.lhs(units), axis=1).T)
        L = np.concatenate(blocks, axis=1)

        allowed = np.concatenate(masks)
        rhs = np.concatenate(b, axis=1)
        sol = np.zeros_like(rhs)
        sol[:, allowed] = np.linalg.solve(L[np.ix_(allowed, allowed)], rhs[:, allowed].T).T

        split = np.cumsum(dims)[:-1]
        self.store(operator, np.split(sol, split, axis=1))
        if self.cfg.print_level >= 2:
            print("Response vectors for %s solved directly in %.3f seconds." % (operator.label, time.time() - solver_start))
        return 1


def make_solver(cfg):
    """Return the solver object selected by cfg.solver."""
    solvers = {
        'diis': diis_solver,
        'jacobi': jacobi_solver,
        'exact': exact_solver,
    }
    if cfg.solver not in solvers:
        raise ConfigurationError("%s is not an allowed solver." % (cfg.solver))
    return solvers[cfg.solver]()
