"""
driver.py: Frequency-dependent linear response in a (possibly) non-orthogonal MO basis.
"""

import sys
import time
import numpy as np
from .basis import motransform
from .config import rspconfig
from .ediff import form_ediff_terms, make_masked_mat
from .errors import ConfigurationError
from .indices import fragment_occupations_or_default, make_response_indices, print_indices
from .matvec import uncoupled_matvec
from .results import (form_results, combine_results, make_operator_label_vec,
                      make_operator_component_vec, print_results_with_labels)
from .solvers import make_solver
from .utils import pretty_print, save_array

np.set_printoptions(precision=10, linewidth=300, threshold=sys.maxsize, suppress=True)

dashes = "-" * 78


class linresp(object):
    """
    A linear response calculation for a set of operators over a list of frequencies.

    Attributes
    ----------
    nden : int
        number of spin channels
    nov_alph, nov_beta : int
        number of occupied-virtual pairs per channel
    mot : motransform object
        MO coefficient blocks and MO-basis overlap/Fock matrices
    indices_mo : list of NumPy arrays
        alpha and beta pair indices of the response space
    ediff_alph, ediff_beta : NumPy arrays
        (optionally masked) orbital-energy-difference matrices
    results_alph, results_beta : NumPy arrays
        per-channel results, shape (ntot, ntot, nfreq)
    uncoupled_results : list of NumPy arrays
        combined uncoupled (initial guess) results, one matrix per frequency
    results : NumPy array
        combined results, shape (ntot, ntot, nfreq)

    Methods
    -------
    run()
        Solve the response equations at every frequency and return the combined results.
    """

    def __init__(self, C, F, S, occupations, operators, omega, fragment_occupations=None, matvec=None, solver=None, cfg=None):
        """
        Parameters
        ----------
        C : NumPy array
            MO coefficients, shape (nbasis, norb, nden)
        F : NumPy array
            AO-basis Fock matrices, shape (nbasis, nbasis, nden)
        S : NumPy array
            AO overlap matrix, shape (nbasis, nbasis)
        occupations : sequence of int
            (nocc_alph, nvirt_alph, nocc_beta, nvirt_beta)
        operators : list of perturbation objects
            mutated in place (property and response vectors)
        omega : sequence of float
            frequencies (E_h), processed in the given order
        fragment_occupations : NumPy array or None
            rows of (fragment id, norb, nocc_alph, nocc_beta); None is one fragment
        matvec : matvec object or None
            two-electron coupling; None gives the uncoupled result
        solver : lrsolver object or None
            None selects the solver named by cfg.solver
        cfg : rspconfig object or None
            None uses the default options

        Returns
        -------
        None
        """
        self.cfg = cfg = cfg if cfg is not None else rspconfig()

        occupations = list(occupations)
        if len(occupations) != 4:
            raise ConfigurationError("Occupations must be (nocc_alph, nvirt_alph, nocc_beta, nvirt_beta), got %d values." % (len(occupations)))
        occupations = [int(n) for n in occupations]
        if min(occupations) < 0:
            raise ConfigurationError("Occupations cannot be negative.")
        omega = list(omega)
        if len(omega) == 0:
            raise ConfigurationError("Supply one or more frequencies.")
        operators = list(operators)
        if len(operators) == 0:
            raise ConfigurationError("Supply one or more operators.")

        C = np.asarray(C, dtype=np.float64)
        if C.ndim != 3 or C.shape[2] not in (1, 2):
            raise ConfigurationError("MO coefficients must have shape (nbasis, norb, nden) with nden 1 or 2.")
        nbasis, norb, nden = C.shape
        F = np.asarray(F, dtype=np.float64)
        if F.shape != (nbasis, nbasis, nden):
            raise ConfigurationError("Fock matrices have shape %s, expected %s." % (F.shape, (nbasis, nbasis, nden)))
        S = np.asarray(S, dtype=np.float64)
        if S.shape != (nbasis, nbasis):
            raise ConfigurationError("Overlap matrix has shape %s, expected %s." % (S.shape, (nbasis, nbasis)))

        nocc_alph, nvirt_alph, nocc_beta, nvirt_beta = occupations
        if norb != nocc_alph + nvirt_alph or norb != nocc_beta + nvirt_beta:
            raise ConfigurationError("Occupations %s do not add up to %d orbitals." % (occupations, norb))
        self.nov_alph = nocc_alph * nvirt_alph
        self.nov_beta = nocc_beta * nvirt_beta
        if self.nov_alph == 0 or (nden == 2 and self.nov_beta == 0):
            raise ConfigurationError("No occupied-virtual pairs: every spin channel needs occupied and virtual orbitals.")
        if nocc_alph == nocc_beta and self.nov_alph != self.nov_beta:
            raise ConfigurationError("Equal alpha and beta occupations must give equal numbers of occupied-virtual pairs.")

        self.C = C
        self.F = F
        self.S = S
        self.nden = nden
        self.occupations = occupations
        self.operators = operators
        self.omega = omega
        self.fragment_occupations = fragment_occupations_or_default(fragment_occupations, occupations)
        self.matvec = matvec if matvec is not None else uncoupled_matvec()
        self.solver = solver if solver is not None else make_solver(cfg)

        self.mot = None
        self.indices_mo = None
        self.ediff_alph = self.ediff_beta = None
        self.results_alph = self.results_beta = None
        self.uncoupled_results = []
        self.results = None

    def print_settings(self):
        cfg = self.cfg
        nocc_alph, nvirt_alph, nocc_beta, nvirt_beta = self.occupations
        print(" " + dashes)
        print("  Settings")
        print("   nocc_alph: %d" % (nocc_alph))
        print("   nvirt_alph: %d" % (nvirt_alph))
        print("   nocc_beta: %d" % (nocc_beta))
        print("   nvirt_beta: %d" % (nvirt_beta))
        print("   nov_alph: %d" % (self.nov_alph))
        print("   nov_beta: %d" % (self.nov_beta))
        print("   Orbital Hessian: %s" % (cfg.hamiltonian.upper()))
        print("   Operator spin type: %s" % (cfg.spin))
        print("   Solver: %s" % (cfg.solver))
        print("   Max. iter: %d" % (cfg.maxiter))
        print("   Convergence threshold: 10^%d" % (-cfg.conv))
        print("   Frequencies: " + " ".join("%.6f" % w for w in self.omega))

    def setup(self):
        """
        Form the MO-basis quantities, the response index sets and the energy-difference matrices.
        """
        cfg = self.cfg
        nden = self.nden
        nocc_alph, nvirt_alph, nocc_beta, nvirt_beta = self.occupations

        self.mot = mot = motransform(self.C, self.F, self.S, self.occupations, cfg)

        indices_mo_alph, indices_mo_beta = make_response_indices(self.fragment_occupations, self.occupations, cfg.frgm_response_idx)
        self.indices_mo = [indices_mo_alph, indices_mo_beta]
        if cfg.print_level >= 10:
            print_indices(indices_mo_alph, nvirt_alph, "indices_mo_alph")
            print_indices(indices_mo_beta, nvirt_beta, "indices_mo_beta")

        # The one-electron part of the orbital Hessian does not depend on the
        # operator or the frequency.
        self.ediff_alph = form_ediff_terms(mot.F_alph, mot.sigma_alph, nocc_alph, nvirt_alph)
        if nden == 2:
            self.ediff_beta = form_ediff_terms(mot.F_beta, mot.sigma_beta, nocc_beta, nvirt_beta)
        if cfg.print_level >= 10:
            pretty_print(self.ediff_alph, "ediff_alph")
            if nden == 2:
                pretty_print(self.ediff_beta, "ediff_beta")

        if cfg.mask_ediff_mo:
            self.ediff_alph = make_masked_mat(self.ediff_alph, indices_mo_alph, 0.0, True)
            if nden == 2:
                self.ediff_beta = make_masked_mat(self.ediff_beta, indices_mo_beta, 0.0, True)
            if cfg.print_level >= 10:
                pretty_print(self.ediff_alph, "ediff_alph (masked)")
                if nden == 2:
                    pretty_print(self.ediff_beta, "ediff_beta (masked)")

        if cfg.save > 0:
            save_array(cfg.file_prefix + "ediff_alph.dat", self.ediff_alph)
            if nden == 2:
                save_array(cfg.file_prefix + "ediff_beta.dat", self.ediff_beta)

    def combine(self, results_freq):
        if self.nden == 2:
            return combine_results(results_freq[:, :, 0], results_freq[:, :, 1])
        return combine_results(results_freq[:, :, 0])

    def run(self):
        """
        Returns
        -------
        results : NumPy array
            combined response matrices, shape (ntot, ntot, nfreq)
        """
        time_init = time.time()
        cfg = self.cfg
        nden = self.nden
        operators = self.operators
        solver = self.solver

        if cfg.print_level >= 1:
            self.print_settings()

        self.setup()

        # Property vectors (= RHS of the response equations) in the occ-virt MO basis.
        for operator in operators:
            operator.init_indices(self.fragment_occupations, cfg)
            operator.form_rhs(self.C, self.occupations, cfg)

        # Only one frequency's response vectors are held in memory.
        for operator in operators:
            if operator.do_response:
                operator.load_rspvecs(cfg.read, self.mot)

        solver.set_orbital_occupations(*self.occupations)
        solver.set_fragment_occupations(self.fragment_occupations)

        operator_labels = make_operator_label_vec(operators)
        component_labels = make_operator_component_vec(operators)
        ntot = len(operator_labels)
        self.results_alph = np.zeros((ntot, ntot, len(self.omega)))
        self.results_beta = np.zeros((ntot, ntot, len(self.omega))) if nden == 2 else None
        self.uncoupled_results = []
        results_indices = self.indices_mo if cfg.mask_form_results_mo else None

        for f, frequency in enumerate(self.omega):

            # The uncoupled result is the initial guess unless vectors were
            # read from disk (or carried over from the previous frequency).
            if cfg.read == 0:
                for operator in operators:
                    operator.form_guess_rspvec(self.ediff_alph, frequency, False, self.nov_alph, cfg)
                    if nden == 2:
                        operator.form_guess_rspvec(self.ediff_beta, frequency, True, self.nov_beta, cfg)
                    operator.save_to_disk(cfg.save, True)

            uncoupled = self.combine(form_results(operators, nden, results_indices))
            self.uncoupled_results.append(uncoupled)
            if cfg.print_level >= 1:
                print(" " + dashes)
                if cfg.read > 0:
                    print("  Restart guess (read from disk), omega = %.6f:" % (frequency))
                else:
                    print("  Uncoupled result (initial guess), omega = %.6f:" % (frequency))
                print_results_with_labels(uncoupled, operator_labels, component_labels)

            solver.init(operators, cfg, self.matvec, self.C, self.ediff_alph, self.ediff_beta,
                        frequency, cfg.maxiter, cfg.conv_threshold)
            solver.run()

            results_freq = form_results(operators, nden, results_indices)
            self.results_alph[:, :, f] = results_freq[:, :, 0]
            if nden == 2:
                self.results_beta[:, :, f] = results_freq[:, :, 1]

            for operator in operators:
                operator.save_to_disk(cfg.save, False)

        self.results = combine_results(self.results_alph, self.results_beta)

        if cfg.print_level >= 1:
            print(" " + dashes)
            print("  Final result:")
            for f, frequency in enumerate(self.omega):
                print("  omega = %.6f" % (frequency))
                print_results_with_labels(self.results[:, :, f], operator_labels, component_labels)
            print("\nLinear response computed in %.3f seconds." % (time.time() - time_init))

        return self.results


def solve_linear_response(matvec, solver, C, fragment_occupations, occupations, F, S, omega, operators, cfg=None):
    """
    Solve the linear response equations for all operators at all frequencies.

    Returns
    -------
    results : NumPy array
        shape (ntot, ntot, nfreq): alpha results for one spin channel, 2*(alpha + beta) for two
    """
    driver = linresp(C, F, S, occupations, operators, omega, fragment_occupations=fragment_occupations,
                     matvec=matvec, solver=solver, cfg=cfg)
    return driver.run()
