"""
systems.py: Small synthetic model systems for testing, built from seeded random numbers.

Every system has a non-trivial AO overlap, MO coefficients that are
S-orthonormal (or deliberately perturbed away from it), an AO Fock matrix whose
MO representation is diagonal in the orthonormal case, and MO-basis ERIs with
the full permutational symmetry of real orbitals.
"""

import numpy as np
from opt_einsum import contract
from ..matvec import eri_matvec
from ..operators import perturbation


class model_system(object):
    """
    Attributes
    ----------
    C : NumPy array
        MO coefficients, shape (nbasis, nbasis, nden)
    F : NumPy array
        AO Fock matrices, shape (nbasis, nbasis, nden)
    S : NumPy array
        AO overlap matrix
    occupations : list of int
        (nocc_alph, nvirt_alph, nocc_beta, nvirt_beta)
    eps : list of NumPy arrays
        orbital energies per spin channel
    eri_aa, eri_bb, eri_ab : NumPy arrays
        MO-basis ERIs (pq|rs); eri_bb and eri_ab are None for one channel
    """
    def __init__(self, occupations=(2, 4, 2, 4), nden=1, seed=0, nonorthogonal=False, ncomp=3, eri_scale=0.1):
        rng = np.random.default_rng(seed)
        self.occupations = [int(n) for n in occupations]
        nocc_alph, nvirt_alph, nocc_beta, nvirt_beta = self.occupations
        self.nbasis = nbasis = nocc_alph + nvirt_alph
        self.nden = nden

        B = rng.standard_normal((nbasis, nbasis))
        self.S = S = np.eye(nbasis) + 0.1 * B @ B.T / nbasis
        evals, evecs = np.linalg.eigh(S)
        S_half_inv = evecs @ np.diag(evals**-0.5) @ evecs.T

        C = np.zeros((nbasis, nbasis, nden))
        F = np.zeros((nbasis, nbasis, nden))
        self.eps = []
        for s in range(nden):
            nocc = nocc_alph if s == 0 else nocc_beta
            eps = np.concatenate((np.sort(rng.uniform(-1.5, -0.5, nocc)),
                                  np.sort(rng.uniform(0.5, 1.5, nbasis - nocc))))
            Q, _ = np.linalg.qr(rng.standard_normal((nbasis, nbasis)))
            Cs = S_half_inv @ Q
            F[:, :, s] = S @ Cs @ np.diag(eps) @ Cs.T @ S
            if nonorthogonal:
                Cs = Cs + 0.02 * rng.standard_normal((nbasis, nbasis))
            C[:, :, s] = Cs
            self.eps.append(eps)
        self.C = C
        self.F = F

        # positive semidefinite, factorized two-electron integrals
        L = eri_scale * rng.standard_normal((4, nbasis, nbasis))
        L = L + L.transpose(0, 2, 1)
        La = contract('mp,Pmn,nq->Ppq', C[:, :, 0], L, C[:, :, 0])
        self.eri_aa = contract('Ppq,Prs->pqrs', La, La)
        self.eri_bb = self.eri_ab = None
        if nden == 2:
            Lb = contract('mp,Pmn,nq->Ppq', C[:, :, 1], L, C[:, :, 1])
            self.eri_bb = contract('Ppq,Prs->pqrs', Lb, Lb)
            self.eri_ab = contract('Ppq,Prs->pqrs', La, Lb)

        M = rng.standard_normal((ncomp, nbasis, nbasis))
        self.integrals_ao = M + M.transpose(0, 2, 1)

    def operators(self, label="dipole", do_response=True):
        """Return a fresh list holding one perturbation with this system's integrals."""
        return [perturbation(label, self.integrals_ao, do_response=do_response)]

    def matvec(self, hamiltonian='rpa', spin='singlet'):
        return eri_matvec(self.occupations, self.eri_aa, self.eri_bb, self.eri_ab,
                          hamiltonian=hamiltonian, spin=spin)

    def ediff_diag(self, is_beta=False):
        """eps_a - eps_i in ia order, for orthonormal orbitals."""
        s = 1 if is_beta else 0
        nocc = self.occupations[2*s]
        eps = self.eps[s]
        return (eps[nocc:].reshape(1, -1) - eps[:nocc].reshape(-1, 1)).ravel()
