"""
psi4_interface.py: Build response inputs from a converged Psi4 SCF wave function.
"""

import psi4
import numpy as np
from .config import rspconfig
from .driver import linresp
from .matvec import eri_matvec
from .operators import perturbation


class psi4_inputs(object):
    """
    MO coefficients, Fock and overlap matrices, occupations and MO-basis ERIs of a Psi4 reference.

    Attributes
    ----------
    C : NumPy array
        MO coefficients, shape (nbasis, nmo, nden); nden = 1 for RHF, 2 otherwise
    F : NumPy array
        AO-basis Fock matrices, shape (nbasis, nbasis, nden)
    S : NumPy array
        AO overlap matrix
    occupations : list of int
        (nocc_alph, nvirt_alph, nocc_beta, nvirt_beta)
    eri_aa, eri_bb, eri_ab : NumPy arrays
        MO-basis ERIs (pq|rs); eri_bb and eri_ab are None for RHF
    """
    def __init__(self, ref):
        """
        Parameters
        ----------
        ref : Psi4 SCF Wavefunction object
            computed by Psi4 energy() method, in C1 symmetry
        """
        self.ref = ref
        self.nden = nden = 1 if ref.same_a_b_orbs() else 2

        Ca = ref.Ca_subset("AO", "ALL")
        Cb = ref.Cb_subset("AO", "ALL")
        npCa = np.asarray(Ca)
        npCb = np.asarray(Cb)
        nmo = npCa.shape[1]

        self.C = np.stack((npCa, npCb), axis=2)[:, :, :nden].copy()
        self.F = np.stack((np.asarray(ref.Fa()), np.asarray(ref.Fb())), axis=2)[:, :, :nden].copy()

        self.mints = mints = psi4.core.MintsHelper(ref.basisset())
        self.S = np.asarray(mints.ao_overlap())

        nalpha = ref.nalpha()
        nbeta = ref.nbeta()
        self.occupations = [nalpha, nmo - nalpha, nbeta, nmo - nbeta]

        self.eri_aa = np.asarray(mints.mo_eri(Ca, Ca, Ca, Ca))  # (pq|rs)
        self.eri_bb = self.eri_ab = None
        if nden == 2:
            self.eri_bb = np.asarray(mints.mo_eri(Cb, Cb, Cb, Cb))
            self.eri_ab = np.asarray(mints.mo_eri(Ca, Ca, Cb, Cb))

    def matvec(self, cfg):
        return eri_matvec(self.occupations, self.eri_aa, self.eri_bb, self.eri_ab,
                          hamiltonian=cfg.hamiltonian, spin=cfg.spin)

    def dipole_operator(self):
        return dipole_operator(self.ref, self.mints)


def dipole_operator(ref, mints=None):
    """Electric dipole (length) operator: -e r."""
    if mints is None:
        mints = psi4.core.MintsHelper(ref.basisset())
    dipole_ints = mints.ao_dipole()
    return perturbation("dipole", np.stack([np.asarray(dipole_ints[axis]) for axis in range(3)]))


def polarizability(ref, omega, **kwargs):
    """
    Computes the SCF dipole polarizability in the length gauge at each frequency in omega (E_h).

    Parameters
    ----------
    ref : Psi4 SCF Wavefunction object
    omega : float or sequence of float
    **kwargs
        options passed to rspconfig

    Returns
    -------
    polar : NumPy array
        shape (3, 3, nfreq)
    """
    cfg = rspconfig(**kwargs)
    omega = np.atleast_1d(omega).tolist()

    inputs = psi4_inputs(ref)
    driver = linresp(inputs.C, inputs.F, inputs.S, inputs.occupations, [inputs.dipole_operator()], omega,
                     matvec=inputs.matvec(cfg), cfg=cfg)
    results = driver.run()

    # Closed shell: the single channel carries both spins, and the response
    # result holds X + Y once per channel.
    if inputs.nden == 1:
        polar = 2.0 * results
    else:
        polar = 0.5 * results

    if cfg.print_level >= 1:
        for f, w in enumerate(omega):
            print("SCF Polarizability Tensor (Length Gauge):")
            print(polar[:, :, f])
            print(f"Evaluated at omega = {w:8.6f} E_h")

    return polar
