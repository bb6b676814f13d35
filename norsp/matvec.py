"""
matvec.py: Two-electron (coupling) part of the orbital Hessian acting on response supervectors.

Every linear operator maps a batch of supervectors [X | Y] per spin channel,
shape (ncomp, 2*nov), to the coupling contribution

    [ A'X + B'Y | B'X + A'Y ]

where A' and B' are the orbital Hessian blocks without the orbital energy
differences. The energy differences and the frequency are added by the solver.
"""

from abc import ABC, abstractmethod

import numpy as np
from opt_einsum import contract
from .errors import ConfigurationError


class matvec(ABC):
    """Interface of a linear operator consumed by the solvers."""

    @abstractmethod
    def __call__(self, x_alph, x_beta=None):
        """
        Parameters
        ----------
        x_alph : NumPy array
            alpha supervectors, shape (ncomp, 2*nov_alph)
        x_beta : NumPy array or None
            beta supervectors, shape (ncomp, 2*nov_beta)

        Returns
        -------
        g_alph, g_beta : NumPy arrays (g_beta is None if x_beta is None)
        """


class uncoupled_matvec(matvec):
    """No two-electron coupling: the response reduces to the uncoupled (energy-difference) result."""

    def __call__(self, x_alph, x_beta=None):
        g_beta = None if x_beta is None else np.zeros_like(x_beta)
        return np.zeros_like(x_alph), g_beta


class explicit_matvec(matvec):
    """
    Coupling from explicitly stored matrices acting on full supervectors.

    Parameters
    ----------
    G_aa : NumPy array
        alpha-alpha block, shape (2*nov_alph, 2*nov_alph)
    G_bb, G_ab, G_ba : NumPy arrays or None
        beta-beta, alpha-beta and beta-alpha blocks
    """
    def __init__(self, G_aa, G_bb=None, G_ab=None, G_ba=None):
        self.G_aa = np.asarray(G_aa)
        self.G_bb = None if G_bb is None else np.asarray(G_bb)
        self.G_ab = None if G_ab is None else np.asarray(G_ab)
        self.G_ba = None if G_ba is None else np.asarray(G_ba)

    def __call__(self, x_alph, x_beta=None):
        g_alph = x_alph @ self.G_aa.T
        g_beta = None
        if x_beta is not None:
            if self.G_bb is None:
                raise ConfigurationError("explicit_matvec was built without a beta-beta block.")
            g_beta = x_beta @ self.G_bb.T
            if self.G_ab is not None:
                g_alph = g_alph + x_beta @ self.G_ab.T
            if self.G_ba is not None:
                g_beta = g_beta + x_alph @ self.G_ba.T
        return g_alph, g_beta


class eri_matvec(matvec):
    """
    RPA or TDA coupling built from MO-basis electron repulsion integrals (chemists' notation).

    One spin channel (closed shell):
        singlet: A' = 2(ia|jb) - (ij|ab),  B' = 2(ia|jb) - (ib|ja)
        triplet: A' = -(ij|ab),            B' = -(ib|ja)
    Two spin channels (unrestricted), independent of the spin label:
        same spin:     A' = (ia|jb) - (ij|ab),  B' = (ia|jb) - (ib|ja)
        opposite spin: A' = B' = (ia|jb)
    TDA sets B' = 0.

    Attributes
    ----------
    ovov_aa, oovv_aa : NumPy arrays
        (ia|jb) and (ij|ab) blocks of the alpha integrals
    ovov_bb, oovv_bb : NumPy arrays
        the same for beta (None for one channel)
    ovov_ab : NumPy array
        (ia|jb) with ia alpha and jb beta (None for one channel)
    """
    def __init__(self, occupations, eri_aa, eri_bb=None, eri_ab=None, hamiltonian='rpa', spin='singlet'):
        nocc_alph, nvirt_alph, nocc_beta, nvirt_beta = [int(n) for n in occupations]
        self.nocc_alph, self.nvirt_alph = nocc_alph, nvirt_alph
        self.nocc_beta, self.nvirt_beta = nocc_beta, nvirt_beta

        hamiltonian = hamiltonian.lower()
        if hamiltonian not in ['rpa', 'tda']:
            raise ConfigurationError("%s is not an allowed orbital Hessian." % (hamiltonian))
        self.tda = (hamiltonian == 'tda')
        spin = spin.lower()
        if spin not in ['singlet', 'triplet']:
            raise ConfigurationError("%s is not an allowed operator spin type." % (spin))

        self.unrestricted = eri_bb is not None
        if self.unrestricted and eri_ab is None:
            raise ConfigurationError("Unrestricted coupling needs the alpha-beta integrals.")

        o = slice(0, nocc_alph)
        v = slice(nocc_alph, nocc_alph + nvirt_alph)
        self.ovov_aa = np.ascontiguousarray(eri_aa[o,v,o,v])
        self.oovv_aa = np.ascontiguousarray(eri_aa[o,o,v,v])

        self.ovov_bb = self.oovv_bb = self.ovov_ab = None
        if self.unrestricted:
            ob = slice(0, nocc_beta)
            vb = slice(nocc_beta, nocc_beta + nvirt_beta)
            self.ovov_bb = np.ascontiguousarray(eri_bb[ob,vb,ob,vb])
            self.oovv_bb = np.ascontiguousarray(eri_bb[ob,ob,vb,vb])
            self.ovov_ab = np.ascontiguousarray(eri_ab[o,v,ob,vb])
            self.jfac = 1.0
        else:
            self.jfac = 2.0 if spin == 'singlet' else 0.0

    def _split(self, x, nocc, nvirt):
        nov = nocc * nvirt
        X = x[:, :nov].reshape(-1, nocc, nvirt)
        Y = x[:, nov:].reshape(-1, nocc, nvirt)
        return X, Y

    def _same_spin(self, X, Y, ovov, oovv):
        AX = -contract('ijab,njb->nia', oovv, X)
        AY = -contract('ijab,njb->nia', oovv, Y)
        if self.jfac != 0.0:
            AX += self.jfac * contract('iajb,njb->nia', ovov, X)
            AY += self.jfac * contract('iajb,njb->nia', ovov, Y)
        if self.tda:
            return AX, AY
        BX = -contract('ibja,njb->nia', ovov, X)
        BY = -contract('ibja,njb->nia', ovov, Y)
        if self.jfac != 0.0:
            BX += self.jfac * contract('iajb,njb->nia', ovov, X)
            BY += self.jfac * contract('iajb,njb->nia', ovov, Y)
        return AX + BY, BX + AY

    def __call__(self, x_alph, x_beta=None):
        Xa, Ya = self._split(x_alph, self.nocc_alph, self.nvirt_alph)
        ga_X, ga_Y = self._same_spin(Xa, Ya, self.ovov_aa, self.oovv_aa)

        g_beta = None
        if x_beta is not None:
            if not self.unrestricted:
                raise ConfigurationError("eri_matvec was built for a single spin channel.")
            Xb, Yb = self._split(x_beta, self.nocc_beta, self.nvirt_beta)
            gb_X, gb_Y = self._same_spin(Xb, Yb, self.ovov_bb, self.oovv_bb)
            if self.tda:
                ga_X += contract('iajb,njb->nia', self.ovov_ab, Xb)
                ga_Y += contract('iajb,njb->nia', self.ovov_ab, Yb)
                gb_X += contract('iajb,nia->njb', self.ovov_ab, Xa)
                gb_Y += contract('iajb,nia->njb', self.ovov_ab, Ya)
            else:
                Ja = contract('iajb,njb->nia', self.ovov_ab, Xb + Yb)
                Jb = contract('iajb,nia->njb', self.ovov_ab, Xa + Ya)
                ga_X += Ja
                ga_Y += Ja
                gb_X += Jb
                gb_Y += Jb
            n = x_beta.shape[0]
            g_beta = np.concatenate((gb_X.reshape(n, -1), gb_Y.reshape(n, -1)), axis=1)

        n = x_alph.shape[0]
        g_alph = np.concatenate((ga_X.reshape(n, -1), ga_Y.reshape(n, -1)), axis=1)
        return g_alph, g_beta
