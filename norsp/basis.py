"""
basis.py: AO -> MO transformations for one or two spin channels.
"""

import numpy as np
from opt_einsum import contract
from .utils import pretty_print


def mn_mats_to_ia_vecs(mats, C_occ, C_virt):
    """
    Transform a stack of AO-basis one-electron matrices to occ-virt vectors.

    Parameters
    ----------
    mats : NumPy array
        AO-basis matrices, shape (n, nbasis, nbasis)
    C_occ, C_virt : NumPy arrays
        occupied and virtual MO coefficient blocks

    Returns
    -------
    vecs : NumPy array
        shape (n, nocc*nvirt), with the virtual index running fastest
    """
    mats = np.asarray(mats)
    nocc = C_occ.shape[1]
    nvirt = C_virt.shape[1]
    ia = contract('mi,kmn,na->kia', C_occ, mats, C_virt)
    return ia.reshape(mats.shape[0], nocc*nvirt)


def ia_vecs_to_mn_mats(vecs, C_occ, C_virt):
    """
    Back-transform a stack of occ-virt vectors to AO-basis matrices C_occ X C_virt^T.
    """
    vecs = np.asarray(vecs)
    nocc = C_occ.shape[1]
    nvirt = C_virt.shape[1]
    X = vecs.reshape(vecs.shape[0], nocc, nvirt)
    return contract('mi,kia,na->kmn', C_occ, X, C_virt)


class motransform(object):
    """
    Occupied/virtual MO coefficient blocks and MO-basis overlap and Fock matrices.

    Attributes
    ----------
    nden : int
        number of spin channels (1 or 2)
    C_occ_alph, C_virt_alph, C_occ_beta, C_virt_beta : NumPy arrays
        MO coefficient blocks (beta blocks are None for one channel)
    sigma_alph, sigma_beta : NumPy arrays
        MO-basis overlap matrices C^T S C
    F_alph, F_beta : NumPy arrays
        MO-basis Fock matrices C^T F C
    S_inv, sigma_inv_alph, sigma_inv_beta : NumPy arrays
        pseudo-inverses, only formed for canonical orthogonalization
    """
    def __init__(self, C, F, S, occupations, cfg):
        """
        Parameters
        ----------
        C : NumPy array
            MO coefficients, shape (nbasis, norb, nden)
        F : NumPy array
            AO-basis Fock matrices, shape (nbasis, nbasis, nden)
        S : NumPy array
            AO overlap matrix
        occupations : sequence of int
            (nocc_alph, nvirt_alph, nocc_beta, nvirt_beta)
        cfg : rspconfig object

        Returns
        -------
        None
        """
        nocc_alph, nvirt_alph, nocc_beta, nvirt_beta = [int(n) for n in occupations]
        self.nden = nden = C.shape[2]
        self.S = S

        Ca = C[:, :, 0]
        self.C_occ_alph = Ca[:, :nocc_alph].copy()
        self.C_virt_alph = Ca[:, nocc_alph:].copy()
        self.sigma_alph = Ca.T @ S @ Ca
        self.F_alph = Ca.T @ F[:, :, 0] @ Ca

        self.C_occ_beta = self.C_virt_beta = None
        self.sigma_beta = self.F_beta = None
        if nden == 2:
            Cb = C[:, :, 1]
            self.C_occ_beta = Cb[:, :nocc_beta].copy()
            self.C_virt_beta = Cb[:, nocc_beta:].copy()
            self.sigma_beta = Cb.T @ S @ Cb
            self.F_beta = Cb.T @ F[:, :, 1] @ Cb

        if cfg.print_level >= 10:
            pretty_print(self.sigma_alph, "sigma_alph")
            if nden == 2:
                pretty_print(self.sigma_beta, "sigma_beta")
            pretty_print(self.F_alph, "F_alph")
            if nden == 2:
                pretty_print(self.F_beta, "F_beta")

        self.S_inv = self.sigma_inv_alph = self.sigma_inv_beta = None
        if cfg.do_orthogonalization_canonical:
            self.S_inv = np.linalg.pinv(S)
            self.sigma_inv_alph = np.linalg.pinv(self.sigma_alph)
            if nden == 2:
                self.sigma_inv_beta = np.linalg.pinv(self.sigma_beta)
            if cfg.print_level >= 10:
                pretty_print(self.S_inv, "S_inv")
                pretty_print(self.sigma_inv_alph, "sigma_inv_alph")
                if nden == 2:
                    pretty_print(self.sigma_inv_beta, "sigma_inv_beta")

    def coefficients(self, is_beta=False):
        if is_beta:
            return self.C_occ_beta, self.C_virt_beta
        return self.C_occ_alph, self.C_virt_alph

    def mo_matrices(self, is_beta=False):
        """Return the MO-basis (Fock, overlap) pair of one channel."""
        if is_beta:
            return self.F_beta, self.sigma_beta
        return self.F_alph, self.sigma_alph

    def ao_to_ia(self, mats, is_beta=False):
        """
        Bring AO-basis response matrices (as written by ia_to_ao) back to occ-virt vectors.

        The covariant coefficients S C give sigma_oo X sigma_vv, so the inverse
        occupied and virtual overlap blocks are applied on each side.
        """
        C_occ, C_virt = self.coefficients(is_beta)
        nocc = C_occ.shape[1]
        F, sigma = self.mo_matrices(is_beta)
        sigma_inv_occ = np.linalg.pinv(sigma[:nocc, :nocc])
        sigma_inv_virt = np.linalg.pinv(sigma[nocc:, nocc:])
        return mn_mats_to_ia_vecs(mats, self.S @ C_occ @ sigma_inv_occ, self.S @ C_virt @ sigma_inv_virt)

    def ia_to_ao(self, vecs, is_beta=False):
        C_occ, C_virt = self.coefficients(is_beta)
        return ia_vecs_to_mn_mats(vecs, C_occ, C_virt)
