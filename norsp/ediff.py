"""
ediff.py: Orbital-energy-difference (zeroth-order Hessian) matrices.
"""

import numpy as np


def form_ediff_terms(F, sigma, nocc, nvirt):
    """
    Build the one-electron part of the orbital Hessian in a non-orthogonal MO basis:

        E[ia,jb] = sigma_ij F_ab - F_ij sigma_ab

    For orthonormal canonical orbitals this is the diagonal matrix of eps_a - eps_i.

    Parameters
    ----------
    F : NumPy array
        MO-basis Fock matrix, shape (norb, norb)
    sigma : NumPy array
        MO-basis overlap matrix, shape (norb, norb)
    nocc, nvirt : int
        number of occupied and virtual orbitals

    Returns
    -------
    ediff : NumPy array
        shape (nocc*nvirt, nocc*nvirt)
    """
    o = slice(0, nocc)
    v = slice(nocc, nocc + nvirt)
    return np.kron(sigma[o,o], F[v,v]) - np.kron(F[o,o], sigma[v,v])


def make_masked_mat(mat, indices, fill=0.0, zero_diag=True):
    """
    Return a copy of mat where every element with a row or column outside indices is set to fill.

    With zero_diag=False the diagonal elements outside indices keep their values.
    """
    masked = np.full_like(mat, fill)
    idx = np.asarray(indices, dtype=int)
    masked[np.ix_(idx, idx)] = mat[np.ix_(idx, idx)]
    if not zero_diag:
        outside = np.setdiff1d(np.arange(mat.shape[0]), idx)
        masked[outside, outside] = mat[outside, outside]
    return masked


def ediff_diagonal(ediff, frequency):
    """
    The supervector preconditioner [diag(E) - w | diag(E) + w].
    """
    d = np.diag(ediff)
    return np.concatenate((d - frequency, d + frequency))
