"""
indices.py: Occupied-virtual orbital pair index sets, globally or restricted to one fragment.

Occupied orbitals are ordered fragment by fragment, and an occ-virt pair (i, a)
is stored at position ia = i*nvirt + a of every vectorized quantity.
"""

import numpy as np
from .errors import ConfigurationError


def fragment_occupations_or_default(fragment_occupations, occupations):
    """
    Check a fragment occupation matrix against the global occupations.

    Each row is (fragment id, norb_frgm, nocc_frgm_alph, nocc_frgm_beta). None
    stands for a single fragment spanning the whole system.
    """
    nocc_alph, nvirt_alph, nocc_beta, nvirt_beta = [int(n) for n in occupations]
    norb = nocc_alph + nvirt_alph
    if fragment_occupations is None:
        return np.array([[0, norb, nocc_alph, nocc_beta]], dtype=int)

    fragment_occupations = np.atleast_2d(np.asarray(fragment_occupations, dtype=int))
    if fragment_occupations.shape[1] != 4:
        raise ConfigurationError("Fragment occupations need 4 columns: id, norb, nocc_alph, nocc_beta.")
    if fragment_occupations[:, 1].sum() != norb:
        raise ConfigurationError("Fragment orbital counts do not add up to %d orbitals." % (norb))
    if fragment_occupations[:, 2].sum() != nocc_alph:
        raise ConfigurationError("Fragment alpha occupations do not add up to %d." % (nocc_alph))
    if fragment_occupations[:, 3].sum() != nocc_beta:
        raise ConfigurationError("Fragment beta occupations do not add up to %d." % (nocc_beta))
    if np.any(fragment_occupations[:, 2] > fragment_occupations[:, 1]) or np.any(fragment_occupations[:, 3] > fragment_occupations[:, 1]):
        raise ConfigurationError("A fragment cannot have more occupied than total orbitals.")
    return fragment_occupations


def make_indices_mo_restricted(nocc_frgm, nvirt_frgm):
    """
    All occupied orbitals of all fragments against all virtual orbitals.

    Returns
    -------
    indices : NumPy array
        the nocc*nvirt pair indices in ascending order
    """
    nocc = int(np.sum(nocc_frgm))
    nvirt = int(np.sum(nvirt_frgm))
    return np.arange(nocc * nvirt, dtype=int)


def make_indices_mo_restricted_local_occ_all_virt(nocc_frgm, nvirt_frgm):
    """
    For each fragment, its own occupied orbitals against all virtual orbitals.

    Returns
    -------
    indices : list of NumPy arrays
        one ascending index array of length nocc_frgm[k]*nvirt per fragment
    """
    nvirt = int(np.sum(nvirt_frgm))
    offsets = np.concatenate(([0], np.cumsum(nocc_frgm)))
    indices = []
    for k in range(len(nocc_frgm)):
        occ = np.arange(offsets[k], offsets[k+1], dtype=int)
        indices.append((occ.reshape(-1, 1) * nvirt + np.arange(nvirt, dtype=int)).ravel())
    return indices


def make_response_indices(fragment_occupations, occupations, frgm_response_idx):
    """
    Build the alpha and beta pair index sets for the requested response space.

    Parameters
    ----------
    fragment_occupations : NumPy array or None
        fragment occupation matrix
    occupations : sequence of int
        (nocc_alph, nvirt_alph, nocc_beta, nvirt_beta)
    frgm_response_idx : int
        0 or negative selects all fragments, k > 0 selects the occupied space of fragment k

    Returns
    -------
    indices_mo_alph, indices_mo_beta : NumPy arrays
    """
    fragment_occupations = fragment_occupations_or_default(fragment_occupations, occupations)
    norb_frgm = fragment_occupations[:, 1]
    nocc_frgm_alph = fragment_occupations[:, 2]
    nocc_frgm_beta = fragment_occupations[:, 3]
    nvirt_frgm_alph = norb_frgm - nocc_frgm_alph
    nvirt_frgm_beta = norb_frgm - nocc_frgm_beta

    if frgm_response_idx > 0:
        nfrgm = fragment_occupations.shape[0]
        if frgm_response_idx > nfrgm:
            raise ConfigurationError("Fragment %d requested for response, but only %d fragments are present." % (frgm_response_idx, nfrgm))
        indices_mo_alph = make_indices_mo_restricted_local_occ_all_virt(nocc_frgm_alph, nvirt_frgm_alph)[frgm_response_idx - 1]
        indices_mo_beta = make_indices_mo_restricted_local_occ_all_virt(nocc_frgm_beta, nvirt_frgm_beta)[frgm_response_idx - 1]
    else:
        indices_mo_alph = make_indices_mo_restricted(nocc_frgm_alph, nvirt_frgm_alph)
        indices_mo_beta = make_indices_mo_restricted(nocc_frgm_beta, nvirt_frgm_beta)

    return indices_mo_alph, indices_mo_beta


def indices_to_pairs(indices, nvirt):
    """Return the (i, a) orbital pairs, shape (n, 2), of a pair index set."""
    indices = np.asarray(indices, dtype=int)
    return np.stack((indices // nvirt, indices % nvirt), axis=1)


def print_indices(indices, nvirt, label):
    print(label)
    for ia, (i, a) in zip(indices, indices_to_pairs(indices, nvirt)):
        print("%6d: %4d %4d" % (ia, i, a))
