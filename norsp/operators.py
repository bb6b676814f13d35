"""
operators.py: One-electron perturbation operators, their property vectors and response vectors.
"""

import numpy as np
from .basis import mn_mats_to_ia_vecs, ia_vecs_to_mn_mats
from .ediff import ediff_diagonal
from .errors import ConfigurationError, NumericalError
from .indices import make_response_indices
from .utils import save_array, load_array


class perturbation(object):
    """
    A one-electron perturbation operator (possibly with several components).

    Property and response vectors are stored as supervectors [X | Y] of length
    2*nov per component, where each half is an occ-virt vector with the virtual
    index running fastest.

    Attributes
    ----------
    label : str
        name used for printing and file names
    integrals_ao : NumPy array
        AO-basis integrals, shape (ncomp, nbasis, nbasis)
    component_labels : list of str
        one label per component
    do_response : bool
        whether response vectors are solved for (False: the operator only enters as a property)
    rhsvecs_alph, rhsvecs_beta : NumPy arrays
        occ-virt MO-basis integrals, shape (ncomp, nov)
    propvecs_alph, propvecs_beta : NumPy arrays
        property supervectors [b | b], shape (ncomp, 2*nov)
    rspvecs_alph, rspvecs_beta : NumPy arrays
        response supervectors for the current frequency, shape (ncomp, 2*nov)
    indices_mo_alph, indices_mo_beta : NumPy arrays
        the occ-virt pairs of the response space
    """

    # Cartesian indices
    cart = ["X", "Y", "Z"]

    def __init__(self, label, integrals_ao, component_labels=None, do_response=True, occupations=None):
        integrals_ao = np.asarray(integrals_ao, dtype=np.float64)
        if integrals_ao.ndim == 2:
            integrals_ao = integrals_ao[np.newaxis, ...]
        if integrals_ao.ndim != 3 or integrals_ao.shape[1] != integrals_ao.shape[2]:
            raise ConfigurationError("Integrals for %s must be square matrices, one per component." % (label))

        self.label = label
        self.integrals_ao = integrals_ao
        self.ncomp = integrals_ao.shape[0]
        if component_labels is None:
            if self.ncomp == 3:
                component_labels = list(self.cart)
            else:
                component_labels = [str(i) for i in range(self.ncomp)]
        if len(component_labels) != self.ncomp:
            raise ConfigurationError("%s has %d components but %d component labels." % (label, self.ncomp, len(component_labels)))
        self.component_labels = list(component_labels)
        self.do_response = do_response
        self.occupations = None if occupations is None else [int(n) for n in occupations]

        self.nden = 0
        self.prefix = ""
        self.indices_mo_alph = self.indices_mo_beta = None
        self.C_occ_alph = self.C_virt_alph = self.C_occ_beta = self.C_virt_beta = None
        self.rhsvecs_alph = self.rhsvecs_beta = None
        self.propvecs_alph = self.propvecs_beta = None
        self.rspvecs_alph = self.rspvecs_beta = None

    def init_indices(self, fragment_occupations, cfg):
        """
        Store the occ-virt pair indices of the response space.

        Parameters
        ----------
        fragment_occupations : NumPy array
            fragment occupation matrix, rows of (id, norb, nocc_alph, nocc_beta)
        cfg : rspconfig object
        """
        fragment_occupations = np.atleast_2d(np.asarray(fragment_occupations, dtype=int))
        norb = int(fragment_occupations[:, 1].sum())
        nocc_alph = int(fragment_occupations[:, 2].sum())
        nocc_beta = int(fragment_occupations[:, 3].sum())
        occupations = [nocc_alph, norb - nocc_alph, nocc_beta, norb - nocc_beta]
        self.indices_mo_alph, self.indices_mo_beta = make_response_indices(fragment_occupations, occupations, cfg.frgm_response_idx)

    def form_rhs(self, C, occupations, cfg):
        """
        Transform the AO integrals to occ-virt property vectors for every spin channel.

        Parameters
        ----------
        C : NumPy array
            MO coefficients, shape (nbasis, norb, nden)
        occupations : sequence of int
            (nocc_alph, nvirt_alph, nocc_beta, nvirt_beta)
        cfg : rspconfig object
        """
        occupations = [int(n) for n in occupations]
        if self.occupations is not None and self.occupations != occupations:
            raise ConfigurationError("Occupations %s of operator %s do not match the global occupations %s." % (self.occupations, self.label, occupations))
        if self.integrals_ao.shape[1] != C.shape[0]:
            raise ConfigurationError("Operator %s has %d basis functions, the MO coefficients have %d." % (self.label, self.integrals_ao.shape[1], C.shape[0]))

        nocc_alph, nvirt_alph, nocc_beta, nvirt_beta = occupations
        self.nden = C.shape[2]
        self.prefix = cfg.file_prefix

        self.C_occ_alph = C[:, :nocc_alph, 0]
        self.C_virt_alph = C[:, nocc_alph:, 0]
        self.rhsvecs_alph = mn_mats_to_ia_vecs(self.integrals_ao, self.C_occ_alph, self.C_virt_alph)
        self.propvecs_alph = np.concatenate((self.rhsvecs_alph, self.rhsvecs_alph), axis=1)
        if self.do_response:
            self.rspvecs_alph = np.zeros_like(self.propvecs_alph)

        if self.nden == 2:
            self.C_occ_beta = C[:, :nocc_beta, 1]
            self.C_virt_beta = C[:, nocc_beta:, 1]
            self.rhsvecs_beta = mn_mats_to_ia_vecs(self.integrals_ao, self.C_occ_beta, self.C_virt_beta)
            self.propvecs_beta = np.concatenate((self.rhsvecs_beta, self.rhsvecs_beta), axis=1)
            if self.do_response:
                self.rspvecs_beta = np.zeros_like(self.propvecs_beta)

    def response_mask(self, nov, is_beta, cfg):
        """Boolean supervector mask of the elements allowed to respond."""
        allowed = np.ones(2*nov, dtype=bool)
        if cfg.mask_ediff_mo:
            indices = self.indices_mo_beta if is_beta else self.indices_mo_alph
            allowed[:] = False
            allowed[indices] = True
            allowed[nov + indices] = True
        return allowed

    def form_guess_rspvec(self, ediff, frequency, is_beta, nov, cfg):
        """
        Form the uncoupled response vectors X = b/(E - w), Y = b/(E + w).

        Parameters
        ----------
        ediff : NumPy array
            orbital-energy-difference matrix of this spin channel, shape (nov, nov)
        frequency : float
            external field frequency (E_h)
        is_beta : bool
            which spin channel
        nov : int
            number of occ-virt pairs of this spin channel
        cfg : rspconfig object
        """
        if not self.do_response:
            return
        propvecs = self.propvecs_beta if is_beta else self.propvecs_alph
        if propvecs.shape[1] != 2*nov or ediff.shape != (nov, nov):
            raise ConfigurationError("Operator %s was built for a different number of occ-virt pairs than %d." % (self.label, nov))

        denom = ediff_diagonal(ediff, frequency)
        allowed = self.response_mask(nov, is_beta, cfg)
        small = allowed & (np.abs(denom) < cfg.denominator_threshold)
        if np.any(small):
            ia = np.flatnonzero(small) % nov
            raise NumericalError("Orbital energy differences of pairs %s are within %.1e of the frequency %.6f for operator %s." % (list(ia), cfg.denominator_threshold, frequency, self.label))

        guess = np.zeros_like(propvecs)
        guess[:, allowed] = propvecs[:, allowed] / denom[allowed]
        if is_beta:
            self.rspvecs_beta = guess
        else:
            self.rspvecs_alph = guess

    def filename(self, kind, basis, spin, is_guess=False):
        if is_guess:
            kind = kind + "_guess"
        return "%s%s_%s_%s_%s.dat" % (self.prefix, kind, self.label, basis, spin)

    def _channels(self):
        channels = [('alph', False)]
        if self.nden == 2:
            channels.append(('beta', True))
        return channels

    def save_to_disk(self, save_level, is_guess):
        """
        Write the response vectors (and, unless is_guess, the RHS vectors) to disk.

        save_level 1 writes MO-basis files, 2 also writes AO-basis matrices.
        """
        if save_level <= 0:
            return
        for spin, is_beta in self._channels():
            if self.do_response:
                rspvecs = self.rspvecs_beta if is_beta else self.rspvecs_alph
                save_array(self.filename("rspvecs", "mo", spin, is_guess), rspvecs)
                if save_level >= 2:
                    C_occ = self.C_occ_beta if is_beta else self.C_occ_alph
                    C_virt = self.C_virt_beta if is_beta else self.C_virt_alph
                    nov = rspvecs.shape[1] // 2
                    mats = np.concatenate((ia_vecs_to_mn_mats(rspvecs[:, :nov], C_occ, C_virt),
                                           ia_vecs_to_mn_mats(rspvecs[:, nov:], C_occ, C_virt)))
                    save_array(self.filename("rspvecs", "ao", spin, is_guess), mats)
            if not is_guess:
                rhsvecs = self.rhsvecs_beta if is_beta else self.rhsvecs_alph
                save_array(self.filename("rhsvecs", "mo", spin), rhsvecs)

    def load_rspvecs(self, read_level, mot):
        """
        Restore response vectors written by save_to_disk.

        Parameters
        ----------
        read_level : int
            1 reads MO-basis vectors, 2 reads AO-basis matrices and transforms them to the MO basis
        mot : motransform object
            supplies the AO -> MO transformation
        """
        if read_level <= 0 or not self.do_response:
            return
        for spin, is_beta in self._channels():
            expected = (self.propvecs_beta if is_beta else self.propvecs_alph).shape
            if read_level == 1:
                rspvecs = load_array(self.filename("rspvecs", "mo", spin))
            else:
                mats = load_array(self.filename("rspvecs", "ao", spin))
                if mats.ndim != 3 or mats.shape[0] != 2*self.ncomp:
                    raise ConfigurationError("AO response matrices of %s have shape %s, expected %d matrices." % (self.label, mats.shape, 2*self.ncomp))
                rspvecs = np.concatenate((mot.ao_to_ia(mats[:self.ncomp], is_beta),
                                          mot.ao_to_ia(mats[self.ncomp:], is_beta)), axis=1)
            if rspvecs.shape != expected:
                raise ConfigurationError("Restart vectors of %s have shape %s, expected %s." % (self.label, rspvecs.shape, expected))
            if is_beta:
                self.rspvecs_beta = rspvecs
            else:
                self.rspvecs_alph = rspvecs
