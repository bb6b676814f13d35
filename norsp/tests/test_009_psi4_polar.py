import pytest
import numpy as np
from ..data.molecules import *

psi4 = pytest.importorskip("psi4")

from norsp.psi4_interface import psi4_inputs, polarizability


def findif_alpha_zz(scf_e, F):
    energies = {}
    for pert in [F, 2*F, -F, -2*F]:
        psi4.set_options({'perturb_h': True,
                          'perturb_with': 'dipole',
                          'perturb_dipole': [0.0, 0.0, pert]})
        energies[pert] = psi4.energy('SCF')
    psi4.set_options({'perturb_h': False})
    ep, e2p, em, e2m = energies[F], energies[2*F], energies[-F], energies[-2*F]
    return -(-e2p + 16*ep - 30*scf_e + 16*em - e2m)/(12*F*F)


@pytest.mark.parametrize("reference,molecule", [('rhf', 'H2O'), ('uhf', 'CH2')])
def test_scf_polar_findif(reference, molecule):
    psi4.core.clean()
    psi4.core.clean_options()
    psi4.set_memory('2 GB')
    psi4.core.set_output_file('output.dat', False)
    psi4.set_options({'basis': 'STO-3G',
                      'scf_type': 'pk',
                      'reference': reference,
                      'e_convergence': 1e-12,
                      'd_convergence': 1e-12})

    mol = psi4.geometry(moldict[molecule])
    scf_e, scf_wfn = psi4.energy('SCF', return_wfn=True)

    inputs = psi4_inputs(scf_wfn)
    assert inputs.nden == (1 if reference == 'rhf' else 2)
    nbasis = inputs.S.shape[0]
    assert inputs.C.shape == (nbasis, nbasis, inputs.nden)

    polar = polarizability(scf_wfn, [0.0, 0.1], conv=10, print_level=0)
    assert polar.shape == (3, 3, 2)
    assert np.allclose(polar[:, :, 0], polar[:, :, 0].T, atol=1e-8)
    # the polarizability grows towards the first excitation
    assert np.trace(polar[:, :, 1]) > np.trace(polar[:, :, 0])

    alpha_zz = findif_alpha_zz(scf_e, 0.001)
    assert (abs(polar[2, 2, 0] - alpha_zz) < 1e-4)

    psi4.core.clean_options()
