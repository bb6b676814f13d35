import numpy as np
from norsp.basis import motransform, mn_mats_to_ia_vecs, ia_vecs_to_mn_mats
from norsp.config import rspconfig
from norsp.ediff import form_ediff_terms, make_masked_mat, ediff_diagonal
from ..data.systems import model_system

def test_ediff_orthonormal():
    system = model_system(seed=1)
    nocc, nvirt = system.occupations[:2]
    mot = motransform(system.C, system.F, system.S, system.occupations, rspconfig(print_level=0))
    assert np.allclose(mot.sigma_alph, np.eye(system.nbasis))
    assert np.allclose(mot.F_alph, np.diag(system.eps[0]))

    ediff = form_ediff_terms(mot.F_alph, mot.sigma_alph, nocc, nvirt)
    assert ediff.shape == (nocc*nvirt, nocc*nvirt)
    assert np.allclose(ediff, np.diag(system.ediff_diag()))

def test_ediff_nonorthogonal():
    system = model_system(seed=2, nonorthogonal=True)
    nocc, nvirt = system.occupations[:2]
    mot = motransform(system.C, system.F, system.S, system.occupations, rspconfig(print_level=0))
    F, sigma = mot.mo_matrices()
    assert not np.allclose(sigma, np.eye(system.nbasis))

    ediff = form_ediff_terms(F, sigma, nocc, nvirt)
    ref = np.zeros_like(ediff)
    for i in range(nocc):
        for a in range(nvirt):
            for j in range(nocc):
                for b in range(nvirt):
                    A = nocc + a
                    B = nocc + b
                    ref[i*nvirt+a, j*nvirt+b] = sigma[i,j]*F[A,B] - F[i,j]*sigma[A,B]
    assert np.allclose(ediff, ref)

def test_masked_mat():
    mat = np.arange(36, dtype=float).reshape(6, 6) + 1.0
    indices = np.array([1, 3, 4])
    masked = make_masked_mat(mat, indices)
    assert np.array_equal(masked[np.ix_(indices, indices)], mat[np.ix_(indices, indices)])
    outside = np.ones_like(mat, dtype=bool)
    outside[np.ix_(indices, indices)] = False
    assert np.all(masked[outside] == 0.0)

    masked = make_masked_mat(mat, indices, 0.0, False)
    assert np.array_equal(np.diag(masked), np.diag(mat))
    assert masked[0, 1] == 0.0
    assert masked[1, 3] == mat[1, 3]

def test_ediff_diagonal():
    ediff = np.diag([1.0, 2.0])
    assert np.allclose(ediff_diagonal(ediff, 0.25), [0.75, 1.75, 1.25, 2.25])

def test_ao_mo_transforms():
    system = model_system(seed=4)
    nocc = system.occupations[0]
    C = system.C[:, :, 0]
    C_occ = C[:, :nocc]
    C_virt = C[:, nocc:]

    vecs = mn_mats_to_ia_vecs(system.integrals_ao, C_occ, C_virt)
    for k, M in enumerate(system.integrals_ao):
        assert np.allclose(vecs[k], (C_occ.T @ M @ C_virt).ravel())

    mats = ia_vecs_to_mn_mats(vecs, C_occ, C_virt)
    for k in range(vecs.shape[0]):
        assert np.allclose(mats[k], C_occ @ vecs[k].reshape(nocc, -1) @ C_virt.T)

    # AO matrices written from MO vectors come back unchanged
    mot = motransform(system.C, system.F, system.S, system.occupations, rspconfig(print_level=0))
    assert np.allclose(mot.ao_to_ia(mot.ia_to_ao(vecs)), vecs)

def test_ao_mo_round_trip_nonorthogonal():
    system = model_system(seed=6, nden=2, occupations=(3, 3, 2, 4), nonorthogonal=True)
    mot = motransform(system.C, system.F, system.S, system.occupations, rspconfig(print_level=0))
    assert not np.allclose(mot.sigma_beta, np.eye(system.nbasis))
    for is_beta in [False, True]:
        C_occ, C_virt = mot.coefficients(is_beta)
        vecs = np.random.default_rng(7).standard_normal((3, C_occ.shape[1]*C_virt.shape[1]))
        assert np.allclose(mot.ao_to_ia(mot.ia_to_ao(vecs, is_beta), is_beta), vecs)

def test_canonical_orthogonalization_inverses():
    system = model_system(seed=5, nden=2, occupations=(3, 3, 2, 4))
    cfg = rspconfig(print_level=0, _do_orthogonalization_canonical=True)
    mot = motransform(system.C, system.F, system.S, system.occupations, cfg)
    assert np.allclose(mot.S_inv @ system.S, np.eye(system.nbasis))
    assert np.allclose(mot.sigma_inv_beta @ mot.sigma_beta, np.eye(system.nbasis))
    assert mot.C_occ_beta.shape == (system.nbasis, 2)

    mot = motransform(system.C, system.F, system.S, system.occupations, rspconfig(print_level=0))
    assert mot.S_inv is None
