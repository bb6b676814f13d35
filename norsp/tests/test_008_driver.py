import pytest
import numpy as np
import norsp
from norsp.config import rspconfig
from norsp.errors import ConfigurationError
from norsp.driver import linresp, solve_linear_response
from norsp.results import combine_results, form_results
from ..data.systems import model_system

def run_driver(system, omega, matvec=None, fragment_occupations=None, operators=None, **kwargs):
    kwargs.setdefault('print_level', 0)
    cfg = rspconfig(**kwargs)
    if operators is None:
        operators = system.operators()
    driver = linresp(system.C, system.F, system.S, system.occupations, operators, omega,
                     fragment_occupations=fragment_occupations, matvec=matvec, cfg=cfg)
    return driver, driver.run()

def test_combine_results():
    rng = np.random.default_rng(70)
    a = rng.standard_normal((3, 3, 2))
    b = rng.standard_normal((3, 3, 2))
    assert np.array_equal(combine_results(a), a)
    assert np.allclose(combine_results(a, b), 2*(a + b))

def test_static_uncoupled_closed_shell():
    system = model_system(seed=71)
    driver, results = run_driver(system, [0.0])
    operator = driver.operators[0]

    d = system.ediff_diag()
    guess = operator.propvecs_alph / np.concatenate((d, d))
    assert np.allclose(operator.rspvecs_alph, guess)
    assert results.shape == (3, 3, 1)
    assert np.allclose(results[:, :, 0], operator.propvecs_alph @ operator.rspvecs_alph.T)
    assert np.allclose(driver.uncoupled_results[0], results[:, :, 0])

def test_unrestricted_combination():
    system = model_system(seed=72, nden=2, occupations=(3, 3, 2, 4))
    driver, results = run_driver(system, [0.0, 0.1], matvec=system.matvec(), conv=10)
    operator = driver.operators[0]

    a = operator.propvecs_alph @ operator.rspvecs_alph.T
    b = operator.propvecs_beta @ operator.rspvecs_beta.T
    # the operators hold the vectors of the last frequency
    assert np.allclose(results[:, :, 1], 2*(a + b))
    assert np.allclose(driver.results_alph[:, :, 1], a)
    assert np.allclose(driver.results_beta[:, :, 1], b)
    assert np.allclose(results, 2*(driver.results_alph + driver.results_beta))

def test_coupled_solvers_agree():
    system = model_system(seed=73)
    omega = [0.0, 0.05]
    driver, diis = run_driver(system, omega, matvec=system.matvec(), conv=10)
    driver, exact = run_driver(system, omega, matvec=system.matvec(), solver='exact')
    driver, jacobi = run_driver(system, omega, matvec=system.matvec(), solver='jacobi', conv=10, maxiter=200)
    assert np.allclose(diis, exact, atol=1e-8)
    assert np.allclose(jacobi, exact, atol=1e-8)

    # a symmetric orbital Hessian gives a symmetric static response matrix
    assert np.allclose(exact[:, :, 0], exact[:, :, 0].T)
    # coupling changes the uncoupled result
    assert not np.allclose(driver.uncoupled_results[0], exact[:, :, 0])

def test_tda_triplet():
    system = model_system(seed=74)
    driver, exact = run_driver(system, [0.1], matvec=system.matvec('tda', 'triplet'), solver='exact',
                               hamiltonian='tda', spin='triplet')
    driver, diis = run_driver(system, [0.1], matvec=system.matvec('tda', 'triplet'), conv=10,
                              hamiltonian='tda', spin='triplet')
    assert np.allclose(diis, exact, atol=1e-8)

def test_nonorthogonal_orbitals():
    system = model_system(seed=75, nonorthogonal=True)
    omega = 0.1
    driver, results = run_driver(system, [omega], conv=10, maxiter=200)
    operator = driver.operators[0]
    ediff = driver.ediff_alph
    nov = ediff.shape[0]
    assert not np.allclose(ediff, np.diag(np.diag(ediff)))

    b = operator.rhsvecs_alph
    X = np.linalg.solve(ediff - omega*np.eye(nov), b.T).T
    Y = np.linalg.solve(ediff + omega*np.eye(nov), b.T).T
    assert np.allclose(operator.rspvecs_alph, np.concatenate((X, Y), axis=1), atol=1e-8)
    assert np.allclose(results[:, :, 0], b @ (X + Y).T, atol=1e-8)

def test_property_only_operator():
    system = model_system(seed=76)
    operators = system.operators() + system.operators(label="field", do_response=False)
    driver, results = run_driver(system, [0.0], operators=operators)
    assert results.shape == (6, 6, 1)
    assert np.all(results[:, 3:, 0] == 0.0)
    assert np.allclose(results[3:, :3, 0], operators[1].propvecs_alph @ operators[0].rspvecs_alph.T)

def test_fragment_response():
    # two fragments of three orbitals with one occupied orbital each
    system = model_system(seed=77)
    fragments = [[1, 3, 1, 1],
                 [2, 3, 1, 1]]
    nvirt = system.occupations[1]
    indices = np.arange(nvirt, 2*nvirt)
    nov = 2*nvirt

    driver, results = run_driver(system, [0.0], fragment_occupations=fragments, _frgm_response_idx=2,
                                 _mask_ediff_mo=True, _mask_form_results_mo=True)
    operator = driver.operators[0]
    assert np.array_equal(driver.indices_mo[0], indices)
    assert np.array_equal(operator.indices_mo_alph, indices)

    allowed = np.concatenate((indices, nov + indices))
    outside = np.setdiff1d(np.arange(2*nov), allowed)
    assert np.all(operator.rspvecs_alph[:, outside] == 0.0)

    d = system.ediff_diag()[indices]
    b = operator.rhsvecs_alph[:, indices]
    assert np.allclose(results[:, :, 0], 2 * b @ (b / d).T)

    # without masks the fragment selector leaves the response global
    driver, full = run_driver(system, [0.0], fragment_occupations=fragments, _frgm_response_idx=2)
    driver, ref = run_driver(system, [0.0])
    assert np.allclose(full, ref)

def test_masked_exact_solver():
    system = model_system(seed=78)
    fragments = [[1, 3, 1, 1],
                 [2, 3, 1, 1]]
    options = dict(fragment_occupations=fragments, matvec=system.matvec(), _frgm_response_idx=1,
                   _mask_ediff_mo=True, _mask_form_results_mo=True)
    driver, exact = run_driver(system, [0.05], solver='exact', **options)
    driver, diis = run_driver(system, [0.05], conv=10, **options)
    assert np.allclose(diis, exact, atol=1e-8)

def test_solve_linear_response():
    system = model_system(seed=79)
    cfg = rspconfig(print_level=0, conv=10)
    results = solve_linear_response(system.matvec(), norsp.diis_solver(), system.C, None, system.occupations,
                                    system.F, system.S, [0.0], system.operators(), cfg)
    driver, ref = run_driver(system, [0.0], matvec=system.matvec(), conv=10)
    assert np.allclose(results, ref)

def test_output(capsys):
    system = model_system(seed=80)
    run_driver(system, [0.0, 0.1], print_level=1)
    out = capsys.readouterr().out
    assert "Uncoupled result" in out
    assert "Final result" in out
    assert "dipole X" in out

@pytest.mark.parametrize("changes", [
    {'omega': []},
    {'operators': []},
    {'occupations': [2, 4, 2]},
    {'occupations': [0, 6, 0, 6]},
    {'occupations': [6, 0, 6, 0]},
    {'occupations': [3, 4, 3, 4]},
    {'occupations': [-1, 7, 2, 4]},
])
def test_driver_rejects(changes):
    system = model_system(seed=81)
    args = {'omega': [0.0], 'operators': system.operators(), 'occupations': system.occupations}
    args.update(changes)
    with pytest.raises(ConfigurationError):
        linresp(system.C, system.F, system.S, args['occupations'], args['operators'], args['omega'],
                cfg=rspconfig(print_level=0))

def test_driver_rejects_shapes():
    system = model_system(seed=82)
    ops = system.operators()
    cfg = rspconfig(print_level=0)
    with pytest.raises(ConfigurationError):
        linresp(system.C[:, :, 0], system.F, system.S, system.occupations, ops, [0.0], cfg=cfg)
    with pytest.raises(ConfigurationError):
        linresp(system.C, system.F[:-1], system.S, system.occupations, ops, [0.0], cfg=cfg)
    with pytest.raises(ConfigurationError):
        linresp(system.C, system.F, system.S[:-1, :-1], system.occupations, ops, [0.0], cfg=cfg)
    with pytest.raises(ConfigurationError):
        linresp(system.C, system.F, system.S, system.occupations, ops, [0.0], cfg=cfg,
                fragment_occupations=[[1, 6, 1, 1]])

def test_form_results_blocks():
    system = model_system(seed=83)
    driver, results = run_driver(system, [0.0])
    block = form_results(driver.operators, 1)
    assert block.shape == (3, 3, 1)
    assert np.allclose(block[:, :, 0], results[:, :, 0])
