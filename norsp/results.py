"""
results.py: Contraction of response vectors with property vectors, spin combination and labeled printing.
"""

import numpy as np


def make_operator_label_vec(operators):
    """One operator label per operator component, in result-matrix order."""
    labels = []
    for operator in operators:
        labels.extend([operator.label] * operator.ncomp)
    return labels


def make_operator_component_vec(operators):
    labels = []
    for operator in operators:
        labels.extend(operator.component_labels)
    return labels


def form_results(operators, nden, indices=None):
    """
    Contract every operator's property vectors with every operator's response vectors.

    Parameters
    ----------
    operators : list of perturbation objects
    nden : int
        number of spin channels
    indices : list of NumPy arrays or None
        [indices_mo_alph, indices_mo_beta]; if given, only these occ-virt pairs
        (in both halves of the supervectors) contribute

    Returns
    -------
    results : NumPy array
        shape (ntot, ntot, nden); rows are property components, columns response components
    """
    ntot = sum(operator.ncomp for operator in operators)
    results = np.zeros((ntot, ntot, nden))

    for s in range(nden):
        is_beta = (s == 1)
        row_start = 0
        for op1 in operators:
            propvecs = op1.propvecs_beta if is_beta else op1.propvecs_alph
            col_start = 0
            for op2 in operators:
                if op2.do_response:
                    rspvecs = op2.rspvecs_beta if is_beta else op2.rspvecs_alph
                    if indices is not None:
                        nov = propvecs.shape[1] // 2
                        idx = np.concatenate((indices[s], nov + np.asarray(indices[s])))
                        block = propvecs[:, idx] @ rspvecs[:, idx].T
                    else:
                        block = propvecs @ rspvecs.T
                    results[row_start:row_start+op1.ncomp, col_start:col_start+op2.ncomp, s] = block
                col_start += op2.ncomp
            row_start += op1.ncomp

    return results


def combine_results(results_alph, results_beta=None):
    """
    Combine the spin channels: alpha only for one channel, 2*(alpha + beta) for two.
    """
    if results_beta is None:
        return results_alph.copy()
    return 2 * (results_alph + results_beta)


def print_results_with_labels(results, operator_labels, component_labels):
    """
    Print a result matrix, or each frequency slice of a result cube, with row and column labels.
    """
    results = np.asarray(results)
    if results.ndim == 3:
        for f in range(results.shape[2]):
            print("  Frequency %d:" % (f))
            print_results_with_labels(results[:, :, f], operator_labels, component_labels)
        return

    labels = ["%s %s" % (op, comp) for op, comp in zip(operator_labels, component_labels)]
    width = max([len(label) for label in labels] + [14])
    print(" " * (width + 1) + " ".join("%*s" % (width, label) for label in labels))
    for i, label in enumerate(labels):
        print("%*s " % (width, label) + " ".join("%*.8f" % (width, val) for val in results[i]))
