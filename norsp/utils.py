import numpy as np


def save_array(filename, arr):
    """
    Write an array of any rank as plain text.

    The first line is a header holding the shape; the data follow as rows of
    the last axis, written with enough digits to reproduce every element exactly.
    """
    arr = np.asarray(arr, dtype=np.float64)
    if arr.ndim == 0:
        raise ValueError("Only arrays with at least one axis can be saved.")
    header = " ".join(str(n) for n in arr.shape)
    if arr.ndim == 1:
        rows = arr.reshape(1, -1)
    else:
        rows = arr.reshape(-1, arr.shape[-1])
    np.savetxt(filename, rows, fmt="%.18e", header=header)


def load_array(filename):
    with open(filename, 'r') as f:
        header = f.readline()
    if not header.startswith('#'):
        raise ValueError("%s has no shape header." % (filename))
    shape = tuple(int(n) for n in header.lstrip('#').split())
    data = np.loadtxt(filename, dtype=np.float64, ndmin=2)
    return data.reshape(shape)


def pretty_print(mat, label):
    print(label)
    print(np.asarray(mat))


def print_ia_vec(vec, nvirt, max_print=5):
    """
    Print the largest elements of an occ-virt vector together with their (i, a) labels.
    """
    vec = np.asarray(vec)
    idx = np.argsort(-np.abs(vec))
    this_val = 0.0
    num_printed = 0
    for ia in idx:
        i = ia//nvirt
        a = ia%nvirt
        if np.abs(np.abs(this_val)-np.abs(vec[ia])) > 1e-10 and np.abs(vec[ia]) > 1e-12 and num_printed < max_print:
            this_val = vec[ia]
            print("%d %d %20.14f" % (i, a, vec[ia]))
            num_printed += 1


class helper_diis(object):
    """
    DIIS extrapolation over a list of arrays that are updated together
    (e.g., the alpha and beta response supervectors of one operator).
    """
    def __init__(self, vecs, max_diis):
        self.oldvecs = [v.copy() for v in vecs]
        self.diis_vals = [[v.copy() for v in vecs]]

        self.diis_errors = []
        self.diis_size = 0
        self.max_diis = max_diis

    def add_error_vector(self, vecs):
        # Add DIIS vectors
        self.diis_vals.append([v.copy() for v in vecs])
        # Add new error vectors
        errors = [(new - old).ravel() for new, old in zip(self.diis_vals[-1], self.oldvecs)]
        self.diis_errors.append(np.concatenate(errors))
        self.oldvecs = [v.copy() for v in vecs]

    def extrapolate(self, vecs):

        if (self.max_diis == 0):
            return vecs

        # Limit size of DIIS vector
        if (len(self.diis_errors) > self.max_diis):
            del self.diis_vals[0]
            del self.diis_errors[0]

        self.diis_size = len(self.diis_errors)

        # Build error matrix B
        B = np.ones((self.diis_size + 1, self.diis_size + 1)) * -1
        B[-1, -1] = 0

        for n1, e1 in enumerate(self.diis_errors):
            B[n1, n1] = np.dot(e1, e1)
            for n2, e2 in enumerate(self.diis_errors):
                if n1 >= n2:
                    continue
                B[n1, n2] = np.dot(e1, e2)
                B[n2, n1] = B[n1, n2]

        Bmax = np.abs(B[:-1, :-1]).max()
        if Bmax == 0.0:
            return vecs
        B[:-1, :-1] /= Bmax

        # Build residual vector
        resid = np.zeros(self.diis_size + 1)
        resid[-1] = -1

        # Solve pulay equations
        ci = np.linalg.solve(B, resid)

        # Calculate new vectors
        new = [np.zeros_like(v) for v in self.oldvecs]
        for num in range(self.diis_size):
            for v, val in zip(new, self.diis_vals[num + 1]):
                v += ci[num] * val

        # Save extrapolated vectors to old vectors
        self.oldvecs = [v.copy() for v in new]

        return new

if __name__ == "__main__":
    raise Exception("This file cannot be invoked on its own.")
