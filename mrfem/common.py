# This file is subject to the terms and conditions of the GPLv3 (see file 'LICENSE' as part of this source code package)

u"""
This file contains helper functions and types.
"""

__author__ = "MRFEM developers"

from . import types
import numpy as np
from sys import stdout


def parse_lines(lines):
    for line in lines:
        if not line.strip() or line[0] == "#":  # skip empty lines and comments
            continue
        yield line.rstrip("\r\n")


def parse_lines_tab(lines):
    for line in parse_lines(lines):
        yield line.split("\t")


load_data = lambda lines, store: store.parse(parse_lines_tab(lines))


def load_data_file(filename, store):
    with open(filename, "r") as f:
        return load_data(f, store)


def assert_probmatrix(mat):
    for rowsum in mat.sum(axis=1, dtype=types.large_float_type):
        np.testing.assert_approx_equal(rowsum, 1., significant=6)


def nandot(a, b):
    "A numpy.dot() replacement which treats (0*-Inf)==0 but keeps NaN values of b which meet non-zero values of a."
    # important note: a contains zeros and b contains inf/-inf/nan, not the other way around

    # 1) calculate dot product
    # 2) select nan entries
    # 3) re-calculate matrix entries with the products of zero entries in a set to zero
    with np.errstate(invalid='ignore'):
        tmp = np.dot(a, b)
        ri, ci = np.where(np.isnan(tmp))
        if ri.size:
            products = a[ri, :] * b[:, ci].T
            products[a[ri, :] == 0] = 0.0
            tmp[ri, ci] = products.sum(axis=1)
    return tmp


def exp_normalize(data):
    with np.errstate(invalid='ignore'):
        ret = data - np.amax(data, axis=1, keepdims=True)  # avoid tiny numbers
        ret = np.exp(ret)
        ret /= np.sum(ret, axis=1, keepdims=True)
    return ret


def log_exp_normalize(data):
    ret = exp_normalize(data)
    with np.errstate(divide='ignore'):
        np.log(ret, out=ret)
    return ret


def labels2matrix(labels, num_clusters, dtype=types.prob_type):
    """One-hot membership matrix with one row per datum and one column per cluster"""
    mat = np.zeros((labels.size, num_clusters), dtype=dtype)
    mat[np.arange(labels.size), labels] = 1
    return mat


def weighted_sum(weights, values):
    "Sum of weights*values where zero weights never propagate non-finite values."
    with np.errstate(invalid='ignore'):
        products = weights * values
    products[weights == 0] = 0.0
    return products.sum(dtype=types.large_float_type)


def load_labels(lines):
    labels = []
    for lineno, line in enumerate(parse_lines(lines), 1):
        try:
            label = int(line.strip())
        except ValueError:
            raise ValueError("line %i of the cluster file is not an integer: '%s'" % (lineno, line))
        if label < 1:
            raise ValueError("line %i of the cluster file has label %i, labels start at 1" % (lineno, label))
        labels.append(label - 1)  # internal labels are zero-based
    if not labels:
        raise ValueError("the cluster file contains no labels")
    labels = np.asarray(labels, dtype=types.label_type)
    return labels, int(labels.max()) + 1


def load_labels_file(filename):
    with open(filename, "r") as f:
        return load_labels(f)


def write_labels(labels, file=stdout):
    for label in labels:
        file.write("%i\n" % (label + 1))


def write_parameters(mat, file=stdout):
    for row in np.asarray(mat):
        file.write("\t".join(["%f" % f for f in row]))
        file.write("\n")


def write_cluster_table(variables, sizes, file=stdout):
    file.write("\t%s\n" % "\t".join(["cluster_%i" % k for k in range(1, len(sizes) + 1)]))
    file.write("beta\t%s\n" % "\t".join(["%f" % b for b in variables]))
    file.write("numCells\t%s\n" % "\t".join(["%i" % s for s in sizes]))


def write_summary(items, file=stdout):
    for key, value in items:
        file.write("%s\t%s\n" % (key, value))


def write_file(writer, filename, *args):
    with open(filename, "w") as f:
        writer(*args, file=f)


pretty_probvector = lambda vec: "|".join(("%.2f" % f for f in vec))


def handle_broken_pipe():
    import signal
    signal.signal(signal.SIGPIPE, signal.SIG_DFL)


if __name__ == "__main__":
    pass
