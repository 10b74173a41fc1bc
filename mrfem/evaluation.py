# This file is subject to the terms and conditions of the GPLv3 (see file 'LICENSE' as part of this source code package)

u"""
Submodule with all evaluation-related code.
"""

__author__ = "MRFEM developers"

from . import types
import numpy as np
import sys


def cluster_sizes(labels, num_clusters):
    return np.bincount(labels, minlength=num_clusters).astype(types.count_type)


def empty_clusters(labels, num_clusters):
    """Zero-based indices of all clusters without any datum"""
    return np.where(cluster_sizes(labels, num_clusters) == 0)[0]


def report_empty_clusters(labels, num_clusters, file=None):
    # empty clusters usually lead to undefined likelihood values, try a different initialization then
    if file is None:
        file = sys.stderr
    empty = empty_clusters(labels, num_clusters)
    for k in empty:
        file.write("WARNING: cluster %i is empty\n" % (k + 1))
    return empty


def summary(model, data, result):
    return [("numClust", model.num_components),
            ("likelihood", "%e" % result.log_likelihood),
            ("expectation", "%e" % model.expected_log_likelihood(data)),
            ("iterations", result.iterations),
            ("status", result.status)]
