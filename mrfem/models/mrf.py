# This file is subject to the terms and conditions of the GPLv3 (see file 'LICENSE' as part of this source code package)

u"""
This file holds the joint model state of a spatial clustering run: Bernoulli emissions, per-cluster coupling
strengths, the hard cluster assignment, the soft posterior (responsibility) matrix and the cached per-cluster
log-densities of each datum. All matrices have one row per datum and one column per cluster.
"""

__author__ = "MRFEM developers"

from .. import common, evaluation, types
from . import bernoulli, spatial
import numpy as np


class Data(object):
    """Features and neighbourhood graph of the same data, in the same order"""

    def __init__(self, features, neighbors):
        if features.num_data != neighbors.num_data:
            raise ValueError("%i observations but %i neighbour rows" % (features.num_data, neighbors.num_data))
        self.features = features
        self.neighbors = neighbors

    @property
    def num_data(self):
        return self.features.num_data

    def __len__(self):
        return self.num_data


class MRFModel(object):
    def __init__(self, emission, coupling, labels):
        assert emission.num_components == coupling.num_components
        self.emission = emission
        self.coupling = coupling
        self.labels = np.array(labels, dtype=types.label_type)
        assert self.labels.min() >= 0 and self.labels.max() < self.num_components
        shape = (self.labels.size, self.num_components)
        self.responsibilities = np.zeros(shape, dtype=types.prob_type)
        self.densities = np.zeros(shape, dtype=types.logprob_type)

    def compute_densities(self, data):
        self.densities = self.emission.log_likelihood(data.features)
        return self.densities

    def solve_posteriors(self, data, steps):
        """
        Approximate the cluster posterior of each datum by a fixed number of synchronous fixed-point passes. Each
        pass weights the density of each cluster by exp(beta*c) where c is the summed responsibility of the
        neighbours for that cluster in the previous pass.
        """
        for i in range(steps):
            coefficients = data.neighbors.agreement(self.responsibilities)
            self.responsibilities = common.exp_normalize(self.densities + coefficients * self.coupling.variables)
        return self.responsibilities

    def hard_assignment(self):
        """Return the new labels and the number of data which changed cluster"""
        labels = hard_assignment(self.responsibilities)
        changed = np.count_nonzero(labels != self.labels)
        self.labels = labels
        return changed

    def maximize_likelihood(self, data, fixed_coupling, step, max_steps=None):
        self.emission.maximize_likelihood(data.features, self.labels)
        if not fixed_coupling:
            self.coupling.maximize_likelihood(data.neighbors, self.labels, step, max_steps)
        self.compute_densities(data)

    def log_likelihood(self, data):
        """Densities of the assigned clusters plus the pseudo-likelihood of the assignment"""
        loglike = self.densities[np.arange(self.num_data), self.labels].sum(dtype=types.large_float_type)
        return loglike + self.coupling.pseudo_log_likelihood(data.neighbors, self.labels)

    def expected_log_likelihood(self, data):
        """Responsibility-weighted version of log_likelihood()"""
        loglike = common.weighted_sum(self.responsibilities, self.densities)
        return loglike + self.coupling.expected_pseudo_log_likelihood(data.neighbors, self.labels,
                                                                      self.responsibilities)

    def cluster_sizes(self):
        return evaluation.cluster_sizes(self.labels, self.num_components)

    @property
    def num_components(self):
        return self.emission.num_components

    @property
    def num_data(self):
        return self.labels.size

    _short_name = "MRF_EM"


def hard_assignment(responsibilities):
    """Index of the maximum per row; the first maximum wins and rows without a valid value go to the first cluster"""
    n = responsibilities.shape[0]
    labels = np.zeros(n, dtype=types.label_type)
    best = np.full(n, -np.inf, dtype=types.prob_type)
    for k, column in enumerate(responsibilities.T):
        with np.errstate(invalid='ignore'):
            better = column > best
        labels[better] = k
        best[better] = column[better]
    return labels


def new_model(data, labels, num_clusters, beta):
    emission = bernoulli.empty_model(num_clusters, data.features.context)
    coupling = spatial.Model(np.repeat(beta, num_clusters))
    return MRFModel(emission, coupling, labels)
