# This file is subject to the terms and conditions of the GPLv3 (see file 'LICENSE' as part of this source code package)

u"""
This file holds all the functions and types necessary for the spatial part of the model: the neighbourhood graph of
the data and the per-cluster coupling strengths (beta) which reward agreement with the neighbours in a Markov random
field. The field is evaluated by its pseudo-likelihood, which conditions each datum on the current state of its
neighbours instead of computing the intractable partition function.
"""

__author__ = "MRFEM developers"

from .. import common, types
import numpy as np
from scipy import sparse
import sys


class Context(object):
    """Container for information which is shared between Data and Model"""

    def __init__(self, num_data=None):
        self.num_data = num_data


class Data(object):
    """Neighbourhood graph as a sparse adjacency matrix, one row per datum in input order"""

    def __init__(self, context=None):
        self.context = Context() if context is None else context
        self._neighbors = []
        self.adjacency = None

    def deposit(self, fields):
        lineno = len(self._neighbors) + 1
        try:
            numbers = [int(f) for f in fields]
        except ValueError:
            raise ValueError("neighbour row %i contains a non-integer value" % lineno)
        count, indices = numbers[0], numbers[1:]
        if count < 0 or count != len(indices):
            raise ValueError("neighbour row %i declares %i neighbours but lists %i"
                             % (lineno, count, len(indices)))
        self._neighbors.append(np.asarray(indices, dtype=types.index_type) - 1)  # input rows are one-based

    def prepare(self):
        n = len(self._neighbors)
        if self.context.num_data is None:
            self.context.num_data = n
        elif self.context.num_data != n:
            raise ValueError("neighbour table has %i rows, expected %i" % (n, self.context.num_data))

        for lineno, row in enumerate(self._neighbors, 1):
            if row.size and (row.min() < 0 or row.max() >= n):
                raise ValueError("neighbour row %i references a row outside 1..%i" % (lineno, n))

        sizes = np.fromiter((row.size for row in self._neighbors), dtype=types.index_type, count=n)
        indptr = np.concatenate(([0], np.cumsum(sizes)))
        indices = np.concatenate(self._neighbors) if n else np.empty(0, dtype=types.index_type)
        values = np.ones(indices.size, dtype=types.prob_type)
        self.adjacency = sparse.csr_matrix((values, indices, indptr), shape=(n, n))  # duplicates count twice
        self._neighbors = []
        return self

    def parse(self, inseq):
        for fields in inseq:
            self.deposit(fields)
        return self.prepare()

    def agreement(self, membership):
        """Sum of the neighbours' (soft or hard) cluster membership for each datum and cluster"""
        assert membership.shape[0] == self.num_data
        return np.asarray(self.adjacency.dot(membership), dtype=types.prob_type)

    @property
    def num_neighbors(self):
        return np.diff(self.adjacency.indptr)

    @property
    def num_data(self):
        return self.adjacency.shape[0]

    def __len__(self):
        return self.num_data


class Model(object):
    def __init__(self, variables):
        self.variables = np.array(variables, dtype=types.prob_type)  # coupling strength per cluster

    def log_conditional(self, agreement, variables=None):
        """Log-probability of each cluster for each datum given its neighbours' current clusters"""
        if variables is None:
            variables = self.variables
        return common.log_exp_normalize(agreement * variables[np.newaxis, :])

    def _assigned_log_conditional(self, data, labels, agreement=None, variables=None):
        if agreement is None:
            agreement = data.agreement(common.labels2matrix(labels, self.num_components))
        return self.log_conditional(agreement, variables)[np.arange(labels.size), labels]

    def pseudo_log_likelihood(self, data, labels, agreement=None, variables=None):
        return self._assigned_log_conditional(data, labels, agreement, variables).sum(dtype=types.large_float_type)

    def expected_pseudo_log_likelihood(self, data, labels, responsibilities, agreement=None, variables=None):
        """Pseudo-likelihood of the assigned clusters, each datum weighted by its total responsibility"""
        weights = responsibilities.sum(axis=1)
        return common.weighted_sum(weights, self._assigned_log_conditional(data, labels, agreement, variables))

    def maximize_likelihood(self, data, labels, step, max_steps=None):
        """
        Hill-climb each coupling strength separately with a fixed step size on the pseudo-likelihood of the
        assignment. A strength which would fall below zero is set to zero and its search ends.
        """
        agreement = data.agreement(common.labels2matrix(labels, self.num_components))
        objective = lambda v: self.pseudo_log_likelihood(data, labels, agreement, v)

        for k in range(self.num_components):
            current = objective(self.variables)
            steps = 0
            while max_steps is None or steps < max_steps:
                original = self.variables[k]
                trial = self.variables.copy()
                trial[k] = original + step
                value_plus = objective(trial)
                trial[k] = original - step
                value_minus = objective(trial)
                gain_plus, gain_minus = value_plus - current, value_minus - current

                if not (gain_plus > 0 or gain_minus > 0):
                    break

                steps += 1
                if gain_plus > 0 and gain_plus >= gain_minus:
                    self.variables[k] = original + step
                    current = value_plus
                elif original - step > 0:
                    self.variables[k] = original - step
                    current = value_minus
                else:
                    self.variables[k] = 0.0
                    break

            sys.stderr.write("LOG %s: cluster %i coupling strength %.2f after %i steps\n"
                             % (self._short_name, k + 1, self.variables[k], steps))

    @property
    def num_components(self):
        return self.variables.size

    _short_name = "MRF_model"


def load_data(lines, **kwargs):
    d = Data(**kwargs)
    return common.load_data(lines, d)


def load_data_file(filename, **kwargs):
    d = Data(**kwargs)
    return common.load_data_file(filename, d)
