# This file is subject to the terms and conditions of the GPLv3 (see file 'LICENSE' as part of this source code package)

u"""
This file holds all the functions and types necessary for probabilistic modelling of binary (presence/absence) features
with one independent Bernoulli distribution per cluster and feature.
"""

__author__ = "MRFEM developers"

from .. import common, types
import numpy as np
import sys


class Context(object):
    """Container for information which is shared between Data and Model"""

    def __init__(self):
        self.num_features = None


class Data(object):
    """Observation features; the first column of each input row is the identifier and is not a feature."""

    def __init__(self, context=None):
        self.context = Context() if context is None else context
        self._features = []
        self.names = []
        self.features = None

    def deposit(self, fields):
        lineno = len(self._features) + 1
        if len(fields) < 2:
            raise ValueError("observation row %i has no features" % lineno)
        if self._features and len(fields) - 1 != self._features[0].size:
            raise ValueError("observation row %i has %i features, expected %i"
                             % (lineno, len(fields) - 1, self._features[0].size))
        try:
            row = np.array([int(f) for f in fields[1:]], dtype=types.feature_type)
        except (ValueError, OverflowError):
            raise ValueError("observation row %i contains a non-integer feature value" % lineno)
        if np.any(row > 1):
            raise ValueError("observation row %i contains a non-binary feature value" % lineno)
        self.names.append(fields[0])
        self._features.append(row)

    def prepare(self):
        if not self._features:
            raise ValueError("no observations found")
        self.features = np.vstack(self._features)
        self._features = []

        if self.context.num_features is None:
            self.context.num_features = self.num_features
        elif self.context.num_features != self.num_features:
            raise ValueError("observations have %i features, expected %i"
                             % (self.num_features, self.context.num_features))
        return self

    def parse(self, inseq):
        for fields in inseq:
            self.deposit(fields)
        return self.prepare()

    @property
    def num_features(self):
        return self.features.shape[1]

    @property
    def num_data(self):
        return self.features.shape[0]

    def __len__(self):
        return self.num_data


class Model(object):
    def __init__(self, variables, context=None, initialize=True):
        self.context = Context() if context is None else context
        self.variables = np.asarray(variables, dtype=types.prob_type)  # success probabilities, clusters x features
        self._loglikes_present = None
        self._loglikes_absent = None

        if self.context.num_features is None:
            self.context.num_features = self.num_features
        else:
            assert self.context.num_features == self.num_features

        if initialize:
            self.update()

    def update(self):
        with np.errstate(divide='ignore', invalid='ignore'):  # boundary and undefined values are propagated
            self._loglikes_present = np.log(self.variables)
            self._loglikes_absent = np.log1p(-self.variables)

    def log_likelihood(self, data):
        """Log-probability of each datum (rows) under each cluster (columns)"""
        assert data.num_features == self.num_features
        present = np.asarray(data.features, dtype=types.prob_type)
        absent = 1.0 - present
        loglike = common.nandot(present, self._loglikes_present.T)
        loglike += common.nandot(absent, self._loglikes_absent.T)
        assert np.all(np.logical_or(np.isnan(loglike), loglike <= 0.0))
        return loglike

    def maximize_likelihood(self, data, labels):
        """Closed-form maximum-likelihood estimate from hard assignments"""
        membership = common.labels2matrix(labels, self.num_components)
        sizes = membership.sum(axis=0, dtype=types.large_float_type)
        matches = np.dot(membership.T, np.asarray(data.features, dtype=types.prob_type))
        with np.errstate(invalid='ignore'):  # empty clusters yield undefined parameters
            self.variables = matches / sizes[:, np.newaxis]
        self.update()

        empty = np.count_nonzero(sizes == 0)
        if empty:
            sys.stderr.write("LOG %s: %i out of %i clusters have undefined parameters\n"
                             % (self._short_name, empty, self.num_components))

    @property
    def num_components(self):
        return self.variables.shape[0]

    @property
    def num_features(self):
        return self.variables.shape[1]

    _short_name = "Bernoulli_model"


def empty_model(cluster_number, context, **kwargs):
    assert cluster_number > 0
    assert type(context) == Context
    initial_probs = np.full((cluster_number, context.num_features), 0.5, dtype=types.prob_type)
    return Model(initial_probs, context=context, **kwargs)


def load_data(lines, **kwargs):
    d = Data(**kwargs)
    return common.load_data(lines, d)


def load_data_file(filename, **kwargs):
    d = Data(**kwargs)
    return common.load_data_file(filename, d)
