# This file is subject to the terms and conditions of the GPLv3 (see file 'LICENSE' as part of this source code package)

u"""
This file contains all higher-level functionality required by the EM estimation procedure: initialization of the
model state, alternation of expectation and maximization steps, convergence testing and cancellation.
"""

__author__ = "MRFEM developers"

from . import common, evaluation, types
from .models import mrf
from collections import namedtuple
from termcolor import colored
import numpy as np
import sys

RANDOM_TRIALS = 10  # random labelings tried, the one with the best initial likelihood is kept
INIT_FIXED_POINT_STEPS = 2  # posterior fixed-point passes during initialization
FIXED_POINT_STEPS = 3  # posterior fixed-point passes per EM iteration
COUPLING_STEP = 0.1  # fixed step of the coupling strength hill-climb
MAX_ITERATIONS = 100
DEFAULT_CONVERGENCE_THRESHOLD = 0  # converged when at most this number of data changed cluster
DEFAULT_BETA = 1.0

CONVERGED = "converged"
STOPPED = "stopped"
CANCELLED = "cancelled"

EMResult = namedtuple("EMResult", ["status", "iterations", "changed", "log_likelihood"])


class CancellationToken(object):
    """Flag which is checked between EM iterations; cancel() can be installed as a signal handler"""

    def __init__(self):
        self._cancelled = False

    def cancel(self, *args):
        self._cancelled = True

    @property
    def cancelled(self):
        return self._cancelled


def prepare(model, data, steps=INIT_FIXED_POINT_STEPS):
    model.emission.maximize_likelihood(data.features, model.labels)
    model.compute_densities(data)
    model.solve_posteriors(data, steps)
    return model


def init_random(data, num_clusters, beta=DEFAULT_BETA, trials=RANDOM_TRIALS, steps=INIT_FIXED_POINT_STEPS,
                random_state=None, token=None):
    assert num_clusters > 0 and trials > 0
    if random_state is None or isinstance(random_state, int):
        random_state = np.random.RandomState(random_state)

    best_labels = None
    best_loglike = -np.inf
    for i in range(trials):
        if token is not None and token.cancelled and best_labels is not None:
            sys.stderr.write("LOG %s: random initialization interrupted after %i trials\n" % (_short_name, i))
            break
        labels = random_state.randint(num_clusters, size=data.num_data)
        model = prepare(mrf.new_model(data, labels, num_clusters, beta), data, steps)
        loglike = model.log_likelihood(data)
        if best_labels is None or loglike > best_loglike:
            best_loglike = loglike
            best_labels = model.labels
        sys.stderr.write("LOG %s: random initialization %i has likelihood %e, best is %e\n"
                         % (_short_name, i + 1, loglike, best_loglike))

    model = prepare(mrf.new_model(data, best_labels, num_clusters, beta), data, steps)
    evaluation.report_empty_clusters(model.labels, num_clusters)
    return model


def init_labels(data, labels, beta=DEFAULT_BETA, num_clusters=None, steps=INIT_FIXED_POINT_STEPS):
    labels = np.asarray(labels, dtype=types.label_type)
    if labels.size != data.num_data:
        raise ValueError("%i cluster labels given for %i observations" % (labels.size, data.num_data))
    if num_clusters is None:
        num_clusters = int(labels.max()) + 1
    sys.stderr.write("LOG %s: initializing %i clusters from given labels\n" % (_short_name, num_clusters))
    model = prepare(mrf.new_model(data, labels, num_clusters, beta), data, steps)
    evaluation.report_empty_clusters(model.labels, num_clusters)
    return model


def e_step(model, data, steps=FIXED_POINT_STEPS):
    model.compute_densities(data)
    model.solve_posteriors(data, steps)
    return model.hard_assignment()


def m_step(model, data, fixed_coupling=False, step=COUPLING_STEP, max_ascent_steps=None):
    model.maximize_likelihood(data, fixed_coupling, step, max_ascent_steps)


def em(model, data, threshold=DEFAULT_CONVERGENCE_THRESHOLD, max_iterations=MAX_ITERATIONS, fixed_coupling=False,
       steps=FIXED_POINT_STEPS, step=COUPLING_STEP, max_ascent_steps=None, token=None):
    status = STOPPED
    changed = None
    iterations = 0
    loglike = model.log_likelihood(data)

    for i in range(1, max_iterations + 1):
        if token is not None and token.cancelled:
            status = CANCELLED
            break

        lloglike = loglike
        changed = e_step(model, data, steps)
        evaluation.report_empty_clusters(model.labels, model.num_components)
        m_step(model, data, fixed_coupling, step, max_ascent_steps)
        iterations = i
        loglike = model.log_likelihood(data)

        diff = loglike - lloglike
        delta_color = "red" if diff >= 0. else "blue"
        sys.stderr.write("LOG EM #: %3i | LL: %s | Δ: %s | changed: %s | beta: %s\n" % (
            i, colored("%.2f" % loglike, "yellow"), colored("%.2f" % diff, delta_color),
            colored("%i" % changed, "green"), common.pretty_probvector(model.coupling.variables)))

        if changed <= threshold:
            status = CONVERGED
            break

    sys.stderr.write("LOG %s: %s after %i iterations\n" % (_short_name, status, iterations))
    return EMResult(status, iterations, changed, loglike)


_short_name = "EM"


if __name__ == "__main__":
    pass
