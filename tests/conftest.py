import numpy as np
import pytest

from mrfem import models

# two triangles: rows 1-3 are all-ones and mutual neighbours, rows 4-6 are all-zeros and mutual neighbours
TRIANGLE_FEATURES = ["1\t1\t1", "2\t1\t1", "3\t1\t1", "4\t0\t0", "5\t0\t0", "6\t0\t0"]
TRIANGLE_NEIGHBORS = ["2\t2\t3", "2\t1\t3", "2\t1\t2", "2\t5\t6", "2\t4\t6", "2\t4\t5"]


def make_data(feature_lines, neighbor_lines):
    features = models.bernoulli.load_data(feature_lines)
    neighbors = models.spatial.load_data(neighbor_lines, context=models.spatial.Context(features.num_data))
    return models.mrf.Data(features, neighbors)


@pytest.fixture
def triangles():
    return make_data(TRIANGLE_FEATURES, TRIANGLE_NEIGHBORS)


@pytest.fixture
def ring():
    """Twenty random binary observations on a ring, each with its two adjacent rows as neighbours"""
    rng = np.random.RandomState(7)
    n = 20
    values = rng.randint(2, size=(n, 5))
    feature_lines = ["\t".join([str(i + 1)] + [str(v) for v in row]) for i, row in enumerate(values)]
    neighbor_lines = ["2\t%i\t%i" % ((i - 1) % n + 1, (i + 1) % n + 1) for i in range(n)]
    return make_data(feature_lines, neighbor_lines)
