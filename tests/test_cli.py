"""Tests for the command line programs, run in-process on small files."""

import signal
import sys

import numpy as np
import pytest

from mrfem import common, em
from mrfem.cli import cluster, likelihood

from conftest import TRIANGLE_FEATURES, TRIANGLE_NEIGHBORS


@pytest.fixture
def inputs(tmp_path):
    data = tmp_path / "data.tsv"
    data.write_text("\n".join(TRIANGLE_FEATURES) + "\n")
    neighbors = tmp_path / "neighbors.tsv"
    neighbors.write_text("\n".join(TRIANGLE_NEIGHBORS) + "\n")
    init = tmp_path / "init.csv"
    init.write_text("1\n1\n2\n2\n2\n1\n")
    return tmp_path, str(data), str(neighbors), str(init)


@pytest.fixture(autouse=True)
def restore_signals():
    saved = {name: signal.getsignal(getattr(signal, name))
             for name in ("SIGINT", "SIGQUIT", "SIGPIPE") if hasattr(signal, name)}
    yield
    for name, handler in saved.items():
        signal.signal(getattr(signal, name), handler)


def test_cluster_writes_all_results(inputs):
    tmp_path, data, neighbors, init = inputs
    outdir = tmp_path / "results"
    cluster.main(["--data", data, "--neighbors", neighbors, "--outdir", str(outdir), "--name", "run",
                  "--init", init])

    labels, num_clusters = common.load_labels_file(str(outdir / "run.csv"))
    np.testing.assert_array_equal(labels, [0, 0, 0, 1, 1, 1])
    assert num_clusters == 2

    thetas = np.loadtxt(str(outdir / "run.theta"), delimiter="\t")
    np.testing.assert_allclose(thetas, [[1.0, 1.0], [0.0, 0.0]])

    clust = (outdir / "run.clust").read_text().splitlines()
    assert clust[0] == "\tcluster_1\tcluster_2"
    assert clust[2] == "numCells\t3\t3"

    summary = dict(line.split("\t") for line in (outdir / "run.summary").read_text().splitlines())
    assert summary["numClust"] == "2"
    assert summary["status"] == "converged"
    assert int(summary["iterations"]) >= 1


def test_cluster_random_with_fixed_beta(inputs, monkeypatch):
    tmp_path, data, neighbors, init = inputs
    outdir = tmp_path / "random"
    logfile = tmp_path / "run.log"
    monkeypatch.setattr(sys, "stderr", sys.stderr)
    cluster.main(["--data", data, "--neighbors", neighbors, "--outdir", str(outdir), "--name", "run",
                  "--clusters", "2", "--beta", "0.5", "--fixed-beta", "--random-seed", "3",
                  "--logfile", str(logfile)])

    clust = (outdir / "run.clust").read_text().splitlines()
    assert clust[1] == "beta\t0.500000\t0.500000"
    assert "LOG EM" in logfile.read_text()


def test_cluster_rejects_bad_neighbours(inputs, capsys):
    tmp_path, data, neighbors, init = inputs
    bad = tmp_path / "bad.tsv"
    bad.write_text("1\t7\n" * 6)
    with pytest.raises(SystemExit) as e:
        cluster.main(["--data", data, "--neighbors", str(bad), "--outdir", str(tmp_path / "x"), "--name", "run",
                      "--init", init])
    assert e.value.code == 1
    assert "ERROR cluster" in capsys.readouterr().err


def test_likelihood_prints_scores(inputs, capsys):
    tmp_path, data, neighbors, init = inputs
    likelihood.main(["--data", data, "--neighbors", neighbors, "--init", init])
    out = dict(line.split("\t") for line in capsys.readouterr().out.splitlines())
    assert out["numClust"] == "2"
    assert np.isfinite(float(out["likelihood"]))
    assert np.isfinite(float(out["expectation"]))


def test_cluster_interrupt_during_initialization_writes_initial_state(inputs, monkeypatch):
    tmp_path, data, neighbors, init = inputs
    outdir = tmp_path / "interrupted"
    init_labels = em.init_labels

    def interrupted_init(*args, **kwargs):
        signal.raise_signal(signal.SIGINT)
        return init_labels(*args, **kwargs)

    monkeypatch.setattr(em, "init_labels", interrupted_init)
    cluster.main(["--data", data, "--neighbors", neighbors, "--outdir", str(outdir), "--name", "run",
                  "--init", init])

    summary = dict(line.split("\t") for line in (outdir / "run.summary").read_text().splitlines())
    assert summary["status"] == "cancelled"
    assert summary["iterations"] == "0"
    labels, num_clusters = common.load_labels_file(str(outdir / "run.csv"))
    np.testing.assert_array_equal(labels, [0, 0, 1, 1, 1, 0])


def test_modules_credit_the_project():
    from mrfem import evaluation
    from mrfem.models import bernoulli, mrf, spatial
    for module in (common, em, evaluation, bernoulli, spatial, mrf, cluster, likelihood):
        assert module.__author__ == "MRFEM developers"
