#!/usr/bin/env python3
# This file is subject to the terms and conditions of the GPLv3 (see file 'LICENSE' as part of this source code package)

u"""
This is the main program which takes binary (presence/absence) observations and their spatial neighbourhood graph
and clusters the observations with an EM procedure over a Markov random field. The clustering is initialized either
randomly (best of several random labelings) or from a cluster file. Four result files are written to the output
directory: <name>.csv (cluster per observation), <name>.theta (Bernoulli parameters), <name>.clust (coupling strength
and size per cluster) and <name>.summary. Results are also written when the run is interrupted.

Usage:
  cluster  (--help | --version)
  cluster  (--data <file>) (--neighbors <file>) (--outdir <dir>) (--name <str>) (--init <file> | --clusters <int>)
           [--beta <float>] [--threshold <int>] [--max-iterations <int>] [--fixed-beta] [--random-seed <int>]
           [--logfile <file>]

  -h, --help                            Show this screen
  -v, --version                         Show version
  -d <file>, --data <file>              Observation table, tab-separated: identifier and binary features
  -n <file>, --neighbors <file>         Neighbour table, tab-separated: count and one-based row numbers
  -o <dir>, --outdir <dir>              Result folder, created if missing
  -N <str>, --name <str>                Base name of the result files
  -i <file>, --init <file>              Initial cluster file, one label (1..K) per line
  -k <int>, --clusters <int>            Number of clusters for random initialization
  -b <float>, --beta <float>            Initial coupling strength; default 1.0
  -t <int>, --threshold <int>           Converged when at most this number of observations changed cluster; default 0
  -m <int>, --max-iterations <int>      Maximum number of EM iterations; default 100
  -f, --fixed-beta                      Keep the coupling strength at its initial value
  -z <int>, --random-seed <int>         Seed for the random initialization
  -l <file>, --logfile <file>           File for logging
"""

import os
import signal
import sys

from .. import common, em, evaluation, models, __version__

__author__ = "MRFEM developers"


def load_input(argument):
    features = models.bernoulli.load_data_file(argument["--data"])
    neighbors = models.spatial.load_data_file(argument["--neighbors"],
                                              context=models.spatial.Context(features.num_data))
    return models.mrf.Data(features, neighbors)


def write_results(model, data, result, outdir, name):
    prefix = os.path.join(outdir, name)
    common.write_file(common.write_summary, prefix + ".summary", evaluation.summary(model, data, result))
    common.write_file(common.write_labels, prefix + ".csv", model.labels)
    common.write_file(common.write_parameters, prefix + ".theta", model.emission.variables)
    common.write_file(common.write_cluster_table, prefix + ".clust", model.coupling.variables, model.cluster_sizes())


def main(argv):
    from docopt import docopt
    argument = docopt(__doc__, argv=argv, version=__version__)
    common.handle_broken_pipe()

    if argument["--logfile"]:
        sys.stderr = open(argument["--logfile"], "w", buffering=1)

    token = em.CancellationToken()
    for signame in ("SIGINT", "SIGQUIT"):
        if hasattr(signal, signame):
            signal.signal(getattr(signal, signame), token.cancel)

    try:
        beta = float(argument["--beta"]) if argument["--beta"] else em.DEFAULT_BETA
        threshold = int(argument["--threshold"]) if argument["--threshold"] else em.DEFAULT_CONVERGENCE_THRESHOLD
        max_iterations = int(argument["--max-iterations"]) if argument["--max-iterations"] else em.MAX_ITERATIONS
        seed = int(argument["--random-seed"]) if argument["--random-seed"] else None

        data = load_input(argument)
        if argument["--init"]:
            labels, num_clusters = common.load_labels_file(argument["--init"])
            model = em.init_labels(data, labels, beta, num_clusters)
        else:
            num_clusters = int(argument["--clusters"])
            if num_clusters < 1:
                raise ValueError("the number of clusters must be positive")
            if seed is None:
                sys.stderr.write("No random seed given, consider setting a random seed for better reproducibility.\n")
            model = em.init_random(data, num_clusters, beta, random_state=seed, token=token)
    except (IOError, ValueError) as e:
        sys.stderr.write("ERROR cluster: %s\n" % e)
        sys.exit(1)

    os.makedirs(argument["--outdir"], exist_ok=True)

    result = em.em(model, data, threshold, max_iterations, fixed_coupling=argument["--fixed-beta"], token=token)
    if result.status == em.CANCELLED:
        sys.stderr.write("Program interrupted, writing current results\n")
    write_results(model, data, result, argument["--outdir"], argument["--name"])


if __name__ == "__main__":
    main(sys.argv[1:])
