#!/usr/bin/env python3
# This file is subject to the terms and conditions of the GPLv3 (see file 'LICENSE' as part of this source code package)

u"""
This program scores a given clustering of binary observations under the spatial model without running EM. Parameters
are estimated from the given clusters and the posterior is approximated as during initialization. It prints the full
log-likelihood (assigned cluster densities plus pseudo-likelihood) and its responsibility-weighted expectation.

Usage:
  likelihood  (--help | --version)
  likelihood  (--data <file>) (--neighbors <file>) (--init <file>) [--beta <float>]

  -h, --help                        Show this screen
  -v, --version                     Show version
  -d <file>, --data <file>          Observation table, tab-separated: identifier and binary features
  -n <file>, --neighbors <file>     Neighbour table, tab-separated: count and one-based row numbers
  -i <file>, --init <file>          Cluster file, one label (1..K) per line
  -b <float>, --beta <float>        Coupling strength; default 1.0
"""

import sys

from .. import common, em, __version__
from .cluster import load_input

__author__ = "MRFEM developers"


def main(argv):
    from docopt import docopt
    argument = docopt(__doc__, argv=argv, version=__version__)
    common.handle_broken_pipe()

    try:
        beta = float(argument["--beta"]) if argument["--beta"] else em.DEFAULT_BETA
        data = load_input(argument)
        labels, num_clusters = common.load_labels_file(argument["--init"])
        model = em.init_labels(data, labels, beta, num_clusters)
    except (IOError, ValueError) as e:
        sys.stderr.write("ERROR likelihood: %s\n" % e)
        sys.exit(1)

    common.write_summary([("numClust", num_clusters),
                          ("likelihood", "%e" % model.log_likelihood(data)),
                          ("expectation", "%e" % model.expected_log_likelihood(data))], file=sys.stdout)


if __name__ == "__main__":
    main(sys.argv[1:])
