# auto-import submodules and subpackages for convenience
from . import common, models, types, evaluation, em

from importlib.metadata import version as _distribution_version, PackageNotFoundError
try:  # set global version from the installation catalog
    __version__ = version = _distribution_version('MRFEM')
except PackageNotFoundError:
    from sys import stderr
    stderr.write("Cannot determine MRFEM package version, install properly.\n")
    __version__ = version = "UNKNOWN_VERSION"
