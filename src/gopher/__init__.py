"""Secure installation of Go toolchain archives."""

import logging

__version__ = "0.1.0"

# Export protocol interfaces for type hints and dependency injection
from gopher.protocols import (
    FileSystem,
    ProgressReporter,
    VersionInstaller,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "FileSystem",
    "ProgressReporter",
    "VersionInstaller",
]
