"""Platform abstraction layer."""

from .matrix import (
    BUILD_MATRIX,
    Platform,
)
from .process import (
    ProcessError,
    run,
)

__all__ = [
    # matrix
    "BUILD_MATRIX",
    "Platform",
    # process
    "ProcessError",
    "run",
]
