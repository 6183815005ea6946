"""Composition primitives."""

from .branch import Branch
from .lambda_ import Lambda, runnable
from .parallel import Parallel
from .passthrough import Assign, Passthrough
from .sequence import Sequence, pipe, pipe2, pipe3, pipe4

__all__ = [
    "Assign",
    "Branch",
    "Lambda",
    "Parallel",
    "Passthrough",
    "Sequence",
    "pipe",
    "pipe2",
    "pipe3",
    "pipe4",
    "runnable",
]
