"""
Ports (interfaces) for the sources of non-determinism.

The scheduler depends on these abstractions so fuzzing can be reproduced by
fixing a seed, or replaced outright in tests.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Protocol, runtime_checkable

from .models import Card


@runtime_checkable
class RandomSource(Protocol):
    """
    Anything that yields uniform floats in [0, 1).

    `random.Random` satisfies this protocol.
    """

    def random(self) -> float: ...


# Builds the seed for a review from the card (after the review's bookkeeping) and time.
SeedStrategy = Callable[[Card, datetime], str]

# Turns a seed into a RandomSource.
RandomFactory = Callable[[str], RandomSource]
