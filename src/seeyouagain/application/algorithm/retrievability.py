"""
Retrievability and interval calculations.

Pure computation module with no I/O. The forgetting curve is a power law

    R(t, S) = (1 + FACTOR * t / S) ^ DECAY

with DECAY = -0.5 and FACTOR = 19/81, so R(S, S) = 0.9: stability is the
number of days until recall probability falls to 90%.
"""

from __future__ import annotations

import math
import random
from typing import TYPE_CHECKING

from seeyouagain.domain.constants import DECAY, FACTOR, FUZZ_MIN_INTERVAL, FUZZ_RANGES
from seeyouagain.domain.errors import ConfigurationError
from seeyouagain.domain.ports import RandomSource

if TYPE_CHECKING:
    from seeyouagain.application.config import Parameters


def forgetting_curve(elapsed_days: float, stability: float) -> float:
    """
    Probability of recall after `elapsed_days` for a memory of given stability.

    Returns 1.0 when no time has elapsed. A non-positive stability is treated
    as instantaneous decay (0.0) rather than a division error.
    """
    if elapsed_days <= 0:
        return 1.0
    if stability <= 0:
        return 0.0
    return round(math.pow(1 + FACTOR * elapsed_days / stability, DECAY), 8)


def calculate_interval_modifier(request_retention: float) -> float:
    """
    Invert the forgetting curve: the interval, in units of stability, at which
    retrievability falls to `request_retention`.

    I(r) = (r ^ (1 / DECAY) - 1) / FACTOR, so I(0.9) == 1.0.

    Raises:
        ConfigurationError: If request_retention is outside (0, 1].
    """
    if not 0 < request_retention <= 1:
        raise ConfigurationError(
            f"Requested retention rate should be in the range (0,1], got {request_retention}"
        )
    return round((math.pow(request_retention, 1 / DECAY) - 1) / FACTOR, 8)


def get_fuzz_range(interval: float, elapsed_days: float, maximum_interval: int) -> tuple[int, int]:
    """
    Compute the inclusive (min_ivl, max_ivl) band an interval may be fuzzed into.

    The band half-width grows piecewise with the interval; elapsed_days only
    raises the lower bound so a fuzzed interval never lands at or before the
    current gap.
    """
    delta = 1.0
    for start, end, factor in FUZZ_RANGES:
        delta += factor * max(min(interval, end) - start, 0.0)

    interval = min(interval, maximum_interval)
    min_ivl = max(2, _round_half_up(interval - delta))
    max_ivl = min(_round_half_up(interval + delta), maximum_interval)
    if interval > elapsed_days:
        min_ivl = max(min_ivl, int(elapsed_days) + 1)
    min_ivl = min(min_ivl, max_ivl)
    return min_ivl, max_ivl


def apply_fuzz(
    interval: float,
    elapsed_days: float,
    parameters: Parameters,
    rng: RandomSource | None = None,
) -> int:
    """
    Perturb an interval pseudo-randomly within its fuzz band.

    Returns the rounded interval unchanged when fuzzing is disabled or the
    interval is shorter than 2.5 days. Pass a seeded `rng` for reproducible
    results.
    """
    if not parameters.enable_fuzz or interval < FUZZ_MIN_INTERVAL:
        return _round_half_up(interval)

    source = rng if rng is not None else random.Random()
    min_ivl, max_ivl = get_fuzz_range(interval, elapsed_days, parameters.maximum_interval)
    fuzzed = math.floor(source.random() * (max_ivl - min_ivl + 1) + min_ivl)
    return max(1, min(fuzzed, parameters.maximum_interval))


def next_interval(
    stability: float,
    elapsed_days: float,
    parameters: Parameters,
    rng: RandomSource | None = None,
) -> int:
    """
    Days until the next review so that recall stays at the requested retention.

    The raw interval is clamped to [1, maximum_interval] before fuzzing.
    """
    raw = _round_half_up(stability * parameters.interval_modifier)
    clamped = min(max(1, raw), parameters.maximum_interval)
    return apply_fuzz(clamped, elapsed_days, parameters, rng)


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; intervals round .5 upward.
    return math.floor(value + 0.5)
