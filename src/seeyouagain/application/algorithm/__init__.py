# Algorithm Package
from .retrievability import (
    apply_fuzz,
    calculate_interval_modifier,
    forgetting_curve,
    get_fuzz_range,
    next_interval,
)
from .memory import MemoryModel, constrain_difficulty

__all__ = [
    "forgetting_curve",
    "calculate_interval_modifier",
    "get_fuzz_range",
    "apply_fuzz",
    "next_interval",
    "MemoryModel",
    "constrain_difficulty",
]
