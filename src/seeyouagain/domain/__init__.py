# Domain Package
from .errors import (
    ConfigurationError,
    IdentityMismatchError,
    InvalidGradeError,
    SchedulingError,
)
from .models import (
    GRADES,
    Card,
    HistoryEvent,
    Item,
    MemoryState,
    Preview,
    Rating,
    RescheduleResult,
    ReviewLogEntry,
    ReviewRecord,
    ScheduleOutcome,
    State,
)
from .ports import RandomFactory, RandomSource, SeedStrategy

__all__ = [
    "GRADES",
    "Card",
    "Item",
    "HistoryEvent",
    "MemoryState",
    "Preview",
    "Rating",
    "RescheduleResult",
    "ReviewLogEntry",
    "ReviewRecord",
    "ScheduleOutcome",
    "State",
    "RandomSource",
    "RandomFactory",
    "SeedStrategy",
    "SchedulingError",
    "ConfigurationError",
    "InvalidGradeError",
    "IdentityMismatchError",
]
