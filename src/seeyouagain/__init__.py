# seeyouagain: FSRS memory scheduling
from seeyouagain.application.config import (
    Parameters,
    ParameterStore,
    generate_parameters,
    resolve_parameters,
)
from seeyouagain.application.convert import (
    item_from_dict,
    item_to_dict,
    log_from_dict,
    log_to_dict,
    to_datetime,
    to_rating,
    to_state,
)
from seeyouagain.application.reschedule import Rescheduler, replay_memory_state
from seeyouagain.application.scheduler import create_scheduler, default_seed_strategy
from seeyouagain.application.service import (
    SpacedRepetitionService,
    apply_grade,
    create_item,
    forget,
    is_due,
    preview,
    reschedule,
    retrievability,
    rollback,
)
from seeyouagain.consts import FSRS_VERSION, VERSION
from seeyouagain.domain import (
    GRADES,
    Card,
    ConfigurationError,
    HistoryEvent,
    IdentityMismatchError,
    InvalidGradeError,
    Item,
    MemoryState,
    Preview,
    Rating,
    RescheduleResult,
    ReviewLogEntry,
    ReviewRecord,
    ScheduleOutcome,
    SchedulingError,
    State,
)

__version__ = VERSION

__all__ = [
    "FSRS_VERSION",
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
    "SchedulingError",
    "ConfigurationError",
    "InvalidGradeError",
    "IdentityMismatchError",
    "Parameters",
    "ParameterStore",
    "generate_parameters",
    "resolve_parameters",
    "Rescheduler",
    "replay_memory_state",
    "create_scheduler",
    "default_seed_strategy",
    "SpacedRepetitionService",
    "create_item",
    "preview",
    "apply_grade",
    "retrievability",
    "rollback",
    "forget",
    "reschedule",
    "is_due",
    "to_rating",
    "to_state",
    "to_datetime",
    "item_to_dict",
    "item_from_dict",
    "log_to_dict",
    "log_from_dict",
]
