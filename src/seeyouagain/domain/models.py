"""
Domain models for the scheduling engine.

These are pure data structures with no I/O or external dependencies.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum


class Rating(IntEnum):
    """Outcome of a review. Manual is an administrative override, not a grade."""

    Manual = 0
    Again = 1
    Hard = 2
    Good = 3
    Easy = 4


class State(IntEnum):
    """Lifecycle state of a card."""

    New = 0
    Learning = 1
    Review = 2
    Relearning = 3


GRADES: tuple[Rating, ...] = (Rating.Again, Rating.Hard, Rating.Good, Rating.Easy)


@dataclass(frozen=True)
class MemoryState:
    """
    The memory projection of a card.

    Attributes:
        stability: Days until recall probability drops to 90%.
        difficulty: Card difficulty on the 1-10 scale.
    """

    stability: float
    difficulty: float


@dataclass(frozen=True)
class Card:
    """
    A schedulable learning item.

    Cards are immutable; every transition returns a new instance. A New card
    has zero stability and difficulty until its first grade.
    """

    due: datetime
    stability: float = 0.0
    difficulty: float = 0.0
    elapsed_days: int = 0
    scheduled_days: int = 0
    reps: int = 0
    lapses: int = 0
    state: State = State.New
    last_review: datetime | None = None

    @property
    def memory_state(self) -> MemoryState | None:
        """Stability/difficulty pair, or None while the card has never been graded."""
        if self.state == State.New and self.stability == 0 and self.difficulty == 0:
            return None
        return MemoryState(stability=self.stability, difficulty=self.difficulty)


# The engine-agnostic name used by callers that schedule arbitrary items.
Item = Card


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    Immutable record of one grading event.

    Every card-derived field holds the value the card had *before* the event,
    except `elapsed_days`, which is the gap measured for this event.

    Attributes:
        rating: Grade given (or Manual for overrides).
        state: Card state before the event.
        due: Due date before the event.
        stability: Stability before the event.
        difficulty: Difficulty before the event.
        elapsed_days: Days since the previous review, measured at this event.
        last_elapsed_days: The card's elapsed_days before the event.
        scheduled_days: The card's scheduled_days before the event.
        review: Timestamp of the event.
        last_review: The card's last_review before the event.
    """

    rating: Rating
    state: State
    due: datetime
    stability: float
    difficulty: float
    elapsed_days: int
    last_elapsed_days: int
    scheduled_days: int
    review: datetime
    last_review: datetime | None = None


@dataclass(frozen=True)
class ScheduleOutcome:
    """A would-be (or committed) next card paired with the log that records it."""

    card: Card
    log: ReviewLogEntry


class Preview(Mapping[Rating, ScheduleOutcome]):
    """
    The four-way forecast for a card: one outcome per grade.

    Iterates over grades in Again, Hard, Good, Easy order.
    """

    def __init__(self, outcomes: Mapping[Rating, ScheduleOutcome]):
        missing = [g.name for g in GRADES if g not in outcomes]
        if missing:
            raise ValueError(f"Preview is missing outcomes for: {', '.join(missing)}")
        self._outcomes = {g: outcomes[g] for g in GRADES}

    def __getitem__(self, grade: Rating) -> ScheduleOutcome:
        return self._outcomes[grade]

    def __iter__(self) -> Iterator[Rating]:
        return iter(self._outcomes)

    def __len__(self) -> int:
        return len(self._outcomes)

    def __repr__(self) -> str:
        parts = ", ".join(
            f"{g.name}: due={o.card.due.isoformat()}" for g, o in self._outcomes.items()
        )
        return f"Preview({parts})"

    def outcomes(self) -> list[ScheduleOutcome]:
        """Outcomes in grade order."""
        return list(self._outcomes.values())


@dataclass(frozen=True)
class HistoryEvent:
    """
    One historical grading event to replay.

    Graded events only need `rating` and `review`. Manual events carry an
    explicit override: `state` is required, and `due` is required unless the
    override resets the card to New.
    """

    rating: Rating
    review: datetime
    state: State | None = None
    due: datetime | None = None
    stability: float | None = None
    difficulty: float | None = None

    def __post_init__(self):
        if self.rating == Rating.Manual:
            if self.state is None:
                raise ValueError("Manual history events require a target state")
            if self.state != State.New and self.due is None:
                raise ValueError("Manual history events require a due date unless state is New")


@dataclass(frozen=True)
class ReviewRecord:
    """
    A rating and the whole-day gap since the previous review.

    Used to rebuild a MemoryState without a full card.
    """

    rating: Rating
    delta_t: int


@dataclass(frozen=True)
class RescheduleResult:
    """Result of replaying a card's history."""

    audit_trail: list[ScheduleOutcome]
    reschedule_item: ScheduleOutcome | None
