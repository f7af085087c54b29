"""
Spaced Repetition Service - Application layer orchestrator.

The single entry point a host uses: create cards, preview and apply grades,
query retrievability, undo, forget and reschedule. Every call captures the
current parameter snapshot once, so a concurrent parameter update never
affects a computation already in progress.
"""

import logging
import random
from collections.abc import Iterable
from datetime import datetime

from seeyouagain.application.algorithm.retrievability import forgetting_curve
from seeyouagain.application.config import ParameterStore, Parameters
from seeyouagain.application.reschedule import Rescheduler, empty_card
from seeyouagain.application.rollback import forget as forget_card
from seeyouagain.application.rollback import rollback as rollback_card
from seeyouagain.application.scheduler import create_scheduler, default_seed_strategy
from seeyouagain.application.utils.dates import date_diff, ensure_utc, now_utc
from seeyouagain.domain.models import (
    Card,
    HistoryEvent,
    Preview,
    Rating,
    RescheduleResult,
    ReviewLogEntry,
    ScheduleOutcome,
    State,
)
from seeyouagain.domain.ports import RandomFactory, SeedStrategy

logger = logging.getLogger(__name__)


class SpacedRepetitionService:
    """
    Application service for scheduling cards.

    Depends on a ParameterStore for configuration and on injected seed and
    random-source factories for fuzz, so tests can make every outcome exact.
    """

    def __init__(
        self,
        store: ParameterStore | None = None,
        seed_strategy: SeedStrategy = default_seed_strategy,
        rng_factory: RandomFactory = random.Random,
    ):
        """
        Args:
            store: Parameter store; a store with default parameters if not provided.
            seed_strategy: Builds the fuzz seed for each review.
            rng_factory: Turns a seed into a RandomSource.
        """
        self.store = store or ParameterStore()
        self._seed_strategy = seed_strategy
        self._rng_factory = rng_factory

    @property
    def parameters(self) -> Parameters:
        return self.store.parameters

    def create_item(self, now: datetime | None = None) -> Card:
        """A New card due at `now` (default: the current time)."""
        return empty_card(now if now is not None else now_utc())

    def preview(self, card: Card, now: datetime) -> Preview:
        """All four outcomes for grading `card` at `now`."""
        return self._scheduler(card, now).preview()

    def apply_grade(self, card: Card, now: datetime, grade: Rating) -> ScheduleOutcome:
        """
        Grade `card` at `now`.

        Raises:
            InvalidGradeError: If grade is Manual or unknown.
        """
        outcome = self._scheduler(card, now).review(grade)
        logger.debug(
            f"Graded {outcome.log.rating.name}: due {outcome.card.due.isoformat()}"
        )
        return outcome

    def retrievability(
        self, card: Card, now: datetime | None = None, formatted: bool = False
    ) -> float | str:
        """
        Current probability of recall.

        New cards have nothing to recall and report 0. With `formatted`, the
        value is returned as a percentage string such as "90.00%".
        """
        value = 0.0
        if card.state != State.New:
            elapsed = 0
            if card.last_review is not None:
                current = now if now is not None else now_utc()
                elapsed = max(date_diff(current, card.last_review, "days"), 0)
            value = forgetting_curve(elapsed, card.stability)
        if formatted:
            return f"{value * 100:.2f}%"
        return value

    def rollback(self, card: Card, log: ReviewLogEntry) -> Card:
        """
        Undo one grading event.

        Raises:
            IdentityMismatchError: If `card` was not produced by `log`.
            InvalidGradeError: If `log` is a Manual override.
        """
        return rollback_card(card, log)

    def forget(self, card: Card, now: datetime, reset_count: bool = False) -> ScheduleOutcome:
        """Reset `card` to New, due at `now`."""
        return forget_card(card, now, reset_count=reset_count)

    def reschedule(
        self, card: Card, history: Iterable[HistoryEvent], **options
    ) -> RescheduleResult:
        """
        Replay `history` under the current parameters.

        Options are those of Rescheduler.reschedule: order_by, skip_manual,
        update_memory_state, now and first_card.
        """
        rescheduler = Rescheduler(
            self.store.parameters,
            seed_strategy=self._seed_strategy,
            rng_factory=self._rng_factory,
        )
        return rescheduler.reschedule(card, history, **options)

    def is_due(self, card: Card, now: datetime | None = None) -> bool:
        """True once the card's due time has been reached."""
        current = now if now is not None else now_utc()
        return ensure_utc(card.due) <= ensure_utc(current)

    def _scheduler(self, card: Card, now: datetime):
        return create_scheduler(
            card,
            now,
            self.store.parameters,
            seed_strategy=self._seed_strategy,
            rng_factory=self._rng_factory,
        )


_default_service: SpacedRepetitionService | None = None


def get_default_service() -> SpacedRepetitionService:
    """Process-wide service with default parameters, created on first use."""
    global _default_service
    if _default_service is None:
        _default_service = SpacedRepetitionService()
    return _default_service


def create_item(now: datetime | None = None) -> Card:
    return get_default_service().create_item(now)


def preview(card: Card, now: datetime) -> Preview:
    return get_default_service().preview(card, now)


def apply_grade(card: Card, now: datetime, grade: Rating) -> ScheduleOutcome:
    return get_default_service().apply_grade(card, now, grade)


def retrievability(
    card: Card, now: datetime | None = None, formatted: bool = False
) -> float | str:
    return get_default_service().retrievability(card, now, formatted=formatted)


def rollback(card: Card, log: ReviewLogEntry) -> Card:
    return get_default_service().rollback(card, log)


def forget(card: Card, now: datetime, reset_count: bool = False) -> ScheduleOutcome:
    return get_default_service().forget(card, now, reset_count=reset_count)


def reschedule(card: Card, history: Iterable[HistoryEvent], **options) -> RescheduleResult:
    return get_default_service().reschedule(card, history, **options)


def is_due(card: Card, now: datetime | None = None) -> bool:
    return get_default_service().is_due(card, now)
