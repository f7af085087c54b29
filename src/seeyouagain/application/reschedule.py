"""
Replay/Reschedule Engine.

Recomputes a card's schedule from its review history, e.g. after the
parameters changed. Replay runs the same transition function as live
grading, so identical parameters, seeds and history always give identical
results.
"""

import functools
import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime

from seeyouagain.application.algorithm.memory import MemoryModel
from seeyouagain.application.config import Parameters
from seeyouagain.application.scheduler import create_scheduler, default_seed_strategy
from seeyouagain.application.utils.dates import date_diff, ensure_utc, now_utc
from seeyouagain.domain.models import (
    Card,
    HistoryEvent,
    MemoryState,
    Rating,
    RescheduleResult,
    ReviewLogEntry,
    ReviewRecord,
    ScheduleOutcome,
    State,
)
from seeyouagain.domain.ports import RandomFactory, SeedStrategy

logger = logging.getLogger(__name__)

HistoryComparator = Callable[[HistoryEvent, HistoryEvent], int]


def by_review_time(a: HistoryEvent, b: HistoryEvent) -> int:
    """Default ordering: oldest event first."""
    ta, tb = ensure_utc(a.review), ensure_utc(b.review)
    return (ta > tb) - (ta < tb)


def empty_card(now: datetime) -> Card:
    """A never-reviewed card due at `now`."""
    return Card(due=ensure_utc(now))


class Rescheduler:
    """
    Replays review histories under one parameter snapshot.
    """

    def __init__(
        self,
        parameters: Parameters,
        seed_strategy: SeedStrategy = default_seed_strategy,
        rng_factory: RandomFactory = random.Random,
    ):
        self.parameters = parameters
        self._seed_strategy = seed_strategy
        self._rng_factory = rng_factory

    def apply_grade(self, card: Card, review: datetime, rating: Rating) -> ScheduleOutcome:
        """Grade a card exactly as live review would."""
        scheduler = create_scheduler(
            card,
            review,
            self.parameters,
            seed_strategy=self._seed_strategy,
            rng_factory=self._rng_factory,
        )
        return scheduler.review(rating)

    def handle_manual_rating(
        self,
        card: Card,
        state: State,
        review: datetime,
        due: datetime | None = None,
        stability: float | None = None,
        difficulty: float | None = None,
    ) -> ScheduleOutcome:
        """
        Override a card's schedule without running the memory model.

        A New override resets the card. Any other state requires an explicit
        due date; stability and difficulty are kept unless given.

        Raises:
            ValueError: If due is missing for a non-New override.
        """
        review = ensure_utc(review)
        interval = date_diff(review, card.last_review, "days") if card.last_review else 0
        log = ReviewLogEntry(
            rating=Rating.Manual,
            state=card.state,
            due=card.due,
            stability=card.stability,
            difficulty=card.difficulty,
            elapsed_days=interval,
            last_elapsed_days=card.elapsed_days,
            scheduled_days=card.scheduled_days,
            review=review,
            last_review=card.last_review,
        )

        if state == State.New:
            next_card = replace(empty_card(review), last_review=review)
            return ScheduleOutcome(card=next_card, log=log)

        if due is None:
            raise ValueError("A manual override to a non-New state requires a due date")
        due = ensure_utc(due)
        next_card = replace(
            card,
            state=state,
            due=due,
            last_review=review,
            stability=stability if stability is not None else card.stability,
            difficulty=difficulty if difficulty is not None else card.difficulty,
            elapsed_days=interval,
            scheduled_days=date_diff(due, review, "days"),
            reps=card.reps + 1,
        )
        return ScheduleOutcome(card=next_card, log=log)

    def replay_event(self, card: Card, event: HistoryEvent) -> ScheduleOutcome:
        """
        Apply one history event.

        Graded events run through the scheduler. Manual events are applied
        as direct overrides with handle_manual_rating, bypassing the memory
        model.
        """
        if event.rating == Rating.Manual:
            return self.handle_manual_rating(
                card,
                event.state,
                event.review,
                due=event.due,
                stability=event.stability,
                difficulty=event.difficulty,
            )
        return self.apply_grade(card, event.review, event.rating)

    def replay(
        self,
        history: Iterable[HistoryEvent],
        first_card: Card | None = None,
        skip_manual: bool = True,
    ) -> list[ScheduleOutcome]:
        """
        Fold history events, in the given order, over an initial card.

        The initial card defaults to an empty card due at the first replayed
        event. With `skip_manual`, Manual events are passed over and leave
        the card untouched; otherwise their overrides are applied. Returns
        one outcome per replayed event.
        """
        trail: list[ScheduleOutcome] = []
        card = first_card
        for event in history:
            if event.rating == Rating.Manual and skip_manual:
                logger.debug(f"Skipping Manual event at {event.review.isoformat()}")
                continue
            if card is None:
                card = empty_card(event.review)
            outcome = self.replay_event(card, event)
            trail.append(outcome)
            card = outcome.card
        return trail

    def calculate_manual_record(
        self,
        current_card: Card,
        now: datetime,
        record: ScheduleOutcome | None,
        update_memory_state: bool = False,
    ) -> ScheduleOutcome | None:
        """
        Manual outcome moving `current_card` onto the replayed schedule.

        Returns None if there is nothing replayed or the due date already
        matches.
        """
        if record is None:
            return None
        target = record.card
        if ensure_utc(current_card.due) == ensure_utc(target.due):
            return None
        return self.handle_manual_rating(
            current_card,
            target.state,
            now,
            due=target.due,
            stability=target.stability if update_memory_state else None,
            difficulty=target.difficulty if update_memory_state else None,
        )

    def reschedule(
        self,
        current_card: Card,
        history: Iterable[HistoryEvent],
        *,
        order_by: HistoryComparator | None = None,
        skip_manual: bool = True,
        update_memory_state: bool = False,
        now: datetime | None = None,
        first_card: Card | None = None,
    ) -> RescheduleResult:
        """
        Replay a card's history and reconcile the card with the result.

        Args:
            current_card: The card as currently persisted.
            history: Events to replay; sorted with `order_by` first.
            order_by: Two-argument comparator; defaults to review time.
            skip_manual: Pass over Manual events. When False their overrides
                are applied with handle_manual_rating.
            update_memory_state: Carry the replayed stability and difficulty
                onto the current card.
            now: Time of the reconciling Manual event. Defaults to the wall
                clock, so pass it explicitly when results must be reproducible.
            first_card: Starting card for the replay.

        Returns:
            The per-event audit trail and the reconciling outcome (or None).
        """
        events = sorted(history, key=functools.cmp_to_key(order_by or by_review_time))
        trail = self.replay(events, first_card=first_card, skip_manual=skip_manual)
        logger.debug(f"Replayed {len(trail)} history events")

        reschedule_item = self.calculate_manual_record(
            current_card,
            now if now is not None else now_utc(),
            trail[-1] if trail else None,
            update_memory_state=update_memory_state,
        )
        if reschedule_item is not None:
            logger.info(
                f"Rescheduled card from {current_card.due.isoformat()} "
                f"to {reschedule_item.card.due.isoformat()}"
            )
        return RescheduleResult(audit_trail=trail, reschedule_item=reschedule_item)


def replay_memory_state(
    records: Iterable[ReviewRecord], parameters: Parameters
) -> MemoryState | None:
    """
    Rebuild a memory state from (rating, delta_t) records alone.

    Returns None for an empty record list.

    Raises:
        InvalidGradeError: If a record carries a Manual rating.
    """
    model = MemoryModel(parameters)
    state: MemoryState | None = None
    for record in records:
        state = model.next_state(state, record.delta_t, record.rating)
    return state
