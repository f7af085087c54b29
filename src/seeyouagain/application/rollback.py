"""
Rollback and forget.

Rollback is the exact inverse of one grading event: applying it to the card
the event produced restores the card the event started from.
"""

import logging
from dataclasses import replace
from datetime import datetime

from seeyouagain.application.utils.dates import date_diff, ensure_utc
from seeyouagain.domain.errors import IdentityMismatchError, InvalidGradeError
from seeyouagain.domain.models import (
    Card,
    Rating,
    ReviewLogEntry,
    ScheduleOutcome,
    State,
)

logger = logging.getLogger(__name__)


def _is_lapse(log: ReviewLogEntry) -> bool:
    return log.rating == Rating.Again and log.state == State.Review


def rollback(card: Card, log: ReviewLogEntry) -> Card:
    """
    Undo the grading event recorded in `log`.

    Raises:
        InvalidGradeError: If the log records a Manual override.
        IdentityMismatchError: If `card` was not produced by `log`.
    """
    if log.rating == Rating.Manual:
        raise InvalidGradeError("Cannot roll back a Manual override")

    if card.last_review is None or ensure_utc(card.last_review) != ensure_utc(log.review):
        raise IdentityMismatchError(
            f"Card last reviewed at {card.last_review} does not match log review at {log.review}"
        )
    if card.reps == 0:
        raise IdentityMismatchError("Card has no repetitions to roll back")

    lapse = _is_lapse(log)
    if lapse and card.lapses == 0:
        raise IdentityMismatchError("Log records a lapse but the card has no lapses")

    logger.debug(f"Rolling back {log.rating.name} review at {log.review.isoformat()}")
    return replace(
        card,
        due=log.due,
        last_review=log.last_review,
        stability=log.stability,
        difficulty=log.difficulty,
        state=log.state,
        elapsed_days=log.last_elapsed_days,
        scheduled_days=log.scheduled_days,
        reps=card.reps - 1,
        lapses=card.lapses - 1 if lapse else card.lapses,
    )


def forget(card: Card, now: datetime, reset_count: bool = False) -> ScheduleOutcome:
    """
    Reset a card to New, due immediately.

    The returned log is Manual-rated and snapshots the card before the reset.
    Repetition and lapse counts are only cleared when `reset_count` is set.
    """
    now = ensure_utc(now)
    elapsed = date_diff(now, card.last_review, "days") if card.last_review else 0
    log = ReviewLogEntry(
        rating=Rating.Manual,
        state=card.state,
        due=card.due,
        stability=card.stability,
        difficulty=card.difficulty,
        elapsed_days=elapsed,
        last_elapsed_days=card.elapsed_days,
        scheduled_days=card.scheduled_days,
        review=now,
        last_review=card.last_review,
    )
    forgotten = replace(
        card,
        due=now,
        stability=0.0,
        difficulty=0.0,
        elapsed_days=0,
        scheduled_days=0,
        state=State.New,
        reps=0 if reset_count else card.reps,
        lapses=0 if reset_count else card.lapses,
    )
    return ScheduleOutcome(card=forgotten, log=log)
