"""
Conversion between loose inputs and domain types.

Hosts usually persist cards as plain dicts (e.g. note frontmatter) with
ISO-8601 timestamps and integer enums; these helpers turn such data back
into validated domain objects and vice versa.
"""

from datetime import datetime, timezone
from typing import Any

from seeyouagain.application.utils.dates import ensure_utc
from seeyouagain.domain.errors import InvalidGradeError
from seeyouagain.domain.models import Card, Rating, ReviewLogEntry, State

CARD_NUMERIC_FIELDS = (
    "stability",
    "difficulty",
    "elapsed_days",
    "scheduled_days",
    "reps",
    "lapses",
)


def to_rating(value: Any) -> Rating:
    """Accept a Rating, its integer value, or its name (case-insensitive)."""
    if isinstance(value, Rating):
        return value
    if isinstance(value, str):
        for rating in Rating:
            if rating.name.lower() == value.strip().lower():
                return rating
        raise InvalidGradeError(f"Unknown rating: {value!r}")
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return Rating(value)
        except ValueError:
            raise InvalidGradeError(f"Unknown rating: {value!r}") from None
    raise InvalidGradeError(f"Unknown rating: {value!r}")


def to_grade(value: Any) -> Rating:
    """Like to_rating, but Manual is rejected: only Again/Hard/Good/Easy are grades."""
    rating = to_rating(value)
    if rating == Rating.Manual:
        raise InvalidGradeError("Manual is not a grade; use Again, Hard, Good or Easy")
    return rating


def to_state(value: Any) -> State:
    """Accept a State, its integer value, or its name (case-insensitive)."""
    if isinstance(value, State):
        return value
    if isinstance(value, str):
        for state in State:
            if state.name.lower() == value.strip().lower():
                return state
        raise ValueError(f"Unknown state: {value!r}")
    if isinstance(value, int) and not isinstance(value, bool):
        return State(value)
    raise ValueError(f"Unknown state: {value!r}")


def to_datetime(value: Any) -> datetime:
    """
    Accept a datetime, an ISO-8601 string, or epoch milliseconds.

    Naive values are taken to be UTC. The result is always UTC-aware.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return ensure_utc(datetime.fromisoformat(text))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    raise ValueError(f"Invalid date: {value!r}")


def _isoformat(value: datetime | None) -> str | None:
    return ensure_utc(value).isoformat() if value is not None else None


def card_to_dict(card: Card) -> dict[str, Any]:
    """Serialize a card to primitives."""
    return {
        "due": _isoformat(card.due),
        "stability": card.stability,
        "difficulty": card.difficulty,
        "elapsed_days": card.elapsed_days,
        "scheduled_days": card.scheduled_days,
        "reps": card.reps,
        "lapses": card.lapses,
        "state": int(card.state),
        "last_review": _isoformat(card.last_review),
    }


def is_valid_card_data(data: Any) -> bool:
    """Check that a dict carries every field card_from_dict needs."""
    if not isinstance(data, dict) or "due" not in data or "state" not in data:
        return False
    return all(
        isinstance(data.get(name), (int, float)) and not isinstance(data.get(name), bool)
        for name in CARD_NUMERIC_FIELDS
    )


def card_from_dict(data: dict[str, Any]) -> Card:
    """
    Build a card from primitives.

    Raises:
        ValueError: If a field is missing or malformed.
    """
    if not is_valid_card_data(data):
        raise ValueError(f"Invalid card data: {data!r}")
    last_review = data.get("last_review")
    return Card(
        due=to_datetime(data["due"]),
        stability=float(data["stability"]),
        difficulty=float(data["difficulty"]),
        elapsed_days=int(data["elapsed_days"]),
        scheduled_days=int(data["scheduled_days"]),
        reps=int(data["reps"]),
        lapses=int(data["lapses"]),
        state=to_state(data["state"]),
        last_review=to_datetime(last_review) if last_review is not None else None,
    )


def log_to_dict(log: ReviewLogEntry) -> dict[str, Any]:
    """Serialize a review log entry to primitives."""
    return {
        "rating": int(log.rating),
        "state": int(log.state),
        "due": _isoformat(log.due),
        "stability": log.stability,
        "difficulty": log.difficulty,
        "elapsed_days": log.elapsed_days,
        "last_elapsed_days": log.last_elapsed_days,
        "scheduled_days": log.scheduled_days,
        "review": _isoformat(log.review),
        "last_review": _isoformat(log.last_review),
    }


def log_from_dict(data: dict[str, Any]) -> ReviewLogEntry:
    """
    Build a review log entry from primitives.

    Raises:
        ValueError: If a field is missing or malformed.
    """
    try:
        last_review = data.get("last_review")
        return ReviewLogEntry(
            rating=to_rating(data["rating"]),
            state=to_state(data["state"]),
            due=to_datetime(data["due"]),
            stability=float(data["stability"]),
            difficulty=float(data["difficulty"]),
            elapsed_days=int(data["elapsed_days"]),
            last_elapsed_days=int(data["last_elapsed_days"]),
            scheduled_days=int(data["scheduled_days"]),
            review=to_datetime(data["review"]),
            last_review=to_datetime(last_review) if last_review is not None else None,
        )
    except KeyError as e:
        raise ValueError(f"Review log is missing field {e}") from e


# Engine-agnostic names, matching the Item alias.
item_to_dict = card_to_dict
item_from_dict = card_from_dict
