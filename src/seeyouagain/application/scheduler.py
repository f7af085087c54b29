"""
Scheduler - the review state machine.

    New -> Learning -> Review <-> Relearning

A scheduler is bound to one card and one review time. It runs the
state-specific transition for each grade against the same starting card and
never mutates it; `preview` returns all four outcomes and `review` returns
one. Outcomes are memoised, so `review(g)` always equals `preview()[g]`.

Two policies exist:
- ShortTermScheduler (enable_short_term=True): minute-level learning steps
  before a card graduates to day intervals.
- LongTermScheduler (enable_short_term=False): every grade schedules whole
  days; New cards go straight to Review.
"""

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime

from seeyouagain.application.algorithm.memory import MemoryModel
from seeyouagain.application.algorithm.retrievability import next_interval
from seeyouagain.application.config import Parameters
from seeyouagain.application.convert import to_grade
from seeyouagain.application.utils.dates import date_diff_in_days, date_scheduler, ensure_utc
from seeyouagain.domain.constants import (
    LEARNING_STEP_MINUTES,
    NEW_STEP_MINUTES,
    RELEARNING_AGAIN_MINUTES,
    SHORT_TERM_GRADUATING_GRADE,
)
from seeyouagain.domain.models import (
    GRADES,
    Card,
    MemoryState,
    Preview,
    Rating,
    ReviewLogEntry,
    ScheduleOutcome,
    State,
)
from seeyouagain.domain.ports import RandomFactory, RandomSource, SeedStrategy

logger = logging.getLogger(__name__)


def default_seed_strategy(card: Card, now: datetime) -> str:
    """
    Seed from the review time, the repetition count and the memory state.

    Replaying the same history therefore fuzzes every interval identically.
    """
    time_ms = int(now.timestamp() * 1000)
    return f"{time_ms}_{card.reps}_{card.difficulty * card.stability}"


def card_id_seed_strategy(card_id: str | int) -> SeedStrategy:
    """
    Build a seed strategy that also mixes in a stable card identifier.

    Two cards graded at the same instant with the same memory state then
    fuzz independently.
    """

    def strategy(card: Card, now: datetime) -> str:
        return f"{card_id}_{default_seed_strategy(card, now)}"

    return strategy


class Scheduler(ABC):
    """
    Base state machine: bookkeeping, dispatch, logging and interval helpers.

    Subclasses supply the per-state transitions.
    """

    def __init__(
        self,
        card: Card,
        now: datetime,
        parameters: Parameters,
        seed_strategy: SeedStrategy = default_seed_strategy,
        rng_factory: RandomFactory = random.Random,
    ):
        """
        Args:
            card: Card before the review; never modified.
            now: Review time.
            parameters: Parameter snapshot used for every outcome.
            seed_strategy: Builds the fuzz seed for this review.
            rng_factory: Turns the seed into a RandomSource.
        """
        self.parameters = parameters
        self.model = MemoryModel(parameters)
        self.review_time = ensure_utc(now)
        self.last = card
        self.current = self._init(card)
        self._seed = seed_strategy(self.current, self.review_time)
        self._rng_factory = rng_factory
        self._next: dict[Rating, ScheduleOutcome] = {}

    def _init(self, card: Card) -> Card:
        elapsed = 0
        if card.state != State.New and card.last_review is not None:
            elapsed = date_diff_in_days(card.last_review, self.review_time)
            if elapsed < 0:
                logger.warning(
                    f"Review at {self.review_time.isoformat()} precedes last review "
                    f"{card.last_review.isoformat()}; treating elapsed days as 0"
                )
                elapsed = 0
        return replace(
            card,
            last_review=self.review_time,
            elapsed_days=elapsed,
            reps=card.reps + 1,
        )

    @property
    def seed(self) -> str:
        return self._seed

    def preview(self) -> Preview:
        """One outcome per grade, computed against the same starting card."""
        for grade in GRADES:
            self.review(grade)
        return Preview(self._next)

    def review(self, grade: Rating) -> ScheduleOutcome:
        """
        Outcome of grading the card.

        Raises:
            InvalidGradeError: If grade is Manual or not a grade.
        """
        g = to_grade(grade)
        if g not in self._next:
            match self.last.state:
                case State.New:
                    self._next.update(self._new_state(g))
                case State.Learning | State.Relearning:
                    self._next.update(self._learning_state(g))
                case State.Review:
                    self._next.update(self._review_state(g))
            outcome = self._next[g]
            logger.debug(
                f"{self.last.state.name} --{g.name}--> {outcome.card.state.name} "
                f"(S={outcome.card.stability}, D={outcome.card.difficulty}, "
                f"ivl={outcome.card.scheduled_days}d)"
            )
        return self._next[g]

    @abstractmethod
    def _new_state(self, grade: Rating) -> dict[Rating, ScheduleOutcome]: ...

    @abstractmethod
    def _learning_state(self, grade: Rating) -> dict[Rating, ScheduleOutcome]: ...

    @abstractmethod
    def _review_state(self, grade: Rating) -> dict[Rating, ScheduleOutcome]: ...

    # ---------- Helpers ----------

    def _rng(self) -> RandomSource:
        # Fresh source per interval so results don't depend on evaluation order.
        return self._rng_factory(self._seed)

    def _next_interval(self, stability: float) -> int:
        return next_interval(
            stability, self.current.elapsed_days, self.parameters, self._rng()
        )

    def _cap(self, interval: int) -> int:
        return min(interval, self.parameters.maximum_interval)

    def _review_memory(self) -> dict[Rating, MemoryState]:
        memory = self.last.memory_state
        return {
            g: self.model.next_state(memory, self.current.elapsed_days, g) for g in GRADES
        }

    def _outcome(self, grade: Rating, card: Card) -> ScheduleOutcome:
        return ScheduleOutcome(card=card, log=self.build_log(grade))

    def _in_days(self, base: Card, interval: int, state: State, **changes) -> Card:
        return replace(
            base,
            scheduled_days=interval,
            due=date_scheduler(self.review_time, interval, is_day=True),
            state=state,
            **changes,
        )

    def _in_minutes(self, base: Card, minutes: int, state: State, **changes) -> Card:
        return replace(
            base,
            scheduled_days=0,
            due=date_scheduler(self.review_time, minutes),
            state=state,
            **changes,
        )

    def build_log(self, rating: Rating) -> ReviewLogEntry:
        """Snapshot of the card before this review."""
        last = self.last
        return ReviewLogEntry(
            rating=rating,
            state=last.state,
            due=last.due,
            stability=last.stability,
            difficulty=last.difficulty,
            elapsed_days=self.current.elapsed_days,
            last_elapsed_days=last.elapsed_days,
            scheduled_days=last.scheduled_days,
            review=self.review_time,
            last_review=last.last_review,
        )


class ShortTermScheduler(Scheduler):
    """Scheduler with minute-level learning and relearning steps."""

    def _new_state(self, grade: Rating) -> dict[Rating, ScheduleOutcome]:
        base = replace(
            self.current,
            stability=self.model.init_stability(grade),
            difficulty=self.model.init_difficulty(grade),
        )
        if grade == SHORT_TERM_GRADUATING_GRADE:
            interval = self._next_interval(base.stability)
            card = self._in_days(base, interval, State.Review)
        else:
            card = self._in_minutes(base, NEW_STEP_MINUTES[grade], State.Learning)
        return {grade: self._outcome(grade, card)}

    def _learning_state(self, grade: Rating) -> dict[Rating, ScheduleOutcome]:
        last = self.last
        base = replace(
            self.current,
            difficulty=self.model.next_difficulty(last.difficulty, grade),
            stability=self.model.next_short_term_stability(last.stability, grade),
        )
        match grade:
            case Rating.Again | Rating.Hard:
                card = self._in_minutes(base, LEARNING_STEP_MINUTES[grade], last.state)
            case Rating.Good:
                interval = self._next_interval(base.stability)
                card = self._in_days(base, interval, State.Review)
            case Rating.Easy:
                good_stability = self.model.next_short_term_stability(
                    last.stability, Rating.Good
                )
                good_interval = self._next_interval(good_stability)
                interval = self._cap(max(self._next_interval(base.stability), good_interval + 1))
                card = self._in_days(base, interval, State.Review)
        return {grade: self._outcome(grade, card)}

    def _review_state(self, grade: Rating) -> dict[Rating, ScheduleOutcome]:
        memory = self._review_memory()
        nexts = {
            g: replace(self.current, stability=m.stability, difficulty=m.difficulty)
            for g, m in memory.items()
        }

        hard_interval = self._next_interval(memory[Rating.Hard].stability)
        good_interval = self._next_interval(memory[Rating.Good].stability)
        hard_interval = min(hard_interval, good_interval)
        good_interval = self._cap(max(good_interval, hard_interval + 1))
        easy_interval = self._cap(
            max(self._next_interval(memory[Rating.Easy].stability), good_interval + 1)
        )

        again = self._in_minutes(
            nexts[Rating.Again],
            RELEARNING_AGAIN_MINUTES,
            State.Relearning,
            lapses=self.current.lapses + 1,
        )
        return {
            Rating.Again: self._outcome(Rating.Again, again),
            Rating.Hard: self._outcome(
                Rating.Hard, self._in_days(nexts[Rating.Hard], hard_interval, State.Review)
            ),
            Rating.Good: self._outcome(
                Rating.Good, self._in_days(nexts[Rating.Good], good_interval, State.Review)
            ),
            Rating.Easy: self._outcome(
                Rating.Easy, self._in_days(nexts[Rating.Easy], easy_interval, State.Review)
            ),
        }


class LongTermScheduler(Scheduler):
    """Scheduler without sub-day steps: every outcome is due in whole days."""

    def _ordered_intervals(self, memory: dict[Rating, MemoryState]) -> dict[Rating, int]:
        again = self._next_interval(memory[Rating.Again].stability)
        hard = self._next_interval(memory[Rating.Hard].stability)
        good = self._next_interval(memory[Rating.Good].stability)
        easy = self._next_interval(memory[Rating.Easy].stability)

        again = min(again, hard)
        hard = self._cap(max(hard, again + 1))
        good = self._cap(max(good, hard + 1))
        easy = self._cap(max(easy, good + 1))
        return {Rating.Again: again, Rating.Hard: hard, Rating.Good: good, Rating.Easy: easy}

    def _new_state(self, grade: Rating) -> dict[Rating, ScheduleOutcome]:
        memory = {g: self.model.next_state(None, 0, g) for g in GRADES}
        intervals = self._ordered_intervals(memory)
        outcomes = {}
        for g in GRADES:
            base = replace(
                self.current,
                stability=memory[g].stability,
                difficulty=memory[g].difficulty,
            )
            outcomes[g] = self._outcome(g, self._in_days(base, intervals[g], State.Review))
        return outcomes

    def _learning_state(self, grade: Rating) -> dict[Rating, ScheduleOutcome]:
        return self._graded_days(again_state=self.last.state, again_lapses=self.current.lapses)

    def _review_state(self, grade: Rating) -> dict[Rating, ScheduleOutcome]:
        return self._graded_days(
            again_state=State.Relearning, again_lapses=self.current.lapses + 1
        )

    def _graded_days(self, again_state: State, again_lapses: int) -> dict[Rating, ScheduleOutcome]:
        memory = self._review_memory()
        intervals = self._ordered_intervals(memory)
        outcomes = {}
        for g in GRADES:
            base = replace(
                self.current,
                stability=memory[g].stability,
                difficulty=memory[g].difficulty,
            )
            match g:
                case Rating.Again:
                    card = self._in_days(base, intervals[g], again_state, lapses=again_lapses)
                case _:
                    card = self._in_days(base, intervals[g], State.Review)
            outcomes[g] = self._outcome(g, card)
        return outcomes


def create_scheduler(
    card: Card,
    now: datetime,
    parameters: Parameters,
    seed_strategy: SeedStrategy = default_seed_strategy,
    rng_factory: RandomFactory = random.Random,
) -> Scheduler:
    """Pick the scheduler policy for the parameters' short-term setting."""
    cls = ShortTermScheduler if parameters.enable_short_term else LongTermScheduler
    return cls(card, now, parameters, seed_strategy=seed_strategy, rng_factory=rng_factory)
