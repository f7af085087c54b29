"""Tests for the review state machine."""

from dataclasses import replace
from datetime import timedelta

import pytest

from seeyouagain.application.algorithm import MemoryModel
from seeyouagain.application.config import Parameters
from seeyouagain.application.scheduler import (
    LongTermScheduler,
    ShortTermScheduler,
    card_id_seed_strategy,
    create_scheduler,
    default_seed_strategy,
)
from seeyouagain.domain.constants import S_MIN
from seeyouagain.domain.errors import InvalidGradeError
from seeyouagain.domain.models import GRADES, Card, Preview, Rating, State


def test_create_scheduler_picks_policy(new_card, now, parameters, long_term_parameters):
    assert isinstance(create_scheduler(new_card, now, parameters), ShortTermScheduler)
    assert isinstance(create_scheduler(new_card, now, long_term_parameters), LongTermScheduler)


# ---------- Preview / review ----------


class TestPreview:
    def test_four_distinct_grades(self, new_card, now, parameters):
        preview = create_scheduler(new_card, now, parameters).preview()
        assert isinstance(preview, Preview)
        assert list(preview) == list(GRADES)
        assert len({id(o) for o in preview.values()}) == 4

    def test_input_card_untouched(self, review_card, now, parameters):
        snapshot = replace(review_card)
        create_scheduler(review_card, now, parameters).preview()
        assert review_card == snapshot

    def test_review_matches_preview(self, review_card, now, fuzzed_parameters):
        preview = create_scheduler(review_card, now, fuzzed_parameters).preview()
        for grade in GRADES:
            single = create_scheduler(review_card, now, fuzzed_parameters).review(grade)
            assert single == preview[grade]

    def test_deterministic_with_fuzz(self, review_card, now, fuzzed_parameters):
        a = create_scheduler(review_card, now, fuzzed_parameters).preview()
        b = create_scheduler(review_card, now, fuzzed_parameters).preview()
        assert a.outcomes() == b.outcomes()

    @pytest.mark.parametrize("grade", [Rating.Manual, 0, 5, "bogus"])
    def test_invalid_grade(self, new_card, now, parameters, grade):
        with pytest.raises(InvalidGradeError):
            create_scheduler(new_card, now, parameters).review(grade)

    def test_grade_by_name(self, new_card, now, parameters):
        outcome = create_scheduler(new_card, now, parameters).review("good")
        assert outcome.log.rating == Rating.Good

    def test_bookkeeping(self, review_card, now, parameters):
        outcome = create_scheduler(review_card, now, parameters).review(Rating.Good)
        assert outcome.card.reps == review_card.reps + 1
        assert outcome.card.last_review == now
        assert outcome.card.elapsed_days == 10

    def test_log_snapshots_previous_card(self, review_card, now, parameters):
        log = create_scheduler(review_card, now, parameters).review(Rating.Hard).log
        assert log.rating == Rating.Hard
        assert log.state == State.Review
        assert log.due == review_card.due
        assert log.stability == review_card.stability
        assert log.difficulty == review_card.difficulty
        assert log.elapsed_days == 10
        assert log.last_elapsed_days == review_card.elapsed_days
        assert log.scheduled_days == review_card.scheduled_days
        assert log.review == now
        assert log.last_review == review_card.last_review

    def test_review_before_last_review_counts_zero_days(self, review_card, now, parameters):
        card = replace(review_card, last_review=now + timedelta(days=2))
        outcome = create_scheduler(card, now, parameters).review(Rating.Good)
        assert outcome.log.elapsed_days == 0


# ---------- Short-term transitions ----------


class TestShortTerm:
    def test_new_card_steps(self, new_card, now, parameters):
        preview = create_scheduler(new_card, now, parameters).preview()

        for grade, minutes in ((Rating.Again, 1), (Rating.Hard, 5), (Rating.Good, 10)):
            card = preview[grade].card
            assert card.state == State.Learning
            assert card.due == now + timedelta(minutes=minutes)
            assert card.scheduled_days == 0

        easy = preview[Rating.Easy].card
        assert easy.state == State.Review
        assert easy.scheduled_days == 16
        assert easy.due == now + timedelta(days=16)

    def test_new_card_initial_memory(self, new_card, now, parameters):
        card = create_scheduler(new_card, now, parameters).review(Rating.Good).card
        assert card.stability == 3.173
        assert 1 <= card.difficulty <= 10

    def test_learning_steps(self, learning_card, now, parameters):
        preview = create_scheduler(learning_card, now, parameters).preview()

        assert preview[Rating.Again].card.state == State.Learning
        assert preview[Rating.Again].card.due == now + timedelta(minutes=5)
        assert preview[Rating.Hard].card.state == State.Learning
        assert preview[Rating.Hard].card.due == now + timedelta(minutes=10)
        assert preview[Rating.Good].card.state == State.Review
        assert preview[Rating.Easy].card.state == State.Review
        assert (
            preview[Rating.Easy].card.scheduled_days
            > preview[Rating.Good].card.scheduled_days
        )

    def test_relearning_again_stays(self, learning_card, now, parameters):
        card = replace(learning_card, state=State.Relearning, lapses=1)
        outcome = create_scheduler(card, now, parameters).review(Rating.Again)
        assert outcome.card.state == State.Relearning
        assert outcome.card.lapses == 1

    def test_review_lapse(self, review_card, now, parameters):
        outcome = create_scheduler(review_card, now, parameters).review(Rating.Again)
        assert outcome.card.state == State.Relearning
        assert outcome.card.lapses == review_card.lapses + 1
        assert outcome.card.due == now + timedelta(minutes=5)
        assert outcome.card.stability < review_card.stability

    def test_review_interval_ordering(self, review_card, now, fuzzed_parameters):
        preview = create_scheduler(review_card, now, fuzzed_parameters).preview()
        hard = preview[Rating.Hard].card.scheduled_days
        good = preview[Rating.Good].card.scheduled_days
        easy = preview[Rating.Easy].card.scheduled_days
        assert hard <= good < easy
        for grade in (Rating.Hard, Rating.Good, Rating.Easy):
            assert preview[grade].card.state == State.Review

    def test_review_memory_follows_card_memory_state(self, review_card, now, parameters):
        preview = create_scheduler(review_card, now, parameters).preview()
        model = MemoryModel(parameters)
        for grade in GRADES:
            expected = model.next_state(review_card.memory_state, 10, grade)
            assert preview[grade].card.stability == expected.stability
            assert preview[grade].card.difficulty == expected.difficulty

    def test_good_good_again(self, new_card, now, parameters):
        first = create_scheduler(new_card, now, parameters).review(Rating.Good).card
        assert first.state == State.Learning

        second_at = now + timedelta(days=1)
        second = create_scheduler(first, second_at, parameters).review(Rating.Good).card
        assert second.state == State.Review
        assert second.scheduled_days >= 1

        third_at = now + timedelta(days=11)
        third = create_scheduler(second, third_at, parameters).review(Rating.Again).card
        assert third.state == State.Relearning
        assert third.lapses == second.lapses + 1
        assert third.stability < second.stability
        assert third.reps == 3


# ---------- Long-term transitions ----------


class TestLongTerm:
    def test_new_card_goes_to_review(self, new_card, now, long_term_parameters):
        preview = create_scheduler(new_card, now, long_term_parameters).preview()
        intervals = [preview[g].card.scheduled_days for g in GRADES]

        assert all(preview[g].card.state == State.Review for g in GRADES)
        assert intervals == sorted(set(intervals))
        assert intervals[0] >= 1

    def test_review_memory_follows_card_memory_state(self, review_card, now, long_term_parameters):
        model = MemoryModel(long_term_parameters)
        expected = model.next_state(review_card.memory_state, 10, Rating.Good)
        card = create_scheduler(review_card, now, long_term_parameters).review(Rating.Good).card
        assert (card.stability, card.difficulty) == (expected.stability, expected.difficulty)

    def test_review_lapse_uses_days(self, review_card, now, long_term_parameters):
        outcome = create_scheduler(review_card, now, long_term_parameters).review(Rating.Again)
        assert outcome.card.state == State.Relearning
        assert outcome.card.lapses == review_card.lapses + 1
        assert outcome.card.scheduled_days >= 1

    def test_relearning_graduates(self, learning_card, now, long_term_parameters):
        card = replace(learning_card, state=State.Relearning, last_review=now - timedelta(days=1))
        preview = create_scheduler(card, now, long_term_parameters).preview()
        assert preview[Rating.Again].card.state == State.Relearning
        assert preview[Rating.Good].card.state == State.Review


# ---------- Invariants ----------


def _cards(now):
    base = Card(due=now)
    last = now - timedelta(days=3)
    return [
        base,
        Card(due=now, stability=2.0, difficulty=6.0, reps=1, state=State.Learning, last_review=last),
        Card(due=now, stability=40.0, difficulty=9.5, reps=7, state=State.Review, last_review=last),
        Card(due=now, stability=0.5, difficulty=1.0, reps=5, lapses=2, state=State.Relearning, last_review=last),
    ]


@pytest.mark.parametrize("enable_short_term", [True, False])
@pytest.mark.parametrize("enable_fuzz", [True, False])
def test_outcomes_respect_bounds(now, enable_short_term, enable_fuzz):
    params = Parameters(
        enable_short_term=enable_short_term, enable_fuzz=enable_fuzz, maximum_interval=100
    )
    for card in _cards(now):
        for outcome in create_scheduler(card, now, params).preview().values():
            result = outcome.card
            assert 1.0 <= result.difficulty <= 10.0
            assert result.stability >= S_MIN
            assert result.due >= now
            assert 0 <= result.scheduled_days <= 100
            if result.state == State.Review:
                assert result.scheduled_days >= 1


def test_maximum_interval_caps_review(review_card, now):
    params = Parameters(maximum_interval=5)
    preview = create_scheduler(review_card, now, params).preview()
    for grade in (Rating.Hard, Rating.Good, Rating.Easy):
        assert 1 <= preview[grade].card.scheduled_days <= 5


# ---------- Seeds ----------


def test_default_seed(now):
    assert default_seed_strategy(Card(due=now, reps=1), now) == "1704110400000_1_0.0"


def test_card_id_seed_differs_per_card(now):
    card = Card(due=now, reps=1)
    assert card_id_seed_strategy("a")(card, now) != card_id_seed_strategy("b")(card, now)


def test_injected_rng_factory(review_card, now, fuzzed_parameters, fixed_random):
    seeds = []

    def factory(seed):
        seeds.append(seed)
        return fixed_random(0.0)

    create_scheduler(
        review_card,
        now,
        fuzzed_parameters,
        seed_strategy=lambda card, t: "fixed",
        rng_factory=factory,
    ).review(Rating.Good)
    assert seeds and set(seeds) == {"fixed"}
