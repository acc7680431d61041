"""
Tests for the SM-2 engine.

Tests cover:
- every (phase, response) cell of the transition table
- late-review credit in the exponential phase
- ease floor, forgot semantics, easy bonus
- due-card filtering
"""

import datetime
import itertools

import pytest

from chesslab_app.modules.srs.engine import TRANSITIONS, SM2Engine, get_cards_for_review, process_review
from chesslab_app.modules.srs.exceptions import InvalidResponseError
from chesslab_app.modules.srs.schemas import CardState, Phase, ReviewResponse, SM2Config

NOW = datetime.datetime(2024, 1, 10, 12, 0, tzinfo=datetime.timezone.utc)


def days(value):
    return datetime.timedelta(days=value)


def learning(step=0):
    return CardState(interval=0.0, ease_factor=2.5, repetitions=0, next_review_date=NOW,
                     phase=Phase.LEARNING, learning_step_index=step)


def exponential(interval=10.0, ease=2.5, repetitions=1, reviewed_days_ago=None):
    ago = interval if reviewed_days_ago is None else reviewed_days_ago
    return CardState(interval=interval, ease_factor=ease, repetitions=repetitions,
                     next_review_date=NOW, phase=Phase.EXPONENTIAL, learning_step_index=2,
                     last_review_date=NOW - days(ago))


def relearning(step=0, interval=10.0, ease=2.3):
    return CardState(interval=interval, ease_factor=ease, repetitions=3, next_review_date=NOW,
                     phase=Phase.RELEARNING, learning_step_index=step,
                     last_review_date=NOW - days(1))


class TestTransitionTable:

    def test_table_covers_every_cell(self):
        assert set(TRANSITIONS) == set(itertools.product(Phase, ReviewResponse))

    # learning

    def test_learning_forgot_restarts_steps(self):
        result = process_review(learning(step=2), 'forgot', now=NOW)
        assert result.new_state.phase is Phase.LEARNING
        assert result.new_state.learning_step_index == 0
        assert result.next_review_date == NOW + days(0.016)

    def test_learning_partial_waits_half_the_step(self):
        result = process_review(learning(step=1), 'partial', now=NOW)
        assert result.new_state.phase is Phase.LEARNING
        assert result.new_state.learning_step_index == 1
        assert result.next_review_date == NOW + days(0.083 / 2)

    def test_learning_effort_advances_one_step(self):
        result = process_review(learning(step=0), 'effort', now=NOW)
        assert result.new_state.phase is Phase.LEARNING
        assert result.new_state.learning_step_index == 1
        assert result.next_review_date == NOW + days(0.083)

    def test_learning_effort_on_last_step_graduates(self):
        result = process_review(learning(step=2), 'effort', now=NOW)
        state = result.new_state
        assert state.phase is Phase.EXPONENTIAL
        assert state.interval == 1
        assert state.ease_factor == pytest.approx(2.5)
        assert state.repetitions == 1
        assert result.next_review_date == NOW + days(1)

    def test_learning_easy_graduates_early_with_starting_ease_interval(self):
        result = process_review(learning(step=0), 'easy', now=NOW)
        state = result.new_state
        assert state.phase is Phase.EXPONENTIAL
        assert state.interval == pytest.approx(2.5)
        assert state.ease_factor == pytest.approx(2.65)
        assert result.next_review_date == NOW + days(2.5)

    def test_learning_easy_on_last_step_graduates_with_one_day(self):
        result = process_review(learning(step=2), 'easy', now=NOW)
        assert result.new_state.phase is Phase.EXPONENTIAL
        assert result.new_state.interval == 1
        assert result.new_state.ease_factor == pytest.approx(2.65)

    # exponential

    def test_exponential_forgot_enters_relearning(self):
        result = process_review(exponential(), 'forgot', now=NOW)
        state = result.new_state
        assert state.phase is Phase.RELEARNING
        assert state.learning_step_index == 0
        assert state.ease_factor == pytest.approx(2.3)
        assert state.interval == 10
        assert result.next_review_date == NOW + days(0.083)

    def test_exponential_partial_uses_fixed_factor(self):
        result = process_review(exponential(), 'partial', now=NOW)
        assert result.new_state.interval == 12
        assert result.new_state.ease_factor == pytest.approx(2.35)
        assert result.new_state.repetitions == 2

    def test_exponential_effort_multiplies_by_ease(self):
        result = process_review(exponential(), 'effort', now=NOW)
        assert result.new_state.interval == 25
        assert result.new_state.ease_factor == pytest.approx(2.5)
        assert result.next_review_date == NOW + days(25)

    def test_exponential_easy_applies_bonus(self):
        result = process_review(exponential(), 'easy', now=NOW)
        # 10 * 2.65 * 1.3 = 34.45
        assert result.new_state.interval == 34
        assert result.new_state.ease_factor == pytest.approx(2.65)

    # relearning

    def test_relearning_forgot_restarts_steps(self):
        result = process_review(relearning(step=1), 'forgot', now=NOW)
        assert result.new_state.phase is Phase.RELEARNING
        assert result.new_state.learning_step_index == 0
        assert result.next_review_date == NOW + days(0.083)

    def test_relearning_partial_waits_half_the_step(self):
        result = process_review(relearning(step=1), 'partial', now=NOW)
        assert result.new_state.phase is Phase.RELEARNING
        assert result.new_state.learning_step_index == 1
        assert result.next_review_date == NOW + days(0.25)

    def test_relearning_effort_advances_one_step(self):
        result = process_review(relearning(step=0), 'effort', now=NOW)
        assert result.new_state.phase is Phase.RELEARNING
        assert result.new_state.learning_step_index == 1
        assert result.next_review_date == NOW + days(0.5)

    def test_relearning_effort_on_last_step_returns_to_exponential(self):
        result = process_review(relearning(step=1), 'effort', now=NOW)
        assert result.new_state.phase is Phase.EXPONENTIAL
        assert result.new_state.interval == 10
        assert result.next_review_date == NOW + days(10)

    def test_relearning_effort_keeps_at_least_one_day(self):
        result = process_review(relearning(step=1, interval=0.0), 'effort', now=NOW)
        assert result.new_state.interval == 1

    def test_relearning_easy_returns_to_exponential_with_bonus(self):
        result = process_review(relearning(step=0), 'easy', now=NOW)
        assert result.new_state.phase is Phase.EXPONENTIAL
        assert result.new_state.interval == 13
        assert result.new_state.ease_factor == pytest.approx(2.45)


class TestLateReviews:

    def test_late_days_are_credited_by_hardness(self):
        # Reviewed 14 days after the last review on a 10 day interval: 4 days late
        state = exponential(reviewed_days_ago=14)
        assert process_review(state, 'partial', now=NOW).new_state.interval == 13   # (10 + 1) * 1.2
        assert process_review(state, 'effort', now=NOW).new_state.interval == 30    # (10 + 2) * 2.5
        assert process_review(state, 'easy', now=NOW).new_state.interval == 48      # (10 + 4) * 3.445

    def test_early_reviews_get_no_penalty(self):
        state = exponential(reviewed_days_ago=3)
        assert process_review(state, 'effort', now=NOW).new_state.interval == 25

    def test_missing_last_review_counts_as_on_time(self):
        state = exponential()
        state.last_review_date = None
        assert process_review(state, 'effort', now=NOW).new_state.interval == 25


class TestProperties:

    @pytest.mark.parametrize('responses', [
        ['forgot'] * 10,
        ['partial', 'forgot'] * 6,
        ['easy', 'forgot', 'partial', 'forgot', 'effort', 'forgot'] * 3,
    ])
    def test_ease_never_drops_below_minimum(self, responses):
        state = learning()
        now = NOW
        for response in responses:
            result = process_review(state, response, now=now)
            assert result.new_state.ease_factor >= SM2Config().minimum_ease
            state = result.new_state
            now = result.next_review_date

    def test_forgot_from_low_ease_is_clamped(self):
        result = process_review(exponential(ease=1.35), 'forgot', now=NOW)
        assert result.new_state.ease_factor == pytest.approx(1.3)

    @pytest.mark.parametrize('state, expected_phase', [
        (learning(step=2), Phase.LEARNING),
        (exponential(), Phase.RELEARNING),
        (relearning(step=1), Phase.RELEARNING),
    ])
    def test_forgot_restarts_steps_and_leaves_exponential(self, state, expected_phase):
        result = process_review(state, 'forgot', now=NOW)
        assert result.new_state.phase is expected_phase
        assert result.new_state.learning_step_index == 0

    @pytest.mark.parametrize('step', [0, 1, 2, 7])
    def test_easy_from_learning_always_graduates(self, step):
        result = process_review(learning(step=step), 'easy', now=NOW)
        assert result.new_state.phase is Phase.EXPONENTIAL

    def test_easy_beats_effort(self):
        state = exponential(interval=10, repetitions=1)
        easy = process_review(state, 'easy', now=NOW).new_state.interval
        effort = process_review(state, 'effort', now=NOW).new_state.interval
        assert easy > effort

    def test_input_state_is_not_mutated(self):
        state = exponential()
        process_review(state, 'forgot', now=NOW)
        assert state.phase is Phase.EXPONENTIAL
        assert state.ease_factor == 2.5

    def test_review_records_last_review_date(self):
        result = process_review(learning(), 'effort', now=NOW)
        assert result.new_state.last_review_date == NOW
        assert result.new_state.next_review_date == result.next_review_date

    def test_responses_are_ordered(self):
        assert sorted(['easy', 'forgot', 'effort', 'partial'], key=ReviewResponse) == [
            'forgot', 'partial', 'effort', 'easy'
        ]

    @pytest.mark.parametrize('response', ['again', '', None, 3])
    def test_invalid_response_rejected(self, response):
        with pytest.raises(InvalidResponseError):
            process_review(learning(), response, now=NOW)


class TestGetCardsForReview:

    def entries(self):
        return [
            {'id': 1, 'next_review_date': NOW - days(1)},
            {'id': 2, 'next_review_date': NOW + days(1)},
            {'id': 3, 'next_review_date': NOW},
            {'id': 4, 'next_review_date': NOW - days(30)},
        ]

    def test_returns_exactly_the_due_subset(self):
        due = get_cards_for_review(self.entries(), NOW)
        assert [entry['id'] for entry in due] == [1, 3, 4]

    def test_stable_under_reordering(self):
        entries = self.entries()
        for permutation in itertools.permutations(entries):
            due = get_cards_for_review(list(permutation), NOW)
            assert sorted(entry['id'] for entry in due) == [1, 3, 4]
            assert due == [entry for entry in permutation if entry['id'] in (1, 3, 4)]

    def test_naive_dates_are_treated_as_utc(self):
        entry = {'id': 5, 'next_review_date': (NOW - days(1)).replace(tzinfo=None)}
        assert get_cards_for_review([entry], NOW) == [entry]


class TestCardHelpers:

    def test_new_card_is_due_immediately(self):
        state = SM2Engine.new_card_state(now=NOW)
        assert state.phase is Phase.LEARNING
        assert state.learning_step_index == 0
        assert state.ease_factor == 2.5
        assert state.next_review_date == NOW

    def test_card_statistics(self):
        state = exponential()
        state.next_review_date = NOW + days(3)
        stats = SM2Engine.get_card_statistics(state, now=NOW)
        assert stats['phase'] == 'exponential'
        assert stats['days_until_review'] == 3

    def test_custom_config(self):
        config = SM2Config(learning_steps=[0.5], starting_ease=2.0)
        result = process_review(learning(step=0), 'effort', config=config, now=NOW)
        assert result.new_state.phase is Phase.EXPONENTIAL
        assert result.new_state.ease_factor == pytest.approx(2.0)
