"""
SM-2 Engine - Pure Spaced Repetition Logic for repertoire entries

Anki-flavoured SM-2 with three phases:

- learning: fixed learning steps until the card graduates
- exponential: interval grows by the ease factor, with credit for late reviews
- relearning: fixed relearning steps after a lapse

Every (phase, response) pair maps to one pure transition function in
``TRANSITIONS``. No database access; the only inputs are the card state,
the response, the config and the current time.
"""

from __future__ import annotations

import dataclasses
import datetime
import math
from collections.abc import Mapping
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from chesslab_app.modules.shared.utils.datetime_utils import ensure_utc, utcnow

from ..schemas import CardState, Phase, ReviewResponse, ReviewResult, SM2Config

SECONDS_PER_DAY = 24 * 60 * 60

Transition = Callable[[CardState, ReviewResponse, SM2Config, datetime.datetime], Tuple[CardState, datetime.datetime, str]]


# === Helpers ===

def _add_days(moment: datetime.datetime, days: float) -> datetime.datetime:
    """Add a possibly fractional number of days (0.016 days is ~24 minutes)."""
    return moment + datetime.timedelta(days=days)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _step_at(steps: List[float], index: int) -> float:
    return steps[min(max(index, 0), len(steps) - 1)]


def _advance_step(index: int, steps: List[float]) -> Tuple[int, bool]:
    """Return (next_step_index, finished) for a successful recall."""
    last = len(steps) - 1
    if index >= last:
        return last, True
    return index + 1, False


def _adjust_ease(ease: float, response: ReviewResponse, config: SM2Config) -> float:
    """Additive ease update, clamped at the configured minimum."""
    return max(ease + config.ease_adjustments.get(response.value, 0.0), config.minimum_ease)


def _interval_factor(response: ReviewResponse, ease: float, config: SM2Config) -> float:
    if response is ReviewResponse.PARTIAL:
        return config.partial_interval_factor
    if response is ReviewResponse.EASY:
        return ease * config.easy_bonus
    return ease


def _whole_days_since(last_review: Optional[datetime.datetime], now: datetime.datetime) -> int:
    if last_review is None:
        return 0
    elapsed = (now - ensure_utc(last_review)).total_seconds()
    return math.floor(elapsed / SECONDS_PER_DAY)


def _graduate(state: CardState, response: ReviewResponse, config: SM2Config,
              now: datetime.datetime, interval: float, message: str):
    state.phase = Phase.EXPONENTIAL
    state.interval = float(interval)
    ease = config.starting_ease
    if response is ReviewResponse.EASY:
        ease += config.ease_adjustments.get(ReviewResponse.EASY.value, 0.0)
    state.ease_factor = max(ease, config.minimum_ease)
    state.repetitions = 1
    return state, _add_days(now, interval), message


# === Learning phase ===

def _learning_forgot(state, response, config, now):
    state.learning_step_index = 0
    return state, _add_days(now, config.learning_steps[0]), "Back to first learning step"


def _learning_partial(state, response, config, now):
    wait = _step_at(config.learning_steps, state.learning_step_index) / 2
    return state, _add_days(now, wait), "Waiting half the interval before advancing"


def _learning_recalled(state, response, config, now):
    next_index, finished = _advance_step(state.learning_step_index, config.learning_steps)
    state.learning_step_index = next_index

    if finished:
        return _graduate(state, response, config, now, 1,
                         "Exiting learning phase - entering exponential phase")
    if response is ReviewResponse.EASY:
        return _graduate(state, response, config, now, config.starting_ease,
                         "Easy - jumping to exponential phase")

    return (
        state,
        _add_days(now, config.learning_steps[next_index]),
        f"Moving to learning step {next_index + 1}",
    )


# === Exponential phase ===

def _exponential_forgot(state, response, config, now):
    state.phase = Phase.RELEARNING
    state.learning_step_index = 0
    state.ease_factor = _adjust_ease(state.ease_factor, response, config)
    return state, _add_days(now, config.relearning_steps[0]), "Forgot - entering relearning phase"


def _exponential_grow(state, response, config, now):
    previous_interval = state.interval

    state.ease_factor = _adjust_ease(state.ease_factor, response, config)
    factor = _interval_factor(response, state.ease_factor, config)

    # Overdue reviews earn part of the lateness toward the next interval
    days_late = max(0, _whole_days_since(state.last_review_date, now) - math.floor(previous_interval))
    late_bonus = days_late / config.hardness_dividers[response.value]

    state.interval = float(max(1, _round_half_up((previous_interval + late_bonus) * factor)))
    state.repetitions += 1
    return state, _add_days(now, state.interval), f"Interval increased to {int(state.interval)} days"


# === Relearning phase ===

def _relearning_forgot(state, response, config, now):
    state.learning_step_index = 0
    return state, _add_days(now, config.relearning_steps[0]), "Back to first relearning step"


def _relearning_partial(state, response, config, now):
    wait = _step_at(config.relearning_steps, state.learning_step_index) / 2
    return state, _add_days(now, wait), "Waiting half the interval before advancing relearning"


def _relearning_effort(state, response, config, now):
    next_index, finished = _advance_step(state.learning_step_index, config.relearning_steps)
    state.learning_step_index = next_index

    if finished:
        state.phase = Phase.EXPONENTIAL
        state.ease_factor = _adjust_ease(state.ease_factor, response, config)
        state.interval = float(max(1, state.interval))
        return state, _add_days(now, state.interval), "Completed relearning - back to exponential phase"

    return (
        state,
        _add_days(now, config.relearning_steps[next_index]),
        f"Moving to relearning step {next_index + 1}",
    )


def _relearning_easy(state, response, config, now):
    state.phase = Phase.EXPONENTIAL
    state.ease_factor = _adjust_ease(state.ease_factor, response, config)
    state.interval = float(max(1, _round_half_up(state.interval * config.easy_bonus)))
    return state, _add_days(now, state.interval), "Easy - returning to exponential phase"


TRANSITIONS: Dict[Tuple[Phase, ReviewResponse], Transition] = {
    (Phase.LEARNING, ReviewResponse.FORGOT): _learning_forgot,
    (Phase.LEARNING, ReviewResponse.PARTIAL): _learning_partial,
    (Phase.LEARNING, ReviewResponse.EFFORT): _learning_recalled,
    (Phase.LEARNING, ReviewResponse.EASY): _learning_recalled,
    (Phase.EXPONENTIAL, ReviewResponse.FORGOT): _exponential_forgot,
    (Phase.EXPONENTIAL, ReviewResponse.PARTIAL): _exponential_grow,
    (Phase.EXPONENTIAL, ReviewResponse.EFFORT): _exponential_grow,
    (Phase.EXPONENTIAL, ReviewResponse.EASY): _exponential_grow,
    (Phase.RELEARNING, ReviewResponse.FORGOT): _relearning_forgot,
    (Phase.RELEARNING, ReviewResponse.PARTIAL): _relearning_partial,
    (Phase.RELEARNING, ReviewResponse.EFFORT): _relearning_effort,
    (Phase.RELEARNING, ReviewResponse.EASY): _relearning_easy,
}


class SM2Engine:
    """
    Pure calculation engine for the repertoire scheduler.
    All methods are static and use only provided inputs (no DB access).
    """

    @staticmethod
    def process_review(
        state: CardState,
        response: Union[ReviewResponse, str],
        config: Optional[SM2Config] = None,
        now: Optional[datetime.datetime] = None,
    ) -> ReviewResult:
        """
        Apply one graded review to a card.

        Args:
            state: Current card state (left untouched)
            response: forgot / partial / effort / easy
            config: Scheduler tunables (defaults when omitted)
            now: Review time (default: current UTC time)

        Returns:
            ReviewResult with the new state, next due date, interval and a
            human-readable rationale.

        Raises:
            InvalidResponseError: if ``response`` is not a recognised level
        """
        response = ReviewResponse.parse(response)
        config = config or SM2Config()
        now = ensure_utc(now) if now else utcnow()

        new_state = dataclasses.replace(state, phase=Phase(state.phase))
        transition = TRANSITIONS[(new_state.phase, response)]
        new_state, next_review_date, message = transition(new_state, response, config, now)

        new_state.next_review_date = next_review_date
        new_state.last_review_date = now

        return ReviewResult(
            new_state=new_state,
            next_review_date=next_review_date,
            interval_days=new_state.interval,
            message=message,
        )

    @staticmethod
    def new_card_state(config: Optional[SM2Config] = None,
                       now: Optional[datetime.datetime] = None) -> CardState:
        """State given to a freshly ingested entry: due immediately, learning step 0."""
        config = config or SM2Config()
        return CardState(
            interval=0.0,
            ease_factor=config.starting_ease,
            repetitions=0,
            next_review_date=ensure_utc(now) if now else utcnow(),
            phase=Phase.LEARNING,
            learning_step_index=0,
            last_review_date=None,
        )

    @staticmethod
    def get_cards_for_review(entries: Iterable, now: Optional[datetime.datetime] = None) -> list:
        """Return the entries whose next review date is at or before ``now``, in input order."""
        now = ensure_utc(now) if now else utcnow()
        due = []
        for entry in entries:
            if isinstance(entry, Mapping):
                next_review = entry.get('next_review_date')
            else:
                next_review = entry.next_review_date
            if next_review is not None and ensure_utc(next_review) <= now:
                due.append(entry)
        return due

    @staticmethod
    def get_card_statistics(state: CardState, now: Optional[datetime.datetime] = None) -> dict:
        """Summarise a card for display."""
        now = ensure_utc(now) if now else utcnow()
        next_review = ensure_utc(state.next_review_date)
        days_until = None
        if next_review is not None:
            days_until = math.ceil((next_review - now).total_seconds() / SECONDS_PER_DAY)
        return {
            'phase': Phase(state.phase).value,
            'interval': state.interval,
            'ease_factor': state.ease_factor,
            'repetitions': state.repetitions,
            'next_review_date': next_review,
            'days_until_review': days_until,
        }


process_review = SM2Engine.process_review
get_cards_for_review = SM2Engine.get_cards_for_review
