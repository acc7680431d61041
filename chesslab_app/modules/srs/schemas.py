# File: chesslab_app/modules/srs/schemas.py
from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .config import SM2DefaultConfig
from .exceptions import InvalidResponseError


class Phase(str, Enum):
    """Scheduling regime currently governing a card."""
    LEARNING = 'learning'
    EXPONENTIAL = 'exponential'
    RELEARNING = 'relearning'


class ReviewResponse(str, Enum):
    """Graded recall, ordered forgot < partial < effort < easy."""
    FORGOT = 'forgot'
    PARTIAL = 'partial'
    EFFORT = 'effort'
    EASY = 'easy'

    @property
    def rank(self) -> int:
        return _RESPONSE_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, ReviewResponse):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def parse(cls, value) -> 'ReviewResponse':
        """Return the enum member for ``value`` or raise ``InvalidResponseError``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (ValueError, TypeError):
            raise InvalidResponseError(value) from None


_RESPONSE_ORDER = [
    ReviewResponse.FORGOT,
    ReviewResponse.PARTIAL,
    ReviewResponse.EFFORT,
    ReviewResponse.EASY,
]


@dataclass
class SM2Config:
    """Numeric tunables of the scheduler. Step lengths are in days."""
    learning_steps: List[float] = field(default_factory=lambda: list(SM2DefaultConfig.SM2_LEARNING_STEPS))
    relearning_steps: List[float] = field(default_factory=lambda: list(SM2DefaultConfig.SM2_RELEARNING_STEPS))
    starting_ease: float = SM2DefaultConfig.SM2_STARTING_EASE
    easy_bonus: float = SM2DefaultConfig.SM2_EASY_BONUS
    minimum_ease: float = SM2DefaultConfig.SM2_MINIMUM_EASE
    partial_interval_factor: float = SM2DefaultConfig.SM2_PARTIAL_INTERVAL_FACTOR
    ease_adjustments: Dict[str, float] = field(default_factory=lambda: dict(SM2DefaultConfig.SM2_EASE_ADJUSTMENTS))
    hardness_dividers: Dict[str, float] = field(default_factory=lambda: dict(SM2DefaultConfig.SM2_HARDNESS_DIVIDERS))


@dataclass
class CardState:
    """Scheduling fields of a repertoire entry, as seen by the engine."""
    interval: float = 0.0               # days
    ease_factor: float = 2.5
    repetitions: int = 0
    next_review_date: Optional[datetime.datetime] = None
    phase: Phase = Phase.LEARNING
    learning_step_index: int = 0
    last_review_date: Optional[datetime.datetime] = None


@dataclass
class ReviewResult:
    """Outcome of processing one review."""
    new_state: CardState
    next_review_date: datetime.datetime
    interval_days: float
    message: str
