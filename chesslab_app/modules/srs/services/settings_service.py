# File: chesslab_app/modules/srs/services/settings_service.py
from __future__ import annotations

from typing import Any, Dict

from flask import current_app, has_app_context

from ..config import SM2DefaultConfig
from ..schemas import SM2Config


class SM2SettingsService:
    """Resolve scheduler settings: app.config overrides, then module defaults."""

    DEFAULTS: Dict[str, Any] = {
        'SM2_LEARNING_STEPS': SM2DefaultConfig.SM2_LEARNING_STEPS,
        'SM2_RELEARNING_STEPS': SM2DefaultConfig.SM2_RELEARNING_STEPS,
        'SM2_STARTING_EASE': SM2DefaultConfig.SM2_STARTING_EASE,
        'SM2_EASY_BONUS': SM2DefaultConfig.SM2_EASY_BONUS,
        'SM2_MINIMUM_EASE': SM2DefaultConfig.SM2_MINIMUM_EASE,
        'SM2_PARTIAL_INTERVAL_FACTOR': SM2DefaultConfig.SM2_PARTIAL_INTERVAL_FACTOR,
        'SM2_EASE_ADJUSTMENTS': SM2DefaultConfig.SM2_EASE_ADJUSTMENTS,
        'SM2_HARDNESS_DIVIDERS': SM2DefaultConfig.SM2_HARDNESS_DIVIDERS,
    }

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        if has_app_context():
            value = current_app.config.get(key)
            if value is not None:
                return value
        if key in cls.DEFAULTS:
            return cls.DEFAULTS[key]
        return default

    @classmethod
    def get_config(cls) -> SM2Config:
        learning_steps = [float(step) for step in cls.get('SM2_LEARNING_STEPS')]
        relearning_steps = [float(step) for step in cls.get('SM2_RELEARNING_STEPS')]
        if not learning_steps or not relearning_steps:
            raise ValueError("SM2_LEARNING_STEPS and SM2_RELEARNING_STEPS must not be empty")

        return SM2Config(
            learning_steps=learning_steps,
            relearning_steps=relearning_steps,
            starting_ease=float(cls.get('SM2_STARTING_EASE')),
            easy_bonus=float(cls.get('SM2_EASY_BONUS')),
            minimum_ease=float(cls.get('SM2_MINIMUM_EASE')),
            partial_interval_factor=float(cls.get('SM2_PARTIAL_INTERVAL_FACTOR')),
            ease_adjustments=dict(cls.get('SM2_EASE_ADJUSTMENTS')),
            hardness_dividers=dict(cls.get('SM2_HARDNESS_DIVIDERS')),
        )
