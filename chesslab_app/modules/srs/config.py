# modules/srs/config.py
# Anki-style SM-2 defaults tuned for opening training. Step lengths are days.


class SM2DefaultConfig:
    SM2_LEARNING_STEPS = [0.016, 0.083, 1.0]   # ~24 min, 2 h, 1 day
    SM2_RELEARNING_STEPS = [0.083, 0.5]        # 2 h, 12 h
    SM2_STARTING_EASE = 2.5
    SM2_EASY_BONUS = 1.3
    SM2_MINIMUM_EASE = 1.3
    SM2_PARTIAL_INTERVAL_FACTOR = 1.2
    SM2_EASE_ADJUSTMENTS = {
        'forgot': -0.20,
        'partial': -0.15,
        'effort': 0.0,
        'easy': 0.15,
    }
    SM2_HARDNESS_DIVIDERS = {
        'partial': 4.0,
        'effort': 2.0,
        'easy': 1.0,
    }
