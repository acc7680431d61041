from .sm2 import TRANSITIONS, SM2Engine, get_cards_for_review, process_review

__all__ = ["TRANSITIONS", "SM2Engine", "get_cards_for_review", "process_review"]
