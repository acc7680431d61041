from .replay import (
    STARTING_FEN,
    LinePly,
    collect_line_plies,
    convert_san_to_uci,
    format_move_sequence,
    is_first_move_position,
    opponent_replies,
    ply_from_fen,
)

__all__ = [
    "STARTING_FEN",
    "LinePly",
    "collect_line_plies",
    "convert_san_to_uci",
    "format_move_sequence",
    "is_first_move_position",
    "opponent_replies",
    "ply_from_fen",
]
