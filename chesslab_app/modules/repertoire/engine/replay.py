"""
Move replay helpers built on python-chess.

Pure functions, no database access:

- replay a line and pick the plies where the studying side is to move
- convert SAN to UCI
- enumerate the positions one opponent reply away from an entry, which is
  how parent/child links between entries are discovered
- format move sequences for display
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Sequence, Tuple

import chess

from ..exceptions import InvalidMoveError

logger = logging.getLogger(__name__)

STARTING_FEN = chess.STARTING_FEN

_SIDES = {'white': chess.WHITE, 'black': chess.BLACK}


@dataclass(frozen=True)
class LinePly:
    """A ply played by the studying side: the position before it and the move."""
    ply_index: int
    fen: str
    uci: str
    san: str


def _parse_san(board: chess.Board, san: str, ply_index: int) -> chess.Move:
    try:
        return board.parse_san(san)
    except ValueError as exc:
        raise InvalidMoveError(san, ply_index) from exc


def convert_san_to_uci(san_moves: Sequence[str]) -> List[str]:
    """Replay ``san_moves`` from the initial position and return them in UCI."""
    board = chess.Board()
    uci_moves = []
    for index, san in enumerate(san_moves):
        move = _parse_san(board, san, index)
        uci_moves.append(move.uci())
        board.push(move)
    return uci_moves


def collect_line_plies(color: str, san_moves: Sequence[str], uci_moves: Sequence[str]) -> List[LinePly]:
    """
    Replay a full line and return the plies belonging to ``color``.

    The whole line is replayed even though only every other ply is kept,
    since the side to move is only known by following the game.

    Raises:
        InvalidMoveError: illegal SAN, or a UCI move that is not the move
            the SAN describes
    """
    side = _SIDES[color]
    board = chess.Board()
    plies = []

    for index, (san, uci) in enumerate(zip(san_moves, uci_moves)):
        move = _parse_san(board, san, index)
        expected_uci = str(uci).strip().lower()
        if move.uci() != expected_uci:
            raise InvalidMoveError(uci, index, reason=f"SAN {san!r} is {move.uci()}")

        if board.turn == side:
            plies.append(LinePly(ply_index=index, fen=board.fen(), uci=move.uci(), san=san))
        board.push(move)

    return plies


@lru_cache(maxsize=4096)
def _replies_after(fen: str, expected_move: str) -> Tuple[Tuple[str, str], ...]:
    try:
        board = chess.Board(fen)
        move = chess.Move.from_uci(expected_move)
    except ValueError:
        logger.warning("Could not parse position %r or move %r", fen, expected_move)
        return ()

    if move not in board.legal_moves:
        logger.warning("Move %s is not legal from %s", expected_move, fen)
        return ()

    board.push(move)
    replies = []
    for reply in list(board.legal_moves):
        board.push(reply)
        replies.append((board.fen(), reply.uci()))
        board.pop()
    return tuple(replies)


def opponent_replies(fen: str, expected_move: str) -> Dict[str, str]:
    """
    Positions reachable by playing ``expected_move`` from ``fen`` followed
    by any legal opponent reply.

    Returns:
        Mapping of resulting FEN to the reply (UCI) that reaches it. Empty
        when the expected move is not legal from ``fen`` or the game is
        over after it.
    """
    result: Dict[str, str] = {}
    for resulting_fen, reply in _replies_after(fen, expected_move):
        result.setdefault(resulting_fen, reply)
    return result


def ply_from_fen(fen: str) -> int:
    """0-based ply number of the position described by ``fen``."""
    parts = fen.split(' ')
    fullmove = int(parts[5]) if len(parts) > 5 else 1
    return (fullmove - 1) * 2 + (0 if parts[1] == 'w' else 1)


def format_move_sequence(moves: Sequence[str], first_ply: int = 0) -> str:
    """
    Format moves with move numbers, e.g. ``1.e2e4 c7c5 2.g1f3``.
    A sequence starting on a black move is written ``1...c7c5``.
    """
    if not moves:
        return "Initial Position"

    formatted = []
    for offset, move in enumerate(moves):
        ply = first_ply + offset
        move_number = ply // 2 + 1
        if ply % 2 == 0:
            formatted.append(f"{move_number}.{move}")
        elif offset == 0:
            formatted.append(f"{move_number}...{move}")
        else:
            formatted.append(move)
    return " ".join(formatted)


def is_first_move_position(fen: str, color: str) -> bool:
    """True for the position where ``color`` plays its very first move."""
    parts = fen.split(' ')
    side_to_move = parts[1]
    fullmove = int(parts[5]) if len(parts) > 5 else 1
    return fullmove == 1 and side_to_move == ('w' if color == 'white' else 'b')
