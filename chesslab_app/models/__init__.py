"""Database models package for ChessLab."""

from ..core.extensions import db

from .user import User
from .repertoire import Opening, Position, Repertoire, RepertoireEntry

__all__ = [
    'db',
    'User',
    'Repertoire',
    'Opening',
    'Position',
    'RepertoireEntry',
]
