"""Repertoire domain models.

Positions are shared, content-addressed board states (one row per FEN).
Repertoire entries are the scheduled flashcards: a position plus the move
the user is expected to play from it. There is no parent/child column;
the line tree is implied by the chess rules (see the repertoire module).
"""

from __future__ import annotations

from sqlalchemy.sql import func

from ..core.extensions import db
from ..modules.shared.utils.datetime_utils import ensure_utc, isoformat, utcnow
from ..modules.srs.schemas import CardState, Phase


class Repertoire(db.Model):
    """One colour-scoped repertoire per user."""

    __tablename__ = 'repertoires'

    COLOR_WHITE = 'white'
    COLOR_BLACK = 'black'
    COLORS = (COLOR_WHITE, COLOR_BLACK)

    repertoire_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False, index=True
    )
    color = db.Column(db.String(5), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())

    openings = db.relationship(
        'Opening',
        backref='repertoire',
        lazy=True,
        cascade='all, delete-orphan',
        passive_deletes=True,
    )
    entries = db.relationship(
        'RepertoireEntry',
        backref='repertoire',
        lazy=True,
        cascade='all, delete-orphan',
        passive_deletes=True,
    )

    __table_args__ = (
        db.UniqueConstraint('user_id', 'color', name='uq_repertoire_user_color'),
    )

    def __repr__(self) -> str:
        return f'<Repertoire {self.repertoire_id} user={self.user_id} color={self.color}>'


class Opening(db.Model):
    """A named grouping of entries inside a repertoire."""

    __tablename__ = 'openings'

    DEFAULT_NAME = 'Opening Line'

    opening_id = db.Column(db.Integer, primary_key=True)
    repertoire_id = db.Column(
        db.Integer, db.ForeignKey('repertoires.repertoire_id', ondelete='CASCADE'), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False, default=DEFAULT_NAME)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    entries = db.relationship('RepertoireEntry', backref='opening', lazy=True, passive_deletes=True)

    def to_dict(self) -> dict:
        return {
            'id': self.opening_id,
            'repertoireId': self.repertoire_id,
            'name': self.name,
            'notes': self.notes,
            'entryCount': len(self.entries),
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }


class Position(db.Model):
    """A canonical board state, shared by every entry that reaches it."""

    __tablename__ = 'positions'

    position_id = db.Column(db.Integer, primary_key=True)
    fen = db.Column(db.String(100), unique=True, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())

    entries = db.relationship('RepertoireEntry', backref='position', lazy=True)

    def __repr__(self) -> str:
        return f'<Position {self.position_id} {self.fen}>'


class RepertoireEntry(db.Model):
    """A scheduled card: the expected move from a position, with SM-2 state."""

    __tablename__ = 'repertoire_entries'

    entry_id = db.Column(db.Integer, primary_key=True)
    repertoire_id = db.Column(
        db.Integer, db.ForeignKey('repertoires.repertoire_id', ondelete='CASCADE'), nullable=False, index=True
    )
    opening_id = db.Column(
        db.Integer, db.ForeignKey('openings.opening_id', ondelete='SET NULL'), nullable=True, index=True
    )
    position_id = db.Column(db.Integer, db.ForeignKey('positions.position_id'), nullable=False, index=True)
    expected_move = db.Column(db.String(5), nullable=False)

    # SM-2 state
    interval = db.Column(db.Float, nullable=False, default=0.0)
    ease_factor = db.Column(db.Float, nullable=False, default=2.5)
    repetitions = db.Column(db.Integer, nullable=False, default=0)
    phase = db.Column(db.String(20), nullable=False, default=Phase.LEARNING.value)
    learning_step_index = db.Column(db.Integer, nullable=False, default=0)
    next_review_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    last_review_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        db.UniqueConstraint(
            'repertoire_id', 'position_id', 'expected_move', name='uq_entry_repertoire_position_move'
        ),
    )

    def to_card_state(self) -> CardState:
        """Snapshot the scheduling fields for the SM-2 engine."""
        return CardState(
            interval=self.interval or 0.0,
            ease_factor=self.ease_factor,
            repetitions=self.repetitions or 0,
            next_review_date=ensure_utc(self.next_review_date),
            phase=Phase(self.phase),
            learning_step_index=self.learning_step_index or 0,
            last_review_date=ensure_utc(self.last_review_date),
        )

    def apply_card_state(self, state: CardState) -> None:
        self.interval = float(state.interval)
        self.ease_factor = state.ease_factor
        self.repetitions = state.repetitions
        self.next_review_date = state.next_review_date
        self.phase = state.phase.value
        self.learning_step_index = state.learning_step_index
        self.last_review_date = state.last_review_date

    def to_dict(self) -> dict:
        return {
            'id': self.entry_id,
            'repertoireId': self.repertoire_id,
            'openingId': self.opening_id,
            'positionId': self.position_id,
            'fen': self.position.fen if self.position else None,
            'expectedMove': self.expected_move,
            'interval': self.interval,
            'easeFactor': self.ease_factor,
            'repetitions': self.repetitions,
            'phase': self.phase,
            'learningStepIndex': self.learning_step_index,
            'nextReviewDate': isoformat(self.next_review_date),
            'lastReviewDate': isoformat(self.last_review_date),
        }

    def __repr__(self) -> str:
        return f'<RepertoireEntry {self.entry_id} {self.expected_move}>'
