from chesslab_app.core.error_handlers import NotFoundError, ValidationError


class InvalidColorError(ValidationError):
    def __init__(self, color):
        super().__init__(
            message=f"Invalid color: {color!r} (must be 'white' or 'black')",
            code='INVALID_COLOR',
        )


class EmptyOrMismatchedLineError(ValidationError):
    """The line has no moves, or SAN and UCI move lists differ in length."""

    def __init__(self, san_count: int, uci_count: int):
        if san_count == 0:
            message = "Cannot save empty line"
        else:
            message = f"SAN and UCI move counts must match ({san_count} != {uci_count})"
        super().__init__(
            message=message,
            code='EMPTY_OR_MISMATCHED_LINE',
            errors={'movesInSan': san_count, 'movesInUci': uci_count},
        )


class LineMustEndOnOwnMoveError(ValidationError):
    """A line must end with a move of the repertoire colour."""

    def __init__(self, color: str, ply_count: int):
        super().__init__(
            message=f"A {color} line must end on a {color} move (got {ply_count} plies)",
            code='LINE_MUST_END_ON_OWN_MOVE',
            errors={'color': color, 'plies': ply_count},
        )


class InvalidMoveError(ValidationError):
    """A move could not be replayed, or its UCI form disagrees with its SAN."""

    def __init__(self, move: str, ply_index: int, reason: str = None):
        message = f"Invalid move: {move!r} at ply {ply_index + 1}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(
            message=message,
            code='INVALID_MOVE',
            errors={'move': move, 'ply': ply_index + 1},
        )
        self.move = move
        self.ply_index = ply_index


class EntryNotFoundError(NotFoundError):
    def __init__(self, entry_id):
        super().__init__(message='Entry not found', resource=f'repertoire_entry:{entry_id}', code='ENTRY_NOT_FOUND')
        self.entry_id = entry_id


class OpeningNotFoundError(NotFoundError):
    def __init__(self, opening_id):
        super().__init__(message='Opening not found', resource=f'opening:{opening_id}', code='OPENING_NOT_FOUND')
        self.opening_id = opening_id
