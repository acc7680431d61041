from chesslab_app.core.error_handlers import ValidationError


class InvalidResponseError(ValidationError):
    """Raised when a review response is not one of forgot/partial/effort/easy."""

    def __init__(self, response):
        super().__init__(
            message=f"Invalid response: {response!r} (expected forgot, partial, effort or easy)",
            code='INVALID_RESPONSE',
        )
        self.response = response
