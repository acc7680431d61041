from flask import request

from chesslab_app.core.error_handlers import ValidationError


def get_json_body() -> dict:
    """Return the JSON object sent with the request, or raise a 400."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object', code='INVALID_JSON')
    return data


def parse_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer', errors={field: 'invalid'})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer', errors={field: 'invalid'}) from None
