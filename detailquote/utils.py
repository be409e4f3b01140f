# detailquote/utils.py
"""Request body helpers shared by the blueprints and services."""

from flask import request

from detailquote.errors import ValidationError


def ensure_object(data) -> dict:
    """``data`` itself when it is a JSON object; ``None`` reads as empty."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Expected a JSON object')
    return data


def json_object() -> dict:
    """The request body as a dict.  Missing or unparsable bodies read as
    empty; any other JSON value is a ``ValidationError``."""
    return ensure_object(request.get_json(silent=True))


def id_list(data: dict, key: str, required: bool) -> list[str]:
    """``data[key]`` as a list of unique, non-empty id strings."""
    raw = data.get(key)
    if raw is None:
        raw = []
    if not isinstance(raw, list) or not all(isinstance(i, str) and i for i in raw):
        raise ValidationError(f'{key} must be a list of ids', field=key)
    if required and not raw:
        raise ValidationError('at least one service required', field=key)
    if len(set(raw)) != len(raw):
        raise ValidationError(f'{key} contains duplicate ids', field=key)
    return list(raw)
