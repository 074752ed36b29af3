"""JSON helpers for values plain JSON cannot carry safely"""
import json
from datetime import date, datetime
from typing import Any


class DateTimeEncoder(json.JSONEncoder):
    """Serializes datetimes as ISO 8601 strings"""

    def default(self, obj):
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


def _tag_big_ints(value: Any) -> Any:
    # bool is an int subclass but must stay a JSON boolean
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return {'type': 'bigint', 'value': str(value)}
    if isinstance(value, dict):
        return {key: _tag_big_ints(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_tag_big_ints(item) for item in value]
    return value


def _untag_big_ints(obj: dict) -> Any:
    if obj.get('type') == 'bigint' and isinstance(obj.get('value'), str) and len(obj) == 2:
        return int(obj['value'])
    return obj


def encode_json_with_big_ints(value: Any) -> str:
    """
    Encode a value as JSON, writing every integer as {"type": "bigint", "value": "<digits>"}.

    Block numbers and token amounts exceed the 2^53 range JSON consumers
    can represent exactly, so integers travel as strings.
    """
    return json.dumps(_tag_big_ints(value), cls=DateTimeEncoder)


def decode_json_with_big_ints(encoded: str) -> Any:
    return json.loads(encoded, object_hook=_untag_big_ints)
