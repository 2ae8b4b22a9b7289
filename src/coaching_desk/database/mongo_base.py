from __future__ import annotations

import secrets
import string
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from ..core.constants import GENERATED_ID_LENGTH
from ..core.exceptions import ValidationError

_ID_ALPHABET = string.ascii_letters + string.digits


def parse_object_id(value: Any, field_name: str = "id") -> ObjectId:
    """Convert a client-supplied hex id into an ObjectId or raise ValidationError."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {field_name}: {value!r}")


def is_object_id(value: Any) -> bool:
    return isinstance(value, str) and ObjectId.is_valid(value)


def generate_id(prefix: str, length: int = GENERATED_ID_LENGTH) -> str:
    return prefix + "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))

