from typing import Any, Dict, Union
import json
import logging

from appsettings.exceptions import InvalidValueError, SerializationError

logger = logging.getLogger(__name__)

Scalar = Union[str, int, float, bool]
Value = Union[Scalar, Dict[str, Scalar]]

SCALAR_TYPES = (str, int, float, bool)


def _is_mapping_of_scalars(value: Any) -> bool:
    return isinstance(value, dict) and all(
        isinstance(k, str) and isinstance(v, SCALAR_TYPES) for k, v in value.items()
    )

def is_valid(value: Any) -> bool:
    """
    Check if the value is a scalar or a dict of str -> scalar
    """
    return isinstance(value, SCALAR_TYPES) or _is_mapping_of_scalars(value)

def validate(value: Any) -> Value:
    if not is_valid(value):
        raise InvalidValueError(value)
    return value

def encode(value: Value) -> str:
    """
    - Serialize a value to the backend representation
    - Raise InvalidValueError for unsupported payloads
    """
    return json.dumps(validate(value), ensure_ascii=False)

def decode(raw: str) -> Value:
    """
    - Deserialize a backend representation
    - Raise SerializationError if it is malformed or not a supported payload
    """
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Malformed settings value: {e}") from e
    if not is_valid(value):
        raise SerializationError(f"Unsupported settings value of type {type(value).__name__}")
    return value

def same(a: Any, b: Any) -> bool:
    """
    Equality that also requires matching types, so True is not 1 and 1 is not 1.0
    Dicts compare per key, ignoring order
    """
    if type(a) is not type(b):
        return False
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(same(v, b[k]) for k, v in a.items())
    return a == b
