"""
Value kind classification for JSON-like data.
Maps a Python value to one of the seven JSON structural kinds.
"""
import math
from decimal import Decimal
from enum import Enum
from typing import Any, FrozenSet, Optional

from schemakit.exceptions import InvalidDocumentError


class NodeType(str, Enum):
    """JSON value kinds. INTEGER is a refinement of NUMBER."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    NULL = "null"

    @classmethod
    def from_name(cls, name: str) -> Optional["NodeType"]:
        """Resolve a JSON type name ("string", "integer", ...) or return None."""
        try:
            return cls(name)
        except ValueError:
            return None

    @classmethod
    def all(cls) -> FrozenSet["NodeType"]:
        return frozenset(cls)

    @property
    def is_container(self) -> bool:
        return self in (NodeType.OBJECT, NodeType.ARRAY)

    def __str__(self) -> str:
        return self.value


NUMERIC_TYPES: FrozenSet[NodeType] = frozenset({NodeType.NUMBER, NodeType.INTEGER})


def get_node_type(value: Any) -> NodeType:
    """
    Classify a value into its NodeType.

    A number with a zero fractional part is an INTEGER, so 2.0 is classified
    the same as 2. Booleans are never numbers.

    Args:
        value: Parsed JSON-like value

    Returns:
        The value's NodeType

    Raises:
        InvalidDocumentError: If the value is not representable in JSON
    """
    if value is None:
        return NodeType.NULL
    if isinstance(value, bool):
        return NodeType.BOOLEAN
    if isinstance(value, str):
        return NodeType.STRING
    if isinstance(value, dict):
        for name in value:
            if not isinstance(name, str):
                raise InvalidDocumentError(f"Object member name {name!r} is not a string", value)
        return NodeType.OBJECT
    if isinstance(value, (list, tuple)):
        return NodeType.ARRAY
    if isinstance(value, int):
        return NodeType.INTEGER
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidDocumentError(f"Non-finite number is not valid JSON: {value!r}", value)
        return NodeType.INTEGER if value.is_integer() else NodeType.NUMBER
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidDocumentError(f"Non-finite number is not valid JSON: {value!r}", value)
        return NodeType.INTEGER if value == value.to_integral_value() else NodeType.NUMBER

    raise InvalidDocumentError(
        f"Unsupported value type '{type(value).__name__}' in JSON document", value
    )
