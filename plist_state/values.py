"""The closed set of value variants a plist tree may hold."""
from enum import Enum
from typing import Any, Dict, List, Union

from .exceptions import UnsupportedValueError

INT32_MIN: int = -(2**31)
INT32_MAX: int = 2**31 - 1

# A parsed document: nested dicts and lists with scalar leaves.
Value = Union[Dict[str, Any], List[Any], str, int, float, bool]
Plist = Dict[str, Any]


class Kind(Enum):
    """Variant of a plist value, named after the tag that carries it."""
    DICT = "dict"
    LIST = "array"
    STRING = "string"
    INTEGER = "integer"
    REAL = "real"
    BOOLEAN = "boolean"


def kind_of(value: Any) -> Kind:
    """Classifies `value` into one of the supported variants.

    Args:
        value: A node of a plist tree.

    Returns:
        The `Kind` of the node.

    Raises:
        UnsupportedValueError: If the value is not one of the supported
            variants, or is an integer outside the signed 32-bit range.
    """
    # bool is a subclass of int and has to be checked first
    if isinstance(value, bool):
        return Kind.BOOLEAN
    if isinstance(value, int):
        if value < INT32_MIN or value > INT32_MAX:
            raise UnsupportedValueError(f"integer {value} outside the 32-bit range")
        return Kind.INTEGER
    if isinstance(value, float):
        return Kind.REAL
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, dict):
        return Kind.DICT
    if isinstance(value, list):
        return Kind.LIST
    raise UnsupportedValueError(f"unsupported value type '{type(value).__name__}'")
