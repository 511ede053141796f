"""
Serializes value trees into plist markup.

The output is what `parser.parse` reads back: one element per line, reals as
bit patterns, text escaped with `xml_coder.escape`. Encoding a tree and
parsing the result yields an equal tree.
"""
import hashlib
from typing import Any, Dict, Iterable, List, Mapping

from .codec import encode_integer, encode_real
from .exceptions import UnsupportedValueError
from .values import Kind, kind_of
from .xml_coder import escape

DOCUMENT_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" '
    '"http://www.apple.com/DTDs/PropertyList-1.0.dtd">\n'
    '<plist version="1.0">\n'
)
DOCUMENT_FOOTER = "</plist>\n"


def _key(key: Any) -> str:
    if not isinstance(key, str):
        raise UnsupportedValueError(f"dictionary keys must be strings, not '{type(key).__name__}'")
    return f"<key>{escape(key)}</key>\n"


def _encode(value: Any, out: List[str], sort_keys: bool) -> None:
    kind = kind_of(value)
    if kind is Kind.DICT:
        out.append("<dict>\n")
        _encode_entries(value, out, sort_keys)
        out.append("</dict>\n")
    elif kind is Kind.LIST:
        out.append("<array>\n")
        for item in value:
            _encode(item, out, sort_keys)
        out.append("</array>\n")
    elif kind is Kind.STRING:
        out.append(f"<string>{escape(value)}</string>\n")
    elif kind is Kind.INTEGER:
        out.append(f"<integer>{encode_integer(value)}</integer>\n")
    elif kind is Kind.REAL:
        out.append(f"<real>{encode_real(value)}</real>\n")
    elif kind is Kind.BOOLEAN:
        out.append("<true/>\n" if value else "<false/>\n")
    else:
        raise UnsupportedValueError(f"no encoding for {kind}")


def _encode_entries(mapping: Mapping[str, Any], out: List[str], sort_keys: bool) -> None:
    keys = sorted(mapping) if sort_keys else list(mapping)
    for key in keys:
        out.append(_key(key))
        _encode(mapping[key], out, sort_keys)


def encode(value: Any, sort_keys: bool = False) -> str:
    """Encodes a single value, recursing into dictionaries and lists.

    Args:
        value: Any value of the supported variants.
        sort_keys: If True, dictionary entries are written in key order,
            which makes the output independent of insertion order.

    Returns:
        The markup for `value`, one element per line.

    Raises:
        UnsupportedValueError: If the tree contains an unsupported value.
    """
    out: List[str] = []
    _encode(value, out, sort_keys)
    return "".join(out)


def encode_entries(mapping: Mapping[str, Any], sort_keys: bool = False) -> str:
    """Encodes the `<key>`/value pairs of a dictionary without the `<dict>` wrapper."""
    out: List[str] = []
    _encode_entries(mapping, out, sort_keys)
    return "".join(out)


def encode_value(key: str, value: Any) -> str:
    """Encodes one dictionary entry: the `<key>` element followed by the value."""
    return _key(key) + encode(value)


def encode_document(plist: Dict[str, Any]) -> str:
    """Encodes a root dictionary as a complete plist file."""
    return DOCUMENT_HEADER + encode(plist) + DOCUMENT_FOOTER


def fingerprint(plist: Dict[str, Any], exclude: Iterable[str] = ()) -> str:
    """Returns a SHA-256 digest identifying the content of a state.

    Top-level keys listed in `exclude` (export dates, version strings and the
    like) are left out and entries are hashed in key order, so states that
    differ only in the excluded entries share a fingerprint.
    """
    skipped = set(exclude)
    kept = {key: value for key, value in plist.items() if key not in skipped}
    return hashlib.sha256(encode(kept, sort_keys=True).encode("ascii")).hexdigest()
