"""
Parses plist markup into a tree of Python values.

The parser is a recursive descent over the records produced by `TagReader`,
with one frame per nesting level (the document root, a `<dict>` or an
`<array>`). The grammar it understands is a deliberately small plist dialect:

- `<dict>`: alternating `<key>` and value elements; may be empty.
- `<array>`: any number of value elements; may be empty.
- `<string>`: escaped text, see `xml_coder.unescape`.
- `<integer>`: a signed 32-bit decimal integer.
- `<real>`: a double, either as its bit pattern with a trailing `L` or, for
  older files, as a decimal literal (see `codec.decode_real`).
- `<true/>`, `<false/>`: booleans.

Saved states outlive the code that wrote them, so malformed input never
raises. Missing closing tags, values without a key, unknown tags and
undecodable numbers are reported as warnings (through the module logger and
on `PlistParser.warnings`) and the parser carries on with whatever it could
read. The result is always a dictionary, possibly incomplete.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from .codec import decode_integer, decode_real
from .exceptions import MalformedNumberError
from .tags import TagReader, TagRecord
from .xml_coder import unescape

logger = logging.getLogger(__name__)

TAG_PLIST = "plist"
TAG_DICT = "dict"
TAG_ARRAY = "array"
TAG_KEY = "key"
TAG_STRING = "string"
TAG_INTEGER = "integer"
TAG_REAL = "real"
TAG_TRUE = "true"
TAG_FALSE = "false"

_VALUE_TAGS = {TAG_DICT, TAG_ARRAY, TAG_STRING, TAG_INTEGER, TAG_REAL, TAG_TRUE, TAG_FALSE}
_SCALAR_TAGS = {TAG_STRING, TAG_INTEGER, TAG_REAL}
# tags that belong to an enclosing frame when they show up inside an <array>
_ARRAY_TERMINATORS = {TAG_KEY, "/" + TAG_DICT, "/" + TAG_PLIST}


class TagStream:
    """A tag reader with room for exactly one pushed-back record."""

    def __init__(self, reader: TagReader):
        self._reader = reader
        self._buffer: Optional[TagRecord] = None

    def has_next(self) -> bool:
        return self._buffer is not None or self._reader.has_next()

    def next(self) -> TagRecord:
        if self._buffer is not None:
            tag, self._buffer = self._buffer, None
            return tag
        return self._reader.next()

    def push_back(self, tag: TagRecord) -> None:
        if self._buffer is not None:
            raise RuntimeError(f"cannot push back <{tag.name}>: <{self._buffer.name}> is already pending")
        self._buffer = tag

    def current_line(self) -> int:
        return self._reader.current_line()


class PlistParser:
    """
    Builds a value tree from a stream of tag records.

    The instance holds the tag stream and the warnings collected while
    parsing. Use `parse()` on a fresh instance per document; the module level
    `parse()` function does exactly that for markup strings.

    Attributes:
        warnings: Human readable descriptions of every anomaly encountered,
            in input order.
    """
    def __init__(self, reader: TagReader):
        self._stream = TagStream(reader)
        self.warnings: List[str] = []

    def parse(self) -> Dict[str, Any]:
        """Reads the whole stream and returns the root dictionary."""
        root: Dict[str, Any] = {}
        while self._stream.has_next():
            tag = self._stream.next()
            if tag.name == "/" + TAG_PLIST:
                break
            if tag.name == TAG_PLIST:
                # the version attribute is not checked
                continue
            if tag.name == TAG_DICT:
                if not tag.is_empty_container:
                    self._parse_dict(root)
                continue
            self._warn_invalid(tag, TAG_PLIST)
        return root

    def _parse_dict(self, entries: Dict[str, Any]) -> Dict[str, Any]:
        """Reads key/value pairs into `entries` up to the matching `</dict>`."""
        key: Optional[str] = None
        while self._stream.has_next():
            tag = self._stream.next()
            name = tag.name
            if name == TAG_KEY:
                if key is not None:
                    logger.debug(f"line {tag.line}: key '{key}' has no value - replaced.")
                key = unescape(tag.value or "")
                continue
            if name == "/" + TAG_DICT:
                return entries
            if name == "/" + TAG_PLIST:
                self._warn_missing_close(TAG_DICT, tag.line)
                self._stream.push_back(tag)
                return entries
            if name in _VALUE_TAGS:
                if key is None:
                    if name in (TAG_DICT, TAG_ARRAY):
                        # still consume the orphaned container
                        self._read_value(tag)
                    self._warn_no_key(tag)
                    continue
                ok, value = self._read_value(tag)
                if ok:
                    entries[key] = value
                key = None
                continue
            self._warn_invalid(tag, TAG_DICT)
        self._warn_missing_close(TAG_DICT, self._stream.current_line())
        return entries

    def _parse_array(self) -> List[Any]:
        """Reads elements up to the matching `</array>`.

        A `<key>`, `</dict>` or `</plist>` inside an array means its closing
        tag is missing: the record is handed back to the enclosing frame and
        the elements read so far are returned.
        """
        items: List[Any] = []
        while self._stream.has_next():
            tag = self._stream.next()
            name = tag.name
            if name == "/" + TAG_ARRAY:
                return items
            if name in _ARRAY_TERMINATORS:
                self._warn_missing_close(TAG_ARRAY, tag.line)
                self._stream.push_back(tag)
                return items
            if name in _VALUE_TAGS:
                ok, value = self._read_value(tag)
                if ok:
                    items.append(value)
                continue
            self._warn_invalid(tag, TAG_ARRAY)
        self._warn_missing_close(TAG_ARRAY, self._stream.current_line())
        return items

    def _read_value(self, tag: TagRecord) -> Tuple[bool, Any]:
        """Converts a value-bearing record, recursing into containers.

        Returns:
            A tuple `(ok, value)`; `ok` is False if the payload could not be
            decoded, in which case a warning has already been issued.
        """
        name = tag.name
        if name == TAG_DICT:
            if tag.is_empty_container:
                return True, {}
            return True, self._parse_dict({})
        if name == TAG_ARRAY:
            if tag.is_empty_container:
                return True, []
            return True, self._parse_array()
        if name == TAG_STRING:
            return True, unescape(tag.value or "")
        if name == TAG_TRUE:
            return True, True
        if name == TAG_FALSE:
            return True, False
        try:
            if name == TAG_INTEGER:
                return True, decode_integer(tag.value)
            return True, decode_real(tag.value)
        except MalformedNumberError as e:
            self._warn(f"line {tag.line}: malformed <{name}> value '{e.text}' - ignored.")
            return False, None

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def _warn_no_key(self, tag: TagRecord) -> None:
        if tag.name in _SCALAR_TAGS:
            self._warn(f"line {tag.line}: no key found for <{tag.name}> '{tag.value}' - ignored.")
        elif tag.name in (TAG_TRUE, TAG_FALSE):
            self._warn(f"line {tag.line}: no key found for <{tag.name}/> - ignored.")
        else:
            self._warn(f"line {tag.line}: no key found for <{tag.name}> - ignored.")

    def _warn_missing_close(self, context: str, line: int) -> None:
        self._warn(f"line {line}: closing tag </{context}> missing.")

    def _warn_invalid(self, tag: TagRecord, context: str) -> None:
        self._warn(f"line {tag.line}: invalid tag <{tag.name}> in <{context}> - ignored.")


def parse(text: str) -> Dict[str, Any]:
    """Parses a plist document into a dictionary.

    This function is a facade that feeds the text through a `TagReader` and a
    fresh `PlistParser`. It never raises for malformed markup; anomalies are
    logged as warnings and the best-effort tree is returned.

    Args:
        text: The plist markup, typically the full contents of a state file.

    Returns:
        The root dictionary of the document.
    """
    return PlistParser(TagReader(text)).parse()
