"""
Tokenizer that turns plist markup into a stream of tag records.

The reader knows nothing about the plist grammar. It recognizes opening,
closing and self-closing tags, and folds an element whose opening tag is
directly followed by text and its own closing tag (`<integer>7</integer>`)
into a single record carrying that text. XML declarations, DOCTYPE lines and
comments are skipped.
"""
import logging
import re
from dataclasses import dataclass
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

_MARKUP = re.compile(
    r"<!--.*?-->"
    r"|<\?.*?\?>"
    r"|<![^>]*>"
    r"|<(?P<close>/?)(?P<name>[A-Za-z_][\w.:-]*)(?P<attrs>[^>]*?)(?P<empty>/?)>",
    re.DOTALL,
)


@dataclass(frozen=True)
class TagRecord:
    """A single tag as delivered to the parser.

    Attributes:
        name: The tag name; closing tags carry a leading '/'.
        value: The raw text between the opening and closing tag if the
            element was a leaf, None otherwise. The text is still escaped.
        attributes: The attribute text of the opening tag, if any.
        line: The 1-based source line of the tag.
        self_closing: True for tags written as `<name/>`.
    """
    name: str
    value: Optional[str] = None
    attributes: Optional[str] = None
    line: int = 0
    self_closing: bool = False

    @property
    def is_closing(self) -> bool:
        return self.name.startswith("/")

    @property
    def is_empty_container(self) -> bool:
        """True if a `<dict>` or `<array>` record has no children to read."""
        return self.self_closing or self.value is not None


class TagReader:
    """Pull iterator over the tag records of a markup string.

    Besides the Python iterator protocol the reader offers `has_next()`,
    `next()` and `current_line()`, which is what `PlistParser` consumes.
    """

    def __init__(self, text: str):
        self._records: Iterator[TagRecord] = self._scan(text or "")
        self._peeked: Optional[TagRecord] = None
        self._line: int = 0

    def _scan(self, text: str) -> Iterator[TagRecord]:
        line = 1
        counted = 0
        prev_end = 0
        pending = None  # (match, line) of an opening tag that may turn out to be a leaf

        def record_for(match, at_line, value=None):
            attrs = match.group("attrs").strip() or None
            return TagRecord(match.group("name"), value, attrs, at_line)

        for match in _MARKUP.finditer(text):
            line += text.count("\n", counted, match.start())
            counted = match.start()
            name = match.group("name")
            between = text[prev_end:match.start()]
            prev_end = match.end()

            if pending is not None:
                open_match, open_line = pending
                pending = None
                if name is not None and match.group("close") and name == open_match.group("name"):
                    yield record_for(open_match, open_line, between)
                    continue
                yield record_for(open_match, open_line)
            if between.strip():
                logger.debug(f"line {line}: stray text '{between.strip()}' ignored")

            if name is None:
                continue
            if match.group("close"):
                yield TagRecord("/" + name, line=line)
            elif match.group("empty"):
                attrs = match.group("attrs").strip() or None
                yield TagRecord(name, None, attrs, line, self_closing=True)
            else:
                pending = (match, line)

        if pending is not None:
            yield record_for(*pending)

    def has_next(self) -> bool:
        if self._peeked is None:
            self._peeked = next(self._records, None)
        return self._peeked is not None

    def next(self) -> TagRecord:
        if not self.has_next():
            raise StopIteration
        record, self._peeked = self._peeked, None
        self._line = record.line
        return record

    def current_line(self) -> int:
        """The source line of the record returned last."""
        return self._line

    def __iter__(self) -> "TagReader":
        return self

    def __next__(self) -> TagRecord:
        return self.next()
