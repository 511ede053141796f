"""
This module defines the exceptions raised by the plist_state library.

Malformed input is never reported through exceptions: the parser logs and
recovers. The classes below cover the two remaining cases, numbers that cannot
be decoded (caught by the parser, raised to direct codec callers) and values
outside the closed set of supported variants, which are programming errors.
"""

class PlistError(Exception):
    """Base class for all exceptions raised by the plist_state library."""
    pass

class MalformedNumberError(PlistError, ValueError):
    """Raised when an `<integer>` or `<real>` payload cannot be decoded.

    Attributes:
        text (str): The offending payload text.
        kind (str): The tag the payload belongs to ('integer' or 'real').
    """
    def __init__(self, text: str, kind: str):
        super().__init__(f"malformed {kind} value: '{text}'")
        self.text = text
        self.kind = kind

class UnsupportedValueError(PlistError, TypeError):
    """Raised when a value outside the supported variants reaches the encoder or differ.

    Supported values are dicts with string keys, lists, strings, 32-bit
    integers, floats and booleans. Anything else indicates a bug in the code
    that built the tree.
    """
    pass
