"""Reading, writing and comparing plist state files with bit-exact reals."""
from .codec import decode_real, encode_real
from .differ import DiffResult, PlistDiffer, diff, is_rounding_noise
from .encoder import encode, encode_document, encode_entries, encode_value, fingerprint
from .exceptions import MalformedNumberError, PlistError, UnsupportedValueError
from .parser import PlistParser, parse
from .tags import TagReader, TagRecord

__version__ = "1.0.0"

__all__ = [
    "parse",
    "PlistParser",
    "TagReader",
    "TagRecord",
    "encode",
    "encode_entries",
    "encode_value",
    "encode_document",
    "fingerprint",
    "encode_real",
    "decode_real",
    "diff",
    "is_rounding_noise",
    "PlistDiffer",
    "DiffResult",
    "PlistError",
    "MalformedNumberError",
    "UnsupportedValueError",
]
