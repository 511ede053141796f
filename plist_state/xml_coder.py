"""Escaping of text payloads (`<key>` and `<string>` contents)."""
import re
from html.entities import name2codepoint
from typing import Dict

_XML_ESCAPES: Dict[str, str] = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}

_XML_NAMED: Dict[str, str] = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
}

_REFERENCE = re.compile(r"&(#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);")


def escape(text: str) -> str:
    """Escapes the five reserved markup characters and all non-ASCII code points.

    Non-ASCII characters become decimal numeric references, so the encoded
    text is plain ASCII regardless of the file encoding used later.
    """
    if not text:
        return text
    parts = []
    for ch in text:
        replacement = _XML_ESCAPES.get(ch)
        if replacement is not None:
            parts.append(replacement)
        elif ord(ch) > 0x7F:
            parts.append(f"&#{ord(ch)};")
        else:
            parts.append(ch)
    return "".join(parts)


def _resolve(match: "re.Match[str]") -> str:
    ref = match.group(1)
    if ref.startswith("#"):
        try:
            if ref[1] in "xX":
                code = int(ref[2:], 16)
            else:
                code = int(ref[1:])
            return chr(code)
        except (ValueError, OverflowError):
            # out of range for chr(); leave the reference as it is
            return match.group(0)
    if ref in _XML_NAMED:
        return _XML_NAMED[ref]
    code = name2codepoint.get(ref)
    if code is None:
        return match.group(0)
    return chr(code)


def unescape(text: str) -> str:
    """Resolves numeric and named character references in `text`.

    Decimal (`&#233;`) and hexadecimal (`&#xE9;`) references, the XML named
    references and the HTML named entities (`&eacute;`, `&mdash;`, ...) are
    recognized. Unknown or malformed references are kept verbatim.
    """
    if not text or "&" not in text:
        return text
    return _REFERENCE.sub(_resolve, text)
