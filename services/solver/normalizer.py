"""Symbol cleanup applied to recognizer output before structural parsing."""
from __future__ import annotations

import re

# -----------------------------------------TEXT NORMALIZATION:

# Only explicit operator glyphs are mapped. The letter x stays a variable
# ("3x+2"), even though some OCR engines read a multiplication sign as x.
_OPERATOR_GLYPHS = {
    "×": "*",
    "÷": "/",
}

_WHITESPACE_RE = re.compile(r"\s+")


def normalize(raw: str) -> str:
    """
    Map recognizer/OCR symbol variants to ASCII operators and tidy whitespace:
    - '×' -> '*', '÷' -> '/'
    - every whitespace run (including newlines) -> one space
    - strip both ends
    Step and label markup ('**', '$', '1.') is left untouched.
    """
    if not raw:
        return ""

    s = raw
    for glyph, ascii_op in _OPERATOR_GLYPHS.items():
        s = s.replace(glyph, ascii_op)

    s = _WHITESPACE_RE.sub(" ", s)
    return s.strip()
