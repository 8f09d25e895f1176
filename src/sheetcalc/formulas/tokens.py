"""Pure token classification helpers.

Tokens arrive already split by the tokenizer; these helpers only decide
which category a token belongs to.
"""

from __future__ import annotations

import math
import re

from sheetcalc.formulas.errors import CellLabelError

OPERATORS = frozenset({"+", "-", "*", "/"})
OPEN_PAREN = "("
CLOSE_PAREN = ")"

# A..ZZZ followed by a row number without a leading zero
_LABEL_RE = re.compile(r"^([A-Z]{1,3})([1-9][0-9]*)$")

# Optional sign, digits with optional fraction, optional exponent
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

_PRECEDENCE: dict[str, int] = {"+": 1, "-": 1, "*": 2, "/": 2}


def is_number(token: str) -> bool:
    """True if *token* is a plain decimal literal with a finite value.

    ``nan``, ``inf`` and Python-only spellings such as ``1_000`` do not count.
    """
    if not isinstance(token, str) or not _NUMBER_RE.fullmatch(token):
        return False
    return math.isfinite(float(token))


def is_valid_cell_label(token: str) -> bool:
    return bool(_LABEL_RE.match(token))


def is_operator(token: str) -> bool:
    return token in OPERATORS


def precedence(token: str) -> int:
    """Binding strength of an operator; 0 for anything else (including parens)."""
    return _PRECEDENCE.get(token, 0)


def split_label(label: str) -> tuple[str, int]:
    """Split ``"AB12"`` into ``("AB", 12)``.

    Raises:
        CellLabelError: If *label* is not a valid cell label.
    """
    m = _LABEL_RE.match(label)
    if not m:
        raise CellLabelError(label)
    return m.group(1), int(m.group(2))


def col_letter_to_index(letters: str) -> int:
    """Convert column letter(s) to 0-based index.  A=0, B=1, ..., Z=25, AA=26."""
    idx = 0
    for ch in letters:
        idx = idx * 26 + (ord(ch) - ord("A") + 1)
    return idx - 1
