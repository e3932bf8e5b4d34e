"""
Multi-value cell parsing.

Reference cells exported from spreadsheets list several names separated by
commas. A name that itself contains a comma is wrapped in double quotes:

    Acme River Watch, "Friends of the Creek, Inc.", City Lab

The scanner is a two-state machine. A double quote toggles between NORMAL
and IN_QUOTED_SPAN and is never emitted. A comma splits tokens only in
NORMAL. There is no escaped-quote support, and an unbalanced quote is not
an error: whatever was collected is still emitted at the end.
"""

from enum import Enum, auto
from typing import List, Optional

QUOTE = '"'
DELIMITER = ","


class CellParserState(Enum):
    """Scanner state while walking a cell."""
    NORMAL = auto()
    IN_QUOTED_SPAN = auto()


def _emit(tokens: List[str], buffer: List[str]) -> None:
    token = "".join(buffer).strip()
    if token:
        tokens.append(token)
    buffer.clear()


def parse_multi_value(cell: Optional[str]) -> List[str]:
    """Split a reference cell into trimmed, non-blank tokens in source order.

    Args:
        cell: Raw cell text (``None`` or empty gives ``[]``)

    Returns:
        List of tokens, e.g. ``'A,"B, C",D'`` -> ``["A", "B, C", "D"]``
    """
    if not cell:
        return []

    tokens: List[str] = []
    buffer: List[str] = []
    state = CellParserState.NORMAL

    for char in cell:
        if char == QUOTE:
            if state is CellParserState.NORMAL:
                state = CellParserState.IN_QUOTED_SPAN
            else:
                state = CellParserState.NORMAL
            continue

        if char == DELIMITER and state is CellParserState.NORMAL:
            _emit(tokens, buffer)
        else:
            buffer.append(char)

    _emit(tokens, buffer)
    return tokens
