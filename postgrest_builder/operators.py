"""Encoding of PostgREST filter operators.

A filter is sent as ``column=<operator>.<value>``. This module produces the
``<operator>.<value>`` half. Operands are passed through as given: callers
are responsible for valid PostgREST literal syntax, the only rewriting
done here is rendering ``in`` lists and range tuples.
"""

from enum import Enum
from typing import Any, Iterable


class Operator(str, Enum):
    """Filter operator tokens understood by PostgREST."""

    EQ = "eq"            # Equal
    NEQ = "neq"          # Not equal
    GT = "gt"            # Greater than
    GTE = "gte"          # Greater than or equal
    LT = "lt"            # Less than
    LTE = "lte"          # Less than or equal
    LIKE = "like"        # LIKE
    ILIKE = "ilike"      # ILIKE (case-insensitive)
    IS = "is"            # IS null/true/false/unknown
    IN = "in"            # One of a list of values
    FTS = "fts"          # to_tsquery
    PLFTS = "plfts"      # plainto_tsquery
    PHFTS = "phfts"      # phraseto_tsquery
    WFTS = "wfts"        # websearch_to_tsquery
    CS = "cs"            # Contains
    CD = "cd"            # Contained by
    OV = "ov"            # Overlap
    SL = "sl"            # Strictly left of
    SR = "sr"            # Strictly right of
    NXR = "nxr"          # Does not extend to the right of
    NXL = "nxl"          # Does not extend to the left of
    ADJ = "adj"          # Adjacent to


# Operators whose operand is a list rendered as ``(a,b,c)``.
LIST_OPERATORS = {Operator.IN}

# Operators that take an optional text search configuration, ``fts(english)``.
TEXT_SEARCH_OPERATORS = {Operator.FTS, Operator.PLFTS, Operator.PHFTS, Operator.WFTS}

# Operators whose operand may be a ``(low, high)`` pair.
RANGE_OPERATORS = {
    Operator.CS,
    Operator.CD,
    Operator.OV,
    Operator.SL,
    Operator.SR,
    Operator.NXR,
    Operator.NXL,
    Operator.ADJ,
}

_RESERVED_LIST_CHARS = ",()"


def render_value(value: Any) -> str:
    """Render a scalar operand the way PostgREST spells it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_list(values: Iterable[Any]) -> str:
    """Render an ``in`` operand, quoting items that contain ``,`` ``(`` or ``)``.

    A single string is one item, not a sequence of characters.
    """
    if isinstance(values, str):
        values = [values]
    items = []
    for value in values:
        item = render_value(value)
        if any(c in item for c in _RESERVED_LIST_CHARS):
            item = f'"{item}"'
        items.append(item)
    return f"({','.join(items)})"


def render_range(value: Any) -> str:
    """Render a range operand: a ``(lo, hi)`` tuple becomes ``(lo,hi)``, text is kept."""
    if isinstance(value, tuple):
        return f"({','.join(render_value(bound) for bound in value)})"
    return render_value(value)


def encode(
    operator: Operator | str,
    value: Any,
    *,
    config: str | None = None,
    negate: bool = False,
) -> str:
    """Encode an operator and its operand into a query-parameter value.

    Args:
        operator: Operator token, as an ``Operator`` or its string value.
        value: The operand. Lists for ``in``, 2-tuples or range literals for
            the range operators, anything else is rendered verbatim.
        config: Text search configuration (language) for the ``fts`` family.
        negate: Prefix the filter with ``not.``.

    Returns:
        The encoded value, e.g. ``eq.1``, ``in.(a,b)`` or ``fts(english).cat``.

    Example:
        >>> encode("in", ["China", "France"])
        'in.(China,France)'
    """
    op = Operator(operator)

    if op in LIST_OPERATORS:
        operand = render_list(value)
    elif op in RANGE_OPERATORS:
        operand = render_range(value)
    else:
        operand = render_value(value)

    token = op.value
    if op in TEXT_SEARCH_OPERATORS and config:
        token = f"{token}({config})"

    encoded = f"{token}.{operand}"
    if negate:
        encoded = f"not.{encoded}"
    return encoded
