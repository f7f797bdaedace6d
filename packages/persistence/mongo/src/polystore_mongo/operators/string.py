"""
Pattern operators -> ``$regex``.

MongoDB has no ``LIKE``; the pattern is escaped and rewritten with SQL
wildcards (``%`` = any run, ``_`` = one character), anchored at both ends and matched
case-insensitively, as the SQL backends do with ``ILIKE``.
"""

from __future__ import annotations

import re
from typing import Any

from polystore_core.operators import FilterOperator
from polystore_core.primitives.exceptions import CompilationError


def like_to_regex(pattern: str) -> str:
    """``"Ad%"`` -> ``"^Ad.*$"``."""
    escaped = "".join(
        ".*" if ch == "%" else "." if ch == "_" else re.escape(ch) for ch in pattern
    )
    return f"^{escaped}$"


def compile_string(field: str, op: str, val: Any) -> dict[str, Any] | None:
    """Compile pattern operators to MongoDB $regex. Returns None if not a pattern op."""
    try:
        filter_op = FilterOperator(op)
    except ValueError:
        return None
    if filter_op not in (FilterOperator.LIKE, FilterOperator.NOT_LIKE):
        return None
    if not isinstance(val, str):
        raise CompilationError(f"Pattern operator {op} requires a string value", path=field)

    regex = like_to_regex(val)
    if filter_op == FilterOperator.LIKE:
        return {field: {"$regex": regex, "$options": "i"}}
    # NOT LIKE never matches NULL in SQL; keep missing/null fields out here too
    return {field: {"$not": re.compile(regex, re.IGNORECASE), "$ne": None}}
