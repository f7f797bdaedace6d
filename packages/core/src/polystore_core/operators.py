from enum import Enum


class FilterOperator(str, Enum):
    """Operators of the canonical filter grammar."""

    # Comparison (a bare scalar field value compiles to EQ)
    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"

    # Set membership
    IN = "$in"
    NIN = "$nin"

    # Pattern match (SQL LIKE wildcards: % and _)
    LIKE = "$like"
    NOT_LIKE = "$notLike"

    # Logical
    AND = "$and"
    OR = "$or"


LOGICAL_OPERATORS: frozenset[FilterOperator] = frozenset(
    {FilterOperator.AND, FilterOperator.OR}
)

# Operators a caller may put inside a field clause, e.g. {"age": {"$gt": 30}}
FIELD_OPERATORS: frozenset[FilterOperator] = frozenset(
    op for op in FilterOperator if op not in LOGICAL_OPERATORS
)

SET_OPERATORS: frozenset[FilterOperator] = frozenset(
    {FilterOperator.IN, FilterOperator.NIN}
)

PATTERN_OPERATORS: frozenset[FilterOperator] = frozenset(
    {FilterOperator.LIKE, FilterOperator.NOT_LIKE}
)
