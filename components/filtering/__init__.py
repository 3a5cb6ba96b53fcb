"""Payload filter construction."""

from .filter_builder import (
    Condition,
    FilterBuilder,
    MatchCondition,
    PayloadFilter,
    RangeCondition,
)

__all__ = [
    "Condition",
    "FilterBuilder",
    "MatchCondition",
    "PayloadFilter",
    "RangeCondition",
]
