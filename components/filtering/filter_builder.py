"""
Metadata filters for vector-store queries.

A PayloadFilter is a conjunction ("match ALL") of independent conditions. It
renders to the two shapes storage clients accept: the structured ``where``
clause used by the query/get client API, and the REST-style ``{"must": [...]}``
scroll filter. Each condition stays a separate entry in both renderings so
key/value pairs remain individually inspectable.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field
from shared.payload_keys import tag_key


class MatchCondition(BaseModel):
    """Keyword equality on a payload field."""

    key: str = Field(..., description="Payload field name")
    value: str = Field(..., description="Exact value the field must hold")

    def matches(self, payload: Mapping[str, Any]) -> bool:
        return payload.get(self.key) == self.value

    def to_where(self) -> List[Dict[str, Any]]:
        return [{self.key: {"$eq": self.value}}]

    def to_scroll(self) -> Dict[str, Any]:
        return {"key": self.key, "match": {"value": self.value}}


class RangeCondition(BaseModel):
    """Inclusive numeric range on a payload field."""

    key: str = Field(..., description="Payload field name")
    gte: Optional[Union[int, float]] = Field(default=None, description="Lower bound")
    lte: Optional[Union[int, float]] = Field(default=None, description="Upper bound")

    def matches(self, payload: Mapping[str, Any]) -> bool:
        value = payload.get(self.key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if self.gte is not None and value < self.gte:
            return False
        if self.lte is not None and value > self.lte:
            return False
        return True

    def to_where(self) -> List[Dict[str, Any]]:
        # One operator per field expression
        clauses: List[Dict[str, Any]] = []
        if self.gte is not None:
            clauses.append({self.key: {"$gte": self.gte}})
        if self.lte is not None:
            clauses.append({self.key: {"$lte": self.lte}})
        return clauses

    def to_scroll(self) -> Dict[str, Any]:
        bounds = {"gte": self.gte, "lte": self.lte}
        return {
            "key": self.key,
            "range": {k: v for k, v in bounds.items() if v is not None},
        }


Condition = Union[MatchCondition, RangeCondition]


class PayloadFilter(BaseModel):
    """Conjunction of payload conditions."""

    must: List[Condition] = Field(default_factory=list)

    def matches(self, payload: Mapping[str, Any]) -> bool:
        """Evaluate the predicate against a payload."""
        return all(condition.matches(payload) for condition in self.must)

    def to_where(self) -> Optional[Dict[str, Any]]:
        """Render as a structured query-API ``where`` clause."""
        clauses: List[Dict[str, Any]] = []
        for condition in self.must:
            clauses.extend(condition.to_where())

        if not clauses:
            return None
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}

    def to_scroll_filter(self) -> Optional[Dict[str, Any]]:
        """Render as a REST-style scroll filter object."""
        if not self.must:
            return None
        return {"must": [condition.to_scroll() for condition in self.must]}


class FilterBuilder:
    """Builds tag filters over the namespaced ``tag_{key}`` payload fields."""

    def build(self, tags: Optional[Mapping[str, str]]) -> Optional[PayloadFilter]:
        """Return a filter requiring every tag, or None when there are no tags."""
        if not tags:
            return None

        return PayloadFilter(
            must=[
                MatchCondition(key=tag_key(key), value=value)
                for key, value in tags.items()
            ]
        )

    def build_query_filter(
        self, tags: Optional[Mapping[str, str]]
    ) -> Optional[Dict[str, Any]]:
        payload_filter = self.build(tags)
        return payload_filter.to_where() if payload_filter else None

    def build_scroll_filter(
        self, tags: Optional[Mapping[str, str]]
    ) -> Optional[Dict[str, Any]]:
        payload_filter = self.build(tags)
        return payload_filter.to_scroll_filter() if payload_filter else None
