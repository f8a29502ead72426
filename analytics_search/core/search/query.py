"""Search Query DSL model.

Typed, immutable clauses rendered to Elasticsearch query dicts. Filter
clauses are produced by the rule compiler in ``filters``; base queries are
set by the document builder.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class Query:
    """Base query class."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Elasticsearch query dict."""
        raise NotImplementedError


# ============================================================================
# Base Queries
# ============================================================================

@dataclass(frozen=True)
class MatchAllQuery(Query):
    """Match all documents."""

    def to_dict(self) -> Dict[str, Any]:
        return {"match_all": {}}


@dataclass(frozen=True)
class QueryStringQuery(Query):
    """Free-text query in Lucene query string syntax."""

    query: str

    def to_dict(self) -> Dict[str, Any]:
        return {"query_string": {"query": self.query}}


# ============================================================================
# Filter Clauses
# ============================================================================

@dataclass(frozen=True)
class TermQuery(Query):
    """Exact term match."""

    field: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"term": {self.field: self.value}}


@dataclass(frozen=True)
class PrefixQuery(Query):
    """Prefix match."""

    field: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"prefix": {self.field: self.value}}


@dataclass(frozen=True)
class RegexpQuery(Query):
    """Regular expression match (Lucene regex syntax)."""

    field: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"regexp": {self.field: self.value}}


@dataclass(frozen=True)
class RangeQuery(Query):
    """Range query. Unset bounds are omitted."""

    field: str
    gte: Optional[Any] = None
    gt: Optional[Any] = None
    lte: Optional[Any] = None
    lt: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        range_body: Dict[str, Any] = {}

        if self.gte is not None:
            range_body["gte"] = self.gte
        if self.gt is not None:
            range_body["gt"] = self.gt
        if self.lte is not None:
            range_body["lte"] = self.lte
        if self.lt is not None:
            range_body["lt"] = self.lt

        return {"range": {self.field: range_body}}


@dataclass(frozen=True)
class ExistsQuery(Query):
    """Field exists query."""

    field: str

    def to_dict(self) -> Dict[str, Any]:
        return {"exists": {"field": self.field}}


@dataclass(frozen=True)
class BoolQuery(Query):
    """Boolean compound query. Empty clause groups are omitted."""

    must: Tuple[Query, ...] = ()
    must_not: Tuple[Query, ...] = ()
    should: Tuple[Query, ...] = ()
    minimum_should_match: Optional[Union[int, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        bool_body: Dict[str, Any] = {}

        if self.must:
            bool_body["must"] = [q.to_dict() for q in self.must]

        if self.must_not:
            bool_body["must_not"] = [q.to_dict() for q in self.must_not]

        if self.should:
            bool_body["should"] = [q.to_dict() for q in self.should]

        if self.minimum_should_match is not None:
            bool_body["minimum_should_match"] = self.minimum_should_match

        return {"bool": bool_body}


FilterClause = Union[
    TermQuery, PrefixQuery, RegexpQuery, RangeQuery, ExistsQuery, BoolQuery
]
