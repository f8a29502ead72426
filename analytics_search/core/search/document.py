"""Typed search request document.

Filter and sort sequences are list-typed so they always serialize as JSON
arrays, including when empty. The aggregation map is left out of the body
when nothing was registered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from analytics_search.core.search.aggregations import Aggregation
from analytics_search.core.search.query import MatchAllQuery, Query

TIMESTAMP_FIELD = "request_at"

DEFAULT_TIMEOUT_SECONDS = 90


def default_sort() -> List[Any]:
    return [{TIMESTAMP_FIELD: "desc"}]


@dataclass
class QueryDocument:
    """Full search request: body fields plus URL query parameters."""

    query: Query = field(default_factory=MatchAllQuery)
    must: List[Query] = field(default_factory=list)
    must_not: List[Query] = field(default_factory=list)
    sort: List[Any] = field(default_factory=default_sort)
    aggregations: Dict[str, Aggregation] = field(default_factory=dict)
    size: int = 0
    from_: Optional[int] = None
    timeout: Union[int, float] = DEFAULT_TIMEOUT_SECONDS
    params: Dict[str, Any] = field(default_factory=dict)

    def add_aggregation(self, aggregation: Aggregation) -> None:
        """Register an aggregation; an existing one with the same name is replaced."""
        self.aggregations[aggregation.name] = aggregation

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the Elasticsearch request body."""
        body: Dict[str, Any] = {
            "query": {
                "filtered": {
                    "query": self.query.to_dict(),
                    "filter": {
                        "bool": {
                            "must": [q.to_dict() for q in self.must],
                            "must_not": [q.to_dict() for q in self.must_not],
                        },
                    },
                },
            },
            "sort": list(self.sort),
        }

        if self.aggregations:
            body["aggregations"] = {
                name: agg.body() for name, agg in self.aggregations.items()
            }

        body["size"] = self.size

        if self.from_ is not None:
            body["from"] = self.from_

        body["timeout"] = f"{self.timeout}s"

        return body
