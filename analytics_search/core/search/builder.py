"""Search query document builder.

Accumulates filters, time range, free-text search, pagination and timeout
into one ``QueryDocument``. Every mutator returns the builder so calls can
be chained:

    builder = (QueryDocumentBuilder(start, end, interval="day")
        .set_permission_scope(scope_rules)
        .filter_by_time_range()
        .filter_exclude_imported()
        .set_search_filters(request_filters))
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from analytics_search.core.config import Settings, get_settings
from analytics_search.core.search.document import TIMESTAMP_FIELD, QueryDocument
from analytics_search.core.search.filters import (
    RuleTreeInput,
    compile_rule_tree,
    describe,
)
from analytics_search.core.search.query import (
    ExistsQuery,
    PrefixQuery,
    Query,
    QueryStringQuery,
    RangeQuery,
    TermQuery,
)

logger = logging.getLogger(__name__)

IMPORTED_MARKER_FIELD = "imported"
HIERARCHY_FIELD = "request_hierarchy"


class QueryDocumentBuilder:
    """Builds the search request for one analytics report.

    Args:
        start_time: Inclusive lower bound of the reporting window
        end_time: Inclusive upper bound of the reporting window
        interval: Histogram bucket interval (minute, hour, day, week, month)
        settings: Settings override; defaults to the process settings
    """

    def __init__(
        self,
        start_time: Any,
        end_time: Any,
        interval: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        if start_time is None or start_time == "":
            raise ValueError("start_time is required")
        if end_time is None or end_time == "":
            raise ValueError("end_time is required")

        self.start_time = start_time
        self.end_time = end_time
        self.interval = interval
        self.settings = settings or get_settings()
        self.document = QueryDocument(timeout=self.settings.ANALYTICS_QUERY_TIMEOUT)

    def add_filter(self, clause: Query) -> "QueryDocumentBuilder":
        """Append a required filter clause."""
        self.document.must.append(clause)
        return self

    def add_exclusion(self, clause: Query) -> "QueryDocumentBuilder":
        """Append an excluded filter clause."""
        self.document.must_not.append(clause)
        return self

    def set_permission_scope(self, rules: RuleTreeInput) -> "QueryDocumentBuilder":
        """Restrict results to the caller's already-resolved permission scope.

        Raises:
            ValueError: If the scope compiles to no filter.
        """
        clause = compile_rule_tree(rules)
        if clause is None:
            raise ValueError("permission scope must contain at least one rule")
        return self.add_filter(clause)

    def filter_by_time_range(self) -> "QueryDocumentBuilder":
        return self.add_filter(
            RangeQuery(field=TIMESTAMP_FIELD, gte=self.start_time, lte=self.end_time)
        )

    def filter_exclude_imported(self) -> "QueryDocumentBuilder":
        """Exclude documents backfilled from imports."""
        return self.add_exclusion(ExistsQuery(field=IMPORTED_MARKER_FIELD))

    def set_search_query_string(self, query_string: Optional[str]) -> "QueryDocumentBuilder":
        """Replace the base query with a free-text query; blank text is ignored."""
        if query_string:
            self.document.query = QueryStringQuery(query=query_string)
        return self

    def set_search_filters(self, rules: RuleTreeInput) -> "QueryDocumentBuilder":
        """Add the user's filter rules (structured or JSON-serialized)."""
        clause = compile_rule_tree(rules)
        if clause is not None:
            logger.debug(f"Search filters compiled: {describe(clause)}")
            self.add_filter(clause)
        return self

    def filter_by_ip_country(self, country: str) -> "QueryDocumentBuilder":
        return self.add_filter(TermQuery(field="request_ip_country", value=country))

    def filter_by_ip_region(self, region: str) -> "QueryDocumentBuilder":
        return self.add_filter(TermQuery(field="request_ip_region", value=region))

    def filter_by_hierarchy_prefix(self, prefix: str) -> "QueryDocumentBuilder":
        return self.add_filter(PrefixQuery(field=HIERARCHY_FIELD, value=prefix))

    def set_offset(self, offset: int) -> "QueryDocumentBuilder":
        self.document.from_ = _non_negative("offset", offset)
        return self

    def set_limit(self, limit: int) -> "QueryDocumentBuilder":
        self.document.size = _non_negative("limit", limit)
        return self

    def set_timeout(self, timeout: Union[int, float]) -> "QueryDocumentBuilder":
        """Set the backend query timeout in seconds."""
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError(f"timeout must be a positive number of seconds, got {timeout!r}")
        self.document.timeout = timeout
        return self

    def build(self) -> Dict[str, Any]:
        """Render the request body."""
        return self.document.to_dict()


def _non_negative(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return value
