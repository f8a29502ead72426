"""Aggregation planning for analytics reports.

Adds the dashboard aggregations (histograms, top terms, cardinality,
drilldown) onto the builder's document. Aggregation names are fixed per
report type; registering a name twice keeps the last definition.
"""

from __future__ import annotations

from typing import Dict, Optional

from analytics_search.core.search.aggregations import (
    AvgAggregation,
    CardinalityAggregation,
    DateHistogramAggregation,
    MaxAggregation,
    MissingAggregation,
    TermsAggregation,
    ValueCountAggregation,
    date_histogram,
)
from analytics_search.core.search.builder import HIERARCHY_FIELD, QueryDocumentBuilder
from analytics_search.core.search.document import TIMESTAMP_FIELD
from analytics_search.core.search.filters import escape_regex

# Shards return this many times the requested size to sharpen top-N counts
SHARD_SIZE_FACTOR = 4
CARDINALITY_PRECISION_THRESHOLD = 100
DRILLDOWN_TOP_PATHS = 10
REGION_BUCKETS = 500


class AggregationPlanner(QueryDocumentBuilder):
    """Query document builder with the analytics aggregation mutators."""

    @property
    def api_version(self) -> int:
        return self.settings.ELASTICSEARCH_API_VERSION

    def _hits_over_time(self, name: str) -> DateHistogramAggregation:
        return date_histogram(
            name=name,
            field=TIMESTAMP_FIELD,
            interval=self.interval,
            start_time=self.start_time,
            end_time=self.end_time,
            time_zone=self.settings.ANALYTICS_TIMEZONE,
            api_version=self.api_version,
        )

    def aggregate_by_interval(self) -> "AggregationPlanner":
        self.document.add_aggregation(self._hits_over_time("hits_over_time"))
        return self

    def aggregate_by_term(self, field: str, size: int) -> "AggregationPlanner":
        """Top ``size`` values of ``field`` plus value and missing counts."""
        self.document.add_aggregation(TermsAggregation(
            name=f"top_{field}",
            field=field,
            size=size,
            shard_size=size * SHARD_SIZE_FACTOR,
        ))
        self.document.add_aggregation(ValueCountAggregation(
            name=f"value_count_{field}", field=field
        ))
        self.document.add_aggregation(MissingAggregation(
            name=f"missing_{field}", field=field
        ))
        return self

    def aggregate_by_cardinality(self, field: str) -> "AggregationPlanner":
        self.document.add_aggregation(CardinalityAggregation(
            name=f"unique_{field}",
            field=field,
            precision_threshold=CARDINALITY_PRECISION_THRESHOLD,
        ))
        return self

    def aggregate_by_users(self, size: int) -> "AggregationPlanner":
        self.aggregate_by_term("user_email", size)
        return self.aggregate_by_cardinality("user_email")

    def aggregate_by_request_ip(self, size: int) -> "AggregationPlanner":
        self.aggregate_by_term("request_ip", size)
        return self.aggregate_by_cardinality("request_ip")

    def aggregate_by_response_time_average(self) -> "AggregationPlanner":
        self.document.add_aggregation(AvgAggregation(
            name="response_time_average", field="response_time"
        ))
        return self

    def aggregate_by_drilldown(self, prefix: str, size: int = 0) -> "AggregationPlanner":
        """Child paths under ``prefix``; ``size=0`` returns every bucket."""
        self.document.add_aggregation(TermsAggregation(
            name="drilldown",
            field=HIERARCHY_FIELD,
            size=size or 0,
            include=f"{escape_regex(prefix)}.*",
        ))
        return self

    def aggregate_by_drilldown_over_time(self, prefix: str) -> "AggregationPlanner":
        """Restrict to ``prefix`` and chart the top child paths over time."""
        self.filter_by_hierarchy_prefix(prefix)

        self.document.add_aggregation(TermsAggregation(
            name="top_path_hits_over_time",
            field=HIERARCHY_FIELD,
            size=DRILLDOWN_TOP_PATHS,
            include=f"{escape_regex(prefix)}.*",
            sub_aggregations=[self._hits_over_time("drilldown_over_time")],
        ))
        self.document.add_aggregation(self._hits_over_time("hits_over_time"))
        return self

    def aggregate_by_user_stats(
        self, order: Optional[Dict[str, str]] = None
    ) -> "AggregationPlanner":
        """Per-user request counts with the time of each user's last request."""
        self.document.add_aggregation(TermsAggregation(
            name="user_stats",
            field="user_id",
            size=0,
            order=order,
            sub_aggregations=[
                MaxAggregation(name="last_request_at", field=TIMESTAMP_FIELD),
            ],
        ))
        return self

    def aggregate_by_ip_region_field(self, field: str) -> "AggregationPlanner":
        self.document.add_aggregation(TermsAggregation(
            name="regions", field=field, size=REGION_BUCKETS
        ))
        self.document.add_aggregation(MissingAggregation(
            name="missing_regions", field=field
        ))
        return self
