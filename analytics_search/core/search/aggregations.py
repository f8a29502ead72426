"""Search Aggregations.

Provides the aggregation specs used by the analytics dashboards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Backend major versions below this need legacy request shapes
LEGACY_API_VERSION = 2


def is_legacy_api(api_version: int) -> bool:
    return api_version < LEGACY_API_VERSION


@dataclass
class Aggregation:
    """Base aggregation class."""

    name: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Elasticsearch aggregation dict keyed by name."""
        raise NotImplementedError

    def body(self) -> Dict[str, Any]:
        """Aggregation body without the name key."""
        return self.to_dict()[self.name]


def _nest(result: Dict[str, Any], sub_aggregations: List[Aggregation]) -> Dict[str, Any]:
    if sub_aggregations:
        result["aggregations"] = {agg.name: agg.body() for agg in sub_aggregations}
    return result


# ============================================================================
# Bucket Aggregations
# ============================================================================

@dataclass
class TermsAggregation(Aggregation):
    """Terms bucket aggregation. ``size=0`` means unbounded on legacy backends."""

    field: str
    size: int = 10
    shard_size: Optional[int] = None
    order: Optional[Dict[str, str]] = None
    include: Optional[str] = None
    sub_aggregations: List[Aggregation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        terms_body: Dict[str, Any] = {
            "field": self.field,
            "size": self.size,
        }

        if self.shard_size is not None:
            terms_body["shard_size"] = self.shard_size

        if self.order:
            terms_body["order"] = self.order

        if self.include:
            terms_body["include"] = self.include

        return {self.name: _nest({"terms": terms_body}, self.sub_aggregations)}


@dataclass
class DateHistogramAggregation(Aggregation):
    """Date histogram bucket aggregation.

    ``min_doc_count`` is always rendered so empty buckets inside the
    extended bounds are returned.
    """

    field: str
    interval: Optional[str] = None  # minute, hour, day, week, month
    time_zone: Optional[str] = None
    min_doc_count: int = 0
    extended_bounds: Optional[Dict[str, Any]] = None
    pre_zone_adjust_large_interval: bool = False
    sub_aggregations: List[Aggregation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        date_hist_body: Dict[str, Any] = {"field": self.field}

        if self.interval:
            date_hist_body["interval"] = self.interval

        if self.time_zone:
            date_hist_body["time_zone"] = self.time_zone

        date_hist_body["min_doc_count"] = self.min_doc_count

        if self.extended_bounds:
            date_hist_body["extended_bounds"] = self.extended_bounds

        if self.pre_zone_adjust_large_interval:
            date_hist_body["pre_zone_adjust_large_interval"] = True

        return {self.name: _nest({"date_histogram": date_hist_body}, self.sub_aggregations)}


@dataclass
class MissingAggregation(Aggregation):
    """Single bucket counting documents without a value for the field."""

    field: str

    def to_dict(self) -> Dict[str, Any]:
        return {self.name: {"missing": {"field": self.field}}}


# ============================================================================
# Metrics Aggregations
# ============================================================================

@dataclass
class AvgAggregation(Aggregation):
    """Average metric aggregation."""

    field: str

    def to_dict(self) -> Dict[str, Any]:
        return {self.name: {"avg": {"field": self.field}}}


@dataclass
class MaxAggregation(Aggregation):
    """Max metric aggregation."""

    field: str

    def to_dict(self) -> Dict[str, Any]:
        return {self.name: {"max": {"field": self.field}}}


@dataclass
class CardinalityAggregation(Aggregation):
    """Cardinality (approximate unique count) metric aggregation."""

    field: str
    precision_threshold: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            self.name: {
                "cardinality": {
                    "field": self.field,
                    "precision_threshold": self.precision_threshold,
                }
            }
        }


@dataclass
class ValueCountAggregation(Aggregation):
    """Value count metric aggregation."""

    field: str

    def to_dict(self) -> Dict[str, Any]:
        return {self.name: {"value_count": {"field": self.field}}}


# ============================================================================
# Factories
# ============================================================================

def date_histogram(
    name: str,
    field: str,
    interval: Optional[str],
    start_time: Any,
    end_time: Any,
    time_zone: str,
    api_version: int,
) -> DateHistogramAggregation:
    """Build a date histogram with empty buckets across ``[start, end]``.

    Legacy backends get ``pre_zone_adjust_large_interval`` so day and larger
    buckets are aligned to the requested timezone.
    """
    return DateHistogramAggregation(
        name=name,
        field=field,
        interval=interval,
        time_zone=time_zone,
        min_doc_count=0,
        extended_bounds={"min": start_time, "max": end_time},
        pre_zone_adjust_large_interval=is_legacy_api(api_version),
    )
