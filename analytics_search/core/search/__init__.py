"""Analytics search module.

Provides:
- Rule tree to filter clause compilation
- Query document building
- Dashboard aggregation planning
- Single page and scroll result fetching
"""

from analytics_search.core.search.aggregations import (
    Aggregation,
    AvgAggregation,
    CardinalityAggregation,
    DateHistogramAggregation,
    MaxAggregation,
    MissingAggregation,
    TermsAggregation,
    ValueCountAggregation,
    date_histogram,
)
from analytics_search.core.search.analytics import AnalyticsSearch
from analytics_search.core.search.builder import QueryDocumentBuilder
from analytics_search.core.search.client import (
    HttpSearchBackend,
    RecordingSearchBackend,
    SearchBackend,
    SearchRequest,
    get_search_backend,
    set_search_backend,
)
from analytics_search.core.search.document import QueryDocument
from analytics_search.core.search.errors import (
    InvalidFilterOperator,
    InvalidFilterValue,
    MalformedFilterError,
    SearchBackendError,
    SearchError,
)
from analytics_search.core.search.fetcher import ResultFetcher
from analytics_search.core.search.filters import (
    Rule,
    RuleTree,
    compile_rule,
    compile_rule_tree,
    parse_rule_tree,
)
from analytics_search.core.search.planner import AggregationPlanner
from analytics_search.core.search.query import (
    BoolQuery,
    ExistsQuery,
    MatchAllQuery,
    PrefixQuery,
    QueryStringQuery,
    RangeQuery,
    RegexpQuery,
    TermQuery,
)

__all__ = [
    # Filters
    "Rule",
    "RuleTree",
    "compile_rule",
    "compile_rule_tree",
    "parse_rule_tree",
    # Query
    "BoolQuery",
    "ExistsQuery",
    "MatchAllQuery",
    "PrefixQuery",
    "QueryStringQuery",
    "RangeQuery",
    "RegexpQuery",
    "TermQuery",
    # Aggregations
    "Aggregation",
    "AvgAggregation",
    "CardinalityAggregation",
    "DateHistogramAggregation",
    "MaxAggregation",
    "MissingAggregation",
    "TermsAggregation",
    "ValueCountAggregation",
    "date_histogram",
    # Document
    "QueryDocument",
    "QueryDocumentBuilder",
    "AggregationPlanner",
    "AnalyticsSearch",
    # Backend
    "SearchBackend",
    "HttpSearchBackend",
    "RecordingSearchBackend",
    "SearchRequest",
    "get_search_backend",
    "set_search_backend",
    "ResultFetcher",
    # Errors
    "SearchError",
    "InvalidFilterOperator",
    "InvalidFilterValue",
    "MalformedFilterError",
    "SearchBackendError",
]
