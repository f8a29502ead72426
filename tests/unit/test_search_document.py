"""Tests for the query DSL model, aggregations and request document."""

from analytics_search.core.search.aggregations import (
    CardinalityAggregation,
    DateHistogramAggregation,
    MaxAggregation,
    TermsAggregation,
    date_histogram,
)
from analytics_search.core.search.document import QueryDocument
from analytics_search.core.search.query import (
    BoolQuery,
    MatchAllQuery,
    QueryStringQuery,
    RangeQuery,
    RegexpQuery,
    TermQuery,
)


class TestSearchQuery:
    """Test query DSL rendering."""

    def test_match_all_query(self):
        assert MatchAllQuery().to_dict() == {"match_all": {}}

    def test_query_string_query(self):
        assert QueryStringQuery(query="status:500").to_dict() == {
            "query_string": {"query": "status:500"}
        }

    def test_range_query_omits_unset_bounds(self):
        assert RangeQuery(field="response_time", gt=3).to_dict() == {
            "range": {"response_time": {"gt": 3}}
        }

    def test_range_query_keeps_zero_bound(self):
        assert RangeQuery(field="response_time", gte=0).to_dict() == {
            "range": {"response_time": {"gte": 0}}
        }

    def test_regexp_query(self):
        assert RegexpQuery(field="request_path", value=".*a.*").to_dict() == {
            "regexp": {"request_path": ".*a.*"}
        }

    def test_bool_query_omits_empty_groups(self):
        query = BoolQuery(must_not=(TermQuery(field="a", value=1),))

        assert query.to_dict() == {"bool": {"must_not": [{"term": {"a": 1}}]}}


class TestSearchAggregations:
    """Test aggregation rendering."""

    def test_terms_aggregation(self):
        agg = TermsAggregation(name="top_user_email", field="user_email", size=5, shard_size=20)

        assert agg.to_dict() == {
            "top_user_email": {
                "terms": {"field": "user_email", "size": 5, "shard_size": 20}
            }
        }

    def test_terms_aggregation_with_sub_aggregations(self):
        agg = TermsAggregation(
            name="user_stats",
            field="user_id",
            size=0,
            order={"_count": "desc"},
            sub_aggregations=[MaxAggregation(name="last_request_at", field="request_at")],
        )

        assert agg.body() == {
            "terms": {"field": "user_id", "size": 0, "order": {"_count": "desc"}},
            "aggregations": {"last_request_at": {"max": {"field": "request_at"}}},
        }

    def test_date_histogram_always_renders_min_doc_count(self):
        agg = DateHistogramAggregation(name="h", field="request_at", interval="day")

        assert agg.body()["date_histogram"]["min_doc_count"] == 0

    def test_cardinality_aggregation(self):
        agg = CardinalityAggregation(name="unique_request_ip", field="request_ip")

        assert agg.body() == {
            "cardinality": {"field": "request_ip", "precision_threshold": 100}
        }

    def test_date_histogram_factory_current_version(self):
        agg = date_histogram(
            name="hits_over_time",
            field="request_at",
            interval="hour",
            start_time="2024-01-01T00:00:00Z",
            end_time="2024-01-02T00:00:00Z",
            time_zone="America/Denver",
            api_version=2,
        )

        assert agg.body() == {
            "date_histogram": {
                "field": "request_at",
                "interval": "hour",
                "time_zone": "America/Denver",
                "min_doc_count": 0,
                "extended_bounds": {
                    "min": "2024-01-01T00:00:00Z",
                    "max": "2024-01-02T00:00:00Z",
                },
            }
        }

    def test_date_histogram_factory_legacy_version(self):
        agg = date_histogram(
            name="hits_over_time",
            field="request_at",
            interval="day",
            start_time=1,
            end_time=2,
            time_zone="UTC",
            api_version=1,
        )

        assert agg.body()["date_histogram"]["pre_zone_adjust_large_interval"] is True


class TestQueryDocument:
    """Test request body rendering."""

    def test_default_document(self):
        assert QueryDocument().to_dict() == {
            "query": {
                "filtered": {
                    "query": {"match_all": {}},
                    "filter": {"bool": {"must": [], "must_not": []}},
                }
            },
            "sort": [{"request_at": "desc"}],
            "size": 0,
            "timeout": "90s",
        }

    def test_empty_sequences_render_as_lists(self):
        document = QueryDocument(sort=[])
        body = document.to_dict()

        assert body["sort"] == []
        assert body["query"]["filtered"]["filter"]["bool"]["must"] == []
        assert body["query"]["filtered"]["filter"]["bool"]["must_not"] == []

    def test_aggregations_omitted_when_empty(self):
        assert "aggregations" not in QueryDocument().to_dict()

    def test_aggregation_last_write_wins(self):
        document = QueryDocument()
        document.add_aggregation(TermsAggregation(name="regions", field="a", size=1))
        document.add_aggregation(TermsAggregation(name="regions", field="b", size=2))

        assert document.to_dict()["aggregations"] == {
            "regions": {"terms": {"field": "b", "size": 2}}
        }

    def test_from_rendered_when_set(self):
        document = QueryDocument(from_=0, size=10)
        body = document.to_dict()

        assert body["from"] == 0
        assert body["size"] == 10
