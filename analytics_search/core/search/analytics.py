"""Analytics search facade.

Binds the aggregation planner to a result fetcher so a reporting service
can build and run a report query on one object:

    search = AnalyticsSearch(start, end, interval="day")
    search.set_permission_scope(scope).filter_by_time_range()
    search.aggregate_by_interval().aggregate_by_users(10)
    results = search.fetch_results()
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from analytics_search.core.config import Settings
from analytics_search.core.search.client import SearchBackend, get_search_backend
from analytics_search.core.search.fetcher import PageCallback, ResultFetcher
from analytics_search.core.search.planner import AggregationPlanner


class AnalyticsSearch(AggregationPlanner):
    """Report query builder that can execute itself."""

    def __init__(
        self,
        start_time: Any,
        end_time: Any,
        interval: Optional[str] = None,
        settings: Optional[Settings] = None,
        backend: Optional[SearchBackend] = None,
    ):
        super().__init__(start_time, end_time, interval=interval, settings=settings)
        self.fetcher = ResultFetcher(
            backend or get_search_backend(),
            api_version=self.api_version,
            index=self.settings.ELASTICSEARCH_INDEX,
        )

    def fetch_results(self) -> Optional[Dict[str, Any]]:
        """Run the query; None if the backend request failed."""
        return self.fetcher.fetch_results(self.document)

    def fetch_results_bulk(
        self,
        callback: PageCallback,
        clear_on_failure: bool = False,
    ) -> bool:
        """Scroll through every matching document, one page per callback."""
        return self.fetcher.fetch_results_bulk(
            self.document, callback, clear_on_failure=clear_on_failure
        )
