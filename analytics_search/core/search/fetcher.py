"""Search result fetching.

Runs finished query documents against a search backend, either as a single
page or as a full scroll scan that streams each page to a callback.

Scroll lifecycle:
    Initial -> Scrolling   first page fetched
    Scrolling -> Scrolling next page non-empty
    Scrolling -> Done      empty page or callback stop; the scroll is cleared
    Initial|Scrolling -> Raised  callback raised; the scroll is cleared and
                                 the exception propagates
    Initial|Scrolling -> Failed  backend error; the scroll is left open
                                 unless ``clear_on_failure`` is set
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, List, Optional

from analytics_search.core.errors import ErrorCode
from analytics_search.core.search.aggregations import is_legacy_api
from analytics_search.core.search.client import SearchBackend
from analytics_search.core.search.document import QueryDocument
from analytics_search.core.search.errors import SearchBackendError

logger = logging.getLogger(__name__)

SEARCH_PATH = "/_search"
SCROLL_PATH = "/_search/scroll"
SCROLL_TTL = "10m"

# Receives one page of raw hits; returning False stops the scan
PageCallback = Callable[[List[Dict[str, Any]]], Optional[bool]]


def _page_hits(response: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    hits = (response or {}).get("hits") or {}
    return hits.get("hits") or []


class ResultFetcher:
    """Executes query documents against a search backend.

    Args:
        backend: Search backend collaborator
        api_version: Backend major version; < 2 selects legacy scan mode
        index: Index or index pattern; empty searches all indices
    """

    def __init__(self, backend: SearchBackend, api_version: int = 1, index: str = ""):
        self.backend = backend
        self.api_version = api_version
        self.index = index

    @property
    def search_path(self) -> str:
        if self.index:
            return f"/{self.index}{SEARCH_PATH}"
        return SEARCH_PATH

    def fetch_results(self, document: QueryDocument) -> Optional[Dict[str, Any]]:
        """Run one search request.

        Returns:
            The decoded response, or None if the backend request failed
        """
        path = self.search_path
        try:
            return self.backend.query(
                path,
                method="POST",
                params=dict(document.params),
                body=document.to_dict(),
            )
        except SearchBackendError as e:
            logger.error(
                f"Failed to query elasticsearch: {e}",
                extra={
                    "error_code": ErrorCode.BACKEND_QUERY_FAILED,
                    "stage": "search",
                    "path": path,
                },
            )
            return None

    def fetch_results_bulk(
        self,
        document: QueryDocument,
        callback: PageCallback,
        clear_on_failure: bool = False,
    ) -> bool:
        """Scan every matching document, one page per callback.

        Pages are fetched strictly in sequence; the callback for one page
        returns before the next page is requested.

        Args:
            document: Query to scan; left unchanged, the scan runs on a copy carrying
                the scroll sort and URL parameters
            callback: Called with each page of hits, including an empty
                first page; return False to stop early
            clear_on_failure: Also clear the scroll when a page request fails

        Returns:
            True if the scan completed or was stopped by the callback,
            False if a backend request failed
        """
        # Scan a copy so scroll parameters never leak into later page fetches
        document = dataclasses.replace(document, params=dict(document.params))
        document.params["scroll"] = SCROLL_TTL
        if is_legacy_api(self.api_version):
            document.sort = []
            document.params.pop("sort", None)
            document.params["search_type"] = "scan"
        else:
            # Index order is the cheapest order to scroll in
            document.sort = ["_doc"]
            document.params.pop("search_type", None)

        response = self.fetch_results(document)
        if response is None:
            return False

        scroll_id = response.get("_scroll_id")
        page = 1
        keep_going = self._deliver(callback, _page_hits(response), page, scroll_id)

        while keep_going:
            if not scroll_id:
                logger.warning("Search response carried no scroll id; stopping scan")
                return True

            try:
                response = self.backend.query(
                    SCROLL_PATH,
                    method="GET",
                    body={"scroll": SCROLL_TTL, "scroll_id": scroll_id},
                )
            except SearchBackendError as e:
                logger.error(
                    f"Failed to query elasticsearch: {e}",
                    extra={
                        "error_code": ErrorCode.BACKEND_SCROLL_FAILED,
                        "stage": "scroll",
                        "path": SCROLL_PATH,
                        "page": page + 1,
                    },
                )
                if clear_on_failure:
                    self._clear_scroll(scroll_id)
                return False

            scroll_id = response.get("_scroll_id") or scroll_id
            hits = _page_hits(response)
            if not hits:
                break

            page += 1
            keep_going = self._deliver(callback, hits, page, scroll_id)

        if not keep_going:
            logger.info(f"Scan stopped by callback after page {page}")

        self._clear_scroll(scroll_id)
        return True

    def _deliver(
        self,
        callback: PageCallback,
        hits: List[Dict[str, Any]],
        page: int,
        scroll_id: Optional[str],
    ) -> bool:
        logger.debug(
            f"Delivering scan page {page} ({len(hits)} hits)",
            extra={"page": page, "hits_count": len(hits)},
        )
        try:
            return callback(hits) is not False
        except Exception:
            # Release the scroll before the callback's error propagates
            self._clear_scroll(scroll_id)
            raise

    def _clear_scroll(self, scroll_id: Optional[str]) -> None:
        if not scroll_id:
            return
        try:
            self.backend.query(
                SCROLL_PATH,
                method="DELETE",
                body={"scroll_id": [scroll_id]},
            )
        except SearchBackendError as e:
            logger.error(
                f"Elasticsearch scroll clear failed: {e}",
                extra={
                    "error_code": ErrorCode.SCROLL_CLEAR_FAILED,
                    "stage": "scroll_clear",
                    "path": SCROLL_PATH,
                    "scroll_id": scroll_id,
                },
            )
