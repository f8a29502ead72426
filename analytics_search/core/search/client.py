"""Search Backend Implementation.

Defines the contract the fetcher expects from the search backend and
provides an HTTP backend plus a recording backend for tests.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Iterable, List, Optional, Union

import httpx

from analytics_search.core.search.errors import SearchBackendError

logger = logging.getLogger(__name__)


@dataclass
class SearchRequest:
    """A request issued to a search backend."""
    path: str
    method: str
    params: Dict[str, Any] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None


class SearchBackend(ABC):
    """Abstract base class for search backends."""

    @abstractmethod
    def query(
        self,
        path: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send one request and return the decoded JSON response.

        Args:
            path: Request path, e.g. ``/_search`` or ``/_search/scroll``
            method: HTTP method
            params: URL query parameters
            body: JSON request body

        Returns:
            Decoded response body

        Raises:
            SearchBackendError: On transport failure or an error response
        """
        pass

    def close(self) -> None:
        """Release backend resources."""


class HttpSearchBackend(SearchBackend):
    """Elasticsearch backend over plain HTTP."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if base_url is None or timeout is None:
            from analytics_search.core.config import get_settings

            settings = get_settings()
            base_url = base_url or settings.ELASTICSEARCH_URL
            timeout = timeout if timeout is not None else settings.ELASTICSEARCH_HTTP_TIMEOUT

        self.base_url = base_url
        self.timeout = timeout
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    def query(
        self,
        path: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = self._client.request(
                method,
                path,
                params=_encode_params(params),
                json=body,
            )
        except httpx.HTTPError as e:
            raise SearchBackendError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise SearchBackendError(
                f"{method} {path} returned HTTP {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise SearchBackendError(
                f"{method} {path} returned invalid JSON: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def close(self) -> None:
        self._client.close()


class RecordingSearchBackend(SearchBackend):
    """In-memory backend for testing.

    Replays scripted responses in order and records every request. A
    scripted exception is raised instead of returned.
    """

    def __init__(self, responses: Optional[Iterable[Union[Dict[str, Any], Exception]]] = None):
        self._responses: Deque[Union[Dict[str, Any], Exception]] = deque(responses or [])
        self.requests: List[SearchRequest] = []

    def queue(self, response: Union[Dict[str, Any], Exception]) -> "RecordingSearchBackend":
        self._responses.append(response)
        return self

    def query(
        self,
        path: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        self.requests.append(SearchRequest(
            path=path,
            method=method,
            params=dict(params or {}),
            body=copy.deepcopy(body),
        ))

        if not self._responses:
            raise SearchBackendError(f"no scripted response for {method} {path}")

        response = self._responses.popleft()
        if isinstance(response, Exception):
            raise response
        return response

    def requests_to(self, path: str, method: Optional[str] = None) -> List[SearchRequest]:
        return [
            r for r in self.requests
            if r.path == path and (method is None or r.method == method)
        ]


def _encode_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    if not params:
        return None
    encoded: Dict[str, str] = {}
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            encoded[key] = ",".join(str(v) for v in value)
        else:
            encoded[key] = str(value)
    return encoded


# Global search backend
_search_backend: Optional[SearchBackend] = None


def get_search_backend() -> SearchBackend:
    """Get global search backend, creating the HTTP backend on first use."""
    global _search_backend

    if _search_backend is None:
        backend = HttpSearchBackend()
        logger.info(f"Search backend configured for {backend.base_url}")
        _search_backend = backend

    return _search_backend


def set_search_backend(backend: Optional[SearchBackend]) -> None:
    """Set global search backend."""
    global _search_backend
    _search_backend = backend
