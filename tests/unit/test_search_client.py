"""Tests for search backends."""

import json

import httpx
import pytest

from analytics_search.core.search.client import (
    HttpSearchBackend,
    RecordingSearchBackend,
    get_search_backend,
    set_search_backend,
)
from analytics_search.core.search.errors import SearchBackendError


def _backend(handler):
    return HttpSearchBackend(
        base_url="http://search.test:9200",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


class TestHttpSearchBackend:
    """Test the HTTP backend against a mock transport."""

    def test_query_sends_request(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"hits": {"hits": []}})

        backend = _backend(handler)
        result = backend.query(
            "/_search",
            method="POST",
            params={"scroll": "10m", "search_type": "scan"},
            body={"size": 0},
        )

        assert result == {"hits": {"hits": []}}
        assert seen == {
            "method": "POST",
            "path": "/_search",
            "params": {"scroll": "10m", "search_type": "scan"},
            "body": {"size": 0},
        }

    def test_delete_with_body(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"succeeded": True})

        _backend(handler).query(
            "/_search/scroll", method="DELETE", body={"scroll_id": ["abc"]}
        )

        assert seen == {"method": "DELETE", "body": {"scroll_id": ["abc"]}}

    def test_list_params_joined(self):
        seen = {}

        def handler(request):
            seen["sort"] = request.url.params["sort"]
            return httpx.Response(200, json={})

        _backend(handler).query("/_search", params={"sort": ["_doc", "request_at"]})

        assert seen["sort"] == "_doc,request_at"

    def test_http_error_status(self):
        def handler(request):
            return httpx.Response(400, json={"error": "parse_exception"})

        with pytest.raises(SearchBackendError) as exc_info:
            _backend(handler).query("/_search", method="POST", body={})

        assert exc_info.value.status_code == 400
        assert "parse_exception" in exc_info.value.body

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SearchBackendError, match="connection refused"):
            _backend(handler).query("/_search")

    def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>")

        with pytest.raises(SearchBackendError, match="invalid JSON"):
            _backend(handler).query("/_search")

    def test_defaults_from_settings(self, monkeypatch):
        monkeypatch.setenv("ELASTICSEARCH_URL", "http://es.internal:9200")
        monkeypatch.setenv("ELASTICSEARCH_HTTP_TIMEOUT", "12.5")

        backend = HttpSearchBackend()

        assert backend.base_url == "http://es.internal:9200"
        assert backend.timeout == 12.5
        backend.close()


class TestRecordingSearchBackend:
    """Test the recording backend used by tests."""

    def test_replays_in_order(self):
        backend = RecordingSearchBackend([{"n": 1}, {"n": 2}])

        assert backend.query("/a") == {"n": 1}
        assert backend.query("/b", method="DELETE") == {"n": 2}
        assert [(r.path, r.method) for r in backend.requests] == [("/a", "GET"), ("/b", "DELETE")]

    def test_raises_scripted_error(self):
        backend = RecordingSearchBackend([SearchBackendError("down")])

        with pytest.raises(SearchBackendError, match="down"):
            backend.query("/_search")

    def test_exhausted_script(self):
        with pytest.raises(SearchBackendError, match="no scripted response"):
            RecordingSearchBackend().query("/_search")

    def test_records_body_snapshot(self):
        backend = RecordingSearchBackend([{}])
        body = {"size": 1}

        backend.query("/_search", body=body)
        body["size"] = 2

        assert backend.requests[0].body == {"size": 1}


class TestGlobalSearchBackend:
    """Test the process-wide backend accessor."""

    def test_set_and_get(self):
        backend = RecordingSearchBackend()
        set_search_backend(backend)

        assert get_search_backend() is backend

    def test_default_is_http_backend(self):
        backend = get_search_backend()

        assert isinstance(backend, HttpSearchBackend)
        assert get_search_backend() is backend
        backend.close()
