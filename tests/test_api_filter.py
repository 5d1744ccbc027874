"""
HTTP boundary tests for the filter endpoints.
Value-safe: error responses must never echo the submitted value.
"""
import inspect

import pytest
from fastapi.testclient import TestClient

from input_filter.api.filter import filter_batch, filter_value, get_input_filter
from input_filter.core.config import get_settings
from input_filter.core.metrics import get_metrics_collector
from input_filter.main import create_app
from input_filter.schemas.cleaner_config import DEFAULT_ALLOWED_TAGS
from input_filter.services.input_filter import InputFilter


def _raising_rule(value):
    raise RuntimeError(f"cannot handle {value}")


@pytest.fixture
def input_filter():
    return InputFilter().set_rule("boom", _raising_rule)


@pytest.fixture
def test_app(input_filter):
    """Fresh app with an isolated filter instance."""
    app = create_app()
    app.dependency_overrides[get_input_filter] = lambda: input_filter
    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


@pytest.fixture(autouse=True)
def reset_metrics():
    get_metrics_collector().reset()
    yield
    get_metrics_collector().reset()


class TestFilterEndpoint:
    """POST /v1/filter"""

    def test_named_type(self, client):
        response = client.post("/v1/filter", json={"value": "abc-42", "type": "int"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == {"value": -42, "type": "INT", "usedDefault": False}
        assert "requestId" in body["metadata"]
        assert "filterMs" in body["metadata"]

    def test_default_type_is_string(self, client):
        response = client.post("/v1/filter", json={"value": "<script>x</script><b>ok</b>"})

        assert response.status_code == 200
        assert response.json()["data"]["value"] == "<b>ok</b>"
        assert response.json()["data"]["type"] == "STRING"

    def test_unknown_type_uses_default_rule(self, client):
        response = client.post(
            "/v1/filter",
            json={"value": ["<script>x</script>ok", 7], "type": "mystery"},
        )

        data = response.json()["data"]
        assert data["value"] == ["ok", 7]
        assert data["type"] == "MYSTERY"
        assert data["usedDefault"] is True

    def test_request_id_propagated(self, client):
        response = client.post(
            "/v1/filter",
            json={"value": "x", "type": "raw"},
            headers={"X-Request-ID": "req-123"},
        )
        assert response.json()["metadata"]["requestId"] == "req-123"

    def test_invalid_request_is_value_safe(self, client):
        response = client.post("/v1/filter", json={"value": "TOP-SECRET", "type": 5})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "BAD_REQUEST"
        assert body["error"]["retryable"] is False
        assert "TOP-SECRET" not in response.text

    def test_empty_type_rejected(self, client):
        response = client.post("/v1/filter", json={"value": "x", "type": ""})
        assert response.status_code == 400

    def test_failing_rule_is_internal_error(self, test_app):
        client = TestClient(test_app, raise_server_exceptions=False)
        response = client.post("/v1/filter", json={"value": "TOP-SECRET", "type": "boom"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert body["error"]["retryable"] is True
        assert "TOP-SECRET" not in response.text

    def test_unknown_route(self, client):
        response = client.get("/v1/nope")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestBatchEndpoint:
    """POST /v1/filter/batch"""

    def test_results_keep_order(self, client):
        payload = {"items": [
            {"value": "12abc", "type": "UINT"},
            {"value": "<i>x</i>", "type": "html"},
            {"value": "no-number", "type": "INT"},
        ]}
        response = client.post("/v1/filter/batch", json=payload)

        assert response.status_code == 200
        values = [item["value"] for item in response.json()["data"]]
        assert values == [12, "<i>x</i>", None]

    def test_empty_batch_rejected(self, client):
        response = client.post("/v1/filter/batch", json={"items": []})
        assert response.status_code == 400

    def test_batch_too_large(self, client):
        settings = get_settings()
        original = settings.max_batch_items
        settings.max_batch_items = 2
        try:
            payload = {"items": [{"value": i} for i in range(3)]}
            response = client.post("/v1/filter/batch", json=payload)
        finally:
            settings.max_batch_items = original

        assert response.status_code == 413
        assert response.json()["error"]["code"] == "BATCH_TOO_LARGE"
        assert get_metrics_collector().get_snapshot()["error_codes"] == {"BATCH_TOO_LARGE": 1}


class TestHealthAndMetrics:
    """GET /healthz, /v1/health, /v1/metrics"""

    def test_healthz(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_detailed_health(self, client):
        body = client.get("/v1/health").json()

        assert body["ok"] is True
        assert body["service"] == "input-filter"
        assert "STRING" in body["rules"]
        assert "BOOM" in body["rules"]
        assert body["allowedTags"] == len(DEFAULT_ALLOWED_TAGS)

    def test_metrics_after_requests(self, client):
        client.post("/v1/filter", json={"value": "abc", "type": "INT"})
        client.post("/v1/filter", json={"value": "x", "type": "mystery"})
        client.post("/v1/filter", json={"type": 5})

        body = client.get("/v1/metrics").json()

        assert body["totalRequests"] == 3
        assert body["successCount"] == 2
        assert body["errorCount"] == 1
        assert body["errorCodes"] == {"BAD_REQUEST": 1}
        assert body["filterTypes"] == {"INT": 1, "MYSTERY": 1}
        assert body["defaultFallbacks"] == 1
        assert body["unmatchedResults"] == 1
        assert body["latency"]["count"] == 2


def test_filter_handlers_run_in_threadpool():
    # Sync handlers keep CPU-bound cleaning off the event loop
    assert not inspect.iscoroutinefunction(filter_value)
    assert not inspect.iscoroutinefunction(filter_batch)
