import copy
import http.client
import json
import threading
import urllib.error
import urllib.request

import pytest

import renovation_tracker.ai as ai
from renovation_tracker.config import DEFAULT_CONFIG
from renovation_tracker.web import make_server


class DummyProvider:
    def generate(self, messages):
        return "Spend less on tiles."


@pytest.fixture
def api():
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["total_budget"] = 5000
    config["store"]["backend"] = "memory"
    server = make_server(config, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address
    yield f"http://{host}:{port}", server
    server.shutdown()
    server.server_close()


def call(base, method, path, payload=None):
    data = None if payload is None else json.dumps(payload).encode("utf-8")
    req = urllib.request.Request(base + path, data=data, method=method)
    if data is not None:
        req.add_header("Content-Type", "application/json")
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            raw = resp.read()
            return resp.status, (json.loads(raw) if raw else None), resp.headers
    except urllib.error.HTTPError as err:
        raw = err.read()
        return err.code, (json.loads(raw) if raw else None), err.headers


def _create(base, **fields):
    payload = {"date": "2025-06-01", "description": "Tiles", "amount": 1000, "category": "Material"}
    payload.update(fields)
    status, body, headers = call(base, "POST", "/api/transactions", payload)
    assert status == 201, body
    return body, headers


def test_create_list_and_get(api):
    base, _ = api
    first, headers = _create(base, description="Tiles", date="2025-06-01")
    assert headers["X-Persisted"] == "true"
    second, _ = _create(base, description="Electrician", category="Labor", date="2025-06-03",
                        type="bill", vendor="Sparks Ltd")

    status, body, _ = call(base, "GET", "/api/transactions")
    assert status == 200
    assert [tx["id"] for tx in body] == [second["id"], first["id"]]

    status, body, _ = call(base, "GET", "/api/transactions?search=sparks")
    assert [tx["description"] for tx in body] == ["Electrician"]

    status, body, _ = call(base, "GET", "/api/transactions?category=Material")
    assert [tx["description"] for tx in body] == ["Tiles"]

    status, body, _ = call(base, "GET", f"/api/transactions/{first['id']}")
    assert status == 200
    assert body == first


def test_create_validation_error(api):
    base, _ = api
    status, body, _ = call(base, "POST", "/api/transactions",
                           {"date": "2025-06-01", "description": "", "amount": 5, "category": "Material"})
    assert status == 400
    assert "Description is required" in body["error"]

    status, body, _ = call(base, "GET", "/api/transactions")
    assert body == []


def test_update_and_delete(api):
    base, _ = api
    tx, _ = _create(base)

    status, body, _ = call(base, "PUT", f"/api/transactions/{tx['id']}",
                           {"date": "2025-06-02", "description": "Tiles (returned half)",
                            "amount": 500, "category": "Material"})
    assert status == 200
    assert body["id"] == tx["id"]
    assert body["amount"] == 500

    status, _, _ = call(base, "PUT", "/api/transactions/missing",
                        {"date": "2025-06-02", "description": "x", "amount": 1, "category": "Labor"})
    assert status == 404

    status, body, headers = call(base, "DELETE", f"/api/transactions/{tx['id']}")
    assert status == 204
    assert body is None
    assert headers["X-Persisted"] == "true"

    status, _, _ = call(base, "DELETE", f"/api/transactions/{tx['id']}")
    assert status == 404


def test_stats_and_category_summary(api):
    base, _ = api
    _create(base, amount=3000)
    _create(base, amount=1000, category="Appliances")
    _create(base, amount=700, category="Material")

    status, body, _ = call(base, "GET", "/api/stats")
    assert status == 200
    assert body["totalBudget"] == 5000
    assert body["totalSpent"] == 4700
    assert body["remaining"] == 300
    assert body["utilization"] == 94
    assert body["band"] == "critical"
    assert body["overBudget"] is False

    status, body, _ = call(base, "GET", "/api/summary/category")
    assert body == [
        {"category": "Material", "total": 3700},
        {"category": "Appliances", "total": 1000},
    ]


def test_metadata(api):
    base, _ = api
    status, body, _ = call(base, "GET", "/api/metadata")
    assert status == 200
    assert body["categories"] == ["Material", "Labor", "Appliances", "Miscellaneous", "Fees & Permits"]
    assert body["types"] == ["expense", "bill"]
    assert body["totalBudget"] == 5000


def test_advice_endpoint(api, monkeypatch):
    monkeypatch.setattr(ai, "get_provider_from_env", lambda timeout=30: DummyProvider())
    base, _ = api
    _create(base)
    status, body, _ = call(base, "POST", "/api/advice", {})
    assert status == 200
    assert body == {"advice": "Spend less on tiles."}


def test_unknown_routes_and_bad_category(api):
    base, _ = api
    assert call(base, "GET", "/api/nope")[0] == 404
    assert call(base, "GET", "/api/transactions?category=Garden")[0] == 400


def test_bad_content_length_is_a_client_error(api):
    base, server = api
    host, port = server.server_address
    conn = http.client.HTTPConnection(host, port, timeout=5)
    try:
        conn.putrequest("POST", "/api/transactions")
        conn.putheader("Content-Type", "application/json")
        conn.putheader("Content-Length", "abc")
        conn.endheaders()
        resp = conn.getresponse()
        body = json.loads(resp.read())
    finally:
        conn.close()
    assert resp.status == 400
    assert "Content-Length" in body["error"]
    assert call(base, "GET", "/api/transactions")[1] == []
