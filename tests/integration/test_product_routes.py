# tests/integration/test_product_routes.py
import datetime as dt

from fastapi.testclient import TestClient

from main import app


def _soon(days):
    return (dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=days)).isoformat()


def _product(name="Milk", days=2.5, window=3, **kw):
    body = {
        "name": name, "category": "Dairy", "quantity": 5, "price": 2,
        "expiryDate": _soon(days), "notifyBeforeDays": window,
    }
    body.update(kw)
    return body


def test_create_get_delete(client):
    res = client.post("/v1/product", json=_product())
    assert res.status_code == 201
    created = res.json()["product"]
    pid = created["_id"]
    assert created["name"] == "Milk"

    assert client.get(f"/v1/product/{pid}").json()["quantity"] == 5
    assert client.delete(f"/v1/product/{pid}").json() == {"message": "Product Deleted"}
    assert client.get(f"/v1/product/{pid}").status_code == 404
    assert client.delete(f"/v1/product/{pid}").status_code == 404


def test_duplicate_name_is_409_with_existing(client):
    client.post("/v1/product", json=_product(name="Milk"))
    res = client.post("/v1/product", json=_product(name="  MILK "))
    assert res.status_code == 409
    body = res.json()
    assert body["error"] == "Duplicate product"
    assert body["existingProduct"]["name"] == "Milk"


def test_update_and_rename_clash(client):
    a = client.post("/v1/product", json=_product(name="Milk")).json()["product"]["_id"]
    client.post("/v1/product", json=_product(name="Eggs"))

    res = client.put(f"/v1/product/{a}", json=_product(name="Milk", quantity=9))
    assert res.status_code == 200
    assert res.json()["product"]["quantity"] == 9

    assert client.put(f"/v1/product/{a}", json=_product(name="eggs")).status_code == 409
    assert client.put("/v1/product/missing", json=_product()).status_code == 404


def test_partial_update_keeps_other_fields(client):
    created = client.post("/v1/product", json=_product(name="Milk", window=3)).json()["product"]
    pid = created["_id"]

    res = client.put(f"/v1/product/{pid}", json={"quantity": 9})
    assert res.status_code == 200
    p = res.json()["product"]
    assert p["quantity"] == 9
    assert p["name"] == "Milk"
    assert p["price"] == 2
    assert p["notifyBeforeDays"] == 3
    assert p["expiryDate"] == created["expiryDate"]

    assert client.put(f"/v1/product/{pid}", json={}).json()["product"]["quantity"] == 9
    assert client.put(f"/v1/product/{pid}", json={"price": None}).status_code == 422
    assert client.put(f"/v1/product/{pid}", json={"name": " "}).status_code == 422


def test_blank_name_is_422(client):
    assert client.post("/v1/product", json=_product(name="   ")).status_code == 422


def test_list_sorted_and_search(client):
    client.post("/v1/product", json=_product(name="Rice", days=30, category="Grains"))
    client.post("/v1/product", json=_product(name="Milk", days=2))

    names = [p["name"] for p in client.get("/v1/products").json()]
    assert names == ["Milk", "Rice"]

    hits = client.get("/v1/products/search", params={"q": "grain"}).json()
    assert [p["name"] for p in hits] == ["Rice"]
    assert client.get("/v1/products/search").json() == []


def test_token_registration_is_idempotent(client, wired):
    assert client.post("/v1/token", json={"token": "new-tok"}).status_code == 201
    again = client.post("/v1/token", json={"token": "new-tok"})
    assert again.status_code == 200
    assert again.json()["message"] == "Token already registered"
    assert client.post("/v1/token", json={}).status_code == 400
    assert client.post("/v1/token", json={"token": "  "}).status_code == 400
    assert sum(1 for d in wired["devices"].items if d.fcm_token == "new-tok") == 1


def test_upcoming_preview(client):
    client.post("/v1/product", json=_product(name="Milk", days=2.5, window=3))
    client.post("/v1/product", json=_product(name="Rice", days=30, window=3))
    items = client.get("/v1/notifications/upcoming").json()
    assert [i["product"]["name"] for i in items] == ["Milk"]
    assert items[0]["notifyDays"] == 3


def test_status_and_manual_run(client):
    status = client.get("/v1/notifications/status").json()
    assert status["state"] == "armed"
    assert status["at"] == "09:00"
    assert status["transportReady"] is True

    res = client.post("/v1/notifications/run")
    assert res.status_code == 202
    assert res.json()["started"] is True


def test_health_is_unguarded():
    assert TestClient(app).get("/healthz").json() == {"ok": True}


def test_v1_requires_api_key(monkeypatch):
    monkeypatch.setenv("REQUIRE_API_KEY", "1")
    monkeypatch.setenv("SERVICE_API_KEY", "s3cret")
    cli = TestClient(app)
    assert cli.get("/v1/products").status_code == 401
    assert cli.get("/v1/products", headers={"X-Api-Key": "wrong"}).status_code == 401
