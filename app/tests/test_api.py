from decimal import Decimal

from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def _auth_headers(user_id: str = "test", role: str = None, permissions=None) -> dict:
    body = {"user_id": user_id, "permissions": permissions or []}
    if role:
        body["role"] = role
    resp = client.post("/auth/token", json=body)
    assert resp.status_code == 200, f"token request failed: {resp.status_code} {resp.text}"
    data = resp.json()
    assert "access_token" in data, f"token response missing access_token: {data}"
    return {"Authorization": f"Bearer {data['access_token']}"}


def _admin() -> dict:
    return _auth_headers(user_id="admin-1", role="ADMIN")


def test_health_and_request_id():
    resp = client.get("/health", headers={"X-Request-Id": "req-123"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.headers["X-Request-Id"] == "req-123"

    generated = client.get("/health")
    assert generated.headers["X-Request-Id"]


def test_requests_without_valid_token_are_401():
    assert client.get("/payroll-burden-rates").status_code == 401
    assert client.get("/orders", headers={"Authorization": "Basic abc"}).status_code == 401
    assert client.get("/orders", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_burden_rate_admin_lifecycle():
    headers = _admin()

    create = client.post(
        "/payroll-burden-rates",
        headers=headers,
        json={
            "level": "STATE",
            "category": "FICA",
            "effective_date": "2025-07-01",
            "rate_percent": 8.0,
            "state_code": "KY",
        },
    )
    assert create.status_code == 200, create.text
    created = create.json()
    rate_id = created["id"]
    assert created["level"] == "STATE"
    assert Decimal(created["rate_percent"]) == Decimal("8")
    assert created["created_by_user_id"] == "admin-1"

    listing = client.get("/payroll-burden-rates", headers=headers, params={"state_code": "KY"})
    assert listing.status_code == 200
    assert [row["id"] for row in listing.json()] == [rate_id]

    noop = client.patch(f"/payroll-burden-rates/{rate_id}", headers=headers, json={})
    assert noop.status_code == 400
    assert noop.json()["detail"] == "No fields to update"

    update = client.patch(f"/payroll-burden-rates/{rate_id}", headers=headers, json={"rate_percent": "8.25"})
    assert update.status_code == 200
    assert Decimal(update.json()["rate_percent"]) == Decimal("8.25")

    delete = client.delete(f"/payroll-burden-rates/{rate_id}", headers=headers)
    assert delete.status_code == 200
    assert delete.json() == {"ok": True, "id": rate_id}

    again = client.delete(f"/payroll-burden-rates/{rate_id}", headers=headers)
    assert again.status_code == 404

    audits = client.get(f"/payroll-burden-rates/{rate_id}/audits", headers=headers)
    assert audits.status_code == 200
    assert sorted(a["action"] for a in audits.json()) == ["CREATE", "DELETE", "UPDATE"]


def test_burden_rate_validation_errors_are_400():
    headers = _admin()

    zero = client.post(
        "/payroll-burden-rates",
        headers=headers,
        json={"level": "GLOBAL", "category": "GL", "effective_date": "2025-01-01", "rate_percent": 0},
    )
    assert zero.status_code == 400
    assert zero.json()["detail"] == "rate_percent must be a positive number"

    bad_date = client.post(
        "/payroll-burden-rates",
        headers=headers,
        json={"level": "GLOBAL", "category": "GL", "effective_date": "yesterday", "rate_percent": 1},
    )
    assert bad_date.status_code == 400
    assert "valid ISO date" in bad_date.json()["detail"]


def test_burden_rate_admin_requires_admin_role():
    manager = _auth_headers(role="MANAGER")
    employee = _auth_headers(role="EMPLOYEE")

    create = client.post(
        "/payroll-burden-rates",
        headers=manager,
        json={"level": "GLOBAL", "category": "GL", "effective_date": "2025-01-01", "rate_percent": 1.5},
    )
    assert create.status_code == 403

    assert client.get("/payroll-burden-rates/resolve", headers=manager).status_code == 200
    assert client.get("/payroll-burden-rates/resolve", headers=employee).status_code == 403


def test_bootstrap_then_resolve():
    first = client.post("/payroll-burden-rates/bootstrap", headers=_admin())
    assert first.status_code == 200
    assert first.json()["user_created"] is True

    second = client.post("/payroll-burden-rates/bootstrap", headers=_admin())
    assert second.json()["inserted"] == []

    resolved = client.get(
        "/payroll-burden-rates/resolve",
        headers=_auth_headers(role="MANAGER"),
        params={"state_code": "KY"},
    )
    assert resolved.status_code == 200
    body = resolved.json()
    assert Decimal(body["rates"]["FICA"]) == Decimal("7.65")
    assert Decimal(body["rates"]["WC"]) == Decimal("0")
    assert Decimal(body["total_burden_percent"]) == Decimal("13.00")


def test_quote_generation_flow():
    headers = _auth_headers()

    client.post(
        "/payroll-burden-rates",
        headers=_admin(),
        json={"level": "GLOBAL", "category": "FICA", "effective_date": "2025-01-01", "rate_percent": 15},
    )

    create = client.post("/quotes", headers=headers, json={"title": "Turbine outage", "state": "ky"})
    assert create.status_code == 200, create.text
    quote_id = create.json()["id"]
    assert create.json()["state"] == "KY"
    assert create.json()["status"] == "DRAFT"

    empty = client.post(f"/quotes/{quote_id}/generate", headers=headers)
    assert empty.status_code == 400

    line = client.post(f"/quotes/{quote_id}/lines", headers=headers, json={"trade_id": "millwright", "base_rate": 85})
    assert line.status_code == 200

    generated = client.post(f"/quotes/{quote_id}/generate", headers=headers)
    assert generated.status_code == 200
    snapshot = generated.json()
    assert len(snapshot["input_hash"]) == 64
    assert snapshot["payload"]["lines"][0]["burdened_reg_rate"] == 97.75

    repeat = client.post(f"/quotes/{quote_id}/generate", headers=headers)
    assert repeat.json()["id"] == snapshot["id"]

    detail = client.get(f"/quotes/{quote_id}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["status"] == "GENERATED"
    assert detail.json()["latest_snapshot"]["id"] == snapshot["id"]
    assert [l["trade_id"] for l in detail.json()["lines"]] == ["millwright"]

    assert client.get("/quotes/missing-quote", headers=headers).status_code == 404
    assert client.post("/quotes/missing-quote/generate", headers=headers).status_code == 404


def test_order_api_permissions_and_transitions():
    writer = _auth_headers(permissions=["customers.write", "orders.read", "orders.write"])
    reader = _auth_headers(permissions=["orders.read"])

    customer = client.post("/customers", headers=writer, json={"name": "Acme Refining"})
    assert customer.status_code == 200
    customer_id = customer.json()["id"]

    assert client.post("/orders", headers=reader, json={"customer_id": customer_id}).status_code == 403

    create = client.post(
        "/orders",
        headers=writer,
        json={"customer_id": customer_id, "trade_requirements": [{"trade_id": "welder"}]},
    )
    assert create.status_code == 200, create.text
    order_id = create.json()["id"]
    assert create.json()["status"] == "DRAFT"
    assert [tr["trade_id"] for tr in create.json()["trade_requirements"]] == ["welder"]

    # invalid transition is a 400 even for a caller without write permission
    invalid = client.patch(f"/orders/{order_id}/status", headers=reader, json={"status": "FILLED"})
    assert invalid.status_code == 400
    assert invalid.json()["detail"] == "Cannot transition order from DRAFT to FILLED"

    denied = client.patch(f"/orders/{order_id}/status", headers=reader, json={"status": "NEEDS_TO_BE_FILLED"})
    assert denied.status_code == 403

    moved = client.patch(f"/orders/{order_id}/status", headers=writer, json={"status": "NEEDS_TO_BE_FILLED"})
    assert moved.status_code == 200
    assert moved.json()["status"] == "NEEDS_TO_BE_FILLED"

    listing = client.get("/orders", headers=reader, params={"status": "NEEDS_TO_BE_FILLED"})
    assert [o["id"] for o in listing.json()] == [order_id]

    detail = client.get(f"/orders/{order_id}", headers=reader)
    assert detail.status_code == 200
    assert detail.json()["customer_id"] == customer_id

    assert client.get("/orders/missing-order", headers=reader).status_code == 404
    assert client.get("/orders", headers=_auth_headers()).status_code == 403


def test_customer_contacts_api():
    writer = _auth_headers(permissions=["customers.read", "customers.write", "orders.read", "orders.write"])

    customer_id = client.post("/customers", headers=writer, json={"name": "Bluegrass Power"}).json()["id"]
    contact = client.post(
        f"/customers/{customer_id}/contacts",
        headers=writer,
        json={"first_name": "Dana", "last_name": "Reyes", "email": "dana@example.com"},
    )
    assert contact.status_code == 200
    contact_id = contact.json()["id"]

    contacts = client.get(f"/customers/{customer_id}/contacts", headers=writer)
    assert [c["id"] for c in contacts.json()] == [contact_id]

    order_id = client.post("/orders", headers=writer, json={"customer_id": customer_id}).json()["id"]
    assigned = client.patch(f"/orders/{order_id}/primary-contact", headers=writer, json={"contact_id": contact_id})
    assert assigned.status_code == 200
    assert assigned.json()["primary_customer_contact_id"] == contact_id

    patched = client.patch(f"/orders/{order_id}", headers=writer, json={"sd_pay_delta_rate": "1.5"})
    assert patched.status_code == 200
    assert Decimal(patched.json()["sd_pay_delta_rate"]) == Decimal("1.5")

    assert client.get("/customers/missing-customer", headers=writer).status_code == 404
