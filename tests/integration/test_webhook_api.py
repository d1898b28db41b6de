import json

from storefront import config
from storefront.infra.supabase_client import get_db_provider


def _body(event) -> bytes:
    return json.dumps(event).encode("utf-8")


def _post(client, body: bytes, signature=None):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["Stripe-Signature"] = signature
    return client.post("/webhook", content=body, headers=headers)


def test_completed_event_creates_paid_order(client, completed_event):
    res = _post(client, _body(completed_event()))
    assert res.status_code == 200
    assert res.json() == {"received": True}

    orders = client.get("/api/admin/orders").json()["orders"]
    assert len(orders) == 1
    order = orders[0]
    assert order["email"] == "buyer@example.com"
    assert order["total_cents"] == 3000
    assert order["status"] == "paid"
    assert [(i["product_id"], i["quantity"], i["unit_price_cents"]) for i in order["items"]] == [(1, 2, 1500)]


def test_signed_event_is_accepted(client, signed_webhooks, sign, completed_event):
    body = _body(completed_event())
    res = _post(client, body, sign(body, signed_webhooks))
    assert res.status_code == 200
    assert len(client.get("/api/admin/orders").json()["orders"]) == 1


def test_tampered_event_is_rejected(client, db, signed_webhooks, sign, completed_event):
    body = _body(completed_event())
    header = sign(body, signed_webhooks)
    res = _post(client, body.replace(b"buyer@example.com", b"thief@example.com"), header)
    assert res.status_code == 400
    assert "error" in res.json()
    assert db.tables["orders"] == []


def test_missing_signature_is_rejected_when_secret_configured(client, db, signed_webhooks, completed_event):
    res = _post(client, _body(completed_event()))
    assert res.status_code == 400
    assert db.tables["orders"] == []


def test_unparsable_body_is_rejected(client):
    res = _post(client, b"{nope")
    assert res.status_code == 400


def test_unhandled_event_kind_is_acknowledged(client, db):
    res = _post(client, _body({"id": "evt_9", "type": "charge.refunded", "data": {"object": {}}}))
    assert res.status_code == 200
    assert res.json() == {"received": True}
    assert db.tables["orders"] == []


def test_malformed_metadata_is_acknowledged(client, db, completed_event):
    res = _post(client, _body(completed_event(cart="[{oops")))
    assert res.status_code == 200
    assert res.json() == {"received": True}
    assert db.tables["orders"] == []


def test_persistence_failure_acknowledged_by_default(client, db, completed_event):
    db.fail_after_header = True
    res = _post(client, _body(completed_event()))
    assert res.status_code == 200
    assert res.json() == {"received": True}
    assert db.tables["orders"] == []


def test_persistence_failure_returns_500_when_ack_disabled(client, db, completed_event, monkeypatch):
    monkeypatch.setattr(config, "WEBHOOK_ACK_ON_FAILURE", False)
    db.fail_after_header = True
    res = _post(client, _body(completed_event()))
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to record order"}


def test_duplicate_delivery_creates_two_orders(client, completed_event):
    body = _body(completed_event())
    assert _post(client, body).status_code == 200
    assert _post(client, body).status_code == 200
    orders = client.get("/api/admin/orders").json()["orders"]
    assert len(orders) == 2
    assert orders[0]["id"] != orders[1]["id"]


def test_checkout_then_webhook_roundtrip(client, fake_stripe):
    res = client.post("/api/create-checkout-session", json={"cart": [{"id": 3, "qty": "2"}, {"id": 4}], "email": "rt@example.com"})
    assert res.status_code == 200
    meta = fake_stripe[0]["metadata"]

    event = {
        "id": "evt_rt",
        "type": "checkout.session.completed",
        "data": {"object": {"id": res.json()["id"], "metadata": meta, "customer_email": "rt@example.com"}},
    }
    assert _post(client, _body(event)).status_code == 200

    order = client.get("/api/admin/orders").json()["orders"][0]
    assert order["total_cents"] == 2500 * 2 + 1800
    assert sum(i["quantity"] * i["unit_price_cents"] for i in order["items"]) == order["total_cents"]


def test_negative_total_is_acknowledged_without_order(client, db, completed_event):
    res = _post(client, _body(completed_event(total_cents="-3000")))
    assert res.status_code == 200
    assert res.json() == {"received": True}
    assert db.tables["orders"] == []
    assert db.rpc_calls == []


def _store_not_configured():
    def _open():
        raise RuntimeError("SUPABASE_URL/SUPABASE_SERVICE_KEY manquants")
    return _open


def test_forged_event_is_rejected_when_store_is_unconfigured(app, client, signed_webhooks, sign, completed_event):
    app.dependency_overrides[get_db_provider] = _store_not_configured
    body = _body(completed_event())
    res = _post(client, body, sign(body, "whsec_forged"))
    assert res.status_code == 400
    assert res.json()["error"].startswith("Webhook Error:")


def test_valid_event_with_unconfigured_store_follows_ack_setting(app, client, signed_webhooks, sign, completed_event, monkeypatch):
    app.dependency_overrides[get_db_provider] = _store_not_configured
    body = _body(completed_event())
    assert _post(client, body, sign(body, signed_webhooks)).json() == {"received": True}

    monkeypatch.setattr(config, "WEBHOOK_ACK_ON_FAILURE", False)
    res = _post(client, body, sign(body, signed_webhooks))
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to record order"}
