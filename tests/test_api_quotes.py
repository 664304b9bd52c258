"""
Tests for quote HTTP endpoints.
"""

from datetime import UTC, datetime, timedelta

from app.db.models import Quote, SystemEvent


def quote_payload(lead, event, package, **overrides):
    start = event.start_date.date()
    payload = {
        "lead_id": lead.id,
        "event_id": event.id,
        "package_id": package.id,
        "travelers": 4,
        "travel_dates": [start.isoformat(), (start + timedelta(days=3)).isoformat()],
    }
    payload.update(overrides)
    return payload


def test_generate_quote_returns_201(client, db, lead, event, package, addons, notifier):
    response = client.post(
        "/quotes/generate",
        json=quote_payload(lead, event, package, addon_ids=[addons[0].id], currency="eur"),
    )

    assert response.status_code == 201
    data = response.json()
    assert set(data) == {"quote", "pricing_breakdown", "calculation_notes"}

    quote = data["quote"]
    assert quote["lead_id"] == lead.id
    assert quote["status"] == "SENT"
    assert quote["currency"] == "EUR"
    assert quote["addons_total"] == 75.0
    assert quote["email_sent"] is True
    assert quote["final_price"] == data["pricing_breakdown"]["final_price"]
    assert data["pricing_breakdown"]["group_rate"] == 0.08
    assert data["pricing_breakdown"]["early_bird_rate"] == 0.1
    assert "Group discount: -8%" in data["calculation_notes"]
    assert data["calculation_notes"] == quote["calculation_notes"]
    assert len(notifier.sent) == 1

    # Expiry is 30 days after creation
    expiry = datetime.fromisoformat(quote["expiry_date"]).replace(tzinfo=UTC)
    assert timedelta(days=29, hours=23) < expiry - datetime.now(UTC) <= timedelta(days=30)


def test_generate_quote_moves_lead_to_quote_sent(client, db, lead, event, package):
    client.post("/quotes/generate", json=quote_payload(lead, event, package))

    response = client.get(f"/leads/{lead.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "QUOTE_SENT"
    assert data["status_history"][-1]["from_status"] == "CONTACTED"
    assert data["status_history"][-1]["changed_by"] == "system"


def test_generate_quote_missing_lead_404(client, event, package, lead):
    response = client.post("/quotes/generate", json=quote_payload(lead, event, package, lead_id=9999))

    assert response.status_code == 404
    assert response.json()["error"] == "Lead not found"
    assert response.json()["code"] == "NOT_FOUND"


def test_generate_quote_missing_package_404(client, lead, event, package):
    response = client.post("/quotes/generate", json=quote_payload(lead, event, package, package_id=9999))

    assert response.status_code == 404
    assert response.json()["error"] == "Event or package not found"


def test_generate_quote_package_mismatch_400(client, db, lead, event, other_event_package):
    response = client.post("/quotes/generate", json=quote_payload(lead, event, other_event_package))

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION"
    assert body["error"] == "Package does not belong to the specified event"
    assert db.query(Quote).count() == 0


def test_generate_quote_rejects_bad_dates(client, lead, event, package):
    start = event.start_date.date()

    inverted = quote_payload(lead, event, package, travel_dates=[start.isoformat(), start.isoformat()])
    assert client.post("/quotes/generate", json=inverted).status_code == 400

    past = (datetime.now(UTC) - timedelta(days=2)).date()
    in_past = quote_payload(
        lead, event, package, travel_dates=[past.isoformat(), (past + timedelta(days=5)).isoformat()]
    )
    assert client.post("/quotes/generate", json=in_past).status_code == 400

    single = quote_payload(lead, event, package, travel_dates=[start.isoformat()])
    assert client.post("/quotes/generate", json=single).status_code == 400

    garbage = quote_payload(lead, event, package, travel_dates=["soon", "later"])
    response = client.post("/quotes/generate", json=garbage)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION"


def test_generate_quote_rejects_bad_travelers_and_currency(client, lead, event, package):
    assert client.post("/quotes/generate", json=quote_payload(lead, event, package, travelers=0)).status_code == 400
    assert client.post("/quotes/generate", json=quote_payload(lead, event, package, travelers=51)).status_code == 400
    assert client.post("/quotes/generate", json=quote_payload(lead, event, package, currency="JPY")).status_code == 400


def test_generate_quote_email_failure_still_201(client, db, lead, event, package, notifier):
    notifier.fail = True

    response = client.post("/quotes/generate", json=quote_payload(lead, event, package))

    assert response.status_code == 201
    assert response.json()["quote"]["email_sent"] is False
    assert db.query(SystemEvent).filter(SystemEvent.event_type == "email.quote_send_failure").count() == 1


def test_quote_admin_endpoints(client, lead, event, package):
    created = client.post("/quotes/generate", json=quote_payload(lead, event, package)).json()["quote"]

    listed = client.get("/quotes", params={"lead_id": lead.id})
    assert listed.status_code == 200
    assert [q["id"] for q in listed.json()] == [created["id"]]

    fetched = client.get(f"/quotes/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["final_price"] == created["final_price"]

    patched = client.patch(f"/quotes/{created['id']}", json={"status": "viewed", "final_price": 123.456})
    assert patched.status_code == 200
    assert patched.json()["status"] == "VIEWED"
    assert patched.json()["final_price"] == 123.46
    assert patched.json()["subtotal"] == created["subtotal"]

    bad = client.patch(f"/quotes/{created['id']}", json={"status": "PAID"})
    assert bad.status_code == 400

    assert client.delete(f"/quotes/{created['id']}").status_code == 204
    assert client.get(f"/quotes/{created['id']}").status_code == 404
    assert client.delete(f"/quotes/{created['id']}").status_code == 404


def test_quote_patch_rejects_percentage_rates_and_negative_money(client, lead, event, package):
    created = client.post("/quotes/generate", json=quote_payload(lead, event, package)).json()["quote"]

    as_percent = client.patch(f"/quotes/{created['id']}", json={"seasonal_rate": 20})
    assert as_percent.status_code == 400
    assert as_percent.json()["code"] == "VALIDATION"

    negative = client.patch(f"/quotes/{created['id']}", json={"final_price": -500})
    assert negative.status_code == 400

    # Stored values are unchanged
    fetched = client.get(f"/quotes/{created['id']}").json()
    assert fetched["seasonal_rate"] == created["seasonal_rate"]
    assert fetched["final_price"] == created["final_price"]

    # Fractions at the bounds are accepted
    ok = client.patch(f"/quotes/{created['id']}", json={"seasonal_rate": 1, "group_rate": 0})
    assert ok.status_code == 200
    assert ok.json()["seasonal_rate"] == 1.0
