"""HTTP surface with fake collaborators wired in through dependency overrides.

The client is used without a ``with`` block so the lifespan (scheduler,
store seeding) does not run.
"""

import pytest
from fastapi.testclient import TestClient

from postex_bridge.dependencies import get_booking_service, get_carrier, get_city_store, get_reconciler
from postex_bridge.main import app

pytestmark = pytest.mark.api


@pytest.fixture()
def client(booking_service, carrier, seeded_store, reconciler):
    app.dependency_overrides[get_booking_service] = lambda: booking_service
    app.dependency_overrides[get_carrier] = lambda: carrier
    app.dependency_overrides[get_city_store] = lambda: seeded_store
    app.dependency_overrides[get_reconciler] = lambda: reconciler
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    assert client.get("/").json() == {"status": "ONLINE", "engine": "PostEx Bridge"}


class TestShipments:
    def test_create(self, client, booking_data):
        response = client.post("/shipments", json=booking_data(city_name="Karachi City"))

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["tracking_number"].startswith("FAKE")
        assert body["city_format"] == "Karachi"
        assert body["city_verified"] is True

    def test_blocked_city(self, client, seeded_store, booking_data):
        seeded_store.record_failure("Xyzabad")

        response = client.post("/shipments", json=booking_data(city_name="Xyzabad"))

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["city_issue"] is True
        assert detail["failure_count"] == 1

    def test_carrier_rejection(self, client, carrier, booking_data):
        carrier.configure(should_succeed=False, failure_reason="Invalid delivery city")

        response = client.post("/shipments", json=booking_data())

        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "Invalid delivery city"

    def test_network_failure(self, client, carrier, booking_data):
        carrier.configure(network_down=True)
        assert client.post("/shipments", json=booking_data()).status_code == 503

    def test_bad_body(self, client, carrier, booking_data):
        response = client.post("/shipments", json=booking_data(invoice_payment=-5))

        assert response.status_code == 422
        assert carrier.call_count("create_shipment") == 0


class TestCities:
    def test_list_paginates(self, client):
        body = client.get("/cities", params={"status": "verified", "per_page": 10, "page": 3}).json()

        assert body["total"] == 25
        assert body["total_pages"] == 3
        assert len(body["items"]) == 5

    def test_stats(self, client):
        assert client.get("/cities/stats").json() == {"total": 25, "verified": 25, "failed": 0, "pending": 0}

    def test_get_and_missing(self, client):
        assert client.get("/cities/Lahore").json()["carrier_format"] == "Lahore"
        assert client.get("/cities/Nowhere").status_code == 404

    def test_add_verify_reset_delete(self, client):
        created = client.post("/cities", json={"city_name": "Turbat"})
        assert created.status_code == 201
        assert created.json()["status"] == "verified"

        assert client.post("/cities/turbat/reset").json()["status"] == "pending"
        assert client.post("/cities/turbat/verify").json()["status"] == "verified"
        assert client.delete("/cities/turbat").json() == {"status": "deleted", "city": "turbat"}
        assert client.delete("/cities/turbat").status_code == 404


class TestAirwayBills:
    def test_pdf_download(self, client, carrier):
        response = client.post("/airway-bills", json={"tracking_numbers": ["PX1", "PX2"]})

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="postex-airway-bills-fake.pdf"' in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")
        assert carrier.calls["fetch_documents"] == [["PX1", "PX2"]]

    def test_empty_list_rejected(self, client):
        assert client.post("/airway-bills", json={"tracking_numbers": []}).status_code == 422


class TestSync:
    def test_manual_sync(self, client, carrier, shipment_store, booking_data):
        tracking_number = client.post("/shipments", json=booking_data()).json()["tracking_number"]
        carrier.set_shipments([{"trackingNumber": tracking_number, "transactionStatus": "Delivered"}])

        report = client.post("/sync").json()

        assert report["updated"] == 1
        assert shipment_store.get(tracking_number).carrier_status == "Delivered"
