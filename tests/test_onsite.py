"""
On-site complaint endpoints.
"""

from tests.factories import onsite_payload

BASE = "/api/v1/onsite"


class TestCreateComplaint:
    def test_defaults(self, client):
        response = client.post(f"{BASE}/", json=onsite_payload(complaint_number="CMP-101"))

        assert response.status_code == 201
        body = response.json()
        assert body["complaint_number"] == "CMP-101"
        assert body["warranty_status"] == "Non-Warranty"
        assert body["complaint_status"] == "Pending"
        assert body["payment_status"] == "Pending"
        assert body["attended_person"] is None

    def test_complaint_number_is_optional(self, client):
        first = client.post(f"{BASE}/", json=onsite_payload(complaint_number=""))
        second = client.post(f"{BASE}/", json=onsite_payload())
        assert first.status_code == second.status_code == 201
        assert first.json()["complaint_number"] is None

    def test_duplicate_complaint_number(self, client):
        client.post(f"{BASE}/", json=onsite_payload(complaint_number="CMP-7"))

        response = client.post(f"{BASE}/", json=onsite_payload(complaint_number="CMP-7", customer_name="Other"))

        assert response.status_code == 400
        assert response.json()["detail"] == "Complaint number already exists"
        assert client.get(f"{BASE}/").json()["total"] == 1

    def test_missing_required_fields(self, client):
        response = client.post(f"{BASE}/", json={"make": "Crompton"})

        assert response.status_code == 400
        fields = {err["field"] for err in response.json()["detail"]}
        assert {"customer_name", "customer_address", "phone_numbers"} <= fields

    def test_with_attending_worker(self, client, create_worker):
        worker = create_worker()
        response = client.post(
            f"{BASE}/",
            json=onsite_payload(attended_person_id=worker["id"], warranty_status="Warranty"),
        )
        body = response.json()
        assert body["warranty_status"] == "Warranty"
        assert body["attended_person"]["worker_name"] == "Suresh"

    def test_unknown_attending_worker(self, client):
        response = client.post(f"{BASE}/", json=onsite_payload(attended_person_id=42))
        assert response.status_code == 404


class TestEditComplaint:
    def test_omitted_optional_fields_keep_value(self, client):
        created = client.post(f"{BASE}/", json=onsite_payload(warranty_status="Warranty")).json()

        response = client.put(
            f"{BASE}/{created['id']}",
            json={
                "customer_name": "Mariya Textiles Ltd",
                "customer_address": created["customer_address"],
                "phone_numbers": created["phone_numbers"],
                "complaint_details": "Replaced capacitor",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["customer_name"] == "Mariya Textiles Ltd"
        assert body["complaint_details"] == "Replaced capacitor"
        assert body["make"] == "Crompton"
        assert body["warranty_status"] == "Warranty"

    def test_missing_complaint(self, client):
        assert client.put(f"{BASE}/8", json=onsite_payload()).status_code == 404


class TestStatusUpdates:
    def test_complaint_status(self, client):
        created = client.post(f"{BASE}/", json=onsite_payload()).json()

        response = client.put(f"{BASE}/{created['id']}/status", json={"complaint_status": "Sent to Workshop"})

        assert response.status_code == 200
        assert response.json()["complaint_status"] == "Sent to Workshop"

    def test_invalid_complaint_status(self, client):
        created = client.post(f"{BASE}/", json=onsite_payload()).json()

        response = client.put(f"{BASE}/{created['id']}/status", json={"complaint_status": "Lost"})

        assert response.status_code == 400
        assert client.get(f"{BASE}/{created['id']}").json()["complaint_status"] == "Pending"

    def test_payment_status(self, client):
        created = client.post(f"{BASE}/", json=onsite_payload()).json()
        response = client.put(f"{BASE}/{created['id']}/payment-status", json={"payment_status": "Paid"})
        assert response.json()["payment_status"] == "Paid"

    def test_missing_complaint(self, client):
        assert client.put(f"{BASE}/3/status", json={"complaint_status": "Closed"}).status_code == 404


class TestAssignWorker:
    def test_assign(self, client, create_worker):
        worker = create_worker()
        created = client.post(f"{BASE}/", json=onsite_payload()).json()

        response = client.put(f"{BASE}/{created['id']}/assign-worker", json={"worker_id": worker["id"]})

        assert response.status_code == 200
        assert response.json()["attended_person_id"] == worker["id"]

    def test_unknown_worker(self, client):
        created = client.post(f"{BASE}/", json=onsite_payload()).json()
        response = client.put(f"{BASE}/{created['id']}/assign-worker", json={"worker_id": 12})
        assert response.status_code == 404


class TestSearchComplaints:
    def test_filters(self, client):
        client.post(f"{BASE}/", json=onsite_payload(customer_name="Alpha Mills", warranty_status="Warranty"))
        closed = client.post(f"{BASE}/", json=onsite_payload(customer_name="Beta Foods")).json()
        client.put(f"{BASE}/{closed['id']}/status", json={"complaint_status": "Closed"})

        assert client.get(f"{BASE}/", params={"search_term": "alpha"}).json()["total"] == 1
        assert client.get(f"{BASE}/", params={"warranty_status": "Warranty"}).json()["total"] == 1

        body = client.get(f"{BASE}/", params={"complaint_status": "Closed"}).json()
        assert [c["id"] for c in body["items"]] == [closed["id"]]

    def test_invalid_filter_value(self, client):
        assert client.get(f"{BASE}/", params={"payment_status": "Maybe"}).status_code == 400

    def test_wildcard_matches_literally(self, client):
        client.post(f"{BASE}/", json=onsite_payload(customer_name="Plain Mills"))
        client.post(f"{BASE}/", json=onsite_payload(customer_name="50% Textiles"))

        body = client.get(f"{BASE}/", params={"search_term": "%"}).json()

        assert [c["customer_name"] for c in body["items"]] == ["50% Textiles"]

    def test_pagination(self, client):
        for i in range(3):
            client.post(f"{BASE}/", json=onsite_payload(customer_name=f"Customer {i}"))

        body = client.get(f"{BASE}/", params={"page": 2, "limit": 2}).json()

        assert body["total"] == 3
        assert body["total_pages"] == 2
        assert [c["customer_name"] for c in body["items"]] == ["Customer 0"]
