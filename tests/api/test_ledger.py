"""
Tests for ledger API endpoints.

These test the HTTP layer: status codes, response format,
and error mapping. Business rules are tested in tests/services.
"""

import uuid


def create_entry(client, value=100, **overrides):
    body = {
        "category": "Vendas",
        "description": "Venda balcão",
        "due_date": "2024-03-10",
        "person": "Maria",
        "value": value,
        "payment_method": "prazo",
    }
    body.update(overrides)
    response = client.post("/transactions", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestEntries:

    def test_create_returns_201_with_defaults(self, client):
        data = create_entry(client)

        assert data["status"] == "pendente"
        assert float(data["value_due"]) == 100
        assert data["is_credit_sale"] is True
        assert data["source_kind"] == "manual"

    def test_get_entry(self, client):
        entry = create_entry(client)

        response = client.get(f"/transactions/{entry['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == entry["id"]

    def test_get_unknown_entry_returns_404(self, client):
        response = client.get(f"/transactions/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "not_found"

    def test_update_only_changes_sent_fields(self, client):
        entry = create_entry(client, notes="keep me")

        response = client.put(
            f"/transactions/{entry['id']}", json={"person": "Ana"}
        )

        assert response.status_code == 200
        assert response.json()["person"] == "Ana"
        assert response.json()["notes"] == "keep me"

    def test_delete_entry(self, client):
        entry = create_entry(client)

        response = client.delete(f"/transactions/{entry['id']}")
        assert response.status_code == 204

        response = client.get(f"/transactions/{entry['id']}")
        assert response.status_code == 404

    def test_delete_unknown_entry_returns_404(self, client):
        response = client.delete(f"/transactions/{uuid.uuid4()}")
        assert response.status_code == 404

    def test_list_with_filters(self, client):
        create_entry(client, person="Ana", due_date="2024-01-05")
        create_entry(client, person="Bruno", due_date="2024-02-05")

        response = client.get("/transactions", params={"month": "2024-02"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["data"][0]["person"] == "Bruno"

    def test_invalid_month_returns_422(self, client):
        response = client.get("/transactions", params={"month": "02/2024"})
        assert response.status_code == 422


class TestReceive:

    def test_partial_receive(self, client):
        entry = create_entry(client)

        response = client.post(
            f"/transactions/{entry['id']}/receive",
            json={"amount": 30, "method": "dinheiro"},
        )

        assert response.status_code == 201
        assert float(response.json()["amount"]) == 30

        updated = client.get(f"/transactions/{entry['id']}").json()
        assert float(updated["value_due"]) == 70
        assert updated["status"] == "parcial"
        assert updated["payment_method"] == "prazo"

    def test_overpayment_returns_409(self, client):
        entry = create_entry(client)

        response = client.post(
            f"/transactions/{entry['id']}/receive",
            json={"amount": 100.01, "method": "pix"},
        )

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "overpayment"

    def test_zero_amount_returns_400(self, client):
        entry = create_entry(client)

        response = client.post(
            f"/transactions/{entry['id']}/receive",
            json={"amount": 0, "method": "pix"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_amount"

    def test_receive_unknown_entry_returns_404(self, client):
        response = client.post(
            f"/transactions/{uuid.uuid4()}/receive",
            json={"amount": 10, "method": "pix"},
        )
        assert response.status_code == 404


class TestBulkReceive:

    def test_atomic_failure_reports_item_and_applies_nothing(self, client):
        a = create_entry(client)
        b = create_entry(client, value=50)

        response = client.post("/transactions/bulk-receive", json={"items": [
            {"transaction_id": a["id"], "amount": 10, "method": "pix"},
            {"transaction_id": b["id"], "amount": 80, "method": "pix"},
        ]})

        assert response.status_code == 409
        assert response.json()["detail"]["item_index"] == 1
        untouched = client.get(f"/transactions/{a['id']}").json()
        assert float(untouched["value_due"]) == 100

    def test_best_effort_returns_per_item_results(self, client):
        a = create_entry(client)
        b = create_entry(client, value=50)

        response = client.post(
            "/transactions/bulk-receive",
            params={"atomic": "false"},
            json={"items": [
                {"transaction_id": a["id"], "amount": 10, "method": "pix"},
                {"transaction_id": b["id"], "amount": 80, "method": "pix"},
            ]},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["atomic"] is False
        assert [item["ok"] for item in data["items"]] == [True, False]
        assert data["items"][1]["error_code"] == "overpayment"


class TestReceipts:

    def test_list_receipts_for_entry(self, client):
        entry = create_entry(client)
        client.post(
            f"/transactions/{entry['id']}/receive",
            json={"amount": 10, "method": "pix"},
        )

        response = client.get("/receipts", params={"transaction_id": entry["id"]})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        receipt_id = data["data"][0]["id"]

        response = client.get(f"/receipts/{receipt_id}")
        assert response.status_code == 200
        assert response.json()["transaction_id"] == entry["id"]

    def test_list_receipts_needs_a_filter(self, client):
        response = client.get("/receipts")
        assert response.status_code == 400
