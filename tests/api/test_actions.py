"""Tests for POST /api/actions unified mutation endpoint."""

from decimal import Decimal


# =============================================================================
# VALIDATION
# =============================================================================


class TestActionsValidation:

    def test_missing_domain_returns_422(self, client):
        response = client.post("/api/actions", json={
            "action": "add_custom",
            "data": {},
        })

        assert response.status_code == 422

    def test_unknown_domain_returns_400(self, act):
        response = act("spaceship", "launch")

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "INVALID_REQUEST"
        assert "spaceship" in body["error"]["message"]

    def test_disallowed_action_returns_400(self, act):
        response = act("ledger", "hack")

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "INVALID_REQUEST"
        assert "hack" in body["error"]["message"]

    def test_malformed_payload_returns_400(self, act, concrete_invoice):
        response = act("ledger", "add_itemized", description="Slab")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"


# =============================================================================
# LEDGER ACTIONS
# =============================================================================


class TestSelectContext:

    def test_returns_active_context(self, concrete_invoice):
        assert concrete_invoice["document_kind"] == "invoice"
        assert concrete_invoice["vertical"] == "concrete"
        assert concrete_invoice["mode"] == "itemized"
        assert concrete_invoice["entries"] == []

    def test_markers_decide_vertical(self, act):
        response = act("ledger", "select_context", active_view="estimate", markers=["masonry-services"])
        assert response.json()["data"]["vertical"] == "masonry"


class TestLedgerActions:

    def test_add_itemized(self, act, concrete_invoice):
        response = act(
            "ledger", "add_itemized",
            description="Driveway leveling", quantity=120, unit="sqft", rate="4.50",
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert Decimal(data["entry"]["amount"]) == Decimal("540")
        assert Decimal(data["totals"]["total"]) == Decimal("540")
        assert len(data["entries"]) == 1

    def test_invalid_amount_returns_field(self, act, concrete_invoice):
        response = act("ledger", "add_custom", description="Slab", amount="$0.00")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["field"] == "amount"
        assert "$0.00" in error["message"]

    def test_remove_is_idempotent(self, act, concrete_invoice):
        added = act("ledger", "add_custom", description="Haul-off", amount=75).json()["data"]
        entry_id = added["entry"]["id"]

        first = act("ledger", "remove", id=entry_id).json()["data"]
        second = act("ledger", "remove", id=entry_id).json()["data"]

        assert first["removed"] is True
        assert second["removed"] is False
        assert second["entries"] == []

    def test_remove_requires_id(self, act, concrete_invoice):
        assert act("ledger", "remove").status_code == 400

    def test_custom_mode_round_trip(self, act, masonry_estimate):
        act("ledger", "add_itemized", description="Tuckpointing", quantity=1, unit="ea", rate=100)
        act("ledger", "add_itemized", description="Brick", quantity=10, unit="ea", rate=25)

        custom = act("ledger", "switch_mode", mode="custom").json()["data"]
        assert custom["mode"] == "custom"
        assert custom["entries"] == []

        quote = act("ledger", "add_custom", description="Chimney rebuild\nwith cap", amount="2800").json()["data"]
        assert quote["entry"]["id"] == "custom-quote"
        assert Decimal(quote["totals"]["total"]) == Decimal("2800")

        itemized = act("ledger", "switch_mode", mode="itemized").json()["data"]
        assert [e["description"] for e in itemized["entries"]] == ["Tuckpointing", "Brick"]
        assert Decimal(itemized["totals"]["total"]) == Decimal("350")

    def test_itemized_add_in_custom_mode_rejected(self, act, concrete_invoice):
        act("ledger", "switch_mode", mode="custom")
        response = act("ledger", "add_itemized", description="Slab", quantity=1, unit="ea", rate=10)

        assert response.status_code == 400
        assert response.json()["error"]["field"] == "quote_mode"


class TestCalculatorActions:

    def test_quote_then_add(self, act, concrete_invoice):
        quote = act("ledger", "price_quote", low="1000", high="2000").json()["data"]
        assert Decimal(quote["mid"]) == Decimal("1500")

        response = act("ledger", "add_from_quote", description="Patio slab lift", tier="mid")
        assert response.status_code == 200
        assert Decimal(response.json()["data"]["totals"]["total"]) == Decimal("1500")

    def test_calculate(self, act, concrete_invoice):
        response = act("ledger", "calculate", project_type="driveway", square_footage=100)
        assert Decimal(response.json()["data"]["total"]) == Decimal("1500")

    def test_add_without_quote_fails(self, act, concrete_invoice):
        response = act("ledger", "add_from_quote", description="Patio slab lift", tier="low")
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "price_tier"


# =============================================================================
# DOCUMENT ACTIONS
# =============================================================================


class TestDocumentActions:

    def test_new_document(self, act):
        response = act("document", "new", document_kind="estimate", business_vertical="masonry",
                       customer_name="Jane Stark")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["number"].startswith("EST-")
        assert data["customer_name"] == "Jane Stark"

    def test_save_open_delete(self, act, concrete_invoice):
        act("ledger", "add_custom", description="Slab", amount="100")
        saved = act("document", "save", notes="Gate code 4411").json()["data"]
        assert saved["notes"] == "Gate code 4411"

        act("document", "new", document_kind="invoice")
        opened = act("document", "open", document_kind="invoice", id=saved["id"]).json()["data"]
        assert opened["id"] == saved["id"]
        assert len(opened["services"]) == 1

        deleted = act("document", "delete", document_kind="invoice", id=saved["id"])
        assert deleted.json()["data"] == {"deleted": True}

    def test_open_missing_returns_404(self, act):
        response = act("document", "open", document_kind="invoice", id="nope")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_delete_missing_returns_404(self, act):
        response = act("document", "delete", document_kind="estimate", id="nope")
        assert response.status_code == 404

    def test_failed_save_returns_503(self, act, concrete_invoice, api_store, monkeypatch):
        monkeypatch.setattr(api_store, "set", lambda key, value: False)
        response = act("document", "save")

        assert response.status_code == 503
        error = response.json()["error"]
        assert error["code"] == "PERSISTENCE_FAILED"
        assert "not durable" in error["message"]

    def test_save_rejects_overlong_notes(self, act, concrete_invoice):
        response = act("document", "save", notes="x" * 2001)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"
        assert act("document", "save").json()["data"]["notes"] is None

    def test_save_clears_field_when_sent_null(self, act, concrete_invoice):
        act("document", "save", customer_name="Jane Stark")
        saved = act("document", "save", customer_name=None).json()["data"]
        assert saved["customer_name"] is None


class TestEstimateActions:

    def test_status_change(self, act, masonry_estimate):
        saved = act("document", "save").json()["data"]

        response = act("document", "status", document_kind="estimate", id=saved["id"], status="approved")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "approved"

    def test_status_of_other_kind_returns_400(self, act, concrete_invoice):
        saved = act("document", "save").json()["data"]
        response = act("document", "status", document_kind="invoice", id=saved["id"], status="approved")
        assert response.status_code == 400

    def test_convert_estimate(self, client, act, masonry_estimate):
        act("ledger", "add_itemized", description="Chimney repoint", quantity=2, unit="day", rate="650")
        estimate = act("document", "save").json()["data"]

        invoice = act("document", "convert", id=estimate["id"]).json()["data"]

        assert invoice["number"].startswith("INV-")
        assert invoice["converted_from"] == estimate["id"]
        assert Decimal(invoice["total"]) == Decimal("1300")

        stored = client.get("/api/data", params={"type": "documents", "kind": "estimate", "id": estimate["id"]})
        assert stored.json()["data"]["status"] == "converted"

        totals = client.get("/api/data", params={"type": "totals"}).json()["data"]
        assert Decimal(totals["total"]) == Decimal("1300")

    def test_convert_twice_returns_400(self, act, masonry_estimate):
        estimate = act("document", "save").json()["data"]
        act("document", "convert", id=estimate["id"])

        response = act("document", "convert", id=estimate["id"])

        assert response.status_code == 400
        assert "already converted" in response.json()["error"]["message"]

    def test_convert_missing_returns_404(self, act):
        assert act("document", "convert", id="nope").status_code == 404
