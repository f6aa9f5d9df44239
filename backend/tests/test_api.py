"""
HTTP surface tests.

Verifies:
- Unauthenticated requests return 401
- Admins without the section capability get 403; superadmins always pass
- Ledger errors map to the right status codes with readable messages
- The checkout -> return flow works end to end over HTTP
"""

import pytest

from shopdesk.models import Product, SalesReceiptLine


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/invitations"),
            ("GET", "/api/admins"),
            ("GET", "/api/products"),
            ("POST", "/api/products/1/restock"),
            ("GET", "/api/vendors"),
            ("GET", "/api/purchases"),
            ("GET", "/api/workers"),
            ("GET", "/api/sales/receipts"),
            ("POST", "/api/sales/receipts"),
            ("POST", "/api/sales/receipts/1/returns"),
            ("GET", "/api/returns"),
            ("GET", "/api/legacy/sales"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/products", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid or expired token"

    def test_health_is_public(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["database"]["status"] == "healthy"


# =============================================================================
# CAPABILITY GATE - 403
# =============================================================================


class TestCapabilityGate:

    @pytest.mark.parametrize(
        "path",
        ["/api/products", "/api/vendors", "/api/purchases", "/api/workers", "/api/sales/receipts", "/api/returns"],
    )
    def test_bare_admin_denied(self, client, bare_headers, path):
        resp = client.get(path, headers=bare_headers)
        assert resp.status_code == 403
        assert resp.json["error"] == "Permission denied"

    def test_admin_with_sales_but_not_returns(self, client, admin_headers):
        assert client.get("/api/sales/receipts", headers=admin_headers).status_code == 200
        assert client.get("/api/returns", headers=admin_headers).status_code == 403
        assert client.get("/api/workers", headers=admin_headers).status_code == 403

    @pytest.mark.parametrize(
        "path",
        ["/api/products", "/api/workers", "/api/sales/receipts", "/api/returns", "/api/admins"],
    )
    def test_superadmin_passes(self, client, superadmin_headers, path):
        assert client.get(path, headers=superadmin_headers).status_code == 200

    def test_admin_management_is_superadmin_only(self, client, admin_headers):
        assert client.get("/api/admins", headers=admin_headers).status_code == 403
        resp = client.post("/api/auth/invitations", json={"email": "x@shop.test"}, headers=admin_headers)
        assert resp.status_code == 403


# =============================================================================
# REQUEST BODY SHAPE - 400
# =============================================================================


class TestNonObjectBody:
    """A JSON body that is not an object is a client error, never a 500."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/sales/receipts"),
            ("POST", "/api/sales/receipts/1/returns"),
            ("PUT", "/api/sales/receipts/1/status"),
            ("POST", "/api/purchases"),
            ("POST", "/api/products"),
            ("PUT", "/api/products/1"),
            ("POST", "/api/products/1/restock"),
            ("POST", "/api/vendors"),
            ("POST", "/api/workers"),
            ("POST", "/api/legacy/sales"),
            ("POST", "/api/admins"),
            ("POST", "/api/auth/invitations"),
        ],
    )
    def test_list_body_rejected(self, client, superadmin_headers, method, path):
        resp = getattr(client, method.lower())(path, json=[{"product_id": 1}], headers=superadmin_headers)
        assert resp.status_code == 400, f"{method} {path} returned {resp.status_code}"
        assert "error" in resp.json

    @pytest.mark.parametrize("path", ["/api/auth/login", "/api/auth/signup"])
    def test_public_endpoints_reject_list_body(self, client, db_session, path):
        resp = client.post(path, json=["a@shop.test"])
        assert resp.status_code == 400
        assert resp.json["error"] == "Request body must be a JSON object"


# =============================================================================
# LEDGER FLOW OVER HTTP
# =============================================================================


class TestLedgerEndpoints:

    def _checkout(self, client, headers, worker, product, quantity, price=500):
        return client.post("/api/sales/receipts", headers=headers, json={
            "worker_id": worker.id,
            "customer_name": "Ali",
            "lines": [{"product_id": product.id, "quantity": quantity, "sold_price_cents": price}],
        })

    def test_checkout_and_return(self, client, db_session, superadmin_headers, worker, product):
        resp = self._checkout(client, superadmin_headers, worker, product, 3)
        assert resp.status_code == 201
        assert resp.json["total_amount_cents"] == 1500
        receipt_id = resp.json["receipt_id"]
        line_id = resp.json["lines"][0]["id"]

        resp = client.post(
            f"/api/sales/receipts/{receipt_id}/returns",
            headers=superadmin_headers,
            json={"line_id": line_id, "quantity": 3, "reason": "changed mind"},
        )
        assert resp.status_code == 201
        assert resp.json["total_amount_cents"] == 0
        assert resp.json["receipt"]["payment_status"] == "all product got removed"

        detail = client.get(f"/api/sales/receipts/{receipt_id}", headers=superadmin_headers)
        assert detail.json["lines"] == []

        product_json = client.get(f"/api/products/{product.id}", headers=superadmin_headers).json
        assert product_json["quantity"] == 10

    def test_insufficient_stock_is_409(self, client, db_session, admin_headers, worker, product):
        resp = self._checkout(client, admin_headers, worker, product, 11)
        assert resp.status_code == 409
        assert "Soap" in resp.json["error"]
        assert resp.json["details"]["available_quantity"] == 10
        assert db_session.get(Product, product.id).quantity == 10

    def test_validation_is_400(self, client, db_session, admin_headers, worker, product):
        resp = client.post("/api/sales/receipts", headers=admin_headers, json={
            "worker_id": worker.id, "customer_name": "Ali", "lines": [],
        })
        assert resp.status_code == 400

    def test_unknown_product_is_404(self, client, db_session, admin_headers, worker):
        resp = client.post("/api/sales/receipts", headers=admin_headers, json={
            "worker_id": worker.id,
            "customer_name": "Ali",
            "lines": [{"product_id": 9999, "quantity": 1, "sold_price_cents": 100}],
        })
        assert resp.status_code == 404

    def test_over_return_is_409(self, client, db_session, superadmin_headers, worker, product):
        receipt_id = self._checkout(client, superadmin_headers, worker, product, 2).json["receipt_id"]
        line = db_session.query(SalesReceiptLine).filter_by(receipt_id=receipt_id).one()

        resp = client.post(
            f"/api/sales/receipts/{receipt_id}/returns",
            headers=superadmin_headers,
            json={"line_id": line.id, "quantity": 5},
        )
        assert resp.status_code == 409

    def test_status_update(self, client, db_session, admin_headers, worker, product):
        receipt_id = self._checkout(client, admin_headers, worker, product, 1).json["receipt_id"]

        ok = client.put(f"/api/sales/receipts/{receipt_id}/status", headers=admin_headers, json={"payment_status": "hold"})
        assert ok.status_code == 200
        assert ok.json["receipt"]["payment_status"] == "hold"

        bad = client.put(f"/api/sales/receipts/{receipt_id}/status", headers=admin_headers, json={"payment_status": "gift"})
        assert bad.status_code == 400

    def test_product_crud_and_restock(self, client, db_session, admin_headers):
        created = client.post("/api/products", headers=admin_headers, json={
            "name": "Lamp", "sell_price_cents": 2500, "retail_price_cents": 1800, "quantity": 2,
        })
        assert created.status_code == 201
        product_id = created.json["id"]

        dup = client.post("/api/products", headers=admin_headers, json={"name": "Lamp", "sell_price_cents": 1})
        assert dup.status_code == 409

        bad = client.put(f"/api/products/{product_id}", headers=admin_headers, json={"quantity": 50})
        assert bad.status_code == 400

        restocked = client.post(f"/api/products/{product_id}/restock", headers=admin_headers, json={"quantity": 3})
        assert restocked.status_code == 200
        assert restocked.json["quantity"] == 5

        movements = client.get(f"/api/products/{product_id}/movements", headers=admin_headers).json
        assert [m["movement_type"] for m in movements["items"]] == ["RESTOCK", "OPENING"]

        assert client.delete(f"/api/products/{product_id}", headers=admin_headers).status_code == 200
        listing = client.get("/api/products", headers=admin_headers).json
        assert listing["count"] == 0

    def test_purchase_receipt(self, client, db_session, admin_headers, vendor, product):
        resp = client.post("/api/purchases", headers=admin_headers, json={
            "vendor_id": vendor.id,
            "invoice_no": "INV-77",
            "lines": [
                {"product_id": product.id, "quantity": 5, "cost_price_cents": 300},
                {"name": "Sponge", "quantity": 12, "cost_price_cents": 40, "sell_price_cents": 90},
            ],
        })
        assert resp.status_code == 201
        assert resp.json["receipt"]["total_amount_cents"] == 5 * 300 + 12 * 40
        assert [l["created_product"] for l in resp.json["lines"]] == [False, True]

    def test_worker_endpoints(self, client, db_session, superadmin_headers):
        resp = client.post("/api/workers", headers=superadmin_headers, json={
            "name": "Hamza", "salary_cents": 2_500_000, "joining_date": "2024-01-15",
        })
        assert resp.status_code == 201
        worker_id = resp.json["worker"]["id"]
        assert resp.json["worker"]["joining_date"] == "2024-01-15"

        negative = client.put(f"/api/workers/{worker_id}", headers=superadmin_headers, json={"bonus_cents": -1})
        assert negative.status_code == 400

        assert client.delete(f"/api/workers/{worker_id}", headers=superadmin_headers).status_code == 200

    def test_legacy_flow(self, client, db_session, superadmin_headers, worker, product):
        resp = client.post("/api/legacy/sales", headers=superadmin_headers, json={"items": [
            {"product_id": product.id, "worker_id": worker.id, "quantity": 2, "sold_price_cents": 500},
        ]})
        assert resp.status_code == 201
        assert resp.headers["Deprecation"] == "true"
        sale_id = resp.json["items"][0]["id"]

        ret = client.post(f"/api/legacy/sales/{sale_id}/returns", headers=superadmin_headers, json={
            "product_id": product.id, "worker_id": worker.id, "quantity": 2,
        })
        assert ret.status_code == 201
        assert ret.json["sale"]["payment_status"] == "returned"


# =============================================================================
# INVITATION FLOW OVER HTTP
# =============================================================================


class TestInvitationEndpoints:

    def test_invite_and_signup(self, client, db_session, superadmin_headers):
        from shopdesk.models import EmailVerification

        resp = client.post("/api/auth/invitations", headers=superadmin_headers, json={"email": "fresh@shop.test"})
        assert resp.status_code == 201
        assert "code" not in resp.json["invitation"]

        code = db_session.query(EmailVerification).filter_by(email="fresh@shop.test").one().code
        signup = client.post("/api/auth/signup", json={
            "name": "Fresh", "email": "fresh@shop.test", "password": "Password123!", "invitation_code": code,
        })
        assert signup.status_code == 201
        assert signup.json["admin"]["permissions"]["sales"] is True

        again = client.post("/api/auth/signup", json={
            "name": "Fresh", "email": "fresh@shop.test", "password": "Password123!", "invitation_code": code,
        })
        assert again.status_code == 400
