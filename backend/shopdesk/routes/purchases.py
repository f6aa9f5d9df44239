# Overview: Flask API routes for vendor purchase receipts; parses input and returns JSON responses.

"""
Purchase Receipt Routes

SECURITY: All routes require authentication and the `products` capability.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_capability
from ..errors import ShopError
from ..validation import json_object
from ..models.auth import CAPABILITY_PRODUCTS
from ..services import purchase_service


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.post("")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def create_purchase_receipt_route():
    """
    Record a vendor invoice and bring its goods into stock.

    Request body:
    {
        "vendor_id": 1,
        "invoice_no": "INV-42",   // optional
        "lines": [
            {"product_id": 3, "quantity": 10, "cost_price_cents": 250, "sell_price_cents": 400},
            {"name": "New item", "description": "...", "quantity": 5, "cost_price_cents": 100, "sell_price_cents": 180}
        ]
    }
    """
    try:
        data = json_object()
        receipt = purchase_service.record_purchase_receipt(
            vendor_id=data.get("vendor_id"),
            invoice_no=data.get("invoice_no"),
            lines=data.get("lines"),
            actor_admin_id=g.current_admin.id,
        )
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Recording purchase receipt failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(purchase_service.get_purchase_receipt_detail(receipt.id)), 201


@purchases_bp.get("")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def list_purchase_receipts_route():
    limit = min(max(request.args.get("limit", 100, type=int), 1), 500)
    offset = max(request.args.get("offset", 0, type=int), 0)
    items = purchase_service.list_purchase_receipts(
        vendor_id=request.args.get("vendor_id", type=int),
        limit=limit,
        offset=offset,
    )
    return jsonify({"items": items, "count": len(items), "limit": limit, "offset": offset})


@purchases_bp.get("/<int:receipt_id>")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def get_purchase_receipt_route(receipt_id: int):
    try:
        return jsonify(purchase_service.get_purchase_receipt_detail(receipt_id))
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
