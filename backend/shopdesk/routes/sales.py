# Overview: Flask API routes for sales receipts; parses input and returns JSON responses.

"""
Sales Receipt Routes

- Checkout and receipt queries require the `sales` capability
- Line returns require the `returns` capability
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_capability
from ..errors import ShopError
from ..validation import json_object
from ..models.auth import CAPABILITY_RETURNS, CAPABILITY_SALES
from ..services import checkout_service, return_service


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("/receipts")
@require_auth
@require_capability(CAPABILITY_SALES)
def create_sales_receipt_route():
    """
    Record a checkout.

    Request body:
    {
        "worker_id": 1,
        "customer_name": "Ali",
        "customer_phone": "...",            // optional
        "payment_status": "paid" | "pending", // optional, default paid
        "lines": [{"product_id": 1, "quantity": 3, "sold_price_cents": 500}]
    }

    Returns 201 with {receipt_id, total_amount_cents, receipt, lines}.
    """
    try:
        data = json_object()
        receipt = checkout_service.record_sale_receipt(
            worker_id=data.get("worker_id"),
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
            payment_status=data.get("payment_status"),
            lines=data.get("lines"),
            actor_admin_id=g.current_admin.id,
        )
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Checkout failed")
        return jsonify({"error": "Internal server error"}), 500

    detail = checkout_service.get_sales_receipt_detail(receipt.id)
    detail["receipt_id"] = receipt.id
    detail["total_amount_cents"] = receipt.total_amount_cents
    return jsonify(detail), 201


@sales_bp.get("/receipts")
@require_auth
@require_capability(CAPABILITY_SALES)
def list_sales_receipts_route():
    return jsonify(checkout_service.list_sales_receipts(
        payment_status=request.args.get("payment_status"),
        worker_id=request.args.get("worker_id", type=int),
        page=request.args.get("page", 1, type=int),
        per_page=request.args.get("per_page", 20, type=int),
    ))


@sales_bp.get("/receipts/<int:receipt_id>")
@require_auth
@require_capability(CAPABILITY_SALES)
def get_sales_receipt_route(receipt_id: int):
    try:
        return jsonify(checkout_service.get_sales_receipt_detail(receipt_id))
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code


@sales_bp.put("/receipts/<int:receipt_id>/status")
@require_auth
@require_capability(CAPABILITY_SALES)
def update_payment_status_route(receipt_id: int):
    """
    Request body: {"payment_status": "paid" | "pending" | "hold"}
    """
    try:
        data = json_object()
        receipt = checkout_service.update_payment_status(receipt_id, data.get("payment_status"))
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Payment status update for receipt %s failed", receipt_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"receipt": receipt.to_dict()})


@sales_bp.post("/receipts/<int:receipt_id>/returns")
@require_auth
@require_capability(CAPABILITY_RETURNS)
def return_receipt_line_route(receipt_id: int):
    """
    Return units of one line.

    Request body: {"line_id": 7, "quantity": 2, "reason": "damaged"}
    """
    try:
        data = json_object()
        outcome = return_service.return_receipt_line(
            receipt_id=receipt_id,
            line_id=data.get("line_id"),
            quantity=data.get("quantity"),
            reason=data.get("reason"),
            actor_admin_id=g.current_admin.id,
        )
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Return on receipt %s failed", receipt_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(outcome.to_dict()), 201
