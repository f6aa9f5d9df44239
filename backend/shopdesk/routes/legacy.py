# Overview: Flask API routes for deprecated flat sales; parses input and returns JSON responses.

"""
DEPRECATED flat sale routes, kept for old clients and historical rows.
New checkouts use /api/sales/receipts.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_capability
from ..errors import ShopError
from ..validation import json_object
from ..models.auth import CAPABILITY_RETURNS, CAPABILITY_SALES
from ..services import legacy_service


legacy_bp = Blueprint("legacy", __name__, url_prefix="/api/legacy")


@legacy_bp.after_request
def add_deprecation_header(response):
    response.headers["Deprecation"] = "true"
    return response


@legacy_bp.get("/sales")
@require_auth
@require_capability(CAPABILITY_SALES)
def list_legacy_sales_route():
    limit = min(max(request.args.get("limit", 100, type=int), 1), 500)
    offset = max(request.args.get("offset", 0, type=int), 0)
    sales = legacy_service.list_legacy_sales(limit=limit, offset=offset)
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)})


@legacy_bp.post("/sales")
@require_auth
@require_capability(CAPABILITY_SALES)
def create_legacy_sales_route():
    """
    Request body: {"items": [{"product_id", "worker_id", "quantity", "sold_price_cents"}]}
    """
    try:
        data = json_object()
        sales = legacy_service.record_legacy_sales(data.get("items"), actor_admin_id=g.current_admin.id)
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Legacy sale failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 201


@legacy_bp.post("/sales/<int:sale_id>/returns")
@require_auth
@require_capability(CAPABILITY_RETURNS)
def legacy_return_route(sale_id: int):
    """
    Request body: {"product_id", "worker_id", "quantity", "reason"}
    """
    try:
        data = json_object()
        record = legacy_service.legacy_return(
            sale_id=sale_id,
            product_id=data.get("product_id"),
            worker_id=data.get("worker_id"),
            quantity=data.get("quantity"),
            reason=data.get("reason"),
            actor_admin_id=g.current_admin.id,
        )
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Legacy return on sale %s failed", sale_id)
        return jsonify({"error": "Internal server error"}), 500

    sale = legacy_service.get_legacy_sale(sale_id)
    return jsonify({"return": record.to_dict(), "sale": sale.to_dict()}), 201
