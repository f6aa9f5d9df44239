# Overview: Flask API routes for the returns history; parses input and returns JSON responses.

"""
Returns history. Recording a return happens on the sale it belongs to
(/api/sales/receipts/<id>/returns or /api/legacy/sales/<id>/returns).
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_capability
from ..errors import ShopError
from ..models.auth import CAPABILITY_RETURNS
from ..services import return_service


returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


@returns_bp.get("")
@require_auth
@require_capability(CAPABILITY_RETURNS)
def list_returns_route():
    limit = min(max(request.args.get("limit", 100, type=int), 1), 500)
    offset = max(request.args.get("offset", 0, type=int), 0)
    records = return_service.list_returns(
        sales_receipt_id=request.args.get("sales_receipt_id", type=int),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [r.to_dict() for r in records],
        "count": len(records),
        "limit": limit,
        "offset": offset,
    })


@returns_bp.get("/<int:return_id>")
@require_auth
@require_capability(CAPABILITY_RETURNS)
def get_return_route(return_id: int):
    try:
        record = return_service.get_return(return_id)
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify({"return": record.to_dict()})
