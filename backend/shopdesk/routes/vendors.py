# Overview: Flask API routes for vendor operations; parses input and returns JSON responses.

"""
Vendor Routes

SECURITY: All routes require authentication and the `products` capability
(vendors only matter for stock intake).
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_capability
from ..errors import ShopError
from ..validation import json_object
from ..models.auth import CAPABILITY_PRODUCTS
from ..services import vendor_service


vendors_bp = Blueprint("vendors", __name__, url_prefix="/api/vendors")


@vendors_bp.get("")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def list_vendors_route():
    """
    Query parameters:
    - include_inactive: Include inactive vendors (default: false)
    - search: Search term for name or contact
    - limit: Maximum results (default: 100)
    - offset: Pagination offset (default: 0)

    Returns:
        {items: Vendor[], count: int, limit: int, offset: int}
    """
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    search = request.args.get("search")
    limit = request.args.get("limit", 100, type=int)
    offset = request.args.get("offset", 0, type=int)

    # Clamp limit
    limit = min(max(limit, 1), 500)
    offset = max(offset, 0)

    vendors, total = vendor_service.list_vendors(
        include_inactive=include_inactive,
        search=search,
        limit=limit,
        offset=offset,
    )

    return jsonify({
        "items": [v.to_dict() for v in vendors],
        "count": total,
        "limit": limit,
        "offset": offset,
    })


@vendors_bp.post("")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def create_vendor_route():
    """
    Request body:
    {
        "name": "Vendor Name",  // required
        "contact": "...",       // optional
        "phone": "...",         // optional
        "address": "..."        // optional
    }
    """
    try:
        data = json_object()
        for field in ("name", "contact", "phone", "address"):
            if data.get(field) is not None and not isinstance(data.get(field), str):
                return jsonify({"error": f"{field} must be a string"}), 400

        vendor = vendor_service.create_vendor(
            name=data.get("name"),
            contact=data.get("contact"),
            phone=data.get("phone"),
            address=data.get("address"),
        )
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code

    return jsonify({"vendor": vendor.to_dict()}), 201


@vendors_bp.get("/<int:vendor_id>")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def get_vendor_route(vendor_id: int):
    try:
        vendor = vendor_service.get_vendor(vendor_id)
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify({"vendor": vendor.to_dict()})


@vendors_bp.delete("/<int:vendor_id>")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def deactivate_vendor_route(vendor_id: int):
    try:
        vendor = vendor_service.deactivate_vendor(vendor_id)
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify({"vendor": vendor.to_dict()})
