# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/shopdesk/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication and the `products` capability.
Quantity is set at creation only; afterwards it moves through restock,
purchases, sales and returns.
"""
from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_capability
from ..errors import ShopError
from ..models import Product
from ..models.auth import CAPABILITY_PRODUCTS
from ..services import products_service, stock_service
from ..validation import (
    json_object,
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "retail_price_cents", "sell_price_cents", "quantity"},
    required_on_create={"name", "sell_price_cents"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "retail_price_cents", "sell_price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def list_products():
    """
    List products with optional pagination.

    Query params:
    - search: str (optional) - case-insensitive name match
    - include_archived: bool (optional)
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    return products_service.list_products(
        search=request.args.get("search"),
        include_archived=request.args.get("include_archived", "false").lower() == "true",
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/search")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def search_products():
    q = request.args.get("q", "")
    limit = min(max(request.args.get("limit", 30, type=int), 1), 100)
    items = products_service.search_products(q, limit=limit)
    return jsonify({"items": items, "count": len(items)})


@products_bp.post("")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def create_product_route():
    """
    Create a new product. `quantity` is the opening stock (default 0).
    """
    try:
        payload = json_object()
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = products_service.create_product(patch=patch, actor_admin_id=g.current_admin.id)
    except ShopError as e:
        return e.to_dict(), e.status_code

    return created.to_dict(), 201


@products_bp.get("/<int:product_id>")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except ShopError as e:
        return e.to_dict(), e.status_code
    return product.to_dict()


@products_bp.put("/<int:product_id>")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def update_product_route(product_id: int):
    try:
        payload = json_object()
        if "quantity" in payload:
            return {"error": "quantity cannot be edited directly; use restock"}, 400
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ShopError as e:
        return e.to_dict(), e.status_code

    return updated.to_dict()


@products_bp.delete("/<int:product_id>")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def archive_product_route(product_id: int):
    """
    Archive a product. Historical receipts keep referencing it.
    """
    try:
        products_service.archive_product(product_id=product_id)
    except ShopError as e:
        return e.to_dict(), e.status_code

    return {"ok": True}, 200


@products_bp.post("/<int:product_id>/restock")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def restock_route(product_id: int):
    """
    Request body: {"quantity": 5}
    """
    try:
        payload = json_object()
        product = products_service.restock(
            product_id=product_id,
            quantity_delta=payload.get("quantity", payload.get("quantity_delta")),
            actor_admin_id=g.current_admin.id,
        )
    except ShopError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Restock of product %s failed", product_id)
        return {"error": "Internal server error"}, 500

    return product.to_dict()


@products_bp.get("/<int:product_id>/movements")
@require_auth
@require_capability(CAPABILITY_PRODUCTS)
def product_movements_route(product_id: int):
    limit = min(max(request.args.get("limit", 100, type=int), 1), 500)
    try:
        products_service.get_product(product_id)
    except ShopError as e:
        return e.to_dict(), e.status_code

    movements = stock_service.list_movements(product_id, limit=limit)
    return jsonify({"items": [m.to_dict() for m in movements], "count": len(movements)})
