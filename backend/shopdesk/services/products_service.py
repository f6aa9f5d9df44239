# backend/shopdesk/services/products_service.py
"""
Products Service

Catalog maintenance. Quantity is only writable at creation (opening stock)
and through restock/purchase/sale/return flows in stock_service; the patch
used for updates never carries it.
"""
from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Product
from ..models.catalog import MOVEMENT_RESTOCK
from ..validation import MAX_LINE_QUANTITY, require_positive_int
from . import stock_service
from .concurrency import run_in_transaction
from shopdesk.time_utils import utcnow

PRODUCT_MUTABLE_FIELDS = {"name", "description", "retail_price_cents", "sell_price_cents"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _ensure_name_available(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product.id).filter(Product.name == name)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError(f"Product '{name}' already exists")


def list_products(
    *,
    search: str | None = None,
    include_archived: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional name search and pagination.

    Args:
        search: Case-insensitive substring match on name
        include_archived: Include archived products
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)
    """
    base_query = db.session.query(Product)
    if not include_archived:
        base_query = base_query.filter(Product.is_archived.is_(False))
    if search:
        base_query = base_query.filter(Product.name.ilike(f"%{search.strip()}%"))
    base_query = base_query.order_by(Product.created_at.desc(), Product.id.desc())

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def search_products(q: str, limit: int = 30) -> list[dict]:
    """Till quick-search: id, name, quantity and sell price only."""
    rows = (
        db.session.query(Product.id, Product.name, Product.quantity, Product.sell_price_cents)
        .filter(Product.is_archived.is_(False), Product.name.ilike(f"%{(q or '').strip()}%"))
        .order_by(Product.name.asc())
        .limit(limit)
        .all()
    )
    return [
        {"id": r.id, "name": r.name, "quantity": r.quantity, "sell_price_cents": r.sell_price_cents}
        for r in rows
    ]


def get_product(product_id: int, *, include_archived: bool = True) -> Product:
    product = db.session.get(Product, product_id)
    if not product or (product.is_archived and not include_archived):
        raise NotFoundError(f"Product {product_id} not found")
    return product


def create_product(*, patch: dict, actor_admin_id: int | None = None) -> Product:
    """
    Create product using a validated patch dict.

    The opening quantity (if any) is mirrored as an OPENING stock movement.
    """
    def _op():
        _ensure_name_available(patch["name"])
        product = Product(
            name=patch["name"],
            description=patch.get("description"),
            retail_price_cents=patch.get("retail_price_cents") or 0,
            sell_price_cents=patch.get("sell_price_cents") or 0,
            quantity=patch.get("quantity") or 0,
        )
        db.session.add(product)
        db.session.flush()
        stock_service.record_opening_stock(product, actor_admin_id=actor_admin_id, note="Opening stock")
        return product

    product = run_in_transaction(_op, name="create product")
    current_app.logger.info("Product %s created (%r, opening quantity %d)", product.id, product.name, product.quantity)
    return product


def update_product(*, product_id: int, patch: dict) -> Product:
    def _op():
        product = get_product(product_id, include_archived=False)
        if "name" in patch:
            _ensure_name_available(patch["name"], exclude_id=product_id)
        apply_product_patch(product, patch)
        db.session.flush()
        return product

    return run_in_transaction(_op, name="update product")


def archive_product(*, product_id: int) -> Product:
    """
    Soft delete. Historical receipt lines and returns keep resolving the
    product; it no longer appears in listings and cannot take new stock.
    """
    def _op():
        product = get_product(product_id, include_archived=False)
        product.is_archived = True
        product.archived_at = utcnow()
        db.session.flush()
        return product

    product = run_in_transaction(_op, name="archive product")
    current_app.logger.info("Product %s archived", product_id)
    return product


def restock(*, product_id: int, quantity_delta, actor_admin_id: int | None = None) -> Product:
    """
    Add stock to a product.

    Raises:
        ValidationError: quantity_delta not a positive integer
        NotFoundError: product missing or archived
    """
    quantity_delta = require_positive_int(quantity_delta, "quantity", maximum=MAX_LINE_QUANTITY)

    def _op():
        stock_service.increment_stock(
            product_id,
            quantity_delta,
            movement_type=MOVEMENT_RESTOCK,
            actor_admin_id=actor_admin_id,
            note="Manual restock",
        )
        return get_product(product_id)

    return run_in_transaction(_op, name="restock")
