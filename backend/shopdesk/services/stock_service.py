# Overview: Service-layer operations for the product quantity counter and its movement ledger.

"""
Stock Service

The product quantity is the only cross-request shared counter. Every change
goes through the two primitives here, which:

1. Lock and read the product row (SELECT ... FOR UPDATE where supported)
2. Apply an atomic conditional UPDATE and check the affected row count
   (`quantity >= :requested` for decrements), so two concurrent checkouts
   cannot both pass the stock check for the same unit
3. Append a StockMovement row in the same transaction

Callers own the transaction (see concurrency.run_in_transaction); nothing in
this module commits.
"""

from __future__ import annotations

from sqlalchemy import select, update

from ..errors import InsufficientStockError, NotFoundError
from ..extensions import db
from ..models import Product, StockMovement
from ..models.catalog import MOVEMENT_OPENING, MOVEMENT_TYPES
from .concurrency import lock_for_update


def lock_product(product_id: int, *, allow_archived: bool = False) -> Product:
    """Lock and read a product row, refreshing any stale identity-map copy."""
    product = (
        lock_for_update(db.session.query(Product).filter_by(id=product_id))
        .populate_existing()
        .first()
    )
    if not product or (product.is_archived and not allow_archived):
        raise NotFoundError(f"Product {product_id} not found", details={"product_id": product_id})
    return product


def _current_quantity(product_id: int) -> int:
    return db.session.execute(
        select(Product.quantity).where(Product.id == product_id)
    ).scalar_one()


def _append_movement(
    product: Product,
    *,
    movement_type: str,
    quantity_delta: int,
    quantity_after: int,
    actor_admin_id: int | None,
    note: str | None,
    refs: dict,
) -> StockMovement:
    if movement_type not in MOVEMENT_TYPES:
        raise ValueError(f"unknown movement type {movement_type!r}")
    movement = StockMovement(
        product_id=product.id,
        movement_type=movement_type,
        quantity_delta=quantity_delta,
        quantity_after=quantity_after,
        actor_admin_id=actor_admin_id,
        note=note,
        **refs,
    )
    db.session.add(movement)
    db.session.flush()
    return movement


def decrement_stock(
    product_id: int,
    quantity: int,
    *,
    movement_type: str,
    actor_admin_id: int | None = None,
    note: str | None = None,
    **refs,
) -> StockMovement:
    """
    Remove `quantity` units from a product.

    Raises:
        NotFoundError: product missing or archived
        InsufficientStockError: fewer than `quantity` units on hand
    """
    if quantity <= 0:
        raise ValueError("decrement quantity must be positive")

    product = lock_product(product_id)
    if product.quantity < quantity:
        raise InsufficientStockError(product.id, product.name, quantity, product.quantity)

    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.quantity >= quantity)
        .values(quantity=Product.quantity - quantity, version_id=Product.version_id + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        available = _current_quantity(product_id)
        raise InsufficientStockError(product.id, product.name, quantity, available)

    db.session.expire(product)
    return _append_movement(
        product,
        movement_type=movement_type,
        quantity_delta=-quantity,
        quantity_after=_current_quantity(product_id),
        actor_admin_id=actor_admin_id,
        note=note,
        refs=refs,
    )


def increment_stock(
    product_id: int,
    quantity: int,
    *,
    movement_type: str,
    actor_admin_id: int | None = None,
    note: str | None = None,
    allow_archived: bool = False,
    **refs,
) -> StockMovement:
    """
    Add `quantity` units to a product.

    Returns restore stock even for archived products (allow_archived=True);
    purchases and restocks do not.
    """
    if quantity <= 0:
        raise ValueError("increment quantity must be positive")

    product = lock_product(product_id, allow_archived=allow_archived)

    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(quantity=Product.quantity + quantity, version_id=Product.version_id + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFoundError(f"Product {product_id} not found", details={"product_id": product_id})

    db.session.expire(product)
    return _append_movement(
        product,
        movement_type=movement_type,
        quantity_delta=quantity,
        quantity_after=_current_quantity(product_id),
        actor_admin_id=actor_admin_id,
        note=note,
        refs=refs,
    )


def record_opening_stock(product: Product, *, actor_admin_id: int | None = None, note: str | None = None, **refs) -> StockMovement | None:
    """Mirror the opening quantity of a freshly inserted product."""
    if not product.quantity:
        return None
    return _append_movement(
        product,
        movement_type=MOVEMENT_OPENING,
        quantity_delta=product.quantity,
        quantity_after=product.quantity,
        actor_admin_id=actor_admin_id,
        note=note,
        refs=refs,
    )


def list_movements(product_id: int, *, limit: int = 100) -> list[StockMovement]:
    return (
        db.session.query(StockMovement)
        .filter_by(product_id=product_id)
        .order_by(StockMovement.id.desc())
        .limit(limit)
        .all()
    )
