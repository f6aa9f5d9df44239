# Overview: Service-layer operations for the deprecated flat sale records.

"""
Legacy Sales Service (DEPRECATED)

Flat one-product sale rows from before sales receipts. New checkouts must
use checkout_service; this module exists so historical rows can still be
recorded by old clients and returned.

Legacy returns do not recompute any parent receipt total: a flat sale has
no parent receipt.
"""

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import LegacySale, Return, Worker
from ..models.catalog import MOVEMENT_LEGACY_RETURN, MOVEMENT_LEGACY_SALE
from ..models.sales import LEGACY_STATUS_PAID, LEGACY_STATUS_RETURNED, RETURN_SOURCE_LEGACY
from ..validation import MAX_LINE_QUANTITY, optional_text, require_positive_int, require_price_cents
from . import stock_service
from .concurrency import lock_for_update, run_in_transaction


def record_legacy_sales(items, *, actor_admin_id: int | None = None) -> list[LegacySale]:
    """
    Record flat sale rows in one atomic transaction.

    items: [{product_id, worker_id, quantity, sold_price_cents}, ...]
    Same stock-check semantics as a checkout: any failing item aborts all.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one sale item is required")

    parsed = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index + 1} must be an object")
        try:
            parsed.append((
                require_positive_int(raw.get("product_id"), "product_id"),
                require_positive_int(raw.get("worker_id"), "worker_id"),
                require_positive_int(raw.get("quantity"), "quantity", maximum=MAX_LINE_QUANTITY),
                require_price_cents(raw.get("sold_price_cents"), "sold_price_cents", allow_zero=False),
            ))
        except ValidationError as e:
            raise ValidationError(f"Item {index + 1}: {e}", details={"item": index + 1}) from e

    def _op():
        sales = []
        for product_id, worker_id, quantity, sold_price_cents in parsed:
            worker = db.session.get(Worker, worker_id)
            if not worker or not worker.is_active:
                raise NotFoundError(f"Worker {worker_id} not found", details={"worker_id": worker_id})

            stock_service.lock_product(product_id)
            sale = LegacySale(
                product_id=product_id,
                worker_id=worker_id,
                quantity=quantity,
                sold_price_cents=sold_price_cents,
                total_amount_cents=quantity * sold_price_cents,
                payment_status=LEGACY_STATUS_PAID,
            )
            db.session.add(sale)
            db.session.flush()

            stock_service.decrement_stock(
                product_id,
                quantity,
                movement_type=MOVEMENT_LEGACY_SALE,
                actor_admin_id=actor_admin_id,
                note=f"Legacy sale {sale.id}",
                legacy_sale_id=sale.id,
            )
            sales.append(sale)
        return sales

    sales = run_in_transaction(_op, name="legacy sale")
    current_app.logger.warning(
        "Deprecated flat sale endpoint used: %d sale row(s) recorded", len(sales)
    )
    return sales


def returned_quantity(sale_id: int) -> int:
    return int(
        db.session.query(db.func.coalesce(db.func.sum(Return.quantity), 0))
        .filter(Return.legacy_sale_id == sale_id)
        .scalar()
    )


def legacy_return(
    *,
    sale_id: int,
    product_id,
    worker_id,
    quantity,
    reason=None,
    actor_admin_id: int | None = None,
) -> Return:
    """
    Return units of a flat sale.

    The sale is marked "returned" only once the cumulative returned quantity
    reaches the original sale quantity.

    Raises:
        NotFoundError: sale missing, or product/worker do not match it
        ConflictError: sale already fully returned, or quantity exceeds what remains
    """
    product_id = require_positive_int(product_id, "product_id")
    worker_id = require_positive_int(worker_id, "worker_id")
    quantity = require_positive_int(quantity, "quantity")
    reason = optional_text(reason, "reason", max_length=255)

    def _op():
        sale = lock_for_update(db.session.query(LegacySale).filter_by(id=sale_id)).first()
        if not sale:
            raise NotFoundError(f"Sale {sale_id} not found")
        if sale.product_id != product_id or sale.worker_id != worker_id:
            raise NotFoundError(
                f"Sale {sale_id} does not match product {product_id} and worker {worker_id}",
                details={"sale_id": sale_id, "product_id": product_id, "worker_id": worker_id},
            )
        if sale.payment_status == LEGACY_STATUS_RETURNED:
            raise ConflictError(f"Sale {sale_id} has already been fully returned")

        already = returned_quantity(sale.id)
        remaining = sale.quantity - already
        if quantity > remaining:
            raise ConflictError(
                f"Cannot return {quantity} units; only {remaining} remain returnable",
                details={"requested_quantity": quantity, "returnable_quantity": remaining},
            )

        record = Return(
            source=RETURN_SOURCE_LEGACY,
            legacy_sale_id=sale.id,
            product_id=product_id,
            worker_id=worker_id,
            quantity=quantity,
            reason=reason,
            returned_amount_cents=quantity * sale.sold_price_cents,
            processed_by_admin_id=actor_admin_id,
        )
        db.session.add(record)
        db.session.flush()

        stock_service.increment_stock(
            product_id,
            quantity,
            movement_type=MOVEMENT_LEGACY_RETURN,
            actor_admin_id=actor_admin_id,
            note=f"Return of legacy sale {sale.id}",
            allow_archived=True,
            legacy_sale_id=sale.id,
            return_id=record.id,
        )

        if already + quantity >= sale.quantity:
            sale.payment_status = LEGACY_STATUS_RETURNED
        db.session.flush()
        return record

    record = run_in_transaction(_op, name="legacy return")
    current_app.logger.info("Return %s on legacy sale %s: %d unit(s)", record.id, sale_id, quantity)
    return record


def get_legacy_sale(sale_id: int) -> LegacySale:
    sale = db.session.get(LegacySale, sale_id)
    if not sale:
        raise NotFoundError(f"Sale {sale_id} not found")
    return sale


def list_legacy_sales(*, limit: int = 100, offset: int = 0) -> list[LegacySale]:
    return (
        db.session.query(LegacySale)
        .order_by(LegacySale.created_at.desc(), LegacySale.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
