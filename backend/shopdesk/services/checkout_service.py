# Overview: Service-layer operations for point-of-sale checkout; encapsulates business logic and database work.

"""
Checkout Service - sales receipts

A checkout is one atomic transaction:
1. Validate the cart shape (no side effects on failure)
2. Insert the receipt header with a zero placeholder total
3. Per line, in input order: lock the product, check stock, insert the line,
   decrement stock (conditional UPDATE), accumulate the total
4. Write the accumulated total and commit

Any failure rolls back every write of the call, so a rejected checkout leaves
stock and receipts exactly as they were.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..errors import InsufficientStockError, NotFoundError, ValidationError, ConflictError
from ..extensions import db
from ..models import SalesReceipt, SalesReceiptLine, Worker
from ..models.catalog import MOVEMENT_SALE
from ..models.sales import (
    CHECKOUT_PAYMENT_STATUSES,
    OPERATOR_PAYMENT_STATUSES,
    PAYMENT_ALL_REMOVED,
    PAYMENT_PAID,
)
from ..validation import (
    MAX_LINE_QUANTITY,
    optional_text,
    require_positive_int,
    require_price_cents,
    require_text,
)
from . import stock_service
from .concurrency import lock_for_update, run_in_transaction


@dataclass(frozen=True)
class SaleLineInput:
    product_id: int
    quantity: int
    sold_price_cents: int


def normalize_payment_status(value, *, allowed=CHECKOUT_PAYMENT_STATUSES, default: str | None = PAYMENT_PAID) -> str:
    """
    Normalize a payment status.

    Missing values fall back to `default`; unknown values are rejected rather
    than silently coerced.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is None:
            raise ValidationError("payment_status is required")
        return default
    if not isinstance(value, str):
        raise ValidationError("payment_status must be a string")
    status = value.strip().lower()
    if status not in allowed:
        raise ValidationError(
            f"Invalid payment_status. Must be one of: {', '.join(allowed)}",
            details={"payment_status": value},
        )
    return status


def parse_sale_lines(raw_lines) -> list[SaleLineInput]:
    if not isinstance(raw_lines, list) or not raw_lines:
        raise ValidationError("At least one sale line is required")

    lines = []
    for index, raw in enumerate(raw_lines):
        if not isinstance(raw, dict):
            raise ValidationError(f"Line {index + 1} must be an object")
        try:
            lines.append(SaleLineInput(
                product_id=require_positive_int(raw.get("product_id"), "product_id"),
                quantity=require_positive_int(raw.get("quantity"), "quantity", maximum=MAX_LINE_QUANTITY),
                sold_price_cents=require_price_cents(raw.get("sold_price_cents"), "sold_price_cents", allow_zero=False),
            ))
        except ValidationError as e:
            raise ValidationError(f"Line {index + 1}: {e}", details={"line": index + 1}) from e
    return lines


def record_sale_receipt(
    *,
    worker_id,
    customer_name,
    lines,
    customer_phone=None,
    payment_status=None,
    actor_admin_id: int | None = None,
) -> SalesReceipt:
    """
    Record a checkout.

    Args:
        worker_id: Worker the sale is attributed to (must exist and be active)
        customer_name: Required, trimmed
        lines: [{product_id, quantity, sold_price_cents}, ...] in cart order
        customer_phone: Optional
        payment_status: "paid" (default) or "pending"
        actor_admin_id: Admin operating the till

    Returns:
        Committed SalesReceipt

    Raises:
        ValidationError: malformed cart (nothing written)
        NotFoundError: worker or product missing (rolled back)
        InsufficientStockError: a line exceeds stock (rolled back)
    """
    worker_id = require_positive_int(worker_id, "worker_id")
    customer_name = require_text(customer_name, "customer_name", max_length=255)
    customer_phone = optional_text(customer_phone, "customer_phone", max_length=64)
    status = normalize_payment_status(payment_status)
    sale_lines = parse_sale_lines(lines)

    def _op():
        worker = db.session.get(Worker, worker_id)
        if not worker or not worker.is_active:
            raise NotFoundError(f"Worker {worker_id} not found", details={"worker_id": worker_id})

        receipt = SalesReceipt(
            worker_id=worker_id,
            customer_name=customer_name,
            customer_phone=customer_phone,
            payment_status=status,
            total_amount_cents=0,
            created_by_admin_id=actor_admin_id,
        )
        db.session.add(receipt)
        db.session.flush()

        total = 0
        for item in sale_lines:
            product = stock_service.lock_product(item.product_id)
            if product.quantity < item.quantity:
                raise InsufficientStockError(product.id, product.name, item.quantity, product.quantity)

            line = SalesReceiptLine(
                receipt_id=receipt.id,
                product_id=item.product_id,
                quantity=item.quantity,
                original_quantity=item.quantity,
                sold_price_cents=item.sold_price_cents,
            )
            db.session.add(line)
            db.session.flush()

            stock_service.decrement_stock(
                item.product_id,
                item.quantity,
                movement_type=MOVEMENT_SALE,
                actor_admin_id=actor_admin_id,
                note=f"Sales receipt {receipt.id}",
                sales_receipt_id=receipt.id,
                sales_receipt_line_id=line.id,
            )
            total += item.quantity * item.sold_price_cents

        receipt.total_amount_cents = total
        db.session.flush()
        return receipt

    try:
        receipt = run_in_transaction(_op, name="checkout")
    except InsufficientStockError as e:
        current_app.logger.warning("Checkout rejected: %s %s", e, e.details)
        raise

    current_app.logger.info(
        "Sales receipt %s committed: %d line(s), total %d cents",
        receipt.id, len(sale_lines), receipt.total_amount_cents,
    )
    return receipt


def get_sales_receipt(receipt_id: int) -> SalesReceipt:
    receipt = db.session.get(SalesReceipt, receipt_id)
    if not receipt:
        raise NotFoundError(f"Sales receipt {receipt_id} not found")
    return receipt


def get_sales_receipt_detail(receipt_id: int) -> dict:
    """Receipt header plus its live lines (what a till prints)."""
    receipt = get_sales_receipt(receipt_id)
    lines = (
        db.session.query(SalesReceiptLine)
        .filter_by(receipt_id=receipt_id)
        .order_by(SalesReceiptLine.id.asc())
        .all()
    )
    return {
        "receipt": receipt.to_dict(),
        "lines": [line.to_dict() for line in lines],
    }


def list_sales_receipts(
    *,
    payment_status: str | None = None,
    worker_id: int | None = None,
    page: int = 1,
    per_page: int = 20,
) -> dict:
    query = db.session.query(SalesReceipt)
    if payment_status:
        query = query.filter(SalesReceipt.payment_status == payment_status)
    if worker_id:
        query = query.filter(SalesReceipt.worker_id == worker_id)
    query = query.order_by(SalesReceipt.created_at.desc(), SalesReceipt.id.desc())

    per_page = min(per_page or 20, 100)
    page = max(page or 1, 1)

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    receipts = query.offset((page - 1) * per_page).limit(per_page).all()

    line_counts = dict(
        db.session.query(SalesReceiptLine.receipt_id, db.func.count(SalesReceiptLine.id))
        .filter(SalesReceiptLine.receipt_id.in_([r.id for r in receipts] or [0]))
        .group_by(SalesReceiptLine.receipt_id)
        .all()
    )

    items = []
    for r in receipts:
        row = r.to_dict()
        row["line_count"] = line_counts.get(r.id, 0)
        items.append(row)

    return {
        "items": items,
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def update_payment_status(receipt_id: int, payment_status) -> SalesReceipt:
    """
    Operator status change (paid / pending / hold).

    "all product got removed" is terminal and only reachable through returns.
    """
    status = normalize_payment_status(payment_status, allowed=OPERATOR_PAYMENT_STATUSES, default=None)

    def _op():
        receipt = lock_for_update(db.session.query(SalesReceipt).filter_by(id=receipt_id)).first()
        if not receipt:
            raise NotFoundError(f"Sales receipt {receipt_id} not found")
        if receipt.payment_status == PAYMENT_ALL_REMOVED:
            raise ConflictError("All products on this receipt were returned; its status can no longer change")
        receipt.payment_status = status
        db.session.flush()
        return receipt

    return run_in_transaction(_op, name="payment status update")
