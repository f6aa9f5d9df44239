# Overview: Service-layer operations for returns; encapsulates business logic and database work.

"""
Return Processing Service

Line-level returns against sales receipts. A return is one atomic unit:

1. Lock the receipt header, then the line (must belong to the receipt)
2. Reject quantities above what is still on the line
3. Full return deletes the line; partial return decrements it in place
4. Restore product stock by exactly the returned quantity
5. Recompute the receipt total from the remaining lines; a receipt with no
   lines left becomes "all product got removed" (terminal)
6. Record a Return row (refund = quantity * original sold price)

Stock is restored exactly once per returned unit because the line quantity
and the product counter change in the same transaction.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Return, SalesReceipt, SalesReceiptLine
from ..models.catalog import MOVEMENT_RETURN
from ..models.sales import PAYMENT_ALL_REMOVED, RETURN_SOURCE_RECEIPT
from ..validation import optional_text, require_positive_int
from . import stock_service
from .concurrency import lock_for_update, run_in_transaction


@dataclass(frozen=True)
class ReturnOutcome:
    return_record: Return
    receipt: SalesReceipt
    line_removed: bool
    remaining_line_quantity: int
    total_amount_cents: int
    remaining_line_count: int

    def to_dict(self) -> dict:
        return {
            "return": self.return_record.to_dict(),
            "receipt": self.receipt.to_dict(),
            "line_removed": self.line_removed,
            "remaining_line_quantity": self.remaining_line_quantity,
            "total_amount_cents": self.total_amount_cents,
            "remaining_line_count": self.remaining_line_count,
        }


def _recompute_receipt(receipt: SalesReceipt) -> tuple[int, int]:
    """Return (total_cents, line_count) over the receipt's remaining lines."""
    total, count = db.session.query(
        db.func.coalesce(db.func.sum(SalesReceiptLine.quantity * SalesReceiptLine.sold_price_cents), 0),
        db.func.count(SalesReceiptLine.id),
    ).filter(SalesReceiptLine.receipt_id == receipt.id).one()
    return int(total), int(count)


def return_receipt_line(
    *,
    receipt_id: int,
    line_id,
    quantity,
    reason=None,
    actor_admin_id: int | None = None,
) -> ReturnOutcome:
    """
    Return units of one sales receipt line.

    Raises:
        ValidationError: quantity not a positive integer
        NotFoundError: receipt or line missing, or line not on this receipt
        ConflictError: quantity exceeds the line's remaining quantity
    """
    line_id = require_positive_int(line_id, "line_id")
    quantity = require_positive_int(quantity, "quantity")
    reason = optional_text(reason, "reason", max_length=255)

    def _op():
        receipt = lock_for_update(db.session.query(SalesReceipt).filter_by(id=receipt_id)).first()
        if not receipt:
            raise NotFoundError(f"Sales receipt {receipt_id} not found")

        line = lock_for_update(db.session.query(SalesReceiptLine).filter_by(id=line_id)).first()
        if not line or line.receipt_id != receipt.id:
            raise NotFoundError(
                f"Line {line_id} not found on sales receipt {receipt_id}",
                details={"receipt_id": receipt_id, "line_id": line_id},
            )

        if quantity > line.quantity:
            raise ConflictError(
                f"Cannot return {quantity} units; only {line.quantity} remain on the line",
                details={"requested_quantity": quantity, "line_quantity": line.quantity},
            )

        product_id = line.product_id
        sold_price_cents = line.sold_price_cents
        line_removed = quantity == line.quantity
        if line_removed:
            remaining_line_quantity = 0
            db.session.delete(line)
        else:
            line.quantity -= quantity
            remaining_line_quantity = line.quantity
        db.session.flush()

        return_record = Return(
            source=RETURN_SOURCE_RECEIPT,
            sales_receipt_id=receipt.id,
            sales_receipt_line_id=line_id,
            product_id=product_id,
            worker_id=receipt.worker_id,
            quantity=quantity,
            reason=reason,
            returned_amount_cents=quantity * sold_price_cents,
            processed_by_admin_id=actor_admin_id,
        )
        db.session.add(return_record)
        db.session.flush()

        stock_service.increment_stock(
            product_id,
            quantity,
            movement_type=MOVEMENT_RETURN,
            actor_admin_id=actor_admin_id,
            note=f"Return from sales receipt {receipt.id}",
            allow_archived=True,
            sales_receipt_id=receipt.id,
            sales_receipt_line_id=line_id,
            return_id=return_record.id,
        )

        total, line_count = _recompute_receipt(receipt)
        receipt.total_amount_cents = total
        if line_count == 0:
            receipt.payment_status = PAYMENT_ALL_REMOVED
        db.session.flush()

        return ReturnOutcome(
            return_record=return_record,
            receipt=receipt,
            line_removed=line_removed,
            remaining_line_quantity=remaining_line_quantity,
            total_amount_cents=total,
            remaining_line_count=line_count,
        )

    outcome = run_in_transaction(_op, name="receipt line return")
    current_app.logger.info(
        "Return %s on sales receipt %s: %d unit(s) of line %s, receipt total now %d cents",
        outcome.return_record.id, receipt_id, quantity, line_id, outcome.total_amount_cents,
    )
    return outcome


# =============================================================================
# QUERIES
# =============================================================================

def get_return(return_id: int) -> Return:
    return_record = db.session.get(Return, return_id)
    if not return_record:
        raise NotFoundError(f"Return {return_id} not found")
    return return_record


def list_returns(*, sales_receipt_id: int | None = None, limit: int = 100, offset: int = 0) -> list[Return]:
    """Newest first."""
    query = db.session.query(Return)
    if sales_receipt_id:
        query = query.filter(Return.sales_receipt_id == sales_receipt_id)
    return (
        query.order_by(Return.created_at.desc(), Return.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
