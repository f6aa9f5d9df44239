from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z


# Payment status values for sales receipts
PAYMENT_PAID = "paid"
PAYMENT_PENDING = "pending"
PAYMENT_HOLD = "hold"
PAYMENT_ALL_REMOVED = "all product got removed"

# Statuses an operator may set; the last one is only reached through returns
OPERATOR_PAYMENT_STATUSES = (PAYMENT_PAID, PAYMENT_PENDING, PAYMENT_HOLD)
CHECKOUT_PAYMENT_STATUSES = (PAYMENT_PAID, PAYMENT_PENDING)

# Legacy flat sale status
LEGACY_STATUS_PAID = "paid"
LEGACY_STATUS_RETURNED = "returned"

RETURN_SOURCE_RECEIPT = "receipt"
RETURN_SOURCE_LEGACY = "legacy"


class SalesReceipt(db.Model):
    """
    Checkout transaction header.

    Kept equal: total_amount_cents == sum(line.quantity * line.sold_price_cents)
    over the receipt's remaining lines. Maintained by checkout_service and
    return_service inside the same transaction that changes the lines.
    """
    __tablename__ = "sales_receipts"
    __table_args__ = (
        db.Index("ix_sales_receipts_status_created", "payment_status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    worker_id = db.Column(db.Integer, db.ForeignKey("workers.id"), nullable=False, index=True)

    payment_status = db.Column(db.String(32), nullable=False, default=PAYMENT_PAID)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(64), nullable=True)

    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    created_by_admin_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    version_id = db.Column(db.Integer, nullable=False, default=1)

    worker = db.relationship("Worker", backref=db.backref("sales_receipts", lazy=True))
    lines = db.relationship(
        "SalesReceiptLine",
        backref="receipt",
        lazy=True,
        order_by="SalesReceiptLine.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "worker_id": self.worker_id,
            "worker_name": self.worker.name if self.worker else None,
            "payment_status": self.payment_status,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "total_amount_cents": self.total_amount_cents,
            "created_by_admin_id": self.created_by_admin_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class SalesReceiptLine(db.Model):
    """
    Line on a sales receipt.

    Partial returns decrement `quantity` in place; a full return deletes the
    row. `original_quantity` keeps what was sold at checkout.
    """
    __tablename__ = "sales_receipt_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sales_receipt_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    receipt_id = db.Column(db.Integer, db.ForeignKey("sales_receipts.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    original_quantity = db.Column(db.Integer, nullable=False)
    sold_price_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.sold_price_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "receipt_id": self.receipt_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "original_quantity": self.original_quantity,
            "sold_price_cents": self.sold_price_cents,
            "line_total_cents": self.line_total_cents,
            "created_at": to_utc_z(self.created_at),
        }


class LegacySale(db.Model):
    """
    DEPRECATED: flat one-product sale record from before sales receipts.

    Kept for historical data and its return flow only. New checkouts go
    through SalesReceipt.
    """
    __tablename__ = "legacy_sales"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    worker_id = db.Column(db.Integer, db.ForeignKey("workers.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    sold_price_cents = db.Column(db.Integer, nullable=False)
    total_amount_cents = db.Column(db.Integer, nullable=False)
    payment_status = db.Column(db.String(32), nullable=False, default=LEGACY_STATUS_PAID)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    product = db.relationship("Product")
    worker = db.relationship("Worker")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "worker_id": self.worker_id,
            "worker_name": self.worker.name if self.worker else None,
            "quantity": self.quantity,
            "sold_price_cents": self.sold_price_cents,
            "total_amount_cents": self.total_amount_cents,
            "payment_status": self.payment_status,
            "created_at": to_utc_z(self.created_at),
        }


class Return(db.Model):
    """
    Customer return record.

    Receipt returns reference the receipt and the line id. The line row may
    no longer exist (full returns delete it), so the line id is not a
    foreign key.
    """
    __tablename__ = "returns"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    source = db.Column(db.String(16), nullable=False, default=RETURN_SOURCE_RECEIPT)

    sales_receipt_id = db.Column(db.Integer, db.ForeignKey("sales_receipts.id"), nullable=True, index=True)
    sales_receipt_line_id = db.Column(db.Integer, nullable=True)
    legacy_sale_id = db.Column(db.Integer, db.ForeignKey("legacy_sales.id"), nullable=True, index=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    worker_id = db.Column(db.Integer, db.ForeignKey("workers.id"), nullable=True, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=True)
    returned_amount_cents = db.Column(db.Integer, nullable=False)

    processed_by_admin_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    product = db.relationship("Product")
    worker = db.relationship("Worker")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "sales_receipt_id": self.sales_receipt_id,
            "sales_receipt_line_id": self.sales_receipt_line_id,
            "legacy_sale_id": self.legacy_sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "worker_id": self.worker_id,
            "worker_name": self.worker.name if self.worker else None,
            "quantity": self.quantity,
            "reason": self.reason,
            "returned_amount_cents": self.returned_amount_cents,
            "processed_by_admin_id": self.processed_by_admin_id,
            "created_at": to_utc_z(self.created_at),
        }
