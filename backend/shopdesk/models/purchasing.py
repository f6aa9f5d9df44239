from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z


class Vendor(db.Model):
    """
    Supplier master data.

    Vendors are referenced by purchase receipts, so removal is a soft
    deactivation (is_active=False). Deactivation has no stock effect.
    """
    __tablename__ = "vendors"
    __table_args__ = (
        db.Index("ix_vendors_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    deactivated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Vendor id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact": self.contact,
            "phone": self.phone,
            "address": self.address,
            "is_active": self.is_active,
            "deactivated_at": to_utc_z(self.deactivated_at) if self.deactivated_at else None,
            "created_at": to_utc_z(self.created_at),
        }


class PurchaseReceipt(db.Model):
    """
    Vendor invoice intake.

    IMMUTABLE: total_amount_cents is fixed at creation to
    sum(line.quantity * line.cost_price_cents); receipts are never edited.
    """
    __tablename__ = "purchase_receipts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    invoice_no = db.Column(db.String(64), nullable=True, index=True)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    created_by_admin_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    vendor = db.relationship("Vendor", backref=db.backref("purchase_receipts", lazy=True))
    lines = db.relationship(
        "PurchaseReceiptLine",
        backref="receipt",
        lazy=True,
        order_by="PurchaseReceiptLine.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor.name if self.vendor else None,
            "invoice_no": self.invoice_no,
            "total_amount_cents": self.total_amount_cents,
            "created_by_admin_id": self.created_by_admin_id,
            "created_at": to_utc_z(self.created_at),
        }


class PurchaseReceiptLine(db.Model):
    """Individual line on a purchase receipt."""
    __tablename__ = "purchase_receipt_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    receipt_id = db.Column(db.Integer, db.ForeignKey("purchase_receipts.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # Name as written on the invoice (products can be renamed later)
    product_name = db.Column(db.String(255), nullable=False)
    created_product = db.Column(db.Boolean, nullable=False, default=False)

    quantity = db.Column(db.Integer, nullable=False)
    cost_price_cents = db.Column(db.Integer, nullable=False)
    sell_price_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.cost_price_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "receipt_id": self.receipt_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "created_product": self.created_product,
            "quantity": self.quantity,
            "cost_price_cents": self.cost_price_cents,
            "sell_price_cents": self.sell_price_cents,
            "line_total_cents": self.line_total_cents,
        }
