from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z


# Stock movement types
MOVEMENT_OPENING = "OPENING"
MOVEMENT_PURCHASE = "PURCHASE"
MOVEMENT_SALE = "SALE"
MOVEMENT_RETURN = "RETURN"
MOVEMENT_RESTOCK = "RESTOCK"
MOVEMENT_LEGACY_SALE = "LEGACY_SALE"
MOVEMENT_LEGACY_RETURN = "LEGACY_RETURN"

MOVEMENT_TYPES = {
    MOVEMENT_OPENING,
    MOVEMENT_PURCHASE,
    MOVEMENT_SALE,
    MOVEMENT_RETURN,
    MOVEMENT_RESTOCK,
    MOVEMENT_LEGACY_SALE,
    MOVEMENT_LEGACY_RETURN,
}


class Product(db.Model):
    """
    Product master data with its on-hand counter.

    QUANTITY: `quantity` is the single shared mutable counter in the system.
    It is only ever changed through stock_service (locked, conditional
    UPDATE statements), never by assigning the attribute on a loaded object.
    A CHECK constraint backs the "never negative" rule at the storage level.

    ARCHIVING: Products referenced by receipt lines and returns are never
    hard-deleted. Archiving hides them from listings and blocks new stock
    movements while keeping historical receipts readable.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        db.Index("ix_products_archived_name", "is_archived", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    retail_price_cents = db.Column(db.Integer, nullable=False, default=0)  # cost basis
    sell_price_cents = db.Column(db.Integer, nullable=False, default=0)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    is_archived = db.Column(db.Boolean, nullable=False, default=False)
    archived_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "retail_price_cents": self.retail_price_cents,
            "sell_price_cents": self.sell_price_cents,
            "quantity": self.quantity,
            "is_archived": self.is_archived,
            "archived_at": to_utc_z(self.archived_at) if self.archived_at else None,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """
    Append-only record of every change to Product.quantity.

    Written in the same transaction as the quantity change it mirrors, so the
    sum of a product's quantity_delta values equals its on-hand quantity.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    movement_type = db.Column(db.String(32), nullable=False, index=True)
    quantity_delta = db.Column(db.Integer, nullable=False)
    quantity_after = db.Column(db.Integer, nullable=False)

    # Source document references (at most one is normally set)
    sales_receipt_id = db.Column(db.Integer, db.ForeignKey("sales_receipts.id"), nullable=True, index=True)
    sales_receipt_line_id = db.Column(db.Integer, nullable=True)
    purchase_receipt_id = db.Column(db.Integer, db.ForeignKey("purchase_receipts.id"), nullable=True, index=True)
    return_id = db.Column(db.Integer, db.ForeignKey("returns.id"), nullable=True, index=True)
    legacy_sale_id = db.Column(db.Integer, db.ForeignKey("legacy_sales.id"), nullable=True, index=True)

    actor_admin_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"), nullable=True)
    note = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("movements", lazy="dynamic"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "movement_type": self.movement_type,
            "quantity_delta": self.quantity_delta,
            "quantity_after": self.quantity_after,
            "sales_receipt_id": self.sales_receipt_id,
            "sales_receipt_line_id": self.sales_receipt_line_id,
            "purchase_receipt_id": self.purchase_receipt_id,
            "return_id": self.return_id,
            "legacy_sale_id": self.legacy_sale_id,
            "actor_admin_id": self.actor_admin_id,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }
