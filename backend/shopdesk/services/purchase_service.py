# Overview: Service-layer operations for vendor purchase receipts; encapsulates business logic.

"""
Purchase Receipt Service

Vendor invoice intake. One receipt is one atomic unit: every line resolves
to a product (by id, else by exact name, else a new product is created with
the line quantity as opening stock), stock is incremented for existing
products, and the receipt total is fixed at sum(quantity * cost_price).
Any failing line aborts the whole receipt, including products it created.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, PurchaseReceipt, PurchaseReceiptLine, Vendor
from ..models.catalog import MOVEMENT_PURCHASE
from ..validation import (
    MAX_LINE_QUANTITY,
    optional_text,
    require_positive_int,
    require_price_cents,
)
from . import stock_service
from .concurrency import run_in_transaction


@dataclass(frozen=True)
class PurchaseLineInput:
    product_id: int | None
    name: str | None
    description: str | None
    quantity: int
    cost_price_cents: int
    sell_price_cents: int


def parse_purchase_lines(raw_lines) -> list[PurchaseLineInput]:
    if not isinstance(raw_lines, list) or not raw_lines:
        raise ValidationError("At least one receipt line is required")

    lines = []
    for index, raw in enumerate(raw_lines):
        if not isinstance(raw, dict):
            raise ValidationError(f"Line {index + 1} must be an object")
        try:
            product_id = raw.get("product_id")
            if product_id is not None:
                product_id = require_positive_int(product_id, "product_id")
            name = optional_text(raw.get("name"), "name", max_length=255)
            if product_id is None and not name:
                raise ValidationError("product_id or name is required")
            lines.append(PurchaseLineInput(
                product_id=product_id,
                name=name,
                description=optional_text(raw.get("description"), "description"),
                quantity=require_positive_int(raw.get("quantity"), "quantity", maximum=MAX_LINE_QUANTITY),
                cost_price_cents=require_price_cents(raw.get("cost_price_cents"), "cost_price_cents"),
                sell_price_cents=require_price_cents(raw.get("sell_price_cents", 0), "sell_price_cents"),
            ))
        except ValidationError as e:
            raise ValidationError(f"Line {index + 1}: {e}", details={"line": index + 1}) from e
    return lines


def _resolve_line(receipt: PurchaseReceipt, item: PurchaseLineInput, actor_admin_id: int | None) -> PurchaseReceiptLine:
    created = False
    if item.product_id is not None:
        product = stock_service.lock_product(item.product_id)
    else:
        product = (
            db.session.query(Product)
            .filter(Product.name == item.name, Product.is_archived.is_(False))
            .first()
        )

    if product is not None:
        stock_service.increment_stock(
            product.id,
            item.quantity,
            movement_type=MOVEMENT_PURCHASE,
            actor_admin_id=actor_admin_id,
            note=f"Purchase receipt {receipt.id}",
            purchase_receipt_id=receipt.id,
        )
    else:
        product = Product(
            name=item.name,
            description=item.description,
            retail_price_cents=item.cost_price_cents,
            sell_price_cents=item.sell_price_cents,
            quantity=item.quantity,
        )
        db.session.add(product)
        db.session.flush()
        stock_service.record_opening_stock(
            product,
            actor_admin_id=actor_admin_id,
            note=f"Created by purchase receipt {receipt.id}",
            purchase_receipt_id=receipt.id,
        )
        created = True

    line = PurchaseReceiptLine(
        receipt_id=receipt.id,
        product_id=product.id,
        product_name=product.name,
        created_product=created,
        quantity=item.quantity,
        cost_price_cents=item.cost_price_cents,
        sell_price_cents=item.sell_price_cents,
    )
    db.session.add(line)
    db.session.flush()
    return line


def record_purchase_receipt(
    *,
    vendor_id,
    lines,
    invoice_no=None,
    actor_admin_id: int | None = None,
) -> PurchaseReceipt:
    """
    Record a vendor invoice and bring its goods into stock.

    Each line: {product_id} or {name, description}, plus quantity,
    cost_price_cents and sell_price_cents.

    Raises:
        ValidationError: malformed payload (nothing written)
        NotFoundError: vendor missing/inactive or product_id missing (rolled back)
    """
    vendor_id = require_positive_int(vendor_id, "vendor_id")
    invoice_no = optional_text(invoice_no, "invoice_no", max_length=64)
    purchase_lines = parse_purchase_lines(lines)

    def _op():
        vendor = db.session.get(Vendor, vendor_id)
        if not vendor or not vendor.is_active:
            raise NotFoundError(f"Vendor {vendor_id} not found", details={"vendor_id": vendor_id})

        receipt = PurchaseReceipt(
            vendor_id=vendor_id,
            invoice_no=invoice_no,
            total_amount_cents=0,
            created_by_admin_id=actor_admin_id,
        )
        db.session.add(receipt)
        db.session.flush()

        total = 0
        for item in purchase_lines:
            line = _resolve_line(receipt, item, actor_admin_id)
            total += line.line_total_cents

        receipt.total_amount_cents = total
        db.session.flush()
        return receipt

    receipt = run_in_transaction(_op, name="purchase receipt")
    current_app.logger.info(
        "Purchase receipt %s committed for vendor %s: %d line(s), total %d cents",
        receipt.id, vendor_id, len(purchase_lines), receipt.total_amount_cents,
    )
    return receipt


def get_purchase_receipt(receipt_id: int) -> PurchaseReceipt:
    receipt = db.session.get(PurchaseReceipt, receipt_id)
    if not receipt:
        raise NotFoundError(f"Purchase receipt {receipt_id} not found")
    return receipt


def get_purchase_receipt_detail(receipt_id: int) -> dict:
    receipt = get_purchase_receipt(receipt_id)
    return {
        "receipt": receipt.to_dict(),
        "lines": [line.to_dict() for line in receipt.lines],
    }


def list_purchase_receipts(*, vendor_id: int | None = None, limit: int = 100, offset: int = 0) -> list[dict]:
    """Newest first, with vendor name and line count."""
    query = (
        db.session.query(PurchaseReceipt, db.func.count(PurchaseReceiptLine.id))
        .outerjoin(PurchaseReceiptLine, PurchaseReceiptLine.receipt_id == PurchaseReceipt.id)
        .group_by(PurchaseReceipt.id)
    )
    if vendor_id:
        query = query.filter(PurchaseReceipt.vendor_id == vendor_id)
    rows = (
        query.order_by(PurchaseReceipt.created_at.desc(), PurchaseReceipt.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    items = []
    for receipt, line_count in rows:
        row = receipt.to_dict()
        row["line_count"] = line_count
        items.append(row)
    return items
