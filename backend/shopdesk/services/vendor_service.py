# Overview: Service-layer operations for vendors; encapsulates business logic and database work.

"""
Vendor Service

Vendors are the source of purchase receipts. Removing a vendor is a soft
deactivation: historical receipts keep their vendor reference, and there is
no stock effect.
"""

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Vendor
from shopdesk.time_utils import utcnow


def create_vendor(
    *,
    name: str,
    contact: str | None = None,
    phone: str | None = None,
    address: str | None = None,
) -> Vendor:
    """
    Create a new vendor.

    Raises:
        ValidationError: If name is blank
    """
    if not name or not name.strip():
        raise ValidationError("Vendor name is required")

    vendor = Vendor(
        name=name.strip(),
        contact=(contact or "").strip() or None,
        phone=(phone or "").strip() or None,
        address=(address or "").strip() or None,
        is_active=True,
    )

    db.session.add(vendor)
    db.session.commit()
    return vendor


def get_vendor(vendor_id: int) -> Vendor:
    vendor = db.session.query(Vendor).filter_by(id=vendor_id).first()
    if not vendor:
        raise NotFoundError(f"Vendor {vendor_id} not found")
    return vendor


def list_vendors(
    *,
    include_inactive: bool = False,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[Vendor], int]:
    """
    List vendors ordered by name.

    Returns:
        (vendors, total_count)
    """
    query = db.session.query(Vendor)
    if not include_inactive:
        query = query.filter(Vendor.is_active.is_(True))
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(db.or_(Vendor.name.ilike(term), Vendor.contact.ilike(term)))

    total = query.count()
    vendors = query.order_by(Vendor.name.asc(), Vendor.id.asc()).offset(offset).limit(limit).all()
    return vendors, total


def deactivate_vendor(vendor_id: int) -> Vendor:
    """
    Deactivate a vendor (soft delete).

    Inactive vendors cannot receive new purchase receipts.
    """
    vendor = get_vendor(vendor_id)
    if not vendor.is_active:
        return vendor

    vendor.is_active = False
    vendor.deactivated_at = utcnow()
    db.session.commit()
    return vendor
