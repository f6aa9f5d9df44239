from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z, to_iso_date


class Worker(db.Model):
    """
    Shop floor staff. Sales receipts are attributed to a worker.

    No stock effect. Deactivated (not deleted) because receipts reference it.
    """
    __tablename__ = "workers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    father_name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    cnic = db.Column(db.String(32), nullable=True, index=True)

    salary_cents = db.Column(db.Integer, nullable=False, default=0)
    bonus_cents = db.Column(db.Integer, nullable=False, default=0)

    role = db.Column(db.String(64), nullable=True)
    joining_date = db.Column(db.Date, nullable=True)
    benefits = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Worker id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "father_name": self.father_name,
            "phone": self.phone,
            "cnic": self.cnic,
            "salary_cents": self.salary_cents,
            "bonus_cents": self.bonus_cents,
            "role": self.role,
            "joining_date": to_iso_date(self.joining_date),
            "benefits": self.benefits,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
