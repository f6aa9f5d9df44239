from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z


ROLE_ADMIN = "admin"
ROLE_SUPERADMIN = "superadmin"
ROLES = (ROLE_ADMIN, ROLE_SUPERADMIN)

# Closed set of section capabilities an admin can be granted
CAPABILITY_PRODUCTS = "products"
CAPABILITY_WORKERS = "workers"
CAPABILITY_SALES = "sales"
CAPABILITY_RETURNS = "returns"
CAPABILITIES = (CAPABILITY_PRODUCTS, CAPABILITY_WORKERS, CAPABILITY_SALES, CAPABILITY_RETURNS)


class AdminUser(db.Model):
    """
    Back-office account.

    PERMISSIONS: one boolean column per capability. `superadmin` bypasses all
    capability checks; `admin` needs the flag for the section it touches.
    """
    __tablename__ = "admin_users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False, default=ROLE_ADMIN)
    address = db.Column(db.Text, nullable=True)

    can_products = db.Column(db.Boolean, nullable=False, default=False)
    can_workers = db.Column(db.Boolean, nullable=False, default=False)
    can_sales = db.Column(db.Boolean, nullable=False, default=False)
    can_returns = db.Column(db.Boolean, nullable=False, default=False)

    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<AdminUser id={self.id} email={self.email!r} role={self.role}>"

    @property
    def is_superadmin(self) -> bool:
        return self.role == ROLE_SUPERADMIN

    @property
    def capabilities(self) -> frozenset[str]:
        return frozenset(cap for cap in CAPABILITIES if getattr(self, f"can_{cap}"))

    def set_capabilities(self, capabilities) -> None:
        granted = set(capabilities)
        for cap in CAPABILITIES:
            setattr(self, f"can_{cap}", cap in granted)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "address": self.address,
            "permissions": {cap: getattr(self, f"can_{cap}") for cap in CAPABILITIES},
            "is_verified": self.is_verified,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Bearer session token.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - Absolute and idle timeouts (see Config)
    - Revocable on logout or account deactivation
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_admin_active", "admin_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"), nullable=False, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    admin = db.relationship("AdminUser", backref=db.backref("sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "admin_id": self.admin_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }


class EmailVerification(db.Model):
    """
    Short-lived invitation code for admin signup. Consumed at most once.
    """
    __tablename__ = "email_verifications"
    __table_args__ = (
        db.Index("ix_email_verifications_email_code", "email", "code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    code = db.Column(db.String(16), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    consumed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    invalidated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    invited_by_admin_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "expires_at": to_utc_z(self.expires_at),
            "consumed_at": to_utc_z(self.consumed_at) if self.consumed_at else None,
            "invited_by_admin_id": self.invited_by_admin_id,
            "created_at": to_utc_z(self.created_at),
        }
