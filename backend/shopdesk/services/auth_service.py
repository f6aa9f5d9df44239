# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication and Admin Account Service

Every back-office action is attributable to an AdminUser. Uses bcrypt for
password hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
- An admin can never change its own role
- The last active superadmin cannot be demoted or deactivated
"""

import bcrypt
import re

from flask import current_app

from ..errors import ConflictError, NotFoundError, PasswordValidationError, ValidationError
from ..extensions import db
from ..models import AdminUser
from ..models.auth import ROLE_ADMIN, ROLE_SUPERADMIN, ROLES
from ..validation import optional_text, require_text
from . import session_service
from .permission_service import normalize_capabilities
from shopdesk.time_utils import utcnow


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str):
        raise PasswordValidationError("Password is required")

    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. Malformed hashes verify as False.
    """
    if not isinstance(password, str) or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(value) -> str:
    email = require_text(value, "email", max_length=255).lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("email is not a valid address")
    return email


def _validate_role(role) -> str:
    if role is None:
        return ROLE_ADMIN
    if role not in ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(ROLES)}")
    return role


def _active_superadmin_count() -> int:
    return db.session.query(AdminUser).filter(
        AdminUser.role == ROLE_SUPERADMIN,
        AdminUser.is_active.is_(True),
    ).count()


def authenticate(email: str, password: str) -> AdminUser | None:
    """
    Authenticate admin with email and password.

    Returns AdminUser if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    if not isinstance(email, str) or not email.strip():
        return None

    admin = db.session.query(AdminUser).filter(
        AdminUser.email == email.strip().lower(),
        AdminUser.is_active.is_(True),
    ).first()

    if not admin:
        return None

    if verify_password(password, admin.password_hash):
        admin.last_login_at = utcnow()
        db.session.commit()
        return admin

    return None


def create_admin(
    *,
    name,
    email,
    password,
    role=None,
    address=None,
    permissions=None,
    is_verified: bool = True,
) -> AdminUser:
    """
    Create a back-office account.

    Raises:
        ValidationError / PasswordValidationError: bad input
        ConflictError: email already registered
    """
    name = require_text(name, "name", max_length=255)
    email = normalize_email(email)
    role = _validate_role(role)
    address = optional_text(address, "address")
    capabilities = normalize_capabilities(permissions)

    if db.session.query(AdminUser.id).filter_by(email=email).first():
        raise ConflictError("An account with this email already exists")

    admin = AdminUser(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        address=address,
        is_verified=is_verified,
        is_active=True,
    )
    admin.set_capabilities(capabilities)

    db.session.add(admin)
    db.session.commit()
    current_app.logger.info("Admin %s created (%s, role %s)", admin.id, email, role)
    return admin


def get_admin(admin_id: int) -> AdminUser:
    admin = db.session.get(AdminUser, admin_id)
    if not admin:
        raise NotFoundError(f"Admin {admin_id} not found")
    return admin


def list_admins(*, include_inactive: bool = False) -> list[AdminUser]:
    query = db.session.query(AdminUser)
    if not include_inactive:
        query = query.filter(AdminUser.is_active.is_(True))
    return query.order_by(AdminUser.created_at.asc(), AdminUser.id.asc()).all()


def update_admin(*, admin_id: int, actor: AdminUser, data: dict) -> AdminUser:
    """
    Superadmin edit of an account: name, address, role, permissions, password.
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")

    allowed = {"name", "address", "role", "permissions", "password"}
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}")

    admin = get_admin(admin_id)

    if "role" in data:
        role = _validate_role(data["role"])
        if role != admin.role:
            if admin.id == actor.id:
                raise ConflictError("You cannot change your own role")
            if admin.role == ROLE_SUPERADMIN and admin.is_active and _active_superadmin_count() <= 1:
                raise ConflictError("Cannot demote the last active superadmin")
            admin.role = role

    if "name" in data:
        admin.name = require_text(data["name"], "name", max_length=255)
    if "address" in data:
        admin.address = optional_text(data["address"], "address")
    if "permissions" in data:
        admin.set_capabilities(normalize_capabilities(data["permissions"]))

    password_changed = False
    if "password" in data:
        admin.password_hash = hash_password(data["password"])
        password_changed = True

    db.session.commit()

    if password_changed and admin.id != actor.id:
        session_service.revoke_all_admin_sessions(admin.id, reason="Password reset by superadmin")

    return admin


def deactivate_admin(*, admin_id: int, actor: AdminUser) -> AdminUser:
    """
    Soft delete an account and revoke its sessions.
    """
    admin = get_admin(admin_id)
    if not admin.is_active:
        return admin
    if admin.id == actor.id:
        raise ConflictError("You cannot deactivate your own account")
    if admin.role == ROLE_SUPERADMIN and _active_superadmin_count() <= 1:
        raise ConflictError("Cannot deactivate the last active superadmin")

    admin.is_active = False
    db.session.commit()
    session_service.revoke_all_admin_sessions(admin.id, reason="Account deactivated")
    current_app.logger.info("Admin %s deactivated by %s", admin.id, actor.id)
    return admin
