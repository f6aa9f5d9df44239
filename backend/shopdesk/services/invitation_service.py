# Overview: Service-layer operations for admin invitations and signup.

"""
Invitation Service

A superadmin invites an email address; the invitee signs up with the code.

- Codes are 6 digits, valid for INVITATION_TTL_MINUTES
- Issuing a new code invalidates earlier unconsumed codes for that email
- A code is consumed at most once
- Delivery is a log line; outbound email is not part of this service
"""

import secrets
from datetime import timedelta

from flask import current_app

from ..errors import ConflictError, InvitationError
from ..extensions import db
from ..models import AdminUser, EmailVerification
from ..models.auth import CAPABILITY_PRODUCTS, CAPABILITY_SALES, ROLE_ADMIN
from . import auth_service
from shopdesk.time_utils import utcnow


# Capabilities granted to a freshly signed-up admin
DEFAULT_SIGNUP_CAPABILITIES = (CAPABILITY_PRODUCTS, CAPABILITY_SALES)


def generate_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def send_invitation(*, email, invited_by: AdminUser) -> EmailVerification:
    """
    Issue an invitation code for `email`.

    Raises:
        ValidationError: malformed email
        ConflictError: email already belongs to an account
    """
    email = auth_service.normalize_email(email)
    if db.session.query(AdminUser.id).filter_by(email=email).first():
        raise ConflictError("An account with this email already exists")

    now = utcnow()
    db.session.query(EmailVerification).filter(
        EmailVerification.email == email,
        EmailVerification.consumed_at.is_(None),
        EmailVerification.invalidated_at.is_(None),
    ).update({EmailVerification.invalidated_at: now}, synchronize_session=False)

    ttl = timedelta(minutes=current_app.config.get("INVITATION_TTL_MINUTES", 60))
    invitation = EmailVerification(
        email=email,
        code=generate_code(),
        expires_at=now + ttl,
        invited_by_admin_id=invited_by.id,
    )
    db.session.add(invitation)
    db.session.commit()

    current_app.logger.info(
        "Invitation for %s issued by admin %s: code %s (expires %s)",
        email, invited_by.id, invitation.code, invitation.expires_at.isoformat(),
    )
    return invitation


def signup(*, name, email, password, code) -> AdminUser:
    """
    Consume an invitation code and create a verified admin with the default
    capabilities.

    Raises:
        InvitationError: code unknown, expired, consumed or invalidated
        ConflictError: email already registered
        ValidationError / PasswordValidationError: bad input
    """
    email = auth_service.normalize_email(email)
    if not isinstance(code, str) or not code.strip():
        raise InvitationError("Invitation code is required")

    invitation = db.session.query(EmailVerification).filter_by(
        email=email,
        code=code.strip(),
    ).order_by(EmailVerification.id.desc()).first()

    if not invitation:
        raise InvitationError("Invalid invitation code")
    if invitation.consumed_at is not None:
        raise InvitationError("Invitation code has already been used")
    if invitation.invalidated_at is not None:
        raise InvitationError("Invitation code has been replaced by a newer one")
    if invitation.expires_at < utcnow():
        raise InvitationError("Invitation code has expired")

    # Claim the code before creating the account so a concurrent signup with
    # the same code cannot also succeed.
    claimed = db.session.query(EmailVerification).filter(
        EmailVerification.id == invitation.id,
        EmailVerification.consumed_at.is_(None),
    ).update({EmailVerification.consumed_at: utcnow()}, synchronize_session=False)
    if claimed != 1:
        db.session.rollback()
        raise InvitationError("Invitation code has already been used")

    try:
        admin = auth_service.create_admin(
            name=name,
            email=email,
            password=password,
            role=ROLE_ADMIN,
            permissions=list(DEFAULT_SIGNUP_CAPABILITIES),
            is_verified=True,
        )
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Admin %s signed up with invitation %s", admin.id, invitation.id)
    return admin


def expire_invitations() -> int:
    """Invalidate unconsumed codes past their expiry. Returns the count."""
    now = utcnow()
    count = db.session.query(EmailVerification).filter(
        EmailVerification.consumed_at.is_(None),
        EmailVerification.invalidated_at.is_(None),
        EmailVerification.expires_at < now,
    ).update({EmailVerification.invalidated_at: now}, synchronize_session=False)
    db.session.commit()
    return count
