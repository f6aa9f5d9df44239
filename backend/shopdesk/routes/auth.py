# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/shopdesk/routes/auth.py
"""
Authentication API routes

- Login issues an opaque bearer token (see session_service)
- Signup is invitation-only: a superadmin issues a code, the invitee
  redeems it once
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import bearer_token, require_auth, require_superadmin
from ..errors import ShopError
from ..validation import json_object
from ..services import auth_service
from ..services import invitation_service
from ..services import session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate admin and create session token.

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = json_object()
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        admin = auth_service.authenticate(email, password)
        if not admin:
            current_app.logger.info("Failed login for %r from %s", email, request.remote_addr)
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            admin_id=admin.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "token": token,
            "expires_at": session.to_dict()["expires_at"],
            "admin": admin.to_dict(),
        }), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Login failed")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(bearer_token(), reason="User logout")
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"admin": g.current_admin.to_dict()}), 200


@auth_bp.post("/invitations")
@require_auth
@require_superadmin
def send_invitation_route():
    """
    Issue an invitation code for an email address.

    The code is delivered out of band (logged by the server); the response
    only confirms the invitation and its expiry.
    """
    try:
        data = json_object()
        invitation = invitation_service.send_invitation(email=data.get("email"), invited_by=g.current_admin)
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Sending invitation failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Invitation sent", "invitation": invitation.to_dict()}), 201


@auth_bp.post("/signup")
def signup_route():
    """
    Redeem an invitation code.

    Request body: {name, email, password, invitation_code}
    """
    try:
        data = json_object()
        admin = invitation_service.signup(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            code=data.get("invitation_code") or data.get("invitationCode"),
        )
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Signup failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"admin": admin.to_dict()}), 201
