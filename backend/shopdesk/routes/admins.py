# Overview: Flask API routes for admin account management; parses input and returns JSON responses.

"""
Admin account routes. Superadmin only.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_superadmin
from ..errors import ShopError
from ..validation import json_object
from ..services import auth_service


admins_bp = Blueprint("admins", __name__, url_prefix="/api/admins")


@admins_bp.get("")
@require_auth
@require_superadmin
def list_admins_route():
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    admins = auth_service.list_admins(include_inactive=include_inactive)
    return jsonify({"items": [a.to_dict() for a in admins], "count": len(admins)})


@admins_bp.post("")
@require_auth
@require_superadmin
def create_admin_route():
    """
    Request body:
    {
        "name": "...", "email": "...", "password": "...",
        "role": "admin" | "superadmin",
        "address": "...",
        "permissions": {"products": true, "workers": false, "sales": true, "returns": false}
    }
    """
    try:
        data = json_object()
        admin = auth_service.create_admin(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            role=data.get("role"),
            address=data.get("address"),
            permissions=data.get("permissions"),
        )
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Creating admin failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"admin": admin.to_dict()}), 201


@admins_bp.put("/<int:admin_id>")
@require_auth
@require_superadmin
def update_admin_route(admin_id: int):
    try:
        data = json_object()
        admin = auth_service.update_admin(admin_id=admin_id, actor=g.current_admin, data=data)
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Updating admin %s failed", admin_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"admin": admin.to_dict()})


@admins_bp.delete("/<int:admin_id>")
@require_auth
@require_superadmin
def deactivate_admin_route(admin_id: int):
    try:
        admin = auth_service.deactivate_admin(admin_id=admin_id, actor=g.current_admin)
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code

    return jsonify({"admin": admin.to_dict()})
