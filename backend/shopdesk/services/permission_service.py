# Overview: Service-layer operations for capability permissions.

"""
Permission Service

Admins hold a fixed, closed set of section capabilities:
products, workers, sales, returns. `superadmin` bypasses every check.
"""

from flask import current_app

from ..errors import PermissionDeniedError, ValidationError
from ..models import AdminUser
from ..models.auth import CAPABILITIES


def normalize_capabilities(value) -> set[str]:
    """
    Accept either a list of capability names or a {name: bool} mapping
    (the shape the admin screens send) and return the granted set.

    Raises:
        ValidationError: unknown capability name or malformed value
    """
    if value is None:
        return set()
    if isinstance(value, dict):
        for cap, flag in value.items():
            if not isinstance(flag, bool):
                raise ValidationError(f"Permission '{cap}' must be a boolean")
        names = [cap for cap, flag in value.items() if flag]
        unknown = sorted(set(value) - set(CAPABILITIES))
    elif isinstance(value, (list, tuple, set)):
        if not all(isinstance(cap, str) for cap in value):
            raise ValidationError("Permissions must be capability names")
        names = list(value)
        unknown = sorted(set(value) - set(CAPABILITIES))
    else:
        raise ValidationError("permissions must be a list or an object")

    if unknown:
        raise ValidationError(
            f"Unknown permission(s): {', '.join(unknown)}. Must be among: {', '.join(CAPABILITIES)}",
            details={"unknown": unknown},
        )
    return set(names)


def has_capability(admin: AdminUser, capability: str) -> bool:
    if capability not in CAPABILITIES:
        raise ValidationError(f"Unknown capability: {capability}")
    if not admin or not admin.is_active:
        return False
    if admin.is_superadmin:
        return True
    return capability in admin.capabilities


def require_capability(admin: AdminUser, capability: str, *, resource: str | None = None) -> None:
    """
    Raises:
        PermissionDeniedError: admin lacks the capability
    """
    if has_capability(admin, capability):
        return
    current_app.logger.warning(
        "Permission denied: admin %s lacks '%s' for %s",
        admin.id if admin else None, capability, resource or "-",
    )
    raise PermissionDeniedError(
        f"Missing permission: {capability}",
        details={"required_permission": capability},
    )
