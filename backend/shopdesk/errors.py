# Overview: Error taxonomy shared by services and routes.

"""
Shop error hierarchy.

Every service-level failure that should reach a client is a ShopError.
Routes map them to HTTP responses using `status_code`; anything else is an
unexpected failure and becomes a generic 500.
"""


class ShopError(Exception):
    """Base class for errors surfaced to API clients."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": str(self)}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ShopError, ValueError):
    """400-level input problem."""
    status_code = 400


class NotFoundError(ShopError, LookupError):
    """A referenced product/vendor/worker/receipt/line does not exist."""
    status_code = 404


class InsufficientStockError(ShopError):
    """Requested quantity exceeds available stock at lock time."""
    status_code = 409

    def __init__(self, product_id: int, product_name: str | None, requested: int, available: int):
        label = product_name or f"id {product_id}"
        super().__init__(
            f"Insufficient stock for product {label}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "requested_quantity": requested,
                "available_quantity": available,
            },
        )
        self.product_id = product_id


class ConflictError(ShopError, ValueError):
    """409-level business rule conflict (e.g., duplicate product name)."""
    status_code = 409


class StorageError(ShopError):
    """
    Unexpected transaction/commit failure.

    The message is always generic; the underlying cause is logged server-side.
    """
    status_code = 500

    def __init__(self, message: str = "Storage failure, no changes were saved"):
        super().__init__(message)


class PermissionDeniedError(ShopError):
    """Authenticated admin lacks the capability for this section."""
    status_code = 403


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


class InvitationError(ShopError):
    """Invitation code unknown, expired, already used or invalidated."""
    status_code = 400
