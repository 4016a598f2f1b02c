# Overview: Domain exception hierarchy shared by services and routes.

from __future__ import annotations


class PosError(Exception):
    """Base for errors the API reports to the client as-is."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(PosError, ValueError):
    """400-level input problem."""

    status_code = 400


class NotFoundError(PosError):
    status_code = 404


class ConflictError(PosError, ValueError):
    """409-level business rule conflict (e.g., duplicate code, consumed license key)."""

    status_code = 409


class InsufficientStockError(ConflictError):
    """Raised when the conditional stock decrement touches no row."""

    def __init__(self, product_name: str, requested: int, available: int | None = None):
        details = {"product": product_name, "requested": requested}
        if available is not None:
            details["available"] = available
        super().__init__(f"Stock insuficiente para {product_name}", details)
        self.product_name = product_name


class LicenseLimitError(PosError):
    """Feature cap hit while running without an active license."""

    status_code = 403

    def __init__(self, message: str, status_code: int = 403):
        super().__init__(
            message,
            {"requires_license": True, "activate_url": "/activate"},
            status_code=status_code,
        )


class PersistenceError(PosError):
    """Storage failure surfaced to the caller after rollback."""

    status_code = 500
