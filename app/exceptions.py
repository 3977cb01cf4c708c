from fastapi import Request
from fastapi.responses import JSONResponse


class StorefrontError(Exception):
    """Base error for business-rule failures. Carries the HTTP status it maps to."""

    status_code = 500
    detail = "An internal server error occurred."

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class Unauthenticated(StorefrontError):
    status_code = 401
    detail = "Could not validate credentials"


class Forbidden(StorefrontError):
    status_code = 403
    detail = "You do not have access to this item."


class NotFound(StorefrontError):
    status_code = 404
    detail = "Not found."


class ItemNotFound(NotFound):
    detail = "Item not found in order."


class FileNotFound(NotFound):
    detail = "File not available for download."


class KeyNotFound(NotFound):
    detail = "Invalid key."


class KeyAlreadyRedeemed(StorefrontError):
    status_code = 409
    detail = "This key has already been redeemed."


class OrderNotCompleted(StorefrontError):
    status_code = 403
    detail = "Order is not completed yet."


class WindowExpired(StorefrontError):
    status_code = 403
    detail = "Your access window for this item has expired."


class InvalidItemType(StorefrontError):
    status_code = 400
    detail = "Invalid item type specified."


class InvalidRequest(StorefrontError):
    status_code = 400
    detail = "Missing required parameters."


class InvalidTransition(StorefrontError):
    status_code = 409
    detail = "Order status change not allowed."


async def storefront_error_handler(request: Request, exc: StorefrontError):
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )
