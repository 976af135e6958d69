"""
Domain errors raised by the shop services.

Each error carries the HTTP status the API layer answers with and a
human-readable message that ends up in the response body.
"""


class ShopError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShopError):
    status_code = 400


class InvalidRequest(ValidationError):
    pass


class InsufficientStock(ShopError):
    status_code = 400


class NotFound(ShopError):
    status_code = 404


class Conflict(ShopError):
    status_code = 409


class Unauthorized(ShopError):
    status_code = 401


class InternalError(ShopError):
    status_code = 500
