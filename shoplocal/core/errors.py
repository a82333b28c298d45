"""
Error taxonomy for the API.

Every error carries the HTTP status it maps to. Routes never build error
responses themselves: the exception handlers in
`shoplocal.interfaces.error_handlers` turn these into `{message}` or
`{message, errors}` JSON bodies.
"""
from typing import Any, Dict, List, Optional


class ShopLocalError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(ShopLocalError):
    """Malformed or missing fields. `errors` holds field-level detail."""
    status_code = 400
    default_message = "Invalid request data"

    @classmethod
    def for_field(cls, field: str, message: str, summary: Optional[str] = None) -> "ValidationError":
        return cls(summary or message, errors=[{"field": field, "message": message}])


class AuthenticationError(ShopLocalError):
    status_code = 401
    default_message = "Not authenticated"


class AuthorizationError(ShopLocalError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(ShopLocalError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ShopLocalError):
    """A concurrent write won; the caller should re-read and retry."""
    status_code = 409
    default_message = "Resource was modified concurrently"


class IntegrationError(ShopLocalError):
    """A third-party call (payment gateway) failed. Message goes to the client as-is."""
    status_code = 500
    default_message = "External service call failed"


class InternalError(ShopLocalError):
    """Persistence failure. Detail is logged, never sent to the client."""
    status_code = 500
    default_message = "Internal server error"
