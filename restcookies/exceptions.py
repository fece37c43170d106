"""
Custom exceptions for the cookie jar and endpoint lifecycle.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError  # noqa: F401  (re-exported)


class CookieError(Exception):
    """Base exception for cookie jar errors."""

    pass


class InvalidCookieValueError(CookieError, ValueError):
    """Raised when a handler passes a cookie name or value the jar cannot store.

    This is a contract violation by handler code, not a runtime condition
    the jar recovers from.
    """

    def __init__(self, message="Invalid cookie value", errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message
        self.details = errors or []
        super().__init__(self.message)

    def errors(self) -> List[Dict[str, Any]]:
        """Return error details in Pydantic-like format."""
        return self.details or [{"msg": self.message}]


class CookieJarFinalizedError(CookieError):
    """Raised when a request context is asked to emit Set-Cookie headers twice."""

    pass


class EndpointHalt(CookieError):
    """Raised by ``RequestContext.error`` to stop processing with an error response."""

    def __init__(self, message: Union[str, Dict[str, Any], List[Any]] = "", status_code: int = 403):
        self.message = message
        self.status_code = status_code
        super().__init__(message if isinstance(message, str) else repr(message))
