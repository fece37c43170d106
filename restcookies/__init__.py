"""
A request-scoped cookie jar with diff-based Set-Cookie emission.

The jar tracks what a handler reads, writes and deletes during one request
and sends back only the cookies that changed. A small endpoint lifecycle
(per-request context, before/after filters, error halting) and drivers for
AWS API Gateway and WSGI let the jar run end to end.
"""

from http import HTTPStatus

from .config import CookieConfig
from .context import Endpoint, RequestContext
from .drivers import AwsApiGatewayDriver, Driver, WsgiDriver
from .error_models import ErrorResponse
from .exceptions import (
    CookieError,
    CookieJarFinalizedError,
    EndpointHalt,
    InvalidCookieValueError,
    ValidationError,
)
from .jar import CookieJar, parse_cookie_header
from .models import (
    CookieEntry,
    CookieOptions,
    CookieValue,
    EntryState,
    HTTPMethod,
    MultiValueHeaders,
    Request,
    Response,
    Scalar,
    WithOptions,
)

__version__ = "0.1.0"
__author__ = "restcookies Contributors"
__license__ = "MIT"

__all__ = [
    "CookieJar",
    "CookieConfig",
    "CookieEntry",
    "CookieOptions",
    "CookieValue",
    "EntryState",
    "Scalar",
    "WithOptions",
    "parse_cookie_header",
    "Endpoint",
    "RequestContext",
    "Request",
    "Response",
    "MultiValueHeaders",
    "HTTPMethod",
    "HTTPStatus",
    "Driver",
    "AwsApiGatewayDriver",
    "WsgiDriver",
    "ErrorResponse",
    "CookieError",
    "CookieJarFinalizedError",
    "EndpointHalt",
    "InvalidCookieValueError",
    "ValidationError",
]
