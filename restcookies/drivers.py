"""
Driver interface for handling different event sources that execute an endpoint.
"""

import base64
import logging
from abc import ABC, abstractmethod
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Optional, Tuple

from .context import Endpoint
from .models import HTTPMethod, MultiValueHeaders, Request, Response

# Set up logger for this module
logger = logging.getLogger(__name__)


def expand_set_cookie(headers: MultiValueHeaders) -> List[Tuple[str, str]]:
    """Return all header pairs with newline-joined Set-Cookie values split apart.

    Transports that cannot carry a newline inside a header value need one
    Set-Cookie field per cookie.
    """
    pairs = []
    for name, value in headers.items_all():
        if name.lower() == "set-cookie":
            pairs.extend((name, line) for line in value.split("\n") if line)
        else:
            pairs.append((name, value))
    return pairs


class Driver(ABC):
    """Abstract base class for drivers that convert external events to endpoint requests."""

    def __init__(self, endpoint: Endpoint):
        """
        Initialize the driver with the endpoint to execute requests against.

        Args:
            endpoint: The Endpoint instance handling converted requests
        """
        self.endpoint = endpoint

    @abstractmethod
    def handle_event(self, event: Any, context: Optional[Any] = None) -> Any:
        """
        Handle an external event and return the appropriate response format.

        Args:
            event: The external event (e.g., AWS Lambda event, WSGI environ)
            context: Optional context (e.g., AWS Lambda context, WSGI start_response)

        Returns:
            Response in the format expected by the external system
        """
        pass

    @abstractmethod
    def convert_to_request(self, event: Any, context: Optional[Any] = None) -> Request:
        """Convert an external event to a Request object."""
        pass

    @abstractmethod
    def convert_from_response(self, response: Response, event: Any, context: Optional[Any] = None) -> Any:
        """Convert a Response object to the format expected by the external system."""
        pass


class AwsApiGatewayDriver(Driver):
    """Driver for AWS API Gateway (REST API) Lambda proxy integration events."""

    def handle_event(self, event: Dict[str, Any], context: Optional[Any] = None) -> Dict[str, Any]:
        """
        Handle an AWS API Gateway event.

        Args:
            event: AWS API Gateway event dictionary
            context: AWS Lambda context (optional)

        Returns:
            AWS API Gateway response dictionary
        """
        request = self.convert_to_request(event, context)
        response = self.endpoint.execute(request)
        return self.convert_from_response(response, event, context)

    def convert_to_request(self, event: Dict[str, Any], context: Optional[Any] = None) -> Request:
        """Convert AWS API Gateway event to Request object."""
        method = HTTPMethod(event.get("httpMethod", "GET").upper())
        path = event.get("path", "/")

        # multiValueHeaders carries repeated headers (e.g. several Cookie
        # fields); fall back to the single-value map for the rest
        headers = MultiValueHeaders()
        multi_value_headers = event.get("multiValueHeaders") or {}
        for key, values in multi_value_headers.items():
            for value in values or []:
                if value is not None:
                    headers.add(key, str(value))
        for key, value in (event.get("headers") or {}).items():
            if value is not None and key not in headers:
                headers.add(key, str(value))

        body = event.get("body")
        if body and event.get("isBase64Encoded", False):
            body = base64.b64decode(body).decode("utf-8")

        return Request(method=method, path=path, headers=headers, body=body)

    def convert_from_response(self, response: Response, event: Dict[str, Any], context: Optional[Any] = None) -> Dict[str, Any]:
        """Convert Response object to AWS API Gateway response format.

        Every header goes into ``multiValueHeaders`` so each Set-Cookie line
        reaches the client as its own field; ``headers`` holds the ones that
        have exactly one value.
        """
        multi_value_headers: Dict[str, List[str]] = {}
        for name, value in expand_set_cookie(response.headers):
            multi_value_headers.setdefault(name, []).append(value)

        headers = {name: values[0] for name, values in multi_value_headers.items() if len(values) == 1}

        return {
            "statusCode": response.status_code,
            "headers": headers,
            "multiValueHeaders": multi_value_headers,
            "body": response.body or "",
            "isBase64Encoded": False,
        }


class WsgiDriver(Driver):
    """Driver exposing an endpoint as a WSGI application.

    Usage::

        app = WsgiDriver(endpoint)
        # hand ``app`` to any WSGI server
    """

    def __call__(self, environ: Dict[str, Any], start_response: Callable) -> List[bytes]:
        return self.handle_event(environ, start_response)

    def handle_event(self, event: Dict[str, Any], context: Optional[Any] = None) -> List[bytes]:
        """
        Handle a WSGI request.

        Args:
            event: WSGI environ
            context: WSGI start_response callable

        Returns:
            Iterable of body chunks
        """
        request = self.convert_to_request(event)
        response = self.endpoint.execute(request)
        return self.convert_from_response(response, event, context)

    def convert_to_request(self, event: Dict[str, Any], context: Optional[Any] = None) -> Request:
        """Convert a WSGI environ to a Request object."""
        method = HTTPMethod(event.get("REQUEST_METHOD", "GET").upper())
        path = event.get("SCRIPT_NAME", "") + event.get("PATH_INFO", "") or "/"

        headers = MultiValueHeaders()
        for key, value in event.items():
            if key.startswith("HTTP_"):
                headers.add(key[5:].replace("_", "-").title(), value)
            elif key in ("CONTENT_TYPE", "CONTENT_LENGTH") and value:
                headers.add(key.replace("_", "-").title(), value)

        body = None
        stream = event.get("wsgi.input")
        try:
            length = int(event.get("CONTENT_LENGTH") or 0)
        except ValueError:
            logger.debug(f"Ignoring invalid CONTENT_LENGTH: {event.get('CONTENT_LENGTH')!r}")
            length = 0
        if stream is not None and length > 0:
            body = stream.read(length).decode("utf-8")

        return Request(method=method, path=path, headers=headers, body=body)

    def convert_from_response(self, response: Response, event: Dict[str, Any], context: Optional[Any] = None) -> List[bytes]:
        """Start the WSGI response and return the body chunks."""
        try:
            reason = HTTPStatus(response.status_code).phrase
        except ValueError:
            reason = "Unknown"
        status = f"{response.status_code} {reason}"

        if context is not None:
            context(status, expand_set_cookie(response.headers))
        return [(response.body or "").encode("utf-8")]
