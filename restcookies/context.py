"""
Per-request context and the endpoint lifecycle that drives it.

Every request gets a fresh ``RequestContext``: its cookie jar, response
status, headers and body live there and are discarded with it, so nothing a
handler memoizes leaks into the next request.
"""

import json
import logging
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Optional

from .config import CookieConfig
from .error_models import ErrorResponse
from .exceptions import CookieJarFinalizedError, EndpointHalt
from .jar import CookieJar
from .models import MultiValueHeaders, Request, Response

# Set up logger for this module
logger = logging.getLogger(__name__)

Filter = Callable[["RequestContext"], Any]
Handler = Callable[["RequestContext"], Any]


class RequestContext:
    """State shared by filters and the handler while one request is processed."""

    def __init__(self, request: Request, config: Optional[CookieConfig] = None):
        self.request = request
        self.config = config or CookieConfig()
        self.env: Dict[str, Any] = {}
        self.status = int(HTTPStatus.OK)
        self.headers = MultiValueHeaders()
        self.body: Any = None
        self._cookies: Optional[CookieJar] = None
        self._finalized = False

    @property
    def cookies(self) -> CookieJar:
        """The request's cookie jar, built from the Cookie header on first use."""
        if self._cookies is None:
            self._cookies = CookieJar.from_request(self.request, config=self.config)
        return self._cookies

    def header(self, name: str, value: str) -> None:
        """Set a response header."""
        self.headers[name] = value

    def set_status(self, status_code: int) -> None:
        """Set the response status code.

        Raises:
            ValueError: If the code is outside 100-599
        """
        status_code = int(status_code)
        if not 100 <= status_code <= 599:
            raise ValueError(f"Invalid HTTP status code: {status_code}")
        self.status = status_code

    def error(self, message: Any, status_code: int = HTTPStatus.FORBIDDEN) -> None:
        """Stop processing and respond with ``message`` and ``status_code``."""
        raise EndpointHalt(message, int(status_code))

    def finalize(self, response: Response) -> Response:
        """Attach the jar's Set-Cookie lines to ``response``.

        Raises:
            CookieJarFinalizedError: If called more than once for this request
        """
        if self._finalized:
            raise CookieJarFinalizedError("Set-Cookie headers were already emitted for this request")
        self._finalized = True

        # An untouched jar has nothing to say
        if self._cookies is None:
            return response

        lines = self._cookies.render_headers()
        if not lines:
            return response

        if self.config.join_set_cookie:
            response.headers["Set-Cookie"] = "\n".join(lines)
        else:
            for line in lines:
                response.headers.add("Set-Cookie", line)
        logger.debug(f"Emitting {len(lines)} Set-Cookie line(s) for {self.request.method.value} {self.request.path}")
        return response


class Endpoint:
    """Runs one handler with before/after filters and cookie finalization.

    Example::

        endpoint = Endpoint(lambda ctx: ctx.cookies["username"])

        @endpoint.before
        def mark(ctx):
            ctx.env["seen"] = True

        response = endpoint.execute(request)
    """

    def __init__(self, handler: Handler, config: Optional[CookieConfig] = None):
        self.handler = handler
        self.config = config or CookieConfig()
        self.config.validate()
        self._before_filters: List[Filter] = []
        self._after_filters: List[Filter] = []

    def before(self, func: Filter) -> Filter:
        """Register a filter that runs before the handler."""
        self._before_filters.append(func)
        return func

    def after(self, func: Filter) -> Filter:
        """Register a filter that runs after the handler.

        Its return value is ignored; set ``context.body`` to replace the body.
        """
        self._after_filters.append(func)
        return func

    def execute(self, request: Request) -> Response:
        """Process a request through filters and handler."""
        context = RequestContext(request, self.config)
        try:
            try:
                self._run(context)
            except EndpointHalt as halt:
                response = self._render(halt.status_code, halt.message, context.headers)
            else:
                response = self._render(context.status, context.body, context.headers)
            return context.finalize(response)
        except Exception as e:
            logger.error(f"Unhandled exception processing {request.method.value} {request.path}: {e}")
            error = ErrorResponse(error="Internal server error", request_id=request.headers.get("X-Request-ID"))
            return Response(
                int(HTTPStatus.INTERNAL_SERVER_ERROR),
                error.model_dump_json(),
                content_type="application/json"
            )

    def _run(self, context: RequestContext) -> None:
        for before_filter in self._before_filters:
            before_filter(context)

        result = self.handler(context)
        if result is not None:
            context.body = result

        for after_filter in self._after_filters:
            after_filter(context)

    def _render(self, status_code: int, body: Any, headers: MultiValueHeaders) -> Response:
        headers = headers.copy()
        content_type = None
        if isinstance(body, (dict, list)):
            body = json.dumps(body, separators=(",", ":"))
            content_type = "application/json"
        elif body is None:
            body = ""
        else:
            body = str(body)
            content_type = "text/plain"

        # Content-Type set by a filter or handler wins
        if "Content-Type" in headers:
            content_type = None
        return Response(status_code, body, headers=headers, content_type=content_type)
