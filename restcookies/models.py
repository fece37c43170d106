"""
Core data models for the cookie jar and its request/response lifecycle.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator


class MultiValueHeaders:
    """
    Multi-value, case-insensitive headers container.

    Set-Cookie is the reason this exists: a response may carry several
    Set-Cookie lines, and header names must match regardless of case.

    Example::

        headers = MultiValueHeaders({"Cookie": "a=1"})
        headers.get("cookie")                      # 'a=1'
        headers.add("Set-Cookie", "a=2")
        headers.add("Set-Cookie", "b=3")
        headers.get_all("set-cookie")              # ['a=2', 'b=3']
    """

    def __init__(self, data=None):
        # lowercase name -> [(original name, value), ...]
        self._headers: Dict[str, List[Tuple[str, str]]] = {}

        if isinstance(data, MultiValueHeaders):
            self._headers = {k: list(v) for k, v in data._headers.items()}
        elif isinstance(data, dict):
            for key, value in data.items():
                if isinstance(value, list):
                    for v in value:
                        self.add(key, v)
                else:
                    self.add(key, value)
        elif isinstance(data, (list, tuple)):
            for key, value in data:
                self.add(key, value)

    def add(self, name: str, value: str) -> None:
        """Append a value, keeping any values already present for ``name``."""
        self._headers.setdefault(name.lower(), []).append((name, value))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the first value for ``name``, or ``default``."""
        if not isinstance(name, str):
            return default
        values = self._headers.get(name.lower())
        if values:
            return values[0][1]
        return default

    def get_all(self, name: str) -> List[str]:
        """Return every value for ``name`` in the order they were added."""
        return [value for _, value in self._headers.get(name.lower(), [])]

    def set(self, name: str, value: str) -> None:
        """Replace all values for ``name`` with a single value."""
        self._headers[name.lower()] = [(name, value)]

    def __setitem__(self, name: str, value: str) -> None:
        self.set(name, value)

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return name.lower() in self._headers

    def __delitem__(self, name: str) -> None:
        try:
            del self._headers[name.lower()]
        except KeyError:
            raise KeyError(name) from None

    def __iter__(self):
        for values in self._headers.values():
            yield values[0][0]

    def __len__(self):
        return len(self._headers)

    def keys(self):
        return list(self)

    def items(self):
        """Return (name, first_value) pairs."""
        return [(values[0][0], values[0][1]) for values in self._headers.values()]

    def items_all(self):
        """Return all (name, value) pairs including repeated names."""
        result = []
        for values in self._headers.values():
            result.extend(values)
        return result

    def to_multidict(self) -> Dict[str, List[str]]:
        """Convert to a dict of header name -> list of all values."""
        return {values[0][0]: [v for _, v in values] for values in self._headers.values()}

    def copy(self):
        return MultiValueHeaders(self)

    def __repr__(self):
        return f"MultiValueHeaders({self.items_all()!r})"


class HTTPMethod(Enum):
    """Enumeration of supported HTTP methods."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"


@dataclass
class Request:
    """Represents an inbound HTTP request."""

    method: HTTPMethod
    path: str
    headers: Union[Dict[str, str], MultiValueHeaders] = field(default_factory=dict)
    body: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.headers, MultiValueHeaders):
            self.headers = MultiValueHeaders(self.headers)

    def get_cookie_header(self) -> str:
        """Get the raw Cookie header.

        HTTP/2 clients may split cookies across several Cookie fields;
        those are folded back into one header (RFC 9113 section 8.2.3).
        """
        return "; ".join(self.headers.get_all("Cookie"))


@dataclass
class Response:
    """Represents an outbound HTTP response."""

    status_code: int
    body: Optional[str] = None
    headers: Optional[Union[Dict[str, str], MultiValueHeaders]] = None
    content_type: Optional[str] = None

    def __post_init__(self):
        if self.headers is None:
            self.headers = MultiValueHeaders()
        elif not isinstance(self.headers, MultiValueHeaders):
            self.headers = MultiValueHeaders(self.headers)

        if self.content_type:
            self.headers["Content-Type"] = self.content_type

        # No Content-Length on 204 responses
        if self.status_code != 204:
            body_bytes = self.body.encode("utf-8") if self.body else b""
            self.headers["Content-Length"] = str(len(body_bytes))


class EntryState(Enum):
    """Lifecycle of one cookie name within a jar.

    UNREAD is never stored; a name that has not been touched is simply
    absent from the jar's entries.
    """

    UNREAD = "unread"
    READ_ONLY = "read_only"
    WRITTEN = "written"
    DELETED = "deleted"


def format_scalar(value: Any) -> str:
    """Render a scalar cookie value as the string stored in the jar.

    Raises:
        TypeError: If the value is not a string, number or boolean
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    raise TypeError(f"cookie value must be a string, number or boolean, not {type(value).__name__}")


class CookieOptions(BaseModel):
    """Attributes sent alongside a cookie value."""

    model_config = ConfigDict(extra="forbid")

    domain: Optional[str] = None
    path: Optional[str] = None
    secure: bool = False
    httponly: bool = False
    expires: Optional[datetime] = None

    @field_validator("domain", "path")
    @classmethod
    def _single_attribute(cls, value: Optional[str]) -> Optional[str]:
        # Written verbatim into the Set-Cookie line
        if value is not None and any(c in value for c in ";\r\n"):
            raise ValueError("must not contain ';', CR or LF")
        return value

    @field_validator("expires")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive datetimes are taken to be UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def merged(self, other: "CookieOptions") -> "CookieOptions":
        """Return a copy updated with the fields explicitly set on ``other``."""
        return self.model_copy(
            update={name: getattr(other, name) for name in other.model_fields_set}
        )


class CookieRecord(CookieOptions):
    """Structured cookie assignment: ``{"value": ..., "domain": ..., ...}``."""

    value: str

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        try:
            return format_scalar(value)
        except TypeError as e:
            raise ValueError(str(e)) from e

    def to_cookie_value(self) -> "WithOptions":
        provided = {name: getattr(self, name) for name in self.model_fields_set if name != "value"}
        return WithOptions(self.value, CookieOptions.model_validate(provided))


@dataclass(frozen=True)
class Scalar:
    """A bare cookie value; attributes come from the jar's defaults."""

    value: str


@dataclass(frozen=True)
class WithOptions:
    """A cookie value together with the attributes it was given."""

    value: str
    options: CookieOptions = field(default_factory=CookieOptions)


CookieValue = Union[Scalar, WithOptions]


@dataclass
class CookieEntry:
    """What the jar knows about one cookie name during a request."""

    name: str
    value: str = ""
    options: CookieOptions = field(default_factory=CookieOptions)
    state: EntryState = EntryState.READ_ONLY

    @property
    def is_dirty(self) -> bool:
        """Whether this entry produces a Set-Cookie line."""
        return self.state in (EntryState.WRITTEN, EntryState.DELETED)
