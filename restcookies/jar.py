"""
Request-scoped cookie jar.

The jar parses the request's Cookie header once, tracks every read, write and
delete a handler performs, and renders only the net changes as Set-Cookie
lines. A cookie that was merely read is never echoed back to the browser.

Example::

    jar = CookieJar("username=user; sandbox=false")
    if jar["sandbox"] == "false":
        jar["sandbox"] = True
    jar["username"] += "_test"
    jar.render_headers()
    # ['sandbox=true', 'username=user_test']
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import quote_plus, unquote_plus

from pydantic import ValidationError

from .config import CookieConfig
from .exceptions import InvalidCookieValueError
from .models import (
    CookieEntry,
    CookieRecord,
    CookieValue,
    EntryState,
    Request,
    Scalar,
    WithOptions,
    format_scalar,
)

# Set up logger for this module
logger = logging.getLogger(__name__)

DELETED_VALUE = "deleted"
EPOCH_EXPIRES = "Thu, 01-Jan-1970 00:00:00 GMT"

# Fixed English names; strftime %a and %b follow the process locale
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def parse_cookie_header(header: Optional[str]) -> Dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Names and values are URL-decoded. Segments without ``=`` or with an empty
    name are skipped. When a name repeats, the first occurrence wins, since
    browsers list the most specific cookie first.

    Args:
        header: Raw Cookie header, e.g. ``"name1=value1; name2=value2"``

    Returns:
        Dict of decoded cookie names to decoded values (empty for a missing header)
    """
    cookies: Dict[str, str] = {}
    if not header:
        return cookies

    for segment in header.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        name, sep, value = segment.partition("=")
        name = unquote_plus(name.strip())
        if not sep or not name:
            logger.debug(f"Skipping malformed cookie segment: {segment!r}")
            continue
        if name not in cookies:
            cookies[name] = unquote_plus(value.strip())
    return cookies


def cookie_name(name: Any) -> str:
    """Normalize a cookie key given by handler code to its string name."""
    if isinstance(name, Enum):
        name = name.value
    return name if isinstance(name, str) else str(name)


def coerce_cookie_value(value: Any) -> CookieValue:
    """Turn whatever a handler assigned into a ``Scalar`` or ``WithOptions``.

    Accepts the tagged variants themselves, plain strings, numbers and
    booleans, and mappings shaped like ``{"value": ..., "domain": ...,
    "path": ..., "secure": ..., "httponly": ..., "expires": ...}``.

    Raises:
        InvalidCookieValueError: If the value has any other shape
    """
    if isinstance(value, (Scalar, WithOptions)):
        return value
    if isinstance(value, Mapping):
        try:
            return CookieRecord.model_validate(dict(value)).to_cookie_value()
        except ValidationError as e:
            raise InvalidCookieValueError(
                "Invalid cookie options record",
                errors=e.errors(include_url=False),
            ) from e
    try:
        return Scalar(format_scalar(value))
    except TypeError as e:
        raise InvalidCookieValueError(str(e)) from e


def format_expires(when: datetime) -> str:
    """Format a datetime as a cookie expiry date, e.g. ``Thu, 01-Jan-1970 00:00:00 GMT``."""
    when = when.astimezone(timezone.utc)
    return (
        f"{_WEEKDAYS[when.weekday()]}, {when.day:02d}-{_MONTHS[when.month - 1]}-{when.year:04d} "
        f"{when.hour:02d}:{when.minute:02d}:{when.second:02d} GMT"
    )


def format_set_cookie(entry: CookieEntry) -> str:
    """Render one entry as a Set-Cookie line."""
    if entry.state is EntryState.DELETED:
        return f"{quote_plus(entry.name)}={DELETED_VALUE}; expires={EPOCH_EXPIRES}"

    parts = [f"{quote_plus(entry.name)}={quote_plus(entry.value)}"]
    options = entry.options
    if options.domain:
        parts.append(f"domain={options.domain}")
    if options.path:
        parts.append(f"path={options.path}")
    if options.secure:
        parts.append("secure")
    if options.httponly:
        parts.append("HttpOnly")
    if options.expires is not None:
        parts.append(f"expires={format_expires(options.expires)}")
    return "; ".join(parts)


class CookieJar:
    """Cookies for a single request.

    Created from the request's Cookie header, mutated by filters and the
    handler, and rendered once when the response is finalized. A jar is
    owned by one request and is not safe to share.
    """

    def __init__(self, header: Optional[str] = None, config: Optional[CookieConfig] = None):
        self.config = config or CookieConfig()
        self._incoming = MappingProxyType(parse_cookie_header(header))
        # Insertion order is first-touch order, which is also render order
        self._entries: Dict[str, CookieEntry] = {}

    @classmethod
    def from_request(cls, request: Request, config: Optional[CookieConfig] = None) -> "CookieJar":
        """Build a jar from a request's Cookie header."""
        return cls(request.get_cookie_header(), config=config)

    @property
    def incoming(self) -> Mapping:
        """Cookies as the browser sent them, read-only."""
        return self._incoming

    @property
    def entries(self) -> Mapping:
        """Entries touched so far, keyed by name, in first-touch order."""
        return MappingProxyType(self._entries)

    def state(self, name: Any) -> EntryState:
        """Return the lifecycle state of ``name``."""
        entry = self._entries.get(cookie_name(name))
        return entry.state if entry is not None else EntryState.UNREAD

    def get(self, name: Any) -> str:
        """Return the current value of ``name``, or an empty string.

        Reading a cookie the browser sent marks it READ_ONLY; reading an
        unknown name leaves the jar untouched.
        """
        key = cookie_name(name)
        entry = self._entries.get(key)
        if entry is not None:
            return entry.value

        if key in self._incoming:
            entry = CookieEntry(key, self._incoming[key], state=EntryState.READ_ONLY)
            self._entries[key] = entry
            return entry.value
        return ""

    def set(self, name: Any, value: Any) -> None:
        """Write a cookie.

        Args:
            name: Cookie name
            value: A scalar (str, int, float, bool), a ``Scalar``, a
                   ``WithOptions``, or a mapping with a ``value`` key and any
                   of ``domain``, ``path``, ``secure``, ``httponly``, ``expires``

        Options omitted from the assignment keep the values a previous write
        in this request gave them. Writing a deleted cookie revives it.

        Raises:
            InvalidCookieValueError: If the name or value cannot be stored
        """
        key = self._checked_name(name)
        cookie = coerce_cookie_value(value)

        entry = self._entries.get(key)
        if entry is None:
            entry = CookieEntry(key)
            self._entries[key] = entry
        if entry.state is not EntryState.WRITTEN:
            entry.options = self.config.default_options()

        entry.value = cookie.value
        if isinstance(cookie, WithOptions):
            entry.options = entry.options.merged(cookie.options)
        entry.state = EntryState.WRITTEN

    def delete(self, name: Any) -> None:
        """Expire a cookie in the browser.

        Later reads in this request return an empty string.
        """
        key = self._checked_name(name)
        entry = self._entries.get(key)
        if entry is None:
            entry = CookieEntry(key)
            self._entries[key] = entry
        entry.value = ""
        entry.state = EntryState.DELETED

    def each(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(name, value)`` for every cookie the browser sent.

        Each value is the effective value at the moment it is yielded, so
        writes made earlier in the loop are visible. Deleting cookies while
        iterating is safe. Every call starts a fresh pass.
        """
        for name in list(self._incoming):
            entry = self._entries.get(name)
            yield name, entry.value if entry is not None else self._incoming[name]

    def render_headers(self) -> List[str]:
        """Return Set-Cookie lines for written and deleted cookies, in first-touch order."""
        return [format_set_cookie(entry) for entry in self._entries.values() if entry.is_dirty]

    def header_value(self) -> Optional[str]:
        """Return all Set-Cookie lines joined by newlines, or None if nothing changed."""
        lines = self.render_headers()
        return "\n".join(lines) if lines else None

    @property
    def changed(self) -> bool:
        """Whether the jar has anything to send back."""
        return any(entry.is_dirty for entry in self._entries.values())

    def _checked_name(self, name: Any) -> str:
        key = cookie_name(name)
        if not key:
            raise InvalidCookieValueError("Cookie name must not be empty")
        return key

    def __getitem__(self, name: Any) -> str:
        return self.get(name)

    def __setitem__(self, name: Any, value: Any) -> None:
        self.set(name, value)

    def __delitem__(self, name: Any) -> None:
        self.delete(name)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return self.each()

    def __contains__(self, name: object) -> bool:
        key = cookie_name(name)
        entry = self._entries.get(key)
        if entry is not None:
            return entry.state is not EntryState.DELETED
        return key in self._incoming

    def __repr__(self):
        return f"CookieJar(incoming={dict(self._incoming)!r}, entries={list(self._entries)!r})"
