"""Configuration for cookie emission.

Controls how Set-Cookie lines are attached to responses and which attributes
are applied to cookies a handler writes without specifying them.
"""

from dataclasses import dataclass
from typing import Optional

from .models import CookieOptions


@dataclass
class CookieConfig:
    """Configuration for a request's cookie jar.

    Attributes:
        join_set_cookie: Attach all Set-Cookie lines as one newline-joined
                         header value (Rack convention). When False, each
                         line is added as its own Set-Cookie header.

        default_path: Path attribute for written cookies that do not set one.
                      Examples: "/" or "/api"

        default_domain: Domain attribute for written cookies that do not set one.

        default_secure: Mark written cookies Secure unless they say otherwise.

        default_httponly: Mark written cookies HttpOnly unless they say otherwise.

    Examples:
        # Rack-compatible defaults
        CookieConfig()

        # One header per cookie, scoped to the whole site over HTTPS
        CookieConfig(
            join_set_cookie=False,
            default_path="/",
            default_secure=True,
        )
    """

    join_set_cookie: bool = True
    default_path: Optional[str] = None
    default_domain: Optional[str] = None
    default_secure: bool = False
    default_httponly: bool = False

    def default_options(self) -> CookieOptions:
        """Options a freshly written cookie starts from."""
        return CookieOptions(
            domain=self.default_domain,
            path=self.default_path,
            secure=self.default_secure,
            httponly=self.default_httponly,
        )

    def validate(self) -> None:
        """Validate cookie configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.default_path is not None and not self.default_path.startswith("/"):
            raise ValueError(
                f"Cookies: default_path must start with '/', got {self.default_path!r}"
            )
        if self.default_domain is not None and not self.default_domain.strip(". "):
            raise ValueError("Cookies: default_domain must not be empty")
