"""
Read-only view of the inbound HTTP request.

The engine only needs the scheme, host, path, query parameters and
headers of the request that started or completed the flow.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, urlsplit

if TYPE_CHECKING:
    from starlette.requests import Request


@dataclass(frozen=True)
class InboundRequest:
    """Inbound request data consumed by the authorize and access steps."""

    scheme: str
    host: str
    path: str
    query: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Header lookups are case-insensitive
        object.__setattr__(
            self, "headers", {k.lower(): v for k, v in self.headers.items()}
        )

    @classmethod
    def from_url(
        cls, url: str, headers: Mapping[str, str] | None = None
    ) -> "InboundRequest":
        """Build from an absolute URL, e.g. http://localhost/authy/github?x=1"""
        parts = urlsplit(url)
        return cls(
            scheme=parts.scheme or "http",
            host=parts.netloc,
            path=parts.path,
            query=dict(parse_qsl(parts.query, keep_blank_values=True)),
            headers=dict(headers or {}),
        )

    @classmethod
    def from_starlette(cls, request: "Request") -> "InboundRequest":
        """Build from a Starlette/FastAPI request."""
        return cls(
            scheme=request.url.scheme,
            host=request.url.netloc,
            path=request.url.path,
            query=dict(request.query_params),
            headers=dict(request.headers),
        )

    @property
    def is_tls(self) -> bool:
        return self.scheme == "https"

    def has_header(self, name: str) -> bool:
        return name.lower() in self.headers

    def param(self, name: str) -> str:
        """Query parameter value, empty string when absent."""
        return self.query.get(name, "")
