"""Request metadata recorded alongside security events."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Immutable description of who sent the current request."""

    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def anonymous(cls) -> RequestContext:
        return cls()

    def __str__(self) -> str:
        return f"RequestContext(ip={self.ip_address})"
