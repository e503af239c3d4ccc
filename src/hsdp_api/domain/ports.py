"""
Ports — Protocol-based interfaces the services depend on.

Services describe WHAT they send (a RequestSpec) and receive a Result; the
adapter decides HOW the round trip happens. Following hexagonal architecture:

  Services ← Ports (protocols) ← Adapters (httpx implementations)

Each port is a Protocol (structural typing), so tests can hand services a
MagicMock or any object with matching methods.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from hsdp_api.railway.result import Result


@dataclass(frozen=True, slots=True)
class RequestSpec:
    """
    One outbound request, relative to the transport's base URL.

    `authorize=False` sends the request without the bearer Authorization
    header. Public CA/CRL downloads use it, as do Cartel calls which carry
    their own HMAC signature in that header.

    `json` and `content` are mutually exclusive; use `content` when the exact
    body bytes matter (they are signed).
    """

    method: str
    path: str
    params: dict[str, Any] | None = None
    json: Any = None
    content: bytes | None = field(default=None, repr=False)
    headers: dict[str, str] = field(default_factory=dict)
    authorize: bool = True


@runtime_checkable
class Transport(Protocol):
    """
    Port: perform one HTTP round trip and return the body.

    fetch_json → decoded JSON object; fetch_bytes → raw body.
    Both fail with EMPTY_RESPONSE when the body is empty (fetch_json returns
    an empty dict instead when `allow_empty` is set), and map HTTP or network
    failures to the matching ErrorCode.
    """

    def fetch_json(
        self, spec: RequestSpec, allow_empty: bool = False
    ) -> Result[dict[str, Any]]: ...

    def fetch_bytes(self, spec: RequestSpec) -> Result[bytes]: ...


@runtime_checkable
class AccessTokenProvider(Protocol):
    """
    Port: obtain a bearer access token for the PKI and IAM services.

    Returns Result[str] where str is the access_token.
    """

    def acquire_token(self) -> Result[str]: ...
