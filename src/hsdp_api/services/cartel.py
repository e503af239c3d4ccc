"""
Cartel service — host provisioning.

Cartel does not use bearer tokens. The JSON body carries the Cartel token and
the Authorization header carries a base64 HMAC-SHA256 signature of the exact
body bytes, keyed with the Cartel secret.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json

import structlog

from hsdp_api.domain.messages import CreateOptions, CreateResponse, parse_message
from hsdp_api.domain.ports import RequestSpec, Transport
from hsdp_api.railway import ErrorCode, FailureDescription
from hsdp_api.railway.result import Result

log = structlog.get_logger()

CREATE_PATH = "v3/api/create"


def sign_body(secret: str, body: bytes) -> str:
    """Base64 HMAC-SHA256 of `body` keyed with `secret`."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def _host_exists(host_name: str, error: FailureDescription) -> FailureDescription:
    if error.code is ErrorCode.VALIDATION_ERROR and "already exists" in error.message:
        return FailureDescription(
            code=ErrorCode.BUSINESS_RULE_ERROR,
            message=f"Host named {host_name} already exists",
        )
    return error


class CartelService:
    """Typed access to the Cartel host-provisioning API."""

    def __init__(self, transport: Transport, token: str, secret: str) -> None:
        self._transport = transport
        self._token = token
        self._secret = secret

    def signed_request(self, path: str, body: dict[str, object]) -> RequestSpec:
        """Serialize `body` once and sign those exact bytes."""
        content = json.dumps({"token": self._token, **body}).encode("utf-8")
        return RequestSpec(
            "POST",
            path,
            content=content,
            headers={
                "Authorization": sign_body(self._secret, content),
                "Content-Type": "application/json",
            },
            authorize=False,
        )

    def create(self, host_name: str, options: CreateOptions | None = None) -> Result[CreateResponse]:
        """
        Provision a host named `host_name`.

        A host that already exists is BUSINESS_RULE_ERROR.
        """
        body = {"name_tag": [host_name], **(options.to_wire() if options else {})}
        return (
            self._transport.fetch_json(self.signed_request(CREATE_PATH, body))
            .map_failure(lambda error: _host_exists(host_name, error))
            .flat_map(lambda payload: parse_message(CreateResponse, payload))
            .peek(
                lambda response: log.info(
                    "cartel.host_created",
                    host=host_name,
                    instance_id=response.instance_id,
                    ip_address=response.ip_address,
                )
            )
        )
