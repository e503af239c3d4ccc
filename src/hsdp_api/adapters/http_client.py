"""
HTTP adapter — single request/response transport and IAM token grant via httpx.

Adapter layer — implements the Transport and AccessTokenProvider ports using
httpx for sync HTTP calls. Each call opens its own short-lived client: there
is no pooling, no retry and no caching.

HTTP status codes and network errors are mapped to ErrorCode failures here;
no httpx exception reaches the service layer.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from hsdp_api.domain.ports import RequestSpec
from hsdp_api.railway import ErrorCode
from hsdp_api.railway.result import Result

log = structlog.get_logger()

_STATUS_TO_CODE: dict[int, ErrorCode] = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.AUTHENTICATION_ERROR,
    403: ErrorCode.AUTHORIZATION_ERROR,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.BUSINESS_RULE_ERROR,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.RATE_LIMIT_ERROR,
}


def error_code_for_status(status_code: int) -> ErrorCode:
    """Map an HTTP error status to an ErrorCode (unknown 4xx → VALIDATION_ERROR)."""
    if status_code in _STATUS_TO_CODE:
        return _STATUS_TO_CODE[status_code]
    if 400 <= status_code < 500:
        return ErrorCode.VALIDATION_ERROR
    return ErrorCode.EXTERNAL_SERVICE_ERROR


def _error_detail(response: httpx.Response) -> str | None:
    """
    Best-effort extraction of the service's own error text.

    Understands the shapes the PKI ({"errors": [...]}), IAM
    ({"issue": [{"diagnostics": ...}]}), Cartel ({"description": ...}) and
    OAuth2 ({"error_description": ...}) services return.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or None
    if not isinstance(body, dict):
        return None
    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        return "; ".join(str(e) for e in errors)
    issues = body.get("issue")
    if isinstance(issues, list) and issues and isinstance(issues[0], dict):
        diagnostics = issues[0].get("diagnostics")
        return str(diagnostics) if diagnostics else None
    for key in ("description", "error_description", "message", "error"):
        if body.get(key):
            return str(body[key])
    return None


def _failure_from_response(spec: RequestSpec, response: httpx.Response) -> Result[Any]:
    message = f"{spec.method} {spec.path} returned {response.status_code}"
    detail = _error_detail(response)
    if detail:
        message = f"{message}: {detail}"
    return Result.failure(error_code_for_status(response.status_code), message)


def _require_body(spec: RequestSpec, response: httpx.Response) -> Result[httpx.Response]:
    if not response.content:
        return Result.failure(
            ErrorCode.EMPTY_RESPONSE,
            f"{spec.method} {spec.path} returned an empty body",
        )
    return Result.success(response)


def _decode_json(spec: RequestSpec, response: httpx.Response) -> Result[dict[str, Any]]:
    return Result.from_computation(
        response.json,
        ErrorCode.EXTERNAL_SERVICE_ERROR,
        f"{spec.method} {spec.path} returned invalid JSON",
    ).ensure(
        lambda body: isinstance(body, dict),
        ErrorCode.EXTERNAL_SERVICE_ERROR,
        f"{spec.method} {spec.path} did not return a JSON object",
    )


class HttpTransport:
    """
    Send RequestSpecs to one service base URL.

    Implements the Transport port. The bearer token (when set) is added to
    every request whose spec has `authorize=True`.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: int = 60,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        self._base_url = base_url
        self._token = token
        self._timeout = timeout
        self._default_headers = dict(default_headers or {})

    @property
    def base_url(self) -> str:
        return self._base_url

    def build_headers(self, spec: RequestSpec) -> dict[str, str]:
        """Merge default and per-request headers and apply the authorize flag."""
        headers = {"Accept": "application/json", **self._default_headers}
        if spec.authorize and self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        else:
            headers.pop("Authorization", None)
        headers.update(spec.headers)
        return headers

    def send(self, spec: RequestSpec) -> Result[httpx.Response]:
        """
        Perform the round trip.

        Returns Result[httpx.Response] for 1xx-3xx responses; otherwise a
        failure whose code follows the HTTP status (TIMEOUT_ERROR for
        timeouts, EXTERNAL_SERVICE_ERROR for other network errors).
        """
        try:
            response = self._do_send(spec)
        except httpx.TimeoutException as e:
            return Result.failure(
                ErrorCode.TIMEOUT_ERROR, f"{spec.method} {spec.path} timed out", e
            )
        except httpx.HTTPError as e:
            return Result.failure(
                ErrorCode.EXTERNAL_SERVICE_ERROR, f"{spec.method} {spec.path} failed: {e}", e
            )
        if response.is_error:
            return _failure_from_response(spec, response)
        return Result.success(response)

    def fetch_json(
        self, spec: RequestSpec, allow_empty: bool = False
    ) -> Result[dict[str, Any]]:
        """Decode the body as a JSON object; an empty body is {} when `allow_empty`."""

        def read_body(response: httpx.Response) -> Result[dict[str, Any]]:
            if allow_empty and not response.content:
                return Result.success({})
            return _require_body(spec, response).flat_map(lambda r: _decode_json(spec, r))

        return self.send(spec).flat_map(read_body)

    def fetch_bytes(self, spec: RequestSpec) -> Result[bytes]:
        return (
            self.send(spec)
            .flat_map(lambda response: _require_body(spec, response))
            .map(lambda response: response.content)
        )

    def _do_send(self, spec: RequestSpec) -> httpx.Response:
        with httpx.Client(base_url=self._base_url, timeout=self._timeout) as client:
            response = client.request(
                spec.method,
                spec.path,
                params=spec.params,
                json=spec.json,
                content=spec.content,
                headers=self.build_headers(spec),
            )
        log.info(
            "http.request.complete",
            method=spec.method,
            path=spec.path,
            status=response.status_code,
            size_bytes=len(response.content),
        )
        return response


class HttpAccessTokenProvider:
    """
    Acquire IAM access tokens via the OAuth2 password grant.

    Implements the AccessTokenProvider port. The OAuth2 client authenticates
    with HTTP basic auth; the user credentials travel in the form body.
    """

    def __init__(
        self,
        iam_url: str,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
        timeout: int = 60,
    ) -> None:
        self._token_url = f"{iam_url.rstrip('/')}/authorize/oauth2/token"
        self._client_id = client_id
        self._client_secret = client_secret
        self._username = username
        self._password = password
        self._timeout = timeout

    def acquire_token(self) -> Result[str]:
        """
        Request an access token from the IAM token endpoint.

        Returns Result[str] with the access_token on success, or
        Result.failure(AUTHENTICATION_ERROR, ...) on any failure.
        """
        return Result.from_computation(
            self._do_token_request,
            ErrorCode.AUTHENTICATION_ERROR,
            "Access token acquisition failed",
        )

    def _do_token_request(self) -> str:
        """HTTP call — exceptions caught by from_computation."""
        with httpx.Client(timeout=self._timeout) as client:
            response = client.post(
                self._token_url,
                auth=(self._client_id, self._client_secret),
                headers={"Api-Version": "2", "Accept": "application/json"},
                data={
                    "grant_type": "password",
                    "username": self._username,
                    "password": self._password,
                },
            )
            response.raise_for_status()
            token: str = response.json()["access_token"]
            log.info("access_token.acquired", username=self._username)
            return token
