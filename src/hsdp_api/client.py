"""
Client composition root — wires settings into transports and services.

This is the ONLY place where concrete adapters are instantiated. Services
depend on the Transport port; tests build them directly with fakes.

Responsibilities:
  1. Load and validate configuration (or accept ready AppSettings)
  2. Configure structlog (when asked to)
  3. Obtain the IAM access token (static, or via password grant)
  4. Create one HttpTransport per service base URL
  5. Return a Client exposing the configured services
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import structlog

from hsdp_api.adapters.http_client import HttpAccessTokenProvider, HttpTransport
from hsdp_api.config import AppSettings
from hsdp_api.domain.ports import AccessTokenProvider
from hsdp_api.railway import ErrorCode
from hsdp_api.railway.result import Result
from hsdp_api.services.cartel import CartelService
from hsdp_api.services.iam import RolesService
from hsdp_api.services.pki import PkiService


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured, human-readable console logging.

    Applications embedding the SDK may skip this and configure structlog
    themselves; SDK events are plain structlog calls.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@dataclass(frozen=True, slots=True)
class Client:
    """The configured services; a service is None when its section is not set."""

    pki: PkiService | None = None
    roles: RolesService | None = None
    cartel: CartelService | None = None


def _load_settings(settings: AppSettings | None) -> Result[AppSettings]:
    if settings is not None:
        return Result.success(settings)
    return Result.from_computation(
        AppSettings,
        ErrorCode.CONFIGURATION_ERROR,
        "Configuration error",
    )


def _acquire_token(
    settings: AppSettings,
    token_provider: AccessTokenProvider | None,
) -> Result[str]:
    """Access token for PKI and IAM; "" when no IAM section is configured."""
    iam = settings.iam
    if iam is None:
        return Result.success("")
    if iam.token is not None:
        return Result.success(iam.token.get_secret_value())
    provider = token_provider or HttpAccessTokenProvider(
        iam_url=iam.iam_url,  # type: ignore[arg-type]
        client_id=iam.client_id,  # type: ignore[arg-type]
        client_secret=iam.client_secret.get_secret_value(),  # type: ignore[union-attr]
        username=iam.username,  # type: ignore[arg-type]
        password=iam.password.get_secret_value(),  # type: ignore[union-attr]
        timeout=settings.http_timeout_seconds,
    )
    return provider.acquire_token()


def _build_client(settings: AppSettings, token: str) -> Client:
    timeout = settings.http_timeout_seconds
    pki = None
    if settings.pki is not None:
        pki = PkiService(HttpTransport(settings.pki.url, token=token or None, timeout=timeout))
    roles = None
    if settings.iam is not None and settings.iam.idm_url:
        roles = RolesService(
            HttpTransport(settings.iam.idm_url, token=token or None, timeout=timeout)
        )
    cartel = None
    if settings.cartel is not None:
        cartel = CartelService(
            HttpTransport(settings.cartel.base_url, timeout=timeout),
            token=settings.cartel.token.get_secret_value(),
            secret=settings.cartel.secret.get_secret_value(),
        )
    return Client(pki=pki, roles=roles, cartel=cartel)


def create_client(
    settings: AppSettings | None = None,
    token_provider: AccessTokenProvider | None = None,
    configure_logging: bool = False,
) -> Result[Client]:
    """
    Build a Client from settings (loaded from the environment when omitted).

    With `configure_logging`, structlog is set up at the configured LOG_LEVEL
    first; libraries embedding the client normally leave logging alone.

    Returns Result.failure(CONFIGURATION_ERROR) for invalid settings and
    Result.failure(AUTHENTICATION_ERROR) when the token grant fails.
    """
    log = structlog.get_logger()
    return (
        _load_settings(settings)
        .peek(
            lambda loaded: configure_structlog(loaded.log_level) if configure_logging else None
        )
        .flat_map(
            lambda loaded: _acquire_token(loaded, token_provider).map(
                lambda token: _build_client(loaded, token)
            )
        )
        .peek(
            lambda client: log.info(
                "client.ready",
                pki=client.pki is not None,
                roles=client.roles is not None,
                cartel=client.cartel is not None,
            )
        )
        .peek_failure(lambda error: log.error("client.failed", code=error.code.value))
    )
