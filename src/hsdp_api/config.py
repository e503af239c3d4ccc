"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables
  - Fall back to a .env file in the working directory
  - Validate types and constraints when the client is created
  - Keep secrets out of reprs and logs (SecretStr)

Only AppSettings is a BaseSettings instance. Sub-settings are plain BaseModel
classes populated via env_nested_delimiter="__", so PKI__URL maps to pki.url,
IAM__CLIENT_ID to iam.client_id, CARTEL__HOST to cartel.host, etc. Every
service section is optional: configure only the services you use.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PkiSettings(BaseModel):
    """PKI service base URL; authenticates with the IAM access token."""

    url: str = Field(description="PKI service base URL")


class IamSettings(BaseModel):
    """
    IAM configuration.

    Either a ready `token`, or the full OAuth2 password-grant set
    (iam_url, client_id, client_secret, username, password).
    """

    iam_url: str | None = Field(default=None, description="IAM (OAuth2) base URL")
    idm_url: str | None = Field(default=None, description="IDM base URL (roles API)")
    client_id: str | None = Field(default=None, description="OAuth2 client ID")
    client_secret: SecretStr | None = Field(default=None, description="OAuth2 client secret")
    username: str | None = Field(default=None, description="Resource owner username")
    password: SecretStr | None = Field(default=None, description="Resource owner password")
    token: SecretStr | None = Field(default=None, description="Pre-acquired access token")

    @model_validator(mode="after")
    def require_credentials(self) -> IamSettings:
        """Reject a section that can neither supply nor acquire a token."""
        if self.token is not None:
            return self
        missing = [f for f, v in [
            ("IAM__IAM_URL", self.iam_url),
            ("IAM__CLIENT_ID", self.client_id),
            ("IAM__CLIENT_SECRET", self.client_secret),
            ("IAM__USERNAME", self.username),
            ("IAM__PASSWORD", self.password),
        ] if not v]
        if missing:
            raise ValueError("Set IAM__TOKEN or provide all of: " + ", ".join(missing))
        return self


class CartelSettings(BaseModel):
    """Cartel host-provisioning credentials."""

    host: str = Field(description="Cartel host name (no scheme)")
    token: SecretStr = Field(description="Cartel token, sent in every request body")
    secret: SecretStr = Field(description="Cartel secret, keys the request signature")
    no_tls: bool = Field(default=False, description="Use http:// instead of https://")

    @field_validator("host")
    @classmethod
    def strip_scheme(cls, value: str) -> str:
        """Accept host names given with a scheme or trailing slash."""
        for scheme in ("https://", "http://"):
            value = value.removeprefix(scheme)
        return value.rstrip("/")

    @property
    def base_url(self) -> str:
        scheme = "http" if self.no_tls else "https"
        return f"{scheme}://{self.host}"


class AppSettings(BaseSettings):
    """
    Root settings — aggregates the per-service sections.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    pki: PkiSettings | None = None
    iam: IamSettings | None = None
    cartel: CartelSettings | None = None

    http_timeout_seconds: int = Field(default=60, ge=1)
    log_level: str = Field(default="INFO")
