"""
Unit tests for configuration — pydantic-settings loading from the environment.

Each test sets its own variables with monkeypatch and reads no .env file.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from hsdp_api.config import AppSettings, CartelSettings, IamSettings


def _settings() -> AppSettings:
    return AppSettings(_env_file=None)  # type: ignore[call-arg]


class TestNestedEnvironment:
    """
    GIVEN service sections set through double-underscore variables
    WHEN AppSettings is constructed
    THEN each section is populated and the rest stay None.
    """

    def test_pki_only(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PKI__URL", "https://pki.example.com")
        settings = _settings()
        assert settings.pki is not None
        assert settings.pki.url == "https://pki.example.com"
        assert settings.iam is None
        assert settings.cartel is None

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("HTTP_TIMEOUT_SECONDS", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        settings = _settings()
        assert settings.http_timeout_seconds == 60
        assert settings.log_level == "INFO"

    def test_iam_password_grant(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name, value in {
            "IAM__IAM_URL": "https://iam.example.com",
            "IAM__IDM_URL": "https://idm.example.com",
            "IAM__CLIENT_ID": "client",
            "IAM__CLIENT_SECRET": "s3cr3t-value",
            "IAM__USERNAME": "user",
            "IAM__PASSWORD": "password",
        }.items():
            monkeypatch.setenv(name, value)
        settings = _settings()
        assert settings.iam is not None
        assert settings.iam.client_secret is not None
        assert settings.iam.client_secret.get_secret_value() == "s3cr3t-value"
        assert "s3cr3t-value" not in repr(settings.iam)

    def test_timeout_must_be_positive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "0")
        with pytest.raises(ValidationError):
            _settings()


class TestIamSettings:
    def test_static_token_is_enough(self) -> None:
        settings = IamSettings(token="ready-token")  # type: ignore[arg-type]
        assert settings.token is not None

    def test_incomplete_password_grant(self) -> None:
        """
        GIVEN neither a token nor the full password-grant set
        WHEN IamSettings is validated
        THEN the error names the missing variables.
        """
        with pytest.raises(ValidationError, match="IAM__PASSWORD"):
            IamSettings(iam_url="https://iam.example.com", client_id="c")


class TestCartelSettings:
    def test_strips_scheme_and_slash(self) -> None:
        settings = CartelSettings(host="https://cartel.example.com/", token="t", secret="s")  # type: ignore[arg-type]
        assert settings.host == "cartel.example.com"
        assert settings.base_url == "https://cartel.example.com"

    def test_no_tls(self) -> None:
        settings = CartelSettings(host="cartel.local", token="t", secret="s", no_tls=True)  # type: ignore[arg-type]
        assert settings.base_url == "http://cartel.local"
