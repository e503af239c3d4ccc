"""
Acceptance test fixtures — a configured Client and a CRL revoking the leaf.

The services run over real HttpTransports; respx stands in for the PKI,
IAM, IDM and Cartel endpoints.
"""

from __future__ import annotations

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization

from hsdp_api.client import Client, create_client
from hsdp_api.config import AppSettings, CartelSettings, IamSettings, PkiSettings
from tests.conftest import CRL_LAST_UPDATE, CRL_NEXT_UPDATE, LEAF_SERIAL, GeneratedPki

PKI_URL = "https://pki.example.com"
IAM_URL = "https://iam.example.com"
IDM_URL = "https://idm.example.com"
CARTEL_HOST = "cartel.example.com"
CARTEL_SECRET = "cartel-secret"


@pytest.fixture()
def settings() -> AppSettings:
    """Every service configured, IAM through the password grant."""
    return AppSettings(
        pki=PkiSettings(url=PKI_URL),
        iam=IamSettings(
            iam_url=IAM_URL,
            idm_url=IDM_URL,
            client_id="client",
            client_secret="client-secret",  # type: ignore[arg-type]
            username="svc-user",
            password="svc-password",  # type: ignore[arg-type]
        ),
        cartel=CartelSettings(host=CARTEL_HOST, token="cartel-token", secret=CARTEL_SECRET),  # type: ignore[arg-type]
        http_timeout_seconds=5,
    )


@pytest.fixture()
def static_client() -> Client:
    """A client that uses a pre-acquired token and never calls IAM."""
    settings = AppSettings(
        pki=PkiSettings(url=PKI_URL),
        iam=IamSettings(idm_url=IDM_URL, token="static-token"),  # type: ignore[arg-type]
    )
    return create_client(settings).value()


@pytest.fixture(scope="session")
def leaf_revoked_crl_pem(pki: GeneratedPki) -> str:
    """A root CRL listing the leaf certificate's serial."""
    revoked = (
        x509.RevokedCertificateBuilder()
        .serial_number(LEAF_SERIAL)
        .revocation_date(CRL_LAST_UPDATE)
        .add_extension(x509.CRLReason(x509.ReasonFlags.superseded), critical=False)
        .build()
    )
    crl = (
        x509.CertificateRevocationListBuilder()
        .issuer_name(pki.root_cert.subject)
        .last_update(CRL_LAST_UPDATE)
        .next_update(CRL_NEXT_UPDATE)
        .add_revoked_certificate(revoked)
        .sign(pki.root_key, hashes.SHA256())
    )
    return crl.public_bytes(serialization.Encoding.PEM).decode()
