"""
Shared test fixtures for the hsdp-api test suite.

Builds a small PKI on the fly with cryptography:
  - an EC P-256 root CA (self-signed)
  - an RSA leaf certificate issued by it (CN service.example.com)
  - a CRL from the root CA revoking two serials
  - PKCS#1 RSA and SEC1 EC private keys in PEM

Validity dates are fixed and whole-second so round-trip checks are exact.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

NOT_BEFORE = datetime(2026, 1, 1, 0, 0, 0, tzinfo=UTC)
NOT_AFTER = datetime(2027, 1, 1, 0, 0, 0, tzinfo=UTC)
CRL_LAST_UPDATE = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)
CRL_NEXT_UPDATE = datetime(2026, 3, 8, 12, 0, 0, tzinfo=UTC)

ROOT_SERIAL = 0x01
LEAF_SERIAL = 0x5A17C0FFEE
LEAF_COMMON_NAME = "service.example.com"
REVOKED_SERIALS = (1001, 1002)


@dataclass(frozen=True, slots=True)
class GeneratedPki:
    """Everything a test needs from the generated PKI, in PEM and object form."""

    root_key: ec.EllipticCurvePrivateKey
    root_cert: x509.Certificate
    leaf_key: rsa.RSAPrivateKey
    leaf_cert: x509.Certificate
    crl: x509.CertificateRevocationList

    @property
    def root_pem(self) -> str:
        return self.root_cert.public_bytes(serialization.Encoding.PEM).decode()

    @property
    def leaf_pem(self) -> str:
        return self.leaf_cert.public_bytes(serialization.Encoding.PEM).decode()

    @property
    def crl_pem(self) -> str:
        return self.crl.public_bytes(serialization.Encoding.PEM).decode()

    @property
    def rsa_key_pem(self) -> str:
        return _traditional_pem(self.leaf_key)

    @property
    def ec_key_pem(self) -> str:
        return _traditional_pem(self.root_key)


def _traditional_pem(key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey) -> str:
    """PKCS#1 ("RSA PRIVATE KEY") or SEC1 ("EC PRIVATE KEY") PEM."""
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    ).decode()


def _name(common_name: str) -> x509.Name:
    return x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "NL"),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Example Health"),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )


def _build_root(key: ec.EllipticCurvePrivateKey) -> x509.Certificate:
    name = _name("Example Root CA")
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(ROOT_SERIAL)
        .not_valid_before(NOT_BEFORE)
        .not_valid_after(NOT_AFTER)
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
        .sign(key, hashes.SHA256())
    )


def _build_leaf(
    key: rsa.RSAPrivateKey,
    root_key: ec.EllipticCurvePrivateKey,
    root_cert: x509.Certificate,
) -> x509.Certificate:
    return (
        x509.CertificateBuilder()
        .subject_name(_name(LEAF_COMMON_NAME))
        .issuer_name(root_cert.subject)
        .public_key(key.public_key())
        .serial_number(LEAF_SERIAL)
        .not_valid_before(NOT_BEFORE)
        .not_valid_after(NOT_AFTER)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(root_key.public_key()),
            critical=False,
        )
        .add_extension(
            x509.SubjectAlternativeName(
                [x509.DNSName(LEAF_COMMON_NAME), x509.DNSName("alt.example.com")]
            ),
            critical=False,
        )
        .sign(root_key, hashes.SHA256())
    )


def _build_crl(
    root_key: ec.EllipticCurvePrivateKey,
    root_cert: x509.Certificate,
) -> x509.CertificateRevocationList:
    builder = (
        x509.CertificateRevocationListBuilder()
        .issuer_name(root_cert.subject)
        .last_update(CRL_LAST_UPDATE)
        .next_update(CRL_NEXT_UPDATE)
    )
    compromised = (
        x509.RevokedCertificateBuilder()
        .serial_number(REVOKED_SERIALS[0])
        .revocation_date(CRL_LAST_UPDATE)
        .add_extension(x509.CRLReason(x509.ReasonFlags.key_compromise), critical=False)
        .build()
    )
    superseded = (
        x509.RevokedCertificateBuilder()
        .serial_number(REVOKED_SERIALS[1])
        .revocation_date(CRL_LAST_UPDATE)
        .build()
    )
    return (
        builder.add_revoked_certificate(compromised)
        .add_revoked_certificate(superseded)
        .sign(root_key, hashes.SHA256())
    )


@pytest.fixture(scope="session")
def pki() -> GeneratedPki:
    """A root CA, an RSA leaf certificate, a CRL and both key types."""
    root_key = ec.generate_private_key(ec.SECP256R1())
    root_cert = _build_root(root_key)
    leaf_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    leaf_cert = _build_leaf(leaf_key, root_key, root_cert)
    crl = _build_crl(root_key, root_cert)
    return GeneratedPki(
        root_key=root_key,
        root_cert=root_cert,
        leaf_key=leaf_key,
        leaf_cert=leaf_cert,
        crl=crl,
    )


@pytest.fixture()
def issue_body(pki: GeneratedPki) -> dict[str, object]:
    """A PKI issue response carrying certificate, chain and RSA private key."""
    return {
        "request_id": "req-7f3a",
        "lease_id": "pki/issue/lease-42",
        "renewable": False,
        "lease_duration": 3600,
        "data": {
            "certificate": pki.leaf_pem,
            "issuing_ca": pki.root_pem,
            "ca_chain": [pki.root_pem],
            "private_key": pki.rsa_key_pem,
            "private_key_type": "rsa",
            "serial_number": "00:00:00:5a:17:c0:ff:ee",
            "expiration": int(NOT_AFTER.timestamp()),
        },
    }
