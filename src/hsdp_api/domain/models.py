"""
Domain models — immutable views of decoded PKI artifacts and service results.

These are pure value objects. They are produced by the PEM decoder and the
service layer; nothing here performs I/O or parsing.

All models are frozen dataclasses (immutable).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, unique
from typing import TypeAlias

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ec, rsa

CERTIFICATE_BLOCK = "CERTIFICATE"
CRL_BLOCK = "X509 CRL"
RSA_PRIVATE_KEY_BLOCK = "RSA PRIVATE KEY"
EC_PRIVATE_KEY_BLOCK = "EC PRIVATE KEY"

KeyMaterial: TypeAlias = rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey


@dataclass(frozen=True, slots=True)
class PemBlock:
    """A PEM block: its declared type tag and the base64-decoded DER body."""

    block_type: str
    der: bytes = field(repr=False)


@dataclass(frozen=True, slots=True)
class Certificate:
    """
    Read-only view of an X.509 certificate.

    Extension-derived fields (key identifiers, DNS names) are best-effort:
    absent or undecodable extensions leave them as None / empty.
    """

    der: bytes = field(repr=False)
    subject: str
    issuer: str
    common_name: str | None
    serial_number: int
    not_valid_before: datetime
    not_valid_after: datetime
    public_key: x509.CertificatePublicKeyTypes = field(repr=False, compare=False)
    subject_key_identifier: str | None = None
    authority_key_identifier: str | None = None
    dns_names: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RevokedCertificate:
    """One entry of a CRL."""

    serial_number: int
    revocation_date: datetime
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class RevocationList:
    """Read-only view of an X.509 certificate revocation list."""

    der: bytes = field(repr=False)
    issuer: str
    last_update: datetime
    next_update: datetime | None
    signature_algorithm_oid: str
    revoked: tuple[RevokedCertificate, ...] = ()

    def is_revoked(self, serial_number: int) -> bool:
        return any(entry.serial_number == serial_number for entry in self.revoked)


@unique
class KeyAlgorithm(Enum):
    """
    Closed set of private-key algorithms the SDK can decode.

    Each member carries the out-of-band `key_type` tag the PKI service sends
    alongside the key, the PEM block type that tag requires, and the key class
    the DER payload must decode to.
    """

    RSA = ("rsa", RSA_PRIVATE_KEY_BLOCK, rsa.RSAPrivateKey, rsa.RSAPublicKey)
    EC = ("ec", EC_PRIVATE_KEY_BLOCK, ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)

    def __init__(
        self, key_type: str, block_type: str, key_class: type, public_key_class: type
    ) -> None:
        self.key_type = key_type
        self.block_type = block_type
        self.key_class = key_class
        self.public_key_class = public_key_class

    @classmethod
    def from_key_type(cls, key_type: str) -> KeyAlgorithm | None:
        """Look up the algorithm for a key-type tag, or None if unsupported."""
        for algorithm in cls:
            if algorithm.key_type == key_type:
                return algorithm
        return None


@dataclass(frozen=True, slots=True)
class PrivateKey:
    """A decoded private key tagged with the algorithm it was decoded as."""

    algorithm: KeyAlgorithm
    key: KeyMaterial = field(repr=False)

    def public_key(self) -> rsa.RSAPublicKey | ec.EllipticCurvePublicKey:
        return self.key.public_key()

    def matches(self, public_key: x509.CertificatePublicKeyTypes) -> bool:
        """
        True if `public_key` is the public half of this key.

        RSA compares modulus and exponent, EC compares curve and point.
        """
        if not isinstance(public_key, self.algorithm.public_key_class):
            return False
        return self.public_key().public_numbers() == public_key.public_numbers()  # type: ignore[union-attr]


@dataclass(frozen=True, slots=True)
class IssueResult:
    """
    A certificate returned by an issue, sign or lookup call, fully decoded.

    `ca_chain` keeps the order the service returned. `private_key` is only
    present for issue calls (the service generated the key pair).
    """

    certificate: Certificate
    ca_chain: tuple[Certificate, ...] = ()
    issuing_ca: Certificate | None = None
    private_key: PrivateKey | None = None
    serial_number: str | None = None
    expiration: datetime | None = None
    request_id: str | None = None
    lease_id: str | None = None
    lease_duration: int = 0
    renewable: bool = False


@dataclass(frozen=True, slots=True)
class RevokeResult:
    """Confirmation of a revocation."""

    revocation_time: datetime
    request_id: str | None = None


@dataclass(frozen=True, slots=True)
class CertificateList:
    """Serial numbers of the non-revoked certificates under a logical path."""

    keys: tuple[str, ...] = ()
    request_id: str | None = None

    def __len__(self) -> int:
        return len(self.keys)
