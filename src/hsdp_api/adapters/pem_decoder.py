"""
PEM artifact decoder — PEM armor + X.509 / private-key extraction.

Adapter layer — pure functions over an in-memory buffer, using:
  - asn1crypto: PEM armor scanning (first BEGIN/END block, base64 body) and
    the PKCS#1 / SEC1 structure check on private keys
  - cryptography (PyCA): X.509 certificate, CRL and private-key DER parsing

Pipeline:
  raw bytes / str
    → asn1crypto: pem.unarmor() → first (type, der) block
    → block type check against the tag the caller requires
    → asn1crypto: keys.RSAPrivateKey / keys.ECPrivateKey (keys only)
    → cryptography: load_der_x509_certificate / load_der_x509_crl /
                    load_der_private_key
    → Certificate | RevocationList | PrivateKey (domain models)

Every function returns a Result and never raises for bad input. Decoding
holds no state and performs no I/O, so it is safe to call from any thread.
Nothing in this module logs: callers decide what a failure means.
"""

from __future__ import annotations

import base64

from asn1crypto import keys, pem
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID

from hsdp_api.domain.models import (
    CERTIFICATE_BLOCK,
    CRL_BLOCK,
    Certificate,
    KeyAlgorithm,
    PemBlock,
    PrivateKey,
    RevocationList,
    RevokedCertificate,
)
from hsdp_api.railway import ErrorCode, FailureDescription
from hsdp_api.railway.result import Result

# ─────────────────────── PEM Armor ───────────────────────


def _as_bytes(buffer: bytes | str) -> bytes:
    return buffer.encode("utf-8") if isinstance(buffer, str) else bytes(buffer)


def _check_base64_body(data: bytes) -> None:
    """
    Re-decode the first block's body with strict base64.

    pem.unarmor drops characters outside the base64 alphabet; this raises
    binascii.Error (a ValueError) for them instead. RFC 1421 header lines
    ("Proc-Type: ...") and the blank line after them are skipped.
    """
    lines = [line.strip() for line in data.splitlines()]
    start = next(i for i, line in enumerate(lines) if line.startswith(b"-----BEGIN"))
    body = []
    for line in lines[start + 1 :]:
        if line.startswith(b"-----END"):
            break
        if not line or b":" in line:
            continue
        body.append(line)
    base64.b64decode(b"".join(body), validate=True)


def _first_block(data: bytes) -> PemBlock:
    """Unarmor the first PEM block. Raises ValueError if there is none."""
    block_type, _headers, der = pem.unarmor(data)
    _check_base64_body(data)
    if not der:
        raise ValueError(f"PEM block {block_type!r} has an empty body")
    return PemBlock(block_type=block_type, der=der)


def _unarmor(buffer: bytes | str) -> Result[PemBlock]:
    return (
        Result.from_computation(
            lambda: _as_bytes(buffer).strip(),
            ErrorCode.MALFORMED_PEM,
            "PEM input is not UTF-8 encodable text",
        )
        .ensure(
            lambda data: bool(data),
            ErrorCode.MALFORMED_PEM,
            "Empty input, expected PEM-armored data",
        )
        .flat_map(
            lambda data: Result.from_computation(
                lambda: _first_block(data),
                ErrorCode.MALFORMED_PEM,
                "No valid PEM block found",
            )
        )
    )


def _require_block_type(block: PemBlock, expected_block_type: str) -> Result[PemBlock]:
    if block.block_type != expected_block_type:
        return Result.failure(
            ErrorCode.UNEXPECTED_BLOCK_TYPE,
            f"Expected PEM block {expected_block_type!r}, got {block.block_type!r}",
        )
    return Result.success(block)


def decode(buffer: bytes | str, expected_block_type: str) -> Result[PemBlock]:
    """
    Locate the first PEM block in `buffer` and check its type tag.

    Leading/trailing whitespace and text before the first BEGIN line are
    ignored; blocks after the first are never consulted.

    Returns Result.failure(MALFORMED_PEM) for empty input, missing armor or
    an undecodable base64 body, and Result.failure(UNEXPECTED_BLOCK_TYPE)
    when the first block is not `expected_block_type`.
    """
    return _unarmor(buffer).flat_map(
        lambda block: _require_block_type(block, expected_block_type)
    )


# ─────────────────────── X.509 Certificate ───────────────────────


def _common_name(name: x509.Name) -> str | None:
    attributes = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        return None
    return str(attributes[0].value)


def _extract_ski(cert: x509.Certificate) -> str | None:
    """Subject Key Identifier as hex, or None if absent or undecodable."""
    try:
        ext = cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier)
        return ext.value.digest.hex()
    except (x509.ExtensionNotFound, ValueError):
        return None


def _extract_aki(cert: x509.Certificate) -> str | None:
    """Authority Key Identifier as hex, or None if absent or undecodable."""
    try:
        ext = cert.extensions.get_extension_for_class(x509.AuthorityKeyIdentifier)
        if ext.value.key_identifier is not None:
            return ext.value.key_identifier.hex()
        return None
    except (x509.ExtensionNotFound, ValueError):
        return None


def _extract_dns_names(cert: x509.Certificate) -> tuple[str, ...]:
    try:
        ext = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
        return tuple(ext.value.get_values_for_type(x509.DNSName))
    except (x509.ExtensionNotFound, ValueError):
        return ()


def _build_certificate(der: bytes) -> Certificate:
    cert = x509.load_der_x509_certificate(der)
    return Certificate(
        der=der,
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        common_name=_common_name(cert.subject),
        serial_number=cert.serial_number,
        not_valid_before=cert.not_valid_before_utc,
        not_valid_after=cert.not_valid_after_utc,
        public_key=cert.public_key(),
        subject_key_identifier=_extract_ski(cert),
        authority_key_identifier=_extract_aki(cert),
        dns_names=_extract_dns_names(cert),
    )


def parse_certificate(block: PemBlock) -> Result[Certificate]:
    """
    Parse a "CERTIFICATE" block's DER payload into a Certificate.

    Structural DER failures are CORRUPT_DER; unreadable extensions only blank
    the fields they feed.
    """
    return _require_block_type(block, CERTIFICATE_BLOCK).flat_map(
        lambda b: Result.from_computation(
            lambda: _build_certificate(b.der),
            ErrorCode.CORRUPT_DER,
            "Certificate DER payload could not be parsed",
        )
    )


def load_certificate(buffer: bytes | str) -> Result[Certificate]:
    """decode(buffer, "CERTIFICATE") followed by parse_certificate."""
    return decode(buffer, CERTIFICATE_BLOCK).flat_map(parse_certificate)


# ─────────────────────── X.509 CRL ───────────────────────


def _revocation_reason(revoked: x509.RevokedCertificate) -> str | None:
    try:
        ext = revoked.extensions.get_extension_for_class(x509.CRLReason)
        return ext.value.reason.value
    except (x509.ExtensionNotFound, ValueError):
        return None


def _build_revocation_list(der: bytes) -> RevocationList:
    crl = x509.load_der_x509_crl(der)
    revoked = tuple(
        RevokedCertificate(
            serial_number=entry.serial_number,
            revocation_date=entry.revocation_date_utc,
            reason=_revocation_reason(entry),
        )
        for entry in crl
    )
    return RevocationList(
        der=der,
        issuer=crl.issuer.rfc4514_string(),
        last_update=crl.last_update_utc,
        next_update=crl.next_update_utc,
        signature_algorithm_oid=crl.signature_algorithm_oid.dotted_string,
        revoked=revoked,
    )


def parse_revocation_list(block: PemBlock) -> Result[RevocationList]:
    """Parse an "X509 CRL" block's DER payload into a RevocationList."""
    return _require_block_type(block, CRL_BLOCK).flat_map(
        lambda b: Result.from_computation(
            lambda: _build_revocation_list(b.der),
            ErrorCode.CORRUPT_DER,
            "CRL DER payload could not be parsed",
        )
    )


def load_revocation_list(buffer: bytes | str) -> Result[RevocationList]:
    """decode(buffer, "X509 CRL") followed by parse_revocation_list."""
    return decode(buffer, CRL_BLOCK).flat_map(parse_revocation_list)


# ─────────────────────── Private Keys ───────────────────────


def _select_algorithm(key_type: str | None) -> Result[KeyAlgorithm]:
    if not key_type:
        return Result.failure(ErrorCode.INVALID_PRIVATE_KEY, "No private key type given")
    algorithm = KeyAlgorithm.from_key_type(key_type)
    if algorithm is None:
        return Result.failure(
            ErrorCode.UNSUPPORTED_KEY_TYPE,
            f"Unsupported private key type {key_type!r}",
        )
    return Result.success(algorithm)


def _as_missing_key(error: FailureDescription) -> FailureDescription:
    if error.code is not ErrorCode.MALFORMED_PEM:
        return error
    return FailureDescription(
        code=ErrorCode.INVALID_PRIVATE_KEY,
        message=f"No private key PEM block found: {error.message}",
        exception=error.exception,
    )


_KEY_STRUCTURES: dict[KeyAlgorithm, type[keys.RSAPrivateKey] | type[keys.ECPrivateKey]] = {
    KeyAlgorithm.RSA: keys.RSAPrivateKey,
    KeyAlgorithm.EC: keys.ECPrivateKey,
}


def _check_key_structure(der: bytes, algorithm: KeyAlgorithm) -> bytes:
    """
    Parse `der` as the algorithm's own structure (PKCS#1 RSAPrivateKey or
    SEC1 ECPrivateKey). load_der_private_key also takes PKCS#8, which these
    block types must not carry. Reading .native forces the lazy parse.
    """
    structure = _KEY_STRUCTURES[algorithm].load(der, strict=True)
    _ = structure.native
    return der


def _load_key(block: PemBlock, algorithm: KeyAlgorithm) -> Result[PrivateKey]:
    return (
        Result.from_computation(
            lambda: serialization.load_der_private_key(
                _check_key_structure(block.der, algorithm), password=None
            ),
            ErrorCode.CORRUPT_DER,
            f"{algorithm.block_type} DER payload could not be parsed",
        )
        .ensure(
            lambda key: isinstance(key, algorithm.key_class),
            ErrorCode.CORRUPT_DER,
            f"{algorithm.block_type} DER payload is not a {algorithm.name} key",
        )
        .map(lambda key: PrivateKey(algorithm=algorithm, key=key))  # type: ignore[arg-type]
    )


def parse_private_key(pem_text: bytes | str, key_type: str | None) -> Result[PrivateKey]:
    """
    Decode a private key whose algorithm is named out-of-band by `key_type`.

    Order of checks (first failure wins):
      1. key_type empty → INVALID_PRIVATE_KEY; unknown → UNSUPPORTED_KEY_TYPE
      2. no decodable PEM block → INVALID_PRIVATE_KEY
      3. block type not the algorithm's → UNEXPECTED_BLOCK_TYPE
      4. DER not a PKCS#1 RSA / SEC1 EC key of that algorithm → CORRUPT_DER
    """
    return _select_algorithm(key_type).flat_map(
        lambda algorithm: decode(pem_text, algorithm.block_type)
        .map_failure(_as_missing_key)
        .flat_map(lambda block: _load_key(block, algorithm))
    )
