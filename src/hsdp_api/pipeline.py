"""
Pipeline — assemble an IssueResult from an issuance response.

Pure composition over the PEM decoder; no I/O. The stages are connected via
flat_map, forming a railway:

  certificate (required)
    → ca_chain entries, in order
      → issuing_ca (when present)
        → private_key (when present, algorithm from private_key_type)
          → IssueResult

The first failing stage short-circuits the rest, so an IssueResult is either
fully decoded or not produced at all.
"""

from __future__ import annotations

from datetime import UTC, datetime

from hsdp_api.adapters.pem_decoder import load_certificate, parse_private_key
from hsdp_api.domain.messages import IssueResponse
from hsdp_api.domain.models import Certificate, IssueResult, PrivateKey
from hsdp_api.railway import ErrorCode
from hsdp_api.railway.result import Result


def _decode_leaf(pem_text: str) -> Result[Certificate]:
    if not pem_text.strip():
        return Result.failure(ErrorCode.EMPTY_RESPONSE, "Response carries no certificate")
    return load_certificate(pem_text)


def _decode_chain(chain: list[str]) -> Result[tuple[Certificate, ...]]:
    return Result.all_of([load_certificate(pem_text) for pem_text in chain]).map(tuple)


def _decode_optional_certificate(pem_text: str) -> Result[tuple[Certificate, ...]]:
    # The success track cannot carry None: absent artifacts are empty tuples.
    if not pem_text.strip():
        return Result.success(())
    return load_certificate(pem_text).map(lambda cert: (cert,))


def _decode_optional_key(pem_text: str, key_type: str) -> Result[tuple[PrivateKey, ...]]:
    if not pem_text.strip():
        return Result.success(())
    return parse_private_key(pem_text, key_type).map(lambda key: (key,))


def _expiration(epoch_seconds: int) -> datetime | None:
    if epoch_seconds <= 0:
        return None
    return datetime.fromtimestamp(epoch_seconds, UTC)


def assemble_issue_result(response: IssueResponse) -> Result[IssueResult]:
    """
    Decode every PEM artifact in an issue/sign/lookup response.

    Returns Result[IssueResult] on success, or the failure of the first
    artifact that did not decode (MALFORMED_PEM, UNEXPECTED_BLOCK_TYPE,
    CORRUPT_DER, INVALID_PRIVATE_KEY, UNSUPPORTED_KEY_TYPE), or
    EMPTY_RESPONSE when the response holds no certificate.
    """
    data = response.data
    return _decode_leaf(data.certificate).flat_map(
        lambda certificate: _decode_chain(data.ca_chain).flat_map(
            lambda chain: _decode_optional_certificate(data.issuing_ca).flat_map(
                lambda issuing_ca: _decode_optional_key(
                    data.private_key, data.private_key_type
                ).map(
                    lambda private_key: IssueResult(
                        certificate=certificate,
                        ca_chain=chain,
                        issuing_ca=next(iter(issuing_ca), None),
                        private_key=next(iter(private_key), None),
                        serial_number=data.serial_number or None,
                        expiration=_expiration(data.expiration),
                        request_id=response.request_id or None,
                        lease_id=response.lease_id or None,
                        lease_duration=response.lease_duration,
                        renewable=response.renewable,
                    )
                )
            )
        )
    )
