"""
PKI service — certificate authority, issuance, signing and revocation.

Service layer — builds RequestSpecs, hands them to the Transport port and
decodes what comes back:

  CA / CRL downloads   → fetch_bytes → PEM decoder → Certificate / RevocationList
  issue / sign / cert  → fetch_json → IssueResponse → assemble_issue_result
  revoke               → fetch_json → RevokeResponse → RevokeResult
  certs                → fetch_json → CertificateListResponse → CertificateList

Root and policy CA/CRL downloads are public: they are sent without the
bearer Authorization header.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog

from hsdp_api.adapters.pem_decoder import load_certificate, load_revocation_list
from hsdp_api.domain.messages import (
    CertificateListResponse,
    CertificateRequest,
    IssueResponse,
    QueryOptions,
    RevokeResponse,
    SignRequest,
    parse_message,
)
from hsdp_api.domain.models import (
    Certificate,
    CertificateList,
    IssueResult,
    RevocationList,
    RevokeResult,
)
from hsdp_api.domain.ports import RequestSpec, Transport
from hsdp_api.pipeline import assemble_issue_result
from hsdp_api.railway import ErrorCode
from hsdp_api.railway.result import Result

log = structlog.get_logger()

API_ROOT = "core/pki/api"


def _revoke_result(response: RevokeResponse) -> Result[RevokeResult]:
    data = response.data
    if data.revocation_time_rfc3339 is not None:
        revoked_at = data.revocation_time_rfc3339
    elif data.revocation_time > 0:
        revoked_at = datetime.fromtimestamp(data.revocation_time, UTC)
    else:
        return Result.failure(
            ErrorCode.EXTERNAL_SERVICE_ERROR, "Revocation response carries no revocation time"
        )
    return Result.success(
        RevokeResult(revocation_time=revoked_at, request_id=response.request_id or None)
    )


class PkiService:
    """Typed access to the PKI API under `core/pki/api/`."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    # ─────────────────────── CA and CRL ───────────────────────

    def get_root_ca(self) -> Result[Certificate]:
        return self._get_ca("root")

    def get_policy_ca(self) -> Result[Certificate]:
        return self._get_ca("policy")

    def get_root_crl(self) -> Result[RevocationList]:
        return self._get_crl("root")

    def get_policy_crl(self) -> Result[RevocationList]:
        return self._get_crl("policy")

    def _get_ca(self, tier: str) -> Result[Certificate]:
        spec = RequestSpec("GET", f"{API_ROOT}/{tier}/ca/pem", authorize=False)
        return self._transport.fetch_bytes(spec).flat_map(load_certificate)

    def _get_crl(self, tier: str) -> Result[RevocationList]:
        spec = RequestSpec("GET", f"{API_ROOT}/{tier}/crl/pem", authorize=False)
        return self._transport.fetch_bytes(spec).flat_map(load_revocation_list)

    # ─────────────────────── Issuance ───────────────────────

    def issue_certificate(
        self,
        logical_path: str,
        role_name: str,
        request: CertificateRequest | dict[str, Any],
    ) -> Result[IssueResult]:
        """
        Have the CA generate a key pair and issue a certificate for it.

        The returned IssueResult carries the decoded certificate, CA chain
        and private key.
        """
        return (
            parse_message(CertificateRequest, request, ErrorCode.VALIDATION_ERROR)
            .flat_map(
                lambda req: self._issue_call(
                    RequestSpec(
                        "POST",
                        f"{API_ROOT}/{logical_path}/issue/{role_name}",
                        json=req.to_wire(),
                    )
                )
            )
            .peek(
                lambda result: log.info(
                    "pki.certificate_issued",
                    logical_path=logical_path,
                    role=role_name,
                    serial=result.serial_number,
                )
            )
        )

    def sign(
        self,
        logical_path: str,
        role_name: str,
        request: SignRequest | dict[str, Any],
    ) -> Result[IssueResult]:
        """
        Have the CA sign a caller-provided CSR.

        The request is validated before anything is sent; the IssueResult
        carries no private key.
        """
        return (
            parse_message(SignRequest, request, ErrorCode.VALIDATION_ERROR)
            .flat_map(
                lambda req: self._issue_call(
                    RequestSpec(
                        "POST",
                        f"{API_ROOT}/{logical_path}/sign/{role_name}",
                        json=req.to_wire(),
                    )
                )
            )
            .peek(
                lambda result: log.info(
                    "pki.csr_signed",
                    logical_path=logical_path,
                    role=role_name,
                    serial=result.serial_number,
                )
            )
        )

    def get_certificate_by_serial(self, logical_path: str, serial: str) -> Result[IssueResult]:
        return self._issue_call(RequestSpec("GET", f"{API_ROOT}/{logical_path}/cert/{serial}"))

    def _issue_call(self, spec: RequestSpec) -> Result[IssueResult]:
        return (
            self._transport.fetch_json(spec)
            .flat_map(lambda body: parse_message(IssueResponse, body))
            .flat_map(assemble_issue_result)
        )

    # ─────────────────────── Revocation and listing ───────────────────────

    def revoke_certificate_by_serial(self, logical_path: str, serial: str) -> Result[RevokeResult]:
        spec = RequestSpec(
            "POST",
            f"{API_ROOT}/{logical_path}/revoke",
            json={"serial_number": serial},
        )
        return (
            self._transport.fetch_json(spec)
            .flat_map(lambda body: parse_message(RevokeResponse, body))
            .flat_map(_revoke_result)
            .peek(
                lambda result: log.info(
                    "pki.certificate_revoked",
                    logical_path=logical_path,
                    serial=serial,
                    revoked_at=result.revocation_time.isoformat(),
                )
            )
        )

    def get_certificates(
        self,
        logical_path: str,
        options: QueryOptions | None = None,
    ) -> Result[CertificateList]:
        """List serial numbers of non-revoked certificates, including the issuing CA."""
        params = options.to_wire() if options is not None else None
        spec = RequestSpec("GET", f"{API_ROOT}/{logical_path}/certs", params=params)
        return (
            self._transport.fetch_json(spec)
            .flat_map(lambda body: parse_message(CertificateListResponse, body))
            .map(
                lambda response: CertificateList(
                    keys=tuple(response.data.keys),
                    request_id=response.request_id or None,
                )
            )
        )
