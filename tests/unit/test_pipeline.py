"""
Unit tests for assemble_issue_result — decoding every artifact of an issuance response.

The response is built from the generated PKI; each test breaks one artifact
and checks that the whole result fails with that artifact's error.
"""

from __future__ import annotations

from typing import Any

from hsdp_api.domain.messages import MAX_EPOCH_SECONDS, IssueResponse, parse_message
from hsdp_api.domain.models import KeyAlgorithm
from hsdp_api.pipeline import assemble_issue_result
from hsdp_api.railway import ErrorCode, ResultAssertions
from tests.conftest import LEAF_COMMON_NAME, NOT_AFTER, GeneratedPki


def _response(body: dict[str, Any], **data: Any) -> IssueResponse:
    merged = {**body, "data": {**body["data"], **data}}
    return IssueResponse.model_validate(merged)


class TestAssembleSuccess:
    """
    GIVEN a complete issuance response
    WHEN assemble_issue_result is called
    THEN every artifact is decoded and the envelope fields carried over.
    """

    def test_decodes_all_artifacts(self, issue_body: dict[str, Any], pki: GeneratedPki) -> None:
        result = ResultAssertions.assert_success(assemble_issue_result(_response(issue_body)))
        assert result.certificate.common_name == LEAF_COMMON_NAME
        assert [c.subject for c in result.ca_chain] == [pki.root_cert.subject.rfc4514_string()]
        assert result.issuing_ca is not None
        assert result.issuing_ca.serial_number == pki.root_cert.serial_number
        assert result.private_key is not None
        assert result.private_key.algorithm is KeyAlgorithm.RSA

    def test_private_key_matches_certificate(self, issue_body: dict[str, Any]) -> None:
        result = ResultAssertions.assert_success(assemble_issue_result(_response(issue_body)))
        assert result.private_key is not None
        assert result.private_key.matches(result.certificate.public_key)

    def test_envelope_fields(self, issue_body: dict[str, Any]) -> None:
        result = ResultAssertions.assert_success(assemble_issue_result(_response(issue_body)))
        assert result.serial_number == "00:00:00:5a:17:c0:ff:ee"
        assert result.expiration == NOT_AFTER
        assert result.request_id == "req-7f3a"
        assert result.lease_id == "pki/issue/lease-42"
        assert result.lease_duration == 3600
        assert result.renewable is False

    def test_chain_order_is_kept(self, issue_body: dict[str, Any], pki: GeneratedPki) -> None:
        response = _response(issue_body, ca_chain=[pki.leaf_pem, pki.root_pem])
        result = ResultAssertions.assert_success(assemble_issue_result(response))
        assert [c.common_name for c in result.ca_chain] == [LEAF_COMMON_NAME, "Example Root CA"]

    def test_absent_optional_artifacts(self, issue_body: dict[str, Any]) -> None:
        """
        GIVEN a sign/lookup response without key, chain or issuing CA
        WHEN assemble_issue_result is called
        THEN those fields are empty and the certificate still decodes.
        """
        response = _response(
            issue_body, ca_chain=[], issuing_ca="", private_key="", private_key_type="", expiration=0
        )
        result = ResultAssertions.assert_success(assemble_issue_result(response))
        assert result.ca_chain == ()
        assert result.issuing_ca is None
        assert result.private_key is None
        assert result.expiration is None

    def test_ec_private_key(self, issue_body: dict[str, Any], pki: GeneratedPki) -> None:
        response = _response(issue_body, private_key=pki.ec_key_pem, private_key_type="ec")
        result = ResultAssertions.assert_success(assemble_issue_result(response))
        assert result.private_key is not None
        assert result.private_key.algorithm is KeyAlgorithm.EC
        assert result.issuing_ca is not None
        assert result.private_key.matches(result.issuing_ca.public_key)


class TestAssembleFailure:
    """
    GIVEN an issuance response with one broken artifact
    WHEN assemble_issue_result is called
    THEN no IssueResult is produced and the artifact's error is returned.
    """

    def test_missing_certificate(self, issue_body: dict[str, Any]) -> None:
        result = assemble_issue_result(_response(issue_body, certificate=""))
        ResultAssertions.assert_failure(result, ErrorCode.EMPTY_RESPONSE)

    def test_certificate_is_a_crl(self, issue_body: dict[str, Any], pki: GeneratedPki) -> None:
        result = assemble_issue_result(_response(issue_body, certificate=pki.crl_pem))
        ResultAssertions.assert_failure(result, ErrorCode.UNEXPECTED_BLOCK_TYPE)

    def test_malformed_chain_entry(self, issue_body: dict[str, Any], pki: GeneratedPki) -> None:
        response = _response(issue_body, ca_chain=[pki.root_pem, "not pem"])
        ResultAssertions.assert_failure(assemble_issue_result(response), ErrorCode.MALFORMED_PEM)

    def test_malformed_issuing_ca(self, issue_body: dict[str, Any]) -> None:
        response = _response(issue_body, issuing_ca="-----BEGIN CERTIFICATE-----\n")
        ResultAssertions.assert_failure(assemble_issue_result(response), ErrorCode.MALFORMED_PEM)

    def test_unsupported_key_type(self, issue_body: dict[str, Any]) -> None:
        response = _response(issue_body, private_key_type="ed25519")
        ResultAssertions.assert_failure(
            assemble_issue_result(response), ErrorCode.UNSUPPORTED_KEY_TYPE
        )

    def test_key_without_type_tag(self, issue_body: dict[str, Any]) -> None:
        response = _response(issue_body, private_key_type="")
        ResultAssertions.assert_failure(
            assemble_issue_result(response), ErrorCode.INVALID_PRIVATE_KEY
        )

    def test_key_tag_disagrees_with_pem(self, issue_body: dict[str, Any]) -> None:
        response = _response(issue_body, private_key_type="ec")
        ResultAssertions.assert_failure(
            assemble_issue_result(response), ErrorCode.UNEXPECTED_BLOCK_TYPE
        )


class TestIssueResponseBounds:
    """
    GIVEN an issuance response whose expiration no datetime can hold
    WHEN it is validated as an IssueResponse
    THEN it is rejected as a bad service response.
    """

    def test_expiration_too_large(self, issue_body: dict[str, Any]) -> None:
        body = {**issue_body, "data": {**issue_body["data"], "expiration": 10**20}}
        ResultAssertions.assert_failure(
            parse_message(IssueResponse, body), ErrorCode.EXTERNAL_SERVICE_ERROR
        )

    def test_last_representable_second(self, issue_body: dict[str, Any]) -> None:
        result = ResultAssertions.assert_success(
            assemble_issue_result(_response(issue_body, expiration=MAX_EPOCH_SECONDS))
        )
        assert result.expiration is not None
        assert result.expiration.year == 9999
