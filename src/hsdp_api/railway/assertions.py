"""
Test assertions for Results produced by the decoder and the services.

    from hsdp_api.railway import ErrorCode, ResultAssertions

    def test_rejects_crl_as_certificate(pki):
        result = decode(pki.crl_pem, CERTIFICATE_BLOCK)
        ResultAssertions.assert_failure(result, ErrorCode.UNEXPECTED_BLOCK_TYPE)

    def test_leaf(pki):
        ResultAssertions.assert_certificate(
            load_certificate(pki.leaf_pem), common_name="service.example.com"
        )

Failure messages name the error code and the decoder's message, so a red
test shows which stage of the railway rejected the input.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from hsdp_api.railway.failure import ErrorCode, FailureDescription
from hsdp_api.railway.result import Result

if TYPE_CHECKING:
    from hsdp_api.domain.models import Certificate, KeyAlgorithm, PrivateKey, RevocationList

T = TypeVar("T")


def _describe(result: Result[Any]) -> str:
    if result.is_success():
        return f"Success({result.value()!r})"
    error = result.error()
    return f"Failure({error.code.value}: {error.message!r})"


class ResultAssertions:
    """Assertions over Result values and the domain objects they carry."""

    @staticmethod
    def assert_success(result: Result[T], message: str = "") -> T:
        """Assert the Result is a Success and return the value."""
        assert result.is_success(), f"Expected Success, got {_describe(result)} {message}".rstrip()
        return result.value()

    @staticmethod
    def assert_failure(
        result: Result[T],
        expected_code: ErrorCode | None = None,
        message: str = "",
    ) -> FailureDescription:
        """Assert the Result is a Failure, optionally with a given code."""
        assert result.is_failure(), f"Expected Failure, got {_describe(result)} {message}".rstrip()
        error = result.error()
        if expected_code is not None:
            assert error.code is expected_code, (
                f"Expected {expected_code.value}, got {_describe(result)} {message}".rstrip()
            )
        return error

    @staticmethod
    def assert_failure_message_contains(result: Result[T], substring: str) -> None:
        """Case-insensitive check on the failure message."""
        error = ResultAssertions.assert_failure(result)
        assert substring.lower() in error.message.lower(), (
            f"{substring!r} not in failure message {error.message!r}"
        )

    # ─────────────────────── Decoded artifacts ───────────────────────

    @staticmethod
    def assert_certificate(
        result: Result[Certificate],
        *,
        common_name: str | None = None,
        serial_number: int | None = None,
        issuer: str | None = None,
    ) -> Certificate:
        """Assert a decoded Certificate and compare the fields that were given."""
        cert = ResultAssertions.assert_success(result)
        expected = {
            "common_name": common_name,
            "serial_number": serial_number,
            "issuer": issuer,
        }
        for name, value in expected.items():
            if value is not None:
                actual = getattr(cert, name)
                assert actual == value, f"Certificate {name}: expected {value!r}, got {actual!r}"
        return cert

    @staticmethod
    def assert_revokes(result: Result[RevocationList], *serial_numbers: int) -> RevocationList:
        """Assert a decoded RevocationList lists every given serial."""
        crl = ResultAssertions.assert_success(result)
        missing = [serial for serial in serial_numbers if not crl.is_revoked(serial)]
        assert not missing, f"CRL from {crl.issuer!r} does not revoke {missing}"
        return crl

    @staticmethod
    def assert_private_key(result: Result[PrivateKey], algorithm: KeyAlgorithm) -> PrivateKey:
        """Assert a decoded PrivateKey of the given algorithm."""
        key = ResultAssertions.assert_success(result)
        assert key.algorithm is algorithm, (
            f"Expected a {algorithm.name} key, got {key.algorithm.name}"
        )
        return key
