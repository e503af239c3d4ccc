"""
Result railway used by every hsdp_api operation.

    from hsdp_api.railway import ErrorCode, Result

    result = transport.fetch_bytes(spec).flat_map(load_certificate)
    if result.is_failure():
        print(result.error().code)
"""

from hsdp_api.railway.assertions import ResultAssertions
from hsdp_api.railway.failure import ErrorCode, FailureDescription
from hsdp_api.railway.result import Failure, Result, Success

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ResultAssertions",
]
