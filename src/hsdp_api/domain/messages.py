"""
Wire messages — pydantic models for the JSON the services send and receive.

Request models validate caller input before anything goes on the wire.
Response models are lenient (unknown fields ignored, everything defaulted)
so a service adding fields never breaks decoding.

Python attribute names are snake_case; where a service uses other keys the
field carries an alias and is dumped with `by_alias=True`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from hsdp_api.railway import ErrorCode
from hsdp_api.railway.result import Result

M = TypeVar("M", bound=BaseModel)

# 9999-12-31T23:59:59Z, the last instant a datetime can hold.
MAX_EPOCH_SECONDS = 253402300799


def parse_message(
    model: type[M],
    payload: Any,
    error_code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
) -> Result[M]:
    """
    Validate `payload` (a dict or an existing model instance) as `model`.

    Responses that do not fit are EXTERNAL_SERVICE_ERROR; pass
    VALIDATION_ERROR when checking caller input.
    """
    return Result.from_computation(
        lambda: model.model_validate(payload),
        error_code,
        f"Invalid {model.__name__}",
    )


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """Dump with service field names, leaving out unset optional values."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ─────────────────────── PKI ───────────────────────


class CertificateRequest(_WireModel):
    """Body of `{logical_path}/issue/{role}`."""

    common_name: str = Field(min_length=1, max_length=253)
    alt_names: str | None = None
    ip_sans: str | None = None
    uri_sans: str | None = None
    other_sans: str | None = None
    ttl: str | None = None
    format: str | None = None
    private_key_format: str | None = None
    exclude_cn_from_sans: bool | None = None


class SignRequest(_WireModel):
    """Body of `{logical_path}/sign/{role}` — signs a caller-provided CSR."""

    csr: str = Field(min_length=1)
    common_name: str = Field(min_length=1, max_length=253)
    alt_names: str | None = None
    other_sans: str | None = None
    ip_sans: str | None = None
    uri_sans: str | None = None
    ttl: str | None = None
    format: Literal["pem", "der", "pem_bundle"] = "pem"
    exclude_cn_from_sans: bool = False


class IssueData(_WireModel):
    ca_chain: list[str] = Field(default_factory=list)
    certificate: str = ""
    expiration: int = Field(default=0, le=MAX_EPOCH_SECONDS)
    issuing_ca: str = ""
    private_key: str = ""
    private_key_type: str = ""
    serial_number: str = ""


class IssueResponse(_WireModel):
    """Response envelope of issue, sign and cert-by-serial calls."""

    request_id: str = ""
    lease_id: str = ""
    renewable: bool = False
    lease_duration: int = 0
    data: IssueData = Field(default_factory=IssueData)
    warnings: list[str] | str | None = None


class RevokeData(_WireModel):
    revocation_time: int = Field(default=0, le=MAX_EPOCH_SECONDS)
    revocation_time_rfc3339: datetime | None = None


class RevokeResponse(_WireModel):
    request_id: str = ""
    data: RevokeData = Field(default_factory=RevokeData)


class CertificateKeys(_WireModel):
    keys: list[str] = Field(default_factory=list)


class CertificateListResponse(_WireModel):
    request_id: str = ""
    data: CertificateKeys = Field(default_factory=CertificateKeys)


class QueryOptions(_WireModel):
    """
    Search filters for `{logical_path}/certs`.

    Modifier suffixes (`:exact`, `:contains`, `:missing`, `:exists`) and the
    underscore-prefixed paging/sorting keys are the service's query syntax.
    """

    organization_id: str | None = Field(default=None, alias="organizationId")
    common_name: str | None = Field(default=None, alias="commonName")
    common_name_exact: str | None = Field(default=None, alias="commonName:exact")
    common_name_contains: str | None = Field(default=None, alias="commonName:contains")
    common_name_missing: bool | None = Field(default=None, alias="commonName:missing")
    common_name_exists: bool | None = Field(default=None, alias="commonName:exists")
    alt_name: str | None = Field(default=None, alias="altName")
    alt_name_exact: str | None = Field(default=None, alias="altName:exact")
    alt_name_contains: str | None = Field(default=None, alias="altName:contains")
    alt_name_missing: bool | None = Field(default=None, alias="altName:missing")
    alt_name_exists: bool | None = Field(default=None, alias="altName:exists")
    serial_number: str | None = Field(default=None, alias="serialNumber")
    issued_at: str | None = Field(default=None, alias="issuedAt")
    expires_at: str | None = Field(default=None, alias="expiresAt")
    key_type: str | None = Field(default=None, alias="keyType")
    key_length: str | None = Field(default=None, alias="keyLength")
    key_usage: str | None = Field(default=None, alias="keyUsage")
    ext_key_usage: str | None = Field(default=None, alias="extKeyUsage")
    subject_key_id: str | None = Field(default=None, alias="subjectKeyId")
    authority_key_id: str | None = Field(default=None, alias="authorityKeyId")
    status: str | None = Field(default=None, alias="_status")
    revoked_at: str | None = Field(default=None, alias="revokedAt")
    operation: str | None = Field(default=None, alias="_operation")
    count: str | None = Field(default=None, alias="_count")
    page: str | None = Field(default=None, alias="_page")
    sort: str | None = Field(default=None, alias="_sort")


# ─────────────────────── IAM ───────────────────────


class Role(_WireModel):
    """An IAM role resource."""

    id: str | None = None
    name: str
    description: str = ""
    managing_organization: str = Field(default="", alias="managingOrganization")


class GetRolesOptions(_WireModel):
    name: str | None = None
    group_id: str | None = Field(default=None, alias="groupId")
    organization_id: str | None = Field(default=None, alias="organizationId")
    role_id: str | None = Field(default=None, alias="roleId")


class Permission(_WireModel):
    id: str | None = None
    name: str
    description: str = ""


class RoleSearchResponse(_WireModel):
    total: int = 0
    entry: list[Role] = Field(default_factory=list)


class PermissionSearchResponse(_WireModel):
    total: int = 0
    entry: list[Permission] = Field(default_factory=list)


# ─────────────────────── Cartel ───────────────────────


class CreateOptions(_WireModel):
    """Optional settings for a Cartel host; dumped with Cartel's field names."""

    role: str | None = None
    image: str | None = None
    instance_type: str | None = None
    subnet_type: str | None = None
    encrypt_volumes: bool | None = Field(default=None, alias="encrypt_vols")
    volumes: int | None = Field(default=None, ge=0, alias="num_vols")
    volume_size: int | None = Field(default=None, ge=1, alias="vol_size")
    security_groups: list[str] | None = Field(default=None, alias="security_group")
    user_groups: list[str] | None = None
    tags: dict[str, str] | None = None
    protect: bool | None = None


class HostInstance(_WireModel):
    eip_address: str | None = None
    instance_id: str = ""
    ip_address: str = ""
    name: str = ""
    role: str = ""


class CreateResponse(_WireModel):
    """Cartel create response: `result` is "Success" and `message` lists the hosts."""

    result: str = ""
    message: list[HostInstance] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.result == "Success"

    @property
    def instance_id(self) -> str:
        return self.message[0].instance_id if self.message else ""

    @property
    def ip_address(self) -> str:
        return self.message[0].ip_address if self.message else ""
