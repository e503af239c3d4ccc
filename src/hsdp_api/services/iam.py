"""
IAM roles service — search, read, create and delete roles, manage permissions.

Every call is sent with `api-version: 1` to `authorize/identity/`.
"""

from __future__ import annotations

from typing import Any

import structlog

from hsdp_api.domain.messages import (
    GetRolesOptions,
    PermissionSearchResponse,
    Role,
    RoleSearchResponse,
    parse_message,
)
from hsdp_api.domain.ports import RequestSpec, Transport
from hsdp_api.railway import ErrorCode
from hsdp_api.railway.result import Result

log = structlog.get_logger()

ROLE_API_VERSION = "1"
ROLE_PATH = "authorize/identity/Role"
PERMISSION_PATH = "authorize/identity/Permission"


def _require_role_id(role: Role) -> Result[str]:
    return Result.from_optional(role.id, f"Role {role.name!r} has no id")


class RolesService:
    """Typed access to IAM roles."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def _spec(self, method: str, path: str, **kwargs: Any) -> RequestSpec:
        return RequestSpec(
            method,
            path,
            headers={"api-version": ROLE_API_VERSION, "Content-Type": "application/json"},
            **kwargs,
        )

    def get_roles(self, options: GetRolesOptions | None = None) -> Result[list[Role]]:
        params = options.to_wire() if options is not None else None
        return (
            self._transport.fetch_json(self._spec("GET", ROLE_PATH, params=params))
            .flat_map(lambda body: parse_message(RoleSearchResponse, body))
            .map(lambda response: response.entry)
        )

    def get_roles_by_group_id(self, group_id: str) -> Result[list[Role]]:
        return self.get_roles(GetRolesOptions(group_id=group_id))

    def get_role_by_id(self, role_id: str) -> Result[Role]:
        """Fetch a role; a response for a different id counts as NOT_FOUND."""
        return (
            self._transport.fetch_json(self._spec("GET", f"{ROLE_PATH}/{role_id}"))
            .flat_map(lambda body: parse_message(Role, body))
            .ensure(
                lambda role: role.id == role_id,
                ErrorCode.NOT_FOUND,
                f"Role not found with identifier: {role_id}",
            )
        )

    def create_role(
        self, name: str, description: str, managing_organization: str
    ) -> Result[Role]:
        role = Role(
            name=name,
            description=description,
            managing_organization=managing_organization,
        )
        return (
            self._transport.fetch_json(self._spec("POST", ROLE_PATH, json=role.to_wire()))
            .flat_map(lambda body: parse_message(Role, body))
            .peek(lambda created: log.info("iam.role_created", role_id=created.id, name=name))
        )

    def delete_role(self, role: Role) -> Result[dict[str, Any]]:
        return (
            _require_role_id(role)
            .flat_map(
                lambda role_id: self._transport.fetch_json(
                    self._spec("DELETE", f"{ROLE_PATH}/{role_id}"), allow_empty=True
                )
            )
            .peek(lambda _: log.info("iam.role_deleted", role_id=role.id))
        )

    def get_role_permissions(self, role: Role) -> Result[list[str]]:
        """Names of the permissions attached to the role."""
        return (
            _require_role_id(role)
            .flat_map(
                lambda role_id: self._transport.fetch_json(
                    self._spec(
                        "GET",
                        PERMISSION_PATH,
                        params=GetRolesOptions(role_id=role_id).to_wire(),
                    )
                )
            )
            .flat_map(lambda body: parse_message(PermissionSearchResponse, body))
            .map(lambda response: [permission.name for permission in response.entry])
        )

    def add_role_permission(self, role: Role, permission: str) -> Result[dict[str, Any]]:
        return self._permission_action(role, [permission], "$assign-permission")

    def remove_role_permission(self, role: Role, permission: str) -> Result[dict[str, Any]]:
        return self._permission_action(role, [permission], "$remove-permission")

    def _permission_action(
        self, role: Role, permissions: list[str], action: str
    ) -> Result[dict[str, Any]]:
        return (
            _require_role_id(role)
            .flat_map(
                lambda role_id: self._transport.fetch_json(
                    self._spec(
                        "POST",
                        f"{ROLE_PATH}/{role_id}/{action}",
                        json={"permissions": permissions},
                    ),
                    allow_empty=True,
                )
            )
            .peek(
                lambda _: log.info(
                    "iam.role_permissions_changed",
                    role_id=role.id,
                    action=action,
                    permissions=permissions,
                )
            )
        )
