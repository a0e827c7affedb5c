"""
Roles component - named permission sets.

Roles are read by any authenticated caller; writes need ``roles:<action>``
or an admin-equivalent caller. Roles named in the policy's ``admin_roles``
cannot be renamed or deleted. A permission change applies to the next
request, because identities are rebuilt from the stored role every time.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from newsdesk.components.audit import AuditPort, report_outcome
from newsdesk.components.errors import (
    OperationError,
    PersistenceError,
    conflict,
    forbidden,
    internal,
    not_found,
    validation,
)
from newsdesk.domain.entities import Role
from newsdesk.domain.policy import PermissionModel, Permissions, parse_permissions

from .models import (
    CreateRoleInput,
    DeleteRoleInput,
    GetRoleInput,
    ListRolesInput,
    RoleListOutput,
    RoleOutput,
    UpdateRoleInput,
    UpdateRolePermissionsInput,
)
from .ports import ClockPort, RoleRepoPort

logger = logging.getLogger(__name__)

RoleInput = (
    ListRolesInput
    | GetRoleInput
    | CreateRoleInput
    | UpdateRoleInput
    | UpdateRolePermissionsInput
    | DeleteRoleInput
)
RoleResult = RoleListOutput | RoleOutput
RoleMutation = CreateRoleInput | UpdateRoleInput | UpdateRolePermissionsInput | DeleteRoleInput

_ENDPOINT = "/api/v1/roles"


def _fail(*errors: OperationError) -> RoleOutput:
    return RoleOutput(role=None, errors=list(errors), success=False)


def _check_permissions(raw: Any) -> tuple[Permissions, list[OperationError]]:
    """A mapping of module name to a list of action names, nothing else."""
    invalid = validation(
        "Permissions must map module names to lists of actions",
        "permissions_invalid",
        "permissions",
    )
    if not isinstance(raw, Mapping):
        return {}, [invalid]
    for module, actions in raw.items():
        if not isinstance(module, str) or not module:
            return {}, [invalid]
        if not isinstance(actions, (list, tuple)) or not all(isinstance(a, str) for a in actions):
            return {}, [invalid]
    return parse_permissions(raw), []


class RoleComponent:
    """Component for role CRUD and permission assignment."""

    def __init__(
        self,
        repo: RoleRepoPort,
        permissions: PermissionModel,
        clock: ClockPort,
        audit: AuditPort | None = None,
    ) -> None:
        self._repo = repo
        self._permissions = permissions
        self._clock = clock
        self._audit = audit

    def run(self, input_data: RoleInput) -> RoleResult:
        """Main dispatcher - routes to appropriate handler based on input type."""
        if isinstance(input_data, ListRolesInput):
            return self.run_list(input_data)
        elif isinstance(input_data, GetRoleInput):
            return self.run_get(input_data)
        elif isinstance(input_data, CreateRoleInput):
            return self.run_create(input_data)
        elif isinstance(input_data, UpdateRoleInput):
            return self.run_update(input_data)
        elif isinstance(input_data, UpdateRolePermissionsInput):
            return self.run_update_permissions(input_data)
        elif isinstance(input_data, DeleteRoleInput):
            return self.run_delete(input_data)
        else:
            raise TypeError(f"Unknown input type: {type(input_data)}")

    def run_list(self, input_data: ListRolesInput) -> RoleListOutput:
        try:
            items = self._repo.list_all()
        except PersistenceError:
            logger.exception("Failed to list roles")
            return RoleListOutput(items=[], errors=[internal()], success=False)
        return RoleListOutput(items=items)

    def run_get(self, input_data: GetRoleInput) -> RoleOutput:
        try:
            role = self._repo.get_by_id(input_data.role_id)
        except PersistenceError:
            logger.exception("Failed to load role %s", input_data.role_id)
            return _fail(internal())
        if role is None:
            return _fail(not_found(f"Role {input_data.role_id} not found"))
        return RoleOutput(role=role)

    def run_create(self, input_data: CreateRoleInput) -> RoleOutput:
        output = self._guarded("create", input_data, self._create)
        self._emit("create", "POST", _ENDPOINT, 201, input_data, output)
        return output

    def run_update(self, input_data: UpdateRoleInput) -> RoleOutput:
        output = self._guarded("update", input_data, self._update)
        self._emit("update", "PUT", f"{_ENDPOINT}/{input_data.role_id}", 200, input_data, output)
        return output

    def run_update_permissions(self, input_data: UpdateRolePermissionsInput) -> RoleOutput:
        output = self._guarded("update_permissions", input_data, self._update_permissions)
        self._emit(
            "update_permissions",
            "PUT",
            f"{_ENDPOINT}/{input_data.role_id}/permissions",
            200,
            input_data,
            output,
        )
        return output

    def run_delete(self, input_data: DeleteRoleInput) -> RoleOutput:
        output = self._guarded("delete", input_data, self._delete)
        self._emit(
            "delete", "DELETE", f"{_ENDPOINT}/{input_data.role_id}", 200, input_data, output
        )
        return output

    # --- Operations ---

    def _create(self, inp: CreateRoleInput) -> RoleOutput:
        if not self._permissions.can(inp.identity, "roles", "create"):
            return _fail(forbidden("You are not allowed to create roles"))

        errors = self._validate_name(inp.name)
        permissions: Permissions = {}
        if inp.permissions is not None:
            permissions, permission_errors = _check_permissions(inp.permissions)
            errors.extend(permission_errors)
        if errors:
            return _fail(*errors)

        if self._repo.get_by_name(inp.name) is not None:
            return _fail(validation("Role name already exists", "role_exists", "name"))

        now = self._clock.now()
        role = self._repo.save(
            Role(
                id=uuid4(),
                name=inp.name,
                description=inp.description,
                permissions=permissions,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Role %s (%s) created", role.id, role.name)
        return RoleOutput(role=role)

    def _update(self, inp: UpdateRoleInput) -> RoleOutput:
        if not self._permissions.can(inp.identity, "roles", "update"):
            return _fail(forbidden("You are not allowed to update roles"))

        role = self._repo.get_by_id(inp.role_id)
        if role is None:
            return _fail(not_found(f"Role {inp.role_id} not found"))

        changes: dict[str, Any] = {}
        errors: list[OperationError] = []

        if inp.name is not None and inp.name != role.name:
            if role.name in self._permissions.admin_roles:
                return _fail(
                    conflict(f"Role '{role.name}' cannot be renamed", "role_protected", "name")
                )
            errors.extend(self._validate_name(inp.name))
            if not errors and self._repo.get_by_name(inp.name) is not None:
                errors.append(validation("Role name already exists", "role_exists", "name"))
            changes["name"] = inp.name

        if inp.description is not None:
            changes["description"] = inp.description

        if inp.permissions is not None:
            permissions, permission_errors = _check_permissions(inp.permissions)
            errors.extend(permission_errors)
            changes["permissions"] = permissions

        if errors:
            return _fail(*errors)

        changes["updated_at"] = self._clock.now()
        return RoleOutput(role=self._repo.save(role.model_copy(update=changes)))

    def _update_permissions(self, inp: UpdateRolePermissionsInput) -> RoleOutput:
        if not self._permissions.can(inp.identity, "roles", "update"):
            return _fail(forbidden("You are not allowed to update roles"))

        role = self._repo.get_by_id(inp.role_id)
        if role is None:
            return _fail(not_found(f"Role {inp.role_id} not found"))

        permissions, errors = _check_permissions(inp.permissions)
        if errors:
            return _fail(*errors)

        saved = self._repo.save(
            role.model_copy(update={"permissions": permissions, "updated_at": self._clock.now()})
        )
        logger.info("Permissions of role %s replaced", saved.name)
        return RoleOutput(role=saved)

    def _delete(self, inp: DeleteRoleInput) -> RoleOutput:
        if not self._permissions.can(inp.identity, "roles", "delete"):
            return _fail(forbidden("You are not allowed to delete roles"))

        role = self._repo.get_by_id(inp.role_id)
        if role is None:
            return _fail(not_found(f"Role {inp.role_id} not found"))
        if role.name in self._permissions.admin_roles:
            return _fail(conflict(f"Role '{role.name}' cannot be deleted", "role_protected", None))

        self._repo.delete(role.id)
        logger.info("Role %s (%s) deleted", role.id, role.name)
        return RoleOutput(role=None)

    # --- Helpers ---

    def _validate_name(self, name: Any) -> list[OperationError]:
        if not isinstance(name, str) or not name.strip():
            return [validation("Role name is required", "name_required", "name")]
        return []

    def _guarded(self, operation: str, input_data: Any, handler: Any) -> RoleOutput:
        try:
            return handler(input_data)
        except PersistenceError:
            logger.exception("Role %s failed on a storage error", operation)
            return _fail(internal())

    def _emit(
        self,
        operation: str,
        method: str,
        endpoint: str,
        ok_status: int,
        input_data: RoleMutation,
        output: RoleOutput,
    ) -> None:
        role_id = output.role.id if output.role else getattr(input_data, "role_id", None)
        report_outcome(
            self._audit,
            module="roles",
            operation=operation,
            method=method,
            endpoint=endpoint,
            ok_status=ok_status,
            user_id=input_data.identity.user_id,
            errors=output.errors,
            context=input_data.context,
            metadata={"role_id": str(role_id)} if role_id else None,
        )
