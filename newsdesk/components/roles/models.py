"""
Roles component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from newsdesk.components.audit.models import RequestContext
from newsdesk.components.errors import OperationError
from newsdesk.domain.entities import Role
from newsdesk.domain.policy import Identity

# --- Input Models ---


@dataclass(frozen=True)
class ListRolesInput:
    identity: Identity


@dataclass(frozen=True)
class GetRoleInput:
    identity: Identity
    role_id: UUID


@dataclass(frozen=True)
class CreateRoleInput:
    identity: Identity
    name: str
    description: str | None = None
    # raw request data; checked before it is stored
    permissions: Any = None
    context: RequestContext | None = None


@dataclass(frozen=True)
class UpdateRoleInput:
    """Fields left as None are unchanged."""

    identity: Identity
    role_id: UUID
    name: str | None = None
    description: str | None = None
    permissions: Any = None
    context: RequestContext | None = None


@dataclass(frozen=True)
class UpdateRolePermissionsInput:
    """Replaces the whole permission mapping of a role."""

    identity: Identity
    role_id: UUID
    permissions: Any
    context: RequestContext | None = None


@dataclass(frozen=True)
class DeleteRoleInput:
    identity: Identity
    role_id: UUID
    context: RequestContext | None = None


# --- Output Models ---


@dataclass(frozen=True)
class RoleListOutput:
    items: list[Role]
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class RoleOutput:
    role: Role | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True
