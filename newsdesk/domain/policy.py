import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

# module name -> ordered, de-duplicated action names
Permissions = dict[str, tuple[str, ...]]


@dataclass(frozen=True)
class Identity:
    """The authenticated caller of a workflow operation."""

    user_id: UUID
    role_id: UUID | None = None
    role_name: str | None = None
    permissions: Permissions = field(default_factory=dict)
    is_admin_equivalent: bool = False


def parse_permissions(raw: Any) -> Permissions:
    """
    Parse a role's permission data.

    Accepts JSON text or an already decoded mapping. Anything malformed
    authorizes nothing: invalid JSON or a non-mapping yields {}, and entries
    whose value is not a list of strings are dropped.
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except ValueError:
            return {}

    if not isinstance(raw, Mapping):
        return {}

    parsed: Permissions = {}
    for module, actions in raw.items():
        if not isinstance(module, str) or not isinstance(actions, (list, tuple)):
            continue
        if not all(isinstance(a, str) for a in actions):
            continue
        # dict.fromkeys keeps first-seen order
        parsed[module] = tuple(dict.fromkeys(actions))
    return parsed


def has_permission(permissions: Mapping[str, Sequence[str]], module: str, action: str) -> bool:
    """Exact match only: no wildcards, no hierarchy."""
    return action in permissions.get(module, ())


def _split(entry: str) -> tuple[str, str] | None:
    if ":" not in entry:
        return None
    module, action = entry.split(":", 1)
    return module, action


def has_any_permission(
    permissions: Mapping[str, Sequence[str]], required: Iterable[str]
) -> bool:
    """True if any "module:action" entry is granted."""
    for entry in required:
        pair = _split(entry)
        if pair and has_permission(permissions, *pair):
            return True
    return False


def has_all_permissions(
    permissions: Mapping[str, Sequence[str]], required: Iterable[str]
) -> bool:
    """True if every "module:action" entry is granted. An empty list grants nothing."""
    entries = list(required)
    if not entries:
        return False
    for entry in entries:
        pair = _split(entry)
        if not pair or not has_permission(permissions, *pair):
            return False
    return True


class PermissionModel:
    """
    Role capability checks used by the workflow components.

    A role is admin-equivalent when its name is listed in ``admin_roles`` or
    when it holds every permission in ``admin_permissions``. Admin-equivalent
    callers bypass ownership and status restrictions.
    """

    def __init__(
        self,
        admin_roles: Sequence[str] = ("admin",),
        admin_permissions: Sequence[str] = ("articles:approve", "articles:publish"),
    ) -> None:
        self.admin_roles = frozenset(admin_roles)
        self.admin_permissions = tuple(admin_permissions)

    def is_admin_equivalent(
        self, role_name: str | None, permissions: Mapping[str, Sequence[str]]
    ) -> bool:
        if role_name is not None and role_name in self.admin_roles:
            return True
        return has_all_permissions(permissions, self.admin_permissions)

    def is_privileged(self, identity: Identity) -> bool:
        return identity.is_admin_equivalent or self.is_admin_equivalent(
            identity.role_name, identity.permissions
        )

    def can(self, identity: Identity, module: str, action: str) -> bool:
        """Admin-equivalent callers, or an explicit grant for module:action."""
        if self.is_privileged(identity):
            return True
        return has_permission(identity.permissions, module, action)

    def build_identity(
        self,
        user_id: UUID,
        role_id: UUID | None,
        role_name: str | None,
        permissions: Any,
    ) -> Identity:
        parsed = parse_permissions(permissions)
        return Identity(
            user_id=user_id,
            role_id=role_id,
            role_name=role_name,
            permissions=parsed,
            is_admin_equivalent=self.is_admin_equivalent(role_name, parsed),
        )
