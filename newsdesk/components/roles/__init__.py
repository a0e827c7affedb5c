"""
Roles component - role and permission management.
"""

from .component import RoleComponent, RoleInput, RoleResult
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

__all__ = [
    "RoleComponent",
    "RoleInput",
    "RoleResult",
    "ListRolesInput",
    "GetRoleInput",
    "CreateRoleInput",
    "UpdateRoleInput",
    "UpdateRolePermissionsInput",
    "DeleteRoleInput",
    "RoleListOutput",
    "RoleOutput",
    "RoleRepoPort",
    "ClockPort",
]
