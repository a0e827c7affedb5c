"""
Roles component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from newsdesk.domain.entities import Role


class RoleRepoPort(Protocol):
    """Repository interface for role persistence."""

    def get_by_id(self, role_id: UUID) -> Role | None:
        """Get role by ID."""
        ...

    def get_by_name(self, name: str) -> Role | None:
        """Get role by exact name."""
        ...

    def list_all(self) -> list[Role]:
        """All roles ordered by name."""
        ...

    def save(self, role: Role) -> Role:
        """Insert or replace a role."""
        ...

    def delete(self, role_id: UUID) -> None: ...


class ClockPort(Protocol):
    def now(self) -> datetime: ...
