"""
Tags component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from newsdesk.domain.entities import Tag


class TagRepoPort(Protocol):
    """Repository interface for tag persistence."""

    def get_by_id(self, tag_id: UUID) -> Tag | None:
        """Get tag by ID."""
        ...

    def get_by_slug(self, slug: str) -> Tag | None:
        """Get tag by slug."""
        ...

    def get_by_name(self, name: str) -> Tag | None:
        """Get tag by exact name."""
        ...

    def list(
        self, search: str | None = None, limit: int = 50, offset: int = 0
    ) -> tuple[list[Tag], int]:
        """Tags whose name or slug contains ``search``, newest first, plus the total."""
        ...

    def save(self, tag: Tag) -> Tag:
        """Insert or replace a tag."""
        ...

    def delete(self, tag_id: UUID) -> None:
        """Delete a tag; its article associations go with it."""
        ...


class ClockPort(Protocol):
    def now(self) -> datetime: ...
