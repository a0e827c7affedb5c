"""
Categories component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from newsdesk.domain.entities import Category, CategoryType


class CategoryRepoPort(Protocol):
    """Repository interface for category persistence."""

    def get_by_id(self, category_id: UUID) -> Category | None:
        """Get category by ID."""
        ...

    def get_by_slug(self, slug: str) -> Category | None:
        """Get category by slug."""
        ...

    def list_all(self, category_type: CategoryType | None = None) -> list[Category]:
        """All categories ordered by order, then name."""
        ...

    def list_children(self, parent_id: UUID) -> list[Category]:
        """Direct children of a category."""
        ...

    def save(self, category: Category) -> Category:
        """Insert or replace a category."""
        ...

    def delete(self, category_id: UUID) -> None:
        """Delete a category; its article associations go with it."""
        ...


class ClockPort(Protocol):
    def now(self) -> datetime: ...
