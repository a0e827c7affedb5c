"""
Categories component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from newsdesk.components.audit.models import RequestContext
from newsdesk.components.errors import OperationError
from newsdesk.domain.entities import Category, CategoryType
from newsdesk.domain.policy import Identity
from newsdesk.domain.tree import CategoryNode

UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"name", "slug", "type", "description", "parent_id", "is_active", "order"}
)


# --- Input Models ---


@dataclass(frozen=True)
class GetTreeInput:
    category_type: CategoryType | None = None


@dataclass(frozen=True)
class GetCategoryInput:
    """Input for reading one category with its descendants."""

    category_id: UUID


@dataclass(frozen=True)
class CreateCategoryInput:
    identity: Identity
    name: str
    slug: str | None = None
    type: CategoryType = CategoryType.OTHER
    description: str | None = None
    parent_id: UUID | None = None
    order: int = 0
    context: RequestContext | None = None


@dataclass(frozen=True)
class UpdateCategoryInput:
    """Partial update; ``updates`` holds only the supplied fields."""

    identity: Identity
    category_id: UUID
    updates: dict[str, Any] = field(default_factory=dict)
    context: RequestContext | None = None


@dataclass(frozen=True)
class DeleteCategoryInput:
    identity: Identity
    category_id: UUID
    context: RequestContext | None = None


@dataclass(frozen=True)
class MoveCategoryInput:
    """Reparent a category; a parent_id of None detaches it to the root."""

    identity: Identity
    category_id: UUID
    parent_id: UUID | None
    context: RequestContext | None = None


# --- Output Models ---


@dataclass(frozen=True)
class CategoryTreeOutput:
    roots: list[CategoryNode]
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class CategoryNodeOutput:
    node: CategoryNode | None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class CategoryOperationOutput:
    """Output for category mutations."""

    category: Category | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True
