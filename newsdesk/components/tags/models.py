"""
Tags component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from newsdesk.components.audit.models import RequestContext
from newsdesk.components.errors import OperationError
from newsdesk.domain.entities import Tag
from newsdesk.domain.policy import Identity

# --- Input Models ---


@dataclass(frozen=True)
class ListTagsInput:
    search: str | None = None
    page: int = 1
    limit: int = 50


@dataclass(frozen=True)
class GetTagInput:
    tag_id: UUID


@dataclass(frozen=True)
class CreateTagInput:
    identity: Identity
    name: str
    slug: str | None = None
    description: str | None = None
    context: RequestContext | None = None


@dataclass(frozen=True)
class UpdateTagInput:
    """Fields left as None are unchanged."""

    identity: Identity
    tag_id: UUID
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    context: RequestContext | None = None


@dataclass(frozen=True)
class DeleteTagInput:
    identity: Identity
    tag_id: UUID
    context: RequestContext | None = None


# --- Output Models ---


@dataclass(frozen=True)
class TagListOutput:
    items: list[Tag]
    total: int
    page: int
    limit: int
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit > 0 else 0


@dataclass(frozen=True)
class TagOutput:
    tag: Tag | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True
