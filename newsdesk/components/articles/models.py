"""
Articles component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from newsdesk.components.audit.models import RequestContext
from newsdesk.components.errors import OperationError
from newsdesk.domain.entities import Article, ArticleDetail, ArticleStatus
from newsdesk.domain.policy import Identity
from newsdesk.rules.models import ContentRules

# Fields an Update may touch. Status, authorship, counters and derived stats
# only change through their own operations.
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "subtitle",
        "slug",
        "excerpt",
        "content",
        "content_html",
        "featured_image",
        "seo_title",
        "seo_description",
        "seo_keywords",
        "is_featured",
        "is_breaking_news",
        "allow_comments",
        "visibility",
        "scheduled_at",
    }
)


@dataclass(frozen=True)
class WorkflowSettings:
    """Content limits and defaults applied by the workflow."""

    words_per_minute: int = 200
    default_visibility: str = "web,mobile"
    title_max_length: int = 500
    slug_max_length: int = 500

    @classmethod
    def from_rules(cls, content: ContentRules) -> WorkflowSettings:
        return cls(
            words_per_minute=content.words_per_minute,
            default_visibility=content.default_visibility,
            title_max_length=content.title_max_length,
            slug_max_length=content.slug_max_length,
        )


@dataclass
class ArticleFilter:
    """Repository-level list filter."""

    status: ArticleStatus | None = None
    author_id: UUID | None = None
    category_id: UUID | None = None
    tag_id: UUID | None = None
    search: str | None = None
    limit: int = 10
    offset: int = 0


# --- Input Models ---


@dataclass(frozen=True)
class CreateArticleInput:
    """Input for creating a new draft article."""

    identity: Identity
    title: str
    content: dict[str, Any] | str | None
    subtitle: str | None = None
    slug: str | None = None
    excerpt: str | None = None
    content_html: str | None = None
    featured_image: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None
    is_featured: bool = False
    is_breaking_news: bool = False
    allow_comments: bool = True
    visibility: str | None = None
    scheduled_at: datetime | None = None
    category_ids: list[UUID] | None = None
    tag_ids: list[UUID] | None = None
    context: RequestContext | None = None


@dataclass(frozen=True)
class UpdateArticleInput:
    """
    Input for a partial update.

    ``updates`` holds only the supplied fields (see UPDATABLE_FIELDS).
    ``category_ids``/``tag_ids`` of None leave associations untouched; a list
    replaces them.
    """

    identity: Identity
    article_id: UUID
    updates: dict[str, Any] = field(default_factory=dict)
    category_ids: list[UUID] | None = None
    tag_ids: list[UUID] | None = None
    context: RequestContext | None = None


@dataclass(frozen=True)
class SubmitArticleInput:
    identity: Identity
    article_id: UUID
    context: RequestContext | None = None


@dataclass(frozen=True)
class ApproveArticleInput:
    identity: Identity
    article_id: UUID
    review_notes: str | None = None
    context: RequestContext | None = None


@dataclass(frozen=True)
class RejectArticleInput:
    identity: Identity
    article_id: UUID
    review_notes: str | None = None
    context: RequestContext | None = None


@dataclass(frozen=True)
class PublishArticleInput:
    identity: Identity
    article_id: UUID
    context: RequestContext | None = None


@dataclass(frozen=True)
class DeleteArticleInput:
    identity: Identity
    article_id: UUID
    context: RequestContext | None = None


@dataclass(frozen=True)
class GetArticleInput:
    identity: Identity
    article_id: UUID


@dataclass(frozen=True)
class ReadPublishedArticleInput:
    """Anonymous read of a published article by slug; counts one view."""

    slug: str


@dataclass(frozen=True)
class ListArticlesInput:
    """Input for listing articles with filters and pagination."""

    identity: Identity
    status: ArticleStatus | None = None
    author_id: UUID | None = None
    category_id: UUID | None = None
    tag_id: UUID | None = None
    search: str | None = None
    page: int = 1
    limit: int = 10


# --- Output Models ---


@dataclass(frozen=True)
class ArticleOperationOutput:
    """Output for single-article operations: the reloaded article with relations."""

    detail: ArticleDetail | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ArticleListOutput:
    """Output containing a page of articles."""

    items: list[Article]
    total: int
    page: int
    limit: int
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit > 0 else 0
