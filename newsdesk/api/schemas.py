from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from newsdesk.domain.entities import Article, AuditLogEvent, Category, Role, Tag
from newsdesk.domain.tree import CategoryNode


# --- Articles ---
class ArticleCreateRequest(BaseModel):
    title: str
    content: dict[str, Any] | str | None = None
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


class ArticleUpdateRequest(BaseModel):
    """Partial update. Only the fields present in the body are applied."""

    # Unknown fields are passed through so the workflow can reject them by name.
    model_config = ConfigDict(extra="allow")

    title: str | None = None
    subtitle: str | None = None
    slug: str | None = None
    excerpt: str | None = None
    content: dict[str, Any] | str | None = None
    content_html: str | None = None
    featured_image: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None
    is_featured: bool | None = None
    is_breaking_news: bool | None = None
    allow_comments: bool | None = None
    visibility: str | None = None
    scheduled_at: datetime | None = None
    category_ids: list[UUID] | None = None
    tag_ids: list[UUID] | None = None


class ReviewRequest(BaseModel):
    review_notes: str | None = None


class ArticleListResponse(BaseModel):
    items: list[Article]
    total: int
    page: int
    limit: int
    total_pages: int


# --- Categories ---
class CategoryCreateRequest(BaseModel):
    name: str
    slug: str | None = None
    type: str = "other"
    description: str | None = None
    parent_id: UUID | None = None
    order: int = 0


class CategoryUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    slug: str | None = None
    type: str | None = None
    description: str | None = None
    parent_id: UUID | None = None
    is_active: bool | None = None
    order: int | None = None


class CategoryMoveRequest(BaseModel):
    parent_id: UUID | None = None


class CategoryNodeResponse(BaseModel):
    category: Category
    children: list["CategoryNodeResponse"] = []

    @classmethod
    def from_node(cls, node: CategoryNode) -> "CategoryNodeResponse":
        return cls(
            category=node.category,
            children=[cls.from_node(child) for child in node.children],
        )


# --- Tags ---
class TagCreateRequest(BaseModel):
    name: str
    slug: str | None = None
    description: str | None = None


class TagUpdateRequest(BaseModel):
    name: str | None = None
    slug: str | None = None
    description: str | None = None


class TagListResponse(BaseModel):
    items: list[Tag]
    total: int
    page: int
    limit: int


# --- Roles ---
# permissions stay untyped here; the component answers malformed ones with 400
class RoleCreateRequest(BaseModel):
    name: str
    description: str | None = None
    permissions: Any = None


class RoleUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    permissions: Any = None


class RolePermissionsRequest(BaseModel):
    permissions: Any


class RoleListResponse(BaseModel):
    items: list[Role]


# --- Logs ---
class LogListResponse(BaseModel):
    items: list[AuditLogEvent]
    total: int
    page: int
    limit: int
    total_pages: int


class LogStatsResponse(BaseModel):
    total: int
    by_level: dict[str, int]
