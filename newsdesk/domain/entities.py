from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


# --- Enums ---

class ArticleStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUBLISHED = "published"


class CategoryType(str, Enum):
    EVENT = "event"
    NEWS_TYPE = "news_type"
    OTHER = "other"


class LogLevel(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


# --- Taxonomy ---

class Category(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str
    type: CategoryType = CategoryType.OTHER
    description: str | None = None
    parent_id: UUID | None = None
    is_active: bool = True
    order: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Tag(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str
    description: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# --- Roles ---

class Role(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    description: str | None = None
    # module name -> ordered action names
    permissions: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# --- Articles ---

class Article(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    subtitle: str | None = None
    slug: str
    excerpt: str | None = None
    content: dict[str, Any] = Field(default_factory=lambda: {"type": "doc", "content": []})
    content_html: str | None = None
    status: ArticleStatus = ArticleStatus.DRAFT
    author_id: UUID
    featured_image: str | None = None

    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None

    is_featured: bool = False
    is_breaking_news: bool = False
    allow_comments: bool = True
    visibility: str = "web,mobile"

    scheduled_at: datetime | None = None
    published_at: datetime | None = None
    review_notes: str | None = None

    word_count: int = Field(default=0, ge=0)
    character_count: int = Field(default=0, ge=0)
    reading_time: int = Field(default=0, ge=0)
    views: int = Field(default=0, ge=0)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ArticleDetail(BaseModel):
    """An article together with its resolved category and tag associations."""

    article: Article
    categories: list[Category] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)


# --- Audit ---

class AuditLogEvent(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID | None = None
    action: str
    module: str
    endpoint: str
    method: str
    status_code: int
    ip_address: str | None = None
    user_agent: str | None = None
    message: str
    level: LogLevel = LogLevel.INFO
    metadata: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=utc_now)
