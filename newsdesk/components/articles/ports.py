"""
Articles component port definitions.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Literal, Protocol
from uuid import UUID

from newsdesk.components.articles.models import ArticleFilter
from newsdesk.domain.entities import Article, ArticleDetail, Category, Tag

Relation = Literal["categories", "tags"]


class ArticleRepoPort(Protocol):
    """Repository interface for article persistence and its join rows."""

    def find_by_id(self, article_id: UUID) -> Article | None:
        """Get article by ID."""
        ...

    def find_by_slug(self, slug: str) -> Article | None:
        """Get article by slug."""
        ...

    def save(self, article: Article) -> Article:
        """
        Insert or fully replace the article row.

        Raises SlugConflictError when another article holds the slug.
        """
        ...

    def save_with_relations(
        self,
        article: Article,
        category_ids: Sequence[UUID] | None = None,
        tag_ids: Sequence[UUID] | None = None,
    ) -> Article:
        """
        Write the article row and replace its associations as one unit.

        ``None`` leaves a relation as it is; a sequence (possibly empty)
        replaces it. Either everything is stored or nothing is.
        Raises SlugConflictError when another article holds the slug.
        """
        ...

    def increment_views(self, article_id: UUID) -> None:
        """Add one to the view counter of a published article."""
        ...

    def delete(self, article_id: UUID) -> None:
        """Delete the article and its join rows."""
        ...

    def load_with_relations(self, article_id: UUID) -> ArticleDetail | None:
        """Get the article with its categories and tags resolved."""
        ...

    def list(self, query: ArticleFilter) -> tuple[list[Article], int]:
        """Matching articles, newest first, plus the total count."""
        ...


class CategoryLookupPort(Protocol):
    def get_by_id(self, category_id: UUID) -> Category | None: ...


class TagLookupPort(Protocol):
    def get_by_id(self, tag_id: UUID) -> Tag | None: ...


class ClockPort(Protocol):
    """Port for time operations."""

    def now(self) -> datetime:
        """Get current UTC time."""
        ...

