"""
In-memory repositories for tests and local development.

Join rows are kept as id pairs and resolved through the category and tag
repositories on read, so removing a category or tag drops its associations
the same way the SQL cascade does.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from uuid import UUID

from newsdesk.components.articles.models import ArticleFilter
from newsdesk.components.articles.ports import Relation
from newsdesk.components.audit.models import AuditQuery
from newsdesk.components.errors import SlugConflictError
from newsdesk.domain.entities import (
    Article,
    ArticleDetail,
    ArticleStatus,
    AuditLogEvent,
    Category,
    CategoryType,
    Role,
    Tag,
)


class InMemoryCategoryRepo:
    def __init__(self) -> None:
        self._items: dict[UUID, Category] = {}

    def get_by_id(self, category_id: UUID) -> Category | None:
        return self._items.get(category_id)

    def get_by_slug(self, slug: str) -> Category | None:
        for item in self._items.values():
            if item.slug == slug:
                return item
        return None

    def list_all(self, category_type: CategoryType | None = None) -> list[Category]:
        """Store order: order ascending, then name."""
        items = [
            c for c in self._items.values() if category_type is None or c.type == category_type
        ]
        items.sort(key=lambda c: (c.order, c.name))
        return items

    def list_children(self, parent_id: UUID) -> list[Category]:
        return [c for c in self.list_all() if c.parent_id == parent_id]

    def save(self, category: Category) -> Category:
        self._items[category.id] = category
        return category

    def delete(self, category_id: UUID) -> None:
        self._items.pop(category_id, None)


class InMemoryTagRepo:
    def __init__(self) -> None:
        self._items: dict[UUID, Tag] = {}

    def get_by_id(self, tag_id: UUID) -> Tag | None:
        return self._items.get(tag_id)

    def get_by_slug(self, slug: str) -> Tag | None:
        for item in self._items.values():
            if item.slug == slug:
                return item
        return None

    def get_by_name(self, name: str) -> Tag | None:
        for item in self._items.values():
            if item.name == name:
                return item
        return None

    def list(
        self, search: str | None = None, limit: int = 50, offset: int = 0
    ) -> tuple[list[Tag], int]:
        items = list(self._items.values())
        if search:
            needle = search.lower()
            items = [t for t in items if needle in t.name.lower() or needle in t.slug]
        items.sort(key=lambda t: t.created_at, reverse=True)
        return items[offset : offset + limit], len(items)

    def save(self, tag: Tag) -> Tag:
        self._items[tag.id] = tag
        return tag

    def delete(self, tag_id: UUID) -> None:
        self._items.pop(tag_id, None)


class InMemoryArticleRepo:
    def __init__(
        self,
        categories: InMemoryCategoryRepo | None = None,
        tags: InMemoryTagRepo | None = None,
    ) -> None:
        self._items: dict[UUID, Article] = {}
        self._joins: dict[Relation, set[tuple[UUID, UUID]]] = {"categories": set(), "tags": set()}
        self._categories = categories or InMemoryCategoryRepo()
        self._tags = tags or InMemoryTagRepo()

    def find_by_id(self, article_id: UUID) -> Article | None:
        return self._items.get(article_id)

    def find_by_slug(self, slug: str) -> Article | None:
        for item in self._items.values():
            if item.slug == slug:
                return item
        return None

    def save(self, article: Article) -> Article:
        for item in self._items.values():
            if item.slug == article.slug and item.id != article.id:
                raise SlugConflictError(article.slug)
        self._items[article.id] = article
        return article

    def save_with_relations(
        self,
        article: Article,
        category_ids: Sequence[UUID] | None = None,
        tag_ids: Sequence[UUID] | None = None,
    ) -> Article:
        self.save(article)
        if category_ids is not None:
            self._replace(article.id, "categories", category_ids)
        if tag_ids is not None:
            self._replace(article.id, "tags", tag_ids)
        return article

    def increment_views(self, article_id: UUID) -> None:
        article = self._items.get(article_id)
        if article is not None and article.status == ArticleStatus.PUBLISHED:
            self._items[article_id] = article.model_copy(update={"views": article.views + 1})

    def delete(self, article_id: UUID) -> None:
        self._items.pop(article_id, None)
        for relation in self._joins:
            self._replace(article_id, relation, ())

    def _replace(self, article_id: UUID, relation: Relation, related_ids: Sequence[UUID]) -> None:
        kept = {pair for pair in self._joins[relation] if pair[0] != article_id}
        self._joins[relation] = kept | {(article_id, rid) for rid in related_ids}

    def related_ids(self, article_id: UUID, relation: Relation) -> set[UUID]:
        return {rid for aid, rid in self._joins[relation] if aid == article_id}

    def load_with_relations(self, article_id: UUID) -> ArticleDetail | None:
        article = self._items.get(article_id)
        if article is None:
            return None

        categories = [
            c
            for c in self._categories.list_all()
            if c.id in self.related_ids(article_id, "categories")
        ]
        tag_ids = self.related_ids(article_id, "tags")
        tags = sorted(
            (t for t in (self._tags.get_by_id(i) for i in tag_ids) if t is not None),
            key=lambda t: t.name,
        )
        return ArticleDetail(article=article, categories=categories, tags=tags)

    def list(self, query: ArticleFilter) -> tuple[list[Article], int]:
        items = list(self._items.values())
        if query.status:
            items = [a for a in items if a.status == query.status]
        if query.author_id:
            items = [a for a in items if a.author_id == query.author_id]
        if query.category_id:
            items = [
                a for a in items if query.category_id in self.related_ids(a.id, "categories")
            ]
        if query.tag_id:
            items = [a for a in items if query.tag_id in self.related_ids(a.id, "tags")]
        if query.search:
            needle = query.search.lower()
            items = [a for a in items if needle in a.title.lower()]

        items.sort(key=lambda a: a.created_at, reverse=True)
        return items[query.offset : query.offset + query.limit], len(items)

    def add(self, article: Article) -> None:
        """Seed an article directly (for testing)."""
        self._items[article.id] = article


class InMemoryRoleRepo:
    def __init__(self) -> None:
        self._items: dict[UUID, Role] = {}

    def get_by_id(self, role_id: UUID) -> Role | None:
        return self._items.get(role_id)

    def get_by_name(self, name: str) -> Role | None:
        for item in self._items.values():
            if item.name == name:
                return item
        return None

    def list_all(self) -> list[Role]:
        return sorted(self._items.values(), key=lambda r: r.name)

    def save(self, role: Role) -> Role:
        self._items[role.id] = role
        return role

    def delete(self, role_id: UUID) -> None:
        self._items.pop(role_id, None)


class InMemoryAuditStore:
    """Audit sink and queryable store in one."""

    def __init__(self) -> None:
        self._events: dict[UUID, AuditLogEvent] = {}

    def record(self, event: AuditLogEvent) -> None:
        self._events[event.id] = event

    @property
    def events(self) -> list[AuditLogEvent]:
        """Recorded events in arrival order."""
        return list(self._events.values())

    def get_by_id(self, event_id: UUID) -> AuditLogEvent | None:
        return self._events.get(event_id)

    def _matching(self, query: AuditQuery) -> list[AuditLogEvent]:
        results = list(self._events.values())
        if query.user_id:
            results = [e for e in results if e.user_id == query.user_id]
        if query.module:
            results = [e for e in results if e.module == query.module]
        if query.action:
            results = [e for e in results if e.action == query.action]
        if query.level:
            results = [e for e in results if e.level == query.level]
        if query.start_time:
            results = [e for e in results if e.timestamp >= query.start_time]
        if query.end_time:
            results = [e for e in results if e.timestamp <= query.end_time]
        return results

    def query(self, query: AuditQuery) -> tuple[list[AuditLogEvent], int]:
        results = self._matching(query)
        results.sort(key=lambda e: e.timestamp, reverse=True)
        return results[query.offset : query.offset + query.limit], len(results)

    def count_by_level(self, query: AuditQuery) -> dict[str, int]:
        counts = Counter(e.level.value for e in self._matching(query))
        return dict(counts)

    def clear(self) -> None:
        """Clear all events (for testing)."""
        self._events.clear()
