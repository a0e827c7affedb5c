"""
SQLite repositories.

Rows map one-to-one onto the domain entities. Timestamps are stored as ISO
strings, enums as their wire strings and structured values as JSON text.
Every ``sqlite3.Error`` leaves the adapter as a ``PersistenceError``.
"""

import builtins
import json
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

from newsdesk.components.articles.models import ArticleFilter
from newsdesk.components.articles.ports import Relation
from newsdesk.components.audit.models import AuditQuery
from newsdesk.components.errors import PersistenceError, SlugConflictError
from newsdesk.domain.codecs import ARTICLE_STATUS, CATEGORY_TYPE, LOG_LEVEL
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
from newsdesk.domain.policy import parse_permissions


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class SQLiteRepoBase:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Connection that commits on success and rolls back on failure."""
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


# --- Taxonomy ---


class SQLiteCategoryRepo(SQLiteRepoBase):
    def get_by_id(self, category_id: UUID) -> Category | None:
        with self._session() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE id = ?", (str(category_id),)
            ).fetchone()
        return self._map_row(row) if row else None

    def get_by_slug(self, slug: str) -> Category | None:
        with self._session() as conn:
            row = conn.execute("SELECT * FROM categories WHERE slug = ?", (slug,)).fetchone()
        return self._map_row(row) if row else None

    def list_all(self, category_type: CategoryType | None = None) -> list[Category]:
        sql = "SELECT * FROM categories"
        params: tuple[Any, ...] = ()
        if category_type is not None:
            sql += " WHERE type = ?"
            params = (CATEGORY_TYPE.encode(category_type),)
        sql += ' ORDER BY "order" ASC, name ASC'
        with self._session() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._map_row(r) for r in rows]

    def list_children(self, parent_id: UUID) -> list[Category]:
        with self._session() as conn:
            rows = conn.execute(
                'SELECT * FROM categories WHERE parent_id = ? ORDER BY "order" ASC, name ASC',
                (str(parent_id),),
            ).fetchall()
        return [self._map_row(r) for r in rows]

    def save(self, category: Category) -> Category:
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO categories (
                    id, name, slug, type, description, parent_id,
                    is_active, "order", created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    slug=excluded.slug,
                    type=excluded.type,
                    description=excluded.description,
                    parent_id=excluded.parent_id,
                    is_active=excluded.is_active,
                    "order"=excluded."order",
                    updated_at=excluded.updated_at
                """,
                (
                    str(category.id),
                    category.name,
                    category.slug,
                    CATEGORY_TYPE.encode(category.type),
                    category.description,
                    str(category.parent_id) if category.parent_id else None,
                    int(category.is_active),
                    category.order,
                    _dt(category.created_at),
                    _dt(category.updated_at),
                ),
            )
        return category

    def delete(self, category_id: UUID) -> None:
        with self._session() as conn:
            conn.execute("DELETE FROM categories WHERE id = ?", (str(category_id),))

    def _map_row(self, row: dict[str, Any]) -> Category:
        return category_from_row(row)


def category_from_row(row: dict[str, Any]) -> Category:
    return Category(
        id=UUID(row["id"]),
        name=row["name"],
        slug=row["slug"],
        type=CATEGORY_TYPE.decode(row["type"]),
        description=row["description"],
        parent_id=UUID(row["parent_id"]) if row["parent_id"] else None,
        is_active=bool(row["is_active"]),
        order=row["order"],
        created_at=parse_dt(row["created_at"]),
        updated_at=parse_dt(row["updated_at"]),
    )


class SQLiteTagRepo(SQLiteRepoBase):
    def get_by_id(self, tag_id: UUID) -> Tag | None:
        return self._get_one("id", str(tag_id))

    def get_by_slug(self, slug: str) -> Tag | None:
        return self._get_one("slug", slug)

    def get_by_name(self, name: str) -> Tag | None:
        return self._get_one("name", name)

    def _get_one(self, column: str, value: str) -> Tag | None:
        with self._session() as conn:
            row = conn.execute(f"SELECT * FROM tags WHERE {column} = ?", (value,)).fetchone()
        return self._map_row(row) if row else None

    def list(
        self, search: str | None = None, limit: int = 50, offset: int = 0
    ) -> tuple[builtins.list[Tag], int]:
        where = ""
        params: builtins.list[Any] = []
        if search:
            where = " WHERE name LIKE ? OR slug LIKE ?"
            params = [f"%{search}%", f"%{search}%"]
        with self._session() as conn:
            total = conn.execute(f"SELECT COUNT(*) AS n FROM tags{where}", params).fetchone()["n"]
            rows = conn.execute(
                f"SELECT * FROM tags{where} ORDER BY created_at DESC LIMIT ? OFFSET ?",
                [*params, limit, offset],
            ).fetchall()
        return [self._map_row(r) for r in rows], total

    def save(self, tag: Tag) -> Tag:
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO tags (id, name, slug, description, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    slug=excluded.slug,
                    description=excluded.description,
                    updated_at=excluded.updated_at
                """,
                (
                    str(tag.id),
                    tag.name,
                    tag.slug,
                    tag.description,
                    _dt(tag.created_at),
                    _dt(tag.updated_at),
                ),
            )
        return tag

    def delete(self, tag_id: UUID) -> None:
        with self._session() as conn:
            conn.execute("DELETE FROM tags WHERE id = ?", (str(tag_id),))

    def _map_row(self, row: dict[str, Any]) -> Tag:
        return tag_from_row(row)


def tag_from_row(row: dict[str, Any]) -> Tag:
    return Tag(
        id=UUID(row["id"]),
        name=row["name"],
        slug=row["slug"],
        description=row["description"],
        created_at=parse_dt(row["created_at"]),
        updated_at=parse_dt(row["updated_at"]),
    )


# --- Articles ---

_JOIN_TABLES: dict[Relation, tuple[str, str]] = {
    "categories": ("article_categories", "category_id"),
    "tags": ("article_tags", "tag_id"),
}

_ARTICLE_COLUMNS = (
    "id",
    "title",
    "subtitle",
    "slug",
    "excerpt",
    "content",
    "content_html",
    "status",
    "author_id",
    "featured_image",
    "seo_title",
    "seo_description",
    "seo_keywords",
    "is_featured",
    "is_breaking_news",
    "allow_comments",
    "visibility",
    "scheduled_at",
    "published_at",
    "review_notes",
    "word_count",
    "character_count",
    "reading_time",
    "views",
    "created_at",
    "updated_at",
)

_UPDATABLE_COLUMNS = [c for c in _ARTICLE_COLUMNS if c not in ("id", "created_at")]
_ARTICLE_UPSERT = (
    f"INSERT INTO articles ({', '.join(_ARTICLE_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _ARTICLE_COLUMNS)}) "
    "ON CONFLICT(id) DO UPDATE SET "
    + ", ".join(f"{c}=excluded.{c}" for c in _UPDATABLE_COLUMNS)
)


class SQLiteArticleRepo(SQLiteRepoBase):
    def find_by_id(self, article_id: UUID) -> Article | None:
        with self._session() as conn:
            row = conn.execute(
                "SELECT * FROM articles WHERE id = ?", (str(article_id),)
            ).fetchone()
        return self._map_row(row) if row else None

    def find_by_slug(self, slug: str) -> Article | None:
        with self._session() as conn:
            row = conn.execute("SELECT * FROM articles WHERE slug = ?", (slug,)).fetchone()
        return self._map_row(row) if row else None

    def save(self, article: Article) -> Article:
        with self._session() as conn:
            self._write_row(conn, article)
        return article

    def save_with_relations(
        self,
        article: Article,
        category_ids: Sequence[UUID] | None = None,
        tag_ids: Sequence[UUID] | None = None,
    ) -> Article:
        # one connection, one commit: a failing join row rolls back the article row
        with self._session() as conn:
            self._write_row(conn, article)
            if category_ids is not None:
                self._replace_join_rows(conn, article.id, "categories", category_ids)
            if tag_ids is not None:
                self._replace_join_rows(conn, article.id, "tags", tag_ids)
        return article

    def increment_views(self, article_id: UUID) -> None:
        with self._session() as conn:
            conn.execute(
                "UPDATE articles SET views = views + 1 WHERE id = ? AND status = ?",
                (str(article_id), ARTICLE_STATUS.encode(ArticleStatus.PUBLISHED)),
            )

    def delete(self, article_id: UUID) -> None:
        # join rows go with ON DELETE CASCADE
        with self._session() as conn:
            conn.execute("DELETE FROM articles WHERE id = ?", (str(article_id),))

    def _write_row(self, conn: sqlite3.Connection, article: Article) -> None:
        try:
            conn.execute(_ARTICLE_UPSERT, self._to_row(article))
        except sqlite3.IntegrityError as e:
            if "articles.slug" in str(e):
                raise SlugConflictError(article.slug) from e
            raise

    def _replace_join_rows(
        self,
        conn: sqlite3.Connection,
        article_id: UUID,
        relation: Relation,
        related_ids: Sequence[UUID],
    ) -> None:
        table, column = _JOIN_TABLES[relation]
        conn.execute(f"DELETE FROM {table} WHERE article_id = ?", (str(article_id),))
        conn.executemany(
            f"INSERT OR IGNORE INTO {table} (article_id, {column}) VALUES (?, ?)",
            [(str(article_id), str(related_id)) for related_id in related_ids],
        )

    def load_with_relations(self, article_id: UUID) -> ArticleDetail | None:
        with self._session() as conn:
            row = conn.execute(
                "SELECT * FROM articles WHERE id = ?", (str(article_id),)
            ).fetchone()
            if not row:
                return None
            category_rows = conn.execute(
                """
                SELECT c.* FROM categories c
                JOIN article_categories ac ON ac.category_id = c.id
                WHERE ac.article_id = ?
                ORDER BY c."order" ASC, c.name ASC
                """,
                (str(article_id),),
            ).fetchall()
            tag_rows = conn.execute(
                """
                SELECT t.* FROM tags t
                JOIN article_tags at ON at.tag_id = t.id
                WHERE at.article_id = ?
                ORDER BY t.name ASC
                """,
                (str(article_id),),
            ).fetchall()

        return ArticleDetail(
            article=self._map_row(row),
            categories=[category_from_row(r) for r in category_rows],
            tags=[tag_from_row(r) for r in tag_rows],
        )

    def list(self, query: ArticleFilter) -> tuple[builtins.list[Article], int]:
        clauses: builtins.list[str] = []
        params: builtins.list[Any] = []
        if query.status:
            clauses.append("status = ?")
            params.append(ARTICLE_STATUS.encode(query.status))
        if query.author_id:
            clauses.append("author_id = ?")
            params.append(str(query.author_id))
        if query.category_id:
            clauses.append(
                "EXISTS (SELECT 1 FROM article_categories ac "
                "WHERE ac.article_id = articles.id AND ac.category_id = ?)"
            )
            params.append(str(query.category_id))
        if query.tag_id:
            clauses.append(
                "EXISTS (SELECT 1 FROM article_tags at "
                "WHERE at.article_id = articles.id AND at.tag_id = ?)"
            )
            params.append(str(query.tag_id))
        if query.search:
            clauses.append("title LIKE ?")
            params.append(f"%{query.search}%")

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._session() as conn:
            total = conn.execute(
                f"SELECT COUNT(*) AS n FROM articles{where}", params
            ).fetchone()["n"]
            rows = conn.execute(
                f"SELECT * FROM articles{where} ORDER BY created_at DESC LIMIT ? OFFSET ?",
                [*params, query.limit, query.offset],
            ).fetchall()
        return [self._map_row(r) for r in rows], total

    def _to_row(self, a: Article) -> tuple[Any, ...]:
        return (
            str(a.id),
            a.title,
            a.subtitle,
            a.slug,
            a.excerpt,
            json.dumps(a.content),
            a.content_html,
            ARTICLE_STATUS.encode(a.status),
            str(a.author_id),
            a.featured_image,
            a.seo_title,
            a.seo_description,
            a.seo_keywords,
            int(a.is_featured),
            int(a.is_breaking_news),
            int(a.allow_comments),
            a.visibility,
            _dt(a.scheduled_at),
            _dt(a.published_at),
            a.review_notes,
            a.word_count,
            a.character_count,
            a.reading_time,
            a.views,
            _dt(a.created_at),
            _dt(a.updated_at),
        )

    def _map_row(self, row: dict[str, Any]) -> Article:
        return Article(
            id=UUID(row["id"]),
            title=row["title"],
            subtitle=row["subtitle"],
            slug=row["slug"],
            excerpt=row["excerpt"],
            content=json.loads(row["content"]),
            content_html=row["content_html"],
            status=ARTICLE_STATUS.decode(row["status"]),
            author_id=UUID(row["author_id"]),
            featured_image=row["featured_image"],
            seo_title=row["seo_title"],
            seo_description=row["seo_description"],
            seo_keywords=row["seo_keywords"],
            is_featured=bool(row["is_featured"]),
            is_breaking_news=bool(row["is_breaking_news"]),
            allow_comments=bool(row["allow_comments"]),
            visibility=row["visibility"],
            scheduled_at=parse_dt(row["scheduled_at"]),
            published_at=parse_dt(row["published_at"]),
            review_notes=row["review_notes"],
            word_count=row["word_count"],
            character_count=row["character_count"],
            reading_time=row["reading_time"],
            views=row["views"],
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )


# --- Roles ---


class SQLiteRoleRepo(SQLiteRepoBase):
    def get_by_id(self, role_id: UUID) -> Role | None:
        with self._session() as conn:
            row = conn.execute("SELECT * FROM roles WHERE id = ?", (str(role_id),)).fetchone()
        return self._map_row(row) if row else None

    def get_by_name(self, name: str) -> Role | None:
        with self._session() as conn:
            row = conn.execute("SELECT * FROM roles WHERE name = ?", (name,)).fetchone()
        return self._map_row(row) if row else None

    def list_all(self) -> builtins.list[Role]:
        with self._session() as conn:
            rows = conn.execute("SELECT * FROM roles ORDER BY name ASC").fetchall()
        return [self._map_row(r) for r in rows]

    def save(self, role: Role) -> Role:
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO roles (id, name, description, permissions, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    description=excluded.description,
                    permissions=excluded.permissions,
                    updated_at=excluded.updated_at
                """,
                (
                    str(role.id),
                    role.name,
                    role.description,
                    json.dumps({m: list(a) for m, a in role.permissions.items()}),
                    _dt(role.created_at),
                    _dt(role.updated_at),
                ),
            )
        return role

    def delete(self, role_id: UUID) -> None:
        with self._session() as conn:
            conn.execute("DELETE FROM roles WHERE id = ?", (str(role_id),))

    def _map_row(self, row: dict[str, Any]) -> Role:
        # malformed permission text authorizes nothing
        return Role(
            id=UUID(row["id"]),
            name=row["name"],
            description=row["description"],
            permissions=parse_permissions(row["permissions"]),
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )


# --- Audit log ---


class SQLiteLogRepo(SQLiteRepoBase):
    """Audit sink and queryable store backed by the ``logs`` table."""

    def record(self, event: AuditLogEvent) -> None:
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO logs (
                    id, user_id, action, module, endpoint, method, status_code,
                    ip_address, user_agent, message, level, metadata, timestamp
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(event.id),
                    str(event.user_id) if event.user_id else None,
                    event.action,
                    event.module,
                    event.endpoint,
                    event.method,
                    event.status_code,
                    event.ip_address,
                    event.user_agent,
                    event.message,
                    LOG_LEVEL.encode(event.level),
                    json.dumps(event.metadata, default=str) if event.metadata is not None else None,
                    _dt(event.timestamp),
                ),
            )

    def get_by_id(self, event_id: UUID) -> AuditLogEvent | None:
        with self._session() as conn:
            row = conn.execute("SELECT * FROM logs WHERE id = ?", (str(event_id),)).fetchone()
        return self._map_row(row) if row else None

    def query(self, query: AuditQuery) -> tuple[builtins.list[AuditLogEvent], int]:
        where, params = self._where(query)
        with self._session() as conn:
            total = conn.execute(f"SELECT COUNT(*) AS n FROM logs{where}", params).fetchone()["n"]
            rows = conn.execute(
                f"SELECT * FROM logs{where} ORDER BY timestamp DESC LIMIT ? OFFSET ?",
                [*params, query.limit, query.offset],
            ).fetchall()
        return [self._map_row(r) for r in rows], total

    def count_by_level(self, query: AuditQuery) -> dict[str, int]:
        where, params = self._where(query)
        with self._session() as conn:
            rows = conn.execute(
                f"SELECT level, COUNT(*) AS n FROM logs{where} GROUP BY level", params
            ).fetchall()
        return {r["level"]: r["n"] for r in rows}

    def _where(self, query: AuditQuery) -> tuple[str, builtins.list[Any]]:
        clauses: builtins.list[str] = []
        params: builtins.list[Any] = []
        if query.user_id:
            clauses.append("user_id = ?")
            params.append(str(query.user_id))
        if query.module:
            clauses.append("module = ?")
            params.append(query.module)
        if query.action:
            clauses.append("action = ?")
            params.append(query.action)
        if query.level:
            clauses.append("level = ?")
            params.append(LOG_LEVEL.encode(query.level))
        if query.start_time:
            clauses.append("timestamp >= ?")
            params.append(_dt(query.start_time))
        if query.end_time:
            clauses.append("timestamp <= ?")
            params.append(_dt(query.end_time))
        return (f" WHERE {' AND '.join(clauses)}" if clauses else ""), params

    def _map_row(self, row: dict[str, Any]) -> AuditLogEvent:
        return AuditLogEvent(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]) if row["user_id"] else None,
            action=row["action"],
            module=row["module"],
            endpoint=row["endpoint"],
            method=row["method"],
            status_code=row["status_code"],
            ip_address=row["ip_address"],
            user_agent=row["user_agent"],
            message=row["message"],
            level=LOG_LEVEL.decode(row["level"]),
            metadata=json.loads(row["metadata"]) if row["metadata"] else None,
            timestamp=parse_dt(row["timestamp"]),
        )
