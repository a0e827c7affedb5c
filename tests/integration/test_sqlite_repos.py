"""SQLite repository contract tests against a migrated database."""

import sqlite3
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

import pytest

from newsdesk.adapters.sqlite import (
    SQLiteArticleRepo,
    SQLiteCategoryRepo,
    SQLiteLogRepo,
    SQLiteRoleRepo,
    SQLiteTagRepo,
)
from newsdesk.components.articles.models import ArticleFilter
from newsdesk.components.audit.models import AuditQuery
from newsdesk.components.errors import PersistenceError, SlugConflictError
from newsdesk.domain.entities import (
    Article,
    ArticleStatus,
    AuditLogEvent,
    Category,
    CategoryType,
    LogLevel,
    Role,
    Tag,
)

T0 = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


# --- Categories ---


def test_category_round_trip_and_store_order(db_path: str) -> None:
    repo = SQLiteCategoryRepo(db_path)
    news = repo.save(Category(name="News", slug="news", order=1, type=CategoryType.NEWS_TYPE))
    repo.save(Category(name="Beta", slug="beta", order=0))
    repo.save(Category(name="Alpha", slug="alpha", order=0, parent_id=news.id))

    assert repo.get_by_id(news.id) == news
    assert repo.get_by_slug("news").type == CategoryType.NEWS_TYPE
    assert [c.slug for c in repo.list_all()] == ["alpha", "beta", "news"]
    assert [c.slug for c in repo.list_all(CategoryType.NEWS_TYPE)] == ["news"]
    assert [c.slug for c in repo.list_children(news.id)] == ["alpha"]


def test_category_upsert_keeps_single_row(db_path: str) -> None:
    repo = SQLiteCategoryRepo(db_path)
    cat = repo.save(Category(name="News", slug="news"))

    repo.save(cat.model_copy(update={"name": "Headlines", "is_active": False}))

    stored = repo.get_by_id(cat.id)
    assert stored.name == "Headlines"
    assert stored.is_active is False
    assert len(repo.list_all()) == 1


def test_duplicate_slug_is_persistence_error(db_path: str) -> None:
    repo = SQLiteCategoryRepo(db_path)
    repo.save(Category(name="News", slug="news"))

    with pytest.raises(PersistenceError):
        repo.save(Category(name="Other", slug="news"))


# --- Tags ---


def test_tag_search_and_newest_first(db_path: str) -> None:
    repo = SQLiteTagRepo(db_path)
    repo.save(Tag(name="Economy", slug="economy", created_at=at(1)))
    repo.save(Tag(name="Ecology", slug="ecology", created_at=at(2)))
    repo.save(Tag(name="Sport", slug="sport", created_at=at(3)))

    items, total = repo.list(search="eco", limit=1, offset=0)

    assert total == 2
    assert [t.slug for t in items] == ["ecology"]
    assert repo.get_by_name("Sport").slug == "sport"


# --- Articles ---


@pytest.fixture
def repos(db_path: str) -> tuple[SQLiteArticleRepo, SQLiteCategoryRepo, SQLiteTagRepo]:
    return SQLiteArticleRepo(db_path), SQLiteCategoryRepo(db_path), SQLiteTagRepo(db_path)


def test_article_round_trip(repos) -> None:
    articles, _, _ = repos
    article = Article(
        title="Hello",
        slug="hello",
        author_id=uuid4(),
        content={"type": "doc", "content": [{"type": "text", "text": "hi"}]},
        status=ArticleStatus.UNDER_REVIEW,
        scheduled_at=at(30),
        is_breaking_news=True,
        word_count=1,
    )

    articles.save(article)

    assert articles.find_by_id(article.id) == article
    assert articles.find_by_slug("hello").id == article.id
    assert articles.find_by_id(uuid4()) is None


def test_relations_and_cascades(repos) -> None:
    articles, categories, tags = repos
    news = categories.save(Category(name="News", slug="news"))
    alpha = tags.save(Tag(name="Alpha", slug="alpha"))
    beta = tags.save(Tag(name="Beta", slug="beta"))
    article = articles.save_with_relations(
        Article(title="A", slug="a", author_id=uuid4()),
        category_ids=[news.id],
        tag_ids=[beta.id, alpha.id, alpha.id],
    )

    detail = articles.load_with_relations(article.id)
    assert [c.slug for c in detail.categories] == ["news"]
    assert [t.slug for t in detail.tags] == ["alpha", "beta"]

    tags.delete(alpha.id)
    assert [t.slug for t in articles.load_with_relations(article.id).tags] == ["beta"]

    articles.save_with_relations(article, category_ids=[])
    detail = articles.load_with_relations(article.id)
    assert detail.categories == []
    assert [t.slug for t in detail.tags] == ["beta"]

    articles.delete(article.id)
    assert articles.load_with_relations(article.id) is None
    conn = sqlite3.connect(articles.db_path)
    assert conn.execute("SELECT COUNT(*) FROM article_tags").fetchone()[0] == 0
    conn.close()


def test_failed_relation_write_rolls_back_new_article(repos) -> None:
    articles, _, _ = repos
    article = Article(title="Partial", slug="partial", author_id=uuid4())

    # no such category row: the join insert violates its foreign key
    with pytest.raises(PersistenceError):
        articles.save_with_relations(article, category_ids=[uuid4()])

    assert articles.find_by_id(article.id) is None


def test_failed_relation_write_keeps_previous_state(repos) -> None:
    articles, categories, _ = repos
    news = categories.save(Category(name="News", slug="news"))
    article = articles.save_with_relations(
        Article(title="Before", slug="before", author_id=uuid4()), category_ids=[news.id]
    )

    with pytest.raises(PersistenceError):
        articles.save_with_relations(
            article.model_copy(update={"title": "After"}), category_ids=[uuid4()]
        )

    detail = articles.load_with_relations(article.id)
    assert detail.article.title == "Before"
    assert [c.id for c in detail.categories] == [news.id]


def test_duplicate_article_slug_is_slug_conflict(repos) -> None:
    articles, _, _ = repos
    articles.save(Article(title="One", slug="same", author_id=uuid4()))

    with pytest.raises(SlugConflictError):
        articles.save_with_relations(Article(title="Two", slug="same", author_id=uuid4()))

    _, total = articles.list(ArticleFilter())
    assert total == 1


def test_increment_views_only_counts_published(repos) -> None:
    articles, _, _ = repos
    live = articles.save(
        Article(title="Live", slug="live", author_id=uuid4(), status=ArticleStatus.PUBLISHED)
    )
    draft = articles.save(Article(title="Draft", slug="draft", author_id=uuid4()))

    articles.increment_views(live.id)
    articles.increment_views(live.id)
    articles.increment_views(draft.id)

    assert articles.find_by_id(live.id).views == 2
    assert articles.find_by_id(draft.id).views == 0


def test_article_list_filters(repos) -> None:
    articles, categories, tags = repos
    author = uuid4()
    news = categories.save(Category(name="News", slug="news"))
    hot = tags.save(Tag(name="Hot", slug="hot"))
    first = articles.save(
        Article(title="Election day", slug="e", author_id=author, created_at=at(1))
    )
    second = articles.save(
        Article(
            title="Election results",
            slug="r",
            author_id=uuid4(),
            status=ArticleStatus.PUBLISHED,
            created_at=at(2),
        )
    )
    articles.save(Article(title="Weather", slug="w", author_id=author, created_at=at(3)))
    articles.save_with_relations(first, category_ids=[news.id])
    articles.save_with_relations(second, tag_ids=[hot.id])

    def ids(**filters) -> list:
        items, _ = articles.list(ArticleFilter(**filters))
        return [a.id for a in items]

    assert ids(search="election") == [second.id, first.id]
    assert ids(status=ArticleStatus.PUBLISHED) == [second.id]
    assert ids(category_id=news.id) == [first.id]
    assert ids(tag_id=hot.id) == [second.id]
    assert len(ids(author_id=author)) == 2

    items, total = articles.list(ArticleFilter(limit=1, offset=1))
    assert total == 3
    assert [a.title for a in items] == ["Election results"]


# --- Roles ---


def test_role_permissions_round_trip(db_path: str) -> None:
    repo = SQLiteRoleRepo(db_path)
    role = repo.save(Role(name="user", permissions={"articles": ("create", "read")}))

    assert repo.get_by_name("user").permissions == {"articles": ("create", "read")}
    assert [r.name for r in repo.list_all()] == ["user"]
    assert repo.get_by_id(role.id).id == role.id


def test_malformed_role_permissions_authorize_nothing(db_path: str) -> None:
    conn = sqlite3.connect(db_path)
    conn.execute(
        "INSERT INTO roles (id, name, permissions, created_at, updated_at) "
        "VALUES (?, 'broken', '{not json', '2024-01-01T00:00:00+00:00', "
        "'2024-01-01T00:00:00+00:00')",
        (str(uuid4()),),
    )
    conn.commit()
    conn.close()

    assert SQLiteRoleRepo(db_path).get_by_name("broken").permissions == {}


# --- Audit log ---


def _event(minutes: int, level: LogLevel, module: str = "articles") -> AuditLogEvent:
    return AuditLogEvent(
        action="create_articles",
        module=module,
        endpoint=f"/api/v1/{module}",
        method="POST",
        status_code=201,
        message="m",
        level=level,
        metadata={"operation": "create"},
        timestamp=at(minutes),
    )


def test_log_query_and_stats(db_path: str) -> None:
    repo = SQLiteLogRepo(db_path)
    first = _event(1, LogLevel.INFO)
    repo.record(first)
    repo.record(_event(2, LogLevel.WARN))
    repo.record(_event(3, LogLevel.ERROR, module="tags"))

    events, total = repo.query(AuditQuery(module="articles"))
    assert total == 2
    assert [e.level for e in events] == [LogLevel.WARN, LogLevel.INFO]

    events, total = repo.query(AuditQuery(start_time=at(2), limit=1))
    assert total == 2
    assert events[0].module == "tags"

    assert repo.get_by_id(first.id) == first
    assert repo.count_by_level(AuditQuery()) == {"info": 1, "warn": 1, "error": 1}


# --- Failures ---


def test_unmigrated_database_raises_persistence_error(tmp_path: Path) -> None:
    repo = SQLiteTagRepo(str(tmp_path / "empty.db"))

    with pytest.raises(PersistenceError):
        repo.get_by_slug("x")
