"""
Articles component unit tests.

Tests for the editorial workflow: create, update, submit, review, publish,
plus reads, deletes and the audit trail.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any
from unittest.mock import Mock
from uuid import UUID, uuid4

import pytest

from newsdesk.adapters.memory import (
    InMemoryArticleRepo,
    InMemoryAuditStore,
    InMemoryCategoryRepo,
    InMemoryTagRepo,
)
from newsdesk.components.articles import (
    ApproveArticleInput,
    ArticleFilter,
    ArticleWorkflow,
    CreateArticleInput,
    DeleteArticleInput,
    GetArticleInput,
    ListArticlesInput,
    PublishArticleInput,
    ReadPublishedArticleInput,
    RejectArticleInput,
    SubmitArticleInput,
    UpdateArticleInput,
    WorkflowSettings,
)
from newsdesk.components.audit import AuditRecorder, RequestContext
from newsdesk.components.errors import PersistenceError
from newsdesk.domain.entities import Article, ArticleStatus, Category, Tag
from newsdesk.domain.policy import Identity, PermissionModel
from newsdesk.rules.loader import load_rules, permission_model_from_rules

# --- Mock Implementations ---


class MockClockPort:
    """Mock clock for deterministic testing."""

    def __init__(self, fixed_time: datetime | None = None) -> None:
        self._time = fixed_time or datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._time

    def advance(self, delta: timedelta) -> None:
        self._time = self._time + delta


def _doc(*texts: str) -> dict[str, Any]:
    return {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": t}]} for t in texts
        ],
    }


# --- Fixtures ---


@pytest.fixture
def clock() -> MockClockPort:
    return MockClockPort()


@pytest.fixture
def categories() -> InMemoryCategoryRepo:
    return InMemoryCategoryRepo()


@pytest.fixture
def tags() -> InMemoryTagRepo:
    return InMemoryTagRepo()


@pytest.fixture
def articles(categories: InMemoryCategoryRepo, tags: InMemoryTagRepo) -> InMemoryArticleRepo:
    return InMemoryArticleRepo(categories, tags)


@pytest.fixture
def audit_store() -> InMemoryAuditStore:
    return InMemoryAuditStore()


@pytest.fixture
def permissions() -> PermissionModel:
    rules = load_rules(Path("rules.yaml").resolve())
    return permission_model_from_rules(rules)


@pytest.fixture
def workflow(
    articles: InMemoryArticleRepo,
    categories: InMemoryCategoryRepo,
    tags: InMemoryTagRepo,
    permissions: PermissionModel,
    clock: MockClockPort,
    audit_store: InMemoryAuditStore,
) -> ArticleWorkflow:
    return ArticleWorkflow(
        article_repo=articles,
        category_repo=categories,
        tag_repo=tags,
        permissions=permissions,
        clock=clock,
        audit=AuditRecorder([audit_store]),
    )


@pytest.fixture
def author(permissions: PermissionModel) -> Identity:
    return permissions.build_identity(
        uuid4(), uuid4(), "user", {"articles": ["create", "read", "update", "submit"]}
    )


@pytest.fixture
def other_user(permissions: PermissionModel) -> Identity:
    return permissions.build_identity(
        uuid4(), uuid4(), "user", {"articles": ["create", "read", "update", "submit"]}
    )


@pytest.fixture
def admin(permissions: PermissionModel) -> Identity:
    return permissions.build_identity(uuid4(), uuid4(), "admin", {})


def _seed(
    articles: InMemoryArticleRepo,
    author: Identity,
    status: ArticleStatus = ArticleStatus.DRAFT,
    slug: str = "seeded-article",
    title: str = "Seeded article",
) -> Article:
    article = Article(
        title=title,
        slug=slug,
        author_id=author.user_id,
        status=status,
        content=_doc("seeded body"),
        created_at=datetime(2024, 6, 1, tzinfo=UTC),
        updated_at=datetime(2024, 6, 1, tzinfo=UTC),
    )
    articles.add(article)
    return article


# --- Create Tests ---


class TestCreate:
    def test_creates_draft_with_stats_and_derived_fields(
        self, workflow: ArticleWorkflow, author: Identity, clock: MockClockPort
    ) -> None:
        result = workflow.run(
            CreateArticleInput(
                identity=author,
                title="Việt Nam – Hợp tác!",
                content=_doc("hello world"),
                excerpt="Short summary",
            )
        )

        assert result.success
        article = result.detail.article
        assert article.status == ArticleStatus.DRAFT
        assert article.author_id == author.user_id
        assert article.slug == "viet-nam-hop-tac"
        assert article.word_count == 2
        assert article.character_count == 12
        assert article.reading_time == 1
        assert article.seo_title == "Việt Nam – Hợp tác!"
        assert article.seo_description == "Short summary"
        assert article.visibility == "web,mobile"
        assert article.views == 0
        assert article.created_at == clock.now()

    def test_accepts_json_text_content(self, workflow: ArticleWorkflow, author: Identity) -> None:
        result = workflow.run_create(
            CreateArticleInput(
                identity=author,
                title="Json",
                content='{"type": "doc", "content": [{"type": "text", "text": "one two three"}]}',
            )
        )

        assert result.success
        assert result.detail.article.word_count == 3

    def test_duplicate_slug_is_validation_error(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        existing = _seed(articles, author, slug="breaking-story", title="Original")

        result = workflow.run_create(
            CreateArticleInput(identity=author, title="Breaking Story", content=_doc("x"))
        )

        assert not result.success
        assert result.errors[0].kind == "validation"
        assert result.errors[0].code == "slug_exists"
        assert articles.find_by_id(existing.id) == existing
        assert articles.find_by_id(existing.id).title == "Original"

    def test_missing_title_and_content(self, workflow: ArticleWorkflow, author: Identity) -> None:
        result = workflow.run_create(CreateArticleInput(identity=author, title="  ", content=None))

        assert not result.success
        codes = {e.code for e in result.errors}
        assert codes == {"title_required", "content_required"}
        assert all(e.kind == "validation" for e in result.errors)

    def test_unparseable_content_rejected(
        self, workflow: ArticleWorkflow, author: Identity
    ) -> None:
        result = workflow.run_create(
            CreateArticleInput(identity=author, title="Title", content="not json")
        )

        assert not result.success
        assert result.errors[0].code == "content_invalid"

    def test_title_too_long(self, workflow: ArticleWorkflow, author: Identity) -> None:
        result = workflow.run_create(
            CreateArticleInput(identity=author, title="a" * 501, content=_doc("x"))
        )

        assert not result.success
        assert result.errors[0].code == "title_too_long"

    def test_explicit_slug_must_be_valid(
        self, workflow: ArticleWorkflow, author: Identity
    ) -> None:
        result = workflow.run_create(
            CreateArticleInput(identity=author, title="Title", content=_doc("x"), slug="Bad Slug")
        )

        assert not result.success
        assert result.errors[0].code == "slug_invalid"

    def test_explicit_slug_is_used(self, workflow: ArticleWorkflow, author: Identity) -> None:
        result = workflow.run_create(
            CreateArticleInput(identity=author, title="Title", content=_doc("x"), slug="custom")
        )

        assert result.detail.article.slug == "custom"

    def test_empty_derived_slug_falls_back_to_id(
        self, workflow: ArticleWorkflow, author: Identity
    ) -> None:
        result = workflow.run_create(
            CreateArticleInput(identity=author, title="!!!", content=_doc("x"))
        )

        assert result.success
        article = result.detail.article
        assert article.slug == f"article-{article.id.hex[:8]}"

    def test_configured_settings_apply(
        self,
        articles: InMemoryArticleRepo,
        categories: InMemoryCategoryRepo,
        tags: InMemoryTagRepo,
        permissions: PermissionModel,
        clock: MockClockPort,
        author: Identity,
    ) -> None:
        workflow = ArticleWorkflow(
            articles,
            categories,
            tags,
            permissions,
            clock,
            settings=WorkflowSettings(words_per_minute=1, default_visibility="web"),
        )

        result = workflow.run_create(
            CreateArticleInput(identity=author, title="Slow", content=_doc("a b c"))
        )

        assert result.detail.article.reading_time == 3
        assert result.detail.article.visibility == "web"

    def test_associations_skip_unknown_ids(
        self,
        workflow: ArticleWorkflow,
        categories: InMemoryCategoryRepo,
        tags: InMemoryTagRepo,
        author: Identity,
    ) -> None:
        sport = categories.save(Category(name="Sport", slug="sport"))
        tag = tags.save(Tag(name="Football", slug="football"))

        result = workflow.run_create(
            CreateArticleInput(
                identity=author,
                title="Match report",
                content=_doc("goal"),
                category_ids=[sport.id, uuid4(), sport.id],
                tag_ids=[tag.id],
            )
        )

        assert result.success
        assert [c.id for c in result.detail.categories] == [sport.id]
        assert [t.id for t in result.detail.tags] == [tag.id]


# --- Update Tests ---


class TestUpdate:
    def test_author_updates_draft_and_stats_recomputed(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_update(
            UpdateArticleInput(
                identity=author,
                article_id=article.id,
                updates={"content": _doc("one two", "three"), "subtitle": "Sub"},
            )
        )

        assert result.success
        updated = result.detail.article
        assert updated.subtitle == "Sub"
        assert updated.word_count == 3
        assert updated.character_count == len("one two three ")

    def test_non_author_forbidden_and_article_unchanged(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        other_user: Identity,
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_update(
            UpdateArticleInput(identity=other_user, article_id=article.id, updates={"title": "X"})
        )

        assert not result.success
        assert result.errors[0].kind == "forbidden"
        assert articles.find_by_id(article.id) == article

    def test_author_cannot_edit_approved(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        article = _seed(articles, author, status=ArticleStatus.APPROVED)

        result = workflow.run_update(
            UpdateArticleInput(identity=author, article_id=article.id, updates={"title": "New"})
        )

        assert result.errors[0].kind == "forbidden"
        assert result.errors[0].code == "status_locked"

    def test_admin_may_edit_any_state(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        admin: Identity,
    ) -> None:
        article = _seed(articles, author, status=ArticleStatus.APPROVED)

        result = workflow.run_update(
            UpdateArticleInput(identity=admin, article_id=article.id, updates={"excerpt": "E"})
        )

        assert result.success
        assert result.detail.article.excerpt == "E"
        assert result.detail.article.author_id == author.user_id

    def test_missing_article_not_found(self, workflow: ArticleWorkflow, admin: Identity) -> None:
        result = workflow.run_update(
            UpdateArticleInput(identity=admin, article_id=uuid4(), updates={"title": "X"})
        )

        assert result.errors[0].kind == "not_found"

    def test_title_change_rederives_slug(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_update(
            UpdateArticleInput(
                identity=author, article_id=article.id, updates={"title": "Fresh Title"}
            )
        )

        assert result.detail.article.slug == "fresh-title"

    def test_title_change_keeps_slug_when_taken(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        _seed(articles, author, slug="fresh-title", title="Other")
        article = _seed(articles, author, slug="mine", title="Mine")

        result = workflow.run_update(
            UpdateArticleInput(
                identity=author, article_id=article.id, updates={"title": "Fresh Title"}
            )
        )

        assert result.success
        assert result.detail.article.title == "Fresh Title"
        assert result.detail.article.slug == "mine"

    def test_published_slug_is_not_rederived(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        admin: Identity,
    ) -> None:
        article = _seed(articles, author, status=ArticleStatus.PUBLISHED, slug="live")

        result = workflow.run_update(
            UpdateArticleInput(identity=admin, article_id=article.id, updates={"title": "Renamed"})
        )

        assert result.success
        assert result.detail.article.slug == "live"

    def test_explicit_slug_change_on_published_is_conflict(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        admin: Identity,
    ) -> None:
        article = _seed(articles, author, status=ArticleStatus.PUBLISHED, slug="live")

        result = workflow.run_update(
            UpdateArticleInput(identity=admin, article_id=article.id, updates={"slug": "moved"})
        )

        assert result.errors[0].kind == "conflict"
        assert result.errors[0].code == "slug_immutable"

    def test_status_is_not_updatable(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_update(
            UpdateArticleInput(
                identity=author, article_id=article.id, updates={"status": "published"}
            )
        )

        assert result.errors[0].code == "field_not_updatable"
        assert articles.find_by_id(article.id).status == ArticleStatus.DRAFT

    def test_invalid_field_value_is_validation_error(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_update(
            UpdateArticleInput(
                identity=author, article_id=article.id, updates={"visibility": None}
            )
        )

        assert not result.success
        assert result.errors[0].kind == "validation"
        assert result.errors[0].field == "visibility"

    def test_replace_categories(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        categories: InMemoryCategoryRepo,
        author: Identity,
    ) -> None:
        article = _seed(articles, author)
        old = categories.save(Category(name="Old", slug="old"))
        valid = categories.save(Category(name="Valid", slug="valid"))
        articles.save_with_relations(article, category_ids=[old.id])

        emptied = workflow.run_update(
            UpdateArticleInput(identity=author, article_id=article.id, category_ids=[])
        )
        assert emptied.detail.categories == []

        replaced = workflow.run_update(
            UpdateArticleInput(
                identity=author, article_id=article.id, category_ids=[uuid4(), valid.id]
            )
        )
        assert [c.id for c in replaced.detail.categories] == [valid.id]

    def test_none_leaves_associations(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        tags: InMemoryTagRepo,
        author: Identity,
    ) -> None:
        article = _seed(articles, author)
        tag = tags.save(Tag(name="Kept", slug="kept"))
        articles.save_with_relations(article, tag_ids=[tag.id])

        result = workflow.run_update(
            UpdateArticleInput(identity=author, article_id=article.id, updates={"excerpt": "E"})
        )

        assert [t.id for t in result.detail.tags] == [tag.id]


class SlugLookupMissRepo(InMemoryArticleRepo):
    """Slug lookups miss, as when another request claims the slug in between."""

    def find_by_slug(self, slug: str) -> Article | None:
        return None


class TestSlugClaimedConcurrently:
    @pytest.fixture
    def racy_articles(
        self, categories: InMemoryCategoryRepo, tags: InMemoryTagRepo
    ) -> SlugLookupMissRepo:
        return SlugLookupMissRepo(categories, tags)

    @pytest.fixture
    def racy_workflow(
        self,
        racy_articles: SlugLookupMissRepo,
        categories: InMemoryCategoryRepo,
        tags: InMemoryTagRepo,
        permissions: PermissionModel,
        clock: MockClockPort,
        audit_store: InMemoryAuditStore,
    ) -> ArticleWorkflow:
        return ArticleWorkflow(
            racy_articles, categories, tags, permissions, clock, audit=AuditRecorder([audit_store])
        )

    def test_create_reports_slug_exists(
        self,
        racy_workflow: ArticleWorkflow,
        racy_articles: SlugLookupMissRepo,
        author: Identity,
        audit_store: InMemoryAuditStore,
    ) -> None:
        first = racy_workflow.run_create(
            CreateArticleInput(identity=author, title="Same", content=_doc("a"))
        )
        second = racy_workflow.run_create(
            CreateArticleInput(identity=author, title="Same", content=_doc("b"))
        )

        assert first.success
        assert [(e.kind, e.code) for e in second.errors] == [("validation", "slug_exists")]
        _, total = racy_articles.list(ArticleFilter())
        assert total == 1
        assert audit_store.events[-1].status_code == 400

    def test_title_change_keeps_old_slug(
        self, racy_workflow: ArticleWorkflow, racy_articles: SlugLookupMissRepo, author: Identity
    ) -> None:
        _seed(racy_articles, author, slug="first", title="First")
        other = _seed(racy_articles, author, slug="other", title="Other")

        result = racy_workflow.run_update(
            UpdateArticleInput(identity=author, article_id=other.id, updates={"title": "First"})
        )

        assert result.success
        assert result.detail.article.title == "First"
        assert result.detail.article.slug == "other"

    def test_explicit_slug_reports_slug_exists(
        self, racy_workflow: ArticleWorkflow, racy_articles: SlugLookupMissRepo, author: Identity
    ) -> None:
        _seed(racy_articles, author, slug="first", title="First")
        other = _seed(racy_articles, author, slug="other", title="Other")

        result = racy_workflow.run_update(
            UpdateArticleInput(identity=author, article_id=other.id, updates={"slug": "first"})
        )

        assert result.errors[0].code == "slug_exists"
        assert racy_articles.find_by_id(other.id).slug == "other"


# --- Transition Tests ---


class TestSubmit:
    def test_author_submits_draft(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run(SubmitArticleInput(identity=author, article_id=article.id))

        assert result.success
        assert result.detail.article.status == ArticleStatus.SUBMITTED

    def test_submit_twice_is_conflict(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        article = _seed(articles, author, status=ArticleStatus.SUBMITTED)

        result = workflow.run_submit(SubmitArticleInput(identity=author, article_id=article.id))

        assert result.errors[0].kind == "conflict"
        assert articles.find_by_id(article.id).status == ArticleStatus.SUBMITTED

    def test_only_author_submits(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        admin: Identity,
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_submit(SubmitArticleInput(identity=admin, article_id=article.id))

        assert result.errors[0].kind == "forbidden"


class TestReview:
    @pytest.mark.parametrize("status", [ArticleStatus.SUBMITTED, ArticleStatus.UNDER_REVIEW])
    def test_admin_approves_reviewable(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        admin: Identity,
        status: ArticleStatus,
    ) -> None:
        article = _seed(articles, author, status=status)

        result = workflow.run_approve(
            ApproveArticleInput(identity=admin, article_id=article.id, review_notes="Nice")
        )

        assert result.success
        assert result.detail.article.status == ArticleStatus.APPROVED
        assert result.detail.article.review_notes == "Nice"

    def test_approve_draft_is_conflict(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        admin: Identity,
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_approve(ApproveArticleInput(identity=admin, article_id=article.id))

        assert result.errors[0].kind == "conflict"
        assert articles.find_by_id(article.id).status == ArticleStatus.DRAFT

    def test_reject_sets_notes(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        admin: Identity,
    ) -> None:
        article = _seed(articles, author, status=ArticleStatus.SUBMITTED)

        result = workflow.run(
            RejectArticleInput(identity=admin, article_id=article.id, review_notes="Sources?")
        )

        assert result.detail.article.status == ArticleStatus.REJECTED
        assert result.detail.article.review_notes == "Sources?"

    def test_author_cannot_review(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        article = _seed(articles, author, status=ArticleStatus.SUBMITTED)

        result = workflow.run_approve(ApproveArticleInput(identity=author, article_id=article.id))

        assert result.errors[0].kind == "forbidden"

    def test_forbidden_reported_before_not_found(
        self, workflow: ArticleWorkflow, author: Identity
    ) -> None:
        result = workflow.run_reject(RejectArticleInput(identity=author, article_id=uuid4()))

        assert result.errors[0].kind == "forbidden"

    def test_explicit_grant_allows_review(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        permissions: PermissionModel,
    ) -> None:
        reviewer = permissions.build_identity(
            uuid4(), uuid4(), "reviewer", {"articles": ["read", "reject"]}
        )
        article = _seed(articles, author, status=ArticleStatus.SUBMITTED)

        rejected = workflow.run_reject(RejectArticleInput(identity=reviewer, article_id=article.id))
        approved = workflow.run_approve(
            ApproveArticleInput(identity=reviewer, article_id=article.id)
        )

        assert rejected.success
        assert approved.errors[0].kind == "forbidden"


class TestPublish:
    def test_author_publishes_approved(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        clock: MockClockPort,
    ) -> None:
        article = _seed(articles, author, status=ArticleStatus.APPROVED)
        call_time = clock.now()

        result = workflow.run_publish(PublishArticleInput(identity=author, article_id=article.id))

        assert result.success
        assert result.detail.article.status == ArticleStatus.PUBLISHED
        assert result.detail.article.published_at >= call_time

    def test_author_cannot_publish_draft(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_publish(PublishArticleInput(identity=author, article_id=article.id))

        assert result.errors[0].kind == "forbidden"
        assert articles.find_by_id(article.id).published_at is None

    def test_admin_publishes_from_any_state(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        admin: Identity,
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_publish(PublishArticleInput(identity=admin, article_id=article.id))

        assert result.detail.article.status == ArticleStatus.PUBLISHED

    def test_admin_equivalent_by_permissions(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        permissions: PermissionModel,
    ) -> None:
        editor = permissions.build_identity(
            uuid4(), uuid4(), "editor", {"articles": ["approve", "publish"]}
        )
        article = _seed(articles, author, status=ArticleStatus.SUBMITTED)

        result = workflow.run_publish(PublishArticleInput(identity=editor, article_id=article.id))

        assert result.success

    def test_missing_article_not_found(self, workflow: ArticleWorkflow, author: Identity) -> None:
        result = workflow.run_publish(PublishArticleInput(identity=author, article_id=uuid4()))

        assert result.errors[0].kind == "not_found"


# --- Read/Delete Tests ---


class TestReadAndDelete:
    def test_get_own_article(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_get(GetArticleInput(identity=author, article_id=article.id))

        assert result.detail.article.id == article.id

    def test_get_other_users_article_forbidden(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        other_user: Identity,
        admin: Identity,
    ) -> None:
        article = _seed(articles, author)

        assert (
            workflow.run_get(GetArticleInput(identity=other_user, article_id=article.id))
            .errors[0]
            .kind
            == "forbidden"
        )
        assert workflow.run_get(GetArticleInput(identity=admin, article_id=article.id)).success

    def test_list_restricts_non_privileged_to_own(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        other_user: Identity,
        admin: Identity,
    ) -> None:
        mine = _seed(articles, author, slug="mine")
        _seed(articles, other_user, slug="theirs")

        own = workflow.run_list(ListArticlesInput(identity=author))
        everything = workflow.run_list(ListArticlesInput(identity=admin))

        assert [a.id for a in own.items] == [mine.id]
        assert everything.total == 2

    def test_list_paginates_newest_first(
        self, workflow: ArticleWorkflow, author: Identity, clock: MockClockPort
    ) -> None:
        for i in range(3):
            workflow.run_create(
                CreateArticleInput(identity=author, title=f"Story {i}", content=_doc("x"))
            )
            clock.advance(timedelta(minutes=1))

        page = workflow.run_list(ListArticlesInput(identity=author, page=1, limit=2))

        assert page.total == 3
        assert page.total_pages == 2
        assert [a.title for a in page.items] == ["Story 2", "Story 1"]

    def test_author_deletes_own(
        self, workflow: ArticleWorkflow, articles: InMemoryArticleRepo, author: Identity
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_delete(DeleteArticleInput(identity=author, article_id=article.id))

        assert result.success
        assert articles.find_by_id(article.id) is None

    def test_non_author_cannot_delete(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        other_user: Identity,
    ) -> None:
        article = _seed(articles, author)

        result = workflow.run_delete(
            DeleteArticleInput(identity=other_user, article_id=article.id)
        )

        assert result.errors[0].kind == "forbidden"
        assert articles.find_by_id(article.id) is not None


class TestReadPublished:
    def test_counts_one_view_per_read(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        audit_store: InMemoryAuditStore,
    ) -> None:
        _seed(articles, author, status=ArticleStatus.PUBLISHED, slug="live")

        workflow.run_read_published(ReadPublishedArticleInput(slug="live"))
        result = workflow.run(ReadPublishedArticleInput(slug="live"))

        assert result.success
        assert result.detail.article.views == 2
        assert audit_store.events == []

    @pytest.mark.parametrize(
        "status", [ArticleStatus.DRAFT, ArticleStatus.SUBMITTED, ArticleStatus.APPROVED]
    )
    def test_unpublished_is_hidden(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        status: ArticleStatus,
    ) -> None:
        article = _seed(articles, author, status=status, slug="hidden")

        result = workflow.run_read_published(ReadPublishedArticleInput(slug="hidden"))

        assert result.errors[0].kind == "not_found"
        assert articles.find_by_id(article.id).views == 0

    def test_unknown_slug_not_found(self, workflow: ArticleWorkflow) -> None:
        result = workflow.run_read_published(ReadPublishedArticleInput(slug="missing"))

        assert result.errors[0].kind == "not_found"

    def test_storage_failure_is_internal(self, permissions: PermissionModel) -> None:
        repo = Mock()
        repo.find_by_slug.side_effect = PersistenceError("disk I/O error")
        workflow = ArticleWorkflow(repo, Mock(), Mock(), permissions, MockClockPort())

        result = workflow.run_read_published(ReadPublishedArticleInput(slug="live"))

        assert result.errors[0].kind == "internal"


# --- Audit and Failure Tests ---


class TestAuditTrail:
    def test_success_and_failure_both_recorded(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        audit_store: InMemoryAuditStore,
    ) -> None:
        article = _seed(articles, author, status=ArticleStatus.SUBMITTED)

        workflow.run_submit(SubmitArticleInput(identity=author, article_id=article.id))
        workflow.run_approve(ApproveArticleInput(identity=author, article_id=article.id))

        events = audit_store.events
        assert len(events) == 2
        assert events[0].action == "submit"
        assert events[0].status_code == 409
        assert events[0].level.value == "warn"
        assert events[1].action == "approve"
        assert events[1].status_code == 403
        assert events[1].user_id == author.user_id

    def test_request_context_is_carried(
        self, workflow: ArticleWorkflow, author: Identity, audit_store: InMemoryAuditStore
    ) -> None:
        context = RequestContext(
            endpoint="/api/v1/articles", method="POST", ip_address="10.0.0.1", user_agent="ua"
        )

        workflow.run_create(
            CreateArticleInput(identity=author, title="T", content=_doc("x"), context=context)
        )

        event = audit_store.events[0]
        assert event.action == "create_articles"
        assert event.module == "articles"
        assert event.status_code == 201
        assert event.ip_address == "10.0.0.1"

    def test_reads_are_not_audited(
        self,
        workflow: ArticleWorkflow,
        articles: InMemoryArticleRepo,
        author: Identity,
        audit_store: InMemoryAuditStore,
    ) -> None:
        article = _seed(articles, author)

        workflow.run_get(GetArticleInput(identity=author, article_id=article.id))
        workflow.run_list(ListArticlesInput(identity=author))

        assert audit_store.events == []

    def test_failing_audit_port_does_not_affect_result(
        self,
        articles: InMemoryArticleRepo,
        categories: InMemoryCategoryRepo,
        tags: InMemoryTagRepo,
        permissions: PermissionModel,
        clock: MockClockPort,
        author: Identity,
    ) -> None:
        audit = Mock()
        audit.emit.side_effect = RuntimeError("sink down")
        workflow = ArticleWorkflow(articles, categories, tags, permissions, clock, audit=audit)

        result = workflow.run_create(
            CreateArticleInput(identity=author, title="Still works", content=_doc("x"))
        )

        assert result.success
        audit.emit.assert_called_once()

    def test_storage_failure_is_internal(
        self,
        categories: InMemoryCategoryRepo,
        tags: InMemoryTagRepo,
        permissions: PermissionModel,
        clock: MockClockPort,
        author: Identity,
        audit_store: InMemoryAuditStore,
    ) -> None:
        repo = Mock()
        repo.find_by_id.side_effect = PersistenceError("database is locked")
        workflow = ArticleWorkflow(
            repo, categories, tags, permissions, clock, audit=AuditRecorder([audit_store])
        )

        result = workflow.run_submit(SubmitArticleInput(identity=author, article_id=uuid4()))

        assert result.errors[0].kind == "internal"
        assert audit_store.events[0].status_code == 500
        assert audit_store.events[0].level.value == "error"

    def test_unknown_input_raises(self, workflow: ArticleWorkflow) -> None:
        with pytest.raises(TypeError):
            workflow.run(object())  # type: ignore[arg-type]


def test_created_article_is_retrievable_by_id(
    workflow: ArticleWorkflow, author: Identity
) -> None:
    created = workflow.run_create(
        CreateArticleInput(identity=author, title="Round", content=_doc("trip"))
    )
    article_id: UUID = created.detail.article.id

    fetched = workflow.run_get(GetArticleInput(identity=author, article_id=article_id))

    assert fetched.detail == created.detail
