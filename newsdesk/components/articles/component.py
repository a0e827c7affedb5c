"""
Articles component - editorial workflow for articles.

State machine (newsdesk.domain.state):
- draft -> submitted (author)
- submitted|under_review -> approved|rejected (reviewer)
- approved -> published (author); any -> published (admin-equivalent)

Authorization:
- Update: author while draft/submitted, admin-equivalent always
- Approve/Reject: admin-equivalent or an explicit articles:approve/reject grant
- Get/Delete/List: non-privileged callers only see their own articles
- Read published: anonymous, by slug; every read counts one view

Every successful mutation re-reads the article with its categories and tags
and returns that view. Each mutating call hands exactly one audit event to the
audit port, whatever its outcome.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID, uuid4

from pydantic import ValidationError

from newsdesk.components.audit import AuditPort, report_outcome
from newsdesk.components.errors import (
    OperationError,
    PersistenceError,
    SlugConflictError,
    conflict,
    forbidden,
    internal,
    not_found,
    validation,
)
from newsdesk.domain.entities import Article, ArticleStatus
from newsdesk.domain.policy import PermissionModel
from newsdesk.domain.slug import generate_slug, is_valid_slug
from newsdesk.domain.state import AUTHOR_EDITABLE, ArticleAction, can_transition, target_status
from newsdesk.domain.stats import calculate_stats

from .models import (
    UPDATABLE_FIELDS,
    ApproveArticleInput,
    ArticleFilter,
    ArticleListOutput,
    ArticleOperationOutput,
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
from .ports import (
    ArticleRepoPort,
    CategoryLookupPort,
    ClockPort,
    Relation,
    TagLookupPort,
)

logger = logging.getLogger(__name__)

ArticleInput = (
    CreateArticleInput
    | UpdateArticleInput
    | SubmitArticleInput
    | ApproveArticleInput
    | RejectArticleInput
    | PublishArticleInput
    | DeleteArticleInput
    | GetArticleInput
    | ListArticlesInput
    | ReadPublishedArticleInput
)
ArticleOutput = ArticleOperationOutput | ArticleListOutput

InputT = TypeVar("InputT")

# operation -> (method, endpoint, status on success); used for audit events
_ROUTES: dict[str, tuple[str, str, int]] = {
    "create": ("POST", "/api/v1/articles", 201),
    "update": ("PUT", "/api/v1/articles/{id}", 200),
    "submit": ("POST", "/api/v1/articles/{id}/submit", 200),
    "approve": ("POST", "/api/v1/articles/{id}/approve", 200),
    "reject": ("POST", "/api/v1/articles/{id}/reject", 200),
    "publish": ("POST", "/api/v1/articles/{id}/publish", 200),
    "delete": ("DELETE", "/api/v1/articles/{id}", 200),
}


# --- Validation Functions ---


def _fail(*errors: OperationError) -> ArticleOperationOutput:
    return ArticleOperationOutput(detail=None, errors=list(errors), success=False)


def _validate_title(title: Any, max_length: int) -> list[OperationError]:
    if not isinstance(title, str) or not title.strip():
        return [validation("Title is required", "title_required", "title")]
    if len(title) > max_length:
        return [
            validation(
                f"Title must be at most {max_length} characters", "title_too_long", "title"
            )
        ]
    return []


def _validate_slug(slug: Any, max_length: int) -> list[OperationError]:
    if not isinstance(slug, str) or not is_valid_slug(slug):
        return [
            validation(
                "Slug must contain only lowercase letters, numbers, and hyphens",
                "slug_invalid",
                "slug",
            )
        ]
    if len(slug) > max_length:
        return [
            validation(f"Slug must be at most {max_length} characters", "slug_too_long", "slug")
        ]
    return []


def _validate_content(content: Any) -> tuple[dict[str, Any] | None, list[OperationError]]:
    """Accept a document mapping or its JSON text."""
    if content is None or content == "" or content == {}:
        return None, [validation("Content is required", "content_required", "content")]
    if isinstance(content, str):
        try:
            content = json.loads(content)
        except ValueError:
            content = None
    if not isinstance(content, Mapping):
        return None, [
            validation("Content must be a structured document", "content_invalid", "content")
        ]
    return dict(content), []


def _errors_from_validation(exc: ValidationError) -> list[OperationError]:
    return [
        validation(err["msg"], "invalid_value", ".".join(str(p) for p in err["loc"]) or None)
        for err in exc.errors()
    ]


def _derive_slug(title: str, max_length: int) -> str:
    return generate_slug(title)[:max_length].strip("-")


def _fallback_slug(article_id: UUID) -> str:
    return f"article-{article_id.hex[:8]}"


def _stats_fields(document: dict[str, Any], words_per_minute: int) -> dict[str, int]:
    stats = calculate_stats(document, words_per_minute)
    return {
        "word_count": stats.word_count,
        "character_count": stats.character_count,
        "reading_time": stats.reading_time,
    }


# --- Component ---


class ArticleWorkflow:
    """Component for the article editorial lifecycle."""

    def __init__(
        self,
        article_repo: ArticleRepoPort,
        category_repo: CategoryLookupPort,
        tag_repo: TagLookupPort,
        permissions: PermissionModel,
        clock: ClockPort,
        audit: AuditPort | None = None,
        settings: WorkflowSettings | None = None,
    ) -> None:
        self._articles = article_repo
        self._categories = category_repo
        self._tags = tag_repo
        self._permissions = permissions
        self._clock = clock
        self._audit = audit
        self._settings = settings or WorkflowSettings()

    def run(self, input_data: ArticleInput) -> ArticleOutput:
        """Main dispatcher - routes to appropriate handler based on input type."""
        if isinstance(input_data, CreateArticleInput):
            return self.run_create(input_data)
        elif isinstance(input_data, UpdateArticleInput):
            return self.run_update(input_data)
        elif isinstance(input_data, SubmitArticleInput):
            return self.run_submit(input_data)
        elif isinstance(input_data, ApproveArticleInput):
            return self.run_approve(input_data)
        elif isinstance(input_data, RejectArticleInput):
            return self.run_reject(input_data)
        elif isinstance(input_data, PublishArticleInput):
            return self.run_publish(input_data)
        elif isinstance(input_data, DeleteArticleInput):
            return self.run_delete(input_data)
        elif isinstance(input_data, GetArticleInput):
            return self.run_get(input_data)
        elif isinstance(input_data, ListArticlesInput):
            return self.run_list(input_data)
        elif isinstance(input_data, ReadPublishedArticleInput):
            return self.run_read_published(input_data)
        else:
            raise TypeError(f"Unknown input type: {type(input_data)}")

    # --- Entry points ---

    def run_create(self, input_data: CreateArticleInput) -> ArticleOperationOutput:
        """Create a draft article owned by the caller."""
        return self._execute("create", input_data, self._create)

    def run_update(self, input_data: UpdateArticleInput) -> ArticleOperationOutput:
        """Apply a partial update, recomputing stats and slug where needed."""
        return self._execute("update", input_data, self._update)

    def run_submit(self, input_data: SubmitArticleInput) -> ArticleOperationOutput:
        """Submit a draft for review."""
        return self._execute("submit", input_data, self._submit)

    def run_approve(self, input_data: ApproveArticleInput) -> ArticleOperationOutput:
        return self._execute(
            "approve", input_data, lambda inp: self._review(inp, ArticleAction.APPROVE)
        )

    def run_reject(self, input_data: RejectArticleInput) -> ArticleOperationOutput:
        return self._execute(
            "reject", input_data, lambda inp: self._review(inp, ArticleAction.REJECT)
        )

    def run_publish(self, input_data: PublishArticleInput) -> ArticleOperationOutput:
        """Publish an approved article, or any article for admin-equivalent callers."""
        return self._execute("publish", input_data, self._publish)

    def run_delete(self, input_data: DeleteArticleInput) -> ArticleOperationOutput:
        return self._execute("delete", input_data, self._delete)

    def run_get(self, input_data: GetArticleInput) -> ArticleOperationOutput:
        """Read one article with its relations."""
        try:
            detail = self._articles.load_with_relations(input_data.article_id)
        except PersistenceError:
            logger.exception("Failed to load article %s", input_data.article_id)
            return _fail(internal())

        if detail is None:
            return _fail(not_found(f"Article {input_data.article_id} not found"))

        identity = input_data.identity
        if (
            detail.article.author_id != identity.user_id
            and not self._permissions.is_privileged(identity)
        ):
            return _fail(forbidden("You can only view your own articles"))

        return ArticleOperationOutput(detail=detail)

    def run_list(self, input_data: ListArticlesInput) -> ArticleListOutput:
        """List articles, newest first. Non-privileged callers see only their own."""
        page = max(input_data.page, 1)
        limit = max(input_data.limit, 1)

        author_id = input_data.author_id
        if not self._permissions.is_privileged(input_data.identity):
            author_id = input_data.identity.user_id

        query = ArticleFilter(
            status=input_data.status,
            author_id=author_id,
            category_id=input_data.category_id,
            tag_id=input_data.tag_id,
            search=input_data.search,
            limit=limit,
            offset=(page - 1) * limit,
        )
        try:
            items, total = self._articles.list(query)
        except PersistenceError:
            logger.exception("Failed to list articles")
            return ArticleListOutput(
                items=[], total=0, page=page, limit=limit, errors=[internal()], success=False
            )

        return ArticleListOutput(items=items, total=total, page=page, limit=limit)

    def run_read_published(self, input_data: ReadPublishedArticleInput) -> ArticleOperationOutput:
        """Public read of a published article. Drafts and reviews stay hidden."""
        try:
            article = self._articles.find_by_slug(input_data.slug)
            if article is None or article.status != ArticleStatus.PUBLISHED:
                return _fail(
                    not_found(f"Article '{input_data.slug}' not found or not published")
                )
            self._articles.increment_views(article.id)
            return self._reload(article.id)
        except PersistenceError:
            logger.exception("Failed to read published article %s", input_data.slug)
            return _fail(internal())

    # --- Operations ---

    def _create(self, inp: CreateArticleInput) -> ArticleOperationOutput:
        settings = self._settings
        errors = _validate_title(inp.title, settings.title_max_length)
        document, content_errors = _validate_content(inp.content)
        errors.extend(content_errors)

        article_id = uuid4()
        if inp.slug:
            errors.extend(_validate_slug(inp.slug, settings.slug_max_length))
            slug = inp.slug
        else:
            slug = _derive_slug(inp.title or "", settings.slug_max_length) or _fallback_slug(
                article_id
            )

        if errors or document is None:
            return _fail(*errors)

        if self._articles.find_by_slug(slug) is not None:
            return _fail(validation(f"Slug '{slug}' already exists", "slug_exists", "slug"))

        now = self._clock.now()
        try:
            article = Article(
                id=article_id,
                title=inp.title,
                subtitle=inp.subtitle,
                slug=slug,
                excerpt=inp.excerpt,
                content=document,
                content_html=inp.content_html,
                status=ArticleStatus.DRAFT,
                author_id=inp.identity.user_id,
                featured_image=inp.featured_image,
                seo_title=inp.seo_title or inp.title,
                seo_description=inp.seo_description or inp.excerpt,
                seo_keywords=inp.seo_keywords,
                is_featured=inp.is_featured,
                is_breaking_news=inp.is_breaking_news,
                allow_comments=inp.allow_comments,
                visibility=inp.visibility or settings.default_visibility,
                scheduled_at=inp.scheduled_at,
                views=0,
                created_at=now,
                updated_at=now,
                **_stats_fields(document, settings.words_per_minute),
            )
        except ValidationError as e:
            return _fail(*_errors_from_validation(e))

        category_ids, tag_ids = self._resolve_relations(article.id, inp.category_ids, inp.tag_ids)
        try:
            self._articles.save_with_relations(article, category_ids, tag_ids)
        except SlugConflictError:
            # claimed by a concurrent write after the lookup above
            return _fail(validation(f"Slug '{slug}' already exists", "slug_exists", "slug"))
        logger.info("Article %s created by %s", article.id, inp.identity.user_id)
        return self._reload(article.id)

    def _update(self, inp: UpdateArticleInput) -> ArticleOperationOutput:
        article = self._articles.find_by_id(inp.article_id)
        if article is None:
            return _fail(not_found(f"Article {inp.article_id} not found"))

        if not self._permissions.is_privileged(inp.identity):
            if article.author_id != inp.identity.user_id:
                return _fail(forbidden("You can only update your own articles"))
            if article.status not in AUTHOR_EDITABLE:
                return _fail(
                    forbidden(
                        f"Articles in status '{article.status.value}' can no longer be "
                        "edited by their author",
                        code="status_locked",
                    )
                )

        unknown = sorted(set(inp.updates) - UPDATABLE_FIELDS)
        if unknown:
            return _fail(
                validation(
                    f"Fields cannot be updated: {', '.join(unknown)}", "field_not_updatable"
                )
            )

        settings = self._settings
        changes = dict(inp.updates)
        errors: list[OperationError] = []

        if "title" in changes:
            errors.extend(_validate_title(changes["title"], settings.title_max_length))

        if "content" in changes:
            document, content_errors = _validate_content(changes["content"])
            errors.extend(content_errors)
            if document is not None:
                changes["content"] = document
                changes.update(_stats_fields(document, settings.words_per_minute))

        published = article.status == ArticleStatus.PUBLISHED
        explicit_slug = changes.pop("slug", None)
        slug_changed = bool(explicit_slug) and explicit_slug != article.slug
        if slug_changed:
            if published:
                errors.append(
                    conflict(
                        "Slug cannot change once the article is published",
                        code="slug_immutable",
                        field="slug",
                    )
                )
            else:
                slug_errors = _validate_slug(explicit_slug, settings.slug_max_length)
                errors.extend(slug_errors)
                if not slug_errors and self._slug_taken(explicit_slug, article.id):
                    errors.append(
                        validation(
                            f"Slug '{explicit_slug}' already exists", "slug_exists", "slug"
                        )
                    )

        if errors:
            return _fail(*errors)

        if slug_changed:
            changes["slug"] = explicit_slug
        elif not explicit_slug and not published and "title" in changes:
            candidate = _derive_slug(changes["title"], settings.slug_max_length)
            if candidate and candidate != article.slug:
                if self._slug_taken(candidate, article.id):
                    logger.debug(
                        "Keeping slug %r for article %s: %r is taken",
                        article.slug,
                        article.id,
                        candidate,
                    )
                else:
                    changes["slug"] = candidate

        changes["updated_at"] = self._clock.now()
        try:
            updated = Article.model_validate({**article.model_dump(), **changes})
        except ValidationError as e:
            return _fail(*_errors_from_validation(e))

        category_ids, tag_ids = self._resolve_relations(updated.id, inp.category_ids, inp.tag_ids)
        try:
            self._articles.save_with_relations(updated, category_ids, tag_ids)
        except SlugConflictError:
            if slug_changed:
                return _fail(
                    validation(f"Slug '{explicit_slug}' already exists", "slug_exists", "slug")
                )
            if updated.slug == article.slug:
                raise
            logger.debug(
                "Keeping slug %r for article %s: %r was taken concurrently",
                article.slug,
                article.id,
                updated.slug,
            )
            updated = updated.model_copy(update={"slug": article.slug})
            self._articles.save_with_relations(updated, category_ids, tag_ids)
        logger.debug("Article %s updated fields %s", updated.id, sorted(inp.updates))
        return self._reload(updated.id)

    def _submit(self, inp: SubmitArticleInput) -> ArticleOperationOutput:
        article = self._articles.find_by_id(inp.article_id)
        if article is None:
            return _fail(not_found(f"Article {inp.article_id} not found"))

        if article.author_id != inp.identity.user_id:
            return _fail(forbidden("Only the author can submit this article"))

        if not can_transition(article.status, ArticleAction.SUBMIT):
            return _fail(
                conflict(
                    f"Only draft articles can be submitted (current status: "
                    f"'{article.status.value}')"
                )
            )

        return self._transition(article, ArticleAction.SUBMIT, self._clock.now())

    def _review(
        self, inp: ApproveArticleInput | RejectArticleInput, action: ArticleAction
    ) -> ArticleOperationOutput:
        # Reviewing is role-based, so authorization precedes the lookup.
        if not self._permissions.can(inp.identity, "articles", action.value):
            return _fail(forbidden(f"You are not allowed to {action.value} articles"))

        article = self._articles.find_by_id(inp.article_id)
        if article is None:
            return _fail(not_found(f"Article {inp.article_id} not found"))

        if not can_transition(article.status, action):
            return _fail(
                conflict(
                    f"Cannot {action.value} an article in status '{article.status.value}'; "
                    "only submitted or under-review articles can be reviewed"
                )
            )

        extra: dict[str, Any] = {}
        if inp.review_notes is not None:
            extra["review_notes"] = inp.review_notes
        return self._transition(article, action, self._clock.now(), **extra)

    def _publish(self, inp: PublishArticleInput) -> ArticleOperationOutput:
        article = self._articles.find_by_id(inp.article_id)
        if article is None:
            return _fail(not_found(f"Article {inp.article_id} not found"))

        privileged = self._permissions.is_privileged(inp.identity)
        if not privileged and article.author_id != inp.identity.user_id:
            return _fail(forbidden("Only the author or an editor can publish this article"))
        if not can_transition(article.status, ArticleAction.PUBLISH, privileged):
            return _fail(
                forbidden(
                    f"Authors can only publish approved articles (current status: "
                    f"'{article.status.value}')",
                    code="status_locked",
                )
            )

        now = self._clock.now()
        return self._transition(article, ArticleAction.PUBLISH, now, published_at=now)

    def _delete(self, inp: DeleteArticleInput) -> ArticleOperationOutput:
        article = self._articles.find_by_id(inp.article_id)
        if article is None:
            return _fail(not_found(f"Article {inp.article_id} not found"))

        if article.author_id != inp.identity.user_id and not self._permissions.is_privileged(
            inp.identity
        ):
            return _fail(forbidden("You can only delete your own articles"))

        self._articles.delete(article.id)
        logger.info("Article %s deleted by %s", article.id, inp.identity.user_id)
        return ArticleOperationOutput(detail=None)

    # --- Helpers ---

    def _transition(
        self, article: Article, action: ArticleAction, now: datetime, **extra: Any
    ) -> ArticleOperationOutput:
        new_status = target_status(action)
        updated = article.model_copy(update={"status": new_status, "updated_at": now, **extra})
        self._articles.save(updated)
        logger.info(
            "Article %s %s: %s -> %s",
            article.id,
            action.value,
            article.status.value,
            new_status.value,
        )
        return self._reload(article.id)

    def _reload(self, article_id: UUID) -> ArticleOperationOutput:
        detail = self._articles.load_with_relations(article_id)
        if detail is None:
            logger.error("Article %s could not be reloaded after write", article_id)
            return _fail(internal("Article could not be reloaded after write"))
        return ArticleOperationOutput(detail=detail)

    def _slug_taken(self, slug: str, article_id: UUID) -> bool:
        existing = self._articles.find_by_slug(slug)
        return existing is not None and existing.id != article_id

    def _resolve_relations(
        self,
        article_id: UUID,
        category_ids: Iterable[UUID] | None,
        tag_ids: Iterable[UUID] | None,
    ) -> tuple[list[UUID] | None, list[UUID] | None]:
        return (
            self._resolve(article_id, "categories", category_ids, self._categories.get_by_id),
            self._resolve(article_id, "tags", tag_ids, self._tags.get_by_id),
        )

    def _resolve(
        self,
        article_id: UUID,
        relation: Relation,
        related_ids: Iterable[UUID] | None,
        lookup: Callable[[UUID], Any],
    ) -> list[UUID] | None:
        """Distinct ids that resolve, in first-seen order. Unknown ids are skipped."""
        if related_ids is None:
            return None
        resolved: list[UUID] = []
        for related_id in dict.fromkeys(related_ids):
            if lookup(related_id) is None:
                logger.debug(
                    "Skipping unknown %s id %s for article %s", relation, related_id, article_id
                )
                continue
            resolved.append(related_id)
        return resolved

    def _execute(
        self,
        operation: str,
        input_data: InputT,
        handler: Callable[[InputT], ArticleOperationOutput],
    ) -> ArticleOperationOutput:
        try:
            output = handler(input_data)
        except PersistenceError:
            logger.exception("Article %s failed on a storage error", operation)
            output = _fail(internal())

        self._emit(operation, input_data, output)
        return output

    def _emit(self, operation: str, input_data: Any, output: ArticleOperationOutput) -> None:
        article_id = (
            output.detail.article.id if output.detail else getattr(input_data, "article_id", None)
        )
        method, endpoint, ok_status = _ROUTES[operation]

        metadata: dict[str, Any] = {}
        if article_id is not None:
            endpoint = endpoint.format(id=article_id)
            metadata["article_id"] = str(article_id)
        if output.detail is not None:
            metadata["status"] = output.detail.article.status.value

        report_outcome(
            self._audit,
            module="articles",
            operation=operation,
            method=method,
            endpoint=endpoint,
            ok_status=ok_status,
            user_id=input_data.identity.user_id,
            errors=output.errors,
            context=getattr(input_data, "context", None),
            metadata=metadata,
        )
