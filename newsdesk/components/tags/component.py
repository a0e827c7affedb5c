"""Tags component - flat tag vocabulary for articles."""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from newsdesk.components.audit import AuditPort, report_outcome
from newsdesk.components.errors import (
    OperationError,
    PersistenceError,
    forbidden,
    internal,
    not_found,
    validation,
)
from newsdesk.domain.entities import Tag
from newsdesk.domain.policy import PermissionModel
from newsdesk.domain.slug import generate_slug, is_valid_slug
from newsdesk.rules.models import TaxonomyRules

from .models import (
    CreateTagInput,
    DeleteTagInput,
    GetTagInput,
    ListTagsInput,
    TagListOutput,
    TagOutput,
    UpdateTagInput,
)
from .ports import ClockPort, TagRepoPort

logger = logging.getLogger(__name__)

TagInput = ListTagsInput | GetTagInput | CreateTagInput | UpdateTagInput | DeleteTagInput
TagResult = TagListOutput | TagOutput

_ENDPOINT = "/api/v1/tags"


def _fail(*errors: OperationError) -> TagOutput:
    return TagOutput(tag=None, errors=list(errors), success=False)


class TagComponent:
    """Component for tag CRUD."""

    def __init__(
        self,
        repo: TagRepoPort,
        permissions: PermissionModel,
        clock: ClockPort,
        audit: AuditPort | None = None,
        rules: TaxonomyRules | None = None,
    ) -> None:
        self._repo = repo
        self._permissions = permissions
        self._clock = clock
        self._audit = audit
        self._rules = rules or TaxonomyRules()

    def run(self, input_data: TagInput) -> TagResult:
        """Main dispatcher - routes to appropriate handler based on input type."""
        if isinstance(input_data, ListTagsInput):
            return self.run_list(input_data)
        elif isinstance(input_data, GetTagInput):
            return self.run_get(input_data)
        elif isinstance(input_data, CreateTagInput):
            return self.run_create(input_data)
        elif isinstance(input_data, UpdateTagInput):
            return self.run_update(input_data)
        elif isinstance(input_data, DeleteTagInput):
            return self.run_delete(input_data)
        else:
            raise TypeError(f"Unknown input type: {type(input_data)}")

    def run_list(self, input_data: ListTagsInput) -> TagListOutput:
        page = max(input_data.page, 1)
        limit = max(input_data.limit, 1)
        try:
            items, total = self._repo.list(
                search=input_data.search or None, limit=limit, offset=(page - 1) * limit
            )
        except PersistenceError:
            logger.exception("Failed to list tags")
            return TagListOutput(
                items=[], total=0, page=page, limit=limit, errors=[internal()], success=False
            )
        return TagListOutput(items=items, total=total, page=page, limit=limit)

    def run_get(self, input_data: GetTagInput) -> TagOutput:
        try:
            tag = self._repo.get_by_id(input_data.tag_id)
        except PersistenceError:
            logger.exception("Failed to load tag %s", input_data.tag_id)
            return _fail(internal())
        if tag is None:
            return _fail(not_found(f"Tag {input_data.tag_id} not found"))
        return TagOutput(tag=tag)

    def run_create(self, input_data: CreateTagInput) -> TagOutput:
        output = self._guarded("create", input_data, self._create)
        self._emit("create", "POST", _ENDPOINT, 201, input_data, output)
        return output

    def run_update(self, input_data: UpdateTagInput) -> TagOutput:
        output = self._guarded("update", input_data, self._update)
        self._emit("update", "PUT", f"{_ENDPOINT}/{input_data.tag_id}", 200, input_data, output)
        return output

    def run_delete(self, input_data: DeleteTagInput) -> TagOutput:
        output = self._guarded("delete", input_data, self._delete)
        self._emit(
            "delete", "DELETE", f"{_ENDPOINT}/{input_data.tag_id}", 200, input_data, output
        )
        return output

    # --- Operations ---

    def _create(self, inp: CreateTagInput) -> TagOutput:
        if not self._permissions.can(inp.identity, "tags", "create"):
            return _fail(forbidden("You are not allowed to create tags"))

        errors = self._validate_name(inp.name)
        slug = inp.slug or generate_slug(inp.name or "")[: self._rules.slug_max_length].strip("-")
        if not errors:
            errors.extend(self._validate_slug(slug))
        if errors:
            return _fail(*errors)

        if self._repo.get_by_name(inp.name) is not None or self._repo.get_by_slug(slug) is not None:
            return _fail(validation("Tag name or slug already exists", "tag_exists", "name"))

        now = self._clock.now()
        tag = self._repo.save(
            Tag(
                id=uuid4(),
                name=inp.name,
                slug=slug,
                description=inp.description,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Tag %s (%s) created", tag.id, tag.slug)
        return TagOutput(tag=tag)

    def _update(self, inp: UpdateTagInput) -> TagOutput:
        if not self._permissions.can(inp.identity, "tags", "update"):
            return _fail(forbidden("You are not allowed to update tags"))

        tag = self._repo.get_by_id(inp.tag_id)
        if tag is None:
            return _fail(not_found(f"Tag {inp.tag_id} not found"))

        changes: dict[str, Any] = {}
        errors: list[OperationError] = []

        if inp.name:
            errors.extend(self._validate_name(inp.name))
            existing = self._repo.get_by_name(inp.name)
            if existing is not None and existing.id != tag.id:
                errors.append(validation("Tag name already exists", "name_exists", "name"))
            changes["name"] = inp.name

        if inp.slug:
            slug_errors = self._validate_slug(inp.slug)
            errors.extend(slug_errors)
            existing = self._repo.get_by_slug(inp.slug) if not slug_errors else None
            if existing is not None and existing.id != tag.id:
                errors.append(validation("Tag slug already exists", "slug_exists", "slug"))
            changes["slug"] = inp.slug

        if inp.description is not None:
            changes["description"] = inp.description

        if errors:
            return _fail(*errors)

        changes["updated_at"] = self._clock.now()
        saved = self._repo.save(tag.model_copy(update=changes))
        return TagOutput(tag=saved)

    def _delete(self, inp: DeleteTagInput) -> TagOutput:
        if not self._permissions.can(inp.identity, "tags", "delete"):
            return _fail(forbidden("You are not allowed to delete tags"))

        tag = self._repo.get_by_id(inp.tag_id)
        if tag is None:
            return _fail(not_found(f"Tag {inp.tag_id} not found"))

        self._repo.delete(tag.id)
        logger.info("Tag %s deleted", tag.id)
        return TagOutput(tag=None)

    # --- Helpers ---

    def _validate_name(self, name: Any) -> list[OperationError]:
        max_length = self._rules.name_max_length
        if not isinstance(name, str) or not name.strip():
            return [validation("Name is required", "name_required", "name")]
        if len(name) > max_length:
            return [
                validation(f"Name must be at most {max_length} characters", "name_too_long", "name")
            ]
        return []

    def _validate_slug(self, slug: str) -> list[OperationError]:
        if not is_valid_slug(slug) or len(slug) > self._rules.slug_max_length:
            return [
                validation(
                    "Slug must contain only lowercase letters, numbers, and hyphens",
                    "slug_invalid",
                    "slug",
                )
            ]
        return []

    def _guarded(self, operation: str, input_data: Any, handler: Any) -> TagOutput:
        try:
            return handler(input_data)
        except PersistenceError:
            logger.exception("Tag %s failed on a storage error", operation)
            return _fail(internal())

    def _emit(
        self,
        operation: str,
        method: str,
        endpoint: str,
        ok_status: int,
        input_data: CreateTagInput | UpdateTagInput | DeleteTagInput,
        output: TagOutput,
    ) -> None:
        tag_id = output.tag.id if output.tag else getattr(input_data, "tag_id", None)
        report_outcome(
            self._audit,
            module="tags",
            operation=operation,
            method=method,
            endpoint=endpoint,
            ok_status=ok_status,
            user_id=input_data.identity.user_id,
            errors=output.errors,
            context=input_data.context,
            metadata={"tag_id": str(tag_id)} if tag_id else None,
        )
