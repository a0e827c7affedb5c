"""
Categories component - category tree reads and admin mutations.

Categories form a forest through ``parent_id``. Reads return the tree as
stored (order ascending, then name); writes need admin-equivalent rights or
the explicit ``categories:<action>`` grant. Reparenting checks that the new
parent exists and is not the category itself; deeper cycles are not
detected.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID, uuid4

from pydantic import ValidationError

from newsdesk.components.audit import AuditPort, report_outcome
from newsdesk.components.errors import (
    OperationError,
    PersistenceError,
    conflict,
    forbidden,
    internal,
    not_found,
    validation,
)
from newsdesk.domain.codecs import CATEGORY_TYPE
from newsdesk.domain.entities import Category, CategoryType
from newsdesk.domain.policy import Identity, PermissionModel
from newsdesk.domain.slug import generate_slug, is_valid_slug
from newsdesk.domain.tree import CategoryNode, build_tree
from newsdesk.rules.models import TaxonomyRules

from .models import (
    UPDATABLE_FIELDS,
    CategoryNodeOutput,
    CategoryOperationOutput,
    CategoryTreeOutput,
    CreateCategoryInput,
    DeleteCategoryInput,
    GetCategoryInput,
    GetTreeInput,
    MoveCategoryInput,
    UpdateCategoryInput,
)
from .ports import CategoryRepoPort, ClockPort

logger = logging.getLogger(__name__)

CategoryInput = (
    GetTreeInput
    | GetCategoryInput
    | CreateCategoryInput
    | UpdateCategoryInput
    | DeleteCategoryInput
    | MoveCategoryInput
)
CategoryOutput = CategoryTreeOutput | CategoryNodeOutput | CategoryOperationOutput

_ENDPOINT = "/api/v1/categories"


def _fail(*errors: OperationError) -> CategoryOperationOutput:
    return CategoryOperationOutput(category=None, errors=list(errors), success=False)


def _validate_name(name: Any, max_length: int) -> list[OperationError]:
    if not isinstance(name, str) or not name.strip():
        return [validation("Name is required", "name_required", "name")]
    if len(name) > max_length:
        return [
            validation(f"Name must be at most {max_length} characters", "name_too_long", "name")
        ]
    return []


def _validate_slug(slug: Any, max_length: int) -> list[OperationError]:
    if not isinstance(slug, str) or not is_valid_slug(slug) or len(slug) > max_length:
        return [
            validation(
                f"Slug must be lowercase letters, numbers and hyphens, at most {max_length} "
                "characters",
                "slug_invalid",
                "slug",
            )
        ]
    return []


class CategoryComponent:
    """Component for the category tree."""

    def __init__(
        self,
        repo: CategoryRepoPort,
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

    def run(self, input_data: CategoryInput) -> CategoryOutput:
        """Main dispatcher - routes to appropriate handler based on input type."""
        if isinstance(input_data, GetTreeInput):
            return self.run_get_tree(input_data)
        elif isinstance(input_data, GetCategoryInput):
            return self.run_get(input_data)
        elif isinstance(input_data, CreateCategoryInput):
            return self.run_create(input_data)
        elif isinstance(input_data, UpdateCategoryInput):
            return self.run_update(input_data)
        elif isinstance(input_data, DeleteCategoryInput):
            return self.run_delete(input_data)
        elif isinstance(input_data, MoveCategoryInput):
            return self.run_move(input_data)
        else:
            raise TypeError(f"Unknown input type: {type(input_data)}")

    # --- Reads ---

    def run_get_tree(self, input_data: GetTreeInput) -> CategoryTreeOutput:
        try:
            categories = self._repo.list_all(input_data.category_type)
        except PersistenceError:
            logger.exception("Failed to load category tree")
            return CategoryTreeOutput(roots=[], errors=[internal()], success=False)
        return CategoryTreeOutput(roots=build_tree(categories))

    def run_get(self, input_data: GetCategoryInput) -> CategoryNodeOutput:
        """A category with its descendants."""
        try:
            roots = build_tree(self._repo.list_all())
        except PersistenceError:
            logger.exception("Failed to load category %s", input_data.category_id)
            return CategoryNodeOutput(node=None, errors=[internal()], success=False)

        node = _find_node(roots, input_data.category_id)
        if node is None:
            return CategoryNodeOutput(
                node=None,
                errors=[not_found(f"Category {input_data.category_id} not found")],
                success=False,
            )
        return CategoryNodeOutput(node=node)

    # --- Mutations ---

    def run_create(self, input_data: CreateCategoryInput) -> CategoryOperationOutput:
        output = self._guarded("create", input_data, self._create)
        self._emit("create", "POST", _ENDPOINT, 201, input_data, output, None)
        return output

    def run_update(self, input_data: UpdateCategoryInput) -> CategoryOperationOutput:
        output = self._guarded("update", input_data, self._update)
        endpoint = f"{_ENDPOINT}/{input_data.category_id}"
        self._emit("update", "PUT", endpoint, 200, input_data, output, input_data.category_id)
        return output

    def run_delete(self, input_data: DeleteCategoryInput) -> CategoryOperationOutput:
        output = self._guarded("delete", input_data, self._delete)
        endpoint = f"{_ENDPOINT}/{input_data.category_id}"
        self._emit("delete", "DELETE", endpoint, 200, input_data, output, input_data.category_id)
        return output

    def run_move(self, input_data: MoveCategoryInput) -> CategoryOperationOutput:
        output = self._guarded("move", input_data, self._move)
        endpoint = f"{_ENDPOINT}/{input_data.category_id}/move"
        self._emit("move", "PATCH", endpoint, 200, input_data, output, input_data.category_id)
        return output

    def _create(self, inp: CreateCategoryInput) -> CategoryOperationOutput:
        if not self._permissions.can(inp.identity, "categories", "create"):
            return _fail(forbidden("You are not allowed to create categories"))

        errors = _validate_name(inp.name, self._rules.name_max_length)
        if inp.slug:
            errors.extend(_validate_slug(inp.slug, self._rules.slug_max_length))
            slug = inp.slug
        else:
            slug = generate_slug(inp.name or "")[: self._rules.slug_max_length].strip("-")
            if not slug and not errors:
                errors.append(
                    validation("Name does not produce a usable slug", "slug_required", "slug")
                )
        if errors:
            return _fail(*errors)

        if self._repo.get_by_slug(slug) is not None:
            return _fail(validation("Category slug already exists", "slug_exists", "slug"))

        if inp.parent_id is not None and self._repo.get_by_id(inp.parent_id) is None:
            return _fail(
                validation("Parent category not found", "parent_not_found", "parent_id")
            )

        now = self._clock.now()
        category = Category(
            id=uuid4(),
            name=inp.name,
            slug=slug,
            type=inp.type,
            description=inp.description,
            parent_id=inp.parent_id,
            is_active=True,
            order=inp.order,
            created_at=now,
            updated_at=now,
        )
        saved = self._repo.save(category)
        logger.info("Category %s (%s) created", saved.id, saved.slug)
        return CategoryOperationOutput(category=saved)

    def _update(self, inp: UpdateCategoryInput) -> CategoryOperationOutput:
        if not self._permissions.can(inp.identity, "categories", "update"):
            return _fail(forbidden("You are not allowed to update categories"))

        category = self._repo.get_by_id(inp.category_id)
        if category is None:
            return _fail(not_found(f"Category {inp.category_id} not found"))

        unknown = sorted(set(inp.updates) - UPDATABLE_FIELDS)
        if unknown:
            return _fail(
                validation(f"Fields cannot be updated: {', '.join(unknown)}", "field_not_updatable")
            )

        changes = dict(inp.updates)
        errors: list[OperationError] = []

        if "name" in changes:
            errors.extend(_validate_name(changes["name"], self._rules.name_max_length))

        slug = changes.pop("slug", None)
        if slug and slug != category.slug:
            slug_errors = _validate_slug(slug, self._rules.slug_max_length)
            errors.extend(slug_errors)
            existing = self._repo.get_by_slug(slug) if not slug_errors else None
            if existing is not None and existing.id != category.id:
                errors.append(validation("Category slug already exists", "slug_exists", "slug"))
            changes["slug"] = slug

        if isinstance(changes.get("type"), str) and not isinstance(
            changes["type"], CategoryType
        ):
            try:
                changes["type"] = CATEGORY_TYPE.decode(changes["type"])
            except ValueError as e:
                errors.append(validation(str(e), "type_invalid", "type"))

        if "parent_id" in changes:
            errors.extend(self._check_parent(category.id, changes["parent_id"]))

        if errors:
            return _fail(*errors)

        changes["updated_at"] = self._clock.now()
        try:
            updated = Category.model_validate({**category.model_dump(), **changes})
        except ValidationError as e:
            return _fail(
                *[
                    validation(err["msg"], "invalid_value", ".".join(str(p) for p in err["loc"]))
                    for err in e.errors()
                ]
            )

        saved = self._repo.save(updated)
        logger.debug("Category %s updated fields %s", saved.id, sorted(inp.updates))
        return CategoryOperationOutput(category=saved)

    def _delete(self, inp: DeleteCategoryInput) -> CategoryOperationOutput:
        if not self._permissions.can(inp.identity, "categories", "delete"):
            return _fail(forbidden("You are not allowed to delete categories"))

        category = self._repo.get_by_id(inp.category_id)
        if category is None:
            return _fail(not_found(f"Category {inp.category_id} not found"))

        if self._repo.list_children(category.id):
            return _fail(
                conflict(
                    "Cannot delete a category that has children",
                    code="has_children",
                    field=None,
                )
            )

        self._repo.delete(category.id)
        logger.info("Category %s deleted", category.id)
        return CategoryOperationOutput(category=None)

    def _move(self, inp: MoveCategoryInput) -> CategoryOperationOutput:
        if not self._permissions.can(inp.identity, "categories", "update"):
            return _fail(forbidden("You are not allowed to move categories"))

        category = self._repo.get_by_id(inp.category_id)
        if category is None:
            return _fail(not_found(f"Category {inp.category_id} not found"))

        errors = self._check_parent(category.id, inp.parent_id)
        if errors:
            return _fail(*errors)

        moved = category.model_copy(
            update={"parent_id": inp.parent_id, "updated_at": self._clock.now()}
        )
        saved = self._repo.save(moved)
        logger.info("Category %s moved under %s", saved.id, inp.parent_id or "root")
        return CategoryOperationOutput(category=saved)

    # --- Helpers ---

    def _check_parent(self, category_id: UUID, parent_id: UUID | None) -> list[OperationError]:
        if parent_id is None:
            return []
        if parent_id == category_id:
            return [
                validation("Category cannot be its own parent", "parent_self", "parent_id")
            ]
        if self._repo.get_by_id(parent_id) is None:
            return [validation("Parent category not found", "parent_not_found", "parent_id")]
        return []

    def _guarded(self, operation: str, input_data: Any, handler: Any) -> CategoryOperationOutput:
        try:
            return handler(input_data)
        except PersistenceError:
            logger.exception("Category %s failed on a storage error", operation)
            return _fail(internal())

    def _emit(
        self,
        operation: str,
        method: str,
        endpoint: str,
        ok_status: int,
        input_data: Any,
        output: CategoryOperationOutput,
        category_id: UUID | None,
    ) -> None:
        identity: Identity = input_data.identity
        if category_id is None and output.category is not None:
            category_id = output.category.id
        report_outcome(
            self._audit,
            module="categories",
            operation=operation,
            method=method,
            endpoint=endpoint,
            ok_status=ok_status,
            user_id=identity.user_id,
            errors=output.errors,
            context=input_data.context,
            metadata={"category_id": str(category_id)} if category_id else None,
        )


def _find_node(roots: list[CategoryNode], category_id: UUID) -> CategoryNode | None:
    stack = list(roots)
    while stack:
        node = stack.pop()
        if node.id == category_id:
            return node
        stack.extend(node.children)
    return None
