"""Category tree API. Reads are public, writes need a token."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from newsdesk.api.deps import get_category_component, get_identity, get_request_context
from newsdesk.api.errors import raise_for_errors
from newsdesk.api.schemas import (
    CategoryCreateRequest,
    CategoryMoveRequest,
    CategoryNodeResponse,
    CategoryUpdateRequest,
)
from newsdesk.components.audit import RequestContext
from newsdesk.components.categories import (
    CategoryComponent,
    CategoryOperationOutput,
    CreateCategoryInput,
    DeleteCategoryInput,
    GetCategoryInput,
    GetTreeInput,
    MoveCategoryInput,
    UpdateCategoryInput,
)
from newsdesk.domain.codecs import CATEGORY_TYPE
from newsdesk.domain.entities import Category, CategoryType
from newsdesk.domain.policy import Identity

router = APIRouter()


def parse_category_type(value: str) -> CategoryType:
    try:
        return CATEGORY_TYPE.decode(value)
    except ValueError:
        valid = ", ".join(CATEGORY_TYPE.wire_values())
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid category type: {value}. Must be one of: {valid}",
        ) from None


def _category(output: CategoryOperationOutput) -> Category:
    raise_for_errors(output.errors)
    assert output.category is not None
    return output.category


@router.get("", response_model=list[CategoryNodeResponse])
def get_tree(
    type_filter: str | None = Query(None, alias="type"),
    component: CategoryComponent = Depends(get_category_component),
) -> Any:
    category_type = parse_category_type(type_filter) if type_filter else None
    result = component.run_get_tree(GetTreeInput(category_type=category_type))
    raise_for_errors(result.errors)
    return [CategoryNodeResponse.from_node(root) for root in result.roots]


@router.get("/{category_id}", response_model=CategoryNodeResponse)
def get_category(
    category_id: UUID,
    component: CategoryComponent = Depends(get_category_component),
) -> Any:
    result = component.run_get(GetCategoryInput(category_id=category_id))
    raise_for_errors(result.errors)
    assert result.node is not None
    return CategoryNodeResponse.from_node(result.node)


@router.post("", response_model=Category, status_code=status.HTTP_201_CREATED)
def create_category(
    req: CategoryCreateRequest,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    component: CategoryComponent = Depends(get_category_component),
) -> Any:
    return _category(
        component.run_create(
            CreateCategoryInput(
                identity=identity,
                name=req.name,
                slug=req.slug,
                type=parse_category_type(req.type),
                description=req.description,
                parent_id=req.parent_id,
                order=req.order,
                context=context,
            )
        )
    )


@router.put("/{category_id}", response_model=Category)
def update_category(
    category_id: UUID,
    req: CategoryUpdateRequest,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    component: CategoryComponent = Depends(get_category_component),
) -> Any:
    return _category(
        component.run_update(
            UpdateCategoryInput(
                identity=identity,
                category_id=category_id,
                updates=req.model_dump(exclude_unset=True),
                context=context,
            )
        )
    )


@router.patch("/{category_id}/move", response_model=Category)
def move_category(
    category_id: UUID,
    req: CategoryMoveRequest,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    component: CategoryComponent = Depends(get_category_component),
) -> Any:
    return _category(
        component.run_move(
            MoveCategoryInput(
                identity=identity,
                category_id=category_id,
                parent_id=req.parent_id,
                context=context,
            )
        )
    )


@router.delete("/{category_id}")
def delete_category(
    category_id: UUID,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    component: CategoryComponent = Depends(get_category_component),
) -> dict[str, str]:
    result = component.run_delete(
        DeleteCategoryInput(identity=identity, category_id=category_id, context=context)
    )
    raise_for_errors(result.errors)
    return {"message": "Category deleted"}
