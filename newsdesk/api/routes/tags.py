"""Tag API. Reads are public, writes need a token."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from newsdesk.api.deps import get_identity, get_request_context, get_tag_component
from newsdesk.api.errors import raise_for_errors
from newsdesk.api.schemas import TagCreateRequest, TagListResponse, TagUpdateRequest
from newsdesk.components.audit import RequestContext
from newsdesk.components.tags import (
    CreateTagInput,
    DeleteTagInput,
    GetTagInput,
    ListTagsInput,
    TagComponent,
    TagOutput,
    UpdateTagInput,
)
from newsdesk.domain.entities import Tag
from newsdesk.domain.policy import Identity

router = APIRouter()


def _tag(output: TagOutput) -> Tag:
    raise_for_errors(output.errors)
    assert output.tag is not None
    return output.tag


@router.get("", response_model=TagListResponse)
def list_tags(
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    component: TagComponent = Depends(get_tag_component),
) -> Any:
    result = component.run_list(ListTagsInput(search=search, page=page, limit=limit))
    raise_for_errors(result.errors)
    return TagListResponse(
        items=result.items, total=result.total, page=result.page, limit=result.limit
    )


@router.get("/{tag_id}", response_model=Tag)
def get_tag(tag_id: UUID, component: TagComponent = Depends(get_tag_component)) -> Any:
    return _tag(component.run_get(GetTagInput(tag_id=tag_id)))


@router.post("", response_model=Tag, status_code=status.HTTP_201_CREATED)
def create_tag(
    req: TagCreateRequest,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    component: TagComponent = Depends(get_tag_component),
) -> Any:
    return _tag(
        component.run_create(
            CreateTagInput(
                identity=identity,
                name=req.name,
                slug=req.slug,
                description=req.description,
                context=context,
            )
        )
    )


@router.put("/{tag_id}", response_model=Tag)
def update_tag(
    tag_id: UUID,
    req: TagUpdateRequest,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    component: TagComponent = Depends(get_tag_component),
) -> Any:
    return _tag(
        component.run_update(
            UpdateTagInput(
                identity=identity,
                tag_id=tag_id,
                name=req.name,
                slug=req.slug,
                description=req.description,
                context=context,
            )
        )
    )


@router.delete("/{tag_id}")
def delete_tag(
    tag_id: UUID,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    component: TagComponent = Depends(get_tag_component),
) -> dict[str, str]:
    result = component.run_delete(
        DeleteTagInput(identity=identity, tag_id=tag_id, context=context)
    )
    raise_for_errors(result.errors)
    return {"message": "Tag deleted"}
