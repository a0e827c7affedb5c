"""
Article workflow API.

Thin mapping from HTTP onto ArticleWorkflow; the status code of a failed
operation comes from its first error.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from newsdesk.api.deps import get_article_workflow, get_identity, get_request_context
from newsdesk.api.errors import raise_for_errors
from newsdesk.api.schemas import (
    ArticleCreateRequest,
    ArticleListResponse,
    ArticleUpdateRequest,
    ReviewRequest,
)
from newsdesk.components.articles import (
    ApproveArticleInput,
    ArticleOperationOutput,
    ArticleWorkflow,
    CreateArticleInput,
    DeleteArticleInput,
    GetArticleInput,
    ListArticlesInput,
    PublishArticleInput,
    RejectArticleInput,
    SubmitArticleInput,
    UpdateArticleInput,
)
from newsdesk.components.audit import RequestContext
from newsdesk.domain.entities import ArticleDetail, ArticleStatus
from newsdesk.domain.policy import Identity

router = APIRouter()


def _detail(output: ArticleOperationOutput) -> ArticleDetail:
    raise_for_errors(output.errors)
    assert output.detail is not None
    return output.detail


@router.get("", response_model=ArticleListResponse)
def list_articles(
    status_filter: ArticleStatus | None = Query(None, alias="status"),
    author_id: UUID | None = None,
    category_id: UUID | None = None,
    tag_id: UUID | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(get_identity),
    workflow: ArticleWorkflow = Depends(get_article_workflow),
) -> Any:
    result = workflow.run_list(
        ListArticlesInput(
            identity=identity,
            status=status_filter,
            author_id=author_id,
            category_id=category_id,
            tag_id=tag_id,
            search=search,
            page=page,
            limit=limit,
        )
    )
    raise_for_errors(result.errors)
    return ArticleListResponse(
        items=result.items,
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("/{article_id}", response_model=ArticleDetail)
def get_article(
    article_id: UUID,
    identity: Identity = Depends(get_identity),
    workflow: ArticleWorkflow = Depends(get_article_workflow),
) -> Any:
    return _detail(workflow.run_get(GetArticleInput(identity=identity, article_id=article_id)))


@router.post("", response_model=ArticleDetail, status_code=status.HTTP_201_CREATED)
def create_article(
    req: ArticleCreateRequest,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    workflow: ArticleWorkflow = Depends(get_article_workflow),
) -> Any:
    return _detail(
        workflow.run_create(CreateArticleInput(identity=identity, context=context, **dict(req)))
    )


@router.put("/{article_id}", response_model=ArticleDetail)
def update_article(
    article_id: UUID,
    req: ArticleUpdateRequest,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    workflow: ArticleWorkflow = Depends(get_article_workflow),
) -> Any:
    updates = req.model_dump(exclude_unset=True)
    category_ids = updates.pop("category_ids", None)
    tag_ids = updates.pop("tag_ids", None)
    return _detail(
        workflow.run_update(
            UpdateArticleInput(
                identity=identity,
                article_id=article_id,
                updates=updates,
                category_ids=category_ids,
                tag_ids=tag_ids,
                context=context,
            )
        )
    )


@router.post("/{article_id}/submit", response_model=ArticleDetail)
def submit_article(
    article_id: UUID,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    workflow: ArticleWorkflow = Depends(get_article_workflow),
) -> Any:
    return _detail(
        workflow.run_submit(
            SubmitArticleInput(identity=identity, article_id=article_id, context=context)
        )
    )


@router.post("/{article_id}/approve", response_model=ArticleDetail)
def approve_article(
    article_id: UUID,
    req: ReviewRequest | None = None,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    workflow: ArticleWorkflow = Depends(get_article_workflow),
) -> Any:
    return _detail(
        workflow.run_approve(
            ApproveArticleInput(
                identity=identity,
                article_id=article_id,
                review_notes=req.review_notes if req else None,
                context=context,
            )
        )
    )


@router.post("/{article_id}/reject", response_model=ArticleDetail)
def reject_article(
    article_id: UUID,
    req: ReviewRequest | None = None,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    workflow: ArticleWorkflow = Depends(get_article_workflow),
) -> Any:
    return _detail(
        workflow.run_reject(
            RejectArticleInput(
                identity=identity,
                article_id=article_id,
                review_notes=req.review_notes if req else None,
                context=context,
            )
        )
    )


@router.post("/{article_id}/publish", response_model=ArticleDetail)
def publish_article(
    article_id: UUID,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    workflow: ArticleWorkflow = Depends(get_article_workflow),
) -> Any:
    return _detail(
        workflow.run_publish(
            PublishArticleInput(identity=identity, article_id=article_id, context=context)
        )
    )


@router.delete("/{article_id}")
def delete_article(
    article_id: UUID,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    workflow: ArticleWorkflow = Depends(get_article_workflow),
) -> dict[str, str]:
    result = workflow.run_delete(
        DeleteArticleInput(identity=identity, article_id=article_id, context=context)
    )
    raise_for_errors(result.errors)
    return {"message": "Article deleted"}
