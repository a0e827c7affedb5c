"""Public article reads. No token; only published articles are visible."""

from typing import Any

from fastapi import APIRouter, Depends

from newsdesk.api.deps import get_article_workflow
from newsdesk.api.errors import raise_for_errors
from newsdesk.components.articles import ArticleWorkflow, ReadPublishedArticleInput
from newsdesk.domain.entities import ArticleDetail

router = APIRouter()


@router.get("/{slug}", response_model=ArticleDetail)
def read_published_article(
    slug: str, workflow: ArticleWorkflow = Depends(get_article_workflow)
) -> Any:
    result = workflow.run_read_published(ReadPublishedArticleInput(slug=slug))
    raise_for_errors(result.errors)
    return result.detail
