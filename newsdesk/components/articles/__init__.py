"""
Articles component - Editorial workflow for articles.
"""

from .component import ArticleInput, ArticleOutput, ArticleWorkflow
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

__all__ = [
    # Component
    "ArticleWorkflow",
    "ArticleInput",
    "ArticleOutput",
    "WorkflowSettings",
    "UPDATABLE_FIELDS",
    # Inputs
    "CreateArticleInput",
    "UpdateArticleInput",
    "SubmitArticleInput",
    "ApproveArticleInput",
    "RejectArticleInput",
    "PublishArticleInput",
    "DeleteArticleInput",
    "GetArticleInput",
    "ListArticlesInput",
    "ReadPublishedArticleInput",
    # Outputs
    "ArticleOperationOutput",
    "ArticleListOutput",
    # Ports
    "ArticleFilter",
    "ArticleRepoPort",
    "CategoryLookupPort",
    "ClockPort",
    "Relation",
    "TagLookupPort",
]
