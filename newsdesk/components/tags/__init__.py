"""
Tags component - Tag vocabulary management.
"""

from .component import TagComponent, TagInput, TagResult
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

__all__ = [
    "TagComponent",
    "TagInput",
    "TagResult",
    "ListTagsInput",
    "GetTagInput",
    "CreateTagInput",
    "UpdateTagInput",
    "DeleteTagInput",
    "TagListOutput",
    "TagOutput",
    "TagRepoPort",
    "ClockPort",
]
