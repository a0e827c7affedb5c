"""
Categories component - Category tree reads and mutations.
"""

from .component import CategoryComponent, CategoryInput, CategoryOutput
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

__all__ = [
    # Component
    "CategoryComponent",
    "CategoryInput",
    "CategoryOutput",
    "UPDATABLE_FIELDS",
    # Inputs
    "GetTreeInput",
    "GetCategoryInput",
    "CreateCategoryInput",
    "UpdateCategoryInput",
    "DeleteCategoryInput",
    "MoveCategoryInput",
    # Outputs
    "CategoryTreeOutput",
    "CategoryNodeOutput",
    "CategoryOperationOutput",
    # Ports
    "CategoryRepoPort",
    "ClockPort",
]
