from .migrator import SQLiteMigrator
from .repos import (
    SQLiteArticleRepo,
    SQLiteCategoryRepo,
    SQLiteLogRepo,
    SQLiteRoleRepo,
    SQLiteTagRepo,
)

__all__ = [
    "SQLiteMigrator",
    "SQLiteArticleRepo",
    "SQLiteCategoryRepo",
    "SQLiteTagRepo",
    "SQLiteRoleRepo",
    "SQLiteLogRepo",
]
