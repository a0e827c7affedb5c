from pathlib import Path

import pytest

from newsdesk.adapters.sqlite import SQLiteMigrator
from newsdesk.rules.loader import load_rules
from newsdesk.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parents[1]
MIGRATIONS_DIR = PROJECT_ROOT / "migrations"


@pytest.fixture
def rules() -> Rules:
    """The real rules file from the project root."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """A migrated SQLite database in a temporary directory."""
    path = str(tmp_path / "newsdesk.db")
    SQLiteMigrator(path, str(MIGRATIONS_DIR)).run_migrations()
    return path
