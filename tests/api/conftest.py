from collections.abc import Callable, Iterator
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from newsdesk.api.auth_utils import create_access_token
from newsdesk.api.deps import Settings, get_settings, prepare_storage
from newsdesk.api.main import app
from newsdesk.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def settings(tmp_path: Path, rules: Rules) -> Settings:
    s = Settings()
    s.data_dir = tmp_path / "data"
    s.db_path = str(s.data_dir / "newsdesk.db")
    s.rules_path = PROJECT_ROOT / "rules.yaml"
    s.migrations_dir = str(PROJECT_ROOT / "migrations")
    prepare_storage(s, rules)
    return s


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


AuthHeaders = Callable[..., dict[str, str]]


@pytest.fixture
def auth_headers() -> AuthHeaders:
    def _headers(role: str = "user", user_id: str | None = None) -> dict[str, str]:
        token = create_access_token({"sub": user_id or str(uuid4()), "role": role})
        return {"Authorization": f"Bearer {token}"}

    return _headers
