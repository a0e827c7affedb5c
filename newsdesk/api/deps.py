import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from newsdesk.adapters.audit_sinks import JsonFileAuditSink
from newsdesk.adapters.clock import SystemClock
from newsdesk.adapters.sqlite import (
    SQLiteArticleRepo,
    SQLiteCategoryRepo,
    SQLiteLogRepo,
    SQLiteMigrator,
    SQLiteRoleRepo,
    SQLiteTagRepo,
)
from newsdesk.api.auth_utils import decode_access_token
from newsdesk.components.articles import ArticleWorkflow, WorkflowSettings
from newsdesk.components.audit import AuditComponent, AuditRecorder, RequestContext
from newsdesk.components.audit.ports import AuditSinkPort
from newsdesk.components.categories import CategoryComponent
from newsdesk.components.roles import RoleComponent
from newsdesk.components.tags import TagComponent
from newsdesk.domain.entities import Role
from newsdesk.domain.policy import Identity, PermissionModel
from newsdesk.rules.loader import load_rules, permission_model_from_rules
from newsdesk.rules.models import Rules

logger = logging.getLogger(__name__)


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("NEWSDESK_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "newsdesk.db")
        self.rules_path = Path(os.environ.get("NEWSDESK_RULES_PATH", self.base_dir / "rules.yaml"))
        self.migrations_dir = str(self.base_dir / "migrations")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def _load_rules(path: Path) -> Rules:
    return load_rules(path)


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return _load_rules(settings.rules_path)


def get_permission_model(rules: Rules = Depends(get_rules)) -> PermissionModel:
    return permission_model_from_rules(rules)


# --- Storage bootstrap ---
def seed_roles(role_repo: SQLiteRoleRepo, rules: Rules) -> list[Role]:
    """Insert the configured roles that do not exist yet. Existing roles are left alone."""
    created = []
    for name, seed in rules.roles.items():
        if role_repo.get_by_name(name) is not None:
            continue
        role = Role(
            name=name,
            description=seed.description,
            permissions={m: tuple(dict.fromkeys(a)) for m, a in seed.permissions.items()},
        )
        created.append(role_repo.save(role))
        logger.info("Seeded role %s", name)
    return created


def prepare_storage(settings: Settings, rules: Rules) -> None:
    """Create the data directory, apply migrations and seed roles."""
    Path(settings.db_path).parent.mkdir(parents=True, exist_ok=True)
    SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
    seed_roles(SQLiteRoleRepo(settings.db_path), rules)


# --- Repos ---
def get_article_repo(settings: Settings = Depends(get_settings)) -> SQLiteArticleRepo:
    return SQLiteArticleRepo(settings.db_path)


def get_category_repo(settings: Settings = Depends(get_settings)) -> SQLiteCategoryRepo:
    return SQLiteCategoryRepo(settings.db_path)


def get_tag_repo(settings: Settings = Depends(get_settings)) -> SQLiteTagRepo:
    return SQLiteTagRepo(settings.db_path)


def get_role_repo(settings: Settings = Depends(get_settings)) -> SQLiteRoleRepo:
    return SQLiteRoleRepo(settings.db_path)


def get_log_repo(settings: Settings = Depends(get_settings)) -> SQLiteLogRepo:
    return SQLiteLogRepo(settings.db_path)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Audit ---
def get_audit_recorder(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
    log_repo: SQLiteLogRepo = Depends(get_log_repo),
) -> AuditRecorder:
    sinks: list[AuditSinkPort] = [log_repo]
    if rules.audit.file_enabled:
        log_dir = Path(rules.audit.log_dir)
        if not log_dir.is_absolute():
            log_dir = settings.data_dir / log_dir
        sinks.append(JsonFileAuditSink(log_dir))
    return AuditRecorder(sinks, sensitive_fields=rules.audit.sensitive_fields)


# --- Components ---
def get_article_workflow(
    rules: Rules = Depends(get_rules),
    article_repo: SQLiteArticleRepo = Depends(get_article_repo),
    category_repo: SQLiteCategoryRepo = Depends(get_category_repo),
    tag_repo: SQLiteTagRepo = Depends(get_tag_repo),
    permissions: PermissionModel = Depends(get_permission_model),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> ArticleWorkflow:
    return ArticleWorkflow(
        article_repo,
        category_repo,
        tag_repo,
        permissions,
        clock,
        audit=audit,
        settings=WorkflowSettings.from_rules(rules.content),
    )


def get_category_component(
    rules: Rules = Depends(get_rules),
    repo: SQLiteCategoryRepo = Depends(get_category_repo),
    permissions: PermissionModel = Depends(get_permission_model),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> CategoryComponent:
    return CategoryComponent(repo, permissions, clock, audit=audit, rules=rules.taxonomy)


def get_tag_component(
    rules: Rules = Depends(get_rules),
    repo: SQLiteTagRepo = Depends(get_tag_repo),
    permissions: PermissionModel = Depends(get_permission_model),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> TagComponent:
    return TagComponent(repo, permissions, clock, audit=audit, rules=rules.taxonomy)


def get_role_component(
    repo: SQLiteRoleRepo = Depends(get_role_repo),
    permissions: PermissionModel = Depends(get_permission_model),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> RoleComponent:
    return RoleComponent(repo, permissions, clock, audit=audit)


def get_audit_component(log_repo: SQLiteLogRepo = Depends(get_log_repo)) -> AuditComponent:
    return AuditComponent(log_repo)


# --- Auth ---
bearer_scheme = HTTPBearer(auto_error=False)


def get_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    role_repo: SQLiteRoleRepo = Depends(get_role_repo),
    permissions: PermissionModel = Depends(get_permission_model),
) -> Identity:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        ) from None

    # An unknown role authorizes nothing.
    role_name = payload.get("role")
    role = role_repo.get_by_name(role_name) if isinstance(role_name, str) else None
    return permissions.build_identity(
        user_id,
        role.id if role else None,
        role.name if role else None,
        role.permissions if role else {},
    )


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        endpoint=request.url.path,
        method=request.method,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
