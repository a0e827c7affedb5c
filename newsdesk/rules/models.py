from pydantic import BaseModel, Field


class RoleSeed(BaseModel):
    description: str | None = None
    permissions: dict[str, list[str]] = Field(default_factory=dict)


class PolicyRules(BaseModel):
    admin_roles: list[str] = Field(default_factory=lambda: ["admin"])
    admin_permissions: list[str] = Field(
        default_factory=lambda: ["articles:approve", "articles:publish"]
    )


class ContentRules(BaseModel):
    words_per_minute: int = Field(default=200, gt=0)
    default_visibility: str = "web,mobile"
    title_max_length: int = Field(default=500, gt=0)
    slug_max_length: int = Field(default=500, gt=0)


class TaxonomyRules(BaseModel):
    name_max_length: int = Field(default=200, gt=0)
    slug_max_length: int = Field(default=200, gt=0)


class AuditRules(BaseModel):
    sensitive_fields: list[str] = Field(
        default_factory=lambda: [
            "password",
            "token",
            "accessToken",
            "refreshToken",
            "authorization",
        ]
    )
    log_dir: str = "logs"
    file_enabled: bool = True


class Rules(BaseModel):
    roles: dict[str, RoleSeed] = Field(default_factory=dict)
    policy: PolicyRules = Field(default_factory=PolicyRules)
    content: ContentRules = Field(default_factory=ContentRules)
    taxonomy: TaxonomyRules = Field(default_factory=TaxonomyRules)
    audit: AuditRules = Field(default_factory=AuditRules)
