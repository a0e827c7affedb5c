"""Role API. Every route needs a token; writes also need a roles grant."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, status

from newsdesk.api.deps import get_identity, get_request_context, get_role_component
from newsdesk.api.errors import raise_for_errors
from newsdesk.api.schemas import (
    RoleCreateRequest,
    RoleListResponse,
    RolePermissionsRequest,
    RoleUpdateRequest,
)
from newsdesk.components.audit import RequestContext
from newsdesk.components.roles import (
    CreateRoleInput,
    DeleteRoleInput,
    GetRoleInput,
    ListRolesInput,
    RoleComponent,
    RoleOutput,
    UpdateRoleInput,
    UpdateRolePermissionsInput,
)
from newsdesk.domain.entities import Role
from newsdesk.domain.policy import Identity

router = APIRouter()


def _role(output: RoleOutput) -> Role:
    raise_for_errors(output.errors)
    assert output.role is not None
    return output.role


@router.get("", response_model=RoleListResponse)
def list_roles(
    identity: Identity = Depends(get_identity),
    component: RoleComponent = Depends(get_role_component),
) -> Any:
    result = component.run_list(ListRolesInput(identity=identity))
    raise_for_errors(result.errors)
    return RoleListResponse(items=result.items)


@router.get("/{role_id}", response_model=Role)
def get_role(
    role_id: UUID,
    identity: Identity = Depends(get_identity),
    component: RoleComponent = Depends(get_role_component),
) -> Any:
    return _role(component.run_get(GetRoleInput(identity=identity, role_id=role_id)))


@router.post("", response_model=Role, status_code=status.HTTP_201_CREATED)
def create_role(
    req: RoleCreateRequest,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    component: RoleComponent = Depends(get_role_component),
) -> Any:
    return _role(
        component.run_create(
            CreateRoleInput(
                identity=identity,
                name=req.name,
                description=req.description,
                permissions=req.permissions,
                context=context,
            )
        )
    )


@router.put("/{role_id}", response_model=Role)
def update_role(
    role_id: UUID,
    req: RoleUpdateRequest,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    component: RoleComponent = Depends(get_role_component),
) -> Any:
    return _role(
        component.run_update(
            UpdateRoleInput(
                identity=identity,
                role_id=role_id,
                name=req.name,
                description=req.description,
                permissions=req.permissions,
                context=context,
            )
        )
    )


@router.put("/{role_id}/permissions", response_model=Role)
def update_role_permissions(
    role_id: UUID,
    req: RolePermissionsRequest,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    component: RoleComponent = Depends(get_role_component),
) -> Any:
    return _role(
        component.run_update_permissions(
            UpdateRolePermissionsInput(
                identity=identity, role_id=role_id, permissions=req.permissions, context=context
            )
        )
    )


@router.delete("/{role_id}")
def delete_role(
    role_id: UUID,
    identity: Identity = Depends(get_identity),
    context: RequestContext = Depends(get_request_context),
    component: RoleComponent = Depends(get_role_component),
) -> dict[str, str]:
    result = component.run_delete(
        DeleteRoleInput(identity=identity, role_id=role_id, context=context)
    )
    raise_for_errors(result.errors)
    return {"message": "Role deleted"}
