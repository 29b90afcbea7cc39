from fastapi import APIRouter, Depends
from app.core.dependencies import get_request_context, get_permission_resolver
from app.modules.rbac.schemas import (
    RequestContext, UserPermissions, FieldAccess, PermissionCheckResponse,
    BulkPermissionCheckRequest, BulkPermissionCheckResponse
)
from app.modules.rbac.service import PermissionResolver

router = APIRouter(prefix="/rbac", tags=["rbac"])


@router.get("/permissions", response_model=UserPermissions)
async def get_my_permissions(
    ctx: RequestContext = Depends(get_request_context),
    resolver: PermissionResolver = Depends(get_permission_resolver)
):
    """Effective permissions and roles in the active tenant"""
    return resolver.get_user_permissions(ctx)


@router.get("/check", response_model=PermissionCheckResponse)
async def check_permission(
    permission: str,
    ctx: RequestContext = Depends(get_request_context),
    resolver: PermissionResolver = Depends(get_permission_resolver)
):
    """Non-throwing permission check for UI gating"""
    return PermissionCheckResponse(permission=permission, allowed=resolver.has_permission(ctx, permission))


@router.post("/check", response_model=BulkPermissionCheckResponse)
async def check_permissions(
    body: BulkPermissionCheckRequest,
    ctx: RequestContext = Depends(get_request_context),
    resolver: PermissionResolver = Depends(get_permission_resolver)
):
    """Check several permissions in one round trip"""
    return BulkPermissionCheckResponse(results=resolver.has_permissions(ctx, body.permissions))


@router.get("/field-access/{resource}", response_model=FieldAccess)
async def get_field_access(
    resource: str,
    ctx: RequestContext = Depends(get_request_context),
    resolver: PermissionResolver = Depends(get_permission_resolver)
):
    """Coarse field-level access for a resource such as hrms.employees"""
    return resolver.get_field_access(ctx, resource)
