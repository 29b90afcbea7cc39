from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user, get_permission_resolver
from app.modules.auth.schemas import CurrentUserResponse
from app.modules.auth.service import AuthService
from app.modules.rbac.schemas import RequestContext, UserPermissions
from app.modules.rbac.service import PermissionResolver
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    current_user: Dict = Depends(get_current_user),
    resolver: PermissionResolver = Depends(get_permission_resolver),
):
    """Get current authenticated user, active tenant and their permissions (for frontend UI)."""
    tenant_id = AuthService.resolve_tenant_id(current_user)
    ctx = RequestContext(user_id=current_user["id"], tenant_id=tenant_id) if tenant_id else None
    access = resolver.get_user_permissions(ctx) if ctx else UserPermissions()
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        tenant_id=tenant_id,
        user_metadata=current_user.get("user_metadata") or {},
        permissions=access.permissions,
        roles=access.roles,
        dev_bypass=resolver.is_dev_bypass(ctx),
    )
