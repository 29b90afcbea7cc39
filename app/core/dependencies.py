"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.settings import settings
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.modules.rbac.schemas import RequestContext
from app.modules.rbac.service import PermissionResolver
from supabase import Client
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    return auth_service.get_current_user(token)


def get_request_context(user_data: Dict[str, Any] = Depends(get_current_user)) -> RequestContext:
    """Explicit (user, tenant) pair for the rest of the request"""
    tenant_id = AuthService.resolve_tenant_id(user_data)
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No active tenant for this user"
        )
    return RequestContext(user_id=user_data["id"], tenant_id=tenant_id)


def get_permission_resolver(
    request: Request,
    supabase: Client = Depends(get_supabase)
) -> PermissionResolver:
    """Request-scoped resolver so RPC results are shared by every check in one request."""
    if not hasattr(request.state, "permission_resolver"):
        request.state.permission_resolver = PermissionResolver(supabase, settings)
    return request.state.permission_resolver


def require_permission(required_permission: str):
    """Factory function to create permission check dependency"""
    def check_permission(
        ctx: RequestContext = Depends(get_request_context),
        resolver: PermissionResolver = Depends(get_permission_resolver)
    ) -> RequestContext:
        resolver.require_permission(ctx, required_permission)
        return ctx
    return check_permission


def require_role(required_role: str):
    """Factory function to create role check dependency"""
    def check_role(
        ctx: RequestContext = Depends(get_request_context),
        resolver: PermissionResolver = Depends(get_permission_resolver)
    ) -> RequestContext:
        resolver.require_role(ctx, required_role)
        return ctx
    return check_role
