"""
Permission resolution for the active tenant.

Permissions come from role grants (get_user_permissions) unioned with dynamic
policy grants (evaluate_dynamic_policies); roles from get_user_roles. All
three RPCs are keyed by (user, tenant) and fail independently to empty.
Results are memoized on the resolver instance, which lives for a single
request (see app.core.dependencies.get_permission_resolver).
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from supabase import Client

from app.config.permissions_config import FIELD_ACCESS_POLICIES, all_permission_keys
from app.config.settings import Settings, settings as default_settings
from app.core.errors import PermissionDeniedError, RoleRequiredError
from app.modules.rbac.schemas import FieldAccess, RequestContext, RoleRef, UserPermissions

logger = logging.getLogger(__name__)


def is_dev_bypass_enabled(app_settings: Settings, ctx: Optional[RequestContext]) -> bool:
    """True only outside production, with a bypass flag set and a user session present."""
    if app_settings.is_production:
        return False
    if not app_settings.bypass_requested:
        return False
    return ctx is not None and bool(ctx.user_id)


def _permission_keys(rows: Optional[List[Any]]) -> List[str]:
    keys = []
    for row in rows or []:
        if isinstance(row, str):
            keys.append(row)
        elif isinstance(row, dict) and row.get("permission_key"):
            keys.append(row["permission_key"])
    return keys


def _role_refs(rows: Optional[List[Any]]) -> List[RoleRef]:
    roles = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        key = row.get("role_key") or row.get("key")
        if not key:
            continue
        label = row.get("role_label") or row.get("label") or key
        roles.append(RoleRef(key=key, label=label))
    return roles


class PermissionResolver:
    def __init__(self, supabase: Client, app_settings: Optional[Settings] = None):
        self.supabase = supabase
        self.settings = app_settings or default_settings
        self._cache: Dict[tuple, UserPermissions] = {}

    def is_dev_bypass(self, ctx: Optional[RequestContext]) -> bool:
        return is_dev_bypass_enabled(self.settings, ctx)

    def _rpc_rows(self, function: str, ctx: RequestContext) -> List[Any]:
        try:
            result = self.supabase.rpc(function, {
                "_user_id": ctx.user_id,
                "_tenant_id": ctx.tenant_id
            }).execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error calling {function} for user {ctx.user_id} in tenant {ctx.tenant_id}: {e}")
            return []

    def get_user_permissions(self, ctx: Optional[RequestContext]) -> UserPermissions:
        """Effective permissions and roles for ctx. Never raises; failures resolve to empty sets."""
        if ctx is None:
            return UserPermissions()
        if self.is_dev_bypass(ctx):
            logger.warning(f"Dev bypass active for user {ctx.user_id}; granting full permission catalogue")
            return UserPermissions(permissions=all_permission_keys(), roles=[])

        cache_key = (ctx.user_id, ctx.tenant_id)
        if cache_key in self._cache:
            return self._cache[cache_key]

        permissions = _permission_keys(self._rpc_rows("get_user_permissions", ctx))
        permissions += _permission_keys(self._rpc_rows("evaluate_dynamic_policies", ctx))
        roles = _role_refs(self._rpc_rows("get_user_roles", ctx))
        resolved = UserPermissions(
            permissions=list(dict.fromkeys(permissions)),
            roles=roles
        )
        self._cache[cache_key] = resolved
        return resolved

    def has_permission(self, ctx: Optional[RequestContext], permission: str) -> bool:
        if self.is_dev_bypass(ctx):
            return True
        return permission in self.get_user_permissions(ctx).permissions

    def has_permissions(self, ctx: Optional[RequestContext], permissions: Iterable[str]) -> Dict[str, bool]:
        """Bulk check: one entry per requested permission."""
        if self.is_dev_bypass(ctx):
            return {p: True for p in permissions}
        granted = set(self.get_user_permissions(ctx).permissions)
        return {p: p in granted for p in permissions}

    def has_any_permission(self, ctx: Optional[RequestContext], permissions: Iterable[str]) -> bool:
        if self.is_dev_bypass(ctx):
            return True
        granted = set(self.get_user_permissions(ctx).permissions)
        return any(p in granted for p in permissions)

    def has_all_permissions(self, ctx: Optional[RequestContext], permissions: Iterable[str]) -> bool:
        if self.is_dev_bypass(ctx):
            return True
        granted = set(self.get_user_permissions(ctx).permissions)
        return all(p in granted for p in permissions)

    def has_role(self, ctx: Optional[RequestContext], role: str) -> bool:
        if self.is_dev_bypass(ctx):
            return True
        return role in self.get_user_permissions(ctx).role_keys()

    def require_permission(self, ctx: Optional[RequestContext], permission: str) -> None:
        if not self.has_permission(ctx, permission):
            raise PermissionDeniedError(permission)

    def require_role(self, ctx: Optional[RequestContext], role: str) -> None:
        if not self.has_role(ctx, role):
            raise RoleRequiredError(role)

    def get_field_access(self, ctx: Optional[RequestContext], resource: str) -> FieldAccess:
        """Two-tier field access derived from a handful of permission keys."""
        if self.is_dev_bypass(ctx):
            return FieldAccess(resource=resource, can_read_all=True, can_write_all=True)

        granted = set(self.get_user_permissions(ctx).permissions)
        if f"{resource}.admin" in granted:
            return FieldAccess(resource=resource, can_read_all=True, can_write_all=True)

        policy = FIELD_ACCESS_POLICIES.get(resource, {"readable": [], "writable": []})
        return FieldAccess(
            resource=resource,
            can_read_all=f"{resource}.read_all" in granted,
            readable_fields=list(policy["readable"]) if f"{resource}.read" in granted else [],
            writable_fields=list(policy["writable"]) if f"{resource}.update" in granted else []
        )
