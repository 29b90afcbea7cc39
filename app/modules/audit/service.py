from supabase import Client
from app.modules.audit.schemas import AuditLogResponse
from app.modules.rbac.schemas import RequestContext
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class AuditService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def log(
        self,
        ctx: RequestContext,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Record an administrative action. Best-effort: failures are logged, not raised."""
        try:
            self.supabase.table("audit_logs").insert({
                "tenant_id": ctx.tenant_id,
                "user_id": ctx.user_id,
                "action": action,
                "resource_type": resource_type,
                "resource_id": resource_id,
                "details": details or {},
            }).execute()
        except Exception as e:
            logger.error(f"Error writing audit log {action} for {resource_type} {resource_id}: {e}")

    def list_logs(
        self,
        tenant_id: str,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[AuditLogResponse]:
        """List audit rows for a tenant, newest first"""
        try:
            query = self.supabase.table("audit_logs")\
                .select("*")\
                .eq("tenant_id", tenant_id)
            if action:
                query = query.eq("action", action)
            if resource_type:
                query = query.eq("resource_type", resource_type)
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [AuditLogResponse(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing audit logs: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))
