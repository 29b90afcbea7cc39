from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.audit.schemas import AuditLogResponse
from app.modules.audit.service import AuditService
from app.modules.rbac.schemas import RequestContext
from app.core.dependencies import require_permission
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/audit", tags=["audit"])


def get_audit_service(supabase: Client = Depends(get_supabase)) -> AuditService:
    return AuditService(supabase)


@router.get("/logs", response_model=List[AuditLogResponse])
async def list_audit_logs(
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    ctx: RequestContext = Depends(require_permission("admin.audit.read")),
    service: AuditService = Depends(get_audit_service)
):
    """List audit log entries for the active tenant"""
    return service.list_logs(ctx.tenant_id, action=action, resource_type=resource_type, limit=limit, offset=offset)
