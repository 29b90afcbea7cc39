from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.automation.schemas import (
    Rule, RuleCreate, RuleUpdate,
    EventDispatchRequest, EventDispatchResponse, AutomationLogResponse
)
from app.modules.automation.service import RuleService, evaluate_rules_for_event
from app.modules.automation.rule_engine import RuleEngine
from app.modules.audit.service import AuditService
from app.modules.audit.routes import get_audit_service
from app.modules.rbac.schemas import RequestContext
from app.core.dependencies import require_permission
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/automation", tags=["automation"])


def get_rule_service(supabase: Client = Depends(get_supabase)) -> RuleService:
    return RuleService(supabase)


def get_rule_engine(supabase: Client = Depends(get_service_supabase)) -> RuleEngine:
    return RuleEngine(supabase)


@router.get("/rules", response_model=List[Rule])
async def list_rules(
    module: Optional[str] = None,
    enabled: Optional[bool] = None,
    limit: int = 100,
    offset: int = 0,
    ctx: RequestContext = Depends(require_permission("automation.rules.read")),
    service: RuleService = Depends(get_rule_service)
):
    """List automation rules of the active tenant"""
    return service.list_rules(ctx.tenant_id, module=module, enabled=enabled, limit=limit, offset=offset)


@router.get("/rules/{rule_id}", response_model=Rule)
async def get_rule(
    rule_id: str,
    ctx: RequestContext = Depends(require_permission("automation.rules.read")),
    service: RuleService = Depends(get_rule_service)
):
    """Get rule by ID"""
    return service.get_rule(rule_id, ctx.tenant_id)


@router.post("/rules", response_model=Rule, status_code=201)
async def create_rule(
    rule_data: RuleCreate,
    ctx: RequestContext = Depends(require_permission("automation.rules.create")),
    service: RuleService = Depends(get_rule_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Create a rule; action configs are validated against their type"""
    rule = service.create_rule(rule_data, ctx)
    audit.log(ctx, "automation.rule_created", "automation_rule", rule.id, {"name": rule.name, "module": rule.module})
    return rule


@router.put("/rules/{rule_id}", response_model=Rule)
async def update_rule(
    rule_id: str,
    rule_data: RuleUpdate,
    ctx: RequestContext = Depends(require_permission("automation.rules.update")),
    service: RuleService = Depends(get_rule_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Update a rule"""
    rule = service.update_rule(rule_id, rule_data, ctx.tenant_id)
    audit.log(ctx, "automation.rule_updated", "automation_rule", rule.id,
              {"fields": sorted(rule_data.model_dump(exclude_unset=True).keys())})
    return rule


@router.delete("/rules/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: str,
    ctx: RequestContext = Depends(require_permission("automation.rules.delete")),
    service: RuleService = Depends(get_rule_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Delete a rule"""
    service.delete_rule(rule_id, ctx.tenant_id)
    audit.log(ctx, "automation.rule_deleted", "automation_rule", rule_id)
    return None


@router.post("/events", response_model=EventDispatchResponse)
async def dispatch_event(
    event_data: EventDispatchRequest,
    ctx: RequestContext = Depends(require_permission("automation.rules.execute")),
    service: RuleService = Depends(get_rule_service),
    engine: RuleEngine = Depends(get_rule_engine)
):
    """Evaluate the tenant's rules against a changed record"""
    return evaluate_rules_for_event(
        service,
        engine,
        ctx,
        event_data.module,
        event_data.event,
        event_data.entity.value,
        event_data.record,
    )


@router.get("/logs", response_model=List[AutomationLogResponse])
async def list_automation_logs(
    rule_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    ctx: RequestContext = Depends(require_permission("automation.logs.read")),
    service: RuleService = Depends(get_rule_service)
):
    """List action failures recorded by the rule engine"""
    return service.list_logs(ctx.tenant_id, rule_id=rule_id, status=status, limit=limit, offset=offset)
