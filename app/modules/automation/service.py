from supabase import Client
from pydantic import ValidationError
from app.config.settings import settings
from app.modules.automation.rule_engine import RuleEngine
from app.modules.automation.schemas import (
    Rule, RuleCreate, RuleUpdate, EventDispatchResponse, AutomationLogResponse
)
from app.modules.rbac.schemas import RequestContext
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class RuleService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.rules_table = settings.automation_rules_table
        self.logs_table = settings.automation_logs_table

    def create_rule(self, rule_data: RuleCreate, ctx: RequestContext) -> Rule:
        """Persist a new rule for the caller's tenant"""
        try:
            payload = rule_data.model_dump(mode="json")
            payload["tenant_id"] = ctx.tenant_id
            payload["created_by"] = ctx.user_id
            result = self.supabase.table(self.rules_table).insert(payload).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create rule")

            return Rule(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating rule: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_rule(self, rule_id: str, tenant_id: str) -> Rule:
        """Get rule by ID within a tenant"""
        try:
            result = self.supabase.table(self.rules_table)\
                .select("*")\
                .eq("id", rule_id)\
                .eq("tenant_id", tenant_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Rule not found")

            return Rule(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error getting rule: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_rules(
        self,
        tenant_id: str,
        module: Optional[str] = None,
        enabled: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[Rule]:
        """List a tenant's rules, highest priority first"""
        try:
            query = self.supabase.table(self.rules_table)\
                .select("*")\
                .eq("tenant_id", tenant_id)
            if module:
                query = query.eq("module", module)
            if enabled is not None:
                query = query.eq("enabled", enabled)
            result = query.order("priority", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [Rule(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing rules: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_rule(self, rule_id: str, rule_data: RuleUpdate, tenant_id: str) -> Rule:
        """Update rule; only fields present in the request are written"""
        update_data = rule_data.model_dump(mode="json", exclude_unset=True)
        if not update_data:
            return self.get_rule(rule_id, tenant_id)
        try:
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table(self.rules_table)\
                .update(update_data)\
                .eq("id", rule_id)\
                .eq("tenant_id", tenant_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Rule not found")

            return Rule(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating rule: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_rule(self, rule_id: str, tenant_id: str) -> bool:
        """Delete rule"""
        try:
            result = self.supabase.table(self.rules_table)\
                .delete()\
                .eq("id", rule_id)\
                .eq("tenant_id", tenant_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Rule not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting rule: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def fetch_rules_for_event(self, module: str, event: str, entity: str, tenant_id: str) -> List[Rule]:
        """Enabled rules matching an event, highest priority first. Rows that no longer validate are skipped."""
        result = self.supabase.table(self.rules_table)\
            .select("*")\
            .eq("tenant_id", tenant_id)\
            .eq("module", module)\
            .eq("enabled", True)\
            .eq("trigger->>event", event)\
            .eq("trigger->>entity", entity)\
            .order("priority", desc=True)\
            .execute()

        rules = []
        for row in result.data or []:
            try:
                rules.append(Rule(**row))
            except ValidationError as e:
                logger.error(f"Skipping invalid automation rule {row.get('id')}: {e}")
        return rules

    def list_logs(
        self,
        tenant_id: str,
        rule_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[AutomationLogResponse]:
        """List automation log rows for the tenant's rules"""
        try:
            rules_result = self.supabase.table(self.rules_table)\
                .select("id")\
                .eq("tenant_id", tenant_id)\
                .execute()
            rule_ids = [r["id"] for r in rules_result.data or []]
            if rule_id is not None:
                rule_ids = [r for r in rule_ids if r == rule_id]
            if not rule_ids:
                return []

            query = self.supabase.table(self.logs_table)\
                .select("*")\
                .in_("rule_id", rule_ids)
            if status:
                query = query.eq("status", status)
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [AutomationLogResponse(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing automation logs: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))


def evaluate_rules_for_event(
    rule_service: RuleService,
    engine: RuleEngine,
    ctx: RequestContext,
    module: str,
    event: str,
    entity: str,
    record: Dict[str, Any]
) -> EventDispatchResponse:
    """Fetch the rules for an event, run the matching ones, and report how many ran."""
    try:
        rules = rule_service.fetch_rules_for_event(module, event, entity, ctx.tenant_id)
        if not rules:
            return EventDispatchResponse(success=True, rules_executed=0)

        executed_count = 0
        for rule in rules:
            if engine.evaluate_rule(rule, record):
                engine.execute_rule(rule, record)
                executed_count += 1

        logger.info(f"Event {module}/{event}/{entity}: {executed_count} of {len(rules)} rule(s) executed")
        return EventDispatchResponse(success=True, rules_executed=executed_count)
    except Exception as e:
        logger.exception(f"Rule evaluation error for {module}/{event}/{entity}: {e}")
        return EventDispatchResponse(success=False, error="Failed to evaluate rules")
