import pytest
from fastapi import HTTPException

from app.modules.automation.rule_engine import RuleEngine
from app.modules.automation.schemas import RuleCreate, RuleUpdate
from app.modules.automation.service import RuleService, evaluate_rules_for_event


def _rule_row(rule_id, priority=0, event="record.updated", entity="lead", tenant_id="tenant-1",
              enabled=True, module="crm", conditions=None, actions=None):
    return {
        "id": rule_id,
        "tenant_id": tenant_id,
        "name": f"Rule {rule_id}",
        "module": module,
        "trigger": {"event": event, "entity": entity, "conditions": conditions or []},
        "actions": actions if actions is not None else [{"type": "change_status", "config": {"status": "closed"}}],
        "enabled": enabled,
        "priority": priority,
    }


def test_create_rule_scopes_to_tenant(supabase, ctx):
    service = RuleService(supabase)
    rule = service.create_rule(RuleCreate(
        name="Close stale leads",
        module="crm",
        trigger={"event": "record.updated", "entity": "lead",
                 "conditions": [{"field": "status", "operator": "equals", "value": "stale"}]},
        actions=[{"type": "change_status", "config": {"status": "closed"}}],
        priority=5,
    ), ctx)

    assert rule.tenant_id == "tenant-1"
    assert rule.created_by == "user-1"
    stored = supabase.tables["automation_rules"][0]
    assert stored["trigger"]["entity"] == "lead"
    assert stored["actions"] == [{"type": "change_status", "config": {"status": "closed"}}]


def test_get_rule_from_other_tenant_is_not_found(supabase):
    supabase.tables["automation_rules"] = [_rule_row("a", tenant_id="tenant-2")]
    with pytest.raises(HTTPException) as exc:
        RuleService(supabase).get_rule("a", "tenant-1")
    assert exc.value.status_code == 404


def test_update_rule_writes_only_given_fields(supabase):
    supabase.tables["automation_rules"] = [_rule_row("a", priority=1)]
    rule = RuleService(supabase).update_rule("a", RuleUpdate(enabled=False), "tenant-1")

    assert rule.enabled is False
    payload = supabase.calls_for("automation_rules", "update")[0]["payload"]
    assert set(payload) == {"enabled", "updated_at"}


def test_delete_missing_rule_is_not_found(supabase):
    with pytest.raises(HTTPException) as exc:
        RuleService(supabase).delete_rule("nope", "tenant-1")
    assert exc.value.status_code == 404


def test_fetch_rules_for_event_filters_and_orders(supabase):
    supabase.tables["automation_rules"] = [
        _rule_row("low", priority=1),
        _rule_row("high", priority=10),
        _rule_row("disabled", priority=50, enabled=False),
        _rule_row("other-event", event="record.created"),
        _rule_row("other-entity", entity="contact"),
        _rule_row("other-tenant", tenant_id="tenant-2"),
        _rule_row("other-module", module="talent"),
    ]
    rules = RuleService(supabase).fetch_rules_for_event("crm", "record.updated", "lead", "tenant-1")
    assert [r.id for r in rules] == ["high", "low"]


def test_fetch_rules_skips_rows_that_no_longer_validate(supabase):
    supabase.tables["automation_rules"] = [
        _rule_row("good"),
        _rule_row("bad", actions=[{"type": "webhook", "config": {}}]),
    ]
    rules = RuleService(supabase).fetch_rules_for_event("crm", "record.updated", "lead", "tenant-1")
    assert [r.id for r in rules] == ["good"]


def test_evaluate_rules_for_event_counts_matching_rules(supabase, ctx):
    supabase.tables["automation_rules"] = [
        _rule_row("match", priority=2, conditions=[{"field": "status", "operator": "equals", "value": "open"}]),
        _rule_row("no-match", priority=1, conditions=[{"field": "status", "operator": "equals", "value": "won"}]),
    ]
    result = evaluate_rules_for_event(
        RuleService(supabase), RuleEngine(supabase), ctx,
        "crm", "record.updated", "lead", {"id": "r1", "status": "open"},
    )

    assert result.success is True
    assert result.rules_executed == 1
    assert len(supabase.calls_for("crm_leads", "update")) == 1


def test_evaluate_rules_for_event_without_rules(supabase, ctx):
    result = evaluate_rules_for_event(
        RuleService(supabase), RuleEngine(supabase), ctx,
        "crm", "record.updated", "lead", {"id": "r1"},
    )
    assert result.success is True
    assert result.rules_executed == 0


def test_evaluate_rules_for_event_reports_fetch_failure(supabase, ctx):
    supabase.fail_on("automation_rules", "select", RuntimeError("connection refused"))
    result = evaluate_rules_for_event(
        RuleService(supabase), RuleEngine(supabase), ctx,
        "crm", "record.updated", "lead", {"id": "r1"},
    )
    assert result.success is False
    assert result.error == "Failed to evaluate rules"


def test_list_logs_only_covers_tenant_rules(supabase):
    supabase.tables["automation_rules"] = [_rule_row("mine"), _rule_row("theirs", tenant_id="tenant-2")]
    supabase.tables["automation_logs"] = [
        {"id": "l1", "rule_id": "mine", "action_type": "webhook", "status": "failed", "created_at": "2024-01-02T00:00:00+00:00"},
        {"id": "l2", "rule_id": "theirs", "action_type": "webhook", "status": "failed", "created_at": "2024-01-03T00:00:00+00:00"},
    ]
    service = RuleService(supabase)

    assert [log.id for log in service.list_logs("tenant-1")] == ["l1"]
    assert service.list_logs("tenant-1", rule_id="theirs") == []
