import json

import httpx
import pytest
from pydantic import ValidationError

from app.core.errors import UnknownEntityError
from app.modules.automation.entities import ENTITY_TABLES, Entity, table_for_entity
from app.modules.automation.rule_engine import RuleEngine, interpolate
from app.modules.automation.schemas import Rule


def _rule(actions, entity="lead", conditions=None, rule_id="rule-1"):
    return Rule(
        id=rule_id,
        name="Lead follow-up",
        module="crm",
        trigger={"event": "record.updated", "entity": entity, "conditions": conditions or []},
        actions=actions,
    )


def _engine(supabase, handler=None):
    http_client = httpx.Client(transport=httpx.MockTransport(handler)) if handler else None
    return RuleEngine(supabase, http_client=http_client)


def test_interpolate_replaces_top_level_tokens():
    assert interpolate("Hello {{name}}", {"name": "Ana"}) == "Hello Ana"
    assert interpolate("Hello {{missing}}", {}) == "Hello "
    assert interpolate("{{a}}-{{b}}", {"a": 1, "b": None}) == "1-"
    assert interpolate("Score: {{score}}", {"score": 0}) == "Score: 0"
    assert interpolate("{{owner.name}}", {"owner": {"name": "x"}}) == "{{owner.name}}"
    assert interpolate("<b>{{name}}</b>", {"name": "<i>Ana</i>"}) == "<b><i>Ana</i></b>"


def test_interpolate_renders_values_as_text():
    assert interpolate("{{flag}}|{{n}}", {"flag": True, "n": 3.0}) == "true|3"
    assert interpolate("{{ratio}}", {"ratio": 2.5}) == "2.5"
    assert interpolate("Skills: {{skills}}", {"skills": ["python", "sql"]}) == "Skills: python,sql"
    assert interpolate("{{off}}|{{zero}}", {"off": False, "zero": 0.0}) == "|0"


def test_change_status_updates_mapped_table(supabase):
    rule = _rule(
        actions=[{"type": "change_status", "config": {"status": "closed"}}],
        conditions=[{"field": "status", "operator": "equals", "value": "open"}],
    )
    record = {"id": "r1", "status": "open"}
    engine = _engine(supabase)

    assert engine.evaluate_rule(rule, record) is True
    engine.execute_rule(rule, record)

    updates = supabase.calls_for("crm_leads", "update")
    assert len(updates) == 1
    assert updates[0]["payload"] == {"status": "closed"}
    assert updates[0]["filters"] == [("eq", "id", "r1")]
    assert supabase.calls_for("automation_logs") == []


def test_failing_action_does_not_stop_later_actions(supabase):
    supabase.fail_on("broken_table", "update", RuntimeError("relation does not exist"))
    rule = _rule(actions=[
        {"type": "assign_to", "config": {"user_id": "user-9"}},
        {"type": "update_field", "config": {"table": "broken_table", "field": "score", "value": 10}},
        {"type": "create_task", "config": {"title": "Call {{name}}"}},
    ])
    record = {"id": "r1", "name": "Ana", "assigned_to": "user-2"}

    _engine(supabase).execute_rule(rule, record)

    assert len(supabase.calls_for("crm_leads", "update")) == 1
    tasks = supabase.calls_for("tasks", "insert")
    assert len(tasks) == 1
    assert tasks[0]["payload"]["title"] == "Call Ana"

    failures = supabase.calls_for("automation_logs", "insert")
    assert len(failures) == 1
    assert failures[0]["payload"] == {
        "rule_id": "rule-1",
        "action_type": "update_field",
        "status": "failed",
        "error_message": "relation does not exist",
        "record_id": "r1",
        "record_type": "lead",
    }


def test_failure_log_write_errors_are_swallowed(supabase):
    supabase.fail_on("crm_leads", "update", RuntimeError("db down"))
    supabase.fail_on("automation_logs", "insert", RuntimeError("db still down"))
    rule = _rule(actions=[
        {"type": "change_status", "config": {"status": "closed"}},
        {"type": "create_task", "config": {"title": "Follow up"}},
    ])

    _engine(supabase).execute_rule(rule, {"id": "r1"})

    assert len(supabase.calls_for("tasks", "insert")) == 1


def test_update_field_without_record_id_is_logged(supabase):
    rule = _rule(actions=[{"type": "update_field", "config": {"table": "crm_leads", "field": "score", "value": 5}}])

    _engine(supabase).execute_rule(rule, {"name": "no id"})

    assert supabase.calls_for("crm_leads", "update") == []
    failures = supabase.calls_for("automation_logs", "insert")
    assert failures[0]["payload"]["error_message"] == "Record has no id"
    assert failures[0]["payload"]["record_id"] is None


def test_send_email_queues_interpolated_message(supabase):
    rule = _rule(actions=[{
        "type": "send_email",
        "config": {"subject": "Welcome {{name}}", "body": "Hi {{name}}, your status is {{status}}", "template": "welcome"},
    }])

    _engine(supabase).execute_rule(rule, {"id": "r1", "name": "Ana", "status": "new", "email": "ana@example.com"})

    queued = supabase.calls_for("automation_email_queue", "insert")
    assert len(queued) == 1
    assert queued[0]["payload"] == {
        "to": "ana@example.com",
        "subject": "Welcome Ana",
        "body": "Hi Ana, your status is new",
        "template": "welcome",
        "rule_id": "rule-1",
    }


def test_send_notification_defaults(supabase):
    rule = _rule(actions=[{
        "type": "send_notification",
        "config": {"title": "Lead {{name}} updated", "message": "Check it"},
    }])

    _engine(supabase).execute_rule(rule, {"id": "r1", "name": "Acme", "assigned_to": "user-7"})

    notification = supabase.calls_for("notifications", "insert")[0]["payload"]
    assert notification["user_id"] == "user-7"
    assert notification["title"] == "Lead Acme updated"
    assert notification["type"] == "info"
    assert notification["rule_id"] == "rule-1"


def test_create_task_links_record(supabase):
    rule = _rule(
        entity="candidate",
        actions=[{"type": "create_task", "config": {"title": "Screen {{name}}", "description": "Source: {{source}}", "due_date": "2024-07-01"}}],
    )

    _engine(supabase).execute_rule(rule, {"id": "c-5", "name": "Ravi", "assigned_to": "user-3"})

    task = supabase.calls_for("tasks", "insert")[0]["payload"]
    assert task == {
        "title": "Screen Ravi",
        "description": "Source: ",
        "assigned_to": "user-3",
        "due_date": "2024-07-01",
        "priority": "medium",
        "related_to": "c-5",
        "related_type": "candidate",
    }


def test_webhook_posts_envelope(supabase):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202)

    rule = _rule(actions=[{
        "type": "webhook",
        "config": {"url": "https://hooks.example.com/leads", "headers": {"X-Signature": "abc"}},
    }])
    record = {"id": "r1", "status": "open"}

    _engine(supabase, handler).execute_rule(rule, record)

    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert request.headers["X-Signature"] == "abc"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {
        "event": "record.updated",
        "entity": "lead",
        "record": record,
        "rule_id": "rule-1",
    }
    assert supabase.calls_for("automation_logs") == []


def test_webhook_non_2xx_is_a_failure(supabase):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    rule = _rule(actions=[
        {"type": "webhook", "config": {"url": "https://hooks.example.com/leads", "method": "put"}},
        {"type": "change_status", "config": {"status": "synced"}},
    ])

    _engine(supabase, handler).execute_rule(rule, {"id": "r1"})

    failures = supabase.calls_for("automation_logs", "insert")
    assert len(failures) == 1
    assert failures[0]["payload"]["action_type"] == "webhook"
    assert failures[0]["payload"]["error_message"].startswith("Webhook failed: 500")
    assert len(supabase.calls_for("crm_leads", "update")) == 1


def test_every_entity_has_a_table():
    assert set(ENTITY_TABLES) == set(Entity)
    assert table_for_entity("lead") == "crm_leads"
    assert table_for_entity(Entity.INVOICE) == "finance_invoices"


def test_unknown_entity_fails_loudly():
    with pytest.raises(UnknownEntityError):
        table_for_entity("widget")
    with pytest.raises(ValidationError):
        _rule(actions=[], entity="widget")


def test_action_config_validated_by_type():
    with pytest.raises(ValidationError):
        _rule(actions=[{"type": "webhook", "config": {"method": "POST"}}])
    with pytest.raises(ValidationError):
        _rule(actions=[{"type": "launch_rocket", "config": {}}])
