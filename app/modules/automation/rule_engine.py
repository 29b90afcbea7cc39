"""
Automation rule engine.

A rule fires when every condition in its trigger holds for the changed
record. Its actions then run in order, each on its own: a failing action is
logged to automation_logs and the remaining actions still run. Nothing is
rolled back.
"""

import re
import logging
from typing import Any, Callable, Dict, Optional

import httpx
from supabase import Client

from app.config.settings import Settings, settings as default_settings
from app.modules.automation.conditions import as_text, evaluate_condition, get_nested_value
from app.modules.automation.entities import table_for_entity
from app.modules.automation.schemas import (
    Rule, RuleAction, UpdateFieldConfig, SendEmailConfig, SendNotificationConfig,
    CreateTaskConfig, WebhookConfig, AssignToConfig, ChangeStatusConfig,
)

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"\{\{(\w+)\}\}")

EMAIL_QUEUE_TABLE = "automation_email_queue"
NOTIFICATIONS_TABLE = "notifications"
TASKS_TABLE = "tasks"


class WebhookError(Exception):
    pass


def interpolate(template: Optional[str], record: Dict[str, Any]) -> str:
    """Replace {{key}} with top-level record values; missing or empty values become ""."""
    if not template:
        return ""

    def _sub(match):
        value = record.get(match.group(1))
        if value is None or value is False or value == "":
            return ""
        return as_text(value)

    return _TOKEN.sub(_sub, template)


def _record_id(record: Dict[str, Any]) -> Any:
    record_id = record.get("id")
    if record_id is None:
        raise ValueError("Record has no id")
    return record_id


class RuleEngine:
    def __init__(
        self,
        supabase: Client,
        http_client: Optional[httpx.Client] = None,
        app_settings: Optional[Settings] = None,
    ):
        self.supabase = supabase
        self.http_client = http_client
        self.settings = app_settings or default_settings
        self._handlers: Dict[str, Callable[[Any, Dict[str, Any], Rule], None]] = {
            "update_field": self._update_field,
            "send_email": self._send_email,
            "send_notification": self._send_notification,
            "create_task": self._create_task,
            "webhook": self._call_webhook,
            "assign_to": self._assign_to,
            "change_status": self._change_status,
        }

    def evaluate_rule(self, rule: Rule, record: Dict[str, Any]) -> bool:
        """True when every trigger condition holds (vacuously true with none)."""
        for condition in rule.trigger.conditions:
            field_value = get_nested_value(record, condition.field)
            if not evaluate_condition(field_value, condition.operator, condition.value):
                return False
        return True

    def execute_rule(self, rule: Rule, record: Dict[str, Any]) -> None:
        """Run every action of `rule` in order. Never raises."""
        logger.info(f"Executing rule '{rule.name}' ({rule.id}) on {rule.trigger.entity.value} {record.get('id')}")
        for action in rule.actions:
            try:
                self._execute_action(action, record, rule)
            except Exception as e:
                logger.error(f"Error executing action {action.type} of rule {rule.id}: {e}")
                self._log_failure(rule, action, record, e)

    def _execute_action(self, action: RuleAction, record: Dict[str, Any], rule: Rule) -> None:
        handler = self._handlers.get(action.type)
        if handler is None:
            logger.warning(f"Unknown action type: {action.type}")
            return
        handler(action.config, record, rule)

    def _log_failure(self, rule: Rule, action: RuleAction, record: Dict[str, Any], error: Exception) -> None:
        record_id = record.get("id")
        try:
            self.supabase.table(self.settings.automation_logs_table).insert({
                "rule_id": rule.id,
                "action_type": action.type,
                "status": "failed",
                "error_message": str(error) or error.__class__.__name__,
                "record_id": str(record_id) if record_id is not None else None,
                "record_type": rule.trigger.entity.value,
            }).execute()
        except Exception as e:
            logger.error(f"Could not write automation log for rule {rule.id}: {e}")

    # Action implementations

    def _update_field(self, config: UpdateFieldConfig, record: Dict[str, Any], rule: Rule) -> None:
        self.supabase.table(config.table)\
            .update({config.field: config.value})\
            .eq("id", _record_id(record))\
            .execute()

    def _send_email(self, config: SendEmailConfig, record: Dict[str, Any], rule: Rule) -> None:
        to = config.to or record.get("email")
        if not to:
            raise ValueError("No recipient: config.to is empty and record has no email")
        self.supabase.table(EMAIL_QUEUE_TABLE).insert({
            "to": to,
            "subject": interpolate(config.subject, record),
            "body": interpolate(config.body, record),
            "template": config.template,
            "rule_id": rule.id,
        }).execute()

    def _send_notification(self, config: SendNotificationConfig, record: Dict[str, Any], rule: Rule) -> None:
        self.supabase.table(NOTIFICATIONS_TABLE).insert({
            "user_id": config.user_id or record.get("assigned_to"),
            "title": interpolate(config.title, record),
            "message": interpolate(config.message, record),
            "type": config.notification_type or "info",
            "link": config.link,
            "rule_id": rule.id,
        }).execute()

    def _create_task(self, config: CreateTaskConfig, record: Dict[str, Any], rule: Rule) -> None:
        self.supabase.table(TASKS_TABLE).insert({
            "title": interpolate(config.title, record),
            "description": interpolate(config.description, record),
            "assigned_to": config.assigned_to or record.get("assigned_to"),
            "due_date": config.due_date,
            "priority": config.priority or "medium",
            "related_to": record.get("id"),
            "related_type": rule.trigger.entity.value,
        }).execute()

    def _call_webhook(self, config: WebhookConfig, record: Dict[str, Any], rule: Rule) -> None:
        headers = {"Content-Type": "application/json", **config.headers}
        payload = {
            "event": rule.trigger.event,
            "entity": rule.trigger.entity.value,
            "record": record,
            "rule_id": rule.id,
        }
        send = self.http_client.request if self.http_client is not None else httpx.request
        response = send(
            config.method.upper(),
            config.url,
            json=payload,
            headers=headers,
            timeout=self.settings.webhook_timeout_seconds,
        )
        if not response.is_success:
            raise WebhookError(f"Webhook failed: {response.status_code} {response.reason_phrase}")

    def _assign_to(self, config: AssignToConfig, record: Dict[str, Any], rule: Rule) -> None:
        self.supabase.table(table_for_entity(rule.trigger.entity))\
            .update({"assigned_to": config.user_id})\
            .eq("id", _record_id(record))\
            .execute()

    def _change_status(self, config: ChangeStatusConfig, record: Dict[str, Any], rule: Rule) -> None:
        self.supabase.table(table_for_entity(rule.trigger.entity))\
            .update({"status": config.status})\
            .eq("id", _record_id(record))\
            .execute()
