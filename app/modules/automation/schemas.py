from pydantic import BaseModel, Field
from typing import Annotated, Optional, List, Dict, Any, Literal, Union
from datetime import datetime

from app.modules.automation.entities import Entity


Module = Literal["crm", "talent", "hrms", "finance", "bench", "vms", "projects", "hotlist", "training"]

ConditionOperator = Literal[
    "equals",
    "not_equals",
    "contains",
    "not_contains",
    "greater_than",
    "less_than",
    "in",
    "not_in",
]


class Condition(BaseModel):
    field: str
    operator: ConditionOperator
    value: Any = None


class RuleTrigger(BaseModel):
    event: str  # e.g. "record.created", "record.updated", "field.changed"
    entity: Entity
    conditions: List[Condition] = []


# Action configs, one per action type

class UpdateFieldConfig(BaseModel):
    table: str
    field: str
    value: Any = None


class SendEmailConfig(BaseModel):
    to: Optional[str] = None  # defaults to record.email
    subject: str
    body: str
    template: Optional[str] = None


class SendNotificationConfig(BaseModel):
    user_id: Optional[str] = None  # defaults to record.assigned_to
    title: str
    message: str
    notification_type: str = "info"
    link: Optional[str] = None


class CreateTaskConfig(BaseModel):
    title: str
    description: str = ""
    assigned_to: Optional[str] = None  # defaults to record.assigned_to
    due_date: Optional[str] = None
    priority: str = "medium"


class WebhookConfig(BaseModel):
    url: str
    method: str = "POST"
    headers: Dict[str, str] = {}


class AssignToConfig(BaseModel):
    user_id: str


class ChangeStatusConfig(BaseModel):
    status: str


class UpdateFieldAction(BaseModel):
    type: Literal["update_field"]
    config: UpdateFieldConfig


class SendEmailAction(BaseModel):
    type: Literal["send_email"]
    config: SendEmailConfig


class SendNotificationAction(BaseModel):
    type: Literal["send_notification"]
    config: SendNotificationConfig


class CreateTaskAction(BaseModel):
    type: Literal["create_task"]
    config: CreateTaskConfig


class WebhookAction(BaseModel):
    type: Literal["webhook"]
    config: WebhookConfig


class AssignToAction(BaseModel):
    type: Literal["assign_to"]
    config: AssignToConfig


class ChangeStatusAction(BaseModel):
    type: Literal["change_status"]
    config: ChangeStatusConfig


RuleAction = Annotated[
    Union[
        UpdateFieldAction,
        SendEmailAction,
        SendNotificationAction,
        CreateTaskAction,
        WebhookAction,
        AssignToAction,
        ChangeStatusAction,
    ],
    Field(discriminator="type"),
]


class RuleCreate(BaseModel):
    name: str
    description: Optional[str] = None
    module: Module
    trigger: RuleTrigger
    actions: List[RuleAction] = []
    enabled: bool = True
    priority: int = 0


class RuleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    module: Optional[Module] = None
    trigger: Optional[RuleTrigger] = None
    actions: Optional[List[RuleAction]] = None
    enabled: Optional[bool] = None
    priority: Optional[int] = None


class Rule(RuleCreate):
    id: str
    tenant_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventDispatchRequest(BaseModel):
    module: Module
    event: str
    entity: Entity
    record: Dict[str, Any]


class EventDispatchResponse(BaseModel):
    success: bool
    rules_executed: int = 0
    error: Optional[str] = None


class AutomationLogResponse(BaseModel):
    id: str
    rule_id: str
    action_type: str
    status: str
    error_message: Optional[str] = None
    record_id: Optional[str] = None
    record_type: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
