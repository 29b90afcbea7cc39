from enum import Enum

from app.core.errors import UnknownEntityError


class Entity(str, Enum):
    """Record types automation rules can trigger on, mapped to their Supabase table."""
    LEAD = "lead"
    CONTACT = "contact"
    OPPORTUNITY = "opportunity"
    CANDIDATE = "candidate"
    JOB = "job"
    EMPLOYEE = "employee"
    INVOICE = "invoice"

    @property
    def table(self) -> str:
        return ENTITY_TABLES[self]


ENTITY_TABLES = {
    Entity.LEAD: "crm_leads",
    Entity.CONTACT: "crm_contacts",
    Entity.OPPORTUNITY: "crm_opportunities",
    Entity.CANDIDATE: "ats_candidates",
    Entity.JOB: "ats_job_requisitions",
    Entity.EMPLOYEE: "hrms_employees",
    Entity.INVOICE: "finance_invoices",
}


def table_for_entity(entity) -> str:
    """Table backing `entity`. Raises UnknownEntityError instead of guessing."""
    try:
        return Entity(entity).table
    except ValueError:
        raise UnknownEntityError(str(getattr(entity, "value", entity)))
