# Supabase tables: automation_rules, automation_logs, automation_email_queue, notifications, tasks
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py and rule_engine.py

"""
Expected Supabase table structure:

automation_rules:
- id: uuid (primary key)
- tenant_id: uuid (not null)
- name: text (not null)
- description: text (nullable)
- module: text (not null) - crm, talent, hrms, finance, bench, vms, projects, hotlist, training
- trigger: jsonb (not null) - {"event": "record.updated", "entity": "lead", "conditions": [...]}
- actions: jsonb (not null) - [{"type": "change_status", "config": {...}}, ...]
- enabled: boolean (default: true)
- priority: integer (default: 0) - higher runs first
- created_by: uuid (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

automation_logs:
- id: uuid (primary key)
- rule_id: uuid (foreign key to automation_rules.id)
- action_type: text (not null)
- status: text (not null) - "failed"
- error_message: text (nullable)
- record_id: text (nullable)
- record_type: text (nullable) - trigger entity
- created_at: timestamp (default: now())

automation_email_queue:
- id: uuid (primary key)
- to: text, subject: text, body: text, template: text (nullable)
- rule_id: uuid
- created_at: timestamp (default: now())

notifications:
- id: uuid (primary key)
- user_id: uuid, title: text, message: text, type: text, link: text (nullable)
- rule_id: uuid (nullable)

tasks:
- id: uuid (primary key)
- title: text, description: text, assigned_to: uuid (nullable), due_date: date (nullable)
- priority: text (default: 'medium')
- related_to: text, related_type: text

Entity tables written by assign_to / change_status:
crm_leads, crm_contacts, crm_opportunities, ats_candidates,
ats_job_requisitions, hrms_employees, finance_invoices
"""
