# Supabase table: audit_logs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

audit_logs:
- id: uuid (primary key)
- tenant_id: uuid (not null)
- user_id: uuid (not null) - actor
- action: text (not null) - e.g. "automation.rule_created"
- resource_type: text (not null) - e.g. "automation_rule"
- resource_id: text (nullable)
- details: jsonb (nullable)
- created_at: timestamp (default: now())
"""
