# Supabase tables: roles, user_roles, role_permissions
# Supabase RPCs: get_user_permissions, evaluate_dynamic_policies, get_user_roles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase structure:

roles:
- id: uuid (primary key)
- tenant_id: uuid (nullable; null for system roles)
- key: text (not null) - e.g., "crm_admin", "master_admin"
- label: text (not null)
- description: text (nullable)
- is_system: boolean (default: false)
- priority: integer (default: 100)
- created_at: timestamp (default: now())

user_roles:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, not null)
- tenant_id: uuid (not null)
- role_id: uuid (foreign key to roles.id, not null)
- unique constraint on (user_id, tenant_id, role_id)

role_permissions:
- id: uuid (primary key)
- role_id: uuid (foreign key to roles.id, not null)
- permission_key: text (not null) - e.g., "crm.leads.read"
- unique constraint on (role_id, permission_key)

rpc get_user_permissions(_user_id uuid, _tenant_id uuid)
  returns setof (permission_key text)

rpc evaluate_dynamic_policies(_user_id uuid, _tenant_id uuid)
  returns text[] - permission keys granted by attribute-based policies

rpc get_user_roles(_user_id uuid, _tenant_id uuid)
  returns setof (role_key text, role_label text)
"""
