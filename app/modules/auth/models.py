# Supabase Auth
# Identity is owned by Supabase Auth; this service only reads it.
# No custom tables are required for authentication.

"""
Fields read from auth.get_user(jwt):
- id: uuid - the acting user
- email: text
- app_metadata.tenant_id: uuid - active tenant, set server-side (preferred)
- user_metadata.tenant_id: uuid - active tenant, set by the tenant switcher

The (id, tenant_id) pair becomes the RequestContext passed to the
permission resolver and the automation engine.
"""
