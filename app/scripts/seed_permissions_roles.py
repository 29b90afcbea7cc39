"""
Seed Permissions and Roles Script
Upserts the permission catalogue and the default system roles from
app.config.permissions_config into Supabase.

Run with: python -m app.scripts.seed_permissions_roles
"""

import sys
import logging
from typing import Dict, List

from supabase import Client

from app.config.permissions_config import PERMISSION_MATRIX, ADMIN_ROLE_KEYS
from app.database.supabase_client import get_service_supabase

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_permissions(supabase: Client) -> int:
    """Upsert the permission catalogue keyed by permission key"""
    logger.info("Seeding permissions...")
    rows = [
        {
            "key": perm["key"],
            "module": perm["module"],
            "resource": perm["resource"],
            "action": perm["action"],
            "description": perm["description"]
        }
        for perm in PERMISSION_MATRIX["permissions"]
    ]
    supabase.table("permissions").upsert(rows, on_conflict="key").execute()
    logger.info(f"Permissions seeded: {len(rows)} upserted")
    return len(rows)


def _system_roles() -> List[Dict]:
    """Module roles from the matrix plus the tenant-wide admin roles, which get every permission"""
    every_permission = sorted(p["key"] for p in PERMISSION_MATRIX["permissions"])
    admin_roles = [
        {
            "key": key,
            "label": key.replace("_", " ").title(),
            "description": "Tenant-wide administrator",
            "permissions": every_permission
        }
        for key in ADMIN_ROLE_KEYS
    ]
    return PERMISSION_MATRIX["roles"] + admin_roles


def seed_roles(supabase: Client) -> int:
    """Create or update system roles (tenant_id is null) and sync their permissions"""
    logger.info("Seeding roles...")
    created_count = 0
    updated_count = 0

    for role in _system_roles():
        try:
            existing = supabase.table("roles")\
                .select("id")\
                .eq("key", role["key"])\
                .is_("tenant_id", "null")\
                .execute()

            if existing.data:
                role_id = existing.data[0]["id"]
                supabase.table("roles")\
                    .update({"label": role["label"], "description": role["description"]})\
                    .eq("id", role_id)\
                    .execute()
                updated_count += 1
            else:
                result = supabase.table("roles").insert({
                    "tenant_id": None,
                    "key": role["key"],
                    "label": role["label"],
                    "description": role["description"],
                    "is_system": True
                }).execute()
                role_id = result.data[0]["id"]
                created_count += 1

            sync_role_permissions(supabase, role_id, role["key"], role["permissions"])
        except Exception as e:
            logger.error(f"Error processing role {role['key']}: {e}")

    logger.info(f"Roles seeded: {created_count} created, {updated_count} updated")
    return created_count + updated_count


def sync_role_permissions(supabase: Client, role_id: str, role_key: str, permission_keys: List[str]) -> None:
    """Make role_permissions for role_id match permission_keys exactly"""
    existing_result = supabase.table("role_permissions")\
        .select("permission_key")\
        .eq("role_id", role_id)\
        .execute()
    existing = {row["permission_key"] for row in existing_result.data or []}
    wanted = set(permission_keys)

    to_add = sorted(wanted - existing)
    if to_add:
        supabase.table("role_permissions")\
            .insert([{"role_id": role_id, "permission_key": key} for key in to_add])\
            .execute()
        logger.debug(f"Assigned {len(to_add)} permissions to role {role_key}")

    to_remove = sorted(existing - wanted)
    if to_remove:
        supabase.table("role_permissions")\
            .delete()\
            .eq("role_id", role_id)\
            .in_("permission_key", to_remove)\
            .execute()
        logger.debug(f"Removed {len(to_remove)} permissions from role {role_key}")


def main():
    """Main function to seed permissions and roles"""
    try:
        supabase = get_service_supabase()
        logger.info("Starting permissions and roles seeding...")
        perm_count = seed_permissions(supabase)
        role_count = seed_roles(supabase)
        logger.info(f"Total: {perm_count} permissions, {role_count} roles processed")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
