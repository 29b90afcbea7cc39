"""
Permissions and Roles Configuration
This config defines the permission catalogue for every tenant-facing module
and the default roles built from it.
Used by the seed script, the dev bypass (which grants the whole catalogue)
and the field-level access heuristic.
"""

# Resources per module and the actions that can be granted on them.
# Permission keys are "<resource>.<action>", e.g. "crm.leads.read".
MODULES = {
    "crm": {
        "resources": {
            "crm.leads": ["create", "read", "update", "delete"],
            "crm.contacts": ["create", "read", "update", "delete"],
            "crm.opportunities": ["create", "read", "update", "delete"],
        },
        "description": "Leads, contacts and pipeline"
    },
    "talent": {
        "resources": {
            "talent.candidates": ["create", "read", "update", "delete", "export"],
            "talent.jobs": ["create", "read", "update", "delete"],
        },
        "description": "Applicant tracking"
    },
    "hrms": {
        "resources": {
            "hrms.employees": ["create", "read", "update", "delete", "read_all"],
            "hrms.timesheets": ["read", "update", "approve"],
        },
        "description": "Employee records and time tracking"
    },
    "finance": {
        "resources": {
            "finance.invoices": ["create", "read", "update", "delete", "approve"],
        },
        "description": "Invoicing and payables"
    },
    "hotlist": {
        "resources": {
            "hotlist.candidates": ["read", "write"],
            "hotlist.matches": ["read", "run"],
            "hotlist.campaigns": ["read", "create", "send"],
            "hotlist.automation": ["read", "write", "manage"],
        },
        "description": "Bench hotlist and campaigns"
    },
    "automation": {
        "resources": {
            "automation.rules": ["create", "read", "update", "delete", "execute"],
            "automation.logs": ["read"],
        },
        "description": "Automation rule management"
    },
    "admin": {
        "resources": {
            "admin.users": ["read", "update"],
            "admin.tenants": ["read", "update"],
            "admin.audit": ["read"],
        },
        "description": "Tenant administration"
    },
}

# Module role templates; "actions": None means every action the module defines
ROLE_TYPES = {
    "ADMIN": {"actions": None, "description": "Full access to the module"},
    "VIEWER": {"actions": ["read"], "description": "Read-only access to the module"},
}

# Roles that pass tenant-wide admin checks
ADMIN_ROLE_KEYS = ["master_admin", "super_admin", "admin"]

# Human readable descriptions for non-CRUD actions
ACTION_DESCRIPTIONS = {
    "export": "Export {resource}",
    "read_all": "Read every field of {resource}, including sensitive ones",
    "approve": "Approve {resource}",
    "run": "Run {resource}",
    "send": "Send {resource}",
    "manage": "Manage {resource}",
    "execute": "Execute {resource} against events",
}

# Coarse field-level access: "<resource>.read" grants `readable`,
# "<resource>.update" grants `writable`, "<resource>.read_all" lifts the
# read list and "<resource>.admin" grants every field both ways.
FIELD_ACCESS_POLICIES = {
    "hrms.employees": {
        "readable": [
            "id", "first_name", "last_name", "email", "department",
            "job_title", "status", "manager_id", "hire_date",
        ],
        "writable": ["first_name", "last_name", "department", "job_title", "status", "manager_id"],
    },
    "talent.candidates": {
        "readable": [
            "id", "first_name", "last_name", "email", "phone", "skills",
            "status", "source", "assigned_to",
        ],
        "writable": ["phone", "skills", "status", "assigned_to"],
    },
    "finance.invoices": {
        "readable": ["id", "invoice_number", "client_id", "status", "due_date", "total"],
        "writable": ["status", "due_date"],
    },
    "crm.leads": {
        "readable": ["id", "name", "email", "company", "status", "source", "assigned_to", "score"],
        "writable": ["status", "assigned_to", "score"],
    },
}


def _describe(resource: str, action: str) -> str:
    template = ACTION_DESCRIPTIONS.get(action)
    if template:
        return template.format(resource=resource)
    return f"{action.capitalize()} {resource}"


# Generate permission matrix
def get_permission_matrix():
    """
    Returns a dictionary with all permissions and the default roles
    Format: {
        "permissions": [
            {"key": "crm.leads.read", "module": "crm", "resource": "crm.leads", "action": "read", "description": "..."},
            ...
        ],
        "roles": [
            {
                "key": "crm_admin",
                "label": "CRM Admin",
                "description": "...",
                "permissions": ["crm.contacts.create", ...]
            },
            ...
        ]
    }
    """
    permissions = []
    roles = []

    for module_name, module_config in MODULES.items():
        for resource, actions in module_config["resources"].items():
            for action in actions:
                permissions.append({
                    "key": f"{resource}.{action}",
                    "module": module_name,
                    "resource": resource,
                    "action": action,
                    "description": _describe(resource, action)
                })

    for module_name, module_config in MODULES.items():
        for role_type, role_config in ROLE_TYPES.items():
            role_permissions = []
            for resource, actions in module_config["resources"].items():
                for action in actions:
                    allowed = role_config["actions"]
                    if allowed is None or action in allowed:
                        role_permissions.append(f"{resource}.{action}")

            if not role_permissions:
                continue

            roles.append({
                "key": f"{module_name}_{role_type.lower()}",
                "label": f"{module_name.upper()} {role_type.capitalize()}",
                "description": f"{role_config['description']} ({module_config['description']})",
                "permissions": sorted(role_permissions)
            })

    return {
        "permissions": permissions,
        "roles": roles
    }


def all_permission_keys():
    return [p["key"] for p in get_permission_matrix()["permissions"]]


# Export the matrix for use in seed scripts
PERMISSION_MATRIX = get_permission_matrix()
