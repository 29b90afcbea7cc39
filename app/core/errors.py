"""
Domain errors raised outside the HTTP layer.

Route handlers let these propagate; app.main registers handlers that turn
them into HTTP responses.
"""


class AccessDeniedError(Exception):
    """Base class for authorization failures (mapped to HTTP 403)."""


class PermissionDeniedError(AccessDeniedError):
    def __init__(self, permission: str):
        self.permission = permission
        super().__init__(f"Insufficient permissions. Required: {permission}")


class RoleRequiredError(AccessDeniedError):
    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Insufficient role. Required: {role}")


class UnknownEntityError(ValueError):
    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"No table mapping for entity '{entity}'")
