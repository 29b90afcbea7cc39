from pydantic import BaseModel
from typing import Dict, List


class RequestContext(BaseModel):
    """Identity a request acts on behalf of."""
    user_id: str
    tenant_id: str


class RoleRef(BaseModel):
    key: str
    label: str


class UserPermissions(BaseModel):
    permissions: List[str] = []
    roles: List[RoleRef] = []

    def role_keys(self) -> List[str]:
        return [r.key for r in self.roles]


class FieldAccess(BaseModel):
    resource: str
    can_read_all: bool = False
    can_write_all: bool = False
    readable_fields: List[str] = []
    writable_fields: List[str] = []

    def can_read(self, field: str) -> bool:
        return self.can_read_all or field in self.readable_fields

    def can_write(self, field: str) -> bool:
        return self.can_write_all or field in self.writable_fields


class PermissionCheckResponse(BaseModel):
    permission: str
    allowed: bool


class BulkPermissionCheckRequest(BaseModel):
    permissions: List[str]


class BulkPermissionCheckResponse(BaseModel):
    results: Dict[str, bool]
