from pydantic import BaseModel
from typing import Optional, List, Dict, Any

from app.modules.rbac.schemas import RoleRef


class CurrentUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    tenant_id: Optional[str] = None
    user_metadata: Dict[str, Any] = {}
    permissions: List[str] = []
    roles: List[RoleRef] = []
    dev_bypass: bool = False
