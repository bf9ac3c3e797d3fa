from pydantic import BaseModel, field_validator, ConfigDict
from typing import Optional, Any
from datetime import datetime


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    admin_id: Optional[str] = None
    action: str
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    created_at: datetime

    @field_validator("id", "admin_id", mode="before")
    @classmethod
    def uuid_to_str(cls, v) -> Optional[str]:
        return str(v) if v is not None else None
