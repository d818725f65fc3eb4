from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class SystemMode(BaseModel):
    is_system_online: bool
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None


class SystemModeResponse(BaseModel):
    success: bool = True
    data: SystemMode
