from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from typing import Dict, List, Optional
from datetime import datetime

from cmspro.models.complaint import (
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    TITLE_MAX_LENGTH,
)


def _clean_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Please add a title")
    # Checked after trimming so padding never counts against the limit
    if len(value) > TITLE_MAX_LENGTH:
        raise ValueError(f"Title cannot be more than {TITLE_MAX_LENGTH} characters")
    return value


def _clean_description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not value.strip():
        raise ValueError("Please add a description")
    return value


class ComplaintCreate(BaseModel):
    title: str
    description: str
    category: ComplaintCategory
    priority: ComplaintPriority = ComplaintPriority.MEDIUM

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _clean_description(v)


class ComplaintOwnerUpdate(BaseModel):
    """Fields an owner may change while the complaint is still Pending"""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[ComplaintCategory] = None
    priority: Optional[ComplaintPriority] = None

    # status/resolution/owner in the body is an error, not silently dropped
    model_config = ConfigDict(extra="forbid")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_description(v)

    @model_validator(mode="after")
    def require_change(self):
        if not self.model_fields_set:
            raise ValueError("Provide at least one of: title, description, category, priority")
        nulls = sorted(f for f in self.model_fields_set if getattr(self, f) is None)
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self


class ComplaintAdminUpdate(BaseModel):
    """Administrative transition; any status may follow any other"""
    status: Optional[ComplaintStatus] = None
    priority: Optional[ComplaintPriority] = None
    resolution: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def require_change(self):
        if not self.model_fields_set:
            raise ValueError("Provide at least one of: status, priority, resolution")
        if "status" in self.model_fields_set and self.status is None:
            raise ValueError("status cannot be null")
        if "priority" in self.model_fields_set and self.priority is None:
            raise ValueError("priority cannot be null")
        return self


class ComplaintOwner(BaseModel):
    id: str
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class ComplaintResponse(BaseModel):
    id: str
    title: str
    description: str
    category: ComplaintCategory
    priority: ComplaintPriority
    status: ComplaintStatus
    resolution: Optional[str] = None
    user_id: str
    owner: Optional[ComplaintOwner] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ComplaintEnvelope(BaseModel):
    success: bool = True
    data: ComplaintResponse


class ComplaintListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[ComplaintResponse]


class ComplaintStats(BaseModel):
    total: int
    status: Dict[str, int]
    priority: Dict[str, int]
    category: Dict[str, int]


class ComplaintStatsResponse(BaseModel):
    success: bool = True
    data: ComplaintStats
