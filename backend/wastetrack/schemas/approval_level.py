"""Pydantic schemas for approval levels and approver assignments."""
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


# ─── Approval level schemas ───

class ApprovalLevelIn(BaseModel):
    name: str
    name_localized: str | None = None
    approval_type: str | None = None  # unknown values fall back to sequential


class ApprovalLevelUpdate(BaseModel):
    name: str | None = None
    name_localized: str | None = None
    approval_type: str | None = None
    is_active: bool | None = None


class ApproverOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    user_name: str | None = None
    user_email: str | None = None


class ApprovalLevelOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    name_localized: str | None
    level_order: int
    approval_type: str
    is_active: bool
    created_at: datetime | None = None
    approvers: list[ApproverOut] = []


# ─── Assignment schemas ───

class AssignmentIn(BaseModel):
    approval_level_id: uuid.UUID
    user_id: uuid.UUID
