"""Pydantic schemas for waste entries, decisions and form approval."""
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


# ─── Submission ───

class WasteEntryCreate(BaseModel):
    line_id: uuid.UUID
    product_id: uuid.UUID
    quantity: Decimal = Field(gt=0)
    unit_of_measure: str = Field(min_length=1)
    batch_number: str | None = None
    reason_id: uuid.UUID
    notes: str | None = None


# ─── Entry output ───

class WasteEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    line_id: uuid.UUID
    product_id: uuid.UUID
    quantity: Decimal
    unit_of_measure: str
    batch_number: str | None
    reason_id: uuid.UUID
    notes: str | None
    approval_status: str
    current_approval_level: int
    app_approved: bool
    form_approved: bool
    created_by: uuid.UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LedgerRowOut(BaseModel):
    id: uuid.UUID
    approval_level_id: uuid.UUID
    level_name: str | None = None   # null once the level is deleted
    level_order: int | None = None
    status: str
    approved_by: uuid.UUID | None
    comments: str | None
    decided_at: datetime | None


class WasteEntryDetail(WasteEntryOut):
    approvals: list[LedgerRowOut] = []


class ApprovableEntryOut(WasteEntryOut):
    can_approve: bool
    total_levels: int
    current_level_name: str | None = None


class ApprovableListResponse(BaseModel):
    items: list[ApprovableEntryOut]
    total: int


# ─── Decision ───

class DecisionRequest(BaseModel):
    status: str  # approved, rejected
    comments: str | None = None
    expected_level: int | None = None


class DecisionOut(BaseModel):
    id: uuid.UUID
    approval_status: str
    current_approval_level: int
    app_approved: bool
    message: str


# ─── Form approval ───

class FormApprovalRequest(BaseModel):
    form_approved: bool


class FormApprovalOut(BaseModel):
    id: uuid.UUID
    form_approved: bool
    message: str
