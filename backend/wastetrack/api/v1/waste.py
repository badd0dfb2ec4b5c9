"""Waste entry endpoints.

  POST /waste                         submit an entry (any authenticated role)
  GET  /waste                         list entries, newest first
  GET  /waste/{entry_id}              entry with its approval ledger
  PUT  /waste/{entry_id}/form-approval toggle the paper-form sign-off
"""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from wastetrack.core.deps import get_current_user, get_workflow_store
from wastetrack.models.user import User
from wastetrack.repositories.workflow_store import WorkflowStore
from wastetrack.schemas.waste import (
    FormApprovalOut,
    FormApprovalRequest,
    LedgerRowOut,
    WasteEntryCreate,
    WasteEntryDetail,
    WasteEntryOut,
)
from wastetrack.services import form_approval as form_svc
from wastetrack.services import workflow as workflow_svc

router = APIRouter()

Store = Annotated[WorkflowStore, Depends(get_workflow_store)]
CurrentUser = Annotated[User, Depends(get_current_user)]


@router.post(
    "",
    response_model=WasteEntryOut,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a waste entry into the approval workflow",
)
def submit_waste_entry(body: WasteEntryCreate, store: Store, current_user: CurrentUser):
    entry = workflow_svc.submit_waste_entry(store, current_user, body.model_dump())
    return WasteEntryOut.model_validate(entry)


@router.get(
    "",
    response_model=list[WasteEntryOut],
    summary="List waste entries",
)
def list_waste_entries(
    store: Store,
    current_user: CurrentUser,
    line_id: uuid.UUID | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
):
    entries = workflow_svc.list_entries(store, status=status_filter, line_id=line_id)
    return [WasteEntryOut.model_validate(e) for e in entries]


@router.get(
    "/{entry_id}",
    response_model=WasteEntryDetail,
    summary="Get a waste entry with its per-level approvals",
)
def get_waste_entry(entry_id: uuid.UUID, store: Store, current_user: CurrentUser):
    detail = workflow_svc.get_entry_detail(store, entry_id)
    out = WasteEntryDetail.model_validate(detail.entry)
    out.approvals = [
        LedgerRowOut(
            id=line.row.id,
            approval_level_id=line.row.approval_level_id,
            level_name=line.level_name,
            level_order=line.level_order,
            status=line.row.status,
            approved_by=line.row.approved_by,
            comments=line.row.comments,
            decided_at=line.row.decided_at,
        )
        for line in detail.approvals
    ]
    return out


@router.put(
    "/{entry_id}/form-approval",
    response_model=FormApprovalOut,
    summary="Mark the paper form approved or not (ADMIN or line form approver)",
)
def set_form_approval(
    entry_id: uuid.UUID,
    body: FormApprovalRequest,
    store: Store,
    current_user: CurrentUser,
):
    entry = form_svc.set_form_approval(store, entry_id, body.form_approved, current_user)
    return FormApprovalOut(
        id=entry.id,
        form_approved=entry.form_approved,
        message="Form marked as approved" if entry.form_approved else "Form approval removed",
    )
