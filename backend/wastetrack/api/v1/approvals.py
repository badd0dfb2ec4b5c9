"""Approval workflow endpoints.

  GET /approvals?status=pending|approved|rejected|all entries for the approvals screen
  PUT /approvals/{entry_id}                           approve or reject at the current level
"""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from wastetrack.core.config import settings
from wastetrack.core.deps import get_current_user, get_workflow_store, require_role
from wastetrack.core.limiter import limiter
from wastetrack.models.user import User
from wastetrack.repositories.workflow_store import WorkflowStore
from wastetrack.schemas.waste import (
    ApprovableEntryOut,
    ApprovableListResponse,
    DecisionOut,
    DecisionRequest,
    WasteEntryOut,
)
from wastetrack.services import workflow as workflow_svc

router = APIRouter()

Store = Annotated[WorkflowStore, Depends(get_workflow_store)]


@router.get(
    "",
    response_model=ApprovableListResponse,
    summary="List entries with a per-entry can_approve flag for the caller",
)
def list_approvable_entries(
    store: Store,
    current_user: Annotated[User, Depends(get_current_user)],
    status_filter: str = Query(default="pending", alias="status"),
):
    items: list[ApprovableEntryOut] = []
    for item in workflow_svc.list_approvable_entries(store, current_user, status_filter):
        base = WasteEntryOut.model_validate(item.entry)
        items.append(
            ApprovableEntryOut(
                **base.model_dump(),
                can_approve=item.can_approve,
                total_levels=item.total_levels,
                current_level_name=item.current_level_name,
            )
        )
    return ApprovableListResponse(items=items, total=len(items))


@router.put(
    "/{entry_id}",
    response_model=DecisionOut,
    summary="Approve or reject an entry at its current level (ADMIN or APPROVER)",
)
@limiter.limit(settings.DECISION_RATE_LIMIT)
def decide_entry(
    request: Request,
    entry_id: uuid.UUID,
    body: DecisionRequest,
    store: Store,
    current_user: Annotated[User, Depends(require_role("admin", "approver"))],
):
    result = workflow_svc.decide(
        store,
        entry_id,
        body.status,
        current_user,
        comments=body.comments,
        expected_level=body.expected_level,
    )
    return DecisionOut(
        id=result.entry.id,
        approval_status=result.entry.approval_status,
        current_approval_level=result.entry.current_approval_level,
        app_approved=result.entry.app_approved,
        message=result.message,
    )
