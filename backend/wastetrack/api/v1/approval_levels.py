"""Approval level registry endpoints (ADMIN for writes)."""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status

from wastetrack.core.deps import get_current_user, get_workflow_store, require_role
from wastetrack.models.user import User
from wastetrack.repositories.workflow_store import WorkflowStore
from wastetrack.schemas.approval_level import (
    ApprovalLevelIn,
    ApprovalLevelOut,
    ApprovalLevelUpdate,
    ApproverOut,
    AssignmentIn,
)
from wastetrack.services import approval_levels as levels_svc

router = APIRouter()

Store = Annotated[WorkflowStore, Depends(get_workflow_store)]
Admin = Annotated[User, Depends(require_role("admin"))]


def _level_out(item: levels_svc.LevelWithApprovers) -> ApprovalLevelOut:
    out = ApprovalLevelOut.model_validate(item.level)
    out.approvers = [ApproverOut.model_validate(a) for a in item.approvers]
    return out


# ─── Levels ───

@router.get(
    "",
    response_model=list[ApprovalLevelOut],
    summary="List approval levels with their approvers",
)
def list_levels(
    store: Store,
    current_user: Annotated[User, Depends(get_current_user)],
):
    return [_level_out(item) for item in levels_svc.list_levels(store)]


@router.post(
    "",
    response_model=ApprovalLevelOut,
    status_code=status.HTTP_201_CREATED,
    summary="Append an approval level to the ladder (ADMIN)",
)
def create_level(body: ApprovalLevelIn, store: Store, current_user: Admin):
    item = levels_svc.create_level(
        store,
        current_user,
        name=body.name,
        name_localized=body.name_localized,
        approval_type=body.approval_type,
    )
    return _level_out(item)


@router.put(
    "/{level_id}",
    response_model=ApprovalLevelOut,
    summary="Update an approval level (ADMIN)",
)
def update_level(level_id: uuid.UUID, body: ApprovalLevelUpdate, store: Store, current_user: Admin):
    item = levels_svc.update_level(store, current_user, level_id, body.model_dump(exclude_unset=True))
    return _level_out(item)


@router.delete(
    "/{level_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an approval level (ADMIN)",
)
def delete_level(level_id: uuid.UUID, store: Store, current_user: Admin):
    levels_svc.delete_level(store, current_user, level_id)


# ─── Assignments ───

@router.post(
    "/assignments",
    response_model=ApproverOut,
    status_code=status.HTTP_201_CREATED,
    summary="Assign a user as approver for a level (ADMIN)",
)
def assign_approver(body: AssignmentIn, store: Store, current_user: Admin):
    approver = levels_svc.assign_approver(store, current_user, body.approval_level_id, body.user_id)
    return ApproverOut.model_validate(approver)


@router.delete(
    "/assignments/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove an approver assignment (ADMIN)",
)
def remove_assignment(assignment_id: uuid.UUID, store: Store, current_user: Admin):
    levels_svc.remove_assignment(store, current_user, assignment_id)
