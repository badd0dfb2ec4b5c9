"""Approval level registry: the ladder's rungs and who approves at each."""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from wastetrack.core.errors import DuplicateAssignment, InvalidInput, NotFound
from wastetrack.models.approval import ApprovalLevel, ApprovalLevelAssignment, ApprovalType
from wastetrack.services import audit as audit_svc
from wastetrack.services.authorization import require_admin

logger = logging.getLogger(__name__)

APPROVAL_TYPES = tuple(t.value for t in ApprovalType)
UPDATABLE_FIELDS = ("name", "name_localized", "approval_type", "is_active")


@dataclass
class AssignedApprover:
    id: uuid.UUID  # the assignment id
    user_id: uuid.UUID
    user_name: str | None
    user_email: str | None


@dataclass
class LevelWithApprovers:
    level: ApprovalLevel
    approvers: list[AssignedApprover] = field(default_factory=list)


def _to_approver(assignment, user) -> AssignedApprover:
    if user is None:
        logger.warning(
            "Assignment %s references missing user %s", assignment.id, assignment.user_id
        )
    return AssignedApprover(
        id=assignment.id,
        user_id=assignment.user_id,
        user_name=user.name if user else None,
        user_email=user.email if user else None,
    )


def _approvers_by_level(store) -> dict[uuid.UUID, list[AssignedApprover]]:
    grouped: dict[uuid.UUID, list[AssignedApprover]] = {}
    for assignment, user in store.list_assignments():
        grouped.setdefault(assignment.approval_level_id, []).append(_to_approver(assignment, user))
    return grouped


def _level_snapshot(level: ApprovalLevel) -> dict:
    return {
        "name": level.name,
        "name_localized": level.name_localized,
        "level_order": level.level_order,
        "approval_type": level.approval_type,
        "is_active": level.is_active,
    }


def _clean_name(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput("Name is required.")
    return value.strip()


def _clean_localized(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput("Localized name must be a string.")
    return value.strip() or None


# ─── Reads ───

def list_levels(store) -> list[LevelWithApprovers]:
    """All levels by ascending ``level_order``, each with its approvers."""
    approvers = _approvers_by_level(store)
    return [
        LevelWithApprovers(level=level, approvers=approvers.get(level.id, []))
        for level in store.list_levels()
    ]


# ─── Level CRUD ───

def create_level(
    store,
    actor,
    name: Any,
    name_localized: Any = None,
    approval_type: Any = None,
) -> LevelWithApprovers:
    """Append a level to the end of the ladder.

    An unknown ``approval_type`` falls back to sequential rather than failing.
    """
    require_admin(actor, "create approval levels")
    clean_name = _clean_name(name)
    if approval_type not in APPROVAL_TYPES:
        if approval_type is not None:
            logger.info("Unknown approval_type %r, using sequential", approval_type)
        approval_type = ApprovalType.sequential.value

    next_order = (store.max_level_order() or 0) + 1
    level = ApprovalLevel(
        name=clean_name,
        name_localized=_clean_localized(name_localized),
        level_order=next_order,
        approval_type=approval_type,
        is_active=True,
    )
    try:
        store.add_level(level)
        audit_svc.log(
            store,
            action="approval_level.created",
            entity_type="approval_level",
            entity_id=level.id,
            actor_id=actor.id,
            after=_level_snapshot(level),
        )
        store.commit()
    except Exception:
        store.rollback()
        raise

    logger.info("Approval level created: id=%s name=%s order=%s", level.id, level.name, level.level_order)
    return LevelWithApprovers(level=level, approvers=[])


def update_level(store, actor, level_id: uuid.UUID, changes: dict[str, Any]) -> LevelWithApprovers:
    """Apply any subset of name, name_localized, approval_type, is_active.

    ``level_order`` is not editable here.
    """
    require_admin(actor, "update approval levels")
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise InvalidInput(f"Fields not updatable: {', '.join(sorted(unknown))}.")

    cleaned: dict[str, Any] = {}
    if "name" in changes:
        cleaned["name"] = _clean_name(changes["name"])
    if "name_localized" in changes:
        cleaned["name_localized"] = _clean_localized(changes["name_localized"])
    if "approval_type" in changes:
        if changes["approval_type"] not in APPROVAL_TYPES:
            raise InvalidInput("Invalid approval type.")
        cleaned["approval_type"] = changes["approval_type"]
    if "is_active" in changes:
        if not isinstance(changes["is_active"], bool):
            raise InvalidInput("is_active must be a boolean.")
        cleaned["is_active"] = changes["is_active"]

    level = store.get_level(level_id)
    if level is None:
        raise NotFound("Approval level not found.")

    before = _level_snapshot(level)
    try:
        for attr, value in cleaned.items():
            setattr(level, attr, value)
        audit_svc.log(
            store,
            action="approval_level.updated",
            entity_type="approval_level",
            entity_id=level.id,
            actor_id=actor.id,
            before=before,
            after=_level_snapshot(level),
        )
        store.commit()
    except Exception:
        store.rollback()
        raise

    logger.info("Approval level updated: id=%s fields=%s", level.id, sorted(cleaned))
    return LevelWithApprovers(level=level, approvers=_approvers_by_level(store).get(level.id, []))


def delete_level(store, actor, level_id: uuid.UUID) -> None:
    """Hard delete; a missing id is a no-op. Ledger rows keep their reference."""
    require_admin(actor, "delete approval levels")
    try:
        deleted = store.delete_level(level_id)
        if deleted:
            audit_svc.log(
                store,
                action="approval_level.deleted",
                entity_type="approval_level",
                entity_id=level_id,
                actor_id=actor.id,
            )
        store.commit()
    except Exception:
        store.rollback()
        raise
    logger.info("Approval level delete: id=%s deleted=%s", level_id, deleted)


# ─── Assignments ───

def assign_approver(store, actor, approval_level_id: uuid.UUID, user_id: uuid.UUID) -> AssignedApprover:
    require_admin(actor, "assign approvers")
    if store.get_level(approval_level_id) is None:
        raise NotFound("Approval level not found.")
    user = store.get_user(user_id)
    if user is None:
        raise NotFound("User not found.")
    if store.find_assignment(approval_level_id, user_id) is not None:
        raise DuplicateAssignment("User is already assigned to this approval level.")

    assignment = ApprovalLevelAssignment(approval_level_id=approval_level_id, user_id=user_id)
    try:
        store.add_assignment(assignment)
        audit_svc.log(
            store,
            action="approval_level.approver_assigned",
            entity_type="approval_level",
            entity_id=approval_level_id,
            actor_id=actor.id,
            after={"assignment_id": assignment.id, "user_id": user_id},
        )
        store.commit()
    except Exception:
        store.rollback()
        raise

    logger.info("Approver assigned: level=%s user=%s", approval_level_id, user_id)
    return _to_approver(assignment, user)


def remove_assignment(store, actor, assignment_id: uuid.UUID) -> None:
    """Idempotent. Past ledger decisions by the user are untouched."""
    require_admin(actor, "remove approver assignments")
    try:
        deleted = store.delete_assignment(assignment_id)
        if deleted:
            audit_svc.log(
                store,
                action="approval_level.approver_removed",
                entity_type="approval_level_assignment",
                entity_id=assignment_id,
                actor_id=actor.id,
            )
        store.commit()
    except Exception:
        store.rollback()
        raise
    logger.info("Approver assignment removed: id=%s deleted=%s", assignment_id, deleted)
