"""Who may act on what.

Pure functions over an actor (anything with ``id`` and ``role``), a level,
and the set of level ids the actor is assigned to. No I/O here; callers
fetch assignments from the store.
"""
import logging
import uuid

from wastetrack.core.errors import Forbidden
from wastetrack.models.approval import ApprovalLevel, ApprovalStatus
from wastetrack.models.user import UserRole
from wastetrack.models.waste import WasteEntry

logger = logging.getLogger(__name__)

DECISION_ROLES = (UserRole.admin.value, UserRole.approver.value)


def is_admin(actor) -> bool:
    return actor.role == UserRole.admin.value


def require_admin(actor, action: str) -> None:
    if not is_admin(actor):
        logger.warning("Forbidden: user=%s role=%s tried %s", actor.id, actor.role, action)
        raise Forbidden(f"Only admins may {action}.")


def require_decision_role(actor) -> None:
    """Role gate in front of every decision, before any per-level check."""
    if actor.role not in DECISION_ROLES:
        logger.warning("Forbidden: user=%s role=%s cannot decide entries", actor.id, actor.role)
        raise Forbidden("Only admins and approvers can approve entries.")


def can_act(actor, level: ApprovalLevel, assigned_level_ids: set[uuid.UUID]) -> bool:
    """Admins act on any level; everyone else needs an assignment to it."""
    return is_admin(actor) or level.id in assigned_level_ids


def can_approve_entry(
    actor,
    entry: WasteEntry,
    current_level: ApprovalLevel | None,
    assigned_level_ids: set[uuid.UUID],
    direct_open: bool = False,
) -> bool:
    """Read-side mirror of the checks ``workflow.decide`` applies.

    ``current_level`` is the entry's effective level, None once the ladder
    has nothing left at or above the entry. Such entries are settled by
    admins only, unless ``direct_open`` (the entry never had a ladder), in
    which case any admin or approver may decide them.
    """
    if entry.approval_status != ApprovalStatus.pending.value:
        return False
    if actor.role not in DECISION_ROLES:
        return False
    if current_level is None:
        return direct_open or is_admin(actor)
    return can_act(actor, current_level, assigned_level_ids)


def can_set_form_approval(actor, form_approver_id: uuid.UUID | None) -> bool:
    return is_admin(actor) or (form_approver_id is not None and form_approver_id == actor.id)
