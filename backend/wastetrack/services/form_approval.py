"""Paper-form sign-off, layered on entries that cleared the whole ladder.

Unlike the ladder, the flag toggles both ways.
"""
import logging
import uuid

from wastetrack.core.errors import Forbidden, NotFound, PreconditionFailed, Unauthorized
from wastetrack.services import audit as audit_svc
from wastetrack.services.authorization import can_set_form_approval

logger = logging.getLogger(__name__)


def set_form_approval(store, entry_id: uuid.UUID, approved: bool, actor):
    """Set ``form_approved`` on an app-approved entry.

    Only admins and the entry's line ``form_approver_id`` may toggle it.
    A missing line leaves only admins.
    """
    if actor is None:
        raise Unauthorized("Authentication required.")

    try:
        entry = _apply_form_approval(store, entry_id, approved, actor)
        store.commit()
    except Exception:
        store.rollback()
        raise

    logger.info("Form approval: entry=%s form_approved=%s by=%s", entry.id, approved, actor.id)
    return entry


def _apply_form_approval(store, entry_id, approved, actor):
    entry = store.get_entry(entry_id, for_update=True)
    if entry is None:
        raise NotFound("Entry not found.")
    if not entry.app_approved:
        raise PreconditionFailed("Entry must be app-approved before form approval.")

    line = store.get_line(entry.line_id)
    if line is None:
        logger.warning("Entry %s references missing line %s", entry.id, entry.line_id)
    if not can_set_form_approval(actor, line.form_approver_id if line else None):
        logger.warning("Forbidden: user=%s is not form approver for entry=%s", actor.id, entry.id)
        raise Forbidden(
            "Only admins or the designated form approver for this line can mark form as approved."
        )

    before = entry.form_approved
    entry.form_approved = approved
    audit_svc.log(
        store,
        action="waste_entry.form_approval_set",
        entity_type="waste_entry",
        entity_id=entry.id,
        actor_id=actor.id,
        before={"form_approved": before},
        after={"form_approved": approved},
    )
    return entry
