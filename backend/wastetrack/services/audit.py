"""Audit log helper: append-only writes to audit_logs table."""
import json
import logging
import uuid
from typing import Any

from wastetrack.models.audit import AuditLog

logger = logging.getLogger(__name__)


def log(
    store,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | str | None = None,
    actor_id: uuid.UUID | str | None = None,
    before: Any | None = None,
    after: Any | None = None,
    notes: str | None = None,
) -> AuditLog:
    """Stage a single audit row on the store; the caller commits.

    Args:
        store: The ``WorkflowStore`` whose transaction the row joins.
        action: Short verb, e.g. 'waste_entry.submitted', 'approval_level.created'.
        entity_type: Table/domain name, e.g. 'waste_entry', 'approval_level'.
        entity_id: PK of the affected record.
        actor_id: User who performed the action (None for system actions).
        before: Dict snapshot of state before the action (JSON-serialisable).
        after: Dict snapshot of state after the action.
        notes: Free-text annotation.
    """
    entry = AuditLog(
        actor_id=uuid.UUID(str(actor_id)) if actor_id else None,
        action=action,
        entity_type=entity_type,
        entity_id=uuid.UUID(str(entity_id)) if entity_id else None,
        before_state=json.dumps(before, default=str) if before is not None else None,
        after_state=json.dumps(after, default=str) if after is not None else None,
        notes=notes,
    )
    store.add_audit(entry)
    logger.debug("Audit: %s %s/%s", action, entity_type, entity_id)
    return entry
