"""Waste entry approval workflow.

An entry is ``pending`` at some level order until a decision at its last
level approves it, or a decision at any level rejects it. Both outcomes
are terminal.

All functions take a ``WorkflowStore`` and commit through it. ``decide``
locks the entry row for the whole read-check-write sequence so that at
most one level-advancing decision lands per (entry, level).
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from wastetrack.core.config import settings
from wastetrack.core.errors import DecisionConflict, Forbidden, InvalidInput, NotFound, Unauthorized
from wastetrack.models.approval import ApprovalLevel, ApprovalStatus, WasteApproval
from wastetrack.models.user import UserRole
from wastetrack.models.waste import WasteEntry
from wastetrack.services import audit as audit_svc
from wastetrack.services import authorization

logger = logging.getLogger(__name__)

DECISIONS = (ApprovalStatus.approved.value, ApprovalStatus.rejected.value)
LIST_FILTERS = ("pending", "approved", "rejected", "all")
LADDER_MODES = ("live", "frozen")


@dataclass
class DecisionResult:
    entry: WasteEntry
    message: str
    next_level: ApprovalLevel | None = None


@dataclass
class ApprovableEntry:
    entry: WasteEntry
    can_approve: bool
    total_levels: int
    current_level_name: str | None = None


@dataclass
class LedgerLine:
    row: WasteApproval
    level_name: str | None
    level_order: int | None


@dataclass
class EntryDetail:
    entry: WasteEntry
    approvals: list[LedgerLine] = field(default_factory=list)


def _workflow_snapshot(entry: WasteEntry) -> dict:
    return {
        "approval_status": entry.approval_status,
        "current_approval_level": entry.current_approval_level,
        "app_approved": entry.app_approved,
        "form_approved": entry.form_approved,
    }


def _ladder_mode(mode: str | None) -> str:
    mode = mode or settings.WORKFLOW_LADDER_MODE
    if mode not in LADDER_MODES:
        raise ValueError(f"Unknown ladder mode '{mode}'. Expected one of {LADDER_MODES}.")
    return mode


def resolve_ladder(store, entry: WasteEntry, mode: str | None = None) -> list[ApprovalLevel]:
    """Levels the entry still walks, ascending by ``level_order``.

    live:   the currently active levels, so admin edits reach in-flight entries.
    frozen: the levels the entry's ledger was seeded with at submission,
            whatever their active flag is now. Deleted levels drop out.
    """
    if _ladder_mode(mode) == "live":
        return store.list_levels(active_only=True)

    levels_by_id = {level.id: level for level in store.list_levels()}
    ladder = [
        levels_by_id[row.approval_level_id]
        for row in store.list_ledger_rows(entry.id)
        if row.approval_level_id in levels_by_id
    ]
    return sorted(ladder, key=lambda level: level.level_order)


def effective_level(ladder: list[ApprovalLevel], level_order: int) -> ApprovalLevel | None:
    """The level an entry at ``level_order`` is decided at: the lowest rung at or above it.

    An entry parked on a level that was since deactivated or deleted moves up
    to the next configured level instead of bypassing the rest of the ladder.
    """
    return next((level for level in ladder if level.level_order >= level_order), None)


def direct_decision_open(store, entry: WasteEntry, ladder: list[ApprovalLevel]) -> bool:
    """True for entries submitted into an empty ladder that is still empty.

    Such entries take a single direct decision from any admin or approver.
    """
    return not ladder and not store.list_ledger_rows(entry.id)


def approver_level_ranges(
    ladder: list[ApprovalLevel], assigned_level_ids: set[uuid.UUID]
) -> list[tuple[int | None, int | None]]:
    """``current_approval_level`` ranges ``(above, upto]`` whose effective level is assigned.

    The last range covers entries beyond every configured level.
    """
    ranges: list[tuple[int | None, int | None]] = []
    previous = None
    for level in ladder:
        if level.id in assigned_level_ids:
            ranges.append((previous, level.level_order))
        previous = level.level_order
    ranges.append((previous, None))
    return ranges


# ─── Submit ───

def submit_waste_entry(store, actor, fields: dict[str, Any]) -> WasteEntry:
    """Create a waste entry and seed one pending ledger row per active level.

    The entry starts at the lowest active level order, or at
    ``WORKFLOW_DEFAULT_LEVEL`` when no level is active; in that case no
    ledger rows are written and a single direct decision settles it.

    Args:
        store: WorkflowStore.
        actor: Authenticated submitter (any role).
        fields: line_id, product_id, quantity, unit_of_measure, reason_id,
            and optionally batch_number, notes.

    Returns:
        The created WasteEntry.

    Raises:
        Unauthorized: No actor.
        InvalidInput: Missing/invalid business fields or unknown line.
    """
    if actor is None:
        raise Unauthorized("Authentication required.")

    for required in ("line_id", "product_id", "quantity", "unit_of_measure", "reason_id"):
        if fields.get(required) in (None, ""):
            raise InvalidInput(f"Missing required field '{required}'.")
    try:
        quantity = Decimal(str(fields["quantity"]))
    except InvalidOperation:
        raise InvalidInput("Quantity must be a number.")
    if not quantity.is_finite() or quantity <= 0:
        raise InvalidInput("Quantity must be greater than zero.")
    if store.get_line(fields["line_id"]) is None:
        raise InvalidInput("Unknown production line.")

    try:
        levels = store.list_levels(active_only=True)
        entry = WasteEntry(
            line_id=fields["line_id"],
            product_id=fields["product_id"],
            quantity=quantity,
            unit_of_measure=fields["unit_of_measure"],
            batch_number=fields.get("batch_number"),
            reason_id=fields["reason_id"],
            notes=fields.get("notes"),
            created_by=actor.id,
            current_approval_level=levels[0].level_order if levels else settings.WORKFLOW_DEFAULT_LEVEL,
            approval_status=ApprovalStatus.pending.value,
            app_approved=False,
            form_approved=False,
        )
        store.add_entry(entry)

        if levels:
            store.add_ledger_rows(
                WasteApproval(
                    waste_entry_id=entry.id,
                    approval_level_id=level.id,
                    status=ApprovalStatus.pending.value,
                )
                for level in levels
            )

        audit_svc.log(
            store,
            action="waste_entry.submitted",
            entity_type="waste_entry",
            entity_id=entry.id,
            actor_id=actor.id,
            after={**_workflow_snapshot(entry), "ladder": [level.level_order for level in levels]},
        )
        store.commit()
    except Exception:
        store.rollback()
        raise

    logger.info(
        "Waste entry submitted: entry=%s by=%s level=%s ladder_size=%s",
        entry.id, actor.id, entry.current_approval_level, len(levels),
    )
    return entry


# ─── Decide ───

def decide(
    store,
    entry_id: uuid.UUID,
    decision: str,
    actor,
    comments: str | None = None,
    expected_level: int | None = None,
    ladder_mode: str | None = None,
) -> DecisionResult:
    """Record an approve/reject decision for the entry's current level.

    Args:
        store: WorkflowStore.
        entry_id: Waste entry to decide.
        decision: "approved" or "rejected".
        actor: Authenticated user; must be admin or approver.
        comments: Optional note stored on the ledger row.
        expected_level: When given, the decision only applies if the entry
            is still at this level order (compare-and-swap).
        ladder_mode: Overrides ``WORKFLOW_LADDER_MODE``.

    Returns:
        DecisionResult with the updated entry and a progress message.

    Raises:
        Unauthorized, Forbidden, InvalidInput, NotFound, DecisionConflict.
    """
    if actor is None:
        raise Unauthorized("Authentication required.")
    if decision not in DECISIONS:
        raise InvalidInput("Invalid status. Expected 'approved' or 'rejected'.")
    authorization.require_decision_role(actor)

    try:
        result = _apply_decision(store, entry_id, decision, actor, comments, expected_level, ladder_mode)
        store.commit()
    except Exception:
        store.rollback()
        raise

    logger.info(
        "Approval decision: entry=%s decision=%s by=%s status=%s level=%s",
        entry_id, decision, actor.id, result.entry.approval_status, result.entry.current_approval_level,
    )
    return result


def _apply_decision(store, entry_id, decision, actor, comments, expected_level, ladder_mode) -> DecisionResult:
    entry = store.get_entry(entry_id, for_update=True)
    if entry is None:
        raise NotFound("Entry not found.")
    if entry.approval_status != ApprovalStatus.pending.value:
        raise DecisionConflict(f"Entry is already {entry.approval_status}.")
    if expected_level is not None and entry.current_approval_level != expected_level:
        raise DecisionConflict(
            f"Entry moved to level {entry.current_approval_level} (expected {expected_level})."
        )

    before = _workflow_snapshot(entry)
    ladder = resolve_ladder(store, entry, ladder_mode)
    current = effective_level(ladder, entry.current_approval_level)

    if current is None:
        # Nothing left to walk. Only an entry that never had a ladder is open to any approver.
        if not direct_decision_open(store, entry, ladder) and not authorization.is_admin(actor):
            logger.warning("Forbidden: user=%s cannot settle entry=%s past the ladder", actor.id, entry.id)
            raise Forbidden("No approval level remains for this entry; only admins can settle it.")
        entry.approval_status = decision
        if decision == ApprovalStatus.approved.value:
            entry.app_approved = True
        message = "Approved" if decision == ApprovalStatus.approved.value else "Rejected"
        _audit_decision(store, entry, actor, before, decision, None, comments, "direct decision, no level configured")
        logger.info("Entry %s decided without a configured level (level=%s)", entry.id, entry.current_approval_level)
        return DecisionResult(entry=entry, message=message)

    if not authorization.can_act(actor, current, store.assigned_level_ids(actor.id)):
        logger.warning("Forbidden: user=%s not assigned to level=%s entry=%s", actor.id, current.id, entry.id)
        raise Forbidden(f"You are not an assigned approver for level '{current.name}'.")

    row = store.get_ledger_row(entry.id, current.id)
    if row is None:
        # Level joined the ladder after submission; only reachable in live mode.
        logger.warning("No ledger row for entry=%s level=%s, recording on audit log only", entry.id, current.id)
    elif row.status != ApprovalStatus.pending.value:
        raise DecisionConflict(f"Level '{current.name}' is already {row.status}.")
    else:
        row.status = decision
        row.approved_by = actor.id
        row.comments = comments
        row.decided_at = datetime.now(timezone.utc)

    if current.level_order != entry.current_approval_level:
        logger.info(
            "Entry %s skipped inactive level %s, deciding at level %s",
            entry.id, entry.current_approval_level, current.level_order,
        )
        entry.current_approval_level = current.level_order

    if decision == ApprovalStatus.rejected.value:
        entry.approval_status = ApprovalStatus.rejected.value
        message = f"Rejected at level {current.level_order}"
        _audit_decision(store, entry, actor, before, decision, current, comments)
        return DecisionResult(entry=entry, message=message)

    next_level = next((lv for lv in ladder if lv.level_order > current.level_order), None)
    if next_level is not None:
        entry.current_approval_level = next_level.level_order
        message = f"Approved at level {current.level_order}, moved to level {next_level.level_order}"
    else:
        entry.approval_status = ApprovalStatus.approved.value
        entry.app_approved = True
        message = "Fully approved"

    _audit_decision(store, entry, actor, before, decision, current, comments)
    return DecisionResult(entry=entry, message=message, next_level=next_level)


def _audit_decision(store, entry, actor, before, decision, level, comments, notes=None) -> None:
    audit_svc.log(
        store,
        action=f"waste_entry.{decision}",
        entity_type="waste_entry",
        entity_id=entry.id,
        actor_id=actor.id,
        before=before,
        after={
            **_workflow_snapshot(entry),
            "level_id": level.id if level else None,
            "level_order": level.level_order if level else None,
            "comments": comments,
        },
        notes=notes,
    )


# ─── Reads ───

def list_approvable_entries(
    store,
    viewer,
    status: str | None = "pending",
    ladder_mode: str | None = None,
) -> list[ApprovableEntry]:
    """Entries for the approvals screen, each flagged with ``can_approve``.

    Admins see every entry. Approvers see entries whose effective level is
    one of their assigned levels, plus entries beyond every configured level.
    Other roles see everything read-only. The approver filter runs in the
    store query, ahead of ``WASTE_LIST_LIMIT``.
    """
    status = status or "pending"
    if status not in LIST_FILTERS:
        raise InvalidInput(f"Invalid status filter '{status}'.")

    mode = _ladder_mode(ladder_mode)
    active = store.list_levels(active_only=True)
    ladder = active if mode == "live" else store.list_levels()
    assigned = store.assigned_level_ids(viewer.id)

    level_ranges = None
    if viewer.role == UserRole.approver.value:
        level_ranges = approver_level_ranges(ladder, assigned)
    entries = store.list_entries(
        status=None if status == "all" else status,
        limit=settings.WASTE_LIST_LIMIT,
        level_ranges=level_ranges,
    )

    items: list[ApprovableEntry] = []
    for entry in entries:
        current = effective_level(ladder, entry.current_approval_level)
        direct_open = current is None and direct_decision_open(store, entry, active if mode == "live" else [])
        items.append(
            ApprovableEntry(
                entry=entry,
                can_approve=authorization.can_approve_entry(viewer, entry, current, assigned, direct_open),
                total_levels=len(active),
                current_level_name=current.name if current else None,
            )
        )
    return items


def list_entries(store, status: str | None = None, line_id: uuid.UUID | None = None) -> list[WasteEntry]:
    if status is not None and status not in DECISIONS + (ApprovalStatus.pending.value,):
        raise InvalidInput(f"Invalid status filter '{status}'.")
    return store.list_entries(status=status, line_id=line_id, limit=settings.WASTE_LIST_LIMIT)


def get_entry_detail(store, entry_id: uuid.UUID) -> EntryDetail:
    """The entry and its ledger, ordered by level; deleted levels show as null."""
    entry = store.get_entry(entry_id)
    if entry is None:
        raise NotFound("Entry not found.")

    levels_by_id = {level.id: level for level in store.list_levels()}
    lines = []
    for row in store.list_ledger_rows(entry.id):
        level = levels_by_id.get(row.approval_level_id)
        if level is None:
            logger.warning("Ledger row %s references deleted level %s", row.id, row.approval_level_id)
        lines.append(
            LedgerLine(
                row=row,
                level_name=level.name if level else None,
                level_order=level.level_order if level else None,
            )
        )
    lines.sort(key=lambda line: (line.level_order is None, line.level_order or 0))
    return EntryDetail(entry=entry, approvals=lines)
