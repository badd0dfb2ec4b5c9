"""Data access for the approval core.

``WorkflowStore`` lists exactly the operations the registry, policy, engine
and form gate need. ``SqlAlchemyWorkflowStore`` implements it on a sync
SQLAlchemy session; the session's transaction is the unit of work, so
callers mutate the returned ORM objects and then ``commit()``.
"""
import logging
import uuid
from collections.abc import Iterable
from typing import Protocol

from sqlalchemy import and_, delete, false, func, or_, select, true
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wastetrack.core.errors import DuplicateAssignment
from wastetrack.models.approval import ApprovalLevel, ApprovalLevelAssignment, WasteApproval
from wastetrack.models.audit import AuditLog
from wastetrack.models.line import ProductionLine
from wastetrack.models.user import User
from wastetrack.models.waste import WasteEntry

logger = logging.getLogger(__name__)

# (above, upto] bounds on WasteEntry.current_approval_level
LevelRanges = list[tuple[int | None, int | None]]


class WorkflowStore(Protocol):
    # ─── Approval levels ───
    def list_levels(self, active_only: bool = False) -> list[ApprovalLevel]: ...
    def get_level(self, level_id: uuid.UUID) -> ApprovalLevel | None: ...
    def max_level_order(self) -> int | None: ...
    def add_level(self, level: ApprovalLevel) -> ApprovalLevel: ...
    def delete_level(self, level_id: uuid.UUID) -> bool: ...

    # ─── Assignments ───
    def list_assignments(self) -> list[tuple[ApprovalLevelAssignment, User | None]]: ...
    def find_assignment(self, level_id: uuid.UUID, user_id: uuid.UUID) -> ApprovalLevelAssignment | None: ...
    def add_assignment(self, assignment: ApprovalLevelAssignment) -> ApprovalLevelAssignment: ...
    def delete_assignment(self, assignment_id: uuid.UUID) -> bool: ...
    def assigned_level_ids(self, user_id: uuid.UUID) -> set[uuid.UUID]: ...

    # ─── Directories ───
    def get_user(self, user_id: uuid.UUID) -> User | None: ...
    def get_line(self, line_id: uuid.UUID) -> ProductionLine | None: ...

    # ─── Waste entries ───
    def add_entry(self, entry: WasteEntry) -> WasteEntry: ...
    def get_entry(self, entry_id: uuid.UUID, for_update: bool = False) -> WasteEntry | None: ...
    def list_entries(
        self,
        status: str | None = None,
        line_id: uuid.UUID | None = None,
        limit: int = 100,
        level_ranges: LevelRanges | None = None,
    ) -> list[WasteEntry]: ...

    # ─── Ledger ───
    def add_ledger_rows(self, rows: Iterable[WasteApproval]) -> None: ...
    def get_ledger_row(self, entry_id: uuid.UUID, level_id: uuid.UUID) -> WasteApproval | None: ...
    def list_ledger_rows(self, entry_id: uuid.UUID) -> list[WasteApproval]: ...

    # ─── Audit ───
    def add_audit(self, entry: AuditLog) -> None: ...

    # ─── Unit of work ───
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class SqlAlchemyWorkflowStore:
    """``WorkflowStore`` over a sync SQLAlchemy ``Session``."""

    def __init__(self, db: Session):
        self.db = db

    # ─── Approval levels ───

    def list_levels(self, active_only: bool = False) -> list[ApprovalLevel]:
        stmt = select(ApprovalLevel)
        if active_only:
            stmt = stmt.where(ApprovalLevel.is_active.is_(True))
        stmt = stmt.order_by(ApprovalLevel.level_order.asc())
        return list(self.db.execute(stmt).scalars().all())

    def get_level(self, level_id: uuid.UUID) -> ApprovalLevel | None:
        return self.db.execute(
            select(ApprovalLevel).where(ApprovalLevel.id == level_id)
        ).scalars().first()

    def max_level_order(self) -> int | None:
        return self.db.execute(select(func.max(ApprovalLevel.level_order))).scalar()

    def add_level(self, level: ApprovalLevel) -> ApprovalLevel:
        self.db.add(level)
        self.db.flush()
        return level

    def delete_level(self, level_id: uuid.UUID) -> bool:
        result = self.db.execute(delete(ApprovalLevel).where(ApprovalLevel.id == level_id))
        return bool(result.rowcount)

    # ─── Assignments ───

    def list_assignments(self) -> list[tuple[ApprovalLevelAssignment, User | None]]:
        stmt = (
            select(ApprovalLevelAssignment, User)
            .outerjoin(User, User.id == ApprovalLevelAssignment.user_id)
            .order_by(ApprovalLevelAssignment.created_at.asc())
        )
        return [(assignment, user) for assignment, user in self.db.execute(stmt).all()]

    def find_assignment(self, level_id: uuid.UUID, user_id: uuid.UUID) -> ApprovalLevelAssignment | None:
        return self.db.execute(
            select(ApprovalLevelAssignment).where(
                ApprovalLevelAssignment.approval_level_id == level_id,
                ApprovalLevelAssignment.user_id == user_id,
            )
        ).scalars().first()

    def add_assignment(self, assignment: ApprovalLevelAssignment) -> ApprovalLevelAssignment:
        # A concurrent admin may insert the same pair between our check and flush.
        try:
            with self.db.begin_nested():
                self.db.add(assignment)
                self.db.flush()
        except IntegrityError as exc:
            raise DuplicateAssignment("User is already assigned to this approval level.") from exc
        return assignment

    def delete_assignment(self, assignment_id: uuid.UUID) -> bool:
        result = self.db.execute(
            delete(ApprovalLevelAssignment).where(ApprovalLevelAssignment.id == assignment_id)
        )
        return bool(result.rowcount)

    def assigned_level_ids(self, user_id: uuid.UUID) -> set[uuid.UUID]:
        rows = self.db.execute(
            select(ApprovalLevelAssignment.approval_level_id).where(
                ApprovalLevelAssignment.user_id == user_id
            )
        ).scalars().all()
        return set(rows)

    # ─── Directories ───

    def get_user(self, user_id: uuid.UUID) -> User | None:
        return self.db.execute(select(User).where(User.id == user_id)).scalars().first()

    def get_line(self, line_id: uuid.UUID) -> ProductionLine | None:
        return self.db.execute(
            select(ProductionLine).where(ProductionLine.id == line_id)
        ).scalars().first()

    # ─── Waste entries ───

    def add_entry(self, entry: WasteEntry) -> WasteEntry:
        self.db.add(entry)
        self.db.flush()  # assigns entry.id for the ledger rows
        return entry

    def get_entry(self, entry_id: uuid.UUID, for_update: bool = False) -> WasteEntry | None:
        stmt = select(WasteEntry).where(WasteEntry.id == entry_id)
        if for_update:
            # Row lock held until commit/rollback; racing deciders queue here.
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalars().first()

    def list_entries(
        self,
        status: str | None = None,
        line_id: uuid.UUID | None = None,
        limit: int = 100,
        level_ranges: LevelRanges | None = None,
    ) -> list[WasteEntry]:
        """Newest first. ``level_ranges`` keeps entries whose current level lies
        in any ``(above, upto]`` range; None on either side leaves it open.
        """
        stmt = select(WasteEntry)
        if status:
            stmt = stmt.where(WasteEntry.approval_status == status)
        if line_id:
            stmt = stmt.where(WasteEntry.line_id == line_id)
        if level_ranges is not None:
            stmt = stmt.where(or_(false(), *(_level_range(above, upto) for above, upto in level_ranges)))
        stmt = stmt.order_by(WasteEntry.created_at.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    # ─── Ledger ───

    def add_ledger_rows(self, rows: Iterable[WasteApproval]) -> None:
        self.db.add_all(list(rows))
        self.db.flush()

    def get_ledger_row(self, entry_id: uuid.UUID, level_id: uuid.UUID) -> WasteApproval | None:
        return self.db.execute(
            select(WasteApproval).where(
                WasteApproval.waste_entry_id == entry_id,
                WasteApproval.approval_level_id == level_id,
            )
        ).scalars().first()

    def list_ledger_rows(self, entry_id: uuid.UUID) -> list[WasteApproval]:
        return list(
            self.db.execute(
                select(WasteApproval)
                .where(WasteApproval.waste_entry_id == entry_id)
                .order_by(WasteApproval.created_at.asc())
            ).scalars().all()
        )

    # ─── Audit ───

    def add_audit(self, entry: AuditLog) -> None:
        self.db.add(entry)
        self.db.flush()

    # ─── Unit of work ───

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


def _level_range(above: int | None, upto: int | None):
    clauses = []
    if above is not None:
        clauses.append(WasteEntry.current_approval_level > above)
    if upto is not None:
        clauses.append(WasteEntry.current_approval_level <= upto)
    return and_(*clauses) if clauses else true()
