"""Shared fixtures: an in-memory WorkflowStore and a few users/lines to act with."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from wastetrack.core.errors import DuplicateAssignment
from wastetrack.models.approval import ApprovalLevel
from wastetrack.models.line import ProductionLine
from wastetrack.models.user import User


# ─── In-memory store ──────────────────────────────────────────────────────────

class InMemoryWorkflowStore:
    """Dict-backed ``WorkflowStore``.

    Assigns ids and monotonically increasing ``created_at`` values on add, the
    way the database would on flush. ``commit``/``rollback`` only count calls.
    """

    def __init__(self):
        self.levels: dict[uuid.UUID, ApprovalLevel] = {}
        self.assignments: dict = {}
        self.users: dict[uuid.UUID, User] = {}
        self.lines: dict[uuid.UUID, ProductionLine] = {}
        self.entries: dict = {}
        self.ledger: list = []
        self.audits: list = []
        self.commits = 0
        self.rollbacks = 0
        self.locked: list[uuid.UUID] = []
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _stamp(self, obj):
        if getattr(obj, "id", None) is None:
            obj.id = uuid.uuid4()
        self._clock += timedelta(seconds=1)
        obj.created_at = self._clock
        if hasattr(type(obj), "updated_at"):
            obj.updated_at = self._clock
        return obj

    # ─── Approval levels ───

    def list_levels(self, active_only=False):
        levels = [lv for lv in self.levels.values() if lv.is_active or not active_only]
        return sorted(levels, key=lambda lv: lv.level_order)

    def get_level(self, level_id):
        return self.levels.get(level_id)

    def max_level_order(self):
        return max((lv.level_order for lv in self.levels.values()), default=None)

    def add_level(self, level):
        self.levels[self._stamp(level).id] = level
        return level

    def delete_level(self, level_id):
        if self.levels.pop(level_id, None) is None:
            return False
        # ON DELETE CASCADE on assignments; ledger rows are left alone.
        for key in [k for k, a in self.assignments.items() if a.approval_level_id == level_id]:
            del self.assignments[key]
        return True

    # ─── Assignments ───

    def list_assignments(self):
        ordered = sorted(self.assignments.values(), key=lambda a: a.created_at)
        return [(a, self.users.get(a.user_id)) for a in ordered]

    def find_assignment(self, level_id, user_id):
        return next(
            (a for a in self.assignments.values()
             if a.approval_level_id == level_id and a.user_id == user_id),
            None,
        )

    def add_assignment(self, assignment):
        if self.find_assignment(assignment.approval_level_id, assignment.user_id):
            raise DuplicateAssignment("User is already assigned to this approval level.")
        self.assignments[self._stamp(assignment).id] = assignment
        return assignment

    def delete_assignment(self, assignment_id):
        return self.assignments.pop(assignment_id, None) is not None

    def assigned_level_ids(self, user_id):
        return {a.approval_level_id for a in self.assignments.values() if a.user_id == user_id}

    # ─── Directories ───

    def get_user(self, user_id):
        return self.users.get(user_id)

    def get_line(self, line_id):
        return self.lines.get(line_id)

    # ─── Waste entries ───

    def add_entry(self, entry):
        self.entries[self._stamp(entry).id] = entry
        return entry

    def get_entry(self, entry_id, for_update=False):
        if for_update:
            self.locked.append(entry_id)
        return self.entries.get(entry_id)

    def list_entries(self, status=None, line_id=None, limit=100, level_ranges=None):
        def in_ranges(level):
            return level_ranges is None or any(
                (above is None or level > above) and (upto is None or level <= upto)
                for above, upto in level_ranges
            )

        entries = [
            e for e in self.entries.values()
            if (status is None or e.approval_status == status)
            and (line_id is None or e.line_id == line_id)
            and in_ranges(e.current_approval_level)
        ]
        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries[:limit]

    # ─── Ledger ───

    def add_ledger_rows(self, rows):
        for row in rows:
            self.ledger.append(self._stamp(row))

    def get_ledger_row(self, entry_id, level_id):
        return next(
            (r for r in self.ledger
             if r.waste_entry_id == entry_id and r.approval_level_id == level_id),
            None,
        )

    def list_ledger_rows(self, entry_id):
        return [r for r in self.ledger if r.waste_entry_id == entry_id]

    # ─── Audit ───

    def add_audit(self, entry):
        self.audits.append(self._stamp(entry))

    # ─── Unit of work ───

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    # ─── Test helpers ───

    def seed_user(self, role, name=None):
        user = User(
            id=uuid.uuid4(),
            email=f"{name or role}-{uuid.uuid4().hex[:6]}@example.com",
            name=name or role.title(),
            role=role,
            language="en",
            is_active=True,
        )
        self.users[user.id] = user
        return user

    def seed_line(self, form_approver=None, code="L1"):
        line = ProductionLine(
            id=uuid.uuid4(),
            name=f"Line {code}",
            code=code,
            line_type="finished",
            form_approver_id=form_approver.id if form_approver else None,
            is_active=True,
        )
        self.lines[line.id] = line
        return line


# ─── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture
def store():
    return InMemoryWorkflowStore()


@pytest.fixture
def admin(store):
    return store.seed_user("admin", "Admin")


@pytest.fixture
def engineer(store):
    return store.seed_user("engineer", "Engineer")


@pytest.fixture
def viewer(store):
    return store.seed_user("viewer", "Viewer")


@pytest.fixture
def line(store):
    return store.seed_line()


@pytest.fixture
def entry_fields(line):
    """Valid business fields for submit_waste_entry."""
    def _fields(**overrides):
        fields = {
            "line_id": line.id,
            "product_id": uuid.uuid4(),
            "quantity": "12.500",
            "unit_of_measure": "kg",
            "batch_number": "B-001",
            "reason_id": uuid.uuid4(),
            "notes": None,
        }
        fields.update(overrides)
        return fields
    return _fields
