import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from wastetrack.db.base import Base, CreatedAtMixin, TimestampMixin, UUIDMixin


class ApprovalType(str, enum.Enum):
    sequential = "sequential"
    parallel = "parallel"


class ApprovalStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ApprovalLevel(Base, UUIDMixin, TimestampMixin):
    """One rung of the approval ladder."""

    __tablename__ = "approval_levels"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    name_localized: Mapped[str | None] = mapped_column(String(255), nullable=True)
    level_order: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    approval_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ApprovalType.sequential.value
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ApprovalLevelAssignment(Base, UUIDMixin, CreatedAtMixin):
    """User ``user_id`` may decide entries sitting at ``approval_level_id``."""

    __tablename__ = "approval_level_assignments"
    __table_args__ = (
        UniqueConstraint("approval_level_id", "user_id", name="uq_level_assignment"),
    )

    approval_level_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("approval_levels.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )


class WasteApproval(Base, UUIDMixin, TimestampMixin):
    """Ledger row: one level's decision for one waste entry.

    ``approval_level_id`` has no FK so a deleted level leaves its history behind.
    """

    __tablename__ = "waste_approvals"
    __table_args__ = (
        UniqueConstraint("waste_entry_id", "approval_level_id", name="uq_waste_approval_level"),
    )

    waste_entry_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("waste_entries.id", ondelete="CASCADE"), nullable=False, index=True
    )
    approval_level_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ApprovalStatus.pending.value
    )  # pending, approved, rejected
    approved_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
