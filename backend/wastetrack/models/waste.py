import uuid
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from wastetrack.db.base import Base, TimestampMixin, UUIDMixin


class WasteEntry(Base, UUIDMixin, TimestampMixin):
    """A submitted waste record and its position on the approval ladder.

    Only the workflow engine and the form-approval gate write the workflow
    columns (approval_status, current_approval_level, app_approved, form_approved).
    """

    __tablename__ = "waste_entries"

    line_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("lines.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    unit_of_measure: Mapped[str] = mapped_column(String(50), nullable=False)
    batch_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reason_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    app_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    form_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    current_approval_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    approval_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", index=True
    )  # pending, approved, rejected

    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
