import uuid

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from wastetrack.db.base import Base, TimestampMixin, UUIDMixin


class ProductionLine(Base, UUIDMixin, TimestampMixin):
    """A production line. ``form_approver_id`` signs off paper forms for its waste."""

    __tablename__ = "lines"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    line_type: Mapped[str] = mapped_column(String(20), nullable=False, default="finished")  # finished, semi-finished
    form_approver_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
