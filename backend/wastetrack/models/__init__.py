from wastetrack.models.user import User, UserRole, ROLES
from wastetrack.models.line import ProductionLine
from wastetrack.models.approval import (
    ApprovalLevel,
    ApprovalLevelAssignment,
    ApprovalStatus,
    ApprovalType,
    WasteApproval,
)
from wastetrack.models.waste import WasteEntry
from wastetrack.models.audit import AuditLog

__all__ = [
    "User", "UserRole", "ROLES",
    "ProductionLine",
    "ApprovalLevel", "ApprovalLevelAssignment", "ApprovalStatus", "ApprovalType", "WasteApproval",
    "WasteEntry",
    "AuditLog",
]
