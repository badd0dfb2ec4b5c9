"""Workflow error kinds surfaced to callers.

Services raise these; ``wastetrack.main`` renders them as
``{"detail": <message>, "error": <kind>}`` with the class's HTTP status.
"""
from fastapi import status


class WorkflowError(Exception):
    """Base class for every error the approval core reports to a caller."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: str = "workflow_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(WorkflowError):
    """No authenticated identity on the request."""

    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "unauthorized"


class Forbidden(WorkflowError):
    """Authenticated, but the role or level assignment does not allow the action."""

    status_code = status.HTTP_403_FORBIDDEN
    kind = "forbidden"


class NotFound(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class InvalidInput(WorkflowError):
    status_code = 422
    kind = "invalid_input"


class DuplicateAssignment(WorkflowError):
    status_code = status.HTTP_409_CONFLICT
    kind = "duplicate_assignment"


class PreconditionFailed(WorkflowError):
    status_code = status.HTTP_412_PRECONDITION_FAILED
    kind = "precondition_failed"


class DecisionConflict(WorkflowError):
    """The entry moved on (terminal, or a different level) before this decision landed."""

    status_code = status.HTTP_409_CONFLICT
    kind = "decision_conflict"
