"""
Typed workflow errors.

Every error carries a machine-readable ``code``, the HTTP status the API layer
answers with, and the structured fields a client needs to render an actionable
message (department names, required status, missing requirements).

    WorkflowError
    +-- InvalidTransition          INVALID_TRANSITION          400
    +-- WorkStatusNotReady         WORK_STATUS_NOT_READY       409
    +-- GateNotSatisfied           GATE_NOT_SATISFIED          409
    +-- ConcurrentModification     CONCURRENT_MODIFICATION     409
    +-- ConfigurationError         CONFIGURATION_ERROR         422
    +-- NotFound                   NOT_FOUND                   404
    +-- InvalidStatusTransition    INVALID_STATUS_TRANSITION   409
    +-- HistoryEntryClosed         HISTORY_ENTRY_CLOSED        409
    +-- DuplicateOpenRequest       DUPLICATE_OPEN_REQUEST      409
    +-- InvalidDecision            INVALID_DECISION            400
"""
from enum import Enum
from typing import Any, Dict, List, Optional


def _label(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    return str(value)


class WorkflowError(Exception):
    """Base class for all workflow engine errors."""

    code: str = "WORKFLOW_ERROR"
    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        """Structured fields merged into the API error payload."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        payload = {"detail": self.message, "code": self.code}
        payload.update(self.details())
        return payload


class InvalidTransition(WorkflowError):
    """No edge from the current department to the requested one."""

    code = "INVALID_TRANSITION"
    status_code = 400

    def __init__(self, from_department: Any, to_department: Any):
        self.from_department = _label(from_department)
        self.to_department = _label(to_department)
        super().__init__(
            f"Invalid transition from {self.from_department} to {self.to_department}"
        )

    def details(self) -> Dict[str, Any]:
        return {
            "from_department": self.from_department,
            "to_department": self.to_department,
        }


class WorkStatusNotReady(WorkflowError):
    """The current visit's work status does not match the rule's precondition."""

    code = "WORK_STATUS_NOT_READY"
    status_code = 409

    def __init__(self, department: Any, required_status: Any, current_status: Any):
        self.department = _label(department)
        self.required_status = _label(required_status)
        self.current_status = _label(current_status)
        super().__init__(
            f"Current department {self.department} must be {self.required_status} "
            f"before moving (currently {self.current_status})"
        )

    def details(self) -> Dict[str, Any]:
        return {
            "department": self.department,
            "required_status": self.required_status,
            "current_status": self.current_status,
        }


class GateNotSatisfied(WorkflowError):
    """Approval or QA requirements for leaving a department are unmet."""

    code = "GATE_NOT_SATISFIED"
    status_code = 409

    def __init__(self, department: Any, missing: List[str]):
        self.department = _label(department)
        self.missing = list(missing)
        super().__init__(
            f"Cannot leave {self.department}: " + "; ".join(self.missing)
        )

    def details(self) -> Dict[str, Any]:
        return {"department": self.department, "missing": self.missing}


class ConcurrentModification(WorkflowError):
    """The project's workflow state changed since it was read."""

    code = "CONCURRENT_MODIFICATION"
    status_code = 409

    def __init__(self, project_id: int):
        self.project_id = project_id
        super().__init__(
            f"Project {project_id} was modified by another transaction; reload and retry"
        )

    def details(self) -> Dict[str, Any]:
        return {"project_id": self.project_id}


class ConfigurationError(WorkflowError):
    """A workflow configuration (category graph, rule table) is malformed."""

    code = "CONFIGURATION_ERROR"
    status_code = 422

    def __init__(self, reason: str, category_id: Optional[int] = None):
        self.reason = reason
        self.category_id = category_id
        prefix = f"Category {category_id}: " if category_id is not None else ""
        super().__init__(f"{prefix}{reason}")

    def details(self) -> Dict[str, Any]:
        return {"reason": self.reason, "category_id": self.category_id}


class NotFound(WorkflowError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id={entity_id} not found")

    def details(self) -> Dict[str, Any]:
        return {"entity": self.entity, "entity_id": self.entity_id}


class InvalidStatusTransition(WorkflowError):
    """The work-status machine has no edge for the requested status change."""

    code = "INVALID_STATUS_TRANSITION"
    status_code = 409

    def __init__(self, department: Any, current_status: Any, target_status: Any, reason: str = ""):
        self.department = _label(department)
        self.current_status = _label(current_status)
        self.target_status = _label(target_status)
        message = (
            f"Cannot change status from {self.current_status} to {self.target_status}"
            f" in {self.department}"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {
            "department": self.department,
            "current_status": self.current_status,
            "target_status": self.target_status,
        }


class HistoryEntryClosed(WorkflowError):
    """The history entry has been superseded and no longer accepts changes."""

    code = "HISTORY_ENTRY_CLOSED"
    status_code = 409

    def __init__(self, history_id: int):
        self.history_id = history_id
        super().__init__(
            f"Department history entry {history_id} is no longer the current visit"
        )

    def details(self) -> Dict[str, Any]:
        return {"history_id": self.history_id}


class DuplicateOpenRequest(WorkflowError):
    """A pending approval or running QA round already exists for the entry."""

    code = "DUPLICATE_OPEN_REQUEST"
    status_code = 409

    def __init__(self, kind: str, history_id: int, existing_id: int):
        self.kind = kind
        self.history_id = history_id
        self.existing_id = existing_id
        super().__init__(
            f"An open {kind} (id={existing_id}) already exists for history entry {history_id}"
        )

    def details(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "history_id": self.history_id,
            "existing_id": self.existing_id,
        }


class InvalidDecision(WorkflowError):
    """An approval decision or QA outcome is not acceptable in its current state."""

    code = "INVALID_DECISION"
    status_code = 400

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
