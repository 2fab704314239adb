"""
Work-status state machine for a single department visit.

Every history entry starts at NOT_STARTED. Some edges are only open to
departments of a given kind: client approval belongs to planning and design,
QA submission to build departments, and before-live QA to the QA department.
"""
import math
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from tracker.core.exceptions import InvalidStatusTransition
from tracker.models.department import Department, DepartmentInfo, DepartmentKind, department_info
from tracker.models.department_history import WorkStatus
from tracker.utils.clock import utcnow


S = WorkStatus

STATUS_TRANSITIONS: Dict[WorkStatus, Tuple[WorkStatus, ...]] = {
    S.NOT_STARTED: (S.IN_PROGRESS, S.ON_HOLD),
    S.IN_PROGRESS: (S.COMPLETED, S.ON_HOLD, S.PENDING_CLIENT_APPROVAL, S.QA_TESTING),
    S.ON_HOLD: (S.IN_PROGRESS,),
    S.PENDING_CLIENT_APPROVAL: (S.COMPLETED, S.CLIENT_REJECTED),
    S.CLIENT_REJECTED: (S.IN_PROGRESS,),
    S.QA_TESTING: (S.READY_FOR_DELIVERY, S.COMPLETED, S.QA_REJECTED),
    S.QA_REJECTED: (S.BUGFIX_IN_PROGRESS,),
    S.BUGFIX_IN_PROGRESS: (S.QA_TESTING,),
    S.COMPLETED: (S.BEFORE_LIVE_QA,),
    S.BEFORE_LIVE_QA: (S.READY_FOR_DELIVERY, S.QA_REJECTED),
    S.CORRECTIONS_NEEDED: (S.IN_PROGRESS, S.BUGFIX_IN_PROGRESS),
    S.READY_FOR_DELIVERY: (),
}

# Reachable from every status
UNIVERSAL_TARGETS = (S.CORRECTIONS_NEEDED,)

# target -> (predicate on the department, reason shown when it fails)
DEPARTMENT_CONDITIONS: Dict[WorkStatus, Tuple[Callable[[DepartmentInfo], bool], str]] = {
    S.PENDING_CLIENT_APPROVAL: (
        lambda info: info.accepts_client_approval,
        "client approval is only requested from planning and design departments",
    ),
    S.QA_TESTING: (
        lambda info: info.accepts_qa_submission,
        "only build departments submit work to QA testing",
    ),
    S.BEFORE_LIVE_QA: (
        lambda info: info.kind == DepartmentKind.qa,
        "before-live QA runs in the QA department only",
    ),
}


class WorkStatusMachine:
    """Validates status changes of a department visit."""

    def __init__(self, transitions: Optional[Dict[WorkStatus, Tuple[WorkStatus, ...]]] = None):
        self.transitions = transitions if transitions is not None else STATUS_TRANSITIONS

    def _blocked_reason(self, department: Department, target: WorkStatus) -> Optional[str]:
        condition = DEPARTMENT_CONDITIONS.get(target)
        if condition is None:
            return None
        predicate, reason = condition
        if predicate(department_info(department)):
            return None
        return reason

    def allowed_targets(self, department: Department, current: WorkStatus) -> List[WorkStatus]:
        candidates = list(self.transitions.get(current, ()))
        for target in UNIVERSAL_TARGETS:
            if target != current and target not in candidates:
                candidates.append(target)
        return [t for t in candidates if self._blocked_reason(department, t) is None]

    def can_transition(self, department: Department, current: WorkStatus, target: WorkStatus) -> bool:
        return target in self.allowed_targets(department, current)

    def check(self, department: Department, current: WorkStatus, target: WorkStatus) -> None:
        """Raise InvalidStatusTransition unless current -> target is legal here."""
        current = WorkStatus(current)
        target = WorkStatus(target)
        edges = self.transitions.get(current, ())
        if target not in edges and not (target in UNIVERSAL_TARGETS and target != current):
            raise InvalidStatusTransition(department, current, target)
        reason = self._blocked_reason(department, target)
        if reason:
            raise InvalidStatusTransition(department, current, target, reason)


def apply_status(entry, target: WorkStatus, now: Optional[datetime] = None) -> None:
    """
    Set a visit's status and stamp its dates.

    The first IN_PROGRESS stamps work_start_date. COMPLETED stamps
    work_end_date and actual_days unless they are already set; actual_days
    counts whole days, rounded up, from the start of work (or from the visit's
    creation when work never formally started).
    """
    now = now or utcnow()
    entry.work_status = target

    if target == WorkStatus.IN_PROGRESS and entry.work_start_date is None:
        entry.work_start_date = now

    if target == WorkStatus.COMPLETED:
        if entry.work_end_date is None:
            entry.work_end_date = now
        if entry.actual_days is None:
            started = entry.work_start_date or entry.created_at or now
            elapsed = (entry.work_end_date - started).total_seconds() / 86400
            entry.actual_days = max(0, math.ceil(elapsed))
