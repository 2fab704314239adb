"""
Approval gates: what must hold before a project may leave a department.

A gate combines an optional minimum work status, a set of human sign-offs
(approval types that need an APPROVED request) and an optional QA outcome
(some QA round of the visit must have that status). Departments without a
gate are passable as soon as the transition's required work status is reached.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from tracker.core.exceptions import ConfigurationError
from tracker.models.approval import ApprovalStatus, ApprovalType
from tracker.models.department import Department
from tracker.models.department_history import WorkStatus
from tracker.models.qa import QAStatus


@dataclass(frozen=True)
class ApprovalGate:
    department: Department
    required_approvals: Tuple[ApprovalType, ...] = ()
    required_qa_status: Optional[QAStatus] = None
    minimum_work_status: Optional[WorkStatus] = None

    @property
    def requires_approval(self) -> bool:
        return bool(self.required_approvals)

    @property
    def requires_qa(self) -> bool:
        return self.required_qa_status is not None


@dataclass(frozen=True)
class GateResult:
    satisfied: bool
    missing: List[str] = field(default_factory=list)
    required: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "required": self.required,
            "satisfied": self.satisfied,
            "missing": list(self.missing),
        }


def build_default_gates() -> Dict[Department, ApprovalGate]:
    """Gate table used by the default graph and by every category graph."""
    gates = [
        ApprovalGate(
            Department.PMO,
            required_approvals=(ApprovalType.CLIENT_APPROVAL,),
            minimum_work_status=WorkStatus.COMPLETED,
        ),
        ApprovalGate(
            Department.DESIGN,
            required_approvals=(ApprovalType.CLIENT_APPROVAL,),
            minimum_work_status=WorkStatus.COMPLETED,
        ),
        ApprovalGate(
            Department.QA,
            required_approvals=(ApprovalType.QA_APPROVAL,),
            minimum_work_status=WorkStatus.READY_FOR_DELIVERY,
        ),
    ]
    for build_department in (
        Department.HTML,
        Department.PHP,
        Department.REACT,
        Department.WORDPRESS,
    ):
        gates.append(
            ApprovalGate(
                build_department,
                required_qa_status=QAStatus.PASSED,
                minimum_work_status=WorkStatus.COMPLETED,
            )
        )
    return index_gates(gates)


def index_gates(gates: Iterable[ApprovalGate]) -> Dict[Department, ApprovalGate]:
    """Key a gate list by department, rejecting duplicates."""
    table: Dict[Department, ApprovalGate] = {}
    for gate in gates:
        if gate.department in table:
            raise ConfigurationError(
                f"Duplicate approval gate for department {gate.department.value}"
            )
        table[gate.department] = gate
    return table


class ApprovalGateEvaluator:
    """Decides whether the gate for leaving a department is satisfied."""

    def __init__(self, gates: Mapping[Department, ApprovalGate]):
        self.gates = dict(gates)

    def gate_for(self, department: Department) -> Optional[ApprovalGate]:
        return self.gates.get(Department(department))

    def evaluate(
        self,
        department: Department,
        current_status: WorkStatus,
        approvals: Sequence[Any],
        qa_rounds: Sequence[Any],
    ) -> GateResult:
        """
        Evaluate a department's gate.

        All unmet conditions are reported, always in the same order:
        minimum work status, then each required approval type, then QA.

        Args:
            department: Department being left
            current_status: Work status of the current visit
            approvals: Objects with ``approval_type`` and ``status``
            qa_rounds: Objects with ``status``

        Returns:
            GateResult with the list of missing requirements
        """
        gate = self.gate_for(department)
        if gate is None:
            return GateResult(satisfied=True, missing=[], required=False)

        missing: List[str] = []

        if gate.minimum_work_status is not None and current_status != gate.minimum_work_status:
            missing.append(f"Work status must be {gate.minimum_work_status.value}")

        for approval_type in gate.required_approvals:
            approved = any(
                a.approval_type == approval_type and a.status == ApprovalStatus.APPROVED
                for a in approvals
            )
            if not approved:
                missing.append(f"Missing {approval_type.value} approval")

        if gate.required_qa_status is not None:
            if not any(qa.status == gate.required_qa_status for qa in qa_rounds):
                missing.append(
                    f"QA testing must pass (status: {gate.required_qa_status.value})"
                )

        return GateResult(satisfied=not missing, missing=missing, required=True)
