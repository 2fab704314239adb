"""
Department transition graph.

A graph is a table of TransitionRule keyed by (from, to). The default graph is
produced by build_default_graph(); categories compile their ordered department
mappings with build_category_graph(). Both produce the same WorkflowGraph type,
so callers never care where a rule came from.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from tracker.core.exceptions import ConfigurationError
from tracker.models.category import CategoryDepartmentMapping
from tracker.models.department import Department, ordered_departments
from tracker.models.department_history import WorkStatus
from tracker.models.project import Project
from tracker.services.approval_gate import ApprovalGate, build_default_gates

logger = logging.getLogger(__name__)

REWORK_STATUSES = frozenset({WorkStatus.CORRECTIONS_NEEDED, WorkStatus.BUGFIX_IN_PROGRESS})

BUILD_DEPARTMENTS = (Department.PHP, Department.REACT, Department.WORDPRESS)


@dataclass(frozen=True)
class TransitionRule:
    from_department: Department
    to_department: Department
    required_status: WorkStatus
    requires_approval: bool = False
    requires_qa_passing: bool = False

    @property
    def is_rework(self) -> bool:
        return self.required_status in REWORK_STATUSES


@dataclass(frozen=True)
class MappingSpec:
    """One row of a category workflow, detached from the ORM."""

    department: Department
    sequence: int
    is_required: bool = True
    estimated_days: Optional[int] = None


class WorkflowGraph:
    """Legal department transitions plus the gates that guard leaving each node."""

    def __init__(
        self,
        rules: Iterable[TransitionRule],
        gates: Mapping[Department, ApprovalGate],
        sequence: Optional[Sequence[Department]] = None,
        estimated_days: Optional[Mapping[Department, int]] = None,
    ):
        self._rules: Dict[Tuple[Department, Department], TransitionRule] = {}
        for rule in rules:
            key = (rule.from_department, rule.to_department)
            if key in self._rules:
                raise ConfigurationError(
                    f"Duplicate transition {key[0].value} -> {key[1].value}"
                )
            self._rules[key] = rule
        self.gates = dict(gates)
        self.sequence: List[Department] = list(sequence or ordered_departments())
        self.estimated_days: Dict[Department, int] = dict(estimated_days or {})

    @property
    def rules(self) -> List[TransitionRule]:
        return list(self._rules.values())

    def requirements_for(
        self, from_department: Department, to_department: Department
    ) -> Optional[TransitionRule]:
        return self._rules.get((Department(from_department), Department(to_department)))

    def is_valid_transition(
        self, from_department: Department, to_department: Department
    ) -> bool:
        return self.requirements_for(from_department, to_department) is not None

    def allowed_next(self, from_department: Department) -> List[Department]:
        """Targets reachable from a department, in declaration order."""
        source = Department(from_department)
        return [rule.to_department for rule in self._rules.values() if rule.from_department == source]

    def forward_rules(self, from_department: Department) -> List[TransitionRule]:
        source = Department(from_department)
        return [
            rule
            for rule in self._rules.values()
            if rule.from_department == source and not rule.is_rework
        ]

    def suggest_next(self, from_department: Department) -> Optional[Department]:
        """The single forward target, or None when the graph branches or ends here."""
        forward = self.forward_rules(from_department)
        if len(forward) == 1:
            return forward[0].to_department
        return None

    def gate_for(self, department: Department) -> Optional[ApprovalGate]:
        return self.gates.get(Department(department))

    def default_estimated_days(self, department: Department) -> Optional[int]:
        return self.estimated_days.get(Department(department))


def valid_transition(from_department: Department, to_department: Department, graph: WorkflowGraph) -> bool:
    return graph.is_valid_transition(from_department, to_department)


def requirements_for(
    from_department: Department, to_department: Department, graph: WorkflowGraph
) -> Optional[TransitionRule]:
    return graph.requirements_for(from_department, to_department)


def allowed_next(from_department: Department, graph: WorkflowGraph) -> List[Department]:
    return graph.allowed_next(from_department)


def build_default_graph(gates: Optional[Mapping[Department, ApprovalGate]] = None) -> WorkflowGraph:
    """Standard PMO -> Design -> HTML -> build -> QA -> Delivery graph with rework edges."""
    rules = [
        TransitionRule(Department.PMO, Department.DESIGN, WorkStatus.COMPLETED, requires_approval=True),
        TransitionRule(Department.DESIGN, Department.HTML, WorkStatus.COMPLETED, requires_approval=True),
    ]
    for target in BUILD_DEPARTMENTS:
        rules.append(
            TransitionRule(Department.HTML, target, WorkStatus.COMPLETED, requires_qa_passing=True)
        )
    for source in BUILD_DEPARTMENTS:
        rules.append(TransitionRule(source, Department.QA, WorkStatus.COMPLETED))
    rules.append(
        TransitionRule(
            Department.QA, Department.DELIVERY, WorkStatus.READY_FOR_DELIVERY, requires_approval=True
        )
    )

    # Rework
    rules.append(TransitionRule(Department.HTML, Department.DESIGN, WorkStatus.CORRECTIONS_NEEDED))
    for target in (Department.HTML,) + BUILD_DEPARTMENTS:
        rules.append(TransitionRule(Department.QA, target, WorkStatus.BUGFIX_IN_PROGRESS))

    return WorkflowGraph(rules, gates if gates is not None else build_default_gates())


def build_category_graph(
    mappings: Iterable[MappingSpec],
    gates: Optional[Mapping[Department, ApprovalGate]] = None,
    category_id: Optional[int] = None,
) -> WorkflowGraph:
    """
    Compile an ordered category workflow into a linear graph.

    Node N's only outgoing edge goes to node N+1. Each edge takes its flags and
    required status from the gate of the department being left.

    Raises:
        ConfigurationError: empty workflow, non-positive or duplicate sequence,
            or a department listed twice
    """
    gates = gates if gates is not None else build_default_gates()
    rows = sorted(mappings, key=lambda m: m.sequence)
    if not rows:
        raise ConfigurationError("Workflow must contain at least one department", category_id)

    seen_sequences = set()
    seen_departments = set()
    for row in rows:
        if row.sequence <= 0:
            raise ConfigurationError(
                f"Sequence must be positive (got {row.sequence} for {row.department.value})",
                category_id,
            )
        if row.sequence in seen_sequences:
            raise ConfigurationError(f"Duplicate sequence {row.sequence}", category_id)
        if row.department in seen_departments:
            raise ConfigurationError(
                f"Department {row.department.value} appears more than once", category_id
            )
        seen_sequences.add(row.sequence)
        seen_departments.add(row.department)

    rules = []
    for current, following in zip(rows, rows[1:]):
        gate = gates.get(current.department)
        required_status = WorkStatus.COMPLETED
        if gate is not None and gate.minimum_work_status is not None:
            required_status = gate.minimum_work_status
        rules.append(
            TransitionRule(
                current.department,
                following.department,
                required_status,
                requires_approval=bool(gate and gate.requires_approval),
                requires_qa_passing=bool(gate and gate.requires_qa),
            )
        )

    estimated = {row.department: row.estimated_days for row in rows if row.estimated_days is not None}
    return WorkflowGraph(
        rules,
        gates,
        sequence=[row.department for row in rows],
        estimated_days=estimated,
    )


class WorkflowGraphProvider:
    """Resolves the graph a project runs on."""

    def __init__(self, db: Session, default_graph: Optional[WorkflowGraph] = None):
        self.db = db
        self.default_graph = default_graph or build_default_graph()

    def category_graph(self, category_id: int) -> Optional[WorkflowGraph]:
        rows = (
            self.db.query(CategoryDepartmentMapping)
            .filter(CategoryDepartmentMapping.category_id == category_id)
            .order_by(CategoryDepartmentMapping.sequence)
            .all()
        )
        if not rows:
            return None
        specs = [
            MappingSpec(r.department, r.sequence, r.is_required, r.estimated_days)
            for r in rows
        ]
        return build_category_graph(specs, self.default_graph.gates, category_id)

    def graph_for(self, project: Project) -> WorkflowGraph:
        if project.category_id is not None:
            graph = self.category_graph(project.category_id)
            if graph is not None:
                return graph
            logger.debug(
                f"Category {project.category_id} has no workflow, using default graph"
            )
        return self.default_graph


HTML_BUG_KEYWORDS = (
    "layout", "css", "styling", "responsive", "alignment",
    "ui", "visual", "design", "html", "frontend",
)
DEV_BUG_KEYWORDS = (
    "function", "api", "database", "backend", "logic",
    "validation", "calculation", "data", "server",
)


def bugfix_departments(title: str, description: Optional[str] = None) -> List[Department]:
    """Route a QA bug to the departments that should fix it, by keyword."""
    text = f"{description or ''} {title}".lower()

    targets: List[Department] = []
    if any(keyword in text for keyword in HTML_BUG_KEYWORDS):
        targets.append(Department.HTML)
    if any(keyword in text for keyword in DEV_BUG_KEYWORDS):
        targets.extend([Department.PHP, Department.REACT])

    # Unclear bugs go to every candidate for manual triage
    if not targets:
        return [Department.HTML, Department.PHP, Department.REACT]
    return targets


def requires_manager_review(rejection_count: int, critical_bug_count: int) -> bool:
    return rejection_count > 0 or critical_bug_count > 2
