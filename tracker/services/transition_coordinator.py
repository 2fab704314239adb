"""
Department transitions.

move_to_department() is the only way a project changes department. It runs in
three phases inside one transaction:

    load      project row (locked where the backend supports it) and its
              latest visit
    validate  edge exists, work status matches, gate satisfied
    apply     guarded version bump, close the current visit, open the next

Validation failures and lost races raise before anything is written; any
failure rolls the session back.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from tracker.core.exceptions import (
    ConcurrentModification,
    GateNotSatisfied,
    InvalidTransition,
    NotFound,
    WorkflowError,
    WorkStatusNotReady,
)
from tracker.models.department import Department
from tracker.models.department_history import DepartmentHistory, WorkStatus
from tracker.models.project import Project
from tracker.repositories.approval_repository import ApprovalRepository
from tracker.repositories.project_repository import ProjectRepository
from tracker.repositories.qa_repository import QARoundRepository
from tracker.services.approval_gate import ApprovalGateEvaluator
from tracker.services.history_ledger import HistoryLedger
from tracker.services.work_status import apply_status
from tracker.services.workflow_graph import TransitionRule, WorkflowGraph, WorkflowGraphProvider
from tracker.utils.project_code import generate_project_code

logger = logging.getLogger(__name__)

# Leaving a visit in one of these states closes it as COMPLETED
COMPLETING_STATUSES = frozenset({WorkStatus.COMPLETED, WorkStatus.READY_FOR_DELIVERY})


@dataclass
class ProjectSnapshot:
    """What the coordinator read in the load phase."""

    project: Project
    latest: DepartmentHistory
    version: int
    current_department: Department
    graph: WorkflowGraph


class TransitionCoordinator:
    def __init__(
        self,
        db: Session,
        graph_provider: Optional[WorkflowGraphProvider] = None,
        default_graph: Optional[WorkflowGraph] = None,
    ):
        self.db = db
        self.graph_provider = graph_provider or WorkflowGraphProvider(db, default_graph)
        self.projects = ProjectRepository(db)
        self.ledger = HistoryLedger(db)
        self.approvals = ApprovalRepository(db)
        self.qa_rounds = QARoundRepository(db)

    def move_to_department(
        self,
        project_id: int,
        to_department: Department,
        actor_id: int,
        notes: Optional[str] = None,
        estimated_days: Optional[int] = None,
    ) -> Project:
        """
        Move a project to another department.

        Args:
            project_id: Project ID
            to_department: Target department
            actor_id: User performing the move
            notes: Notes stored on the new visit
            estimated_days: Planned duration of the new visit; defaults to the
                category's estimate for the department

        Returns:
            The project as committed

        Raises:
            NotFound: unknown project
            InvalidTransition: no edge from the current department
            WorkStatusNotReady: current visit is not in the edge's required status
            GateNotSatisfied: approvals or QA missing for leaving the department
            ConcurrentModification: another transaction moved the project first
        """
        to_department = Department(to_department)
        try:
            snapshot = self._load(project_id, lock=True)
            rule = self._validate(snapshot, to_department)
            self._apply(snapshot, rule, actor_id, notes, estimated_days)
            self.db.commit()
        except WorkflowError as e:
            self.db.rollback()
            logger.warning(
                f"Rejected move of project {project_id} to {to_department.value}: "
                f"{e.code} {e.message}"
            )
            raise
        except Exception:
            self.db.rollback()
            raise

        project = self.projects.get_or_raise(project_id)
        logger.info(
            f"Project {project_id} moved {snapshot.current_department.value} -> "
            f"{to_department.value} by user {actor_id} (code {project.project_code or '-'})"
        )
        return project

    def snapshot(self, project_id: int) -> ProjectSnapshot:
        """Unlocked read of a project's workflow state, for read-only checks."""
        return self._load(project_id, lock=False)

    def check_move(self, snapshot: ProjectSnapshot, to_department: Department) -> TransitionRule:
        """Run every validation of a move without writing anything."""
        return self._validate(snapshot, Department(to_department))

    def _load(self, project_id: int, lock: bool) -> ProjectSnapshot:
        if lock:
            project = self.projects.get_for_update(project_id)
        else:
            project = self.projects.get_by_id(project_id)
        if project is None:
            raise NotFound("Project", project_id)

        latest = self.ledger.latest(project_id)
        if latest is None or latest.to_department != project.current_department:
            raise ConcurrentModification(project_id)

        return ProjectSnapshot(
            project=project,
            latest=latest,
            version=project.workflow_version,
            current_department=Department(project.current_department),
            graph=self.graph_provider.graph_for(project),
        )

    def _validate(self, snapshot: ProjectSnapshot, to_department: Department) -> TransitionRule:
        current = snapshot.current_department
        rule = snapshot.graph.requirements_for(current, to_department)
        if rule is None:
            raise InvalidTransition(current, to_department)

        latest = snapshot.latest
        if latest.work_status != rule.required_status:
            raise WorkStatusNotReady(current, rule.required_status, latest.work_status)

        if rule.requires_approval or rule.requires_qa_passing:
            missing = self.missing_requirements(snapshot)
            if missing:
                raise GateNotSatisfied(current, missing)

        return rule

    def missing_requirements(self, snapshot: ProjectSnapshot) -> List[str]:
        evaluator = ApprovalGateEvaluator(snapshot.graph.gates)
        result = evaluator.evaluate(
            snapshot.current_department,
            snapshot.latest.work_status,
            self.approvals.list_for_history(snapshot.latest.id),
            self.qa_rounds.list_for_history(snapshot.latest.id),
        )
        return result.missing

    def _apply(
        self,
        snapshot: ProjectSnapshot,
        rule: TransitionRule,
        actor_id: int,
        notes: Optional[str],
        estimated_days: Optional[int],
    ) -> None:
        project_id = snapshot.project.id
        graph = snapshot.graph
        to_department = rule.to_department

        advanced = self.projects.advance_workflow(
            project_id,
            snapshot.version,
            {
                "current_department": to_department,
                "next_department": graph.suggest_next(to_department),
            },
        )
        if not advanced:
            raise ConcurrentModification(project_id)

        if rule.required_status in COMPLETING_STATUSES:
            apply_status(snapshot.latest, WorkStatus.COMPLETED)
            snapshot.latest.updated_by = actor_id

        if estimated_days is None:
            estimated_days = graph.default_estimated_days(to_department)
        self.ledger.record_transition(
            project_id,
            to_department,
            actor_id,
            notes,
            from_department=snapshot.current_department,
            estimated_days=estimated_days,
        )

        project = snapshot.project
        self.db.refresh(project)
        project.project_code = generate_project_code(self.ledger.all_for(project_id))
        self.db.flush()
