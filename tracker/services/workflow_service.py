"""
Workflow Service Module.
Work-status updates, approvals, QA rounds and bugs, plus the read-only views of
a project's workflow. Department moves live in TransitionCoordinator.

Every write that depends on "is this visit still the current one" takes the
project row lock first, so it serializes with department moves.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from tracker.core.exceptions import (
    ConcurrentModification,
    DuplicateOpenRequest,
    HistoryEntryClosed,
    InvalidDecision,
    NotFound,
    WorkflowError,
)
from tracker.models.approval import ApprovalStatus, ApprovalType, WorkflowApproval
from tracker.models.department import Department, DepartmentKind, department_info
from tracker.models.department_history import DepartmentHistory, WorkStatus
from tracker.models.project import Project
from tracker.models.qa import BugSeverity, QABug, QAStatus, QATestingRound, QAType
from tracker.repositories.approval_repository import ApprovalRepository
from tracker.repositories.history_repository import DepartmentHistoryRepository
from tracker.repositories.project_repository import ProjectRepository
from tracker.repositories.qa_repository import QABugRepository, QARoundRepository
from tracker.services.approval_gate import ApprovalGateEvaluator
from tracker.services.history_ledger import HistoryLedger
from tracker.services.transition_coordinator import TransitionCoordinator
from tracker.services.work_status import WorkStatusMachine, apply_status
from tracker.services.workflow_graph import WorkflowGraph, requires_manager_review
from tracker.utils.clock import utcnow
from tracker.utils.project_code import generate_project_code

logger = logging.getLogger(__name__)

QA_OPEN_STATUSES = (WorkStatus.QA_TESTING, WorkStatus.BEFORE_LIVE_QA)

# Department kinds each QA round type may run in
QA_TYPE_KINDS = {
    QAType.HTML_QA: (DepartmentKind.build,),
    QAType.DEV_QA: (DepartmentKind.build,),
    QAType.BEFORE_LIVE_QA: (DepartmentKind.qa,),
}


class WorkflowService:
    """Operations on department visits of a project."""

    def __init__(
        self,
        db: Session,
        coordinator: Optional[TransitionCoordinator] = None,
        machine: Optional[WorkStatusMachine] = None,
    ):
        self.db = db
        self.coordinator = coordinator or TransitionCoordinator(db)
        self.machine = machine or WorkStatusMachine()
        self.ledger = HistoryLedger(db)
        self.projects = ProjectRepository(db)
        self.history = DepartmentHistoryRepository(db)
        self.approvals = ApprovalRepository(db)
        self.qa_rounds = QARoundRepository(db)
        self.qa_bugs = QABugRepository(db)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def get_history(self, project_id: int) -> List[DepartmentHistory]:
        self.projects.get_or_raise(project_id)
        return self.ledger.all_for(project_id)

    def list_approvals(self, history_id: int) -> List[WorkflowApproval]:
        self.history.get_or_raise(history_id)
        return self.approvals.list_for_history(history_id)

    def list_qa_rounds(self, history_id: int) -> List[QATestingRound]:
        self.history.get_or_raise(history_id)
        return self.qa_rounds.list_for_history(history_id)

    def get_allowed_next_departments(self, project_id: int) -> List[Department]:
        project = self.projects.get_or_raise(project_id)
        graph = self.coordinator.graph_provider.graph_for(project)
        return graph.allowed_next(project.current_department)

    def get_workflow_validation_status(self, project_id: int) -> Dict[str, Any]:
        """
        Summarize where a project stands and whether it can move on.

        can_proceed is True when at least one forward transition from the
        current department would pass every validation right now.
        """
        snapshot = self.coordinator.snapshot(project_id)
        graph: WorkflowGraph = snapshot.graph
        current = snapshot.current_department
        latest = snapshot.latest

        gate = ApprovalGateEvaluator(graph.gates).evaluate(
            current,
            latest.work_status,
            self.approvals.list_for_history(latest.id),
            self.qa_rounds.list_for_history(latest.id),
        )

        can_proceed = False
        for rule in graph.forward_rules(current):
            try:
                self.coordinator.check_move(snapshot, rule.to_department)
            except WorkflowError:
                continue
            can_proceed = True
            break

        history_ids = [entry.id for entry in self.ledger.all_for(project_id)]
        rejection_count = self.approvals.count_rejections(history_ids)
        critical_bugs = self.qa_rounds.critical_bug_total(history_ids)

        return {
            "project_id": project_id,
            "history_id": latest.id,
            "current_department": current,
            "current_work_status": latest.work_status,
            "allowed_next": graph.allowed_next(current),
            "suggested_next": graph.suggest_next(current),
            "workflow_sequence": list(graph.sequence),
            "approval_gate": gate.to_dict(),
            "can_proceed": can_proceed,
            "requires_manager_review": requires_manager_review(rejection_count, critical_bugs),
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _lock_entry(self, entry: DepartmentHistory) -> Tuple[Project, bool]:
        """Lock the entry's project; report whether the entry is its current visit."""
        project = self.projects.get_for_update(entry.project_id)
        if project is None:
            raise NotFound("Project", entry.project_id)
        latest = self.ledger.latest(entry.project_id)
        if latest is None:
            raise ConcurrentModification(entry.project_id)
        return project, latest.id == entry.id

    def _lock_current(self, history_id: int) -> Tuple[DepartmentHistory, Project]:
        entry = self.history.get_or_raise(history_id)
        project, is_current = self._lock_entry(entry)
        if not is_current:
            raise HistoryEntryClosed(history_id)
        return entry, project

    def _set_status(
        self, entry: DepartmentHistory, project: Project, target: WorkStatus, actor_id: int
    ) -> None:
        """
        Change a visit's status under the project lock.

        The status change bumps workflow_version like a move does, so a move
        validated against the old status loses its guarded write.
        """
        self.machine.check(entry.to_department, entry.work_status, target)
        previous = entry.work_status
        if not self.projects.advance_workflow(project.id, project.workflow_version, {}):
            raise ConcurrentModification(project.id)
        self.db.refresh(project)

        apply_status(entry, target)
        entry.updated_by = actor_id
        self.db.flush()
        project.project_code = generate_project_code(self.ledger.all_for(project.id))
        logger.info(
            f"Visit {entry.id} of project {project.id} in {entry.to_department.value}: "
            f"{previous.value} -> {target.value}"
        )

    def _commit_or_rollback(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def update_work_status(
        self,
        history_id: int,
        new_status: WorkStatus,
        actor_id: int,
        notes: Optional[str] = None,
    ) -> DepartmentHistory:
        """
        Change the work status of the project's current visit.

        Raises:
            NotFound: unknown history entry
            HistoryEntryClosed: the entry is not the project's latest visit
            InvalidStatusTransition: the status machine has no such edge
        """
        new_status = WorkStatus(new_status)
        try:
            entry, project = self._lock_current(history_id)
            self._set_status(entry, project, new_status, actor_id)
            if notes:
                entry.notes = notes
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(entry)
        logger.info(f"User {actor_id} set visit {history_id} to {new_status.value}")
        return entry

    def request_approval(
        self,
        history_id: int,
        approval_type: ApprovalType,
        actor_id: int,
        comments: Optional[str] = None,
    ) -> WorkflowApproval:
        """
        Open an approval request on the current visit.

        A client-approval request on a visit that is IN_PROGRESS also moves the
        visit to PENDING_CLIENT_APPROVAL.

        Raises:
            HistoryEntryClosed: the entry is not the project's latest visit
            DuplicateOpenRequest: a PENDING request of the same type exists
        """
        approval_type = ApprovalType(approval_type)
        try:
            entry, project = self._lock_current(history_id)
            existing = self.approvals.get_pending(history_id, approval_type)
            if existing is not None:
                raise DuplicateOpenRequest("approval", history_id, existing.id)

            approval = WorkflowApproval(
                history_id=history_id,
                approval_type=approval_type,
                status=ApprovalStatus.PENDING,
                requested_by=actor_id,
                requested_at=utcnow(),
                comments=comments,
            )
            self.approvals.create(approval)

            if (
                approval_type == ApprovalType.CLIENT_APPROVAL
                and entry.work_status == WorkStatus.IN_PROGRESS
                and department_info(entry.to_department).accepts_client_approval
            ):
                self._set_status(entry, project, WorkStatus.PENDING_CLIENT_APPROVAL, actor_id)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(approval)
        logger.info(
            f"Approval {approval.id} ({approval_type.value}) requested on visit {history_id} "
            f"by user {actor_id}"
        )
        return approval

    def submit_approval_decision(
        self,
        approval_id: int,
        decision: ApprovalStatus,
        reviewer_id: int,
        comments: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> WorkflowApproval:
        """
        Approve or reject a pending request.

        When the request's visit is current and waiting for client approval,
        the visit moves to COMPLETED on approval or CLIENT_REJECTED on rejection.

        Raises:
            NotFound: unknown approval
            InvalidDecision: not APPROVED/REJECTED, request already decided, or
                rejection without a reason
        """
        try:
            decision = ApprovalStatus(decision)
        except ValueError:
            raise InvalidDecision(f"Unknown decision {decision}")
        if decision not in (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED):
            raise InvalidDecision("Decision must be APPROVED or REJECTED")
        if decision == ApprovalStatus.REJECTED and not (rejection_reason and rejection_reason.strip()):
            raise InvalidDecision("A rejection reason is required")

        try:
            approval = self.approvals.get_or_raise(approval_id)
            entry = approval.history
            project, is_current = self._lock_entry(entry)
            # Re-read under the lock; a concurrent decision may have landed
            self.db.refresh(approval)
            if approval.status != ApprovalStatus.PENDING:
                raise InvalidDecision(
                    f"Approval {approval_id} is already {approval.status.value}"
                )

            approval.status = decision
            approval.reviewed_by = reviewer_id
            approval.reviewed_at = utcnow()
            if comments is not None:
                approval.comments = comments
            if decision == ApprovalStatus.REJECTED:
                approval.rejection_reason = rejection_reason

            if is_current and entry.work_status == WorkStatus.PENDING_CLIENT_APPROVAL:
                target = (
                    WorkStatus.COMPLETED
                    if decision == ApprovalStatus.APPROVED
                    else WorkStatus.CLIENT_REJECTED
                )
                self._set_status(entry, project, target, reviewer_id)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(approval)
        logger.info(f"Approval {approval_id} {decision.value} by user {reviewer_id}")
        return approval

    def start_qa_round(self, history_id: int, qa_type: QAType, tester_id: int) -> QATestingRound:
        """
        Start the next QA round of the current visit.

        Raises:
            HistoryEntryClosed: the entry is not the project's latest visit
            DuplicateOpenRequest: a round of this visit is still IN_PROGRESS
            InvalidDecision: the QA type does not run in the visit's department
        """
        qa_type = QAType(qa_type)
        try:
            entry, _ = self._lock_current(history_id)
            kind = department_info(entry.to_department).kind
            if kind not in QA_TYPE_KINDS[qa_type]:
                raise InvalidDecision(
                    f"{qa_type.value} rounds cannot run in {entry.to_department.value}"
                )
            running = self.qa_rounds.get_in_progress(history_id)
            if running is not None:
                raise DuplicateOpenRequest("QA round", history_id, running.id)

            qa_round = QATestingRound(
                history_id=history_id,
                qa_type=qa_type,
                round_number=self.qa_rounds.max_round_number(history_id) + 1,
                status=QAStatus.IN_PROGRESS,
                tested_by=tester_id,
                bugs_found=0,
                critical_bugs=0,
                started_at=utcnow(),
            )
            self.qa_rounds.create(qa_round)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(qa_round)
        logger.info(
            f"QA round {qa_round.round_number} ({qa_type.value}) started on visit {history_id}"
        )
        return qa_round

    def complete_qa_round(
        self,
        round_id: int,
        outcome: QAStatus,
        bugs_found: int = 0,
        critical_bugs: int = 0,
        test_results: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> QATestingRound:
        """
        Record the outcome of a running QA round.

        When the round's visit is current and under QA, a PASSED round moves it
        to COMPLETED (READY_FOR_DELIVERY in the QA department), a FAILED round
        to QA_REJECTED. The round's tester is recorded as the status changer.

        Raises:
            NotFound: unknown round
            InvalidDecision: outcome not PASSED/FAILED, bad bug counts, or the
                round is already finished
        """
        try:
            outcome = QAStatus(outcome)
        except ValueError:
            raise InvalidDecision(f"Unknown QA outcome {outcome}")
        if outcome not in (QAStatus.PASSED, QAStatus.FAILED):
            raise InvalidDecision("QA outcome must be PASSED or FAILED")
        if bugs_found < 0 or critical_bugs < 0:
            raise InvalidDecision("Bug counts cannot be negative")
        if critical_bugs > bugs_found:
            raise InvalidDecision("Critical bugs cannot exceed bugs found")

        try:
            qa_round = self.qa_rounds.get_or_raise(round_id)
            entry = qa_round.history
            project, is_current = self._lock_entry(entry)
            self.db.refresh(qa_round)
            if qa_round.status != QAStatus.IN_PROGRESS:
                raise InvalidDecision(
                    f"QA round {round_id} is already {qa_round.status.value}"
                )

            qa_round.status = outcome
            qa_round.bugs_found = bugs_found
            qa_round.critical_bugs = critical_bugs
            qa_round.test_results = test_results
            qa_round.rejection_reason = rejection_reason
            qa_round.completed_at = utcnow()

            if is_current and entry.work_status in QA_OPEN_STATUSES:
                self._set_status(
                    entry, project, self._qa_outcome_status(entry, qa_round), qa_round.tested_by
                )

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(qa_round)
        logger.info(
            f"QA round {qa_round.round_number} of visit {qa_round.history_id} {outcome.value} "
            f"({bugs_found} bugs, {critical_bugs} critical)"
        )
        return qa_round

    @staticmethod
    def _qa_outcome_status(entry: DepartmentHistory, qa_round: QATestingRound) -> WorkStatus:
        if qa_round.status == QAStatus.FAILED:
            return WorkStatus.QA_REJECTED
        # A pass must land on the status the department's outgoing edges require
        if department_info(entry.to_department).kind == DepartmentKind.qa:
            return WorkStatus.READY_FOR_DELIVERY
        return WorkStatus.COMPLETED

    def create_qa_bug(
        self,
        round_id: int,
        title: str,
        description: str,
        severity: BugSeverity = BugSeverity.MEDIUM,
        steps: Optional[str] = None,
        assigned_to: Optional[int] = None,
    ) -> QABug:
        qa_round = self.qa_rounds.get_or_raise(round_id)
        bug = QABug(
            qa_round_id=qa_round.id,
            title=title,
            description=description,
            severity=BugSeverity(severity),
            steps=steps,
            assigned_to=assigned_to,
            found_at=utcnow(),
        )
        self.qa_bugs.create(bug)
        self._commit_or_rollback()
        self.db.refresh(bug)
        logger.info(f"Bug {bug.id} ({bug.severity.value}) logged on QA round {round_id}")
        return bug

    def list_qa_bugs(self, round_id: int) -> List[QABug]:
        self.qa_rounds.get_or_raise(round_id)
        return self.qa_bugs.list_for_round(round_id)
