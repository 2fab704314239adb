from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from tracker.db.session import get_db
from tracker.schemas.workflow import (
    ApprovalDecision,
    ApprovalOut,
    ApprovalRequestCreate,
    DepartmentHistoryOut,
    QABugCreate,
    QABugOut,
    QARoundComplete,
    QARoundOut,
    QARoundStart,
    WorkStatusUpdate,
)
from tracker.models.user import User
from tracker.core.security import get_current_user, require_qa_starter
from tracker.services.workflow_graph import bugfix_departments
from tracker.services.workflow_service import WorkflowService


router = APIRouter()


def _bug_out(bug) -> QABugOut:
    out = QABugOut.model_validate(bug)
    out.suggested_departments = bugfix_departments(bug.title, bug.description)
    return out


@router.patch("/history/{history_id}/status", response_model=DepartmentHistoryOut)
def update_work_status(
    history_id: int,
    payload: WorkStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return WorkflowService(db).update_work_status(
        history_id, payload.status, actor_id=current_user.id, notes=payload.notes
    )


@router.get("/history/{history_id}/approvals", response_model=List[ApprovalOut])
def list_approvals(
    history_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return WorkflowService(db).list_approvals(history_id)


@router.post(
    "/history/{history_id}/approvals",
    response_model=ApprovalOut,
    status_code=status.HTTP_201_CREATED,
)
def request_approval(
    history_id: int,
    payload: ApprovalRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return WorkflowService(db).request_approval(
        history_id, payload.approval_type, actor_id=current_user.id, comments=payload.comments
    )


@router.post("/approvals/{approval_id}", response_model=ApprovalOut)
def submit_approval_decision(
    approval_id: int,
    payload: ApprovalDecision,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return WorkflowService(db).submit_approval_decision(
        approval_id,
        payload.decision,
        reviewer_id=current_user.id,
        comments=payload.comments,
        rejection_reason=payload.rejection_reason,
    )


@router.get("/history/{history_id}/qa-rounds", response_model=List[QARoundOut])
def list_qa_rounds(
    history_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return WorkflowService(db).list_qa_rounds(history_id)


@router.post(
    "/history/{history_id}/qa-rounds",
    response_model=QARoundOut,
    status_code=status.HTTP_201_CREATED,
)
def start_qa_round(
    history_id: int,
    payload: QARoundStart,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_qa_starter),
):
    return WorkflowService(db).start_qa_round(history_id, payload.qa_type, tester_id=current_user.id)


@router.post("/qa-rounds/{round_id}/complete", response_model=QARoundOut)
def complete_qa_round(
    round_id: int,
    payload: QARoundComplete,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_qa_starter),
):
    return WorkflowService(db).complete_qa_round(
        round_id,
        payload.outcome,
        bugs_found=payload.bugs_found,
        critical_bugs=payload.critical_bugs,
        test_results=payload.test_results,
        rejection_reason=payload.rejection_reason,
    )


@router.get("/qa-rounds/{round_id}/bugs", response_model=List[QABugOut])
def list_qa_bugs(
    round_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return [_bug_out(bug) for bug in WorkflowService(db).list_qa_bugs(round_id)]


@router.post(
    "/qa-rounds/{round_id}/bugs",
    response_model=QABugOut,
    status_code=status.HTTP_201_CREATED,
)
def create_qa_bug(
    round_id: int,
    payload: QABugCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    bug = WorkflowService(db).create_qa_bug(
        round_id,
        title=payload.title,
        description=payload.description,
        severity=payload.severity,
        steps=payload.steps,
        assigned_to=payload.assigned_to,
    )
    return _bug_out(bug)
