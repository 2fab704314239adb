from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from tracker.models.department import Department
from tracker.models.department_history import WorkStatus
from tracker.models.approval import ApprovalType, ApprovalStatus
from tracker.models.qa import QAType, QAStatus, BugSeverity, BugStatus


class DepartmentHistoryOut(BaseModel):
    id: int
    project_id: int
    from_department: Optional[Department] = None
    to_department: Department
    work_status: WorkStatus
    work_start_date: Optional[datetime] = None
    work_end_date: Optional[datetime] = None
    estimated_days: Optional[int] = None
    actual_days: Optional[int] = None
    moved_by: int
    updated_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class WorkStatusUpdate(BaseModel):
    status: WorkStatus
    notes: Optional[str] = Field(None, max_length=2000)


class ApprovalRequestCreate(BaseModel):
    approval_type: ApprovalType
    comments: Optional[str] = Field(None, max_length=2000)


class ApprovalDecision(BaseModel):
    """Schema for approving or rejecting a request"""
    decision: ApprovalStatus
    comments: Optional[str] = Field(None, max_length=2000)
    rejection_reason: Optional[str] = Field(None, max_length=2000)


class ApprovalOut(BaseModel):
    id: int
    history_id: int
    approval_type: ApprovalType
    status: ApprovalStatus
    requested_by: int
    reviewed_by: Optional[int] = None
    requested_at: datetime
    reviewed_at: Optional[datetime] = None
    comments: Optional[str] = None
    rejection_reason: Optional[str] = None

    class Config:
        from_attributes = True


class QARoundStart(BaseModel):
    qa_type: QAType


class QARoundComplete(BaseModel):
    outcome: QAStatus
    bugs_found: int = Field(0, ge=0)
    critical_bugs: int = Field(0, ge=0)
    test_results: Optional[str] = None
    rejection_reason: Optional[str] = Field(None, max_length=2000)


class QARoundOut(BaseModel):
    id: int
    history_id: int
    qa_type: QAType
    round_number: int
    status: QAStatus
    tested_by: int
    bugs_found: int
    critical_bugs: int
    test_results: Optional[str] = None
    rejection_reason: Optional[str] = None
    started_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QABugCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=256)
    description: str = Field(..., min_length=1)
    severity: BugSeverity = BugSeverity.MEDIUM
    steps: Optional[str] = None
    assigned_to: Optional[int] = None


class QABugOut(BaseModel):
    id: int
    qa_round_id: int
    title: str
    description: str
    severity: BugSeverity
    status: BugStatus
    assigned_to: Optional[int] = None
    steps: Optional[str] = None
    found_at: datetime
    fixed_at: Optional[datetime] = None
    suggested_departments: List[Department] = []

    class Config:
        from_attributes = True


class ApprovalGateOut(BaseModel):
    required: bool
    satisfied: bool
    missing: List[str]


class WorkflowValidationOut(BaseModel):
    project_id: int
    history_id: int
    current_department: Department
    current_work_status: WorkStatus
    allowed_next: List[Department]
    suggested_next: Optional[Department] = None
    workflow_sequence: List[Department]
    approval_gate: ApprovalGateOut
    can_proceed: bool
    requires_manager_review: bool


class AllowedDepartmentsOut(BaseModel):
    project_id: int
    current_department: Department
    allowed_next: List[Department]
