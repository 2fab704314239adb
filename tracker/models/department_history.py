from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship
from tracker.db.session import Base
from tracker.models.department import Department
from tracker.utils.clock import utcnow
import enum


class WorkStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    CORRECTIONS_NEEDED = "CORRECTIONS_NEEDED"
    PENDING_CLIENT_APPROVAL = "PENDING_CLIENT_APPROVAL"
    CLIENT_REJECTED = "CLIENT_REJECTED"
    QA_TESTING = "QA_TESTING"
    QA_REJECTED = "QA_REJECTED"
    BUGFIX_IN_PROGRESS = "BUGFIX_IN_PROGRESS"
    BEFORE_LIVE_QA = "BEFORE_LIVE_QA"
    READY_FOR_DELIVERY = "READY_FOR_DELIVERY"
    COMPLETED = "COMPLETED"


class DepartmentHistory(Base):
    """One visit of a project to a department. Append-only."""

    __tablename__ = "project_department_history"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    from_department = Column(Enum(Department), nullable=True)  # null for the first visit
    to_department = Column(Enum(Department), nullable=False)
    work_status = Column(Enum(WorkStatus), nullable=False, default=WorkStatus.NOT_STARTED)
    work_start_date = Column(DateTime, nullable=True)
    work_end_date = Column(DateTime, nullable=True)
    estimated_days = Column(Integer, nullable=True)
    actual_days = Column(Integer, nullable=True)
    moved_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    # Last user who changed work_status
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_department_history_project_created", "project_id", "created_at"),
    )

    # Relationships
    project = relationship("Project")
    mover = relationship("User", foreign_keys=[moved_by])
    updater = relationship("User", foreign_keys=[updated_by])
    approvals = relationship(
        "WorkflowApproval",
        back_populates="history",
        order_by="WorkflowApproval.id",
    )
    qa_rounds = relationship(
        "QATestingRound",
        back_populates="history",
        order_by="QATestingRound.round_number",
    )
