from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from tracker.db.session import Base
from tracker.utils.clock import utcnow
import enum


class ApprovalType(str, enum.Enum):
    CLIENT_APPROVAL = "CLIENT_APPROVAL"
    QA_APPROVAL = "QA_APPROVAL"
    BEFORE_LIVE_QA = "BEFORE_LIVE_QA"
    MANAGER_REVIEW = "MANAGER_REVIEW"


class ApprovalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class WorkflowApproval(Base):
    """Human sign-off requested against a single department visit."""

    __tablename__ = "workflow_approvals"

    id = Column(Integer, primary_key=True, index=True)
    history_id = Column(
        Integer, ForeignKey("project_department_history.id"), nullable=False, index=True
    )
    approval_type = Column(Enum(ApprovalType), nullable=False)
    status = Column(Enum(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING)
    requested_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    requested_at = Column(DateTime, nullable=False, default=utcnow)
    reviewed_at = Column(DateTime, nullable=True)
    comments = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Relationships
    history = relationship("DepartmentHistory", back_populates="approvals")
    requester = relationship("User", foreign_keys=[requested_by])
    reviewer = relationship("User", foreign_keys=[reviewed_by])
