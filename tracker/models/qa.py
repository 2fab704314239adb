from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from tracker.db.session import Base
from tracker.utils.clock import utcnow
import enum


class QAType(str, enum.Enum):
    HTML_QA = "HTML_QA"
    DEV_QA = "DEV_QA"
    BEFORE_LIVE_QA = "BEFORE_LIVE_QA"


class QAStatus(str, enum.Enum):
    IN_PROGRESS = "IN_PROGRESS"
    PASSED = "PASSED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class BugSeverity(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class BugStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    FIXED = "FIXED"
    VERIFIED = "VERIFIED"
    CLOSED = "CLOSED"


class QATestingRound(Base):
    __tablename__ = "qa_testing_rounds"

    id = Column(Integer, primary_key=True, index=True)
    history_id = Column(
        Integer, ForeignKey("project_department_history.id"), nullable=False, index=True
    )
    qa_type = Column(Enum(QAType), nullable=False)
    round_number = Column(Integer, nullable=False)
    status = Column(Enum(QAStatus), nullable=False, default=QAStatus.IN_PROGRESS)
    tested_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    bugs_found = Column(Integer, nullable=False, default=0)
    critical_bugs = Column(Integer, nullable=False, default=0)
    test_results = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    started_at = Column(DateTime, nullable=False, default=utcnow)
    completed_at = Column(DateTime, nullable=True)

    # Round numbers are dense per history entry
    __table_args__ = (
        UniqueConstraint("history_id", "round_number", name="unique_history_round"),
    )

    # Relationships
    history = relationship("DepartmentHistory", back_populates="qa_rounds")
    tester = relationship("User", foreign_keys=[tested_by])
    bugs = relationship("QABug", back_populates="qa_round", order_by="QABug.id")


class QABug(Base):
    __tablename__ = "qa_bugs"

    id = Column(Integer, primary_key=True, index=True)
    qa_round_id = Column(Integer, ForeignKey("qa_testing_rounds.id"), nullable=False, index=True)
    title = Column(String(256), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(Enum(BugSeverity), nullable=False, default=BugSeverity.MEDIUM)
    status = Column(Enum(BugStatus), nullable=False, default=BugStatus.OPEN)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True)
    steps = Column(Text, nullable=True)
    found_at = Column(DateTime, nullable=False, default=utcnow)
    fixed_at = Column(DateTime, nullable=True)

    # Relationships
    qa_round = relationship("QATestingRound", back_populates="bugs")
    assignee = relationship("User", foreign_keys=[assigned_to])
