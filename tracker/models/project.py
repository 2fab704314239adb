from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from tracker.db.session import Base
from tracker.models.department import Department


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(256), nullable=False)
    client_name = Column(String(256), nullable=True)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("project_categories.id"), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Workflow state. current_department mirrors the latest history entry;
    # project_code is a cached projection of completed visits.
    current_department = Column(Enum(Department), nullable=False)
    next_department = Column(Enum(Department), nullable=True)
    project_code = Column(String(64), nullable=False, default="")
    # Bumped by every department transition; guards concurrent moves
    workflow_version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    creator = relationship("User", foreign_keys=[created_by])
    category = relationship("ProjectCategory")
