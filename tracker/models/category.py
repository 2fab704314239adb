from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from tracker.db.session import Base
from tracker.models.department import Department


class ProjectCategory(Base):
    __tablename__ = "project_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    department_mappings = relationship(
        "CategoryDepartmentMapping",
        back_populates="category",
        order_by="CategoryDepartmentMapping.sequence",
        cascade="all, delete-orphan",
    )


class CategoryDepartmentMapping(Base):
    """One ordered step of a category-specific workflow."""

    __tablename__ = "category_department_mappings"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("project_categories.id"), nullable=False)
    department = Column(Enum(Department), nullable=False)
    sequence = Column(Integer, nullable=False)
    is_required = Column(Boolean, nullable=False, default=True)
    estimated_days = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("category_id", "sequence", name="unique_category_sequence"),
        UniqueConstraint("category_id", "department", name="unique_category_department"),
    )

    # Relationships
    category = relationship("ProjectCategory", back_populates="department_mappings")
