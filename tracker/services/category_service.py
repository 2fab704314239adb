"""
Category Service Module.
Stores category-specific department workflows. A workflow is compiled before it
is written, so every stored workflow compiles when a project later needs it.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from tracker.core.exceptions import ConfigurationError
from tracker.models.category import CategoryDepartmentMapping, ProjectCategory
from tracker.repositories.category_repository import CategoryMappingRepository, CategoryRepository
from tracker.repositories.project_repository import ProjectRepository
from tracker.services.workflow_graph import (
    MappingSpec,
    WorkflowGraph,
    build_category_graph,
    build_default_graph,
)

logger = logging.getLogger(__name__)


class CategoryService:
    """Service for project categories and their workflows."""

    @staticmethod
    def _compile(specs: List[MappingSpec], category_id: Optional[int] = None) -> WorkflowGraph:
        return build_category_graph(specs, build_default_graph().gates, category_id)

    @staticmethod
    def _rows(specs: Iterable[MappingSpec]) -> List[CategoryDepartmentMapping]:
        return [
            CategoryDepartmentMapping(
                department=spec.department,
                sequence=spec.sequence,
                is_required=spec.is_required,
                estimated_days=spec.estimated_days,
            )
            for spec in specs
        ]

    @staticmethod
    def list_categories(db: Session) -> List[ProjectCategory]:
        return CategoryRepository(db).get_all(limit=1000)

    @staticmethod
    def get_category(db: Session, category_id: int) -> ProjectCategory:
        return CategoryRepository(db).get_or_raise(category_id)

    @staticmethod
    def create_category(
        db: Session,
        name: str,
        description: Optional[str] = None,
        workflow: Optional[List[MappingSpec]] = None,
    ) -> ProjectCategory:
        """
        Create a category, optionally with its workflow.

        Raises:
            ConfigurationError: duplicate name or a workflow that does not compile
        """
        repo = CategoryRepository(db)
        if repo.get_by_name(name) is not None:
            raise ConfigurationError(f"Category '{name}' already exists")
        if workflow:
            CategoryService._compile(workflow)

        try:
            category = repo.create(ProjectCategory(name=name, description=description))
            if workflow:
                CategoryMappingRepository(db).replace_for_category(
                    category.id, CategoryService._rows(workflow)
                )
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(category)
        logger.info(f"Category {category.id} '{name}' created")
        return category

    @staticmethod
    def replace_workflow(
        db: Session, category_id: int, workflow: List[MappingSpec]
    ) -> List[CategoryDepartmentMapping]:
        """
        Replace a category's ordered department list.

        Projects already on the category pick up the new workflow on their next
        move; their history is untouched.

        Raises:
            NotFound: unknown category
            ConfigurationError: the workflow does not compile, or it drops the
                current department of a project on the category
        """
        CategoryRepository(db).get_or_raise(category_id)
        CategoryService._compile(workflow, category_id)
        try:
            departments = [spec.department for spec in workflow]
            stranded = ProjectRepository(db).outside_departments(category_id, departments)
            if stranded:
                raise ConfigurationError(
                    "Workflow drops the current department of project(s) "
                    + ", ".join(
                        f"{p.id} ({p.current_department.value})" for p in stranded
                    ),
                    category_id,
                )
            rows = CategoryMappingRepository(db).replace_for_category(
                category_id, CategoryService._rows(workflow)
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(
            f"Category {category_id} workflow replaced: "
            + " -> ".join(spec.department.value for spec in sorted(workflow, key=lambda s: s.sequence))
        )
        return rows

    @staticmethod
    def list_mappings(db: Session, category_id: int) -> List[CategoryDepartmentMapping]:
        CategoryRepository(db).get_or_raise(category_id)
        return CategoryMappingRepository(db).list_for_category(category_id)

    @staticmethod
    def describe_workflow(db: Session, category_id: int) -> Dict[str, Any]:
        """Mappings plus the transitions they compile to."""
        mappings = CategoryService.list_mappings(db, category_id)
        transitions: List[Dict[str, Any]] = []
        if mappings:
            specs = [
                MappingSpec(m.department, m.sequence, m.is_required, m.estimated_days)
                for m in mappings
            ]
            graph = CategoryService._compile(specs, category_id)
            transitions = [
                {
                    "from_department": rule.from_department,
                    "to_department": rule.to_department,
                    "required_status": rule.required_status,
                    "requires_approval": rule.requires_approval,
                    "requires_qa_passing": rule.requires_qa_passing,
                }
                for rule in graph.rules
            ]
        return {"category_id": category_id, "mappings": mappings, "transitions": transitions}
