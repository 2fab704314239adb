"""
Project Service Module.
Creates projects together with their first department visit and serves project lookups.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from tracker.core.exceptions import NotFound
from tracker.models.department import Department
from tracker.models.project import Project
from tracker.repositories.category_repository import CategoryRepository
from tracker.repositories.project_repository import ProjectRepository
from tracker.services.history_ledger import HistoryLedger
from tracker.services.workflow_graph import WorkflowGraphProvider

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for managing project records."""

    @staticmethod
    def create_project(
        db: Session,
        name: str,
        actor_id: int,
        client_name: Optional[str] = None,
        description: Optional[str] = None,
        category_id: Optional[int] = None,
        estimated_days: Optional[int] = None,
    ) -> Project:
        """
        Create a project and its first department visit in one transaction.

        The project starts in the first department of its category workflow,
        or PMO when it has no category workflow.
        """
        if category_id is not None and CategoryRepository(db).get_by_id(category_id) is None:
            raise NotFound("Category", category_id)

        try:
            project = Project(
                name=name,
                client_name=client_name,
                description=description,
                category_id=category_id,
                created_by=actor_id,
                project_code="",
                workflow_version=1,
            )
            graph = WorkflowGraphProvider(db).graph_for(project)
            first_department: Department = graph.sequence[0]
            project.current_department = first_department
            project.next_department = graph.suggest_next(first_department)

            ProjectRepository(db).create(project)
            if estimated_days is None:
                estimated_days = graph.default_estimated_days(first_department)
            HistoryLedger(db).record_transition(
                project.id,
                first_department,
                actor_id,
                notes="Project created",
                estimated_days=estimated_days,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(project)
        logger.info(
            f"Project {project.id} '{project.name}' created in {first_department.value} by user {actor_id}"
        )
        return project

    @staticmethod
    def get_project(db: Session, project_id: int) -> Project:
        return ProjectRepository(db).get_or_raise(project_id)

    @staticmethod
    def list_projects(
        db: Session, category_id: Optional[int] = None, skip: int = 0, limit: int = 100
    ) -> List[Project]:
        return ProjectRepository(db).list_projects(category_id=category_id, skip=skip, limit=limit)
