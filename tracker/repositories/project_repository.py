"""Project repository: lookups, the locked load and the guarded workflow update."""

from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import update, func

from tracker.repositories.base_repository import BaseRepository
from tracker.models.project import Project
from tracker.models.department import Department


class ProjectRepository(BaseRepository[Project]):
    entity_name = "Project"

    def __init__(self, db: Session):
        super().__init__(Project, db)

    def get_for_update(self, project_id: int) -> Optional[Project]:
        """
        Load a project holding its row lock until the transaction ends.

        FOR UPDATE is emitted on PostgreSQL and MySQL; SQLite ignores it and
        relies on the workflow_version guard in advance_workflow().
        populate_existing() discards any stale copy already in the session.
        """
        return (
            self.db.query(Project)
            .filter(Project.id == project_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def advance_workflow(
        self, project_id: int, expected_version: int, values: Dict[str, Any]
    ) -> bool:
        """
        Apply workflow changes only if nobody moved the project since it was read.

        Args:
            project_id: Project ID
            expected_version: workflow_version observed at load time
            values: Column values to set alongside the version bump

        Returns:
            False when the guard matched zero rows
        """
        stmt = (
            update(Project)
            .where(Project.id == project_id, Project.workflow_version == expected_version)
            .values(
                workflow_version=Project.workflow_version + 1,
                updated_at=func.now(),
                **values,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def list_projects(
        self, category_id: Optional[int] = None, skip: int = 0, limit: int = 100
    ) -> List[Project]:
        query = self.db.query(Project)
        if category_id is not None:
            query = query.filter(Project.category_id == category_id)
        return query.order_by(Project.created_at.desc(), Project.id.desc()).offset(skip).limit(limit).all()

    def outside_departments(
        self, category_id: int, departments: List[Department]
    ) -> List[Project]:
        """Projects of a category whose current department is not in the given list."""
        return (
            self.db.query(Project)
            .filter(
                Project.category_id == category_id,
                Project.current_department.notin_(departments),
            )
            .order_by(Project.id)
            .all()
        )
