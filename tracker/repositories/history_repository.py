"""Department history repository."""

from typing import Optional, List
from sqlalchemy.orm import Session

from tracker.repositories.base_repository import BaseRepository
from tracker.models.department_history import DepartmentHistory


class DepartmentHistoryRepository(BaseRepository[DepartmentHistory]):
    entity_name = "Department history entry"

    def __init__(self, db: Session):
        super().__init__(DepartmentHistory, db)

    def _for_project(self, project_id: int):
        return self.db.query(DepartmentHistory).filter(DepartmentHistory.project_id == project_id)

    def list_for_project(self, project_id: int) -> List[DepartmentHistory]:
        """Entries oldest first; ID breaks timestamp ties."""
        return (
            self._for_project(project_id)
            .order_by(DepartmentHistory.created_at.asc(), DepartmentHistory.id.asc())
            .all()
        )

    def latest_for_project(self, project_id: int) -> Optional[DepartmentHistory]:
        return (
            self._for_project(project_id)
            .order_by(DepartmentHistory.created_at.desc(), DepartmentHistory.id.desc())
            .first()
        )

    def count_for_project(self, project_id: int) -> int:
        return self._for_project(project_id).count()
