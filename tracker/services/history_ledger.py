"""
Append-only ledger of department visits.

The ledger writes one entry per transition and answers questions about a single
project's visits. It never modifies a superseded entry and never commits; the
caller owns the transaction.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from tracker.models.department import Department
from tracker.models.department_history import DepartmentHistory, WorkStatus
from tracker.repositories.history_repository import DepartmentHistoryRepository
from tracker.utils.clock import utcnow

logger = logging.getLogger(__name__)


class HistoryLedger:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DepartmentHistoryRepository(db)

    def record_transition(
        self,
        project_id: int,
        to_department: Department,
        actor_id: int,
        notes: Optional[str] = None,
        from_department: Optional[Department] = None,
        estimated_days: Optional[int] = None,
    ) -> int:
        """
        Append a NOT_STARTED visit and return its ID.

        Args:
            project_id: Project ID
            to_department: Department being entered
            actor_id: User performing the move
            notes: Free-text notes for the visit
            from_department: Department being left, None for the first visit
            estimated_days: Planned duration of the visit

        Returns:
            ID of the new entry
        """
        entry = DepartmentHistory(
            project_id=project_id,
            from_department=from_department,
            to_department=to_department,
            work_status=WorkStatus.NOT_STARTED,
            estimated_days=estimated_days,
            moved_by=actor_id,
            notes=notes,
            created_at=utcnow(),
        )
        self.repo.create(entry)
        logger.info(
            f"Recorded visit {entry.id} for project {project_id}: "
            f"{from_department.value if from_department else '-'} -> {Department(to_department).value}"
        )
        return entry.id

    def latest(self, project_id: int) -> Optional[DepartmentHistory]:
        return self.repo.latest_for_project(project_id)

    def all_for(self, project_id: int) -> List[DepartmentHistory]:
        return self.repo.list_for_project(project_id)

    def get(self, entry_id: int) -> Optional[DepartmentHistory]:
        return self.repo.get_by_id(entry_id)
