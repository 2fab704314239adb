"""Workflow approval repository."""

from typing import Optional, List
from sqlalchemy.orm import Session

from tracker.repositories.base_repository import BaseRepository
from tracker.models.approval import WorkflowApproval, ApprovalStatus, ApprovalType


class ApprovalRepository(BaseRepository[WorkflowApproval]):
    entity_name = "Approval"

    def __init__(self, db: Session):
        super().__init__(WorkflowApproval, db)

    def list_for_history(self, history_id: int) -> List[WorkflowApproval]:
        return (
            self.db.query(WorkflowApproval)
            .filter(WorkflowApproval.history_id == history_id)
            .order_by(WorkflowApproval.id)
            .all()
        )

    def get_pending(self, history_id: int, approval_type: ApprovalType) -> Optional[WorkflowApproval]:
        return (
            self.db.query(WorkflowApproval)
            .filter(
                WorkflowApproval.history_id == history_id,
                WorkflowApproval.approval_type == approval_type,
                WorkflowApproval.status == ApprovalStatus.PENDING,
            )
            .first()
        )

    def count_rejections(self, history_ids: List[int]) -> int:
        if not history_ids:
            return 0
        return (
            self.db.query(WorkflowApproval)
            .filter(
                WorkflowApproval.history_id.in_(history_ids),
                WorkflowApproval.status == ApprovalStatus.REJECTED,
            )
            .count()
        )
