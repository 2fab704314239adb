"""QA round and bug repositories."""

from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func

from tracker.repositories.base_repository import BaseRepository
from tracker.models.qa import QATestingRound, QABug, QAStatus


class QARoundRepository(BaseRepository[QATestingRound]):
    entity_name = "QA round"

    def __init__(self, db: Session):
        super().__init__(QATestingRound, db)

    def list_for_history(self, history_id: int) -> List[QATestingRound]:
        return (
            self.db.query(QATestingRound)
            .filter(QATestingRound.history_id == history_id)
            .order_by(QATestingRound.round_number)
            .all()
        )

    def max_round_number(self, history_id: int) -> int:
        value = (
            self.db.query(func.max(QATestingRound.round_number))
            .filter(QATestingRound.history_id == history_id)
            .scalar()
        )
        return value or 0

    def get_in_progress(self, history_id: int) -> Optional[QATestingRound]:
        return (
            self.db.query(QATestingRound)
            .filter(
                QATestingRound.history_id == history_id,
                QATestingRound.status == QAStatus.IN_PROGRESS,
            )
            .first()
        )

    def critical_bug_total(self, history_ids: List[int]) -> int:
        if not history_ids:
            return 0
        value = (
            self.db.query(func.sum(QATestingRound.critical_bugs))
            .filter(QATestingRound.history_id.in_(history_ids))
            .scalar()
        )
        return value or 0


class QABugRepository(BaseRepository[QABug]):
    entity_name = "QA bug"

    def __init__(self, db: Session):
        super().__init__(QABug, db)

    def list_for_round(self, round_id: int) -> List[QABug]:
        return self.db.query(QABug).filter(QABug.qa_round_id == round_id).order_by(QABug.id).all()
