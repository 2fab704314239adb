"""Repository layer for database access."""

from tracker.repositories.user_repository import UserRepository
from tracker.repositories.project_repository import ProjectRepository
from tracker.repositories.history_repository import DepartmentHistoryRepository
from tracker.repositories.approval_repository import ApprovalRepository
from tracker.repositories.qa_repository import QARoundRepository, QABugRepository
from tracker.repositories.category_repository import (
    CategoryRepository,
    CategoryMappingRepository,
)

__all__ = [
    "UserRepository",
    "ProjectRepository",
    "DepartmentHistoryRepository",
    "ApprovalRepository",
    "QARoundRepository",
    "QABugRepository",
    "CategoryRepository",
    "CategoryMappingRepository",
]
