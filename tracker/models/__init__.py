from .user import User, UserRole
from .department import Department, DepartmentKind
from .category import ProjectCategory, CategoryDepartmentMapping
from .project import Project
from .department_history import DepartmentHistory, WorkStatus
from .approval import WorkflowApproval, ApprovalType, ApprovalStatus
from .qa import QATestingRound, QABug, QAType, QAStatus, BugSeverity, BugStatus
