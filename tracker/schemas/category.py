from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from tracker.models.department import Department
from tracker.models.department_history import WorkStatus


class DepartmentMappingIn(BaseModel):
    department: Department
    sequence: int
    is_required: bool = True
    estimated_days: Optional[int] = Field(None, ge=0)


class DepartmentMappingOut(BaseModel):
    id: int
    category_id: int
    department: Department
    sequence: int
    is_required: bool
    estimated_days: Optional[int] = None

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: Optional[str] = None
    workflow: Optional[List[DepartmentMappingIn]] = None


class CategoryOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WorkflowReplace(BaseModel):
    departments: List[DepartmentMappingIn]


class TransitionOut(BaseModel):
    from_department: Department
    to_department: Department
    required_status: WorkStatus
    requires_approval: bool
    requires_qa_passing: bool


class CategoryWorkflowOut(BaseModel):
    category_id: int
    mappings: List[DepartmentMappingOut]
    transitions: List[TransitionOut]
