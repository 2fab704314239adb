from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from tracker.models.department import Department


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    client_name: Optional[str] = Field(None, max_length=256)
    description: Optional[str] = None
    category_id: Optional[int] = None
    estimated_days: Optional[int] = Field(None, ge=0)


class ProjectOut(BaseModel):
    id: int
    name: str
    client_name: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    current_department: Department
    next_department: Optional[Department] = None
    project_code: str
    workflow_version: int
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MoveDepartmentRequest(BaseModel):
    """Schema for moving a project to another department"""
    to_department: Department
    notes: Optional[str] = Field(None, max_length=2000)
    estimated_days: Optional[int] = Field(None, ge=0)
