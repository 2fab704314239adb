from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from tracker.db.session import get_db
from tracker.schemas.category import (
    CategoryCreate,
    CategoryOut,
    CategoryWorkflowOut,
    DepartmentMappingIn,
    WorkflowReplace,
)
from tracker.models.user import User
from tracker.core.security import get_current_user, require_workflow_admin
from tracker.services.category_service import CategoryService
from tracker.services.workflow_graph import MappingSpec


router = APIRouter()


def _specs(rows: List[DepartmentMappingIn]) -> List[MappingSpec]:
    return [
        MappingSpec(row.department, row.sequence, row.is_required, row.estimated_days)
        for row in rows
    ]


@router.get("/", response_model=List[CategoryOut])
def list_categories(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return CategoryService.list_categories(db)


@router.post("/", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_workflow_admin),
):
    workflow = _specs(payload.workflow) if payload.workflow else None
    return CategoryService.create_category(
        db, payload.name, description=payload.description, workflow=workflow
    )


@router.get("/{category_id}/workflow", response_model=CategoryWorkflowOut)
def get_category_workflow(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return CategoryService.describe_workflow(db, category_id)


@router.put("/{category_id}/workflow", response_model=CategoryWorkflowOut)
def replace_category_workflow(
    category_id: int,
    payload: WorkflowReplace,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_workflow_admin),
):
    """
    Replace the ordered department list of a category.
    The new list is compiled first; a list that does not compile is rejected with 422.
    """
    CategoryService.replace_workflow(db, category_id, _specs(payload.departments))
    return CategoryService.describe_workflow(db, category_id)
