from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from tracker.db.session import get_db
from tracker.schemas.project import ProjectCreate, ProjectOut, MoveDepartmentRequest
from tracker.schemas.workflow import (
    AllowedDepartmentsOut,
    DepartmentHistoryOut,
    WorkflowValidationOut,
)
from tracker.models.user import User
from tracker.core.security import get_current_user, require_mover, require_workflow_admin
from tracker.services.project_service import ProjectService
from tracker.services.transition_coordinator import TransitionCoordinator
from tracker.services.workflow_service import WorkflowService


router = APIRouter()


@router.post("/", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_workflow_admin),
):
    return ProjectService.create_project(
        db,
        name=payload.name,
        actor_id=current_user.id,
        client_name=payload.client_name,
        description=payload.description,
        category_id=payload.category_id,
        estimated_days=payload.estimated_days,
    )


@router.get("/", response_model=List[ProjectOut])
def list_projects(
    category_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService.list_projects(db, category_id=category_id, skip=skip, limit=limit)


@router.get("/{project_id}", response_model=ProjectOut)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService.get_project(db, project_id)


@router.post("/{project_id}/move", response_model=ProjectOut)
def move_to_department(
    project_id: int,
    payload: MoveDepartmentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_mover),
):
    """
    Move a project to another department.
    Only admins, project managers and coordinators can move projects.
    """
    return TransitionCoordinator(db).move_to_department(
        project_id,
        payload.to_department,
        actor_id=current_user.id,
        notes=payload.notes,
        estimated_days=payload.estimated_days,
    )


@router.get("/{project_id}/history", response_model=List[DepartmentHistoryOut])
def get_history(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return WorkflowService(db).get_history(project_id)


@router.get("/{project_id}/allowed-departments", response_model=AllowedDepartmentsOut)
def get_allowed_departments(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = ProjectService.get_project(db, project_id)
    return {
        "project_id": project.id,
        "current_department": project.current_department,
        "allowed_next": WorkflowService(db).get_allowed_next_departments(project_id),
    }


@router.get("/{project_id}/workflow-validation", response_model=WorkflowValidationOut)
def get_workflow_validation(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return WorkflowService(db).get_workflow_validation_status(project_id)
