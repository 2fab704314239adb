from fastapi import APIRouter
from . import projects, workflow, categories


router = APIRouter()
router.include_router(projects.router, prefix="/projects", tags=["projects"])
router.include_router(workflow.router, prefix="/workflow", tags=["workflow"])
router.include_router(categories.router, prefix="/categories", tags=["categories"])
