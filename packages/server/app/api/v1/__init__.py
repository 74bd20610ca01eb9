"""
API v1 Router

Mounted at /api. Task and submission routes are nested under their project.
"""

from fastapi import APIRouter
from . import notifications, projects, requests, submissions, tasks, users

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(requests.router, prefix="/requests", tags=["Requests"])
router.include_router(tasks.router, prefix="/projects/{project_id}/tasks", tags=["Tasks"])
router.include_router(
    submissions.router,
    prefix="/projects/{project_id}/tasks/{task_id}/submissions",
    tags=["Submissions"],
)
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
