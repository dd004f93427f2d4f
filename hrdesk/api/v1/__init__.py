"""Version 1 of the HR Desk API"""
from fastapi import APIRouter

from hrdesk.api.v1 import (
    access,
    activity,
    attachments,
    auth,
    calendar,
    comments,
    documents,
    employees,
    notifications,
    realtime,
    settings,
    storage,
    tasks,
)

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(comments.router, prefix="/comments", tags=["comments"])
api_router.include_router(attachments.router, prefix="/attachments", tags=["attachments"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(activity.router, prefix="/activity", tags=["activity"])
api_router.include_router(access.router, prefix="/access", tags=["access"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
api_router.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
api_router.include_router(storage.router, prefix="/storage", tags=["storage"])
api_router.include_router(realtime.router, prefix="/realtime", tags=["realtime"])
