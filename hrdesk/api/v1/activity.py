"""Recent activity endpoints"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hrdesk.database import get_db
from hrdesk.dependencies import get_current_employee
from hrdesk.models import Employee
from hrdesk.schemas import ActivityItem, ActivityPage
from hrdesk.services.activity import activity_page, display_limit_for_viewport, recent_activity

router = APIRouter()


@router.get("/recent", response_model=List[ActivityItem])
def get_recent_activity(
    limit: Optional[int] = Query(None, ge=1, le=100, description="Number of items"),
    viewport_height: Optional[int] = Query(None, ge=0, description="Client viewport height in pixels"),
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    """Newest activity across tasks, comments and notifications.

    An explicit ``limit`` wins; otherwise the viewport height picks it.
    """
    return recent_activity(db, limit or display_limit_for_viewport(viewport_height))


@router.get("", response_model=ActivityPage)
def list_activity(
    page: int = Query(1, ge=1),
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    return activity_page(db, page)
