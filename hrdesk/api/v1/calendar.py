"""Task calendar endpoints"""
import calendar
from collections import defaultdict
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from hrdesk.database import get_db
from hrdesk.dependencies import get_current_employee
from hrdesk.models import Employee, Task
from hrdesk.schemas import CalendarDay, CalendarMonth, TaskResponse
from hrdesk.services.tasks import serialize_tasks

router = APIRouter()

# Weeks start on Sunday.
_month_grid = calendar.Calendar(firstweekday=calendar.SUNDAY)

# A month grid reaches into the adjacent years; both must be representable dates.
MIN_YEAR = 2
MAX_YEAR = 9998


def build_month(db: Session, year: int, month: int, assignee: int = None) -> CalendarMonth:
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Year must be between {MIN_YEAR} and {MAX_YEAR}"
        )
    if not 1 <= month <= 12:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Month must be between 1 and 12")

    weeks = _month_grid.monthdatescalendar(year, month)
    first, last = weeks[0][0], weeks[-1][-1]

    query = db.query(Task).filter(Task.due_date >= first, Task.due_date <= last)
    if assignee is not None:
        query = query.filter(Task.assignee == assignee)
    tasks = query.order_by(Task.due_date.asc(), Task.id.asc()).all()

    by_day = defaultdict(list)
    for task in serialize_tasks(db, tasks):
        by_day[task.due_date].append(task)

    return CalendarMonth(
        year=year,
        month=month,
        weeks=[
            [CalendarDay(day=day, in_month=day.month == month, tasks=by_day.get(day, [])) for day in week]
            for week in weeks
        ],
    )


@router.get("/{year}/{month}", response_model=CalendarMonth)
def get_month(
    year: int = Path(..., ge=MIN_YEAR, le=MAX_YEAR),
    month: int = Path(..., ge=1, le=12),
    mine: bool = Query(False, description="Only tasks assigned to the current user"),
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    return build_month(db, year, month, assignee=current_employee.id if mine else None)


@router.get("/day/{day}", response_model=List[TaskResponse])
def get_day(
    day: date,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    tasks = db.query(Task).filter(Task.due_date == day).order_by(Task.id.asc()).all()
    return serialize_tasks(db, tasks)
