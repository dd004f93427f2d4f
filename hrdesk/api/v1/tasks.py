"""Task endpoints"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from hrdesk.database import get_db
from hrdesk.dependencies import get_current_employee
from hrdesk.models import Employee, Task, TaskStatus
from hrdesk.schemas import TaskCreate, TaskResponse, TaskStats, TaskStatusUpdate, TaskUpdate
from hrdesk.services import tasks as task_service
from hrdesk.services.employees import is_admin
from hrdesk.services.storage import LocalObjectStorage, get_storage

router = APIRouter()


def _ensure_can_modify(task: Task, current_employee: Employee) -> None:
    if task.creator == current_employee.email or task.assignee == current_employee.id:
        return
    if is_admin(current_employee):
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this task")


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    search: Optional[str] = Query(None, description="Substring of the title or assignee name"),
    priority: Optional[str] = Query(None, description="low, medium, high or all"),
    status_filter: Optional[str] = Query(None, alias="status", description="pending, in-progress, completed or all"),
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    found = task_service.search_tasks(db, search=search, priority=priority, task_status=status_filter)
    return task_service.serialize_tasks(db, found)


@router.get("/mine", response_model=List[TaskResponse])
def list_my_tasks(
    include_completed: bool = Query(False, description="Include completed tasks"),
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    """Tasks assigned to the current user, soonest due first."""
    query = db.query(Task).filter(Task.assignee == current_employee.id)
    if not include_completed:
        query = query.filter(Task.status != TaskStatus.COMPLETED)
    return task_service.serialize_tasks(db, query.order_by(Task.due_date.asc(), Task.id.asc()).all())


@router.get("/stats", response_model=TaskStats)
def get_task_stats(
    mine: bool = Query(False, description="Only count tasks assigned to the current user"),
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    return task_service.task_stats(db, assignee=current_employee.id if mine else None)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    task = task_service.create_task(db, task_data, current_employee)
    return task_service.serialize_task(db, task)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    return task_service.serialize_task(db, task_service.get_task_or_404(db, task_id))


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    update_data: TaskUpdate,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    task = task_service.get_task_or_404(db, task_id)
    _ensure_can_modify(task, current_employee)
    task = task_service.update_task(db, task, update_data)
    return task_service.serialize_task(db, task)


@router.patch("/{task_id}/status", response_model=TaskResponse)
def update_task_status(
    task_id: int,
    status_data: TaskStatusUpdate,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    """Set the status, or advance it one step when no status is given."""
    task = task_service.get_task_or_404(db, task_id)
    _ensure_can_modify(task, current_employee)
    task = task_service.change_status(db, task, status_data.status, current_employee)
    return task_service.serialize_task(db, task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    task = task_service.get_task_or_404(db, task_id)
    if task.creator != current_employee.email and not is_admin(current_employee):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the creator or an administrator can delete this task",
        )
    task_service.delete_task(db, task, storage)
