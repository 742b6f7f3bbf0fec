"""
Task API endpoints - CRUD, status toggles and filtered listing
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Literal, Optional

from zest_tasks.database import get_db
from zest_tasks.models.task import TaskPriority, TaskStatus
from zest_tasks.models.user import User
from zest_tasks.api.auth import get_current_user
from zest_tasks.services import task_service
from zest_tasks.services.task_service import (
    StatusUpdate,
    TaskCreate,
    TaskFilters,
    TaskRecord,
    TaskUpdate,
)
from zest_tasks.utils.helpers import get_timezone

router = APIRouter()


def timezone_query(tz: Optional[str] = None) -> Optional[str]:
    """IANA zone for the today/week/month windows; UTC days when omitted"""
    try:
        get_timezone(tz)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return tz or None


@router.get("/", response_model=List[TaskRecord])
async def list_tasks(
    search: Optional[str] = None,
    priority: Optional[TaskPriority] = None,
    status: Optional[TaskStatus] = None,
    workflow: Optional[str] = None,
    window: Literal["all", "today", "week", "month", "upcoming"] = "all",
    tz: Optional[str] = Depends(timezone_query),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List tasks. window: 'all' (default) | 'today' | 'week' | 'month' | 'upcoming'"""
    filters = TaskFilters(
        search=search or None,
        priority=priority,
        status=status,
        workflow=workflow or None,
        window=window,
        tz=tz,
    )
    return await task_service.list_tasks(db, current_user, filters)


@router.post("/", response_model=TaskRecord)
async def create_task(
    data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await task_service.create_task(db, current_user, data)


@router.post("/sample")
async def add_sample_tasks(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Seed the everyday sample tasks for the current user"""
    count = await task_service.add_sample_tasks(db, current_user)
    return {"message": "Sample tasks added", "count": count}


@router.get("/{task_id}", response_model=TaskRecord)
async def get_task(
    task_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await task_service.get_task(db, current_user, task_id)


@router.put("/{task_id}", response_model=TaskRecord)
async def update_task(
    task_id: str,
    data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Partial update - omitted fields are left alone"""
    return await task_service.update_task(db, current_user, task_id, data)


@router.patch("/{task_id}/status", response_model=TaskRecord)
async def update_task_status(
    task_id: str,
    data: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await task_service.update_task_status(db, current_user, task_id, data.status)


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await task_service.delete_task(db, current_user, task_id)
    return {"message": "Task deleted"}
