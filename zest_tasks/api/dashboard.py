"""
Dashboard API - headline task metrics plus today's and upcoming tasks
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from zest_tasks.database import get_db
from zest_tasks.models.task import Task, TaskPriority, TaskStatus
from zest_tasks.models.user import User
from zest_tasks.api.auth import get_current_user
from zest_tasks.api.tasks import timezone_query
from zest_tasks.services import task_service
from zest_tasks.services.task_service import TaskFilters
from zest_tasks.utils.helpers import completion_rate, get_date_range, get_timezone

router = APIRouter()


async def _count(db: AsyncSession, user: User, *conditions) -> int:
    result = await db.execute(
        select(func.count(Task.id)).where(Task.user_id == user.id, *conditions)
    )
    return result.scalar() or 0


@router.get("/")
async def get_dashboard(
    tz: Optional[str] = Depends(timezone_query),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get dashboard data for the current user"""
    day_start, day_end = get_date_range("today", tz=get_timezone(tz))

    total = await _count(db, current_user)
    completed = await _count(db, current_user, Task.status == TaskStatus.COMPLETED)
    todays = await _count(db, current_user, Task.due_date >= day_start, Task.due_date <= day_end)
    high_priority = await _count(db, current_user, Task.priority == TaskPriority.HIGH)

    today_tasks = await task_service.list_tasks(db, current_user, TaskFilters(window="today", tz=tz))
    upcoming_tasks = await task_service.list_tasks(db, current_user, TaskFilters(window="upcoming", tz=tz))

    return {
        "total_tasks": total,
        "completed_tasks": completed,
        "completion_rate": completion_rate(completed, total),
        "todays_tasks": todays,
        "high_priority_tasks": high_priority,
        "today": [t.model_dump(by_alias=True, mode="json") for t in today_tasks],
        "upcoming": [t.model_dump(by_alias=True, mode="json") for t in upcoming_tasks],
    }
