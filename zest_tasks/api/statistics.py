"""
Statistics API - task breakdowns and completion trends
"""
from collections import Counter
from datetime import timedelta
from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from zest_tasks.database import get_db
from zest_tasks.models.task import Task, TaskPriority, TaskStatus
from zest_tasks.models.user import User
from zest_tasks.models.workflow import Workflow
from zest_tasks.api.auth import get_current_user
from zest_tasks.utils.helpers import get_period_start, start_of_day, utcnow

router = APIRouter()

UNASSIGNED = "Unassigned"
TREND_DAYS = 7


async def _breakdown(db: AsyncSession, user: User, column, enum_cls) -> dict:
    result = await db.execute(
        select(column, func.count(Task.id))
        .where(Task.user_id == user.id)
        .group_by(column)
    )
    counts = {member.value: 0 for member in enum_cls}
    for key, count in result.all():
        counts[key.value] = count
    return counts


@router.get("/")
async def get_statistics(
    period: Literal["week", "month", "year"] = "week",
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Task counts by priority/status/workflow and completion metrics for a period"""
    now = utcnow()
    period_start = get_period_start(period, now)

    by_priority = await _breakdown(db, current_user, Task.priority, TaskPriority)
    by_status = await _breakdown(db, current_user, Task.status, TaskStatus)

    workflow_result = await db.execute(
        select(Workflow.name, func.count(Task.id))
        .select_from(Task)
        .outerjoin(Workflow, Task.workflow_id == Workflow.id)
        .where(Task.user_id == current_user.id)
        .group_by(Workflow.name)
        .order_by(Workflow.name)
    )
    by_workflow = {(name or UNASSIGNED): count for name, count in workflow_result.all()}

    completed_result = await db.execute(
        select(Task.created_at, Task.completed_at).where(
            Task.user_id == current_user.id,
            Task.status == TaskStatus.COMPLETED,
            Task.completed_at >= period_start,
        )
    )
    completed_rows = completed_result.all()

    durations = [
        (completed_at - created_at).total_seconds() / 86400
        for created_at, completed_at in completed_rows
        if created_at and completed_at
    ]
    average_days = round(sum(durations) / len(durations), 1) if durations else None

    # Completed per day for the trailing week, oldest first
    first_day = start_of_day(now) - timedelta(days=TREND_DAYS - 1)
    per_day = Counter(
        completed_at.date() for _, completed_at in completed_rows
        if completed_at >= first_day
    )
    trend = []
    for offset in range(TREND_DAYS):
        day = (first_day + timedelta(days=offset)).date()
        trend.append({"day": day.strftime("%a"), "date": day.isoformat(), "completed": per_day.get(day, 0)})

    return {
        "period": period,
        "by_priority": by_priority,
        "by_status": by_status,
        "by_workflow": by_workflow,
        "completed_in_period": len(completed_rows),
        "average_completion_days": average_days,
        "completion_trend": trend,
    }
