"""
Task access layer - maps between the UI task shape and task rows
and issues the insert/update/delete/select calls.

Every call takes the session and the authenticated user explicitly and
only ever touches that user's rows. No retries and no concurrency
control: the last write wins.
"""
from datetime import datetime, timedelta
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from zest_tasks.models.task import Tag, Task, TaskPriority, TaskStatus
from zest_tasks.models.user import User
from zest_tasks.models.workflow import Workflow
from zest_tasks.services import workflow_service
from zest_tasks.services.errors import NotFoundError, store_call
from zest_tasks.utils.helpers import get_date_range, get_timezone, to_naive_utc, utcnow
from zest_tasks.utils.logger import get_logger
from zest_tasks.utils.validators import normalize_tags, validate_name

logger = get_logger(__name__)


# --- Pydantic Schemas (UI shape) ---

class TaskRecord(BaseModel):
    id: str
    title: str
    description: str = ""
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    priority: TaskPriority
    status: TaskStatus
    workflow: Optional[str] = None
    tags: List[str] = []

    class Config:
        populate_by_name = True


class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    workflow: Optional[str] = None
    tags: List[str] = []

    class Config:
        populate_by_name = True

    @field_validator("title")
    @classmethod
    def _strip_title(cls, v: str) -> str:
        return validate_name(v, "title")


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    workflow: Optional[str] = None
    tags: Optional[List[str]] = None

    class Config:
        populate_by_name = True

    @field_validator("title")
    @classmethod
    def _strip_title(cls, v: Optional[str]) -> Optional[str]:
        return validate_name(v, "title") if v is not None else v


class StatusUpdate(BaseModel):
    status: TaskStatus


class TaskFilters(BaseModel):
    search: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    workflow: Optional[str] = None
    window: Literal["all", "today", "week", "month", "upcoming"] = "all"
    tz: Optional[str] = None


# --- Mapping ---

def to_record(t: Task) -> TaskRecord:
    """Row -> UI shape"""
    return TaskRecord(
        id=t.id,
        title=t.title,
        description=t.description or "",
        due_date=t.due_date,
        priority=t.priority,
        status=t.status,
        workflow=t.workflow.name if t.workflow else None,
        tags=[tag.name for tag in (t.tags or [])],
    )


def _apply_status(task: Task, status: TaskStatus) -> None:
    """Set status and keep completed_at in step with it"""
    if status == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED:
        task.completed_at = utcnow()
    elif status != TaskStatus.COMPLETED:
        task.completed_at = None
    task.status = status


async def _resolve_tags(db: AsyncSession, names: List[str]) -> List[Tag]:
    """Fetch tags by name, creating any that don't exist yet"""
    names = normalize_tags(names)
    if not names:
        return []
    result = await db.execute(select(Tag).where(Tag.name.in_(names)))
    existing = {tag.name: tag for tag in result.scalars().all()}
    tags = []
    for name in names:
        tag = existing.get(name)
        if tag is None:
            tag = Tag(name=name)
            db.add(tag)
        tags.append(tag)
    return tags


async def _resolve_workflow(db: AsyncSession, user: User, name: Optional[str]) -> Optional[Workflow]:
    if not name:
        return None
    return await workflow_service.find_by_name(db, user, name)


def _base_query(user: User):
    return (
        select(Task)
        .options(selectinload(Task.workflow), selectinload(Task.tags))
        .where(Task.user_id == user.id)
        .execution_options(populate_existing=True)
    )


async def _load(db: AsyncSession, user: User, task_id: str) -> Task:
    result = await db.execute(_base_query(user).where(Task.id == task_id))
    task = result.scalar_one_or_none()
    if task is None:
        raise NotFoundError("Task not found")
    return task


# --- Operations ---

async def create_task(db: AsyncSession, user: User, data: TaskCreate) -> TaskRecord:
    """Insert a task and return it with its store-assigned id"""
    with store_call(logger, "creating task"):
        workflow = await _resolve_workflow(db, user, data.workflow)
        task = Task(
            user_id=user.id,
            title=data.title,
            description=data.description,
            due_date=to_naive_utc(data.due_date),
            priority=data.priority,
            status=TaskStatus.PENDING,
            workflow=workflow,
            tags=await _resolve_tags(db, data.tags),
        )
        _apply_status(task, data.status)
        db.add(task)
        await db.commit()
    logger.info(f"Created task {task.id} for user {user.id}")
    return to_record(task)


async def get_task(db: AsyncSession, user: User, task_id: str) -> TaskRecord:
    with store_call(logger, "fetching task"):
        task = await _load(db, user, task_id)
    return to_record(task)


async def update_task_status(db: AsyncSession, user: User, task_id: str, status: TaskStatus) -> TaskRecord:
    """Single-column status update"""
    with store_call(logger, "updating task status"):
        task = await _load(db, user, task_id)
        _apply_status(task, status)
        await db.commit()
    return to_record(task)


async def update_task(db: AsyncSession, user: User, task_id: str, data: TaskUpdate) -> TaskRecord:
    """Partial update: only fields present in the payload change.

    An explicit ``workflow: null`` detaches the task; ``tags`` replaces the
    whole tag set.
    """
    updates = data.model_dump(exclude_unset=True)
    with store_call(logger, "updating task"):
        task = await _load(db, user, task_id)

        if "workflow" in updates:
            task.workflow = await _resolve_workflow(db, user, updates.pop("workflow"))
        if "tags" in updates:
            task.tags = await _resolve_tags(db, updates.pop("tags") or [])
        if "status" in updates:
            status = updates.pop("status")
            if status is not None:
                _apply_status(task, status)
        if "due_date" in updates:
            task.due_date = to_naive_utc(updates.pop("due_date"))

        for key in ("title", "priority"):
            if updates.get(key) is None:
                updates.pop(key, None)
        for key, value in updates.items():
            setattr(task, key, value)

        task.updated_at = utcnow()
        await db.commit()
    return to_record(task)


async def delete_task(db: AsyncSession, user: User, task_id: str) -> None:
    with store_call(logger, "deleting task"):
        task = await _load(db, user, task_id)
        await db.delete(task)
        await db.commit()
    logger.info(f"Deleted task {task_id}")


async def list_tasks(
    db: AsyncSession, user: User, filters: Optional[TaskFilters] = None
) -> List[TaskRecord]:
    """Select the user's tasks joined to their workflow name and tags"""
    filters = filters or TaskFilters()
    query = _base_query(user)

    if filters.priority:
        query = query.where(Task.priority == filters.priority)
    if filters.status:
        query = query.where(Task.status == filters.status)
    if filters.workflow:
        query = query.join(Workflow, Task.workflow_id == Workflow.id).where(
            Workflow.name == filters.workflow
        )

    bounds = get_date_range(filters.window, tz=get_timezone(filters.tz))
    if bounds:
        start, end = bounds
        query = query.where(Task.due_date >= start, Task.due_date <= end)

    if filters.search:
        term = filters.search.lower()
        query = query.where(
            or_(
                func.lower(Task.title).contains(term, autoescape=True),
                func.lower(Task.description).contains(term, autoescape=True),
                Task.tags.any(func.lower(Tag.name).contains(term, autoescape=True)),
            )
        )

    query = query.order_by(Task.due_date.asc().nullslast(), Task.created_at)

    with store_call(logger, "fetching tasks"):
        result = await db.execute(query)
        tasks = result.scalars().all()
    return [to_record(t) for t in tasks]


SAMPLE_TASKS = [
    # (title, description, priority, due in days)
    ("Prepare for Math Test", "Review algebra, calculus and statistics. Complete practice questions.", TaskPriority.HIGH, 3),
    ("Get Groceries", "Milk, eggs, bread, vegetables, fruits, and snacks for the week.", TaskPriority.MEDIUM, 1),
    ("Hit the Gym", "Leg day - 30 min cardio, squats, lunges, and leg press.", TaskPriority.MEDIUM, 1),
    ("Read Research Papers", "Complete reading the assigned papers for the literature review.", TaskPriority.HIGH, 5),
    ("Clean Apartment", "Vacuum, dust, laundry, and organize desk.", TaskPriority.LOW, 2),
    ("Pay Bills", "Rent, utilities, phone, and internet bills.", TaskPriority.HIGH, 7),
    ("Call Parents", "Weekly catch-up call with family.", TaskPriority.MEDIUM, 2),
    ("Finish Project Report", "Complete the final draft and send for review.", TaskPriority.HIGH, 4),
    ("Meal Prep", "Prepare lunches and dinners for the workweek.", TaskPriority.MEDIUM, 1),
    ("Submit Assignment", "Final check and submit the assignment online.", TaskPriority.HIGH, 2),
    ("Morning Meditation", "Practice 15 minutes of mindfulness meditation.", TaskPriority.LOW, 1),
    ("Update Resume", "Add recent projects and update skills section.", TaskPriority.MEDIUM, 5),
]


async def add_sample_tasks(db: AsyncSession, user: User) -> int:
    """Bulk-insert the everyday sample tasks for a user"""
    now = utcnow()
    with store_call(logger, "adding sample tasks"):
        db.add_all([
            Task(
                user_id=user.id,
                title=title,
                description=description,
                priority=priority,
                status=TaskStatus.PENDING,
                due_date=now + timedelta(days=days),
            )
            for title, description, priority, days in SAMPLE_TASKS
        ])
        await db.commit()
    logger.info(f"Added {len(SAMPLE_TASKS)} sample tasks for user {user.id}")
    return len(SAMPLE_TASKS)
