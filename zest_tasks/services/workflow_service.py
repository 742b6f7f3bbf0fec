"""
Workflow access layer - CRUD plus derived completion metrics
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from zest_tasks.models.task import TaskStatus
from zest_tasks.models.user import User
from zest_tasks.models.workflow import Workflow
from zest_tasks.services.errors import ConflictError, NotFoundError, store_call
from zest_tasks.utils.helpers import completion_percentage
from zest_tasks.utils.logger import get_logger
from zest_tasks.utils.validators import validate_name

logger = get_logger(__name__)


# --- Pydantic Schemas ---

class WorkflowCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        return validate_name(v)


class WorkflowUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: Optional[str]) -> Optional[str]:
        return validate_name(v) if v is not None else v


class WorkflowRecord(BaseModel):
    id: str
    name: str
    description: Optional[str]
    task_count: int = 0
    completed_count: int = 0
    completion_percentage: int = 0
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


def to_record(w: Workflow) -> WorkflowRecord:
    tasks = list(w.tasks) if w.tasks else []
    done = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    return WorkflowRecord(
        id=w.id,
        name=w.name,
        description=w.description,
        task_count=len(tasks),
        completed_count=done,
        completion_percentage=completion_percentage(done, len(tasks)),
        created_at=w.created_at,
        updated_at=w.updated_at,
    )


# --- Lookups shared with the task layer ---

async def find_by_name(db: AsyncSession, user: User, name: str) -> Workflow:
    """Resolve one of the user's workflows by name"""
    result = await db.execute(
        select(Workflow).where(Workflow.user_id == user.id, Workflow.name == name)
    )
    workflow = result.scalar_one_or_none()
    if workflow is None:
        raise NotFoundError(f"Workflow '{name}' not found")
    return workflow


async def _load(db: AsyncSession, user: User, workflow_id: str) -> Workflow:
    result = await db.execute(
        select(Workflow)
        .options(selectinload(Workflow.tasks))
        .where(Workflow.id == workflow_id, Workflow.user_id == user.id)
        .execution_options(populate_existing=True)
    )
    workflow = result.scalar_one_or_none()
    if workflow is None:
        raise NotFoundError("Workflow not found")
    return workflow


async def _ensure_unique_name(db: AsyncSession, user: User, name: str, exclude_id: Optional[str] = None):
    query = select(Workflow.id).where(Workflow.user_id == user.id, Workflow.name == name)
    if exclude_id:
        query = query.where(Workflow.id != exclude_id)
    result = await db.execute(query)
    if result.first():
        raise ConflictError(f"Workflow '{name}' already exists")


# --- Operations ---

async def list_workflows(db: AsyncSession, user: User) -> List[WorkflowRecord]:
    with store_call(logger, "fetching workflows"):
        result = await db.execute(
            select(Workflow)
            .options(selectinload(Workflow.tasks))
            .where(Workflow.user_id == user.id)
            .order_by(Workflow.name)
            .execution_options(populate_existing=True)
        )
        workflows = result.scalars().all()
    return [to_record(w) for w in workflows]


async def get_workflow(db: AsyncSession, user: User, workflow_id: str) -> WorkflowRecord:
    with store_call(logger, "fetching workflow"):
        workflow = await _load(db, user, workflow_id)
    return to_record(workflow)


async def create_workflow(db: AsyncSession, user: User, data: WorkflowCreate) -> WorkflowRecord:
    with store_call(logger, "creating workflow"):
        await _ensure_unique_name(db, user, data.name)
        workflow = Workflow(
            name=data.name,
            description=data.description,
            user_id=user.id,
            tasks=[],
        )
        db.add(workflow)
        await db.commit()
    logger.info(f"Created workflow {workflow.id} for user {user.id}")
    return to_record(workflow)


async def update_workflow(
    db: AsyncSession, user: User, workflow_id: str, data: WorkflowUpdate
) -> WorkflowRecord:
    with store_call(logger, "updating workflow"):
        workflow = await _load(db, user, workflow_id)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("name") is None:
            updates.pop("name", None)
        if "name" in updates:
            await _ensure_unique_name(db, user, updates["name"], exclude_id=workflow.id)

        for key, value in updates.items():
            setattr(workflow, key, value)
        workflow.updated_at = datetime.utcnow()
        await db.commit()
    return to_record(workflow)


async def delete_workflow(db: AsyncSession, user: User, workflow_id: str) -> None:
    """Delete a workflow; its tasks survive with no workflow"""
    with store_call(logger, "deleting workflow"):
        workflow = await _load(db, user, workflow_id)
        for task in list(workflow.tasks):
            task.workflow = None
        await db.delete(workflow)
        await db.commit()
    logger.info(f"Deleted workflow {workflow_id}")
