"""
Workflow API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from zest_tasks.database import get_db
from zest_tasks.models.user import User
from zest_tasks.api.auth import get_current_user
from zest_tasks.services import workflow_service
from zest_tasks.services.workflow_service import WorkflowCreate, WorkflowRecord, WorkflowUpdate

router = APIRouter()


@router.get("/", response_model=List[WorkflowRecord])
async def list_workflows(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List workflows with task counts and completion percentage"""
    return await workflow_service.list_workflows(db, current_user)


@router.post("/", response_model=WorkflowRecord)
async def create_workflow(
    data: WorkflowCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await workflow_service.create_workflow(db, current_user, data)


@router.get("/{workflow_id}", response_model=WorkflowRecord)
async def get_workflow(
    workflow_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await workflow_service.get_workflow(db, current_user, workflow_id)


@router.put("/{workflow_id}", response_model=WorkflowRecord)
async def update_workflow(
    workflow_id: str,
    data: WorkflowUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await workflow_service.update_workflow(db, current_user, workflow_id, data)


@router.delete("/{workflow_id}")
async def delete_workflow(
    workflow_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a workflow. Its tasks are kept and become unassigned."""
    await workflow_service.delete_workflow(db, current_user, workflow_id)
    return {"message": "Workflow deleted"}
