"""
Task API routes.

Creating and transferring tasks requires ASSIGN_TASKS; any signed-in user
may change a task's status.
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import Field

from sheriff.api.deps import Audit, CanAssignTasks, CurrentUser, Store
from sheriff.exceptions import NotFoundError
from sheriff.models import AuditEntity, Task, TaskStatus
from sheriff.models.base import RecordModel

router = APIRouter()

TASK_NOT_FOUND = "Aufgabe nicht gefunden"


class TaskCreate(RecordModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    assigned_to: str = Field(..., min_length=1)
    status: TaskStatus = TaskStatus.OPEN


class TaskStatusUpdate(RecordModel):
    status: TaskStatus


class TaskTransfer(RecordModel):
    assigned_to: str = Field(..., min_length=1)


@router.get("")
async def list_tasks(identity: CurrentUser, store: Store) -> list[Task]:
    return store.list_tasks()


@router.post("")
async def create_task(
    body: TaskCreate,
    identity: CanAssignTasks,
    store: Store,
    audit: Audit,
) -> Task:
    task = store.create_task(
        title=body.title,
        description=body.description,
        assigned_to=body.assigned_to,
        assigned_by=identity.username,
        status=body.status,
    )
    audit.record(
        "Aufgabe erstellt",
        AuditEntity.TASK,
        task.id,
        f'Aufgabe "{task.title}" wurde an {task.assigned_to} vergeben',
        identity.username,
    )
    return task


@router.patch("/{task_id}/status")
async def update_task_status(
    task_id: str,
    body: TaskStatusUpdate,
    identity: CurrentUser,
    store: Store,
    audit: Audit,
) -> Task:
    with store.lock:
        before = store.get_task(task_id)
        if before is None:
            raise NotFoundError(TASK_NOT_FOUND)
        task = store.update_task_status(task_id, body.status)

    audit.record(
        "Aufgabenstatus geändert",
        AuditEntity.TASK,
        task.id,
        f'Aufgabe "{task.title}" Status: {before.status.value} → {task.status.value}',
        identity.username,
    )
    return task


@router.patch("/{task_id}/transfer")
async def transfer_task(
    task_id: str,
    body: TaskTransfer,
    identity: CanAssignTasks,
    store: Store,
    audit: Audit,
) -> Task:
    """Reassign a task. Only assignedTo changes."""
    with store.lock:
        before = store.get_task(task_id)
        if before is None:
            raise NotFoundError(TASK_NOT_FOUND)
        task = store.transfer_task(task_id, body.assigned_to)

    audit.record(
        "Aufgabe übertragen",
        AuditEntity.TASK,
        task.id,
        f'Aufgabe "{task.title}" von {before.assigned_to} an {task.assigned_to} übertragen',
        identity.username,
    )
    return task
