"""
Task API routes.

All routes live under ``/orgs/{org_id}/tasks``. The organization in the
path is checked against the caller's own before any data is touched;
lookups are additionally scoped to the caller's organization by the
service, so a foreign task id behaves like a missing one.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from ..core import ClientIPDep, Identity, SessionDep, require_permission
from ..models import TaskPriority, TaskStatus
from ..schemas import (
    ActivityResponse,
    ApiResponse,
    CommentCreate,
    MessageResponse,
    TaskAssign,
    TaskCreate,
    TaskFromTemplate,
    TaskResponse,
    TaskUpdate,
    page_meta,
)
from ..services import TaskCreateInput, TaskFilters, TaskService

router = APIRouter(prefix="/orgs/{org_id}/tasks", tags=["tasks"])


def get_task_service(session: SessionDep, ip_address: ClientIPDep) -> TaskService:
    return TaskService(session, ip_address)


TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]

ReaderDep = Annotated[Identity, Depends(require_permission("task.read.own"))]
CreatorDep = Annotated[Identity, Depends(require_permission("task.create"))]
UpdaterDep = Annotated[Identity, Depends(require_permission("task.update.own"))]
DeleterDep = Annotated[Identity, Depends(require_permission("task.delete.own"))]
AssignerDep = Annotated[Identity, Depends(require_permission("task.assign"))]


# =============================================================================
# TASKS
# =============================================================================


@router.get("", response_model=ApiResponse[list[TaskResponse]])
async def list_tasks(
    org_id: UUID,
    identity: ReaderDep,
    service: TaskServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    status_filter: TaskStatus | None = Query(None, alias="status"),
    priority: TaskPriority | None = None,
    assignee_id: UUID | None = Query(None, alias="assigneeId"),
    search: str | None = None,
):
    """List tasks. Members only see tasks they created or are assigned to."""
    tasks, total = await service.list(
        identity,
        TaskFilters(
            status=status_filter,
            priority=priority,
            assignee_id=assignee_id,
            search=search,
        ),
        page=page,
        limit=limit,
    )
    return ApiResponse.ok(
        [TaskResponse.model_validate(t) for t in tasks],
        meta=page_meta(page, limit, total),
    )


@router.post(
    "",
    response_model=ApiResponse[TaskResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    org_id: UUID,
    request: TaskCreate,
    identity: CreatorDep,
    service: TaskServiceDep,
):
    task = await service.create(identity, TaskCreateInput(
        title=request.title,
        description=request.description,
        status=request.status,
        priority=request.priority,
        assignee_id=request.assignee_id,
        tags=request.tags,
        due_date=request.due_date,
        is_recurring=request.is_recurring,
        recurring_frequency=request.recurring_frequency,
    ))
    return ApiResponse.ok(TaskResponse.model_validate(task))


@router.post(
    "/from-template",
    response_model=ApiResponse[TaskResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_task_from_template(
    org_id: UUID,
    request: TaskFromTemplate,
    identity: CreatorDep,
    service: TaskServiceDep,
):
    task = await service.create_from_template(identity, request.template_id)
    return ApiResponse.ok(TaskResponse.model_validate(task))


@router.get("/{task_id}", response_model=ApiResponse[TaskResponse])
async def get_task(
    org_id: UUID,
    task_id: UUID,
    identity: ReaderDep,
    service: TaskServiceDep,
):
    task = await service.get(identity, task_id)
    return ApiResponse.ok(TaskResponse.model_validate(task))


@router.put("/{task_id}", response_model=ApiResponse[TaskResponse])
async def update_task(
    org_id: UUID,
    task_id: UUID,
    request: TaskUpdate,
    identity: UpdaterDep,
    service: TaskServiceDep,
):
    """Partial update: only fields present in the body are applied."""
    task = await service.update(
        identity, task_id, request.model_dump(exclude_unset=True)
    )
    return ApiResponse.ok(TaskResponse.model_validate(task))


@router.delete("/{task_id}", response_model=ApiResponse[MessageResponse])
async def delete_task(
    org_id: UUID,
    task_id: UUID,
    identity: DeleterDep,
    service: TaskServiceDep,
):
    await service.delete(identity, task_id)
    return ApiResponse.ok(MessageResponse(message="Task deleted"))


@router.put("/{task_id}/assign", response_model=ApiResponse[TaskResponse])
async def assign_task(
    org_id: UUID,
    task_id: UUID,
    request: TaskAssign,
    identity: AssignerDep,
    service: TaskServiceDep,
):
    task = await service.assign(identity, task_id, request.assignee_id)
    return ApiResponse.ok(TaskResponse.model_validate(task))


# =============================================================================
# ACTIVITY & COMMENTS
# =============================================================================


@router.get("/{task_id}/activity", response_model=ApiResponse[list[ActivityResponse]])
async def list_task_activity(
    org_id: UUID,
    task_id: UUID,
    identity: ReaderDep,
    service: TaskServiceDep,
    limit: int = Query(50, ge=1, le=200),
):
    """Activity feed for a task, newest first."""
    items = await service.list_activity(identity, task_id, limit=limit)
    return ApiResponse.ok([ActivityResponse.model_validate(a) for a in items])


@router.get("/{task_id}/comments", response_model=ApiResponse[list[ActivityResponse]])
async def list_task_comments(
    org_id: UUID,
    task_id: UUID,
    identity: ReaderDep,
    service: TaskServiceDep,
):
    items = await service.list_comments(identity, task_id)
    return ApiResponse.ok([ActivityResponse.model_validate(a) for a in items])


@router.post(
    "/{task_id}/comments",
    response_model=ApiResponse[ActivityResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_task_comment(
    org_id: UUID,
    task_id: UUID,
    request: CommentCreate,
    identity: ReaderDep,
    service: TaskServiceDep,
):
    """Comment on a task. ``@email`` mentions of organization members are notified."""
    activity = await service.add_comment(identity, task_id, request.body)
    return ApiResponse.ok(ActivityResponse.model_validate(activity))
