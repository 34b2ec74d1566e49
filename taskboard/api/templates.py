"""Task template routes. Any member may read; writing needs ``template.manage``."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..core import ClientIPDep, Identity, SessionDep, require_permission
from ..schemas import (
    ApiResponse,
    MessageResponse,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
)
from ..services import TemplateService

router = APIRouter(prefix="/orgs/{org_id}/templates", tags=["templates"])


def get_template_service(session: SessionDep, ip_address: ClientIPDep) -> TemplateService:
    return TemplateService(session, ip_address)


TemplateServiceDep = Annotated[TemplateService, Depends(get_template_service)]
ReaderDep = Annotated[Identity, Depends(require_permission("task.read.own"))]
ManagerDep = Annotated[Identity, Depends(require_permission("template.manage"))]


@router.get("", response_model=ApiResponse[list[TemplateResponse]])
async def list_templates(org_id: UUID, identity: ReaderDep, service: TemplateServiceDep):
    templates = await service.list(identity)
    return ApiResponse.ok([TemplateResponse.model_validate(t) for t in templates])


@router.post(
    "",
    response_model=ApiResponse[TemplateResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_template(
    org_id: UUID,
    request: TemplateCreate,
    identity: ManagerDep,
    service: TemplateServiceDep,
):
    template = await service.create(
        identity,
        name=request.name,
        title=request.title,
        description=request.description,
        priority=request.priority,
        assignee_id=request.assignee_id,
    )
    return ApiResponse.ok(TemplateResponse.model_validate(template))


@router.get("/{template_id}", response_model=ApiResponse[TemplateResponse])
async def get_template(
    org_id: UUID,
    template_id: UUID,
    identity: ReaderDep,
    service: TemplateServiceDep,
):
    template = await service.get(identity, template_id)
    return ApiResponse.ok(TemplateResponse.model_validate(template))


@router.put("/{template_id}", response_model=ApiResponse[TemplateResponse])
async def update_template(
    org_id: UUID,
    template_id: UUID,
    request: TemplateUpdate,
    identity: ManagerDep,
    service: TemplateServiceDep,
):
    template = await service.update(
        identity, template_id, request.model_dump(exclude_unset=True)
    )
    return ApiResponse.ok(TemplateResponse.model_validate(template))


@router.delete("/{template_id}", response_model=ApiResponse[MessageResponse])
async def delete_template(
    org_id: UUID,
    template_id: UUID,
    identity: ManagerDep,
    service: TemplateServiceDep,
):
    await service.delete(identity, template_id)
    return ApiResponse.ok(MessageResponse(message="Template deleted"))
