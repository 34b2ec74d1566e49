"""Organization user management. Requires the ``user.manage`` permission."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from ..core import ClientIPDep, Identity, SessionDep, require_permission
from ..schemas import (
    ApiResponse,
    MessageResponse,
    RoleUpdate,
    UserCreate,
    UserResponse,
    page_meta,
)
from ..services import UserService

router = APIRouter(prefix="/orgs/{org_id}/users", tags=["users"])


def get_user_service(session: SessionDep, ip_address: ClientIPDep) -> UserService:
    return UserService(session, ip_address)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
AdminDep = Annotated[Identity, Depends(require_permission("user.manage"))]


@router.get("", response_model=ApiResponse[list[UserResponse]])
async def list_users(
    org_id: UUID,
    identity: AdminDep,
    service: UserServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
):
    users, total = await service.list(identity, page=page, limit=limit)
    return ApiResponse.ok(
        [UserResponse.model_validate(u) for u in users],
        meta=page_meta(page, limit, total),
    )


@router.post(
    "",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    org_id: UUID,
    request: UserCreate,
    identity: AdminDep,
    service: UserServiceDep,
):
    user = await service.create(
        identity,
        name=request.name,
        email=request.email,
        password=request.password,
        role=request.role,
    )
    return ApiResponse.ok(UserResponse.model_validate(user))


@router.put("/{user_id}/role", response_model=ApiResponse[UserResponse])
async def update_user_role(
    org_id: UUID,
    user_id: UUID,
    request: RoleUpdate,
    identity: AdminDep,
    service: UserServiceDep,
):
    user = await service.update_role(identity, user_id, request.role)
    return ApiResponse.ok(UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=ApiResponse[MessageResponse])
async def delete_user(
    org_id: UUID,
    user_id: UUID,
    identity: AdminDep,
    service: UserServiceDep,
):
    await service.delete(identity, user_id)
    return ApiResponse.ok(MessageResponse(message="User deleted"))
