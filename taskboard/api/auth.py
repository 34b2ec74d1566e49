"""Authentication API routes: registration, login and the current user."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from ..core import ClientIPDep, CurrentIdentityDep, SessionDep
from ..schemas import (
    ApiResponse,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from ..services import RegisterInput, UserService

router = APIRouter(prefix="/auth", tags=["authentication"])


def get_user_service(session: SessionDep, ip_address: ClientIPDep) -> UserService:
    return UserService(session, ip_address)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.post(
    "/register",
    response_model=ApiResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(request: RegisterRequest, service: UserServiceDep):
    """Register a user. The first user of a new organization becomes its admin."""
    result = await service.register(RegisterInput(
        name=request.name,
        email=request.email,
        password=request.password,
        org_name=request.org_name,
        org_slug=request.org_slug,
        role=request.role,
    ))
    return ApiResponse.ok(AuthResponse(
        token=result.token,
        user=UserResponse.model_validate(result.user),
    ))


@router.post("/login", response_model=ApiResponse[AuthResponse])
async def login(request: LoginRequest, service: UserServiceDep):
    """Login with email and password, optionally scoped to an organization slug."""
    result = await service.login(request.email, request.password, request.org_slug)
    return ApiResponse.ok(AuthResponse(
        token=result.token,
        user=UserResponse.model_validate(result.user),
    ))


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(identity: CurrentIdentityDep, service: UserServiceDep):
    user = await service.get(identity, identity.id)
    return ApiResponse.ok(UserResponse.model_validate(user))
