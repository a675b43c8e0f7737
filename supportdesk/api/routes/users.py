from __future__ import annotations

from fastapi import APIRouter, status

from supportdesk.api.schemas import (
    CascadeResponse,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)
from supportdesk.dependencies.auth import CurrentActor
from supportdesk.dependencies.services import UserServiceDep
from supportdesk.models import User

router = APIRouter(prefix="/users", tags=["users"])


def _to_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


@router.get("", response_model=list[UserResponse])
async def list_users(service: UserServiceDep, actor: CurrentActor) -> list[UserResponse]:
    return [_to_response(user) for user in await service.list_users(actor)]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreateRequest, service: UserServiceDep, actor: CurrentActor) -> UserResponse:
    user = await service.create_user(
        actor,
        name=payload.name,
        email=str(payload.email),
        role=payload.role,
        organization_id=payload.organization_id,
        password=payload.password,
    )
    return _to_response(user)


@router.get("/me", response_model=UserResponse)
async def get_me(service: UserServiceDep, actor: CurrentActor) -> UserResponse:
    return _to_response(await service.me(actor))


@router.put("/me", response_model=UserResponse)
async def update_me(payload: ProfileUpdateRequest, service: UserServiceDep, actor: CurrentActor) -> UserResponse:
    user = await service.update_my_profile(actor, name=payload.name, phone=payload.phone)
    return _to_response(user)


@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(payload: PasswordChangeRequest, service: UserServiceDep, actor: CurrentActor) -> None:
    await service.change_password(
        actor,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, service: UserServiceDep, actor: CurrentActor) -> UserResponse:
    return _to_response(await service.get_user(actor, user_id))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    service: UserServiceDep,
    actor: CurrentActor,
) -> UserResponse:
    user = await service.update_user(
        actor,
        user_id,
        name=payload.name,
        email=str(payload.email) if payload.email is not None else None,
        role=payload.role,
        organization_id=payload.organization_id,
    )
    return _to_response(user)


@router.delete("/{user_id}", response_model=CascadeResponse)
async def delete_user(user_id: str, service: UserServiceDep, actor: CurrentActor) -> CascadeResponse:
    result = await service.delete_user_cascading_unassign(actor, user_id)
    return CascadeResponse(
        status="deleted" if result.primary_succeeded else "not-deleted",
        unassigned_tickets=result.succeeded,
        failed_tickets=[ticket_id for ticket_id, _ in result.failures],
    )
