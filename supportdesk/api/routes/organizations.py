from __future__ import annotations

from fastapi import APIRouter, status

from supportdesk.api.schemas import OrganizationCreateRequest, OrganizationResponse, OrganizationUpdateRequest
from supportdesk.dependencies.auth import CurrentActor
from supportdesk.dependencies.services import OrganizationServiceDep

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get("", response_model=list[OrganizationResponse])
async def list_organizations(service: OrganizationServiceDep, actor: CurrentActor) -> list[OrganizationResponse]:
    organizations = await service.list_organizations(actor)
    return [OrganizationResponse.model_validate(organization) for organization in organizations]


@router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    payload: OrganizationCreateRequest,
    service: OrganizationServiceDep,
    actor: CurrentActor,
) -> OrganizationResponse:
    organization = await service.create_organization(
        actor,
        name=payload.name,
        plan=payload.plan,
        contact_email=str(payload.contact_email),
    )
    return OrganizationResponse.model_validate(organization)


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization_id: str,
    service: OrganizationServiceDep,
    actor: CurrentActor,
) -> OrganizationResponse:
    return OrganizationResponse.model_validate(await service.get_organization(actor, organization_id))


@router.put("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    organization_id: str,
    payload: OrganizationUpdateRequest,
    service: OrganizationServiceDep,
    actor: CurrentActor,
) -> OrganizationResponse:
    organization = await service.update_organization(
        actor,
        organization_id,
        name=payload.name,
        plan=payload.plan,
        contact_email=str(payload.contact_email) if payload.contact_email is not None else None,
    )
    return OrganizationResponse.model_validate(organization)


@router.delete("/{organization_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_organization(organization_id: str, service: OrganizationServiceDep, actor: CurrentActor) -> None:
    await service.delete_organization(actor, organization_id)
