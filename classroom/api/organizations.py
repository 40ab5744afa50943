"""
Organization API endpoints.

WHY: Organizations are created only by sign-up provisioning; over the API
a member can only read their own organization (trial state, contact
details).
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.deps import get_current_identity
from classroom.core.exceptions import OrganizationNotFoundError
from classroom.core.policy import Action, Identity, Resource, enforce
from classroom.db.session import get_db
from classroom.dao.organization import OrganizationDAO
from classroom.schemas.common import DataResponse
from classroom.schemas.organization import OrganizationResponse


router = APIRouter(prefix="/organization", tags=["organization"])


@router.get(
    "/{org_id}",
    response_model=DataResponse[OrganizationResponse],
    status_code=status.HTTP_200_OK,
    summary="Get organization by ID",
    description="Get organization details. Only the caller's own organization is accessible.",
)
async def get_organization(
    org_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> DataResponse[OrganizationResponse]:
    """
    Get organization by ID.

    Raises:
        AuthorizationError (403): If org_id is not the caller's organization
        OrganizationNotFoundError (404): If the organization no longer exists
    """
    enforce(identity, Action.READ_ONE, Resource.ORGANIZATION, target=org_id)

    organization = await OrganizationDAO(db).get_by_id(org_id)
    if not organization:
        raise OrganizationNotFoundError(organization_id=org_id)

    return DataResponse(data=OrganizationResponse.model_validate(organization))
