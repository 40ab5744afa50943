"""
Authentication API endpoints.

WHY: These endpoints are the identity store's public surface:
1. Sign-up - plain (join an organization) or provisioning (new organization + admin)
2. Sign-in - email and password, returns a session token
3. Sign-out - revoke the presented token
4. Get-session - current user and session expiry

Security:
- Rate limiting applied via RateLimitMiddleware (5 req/min sign-in, 10 sign-up)
- Passwords are compared using constant-time comparison (bcrypt)
- Generic error messages prevent user enumeration attacks
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.auth import blacklist_token, verify_token, token_expiry
from classroom.core.config import settings
from classroom.core.deps import get_current_user, get_session_token
from classroom.db.session import get_db
from classroom.models.user import User
from classroom.schemas.auth import AuthResponse, SessionResponse, SignInRequest, SignUpRequest
from classroom.schemas.common import DataResponse, MessageResponse
from classroom.schemas.organization import OrganizationResponse
from classroom.schemas.user import UserResponse
from classroom.services.identity_service import IdentityService
from classroom.services.provisioning import OrganizationProvisioningService


router = APIRouter(prefix="/auth", tags=["authentication"])


def set_session_cookie(response: Response, token: str) -> None:
    """
    Mirror the session token into an HttpOnly cookie.

    WHY: Browser clients authenticate with the cookie; API clients use the
    Authorization header. Both carry the same token.
    """
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRATION_MINUTES * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


@router.post(
    "/sign-up/email",
    response_model=DataResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    description=(
        "Create an account. With organizationData, provisions a new organization "
        "and its admin in one transaction; otherwise joins an existing organization."
    ),
)
async def sign_up(
    data: SignUpRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> DataResponse[AuthResponse]:
    """
    Register a new account.

    Raises:
        ValidationError (400): Invalid organizationData or missing organizationId
        AuthorizationError (403): Plain sign-up asked for the admin role
        ResourceAlreadyExistsError (409): Email or organization email taken
    """
    identity_service = IdentityService(db)
    organization = None

    if data.organization_data is not None:
        provisioning = OrganizationProvisioningService(db, identity_service=identity_service)
        result = await provisioning.provision(data)
        user, organization = result.user, result.organization
    else:
        user = await identity_service.sign_up(data)

    token = identity_service.issue_session(user)
    set_session_cookie(response, token)

    return DataResponse(
        data=AuthResponse(
            token=token,
            user=UserResponse.model_validate(user),
            organization=OrganizationResponse.model_validate(organization) if organization else None,
        )
    )


@router.post(
    "/sign-in/email",
    response_model=DataResponse[AuthResponse],
    status_code=status.HTTP_200_OK,
    summary="Sign in",
    description="Authenticate with email and password, returns a session token",
)
async def sign_in(
    credentials: SignInRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> DataResponse[AuthResponse]:
    """
    Authenticate user and return a session token.

    Raises:
        AuthenticationError (401): If credentials are invalid
    """
    identity_service = IdentityService(db)
    user = await identity_service.authenticate(credentials.email, credentials.password)

    token = identity_service.issue_session(user)
    set_session_cookie(response, token)

    return DataResponse(data=AuthResponse(token=token, user=UserResponse.model_validate(user)))


@router.post(
    "/sign-out",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign out",
    description="Revoke the current session token",
)
async def sign_out(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """
    Revoke the presented token.

    WHY: Tokens are stateless; the blacklist makes the token unusable for
    the rest of its lifetime.
    """
    await blacklist_token(token, user_id=current_user.id)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Signed out successfully")


@router.get(
    "/get-session",
    response_model=DataResponse[SessionResponse],
    summary="Get session",
    description="Return the signed-in user and when the session expires",
)
async def get_session(
    token: Optional[str] = Depends(get_session_token),
    current_user: User = Depends(get_current_user),
) -> DataResponse[SessionResponse]:
    payload = verify_token(token)
    return DataResponse(
        data=SessionResponse(
            user=UserResponse.model_validate(current_user),
            expires_at=token_expiry(payload),
        )
    )
