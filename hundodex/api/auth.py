"""
Account API endpoints and request authentication.

Sign-up and sign-in hand back a bearer token. Routes that touch a
user's progress depend on authorized_user_id, which resolves the token
to its session user and refuses paths naming anyone else.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from hundodex.db.database import async_session_factory
from hundodex.models.failure import AccessDeniedError, AuthError
from hundodex.services.identity import DatabaseIdentityProvider

router = APIRouter(prefix="/auth", tags=["auth"])

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_api_identity_provider() -> DatabaseIdentityProvider:
    """Provider for request handling; tokens travel in headers, never to a file."""
    return DatabaseIdentityProvider(async_session_factory)


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    provider: Annotated[DatabaseIdentityProvider, Depends(get_api_identity_provider)],
) -> str:
    """Resolve the bearer token to its user, or answer 401."""
    if credentials is None:
        raise AuthError("Sign in required")

    user_id = await provider.user_for_token(credentials.credentials)
    if user_id is None:
        raise AuthError("Session expired or signed out")
    return user_id


async def authorized_user_id(
    user_id: str,
    current_user_id: Annotated[str, Depends(get_current_user_id)],
) -> str:
    """Path user id, once it matches the signed-in user."""
    if user_id != current_user_id:
        raise AccessDeniedError()
    return user_id


class CredentialsRequest(BaseModel):
    email: str = Field(..., description="Account email")
    password: str = Field(..., description="Account password")


class SessionResponse(BaseModel):
    """Signed-in user and the bearer token for later requests."""

    user_id: str
    access_token: str
    token_type: str = "bearer"


class SignOutResponse(BaseModel):
    signed_out: bool


@router.post("/sign-up", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    request: CredentialsRequest,
    provider: Annotated[DatabaseIdentityProvider, Depends(get_api_identity_provider)],
) -> SessionResponse:
    """Register an account and sign it in."""
    session = await provider.sign_up(request.email, request.password)
    return SessionResponse(user_id=session.user_id, access_token=session.access_token)


@router.post("/sign-in", response_model=SessionResponse)
async def sign_in(
    request: CredentialsRequest,
    provider: Annotated[DatabaseIdentityProvider, Depends(get_api_identity_provider)],
) -> SessionResponse:
    session = await provider.sign_in(request.email, request.password)
    return SessionResponse(user_id=session.user_id, access_token=session.access_token)


@router.post("/sign-out", response_model=SignOutResponse)
async def sign_out(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    provider: Annotated[DatabaseIdentityProvider, Depends(get_api_identity_provider)],
) -> SignOutResponse:
    """Revoke the presented token. Signing out twice is not an error."""
    if credentials is None:
        raise AuthError("Sign in required")
    revoked = await provider.revoke_token(credentials.credentials)
    return SignOutResponse(signed_out=revoked)
