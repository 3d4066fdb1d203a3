"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import AsyncConnectionPool

from src.adapters.repository.postgres import PostgresProfileStore
from src.api.flows import FlowRegistry
from src.config.settings import get_settings
from src.domain.exceptions import GatewayError
from src.domain.ports import IdentityGateway, ProfileStore
from src.domain.resend import ResendController
from src.domain.session import Session


def get_pool(request: Request) -> AsyncConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_profile_store(request: Request) -> PostgresProfileStore:
    """Create profile store with connection pool from app state."""
    return PostgresProfileStore(get_pool(request))


def get_gateway(request: Request) -> IdentityGateway:
    """Get the identity gateway created at startup."""
    return request.app.state.gateway


def get_flow_registry(request: Request) -> FlowRegistry:
    """Get the registry of live flow instances."""
    return request.app.state.flows


# Bearer ID token of the signed-in user, for OpenAPI documentation
http_bearer = HTTPBearer()
optional_bearer = HTTPBearer(auto_error=False)


def get_optional_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
) -> Session | None:
    """
    Session for the browser that opened the link, if it is signed in.

    Action links are often opened in a browser without a session; the flow
    still works, it only skips reloading the user.
    """
    if credentials is None:
        return None
    return Session(id_token=credentials.credentials)


async def get_resend_controller(
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer),
    gateway: IdentityGateway = Depends(get_gateway),
    profile_store: ProfileStore = Depends(get_profile_store),
) -> ResendController:
    """
    Build a resend controller for the bearer's account.

    The user is reloaded from the identity provider so the controller sees
    the provider's current verified flag, not a client-supplied one.
    """
    session = Session(id_token=credentials.credentials)
    try:
        session.pending_user = await gateway.reload_user(session)
    except GatewayError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        ) from None

    settings = get_settings()
    return ResendController(
        gateway=gateway,
        profile_store=profile_store,
        session=session,
        continue_origin=settings.app_origin,
        continue_path=settings.verification_landing_path,
    )
