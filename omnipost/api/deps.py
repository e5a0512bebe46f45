"""
Request dependencies shared by the routers.

Services live on app.state (set up in the lifespan); these pull them out so
routes can declare what they need and tests can override it.
"""

from typing import Annotated

from fastapi import Depends, Request

from omnipost.exceptions import AuthenticationRequiredError
from omnipost.models.user import User
from omnipost.services.ai_service import AIEnhancementClient
from omnipost.services.auth_service import AuthService
from omnipost.services.post_service import PostService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_ai_client(request: Request) -> AIEnhancementClient:
    return request.app.state.ai_client


async def get_current_user(
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """Dependency: the signed-in user, or 401 when no session is active."""
    user = await auth.current_session()
    if user is None:
        raise AuthenticationRequiredError()
    return user
