"""
Auth routes.

There is one active session per store:
registering or logging in replaces it, logging out clears it.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from omnipost.api.deps import get_auth_service
from omnipost.models.user import User
from omnipost.services.auth_service import AuthService

logger = logging.getLogger(__name__)
router = APIRouter()


class RegisterRequest(BaseModel):
    name: str = ""
    handle: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=dict,
    summary="Create an account and sign in",
)
async def register(
    body: RegisterRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> dict:
    user = await auth.register(body.name, body.handle, body.email, body.password)
    return {"user": user.public()}


@router.post("/login", response_model=dict, summary="Sign in")
async def login(
    body: LoginRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> dict:
    user = await auth.login(body.email, body.password)
    return {"user": user.public()}


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Sign out")
async def logout(auth: Annotated[AuthService, Depends(get_auth_service)]) -> None:
    await auth.logout()


@router.get("/session", response_model=dict, summary="Current session")
async def session(auth: Annotated[AuthService, Depends(get_auth_service)]) -> dict:
    user: Optional[User] = await auth.current_session()
    return {"user": user.public() if user else None}
