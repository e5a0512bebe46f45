"""
Registration, login and the single active session.

The session key holds a copy of the user record taken at login time, never a
reference into the users collection.
"""

import logging
from typing import Callable, List, Optional

from pydantic import ValidationError as RecordError

from omnipost.exceptions import (
    DuplicateEmailError,
    DuplicateHandleError,
    InvalidCredentialsError,
    StorageFailure,
    ValidationError,
)
from omnipost.models.user import User, avatar_url_for, normalize_handle
from omnipost.services.credentials import CredentialStrategy, PlainTextCredentials
from omnipost.services.local_store import SESSION, USERS, LocalStore
from omnipost.time_utils import now_ms

logger = logging.getLogger(__name__)

DEFAULT_AVATAR_BASE_URL = "https://api.dicebear.com/7.x/avataaars/svg"


class AuthService:
    def __init__(
        self,
        store: LocalStore,
        credentials: Optional[CredentialStrategy] = None,
        avatar_base_url: str = DEFAULT_AVATAR_BASE_URL,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.credentials = credentials or PlainTextCredentials()
        self.avatar_base_url = avatar_base_url
        self.clock = clock

    async def users(self) -> List[User]:
        records = await self.store.read(USERS)
        try:
            return [User.model_validate(r) for r in records]
        except RecordError as e:
            raise StorageFailure("Stored users are malformed") from e

    async def register(self, name: str, handle: str, email: str, password: str) -> User:
        """
        Create a user, store it and sign it in.
        Raises ValidationError, DuplicateEmailError or DuplicateHandleError.
        """
        missing = [
            field
            for field, value in (("name", name), ("handle", handle), ("email", email), ("password", password))
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationError("All fields are required", details={"missing": missing})

        handle = normalize_handle(handle)
        async with self.store.locked(USERS):
            users = await self.users()

            if any(u.email == email for u in users):
                raise DuplicateEmailError()
            if any(u.handle == handle for u in users):
                raise DuplicateHandleError()

            joined_at = self.clock()
            taken = {u.id for u in users}
            user_id = f"user_{joined_at}"
            stamp = joined_at
            while user_id in taken:
                stamp += 1
                user_id = f"user_{stamp}"

            user = User(
                id=user_id,
                name=name,
                handle=handle,
                email=email,
                password=self.credentials.prepare(password),
                avatar_url=avatar_url_for(handle, self.avatar_base_url),
                joined_at=joined_at,
            )
            await self.store.write(USERS, [u.to_record() for u in users] + [user.to_record()])
            await self.store.write_record(SESSION, user.to_record())
        logger.info("Registered user %s (%s)", user.id, user.handle)
        return user

    async def login(self, email: str, password: str) -> User:
        """Sign in an existing user. Raises InvalidCredentialsError."""
        for user in await self.users():
            if user.email == email and self.credentials.verify(user.password, password):
                await self.store.write_record(SESSION, user.to_record())
                logger.info("User %s signed in", user.id)
                return user
        logger.info("Failed sign-in attempt for %s", email)
        raise InvalidCredentialsError()

    async def logout(self) -> None:
        await self.store.remove(SESSION)

    async def current_session(self) -> Optional[User]:
        record = await self.store.read_record(SESSION)
        if not record:
            return None
        try:
            return User.model_validate(record)
        except RecordError as e:
            raise StorageFailure("Stored session is malformed") from e
