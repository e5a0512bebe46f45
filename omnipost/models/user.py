"""
User model.

Users are stored as camelCase JSON records under the users key; the active
session holds a copy of one of them.
"""

from typing import Any, Dict, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class User(BaseModel):
    """
    A registered user. handle is always "@"-prefixed and unique, as is email.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "user_1735689600000",
                "name": "Alex Creative",
                "handle": "@alex_makes",
                "email": "hello@example.com",
                "avatarUrl": "https://api.dicebear.com/7.x/avataaars/svg?seed=%40alex_makes",
                "joinedAt": 1735689600000,
            }
        },
    )

    id: str
    name: str
    handle: str
    email: str
    password: Optional[str] = None  # Plain text or a hash, depending on PASSWORD_SCHEME
    avatar_url: str = ""
    bio: Optional[str] = None
    joined_at: int = 0

    def to_record(self) -> Dict[str, Any]:
        """Storage form: camelCase keys, unset optionals omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def public(self) -> Dict[str, Any]:
        """API form: never exposes the password."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"password"})


def normalize_handle(handle: str) -> str:
    handle = handle.strip()
    return handle if handle.startswith("@") else f"@{handle}"


def avatar_url_for(handle: str, base_url: str) -> str:
    return f"{base_url}?{urlencode({'seed': handle})}"
