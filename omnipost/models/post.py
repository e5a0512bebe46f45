"""
Post model.

author is an embedded User snapshot, not a reference: later changes to the
user never reach posts already written.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from omnipost.models.user import User


class Post(BaseModel):
    """
    A feed entry. likes is the only field mutated after creation.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "1735689600000",
                "content": "Hello world",
                "createdAt": 1735689600000,
                "likes": 0,
                "author": {"id": "user_1735689000000", "name": "A", "handle": "@a"},
                "tags": ["#hello"],
                "isAiEnhanced": False,
            }
        },
    )

    id: str
    content: str = ""
    image_url: Optional[str] = None  # data: URI
    created_at: int
    likes: int = 0
    author: User
    tags: List[str] = Field(default_factory=list)
    is_ai_enhanced: bool = False

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def public(self) -> Dict[str, Any]:
        data = self.to_record()
        data["author"] = self.author.public()
        return data
