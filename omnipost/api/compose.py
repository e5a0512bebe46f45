"""
Compose helpers: AI polish for a draft before it is posted.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from omnipost.api.deps import get_ai_client
from omnipost.exceptions import ValidationError
from omnipost.services.ai_service import AIEnhancementClient

logger = logging.getLogger(__name__)
router = APIRouter()


class PolishRequest(BaseModel):
    content: str


@router.post("/polish", response_model=dict, summary="Rewrite a draft and suggest hashtags")
async def polish(
    body: PolishRequest,
    ai: Annotated[AIEnhancementClient, Depends(get_ai_client)],
) -> dict:
    """
    Run the draft through the AI client. Both steps are best-effort, so the
    response is always usable: worst case it echoes the draft with no tags.
    """
    if not body.content.strip():
        raise ValidationError("Nothing to polish")

    enhanced = await ai.enhance(body.content)
    tags = await ai.suggest_tags(body.content)

    content = enhanced + ("\n\n" + " ".join(tags) if tags else "")
    return {
        "content": content,
        "enhanced": enhanced,
        "tags": tags,
        "is_ai_enhanced": enhanced != body.content or bool(tags),
    }
