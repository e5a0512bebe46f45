"""
AI text enhancement for the compose flow.

Uses Groq chat completions to rewrite post text and suggest hashtags.
Both calls are best-effort: without GROQ_API_KEY, or on any error, enhance()
returns the text unchanged and suggest_tags() returns [].
"""

import json
import logging
import re
from typing import Any, List, Optional

from groq import AsyncGroq

from omnipost.exceptions import EnhancementFailure

logger = logging.getLogger(__name__)

ENHANCE_PROMPT = (
    "Rewrite the following social media post to be more engaging, witty, and concise. "
    'Only return the rewritten text, no explanations. Text: "{text}"'
)

HASHTAG_PROMPT = (
    "Generate 3-5 relevant, trending hashtags for this post content. "
    'Return them as a JSON array of strings (e.g. ["#fun", "#life"]). '
    'Return ONLY the JSON array. Content: "{text}"'
)


def _strip_code_fence(raw: str) -> str:
    text = raw.strip()
    if "```" in text:
        match = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
        text = match.group(1).strip() if match else re.sub(r"```\w*", "", text).strip()
    return text


def _parse_tags(raw: str) -> List[str]:
    """Parse a JSON array of hashtags. Raises EnhancementFailure if unusable."""
    try:
        data = json.loads(_strip_code_fence(raw))
    except (json.JSONDecodeError, TypeError) as e:
        raise EnhancementFailure("Hashtag response is not JSON", details=str(e)) from e
    if isinstance(data, dict):
        data = data.get("hashtags", data.get("tags"))
    if not isinstance(data, list):
        raise EnhancementFailure("Hashtag response is not a JSON array")
    return [str(tag).strip() for tag in data if isinstance(tag, str) and tag.strip()]


class AIEnhancementClient:
    """
    Wraps the completion endpoint. client is any object shaped like
    groq.AsyncGroq; one is built from api_key when not supplied.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "llama-3.1-8b-instant",
        client: Optional[Any] = None,
    ) -> None:
        self.model = model
        if client is None and api_key:
            client = AsyncGroq(api_key=api_key)
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def _complete(self, prompt: str, temperature: float) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=512,
        )
        if not response.choices:
            raise EnhancementFailure("Completion returned no choices")
        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise EnhancementFailure("Completion returned empty text")
        return content

    async def enhance(self, text: str) -> str:
        """Rewrite text to be more engaging; the original on any failure."""
        if not self.configured:
            logger.debug("GROQ_API_KEY not set; returning text unchanged")
            return text
        try:
            return await self._complete(ENHANCE_PROMPT.format(text=text), temperature=0.7)
        except EnhancementFailure as e:
            logger.warning("Enhancement unusable; keeping original text: %s", e)
            return text
        except Exception as e:
            logger.exception("Groq enhancement failed; keeping original text: %s", e)
            return text

    async def suggest_tags(self, text: str) -> List[str]:
        """Suggest hashtags for text; [] on any failure."""
        if not self.configured:
            logger.debug("GROQ_API_KEY not set; no hashtags")
            return []
        try:
            raw = await self._complete(HASHTAG_PROMPT.format(text=text), temperature=0.3)
            tags = _parse_tags(raw)
            logger.info("Groq suggested %d hashtags", len(tags))
            return tags
        except EnhancementFailure as e:
            logger.warning("Hashtag suggestion unusable: %s", e)
            return []
        except Exception as e:
            logger.exception("Groq hashtag generation failed: %s", e)
            return []
