"""
Feed APIs.

GET /posts: every post, newest first.
POST /posts: compose a post from text and/or one image (multipart form).
POST /posts/{id}/like: add one like.
"""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status

from omnipost.api.deps import get_current_user, get_post_service
from omnipost.exceptions import ResourceNotFoundError, ValidationError
from omnipost.models.user import User
from omnipost.services.image_service import to_data_uri
from omnipost.services.post_service import PostService, sort_feed

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=dict, summary="List the feed")
async def list_posts(
    posts: Annotated[PostService, Depends(get_post_service)],
) -> dict:
    feed = sort_feed(await posts.list())
    return {"posts": [p.public() for p in feed]}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=dict,
    summary="Create a post",
)
async def create_post(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    posts: Annotated[PostService, Depends(get_post_service)],
    content: Annotated[str, Form()] = "",
    image: Annotated[Optional[UploadFile], File()] = None,
    tags: Annotated[Optional[List[str]], Form()] = None,
    is_ai_enhanced: Annotated[bool, Form()] = False,
) -> dict:
    """
    Store a post authored by the signed-in user. Text or an image is required;
    the image is embedded in the post as a data URI.
    """
    image_url = None
    if image is not None and image.filename:
        max_bytes = request.app.state.settings.max_image_size_mb * 1024 * 1024
        image_url = to_data_uri(await image.read(), image.content_type, max_bytes)

    if not content.strip() and not image_url:
        raise ValidationError("A post needs text or an image")

    feed = await posts.create(
        current_user,
        content,
        image_url,
        tags=[t for t in (tags or []) if t.strip()],
        is_ai_enhanced=is_ai_enhanced,
    )
    return {
        "post": feed[0].public(),
        "posts": [p.public() for p in sort_feed(feed)],
    }


@router.post("/{post_id}/like", response_model=dict, summary="Like a post")
async def like_post(
    post_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    posts: Annotated[PostService, Depends(get_post_service)],
) -> dict:
    feed = await posts.like(post_id)
    liked = next((p for p in feed if p.id == post_id), None)
    if liked is None:
        raise ResourceNotFoundError("Post not found")
    logger.debug("User %s liked post %s", current_user.id, post_id)
    return {"post": liked.public()}
