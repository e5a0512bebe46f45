"""Pydantic record models for users and posts."""

from omnipost.models.post import Post
from omnipost.models.user import User, avatar_url_for, normalize_handle

__all__ = ["User", "Post", "normalize_handle", "avatar_url_for"]
