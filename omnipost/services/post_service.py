"""
Feed storage: create, list and like posts.

Posts are prepended on create, so storage order is already newest-first;
sort_feed restores that order for collections written by other clients.
Each write is a read-modify-write of the whole post list, done under the
store's posts lock. Separate processes racing on one backend still lose
updates.
"""

import logging
from typing import Callable, List, Optional

from pydantic import ValidationError as RecordError

from omnipost.exceptions import StorageFailure
from omnipost.models.post import Post
from omnipost.models.user import User
from omnipost.services.local_store import POSTS, LocalStore
from omnipost.time_utils import now_ms

logger = logging.getLogger(__name__)


def sort_feed(posts: List[Post]) -> List[Post]:
    """Newest first. sorted() is stable, so equal timestamps keep storage order."""
    return sorted(posts, key=lambda p: p.created_at, reverse=True)


class PostService:
    def __init__(self, store: LocalStore, clock: Callable[[], int] = now_ms) -> None:
        self.store = store
        self.clock = clock

    async def list(self) -> List[Post]:
        records = await self.store.read(POSTS)
        try:
            return [Post.model_validate(r) for r in records]
        except RecordError as e:
            raise StorageFailure("Stored posts are malformed") from e

    async def create(
        self,
        author: User,
        content: str,
        image_url: Optional[str] = None,
        *,
        tags: Optional[List[str]] = None,
        is_ai_enhanced: bool = False,
    ) -> List[Post]:
        """
        Prepend a new post and return the updated collection.
        Callers make sure content or image_url is non-empty.
        """
        async with self.store.locked(POSTS):
            posts = await self.list()
            created_at = self.clock()

            taken = {p.id for p in posts}
            stamp = created_at
            while str(stamp) in taken:
                stamp += 1

            post = Post(
                id=str(stamp),
                content=content,
                image_url=image_url or None,
                created_at=created_at,
                likes=0,
                author=author.model_copy(deep=True),
                tags=list(tags or []),
                is_ai_enhanced=is_ai_enhanced,
            )
            updated = [post] + posts
            await self.store.write(POSTS, [p.to_record() for p in updated])
        logger.info("Post %s created by %s", post.id, author.id)
        return updated

    async def like(self, post_id: str) -> List[Post]:
        """Add one like to post_id. Unknown ids leave storage untouched."""
        async with self.store.locked(POSTS):
            posts = await self.list()
            for post in posts:
                if post.id == post_id:
                    post.likes += 1
                    break
            else:
                logger.debug("Like ignored; no post %s", post_id)
                return posts
            await self.store.write(POSTS, [p.to_record() for p in posts])
        return posts
