import asyncio

import pytest

from conftest import Clock, run
from omnipost.database import FileBackend
from omnipost.exceptions import StorageFailure
from omnipost.models.post import Post
from omnipost.services.auth_service import AuthService
from omnipost.services.local_store import POSTS, LocalStore
from omnipost.services.post_service import PostService, sort_feed


def author(auth_service):
    return run(auth_service.register("A", "a", "a@x.com", "p"))


def test_create_prepends_with_zero_likes(auth_service, post_service):
    user = author(auth_service)
    run(post_service.create(user, "first"))
    updated = run(post_service.create(user, "second"))

    listed = run(post_service.list())
    assert [p.content for p in listed] == ["second", "first"]
    assert listed == updated
    assert listed[0].likes == 0
    assert listed[0].is_ai_enhanced is False
    assert listed[0].tags == []


def test_create_ids_derive_from_time(auth_service, post_service, clock):
    user = author(auth_service)
    expected = clock.now
    post = run(post_service.create(user, "hi"))[0]
    assert post.id == str(expected)
    assert post.created_at == expected


def test_ids_stay_unique_within_same_millisecond(auth_service, store):
    user = author(auth_service)
    posts = PostService(store, clock=lambda: 5)
    run(posts.create(user, "one"))
    run(posts.create(user, "two"))
    assert [p.id for p in run(posts.list())] == ["6", "5"]


def test_create_with_image_tags_and_flag(auth_service, post_service, store):
    user = author(auth_service)
    run(post_service.create(user, "", "data:image/png;base64,AAAA", tags=["#a"], is_ai_enhanced=True))
    record = run(store.read(POSTS))[0]
    assert record["imageUrl"] == "data:image/png;base64,AAAA"
    assert record["tags"] == ["#a"]
    assert record["isAiEnhanced"] is True


def test_post_without_image_omits_image_key(auth_service, post_service, store):
    run(post_service.create(author(auth_service), "text"))
    assert "imageUrl" not in run(store.read(POSTS))[0]


def test_like_n_times(auth_service, post_service):
    post = run(post_service.create(author(auth_service), "hi"))[0]
    for _ in range(7):
        run(post_service.like(post.id))
    assert run(post_service.list())[0].likes == 7


def test_like_unknown_id_is_noop(auth_service, post_service, store):
    run(post_service.create(author(auth_service), "hi"))
    before = run(store.read(POSTS))
    after = run(post_service.like("missing"))
    assert run(store.read(POSTS)) == before
    assert [p.likes for p in after] == [0]


def test_author_is_a_snapshot(auth_service, post_service):
    user = author(auth_service)
    run(post_service.create(user, "hi"))
    user.name = "Changed later"
    assert run(post_service.list())[0].author.name == "A"


def test_sort_feed_newest_first_and_stable():
    base = {"author": {"id": "u", "name": "A", "handle": "@a", "email": "a@x.com"}}
    posts = [
        Post.model_validate({**base, "id": "a", "createdAt": 1}),
        Post.model_validate({**base, "id": "b", "createdAt": 3}),
        Post.model_validate({**base, "id": "c", "createdAt": 3}),
        Post.model_validate({**base, "id": "d", "createdAt": 2}),
    ]
    assert [p.id for p in sort_feed(posts)] == ["b", "c", "d", "a"]


def test_old_post_records_get_defaults(store, post_service):
    run(store.write(POSTS, [{
        "id": "1",
        "content": "legacy",
        "createdAt": 10,
        "likes": 2,
        "author": {"id": "u", "name": "A", "handle": "@a", "email": "a@x.com", "avatarUrl": "x", "joinedAt": 1},
    }]))
    post = run(post_service.list())[0]
    assert post.tags == []
    assert post.is_ai_enhanced is False
    assert post.image_url is None


def test_malformed_post_record_is_storage_failure(store, post_service):
    run(store.write(POSTS, [{"id": "1", "content": "no author or timestamp"}]))
    with pytest.raises(StorageFailure):
        run(post_service.list())


def test_concurrent_likes_are_all_counted(tmp_path):
    store = LocalStore(FileBackend(tmp_path))
    auth = AuthService(store, clock=Clock())
    posts = PostService(store, clock=Clock())

    async def scenario():
        user = await auth.register("A", "a", "a@x.com", "p")
        post = (await posts.create(user, "hi"))[0]
        await asyncio.gather(*(posts.like(post.id) for _ in range(10)))
        return await posts.list()

    assert run(scenario())[0].likes == 10


def test_concurrent_creates_keep_every_post(tmp_path):
    store = LocalStore(FileBackend(tmp_path))
    auth = AuthService(store, clock=Clock())
    posts = PostService(store, clock=lambda: 7)

    async def scenario():
        user = await auth.register("A", "a", "a@x.com", "p")
        await asyncio.gather(*(posts.create(user, f"post {i}") for i in range(5)))
        return await posts.list()

    feed = run(scenario())
    assert sorted(p.content for p in feed) == [f"post {i}" for i in range(5)]
    assert len({p.id for p in feed}) == 5
