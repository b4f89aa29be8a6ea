"""Test idempotent entity writes and attachment/like fan-out."""

import sqlite3
from datetime import datetime, timezone

import pytest

from import_staging import (
    CategoryRecord, LikeRecord, PmPostRecord, PmTopicRecord, PostRecord, TopicRecord,
    UploadRecord, UserRecord,
)


def test_topic_attachments_fan_out(run_store):
    async def scenario(store):
        await store.insert_user(UserRecord(id=1, username="u1"))
        await store.insert_topic(TopicRecord(id=1, user_id=1, title="Hello", attachments=["a.png", "b.png"]))
        topic = (await store.fetch_topics(0)).rows[0]
        return topic, await store.fetch_topic_attachments(1)

    topic, attachments = run_store(scenario)
    assert set(attachments) == {"a.png", "b.png"}
    assert topic["upload_count"] == 2
    assert topic["title"] == "Hello"


def test_post_attachments_fan_out(run_store):
    async def scenario(store):
        paths = [f"file-{n}.jpg" for n in range(5)]
        await store.insert_post(PostRecord(id=10, topic_id=1, user_id=1, attachments=paths))
        post = (await store.fetch_posts()).rows[0]
        rows = await store.get_first_value("SELECT COUNT(*) FROM post_upload WHERE post_id = 10")
        return post["upload_count"], rows, await store.fetch_post_attachments(10)

    upload_count, rows, attachments = run_store(scenario)
    assert upload_count == 5
    assert rows == 5
    assert attachments == [f"file-{n}.jpg" for n in range(5)]


def test_no_attachments_means_zero_upload_count(run_store):
    async def scenario(store):
        await store.insert_post(PostRecord(id=10, topic_id=1, user_id=1))
        await store.insert_post({"id": 11, "topic_id": 1, "user_id": 1, "attachments": []})
        rows = (await store.fetch_posts()).rows
        return [row["upload_count"] for row in rows], await store.get_first_value("SELECT COUNT(*) FROM post_upload")

    assert run_store(scenario) == ([0, 0], 0)


def test_reinserting_user_overwrites_scalar_fields(run_store):
    async def scenario(store):
        await store.insert_user(UserRecord(id=1, username="alice", name="Alice", admin=False))
        await store.insert_user(UserRecord(id=1, username="alice", name="Alice Smith", admin=True))
        return await store.count_users(), (await store.fetch_users()).rows

    count, rows = run_store(scenario)
    assert count == 1
    assert rows[0]["name"] == "Alice Smith"
    assert rows[0]["admin"] == 1
    assert rows[0]["active"] == 1
    assert rows[0]["staged"] == 0


def test_reinserting_unchanged_post_is_a_no_op(run_store):
    async def scenario(store):
        post = PostRecord(id=3, topic_id=1, user_id=2, raw="hi", attachments=["x.png"], like_user_ids=[5, 6])
        await store.insert_post(post)
        await store.insert_post(post)
        return (
            await store.count_posts(),
            await store.count_likes(),
            await store.get_first_value("SELECT COUNT(*) FROM post_upload"),
        )

    assert run_store(scenario) == (1, 2, 1)


def test_caller_record_is_not_modified(run_store):
    post = PostRecord(id=3, topic_id=1, user_id=2, attachments=["x.png"], like_user_ids=[5])

    async def scenario(store):
        await store.insert_post(post)

    run_store(scenario)
    assert post.attachments == ["x.png"]
    assert post.like_user_ids == [5]
    assert post.upload_count == 0


def test_stale_fan_out_rows_are_kept(run_store):
    async def scenario(store):
        await store.insert_topic(TopicRecord(id=1, user_id=1, attachments=["a.png", "b.png"]))
        await store.insert_topic(TopicRecord(id=1, user_id=1, attachments=["a.png"]))
        topic = (await store.fetch_topics()).rows[0]
        return topic["upload_count"], await store.fetch_topic_attachments(1)

    upload_count, attachments = run_store(scenario)
    assert upload_count == 1
    assert set(attachments) == {"a.png", "b.png"}


def test_topic_and_post_likes_fan_out(run_store):
    async def scenario(store):
        await store.insert_topic(TopicRecord(id=1, user_id=1, like_user_ids=[2, 3]))
        await store.insert_post(PostRecord(id=7, topic_id=1, user_id=1, like_user_ids=[3]))
        return (await store.fetch_likes()).rows

    likes = run_store(scenario)
    assert [(like["user_id"], like["topic_id"], like["post_id"]) for like in likes] == [
        (2, 1, None), (3, 1, None), (3, None, 7),
    ]


def test_standalone_like(run_store):
    async def scenario(store):
        await store.insert_like(LikeRecord(user_id=4, post_id=9))
        await store.insert_like({"user_id": 4, "post_id": 9})
        return (await store.fetch_likes()).rows

    likes = run_store(scenario)
    assert len(likes) == 1
    assert likes[0]["user_id"] == 4 and likes[0]["post_id"] == 9 and likes[0]["topic_id"] is None


def test_pm_topic_and_post_count_attachments(run_store):
    async def scenario(store):
        await store.insert_pm_topic(PmTopicRecord(
            id=1, user_id=1, title="secret", target_users=[2, 3], attachments=["a.png", "b.png"],
        ))
        await store.insert_pm_post(PmPostRecord(id=1, topic_id=1, user_id=2, attachments=["c.png"]))
        pm_topic = (await store.fetch_pm_topics()).rows[0]
        pm_post = (await store.fetch_pm_posts()).rows[0]
        joined = await store.get_first_value("SELECT COUNT(*) FROM topic_upload") + \
            await store.get_first_value("SELECT COUNT(*) FROM post_upload")
        return pm_topic, pm_post, joined

    pm_topic, pm_post, joined = run_store(scenario)
    assert pm_topic["upload_count"] == 2
    assert pm_topic["target_users"] == "[2, 3]"
    assert pm_post["upload_count"] == 1
    assert joined == 0


def test_values_are_normalized_before_writing(run_store):
    async def scenario(store):
        created = datetime(2020, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        await store.insert_topic(TopicRecord(id=1, user_id=1, closed=True, created_at=created, tags=["a", "b"]))
        return (await store.fetch_topics()).rows[0]

    topic = run_store(scenario)
    assert topic["closed"] == 1
    assert topic["created_at"] == "2020-05-01T12:00:00Z"
    assert topic["tags"] == '["a", "b"]'


def test_category_and_upload(run_store):
    async def scenario(store):
        await store.insert_category(CategoryRecord(id=1, name="General", position=2))
        await store.insert_upload(UploadRecord(id=5, user_id=1, original_filename="cat.png", url="http://x/cat.png"))
        return (
            (await store.fetch_categories()).rows,
            await store.fetch_upload(5),
            await store.fetch_upload(6),
            await store.count_uploads(),
        )

    categories, upload, missing, count = run_store(scenario)
    assert categories[0]["name"] == "General"
    assert upload["original_filename"] == "cat.png"
    assert missing is None
    assert count == 1


def test_get_user_id(run_store):
    async def scenario(store):
        await store.insert_user(UserRecord(id=1, username="alice"))
        await store.insert_user(UserRecord(id=2, username="bob"))
        return await store.get_user_id("bob"), await store.get_user_id("carol")

    assert run_store(scenario) == (2, None)


def test_text_keys(run_store, text_store_config):
    async def scenario(store):
        await store.insert_user(UserRecord(id="u1", username="alice"))
        await store.insert_topic(TopicRecord(id="t1", user_id="u1", attachments=["a.png"]))
        return (await store.fetch_topics()).rows[0], await store.fetch_topic_attachments("t1")

    topic, attachments = run_store(scenario, text_store_config)
    assert topic["id"] == "t1"
    assert topic["user_id"] == "u1"
    assert attachments == ["a.png"]


def test_malformed_input_fails_before_writing(run_store):
    async def scenario(store):
        with pytest.raises(TypeError):
            await store.insert_post({"id": 1, "topic_id": 1})
        with pytest.raises(TypeError):
            await store.insert_user({"id": 1, "unknown_field": "x"})
        return await store.count_posts(), await store.count_users()

    assert run_store(scenario) == (0, 0)


def test_topic_and_its_attachments_are_written_atomically(run_store):
    async def scenario(store):
        with pytest.raises(sqlite3.IntegrityError):
            await store.insert_topic(TopicRecord(id=1, user_id=1, attachments=["a.png", None]))
        counts = (
            await store.count_topics(),
            await store.get_first_value("SELECT COUNT(*) FROM topic_upload"),
        )
        await store.insert_topic(TopicRecord(id=2, user_id=1, attachments=["b.png"]))
        return counts, await store.count_topics(), await store.fetch_topic_attachments(2)

    counts, after, attachments = run_store(scenario)
    assert counts == (0, 0)
    assert after == 1
    assert attachments == ["b.png"]


def test_post_and_its_attachments_are_written_atomically(run_store):
    async def scenario(store):
        with pytest.raises(sqlite3.IntegrityError):
            await store.insert_post(PostRecord(id=1, topic_id=1, user_id=1, attachments=["a.png", None], like_user_ids=[4]))
        counts = (
            await store.count_posts(),
            await store.get_first_value("SELECT COUNT(*) FROM post_upload"),
            await store.count_likes(),
        )
        await store.insert_post(PostRecord(id=2, topic_id=1, user_id=1))
        return counts, await store.count_posts()

    counts, after = run_store(scenario)
    assert counts == (0, 0, 0)
    assert after == 1
