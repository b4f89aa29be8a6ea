# import_staging/core/reconcile.py
import inspect
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Mapping, Union

from .records import TopicRecord

if TYPE_CHECKING:
    from import_staging.utils.database import DatabaseManager
    from .writer import UpsertWriter

TopicRecordLike = Union[TopicRecord, Mapping[str, Any]]
TopicTransform = Callable[[TopicRecord], Union[TopicRecordLike, Awaitable[TopicRecordLike]]]

FIND_ORPHAN_POSTS = """
    WITH missing_topics AS (
        SELECT *, RANK() OVER (PARTITION BY topic_id ORDER BY created_at, id) AS post_number
        FROM post p
        WHERE NOT EXISTS (SELECT 1 FROM topic t WHERE t.id = p.topic_id)
    )
    SELECT *
    FROM missing_topics
    WHERE post_number = 1
"""


def identity_transform(topic: TopicRecord) -> TopicRecord:
    return topic


def topic_from_orphan_post(post: Dict[str, Any]) -> TopicRecord:
    """以帖子的 topic_id 作为新主题的 id，丢弃 reply_to_post_id 等只属于帖子的字段"""
    return TopicRecord(
        id=post['topic_id'],
        user_id=post['user_id'],
        title=post.get('title'),
        raw=post.get('raw'),
        category_id=post.get('category_id'),
        closed=bool(post.get('closed') or False),
        created_at=post.get('created_at'),
        url=post.get('url'),
        upload_count=post.get('upload_count') or 0,
    )


class OrphanReconciler:
    """
    修复主题丢失但首帖还在的情况: 用首帖生成主题，并把首帖的附件和点赞转给主题

    每个孤儿帖子要改动 post、topic、topic_upload/post_upload、like 四张表，
    这些步骤之间没有事务，中途崩溃会留下只迁移了一部分附件或点赞的主题，
    恢复方式是重新导入
    """
    def __init__(self, db: 'DatabaseManager', writer: 'UpsertWriter'):
        self.db = db
        self.writer = writer

    async def find_orphan_posts(self) -> List[Dict[str, Any]]:
        posts = await self.db.fetchall(FIND_ORPHAN_POSTS)
        for post in posts:
            post.pop('post_number', None)
        return posts

    async def create_missing_topics(self, transform: TopicTransform = identity_transform) -> int:
        posts = await self.find_orphan_posts()
        if not posts:
            logging.info("没有发现缺少主题的帖子")
            return 0

        for post in posts:
            topic = transform(topic_from_orphan_post(post))
            if inspect.isawaitable(topic):
                topic = await topic
            topic = TopicRecord.coerce(topic)
            await self._reconcile(post, topic)
            logging.info(f"已根据帖子 {post['id']} 重建主题 {topic.id}")

        logging.info(f"共重建 {len(posts)} 个缺失的主题")
        return len(posts)

    async def _reconcile(self, post: Dict[str, Any], topic: TopicRecord):
        post_id = post['id']

        # 先写主题再删帖子，主题写入失败时孤儿帖子仍然保留
        await self.writer.replace_topic_row(topic)

        await self.db.execute("DELETE FROM post WHERE id = ?", (post_id,))

        await self.db.execute("""
            INSERT OR REPLACE INTO topic_upload (topic_id, path)
            SELECT :topic_id, path
            FROM post_upload
            WHERE post_id = :post_id
        """, {'topic_id': topic.id, 'post_id': post_id})
        await self.db.execute("DELETE FROM post_upload WHERE post_id = ?", (post_id,))

        # 同一用户可能已经直接点赞过该主题
        await self.db.execute("""
            UPDATE OR REPLACE "like"
            SET topic_id = :topic_id,
                post_id = NULL
            WHERE post_id = :post_id
        """, {'topic_id': topic.id, 'post_id': post_id})
