# import_staging/core/ordering.py
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from import_staging.utils.database import DatabaseManager

class PostOrdering:
    """
    导入完成后的整理步骤: 重建全局帖子顺序、根据帖子重算用户时间、删除没有内容的用户
    """
    def __init__(self, db: 'DatabaseManager'):
        self.db = db

    async def sort_posts_by_created_at(self) -> int:
        """
        全量重建 post_order，顺序为 (created_at, topic_id, id)

        源站的分页接口不保证按时间返回帖子，所以每次导入后都要重建一次
        """
        async with self.db.transaction():
            await self.db.execute("DELETE FROM post_order")
            await self.db.execute("""
                INSERT INTO post_order (post_id)
                SELECT id
                FROM post
                ORDER BY created_at, topic_id, id
            """)
        count = await self.db.fetchval("SELECT COUNT(*) FROM post_order")
        logging.info(f"已重建帖子顺序，共 {count} 个帖子")
        return count

    async def calculate_user_last_seen_at_dates(self) -> int:
        updated = await self.db.execute("""
            UPDATE "user"
            SET last_seen_at = (
              SELECT MAX(created_at)
              FROM post
              WHERE post.user_id = "user".id
            )
            WHERE EXISTS (SELECT 1 FROM post WHERE post.user_id = "user".id)
        """)
        logging.info(f"已根据帖子更新 {updated} 个用户的 last_seen_at")
        return updated

    async def calculate_user_created_at_dates(self) -> int:
        updated = await self.db.execute("""
            UPDATE "user"
            SET created_at = (
              SELECT MIN(created_at)
              FROM post
              WHERE post.user_id = "user".id
            )
            WHERE EXISTS (SELECT 1 FROM post WHERE post.user_id = "user".id)
        """)
        logging.info(f"已根据帖子更新 {updated} 个用户的 created_at")
        return updated

    async def delete_unused_users(self) -> int:
        deleted = await self.db.execute("""
            DELETE FROM "user"
            WHERE NOT EXISTS(
                SELECT 1
                FROM topic
                WHERE topic.user_id = "user".id
            ) AND NOT EXISTS(
                SELECT 1
                FROM post
                WHERE post.user_id = "user".id
            )
        """)
        logging.info(f"已删除 {deleted} 个没有主题和帖子的用户")
        return deleted
