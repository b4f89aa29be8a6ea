# import_staging/core/writer.py
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Tuple, Union

from .records import (
    CategoryRecord, UploadRecord, UserRecord, TopicRecord, PmTopicRecord,
    PostRecord, PmPostRecord, LikeRecord, normalize_row,
)

if TYPE_CHECKING:
    from import_staging.utils.database import DatabaseManager

INSERT_CATEGORY = """
    INSERT OR REPLACE INTO category (id, name, description, position, url)
    VALUES (:id, :name, :description, :position, :url)
"""

INSERT_UPLOAD = """
    INSERT OR REPLACE INTO upload (id, user_id, original_filename, filename, description, url)
    VALUES (:id, :user_id, :original_filename, :filename, :description, :url)
"""

INSERT_USER = """
    INSERT OR REPLACE
    INTO "user" (id, email, username, name, bio, avatar_path, created_at, last_seen_at, active, staged, admin)
    VALUES (:id, :email, :username, :name, :bio, :avatar_path, :created_at, :last_seen_at, :active, :staged, :admin)
"""

INSERT_LIKE = """
    INSERT OR REPLACE INTO "like" (user_id, topic_id, post_id)
    VALUES (:user_id, :topic_id, :post_id)
"""

INSERT_TOPIC = """
    INSERT OR REPLACE INTO topic (id, title, raw, category_id, closed, user_id, created_at, url, upload_count, tags)
    VALUES (:id, :title, :raw, :category_id, :closed, :user_id, :created_at, :url, :upload_count, :tags)
"""

INSERT_TOPIC_UPLOAD = """
    INSERT OR REPLACE INTO topic_upload (topic_id, path)
    VALUES (:topic_id, :path)
"""

INSERT_TOPIC_LIKE = """
    INSERT OR REPLACE INTO "like" (topic_id, user_id)
    VALUES (:topic_id, :user_id)
"""

INSERT_PM_TOPIC = """
    INSERT OR REPLACE INTO pm_topic (id, title, raw, category_id, closed, user_id, created_at, url, upload_count, target_users)
    VALUES (:id, :title, :raw, :category_id, :closed, :user_id, :created_at, :url, :upload_count, :target_users)
"""

INSERT_POST = """
    INSERT OR REPLACE INTO post (id, raw, topic_id, user_id, created_at, reply_to_post_id, url, upload_count)
    VALUES (:id, :raw, :topic_id, :user_id, :created_at, :reply_to_post_id, :url, :upload_count)
"""

INSERT_POST_UPLOAD = """
    INSERT OR REPLACE INTO post_upload (post_id, path)
    VALUES (:post_id, :path)
"""

INSERT_POST_LIKE = """
    INSERT OR REPLACE INTO "like" (post_id, user_id)
    VALUES (:post_id, :user_id)
"""

INSERT_PM_POST = """
    INSERT OR REPLACE INTO pm_post (id, raw, topic_id, user_id, created_at, reply_to_post_id, url, upload_count)
    VALUES (:id, :raw, :topic_id, :user_id, :created_at, :reply_to_post_id, :url, :upload_count)
"""


def split_fan_out(row: Dict[str, Any]) -> Tuple[Dict[str, Any], List[Any], List[Any]]:
    """
    取出附件列表和点赞用户列表，附件数量写入 upload_count
    """
    row = dict(row)
    attachments = row.pop('attachments', None) or []
    like_user_ids = row.pop('like_user_ids', None) or []
    row['upload_count'] = len(attachments)
    return row, list(attachments), list(like_user_ids)


class UpsertWriter:
    """
    每种实体一个写入方法，全部是 INSERT OR REPLACE，重复导入同一条记录不会产生新行

    主题和帖子的主行与附件/点赞子行在同一个事务中写入
    """
    def __init__(self, db: 'DatabaseManager'):
        self.db = db

    async def insert_category(self, category: Union[CategoryRecord, Mapping[str, Any]]):
        record = CategoryRecord.coerce(category)
        await self.db.execute(INSERT_CATEGORY, normalize_row(record.to_dict()))

    async def insert_upload(self, upload: Union[UploadRecord, Mapping[str, Any]]):
        record = UploadRecord.coerce(upload)
        await self.db.execute(INSERT_UPLOAD, normalize_row(record.to_dict()))

    async def insert_user(self, user: Union[UserRecord, Mapping[str, Any]]):
        record = UserRecord.coerce(user)
        await self.db.execute(INSERT_USER, normalize_row(record.to_dict()))

    async def insert_like(self, like: Union[LikeRecord, Mapping[str, Any]]):
        record = LikeRecord.coerce(like)
        await self.db.execute(INSERT_LIKE, normalize_row(record.to_dict()))

    async def insert_topic(self, topic: Union[TopicRecord, Mapping[str, Any]]):
        record = TopicRecord.coerce(topic)
        row, attachments, like_user_ids = split_fan_out(record.to_dict())
        row = normalize_row(row)
        topic_id = row['id']

        async with self.db.transaction():
            await self.db.execute(INSERT_TOPIC, row)
            await self.db.executemany(
                INSERT_TOPIC_UPLOAD, [{'topic_id': topic_id, 'path': path} for path in attachments]
            )
            await self.db.executemany(
                INSERT_TOPIC_LIKE, [{'topic_id': topic_id, 'user_id': user_id} for user_id in like_user_ids]
            )

    async def replace_topic_row(self, topic: TopicRecord):
        """
        只写 topic 主行，upload_count 按记录上的值保存，不展开附件和点赞
        """
        row = topic.to_dict()
        row.pop('attachments', None)
        row.pop('like_user_ids', None)
        await self.db.execute(INSERT_TOPIC, normalize_row(row))

    async def insert_pm_topic(self, topic: Union[PmTopicRecord, Mapping[str, Any]]):
        record = PmTopicRecord.coerce(topic)
        row, _, _ = split_fan_out(record.to_dict())
        await self.db.execute(INSERT_PM_TOPIC, normalize_row(row))

    async def insert_post(self, post: Union[PostRecord, Mapping[str, Any]]):
        record = PostRecord.coerce(post)
        row, attachments, like_user_ids = split_fan_out(record.to_dict())
        row = normalize_row(row)
        post_id = row['id']

        async with self.db.transaction():
            await self.db.execute(INSERT_POST, row)
            await self.db.executemany(
                INSERT_POST_UPLOAD, [{'post_id': post_id, 'path': path} for path in attachments]
            )
            await self.db.executemany(
                INSERT_POST_LIKE, [{'post_id': post_id, 'user_id': user_id} for user_id in like_user_ids]
            )
        logging.debug(f"帖子 {post_id} 已写入 (附件 {len(attachments)}，点赞 {len(like_user_ids)})")

    async def insert_pm_post(self, post: Union[PmPostRecord, Mapping[str, Any]]):
        record = PmPostRecord.coerce(post)
        row, _, _ = split_fan_out(record.to_dict())
        await self.db.execute(INSERT_PM_POST, normalize_row(row))
