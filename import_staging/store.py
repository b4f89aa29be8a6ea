# import_staging/store.py
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from import_staging.utils.config import StoreConfig
from import_staging.utils.database import DatabaseManager, Params
from import_staging.core.records import (
    CategoryRecord, UploadRecord, UserRecord, TopicRecord, PmTopicRecord,
    PostRecord, PmPostRecord, LikeRecord,
)
from import_staging.core.schema import SchemaManager
from import_staging.core.writer import UpsertWriter
from import_staging.core.reader import CursorReader, Batch, Cursor
from import_staging.core.ordering import PostOrdering
from import_staging.core.reconcile import OrphanReconciler, TopicTransform, identity_transform

class StagingStore:
    """
    迁移脚本使用的本地暂存库

    抓取阶段调用 insert_*，整理阶段调用排序/聚合/修复，导出阶段用游标分批读取。
    只允许一个写入者，使用方式:

        async with StagingStore(StoreConfig('data')) as store:
            await store.insert_user({...})
    """
    def __init__(self, config: StoreConfig):
        self.config = config.validate()
        self.db = DatabaseManager(config.path)
        self.schema = SchemaManager(self.db, config)
        self.writer = UpsertWriter(self.db)
        self.reader = CursorReader(self.db, config.batch_size)
        self.ordering = PostOrdering(self.db)
        self.reconciler = OrphanReconciler(self.db, self.writer)

    async def open(self) -> 'StagingStore':
        await self.schema.setup()
        return self

    async def close(self):
        await self.db.close()
        logging.info(f"暂存库已关闭: {self.config.path}")

    async def __aenter__(self) -> 'StagingStore':
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @property
    def batch_size(self) -> int:
        return self.config.batch_size

    @property
    def key_type(self) -> str:
        return self.schema.key_type

    # 写入

    async def insert_category(self, category: Union[CategoryRecord, Mapping[str, Any]]):
        await self.writer.insert_category(category)

    async def insert_upload(self, upload: Union[UploadRecord, Mapping[str, Any]]):
        await self.writer.insert_upload(upload)

    async def insert_user(self, user: Union[UserRecord, Mapping[str, Any]]):
        await self.writer.insert_user(user)

    async def insert_like(self, like: Union[LikeRecord, Mapping[str, Any]]):
        await self.writer.insert_like(like)

    async def insert_topic(self, topic: Union[TopicRecord, Mapping[str, Any]]):
        await self.writer.insert_topic(topic)

    async def insert_pm_topic(self, topic: Union[PmTopicRecord, Mapping[str, Any]]):
        await self.writer.insert_pm_topic(topic)

    async def insert_post(self, post: Union[PostRecord, Mapping[str, Any]]):
        await self.writer.insert_post(post)

    async def insert_pm_post(self, post: Union[PmPostRecord, Mapping[str, Any]]):
        await self.writer.insert_pm_post(post)

    # 整理

    async def sort_posts_by_created_at(self) -> int:
        return await self.ordering.sort_posts_by_created_at()

    async def calculate_user_last_seen_at_dates(self) -> int:
        return await self.ordering.calculate_user_last_seen_at_dates()

    async def calculate_user_created_at_dates(self) -> int:
        return await self.ordering.calculate_user_created_at_dates()

    async def delete_unused_users(self) -> int:
        return await self.ordering.delete_unused_users()

    async def create_missing_topics(self, transform: TopicTransform = identity_transform) -> int:
        return await self.reconciler.create_missing_topics(transform)

    # 读取

    async def count_categories(self) -> int:
        return await self.reader.count_categories()

    async def fetch_categories(self, last_id: Optional[Cursor] = None) -> Batch:
        return await self.reader.fetch_categories(last_id)

    async def count_uploads(self) -> int:
        return await self.reader.count_uploads()

    async def fetch_upload(self, upload_id: Cursor) -> Optional[Dict[str, Any]]:
        return await self.reader.fetch_upload(upload_id)

    async def count_users(self) -> int:
        return await self.reader.count_users()

    async def fetch_users(self, last_id: Optional[Cursor] = None) -> Batch:
        return await self.reader.fetch_users(last_id)

    async def get_user_id(self, username: str) -> Optional[Cursor]:
        return await self.reader.get_user_id(username)

    async def count_topics(self) -> int:
        return await self.reader.count_topics()

    async def fetch_topics(self, last_id: Optional[Cursor] = None) -> Batch:
        return await self.reader.fetch_topics(last_id)

    async def fetch_topic_attachments(self, topic_id: Cursor) -> List[str]:
        return await self.reader.fetch_topic_attachments(topic_id)

    async def count_pm_topics(self) -> int:
        return await self.reader.count_pm_topics()

    async def fetch_pm_topics(self, last_id: Optional[Cursor] = None) -> Batch:
        return await self.reader.fetch_pm_topics(last_id)

    async def count_posts(self) -> int:
        return await self.reader.count_posts()

    async def fetch_posts(self, last_row_id: int = 0) -> Batch:
        return await self.reader.fetch_posts(last_row_id)

    async def fetch_sorted_posts(self, last_row_id: int = 0) -> Batch:
        return await self.reader.fetch_sorted_posts(last_row_id)

    async def fetch_post_attachments(self, post_id: Cursor) -> List[str]:
        return await self.reader.fetch_post_attachments(post_id)

    async def count_pm_posts(self) -> int:
        return await self.reader.count_pm_posts()

    async def fetch_pm_posts(self, last_row_id: int = 0) -> Batch:
        return await self.reader.fetch_pm_posts(last_row_id)

    async def count_likes(self) -> int:
        return await self.reader.count_likes()

    async def fetch_likes(self, last_row_id: int = 0) -> Batch:
        return await self.reader.fetch_likes(last_row_id)

    async def execute_sql(self, sql: str, params: Params = ()) -> List[Dict[str, Any]]:
        return await self.reader.execute_sql(sql, params)

    async def get_first_value(self, sql: str, params: Params = ()):
        return await self.reader.get_first_value(sql, params)
