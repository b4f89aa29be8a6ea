# import_staging/migrations/versions/0003_create_private_message_tables.py
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from import_staging.utils.database import DatabaseManager

async def upgrade(db: 'DatabaseManager', key_type: str):
    """创建私信主题和私信帖子表 (版本 3)"""
    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS pm_topic (
            id {key_type} NOT NULL PRIMARY KEY,
            title TEXT,
            raw TEXT,
            category_id {key_type},
            closed BOOLEAN NOT NULL DEFAULT 0,
            user_id {key_type} NOT NULL,
            target_users TEXT,
            created_at DATETIME,
            url TEXT,
            upload_count INTEGER DEFAULT 0
        );
    """)
    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS pm_post (
            id {key_type} NOT NULL PRIMARY KEY,
            raw TEXT,
            topic_id {key_type} NOT NULL,
            user_id {key_type} NOT NULL,
            created_at DATETIME,
            reply_to_post_id {key_type},
            url TEXT,
            upload_count INTEGER DEFAULT 0
        );
    """)
