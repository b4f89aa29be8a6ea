# import_staging/migrations/versions/0002_create_topic_tables.py
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from import_staging.utils.database import DatabaseManager

async def upgrade(db: 'DatabaseManager', key_type: str):
    """
    创建主题、帖子及其附件关联表和 post_order 表 (版本 2)
    """
    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS topic (
            id {key_type} NOT NULL PRIMARY KEY,
            title TEXT,
            raw TEXT,
            category_id {key_type},
            closed BOOLEAN NOT NULL DEFAULT 0,
            user_id {key_type} NOT NULL,
            created_at DATETIME,
            url TEXT,
            upload_count INTEGER DEFAULT 0,
            tags JSON
        );
    """)
    await db.execute("CREATE INDEX IF NOT EXISTS topic_by_user_id ON topic (user_id);")

    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS topic_upload (
            topic_id {key_type} NOT NULL,
            path TEXT NOT NULL
        );
    """)
    await db.execute("CREATE UNIQUE INDEX IF NOT EXISTS topic_upload_unique ON topic_upload (topic_id, path);")

    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS post (
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
    await db.execute("CREATE INDEX IF NOT EXISTS post_by_user_id ON post (user_id);")

    # 不能声明为 PRIMARY KEY: INTEGER 主键会成为 ROWID 的别名，顺序就丢了
    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS post_order (
            post_id {key_type} NOT NULL UNIQUE
        );
    """)

    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS post_upload (
            post_id {key_type} NOT NULL,
            path TEXT NOT NULL
        );
    """)
    await db.execute("CREATE UNIQUE INDEX IF NOT EXISTS post_upload_unique ON post_upload (post_id, path);")
