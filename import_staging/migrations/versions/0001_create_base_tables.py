# import_staging/migrations/versions/0001_create_base_tables.py
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from import_staging.utils.database import DatabaseManager

async def upgrade(db: 'DatabaseManager', key_type: str):
    """
    创建 settings、category、upload、user、like 表 (版本 1)
    """
    await db.execute("""
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT
        );
    """)
    # 主键类型只在建库时决定一次
    await db.execute("INSERT OR IGNORE INTO settings (key, value) VALUES ('key_type', ?)", (key_type,))

    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS category (
            id {key_type} NOT NULL PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT,
            position INTEGER,
            url TEXT
        );
    """)
    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS upload (
            id {key_type} NOT NULL PRIMARY KEY,
            user_id {key_type},
            original_filename TEXT,
            filename TEXT,
            description TEXT,
            url TEXT
        );
    """)
    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS "user" (
            id {key_type} NOT NULL PRIMARY KEY,
            email TEXT,
            username TEXT,
            name TEXT,
            bio TEXT,
            avatar_path TEXT,
            created_at DATETIME,
            last_seen_at DATETIME,
            active BOOLEAN NOT NULL DEFAULT 1,
            staged BOOLEAN NOT NULL DEFAULT 0,
            admin BOOLEAN NOT NULL DEFAULT 0
        );
    """)
    await db.execute('CREATE UNIQUE INDEX IF NOT EXISTS user_by_username ON "user" (username);')

    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS "like" (
            user_id {key_type} NOT NULL,
            topic_id {key_type},
            post_id {key_type}
        );
    """)
    # NULL 在普通唯一索引中互不相等，所以用 IFNULL 表达式
    await db.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS like_unique
        ON "like" (user_id, IFNULL(topic_id, ''), IFNULL(post_id, ''));
    """)
