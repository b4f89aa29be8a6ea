# import_staging/core/reader.py
from typing import TYPE_CHECKING, Any, Dict, List, NamedTuple, Optional

if TYPE_CHECKING:
    from import_staging.utils.database import DatabaseManager, Params

Cursor = Any

class Batch(NamedTuple):
    """一批按游标升序读取的行，next_cursor 是下一次调用应传入的游标"""
    rows: List[Dict[str, Any]]
    next_cursor: Optional[Cursor]


class CursorReader:
    """
    所有批量扫描都是游标分页: 只返回游标列严格大于 last 的行，按游标升序，最多 batch_size 行

    分类、用户、主题、私信主题按主键分页；帖子、私信帖子、点赞按 ROWID 分页
    """
    def __init__(self, db: 'DatabaseManager', batch_size: int):
        self.db = db
        self.batch_size = batch_size

    async def _fetch_batch(self, query: str, params: Dict[str, Any], last: Cursor, cursor_column: str) -> Batch:
        params = dict(params, limit=self.batch_size)
        rows = await self.db.fetchall(query, params)
        next_cursor = rows[-1][cursor_column] if rows else last
        return Batch(rows, next_cursor)

    async def _fetch_by_id(self, table: str, last_id: Optional[Cursor]) -> Batch:
        # last_id 为 None 表示从头开始
        where = "WHERE id > :last_id" if last_id is not None else ""
        query = f"""
            SELECT *
            FROM "{table}"
            {where}
            ORDER BY id
            LIMIT :limit
        """
        return await self._fetch_batch(query, {'last_id': last_id}, last_id, 'id')

    async def _fetch_by_rowid(self, table: str, last_row_id: int) -> Batch:
        query = f"""
            SELECT ROWID AS rowid, *
            FROM "{table}"
            WHERE ROWID > :last_row_id
            ORDER BY ROWID
            LIMIT :limit
        """
        return await self._fetch_batch(query, {'last_row_id': last_row_id}, last_row_id, 'rowid')

    async def _count(self, table: str) -> int:
        return await self.db.fetchval(f'SELECT COUNT(*) FROM "{table}"')

    async def count_categories(self) -> int:
        return await self._count('category')

    async def fetch_categories(self, last_id: Optional[Cursor] = None) -> Batch:
        return await self._fetch_by_id('category', last_id)

    async def count_uploads(self) -> int:
        return await self._count('upload')

    async def fetch_upload(self, upload_id: Cursor) -> Optional[Dict[str, Any]]:
        return await self.db.fetchone("SELECT * FROM upload WHERE id = ?", (upload_id,))

    async def count_users(self) -> int:
        return await self._count('user')

    async def fetch_users(self, last_id: Optional[Cursor] = None) -> Batch:
        return await self._fetch_by_id('user', last_id)

    async def get_user_id(self, username: str) -> Optional[Cursor]:
        return await self.db.fetchval('SELECT id FROM "user" WHERE username = ?', (username,))

    async def count_topics(self) -> int:
        return await self._count('topic')

    async def fetch_topics(self, last_id: Optional[Cursor] = None) -> Batch:
        return await self._fetch_by_id('topic', last_id)

    async def fetch_topic_attachments(self, topic_id: Cursor) -> List[str]:
        return await self.db.fetchcol(
            "SELECT path FROM topic_upload WHERE topic_id = ? ORDER BY ROWID", (topic_id,)
        )

    async def count_pm_topics(self) -> int:
        return await self._count('pm_topic')

    async def fetch_pm_topics(self, last_id: Optional[Cursor] = None) -> Batch:
        return await self._fetch_by_id('pm_topic', last_id)

    async def count_posts(self) -> int:
        return await self._count('post')

    async def fetch_posts(self, last_row_id: int = 0) -> Batch:
        return await self._fetch_by_rowid('post', last_row_id)

    async def fetch_sorted_posts(self, last_row_id: int = 0) -> Batch:
        """按 post_order 的顺序读取帖子，需要先重建 post_order"""
        query = """
            SELECT o.ROWID AS rowid, p.*
            FROM post p
              JOIN post_order o ON (p.id = o.post_id)
            WHERE o.ROWID > :last_row_id
            ORDER BY o.ROWID
            LIMIT :limit
        """
        return await self._fetch_batch(query, {'last_row_id': last_row_id}, last_row_id, 'rowid')

    async def fetch_post_attachments(self, post_id: Cursor) -> List[str]:
        return await self.db.fetchcol(
            "SELECT path FROM post_upload WHERE post_id = ? ORDER BY ROWID", (post_id,)
        )

    async def count_pm_posts(self) -> int:
        return await self._count('pm_post')

    async def fetch_pm_posts(self, last_row_id: int = 0) -> Batch:
        return await self._fetch_by_rowid('pm_post', last_row_id)

    async def count_likes(self) -> int:
        return await self._count('like')

    async def fetch_likes(self, last_row_id: int = 0) -> Batch:
        return await self._fetch_by_rowid('like', last_row_id)

    async def execute_sql(self, sql: str, params: 'Params' = ()) -> List[Dict[str, Any]]:
        """任意只读查询，调用方负责不在这里写入"""
        return await self.db.fetchall(sql, params)

    async def get_first_value(self, sql: str, params: 'Params' = ()):
        return await self.db.fetchval(sql, params)
