# import_staging/utils/database.py
import aiosqlite
import logging
import os
import sqlite3
from contextlib import asynccontextmanager
from typing import List, Dict, Any, Optional, Union, Sequence, Mapping

Params = Union[Sequence[Any], Mapping[str, Any]]

class DatabaseManager:
    """
    持有暂存库唯一的 aiosqlite 连接，所有组件都通过它访问 SQLite

    连接以自动提交模式打开 (isolation_level=None)，需要原子性的写入
    使用 transaction() 显式包裹
    """
    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: Optional[aiosqlite.Connection] = None

    async def open(self):
        if self._conn is not None:
            return
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        self._conn.row_factory = aiosqlite.Row
        logging.debug(f"已打开数据库连接: {self.db_path}")

    async def close(self):
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        logging.debug(f"已关闭数据库连接: {self.db_path}")

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError(f"数据库 {self.db_path} 尚未打开")
        return self._conn

    async def execute(self, query: str, params: Params = ()) -> int:
        """执行一条语句，返回受影响的行数"""
        async with self.conn.execute(query, params) as cursor:
            return cursor.rowcount

    async def executemany(self, query: str, params_seq: Sequence[Params]):
        if not params_seq:
            return
        await self.conn.executemany(query, params_seq)

    async def fetchone(self, query: str, params: Params = ()) -> Optional[Dict[str, Any]]:
        async with self.conn.execute(query, params) as cursor:
            row = await cursor.fetchone()
            return dict(row) if row else None

    async def fetchall(self, query: str, params: Params = ()) -> List[Dict[str, Any]]:
        async with self.conn.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def fetchval(self, query: str, params: Params = ()):
        async with self.conn.execute(query, params) as cursor:
            row = await cursor.fetchone()
            return row[0] if row else None

    async def fetchcol(self, query: str, params: Params = ()) -> List[Any]:
        """返回结果集第一列组成的列表"""
        async with self.conn.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [row[0] for row in rows]

    @asynccontextmanager
    async def transaction(self):
        """
        BEGIN ... COMMIT，出错时回滚并原样抛出异常
        """
        await self.conn.execute("BEGIN")
        try:
            yield self
        except BaseException as e:
            try:
                await self.conn.execute("ROLLBACK")
            except sqlite3.Error as rollback_error:
                # 回滚失败不能掩盖原始错误
                logging.error(f"事务回滚失败: {rollback_error}，原始错误: {e!r}")
            raise
        else:
            await self.conn.execute("COMMIT")
