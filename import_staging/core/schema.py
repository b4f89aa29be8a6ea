# import_staging/core/schema.py
import logging
import os
from typing import TYPE_CHECKING

from import_staging.utils.migration import run_migrations

if TYPE_CHECKING:
    from import_staging.utils.config import StoreConfig
    from import_staging.utils.database import DatabaseManager

class SchemaManager:
    """
    负责暂存库文件的创建、连接参数和表结构
    """
    def __init__(self, db: 'DatabaseManager', config: 'StoreConfig'):
        self.db = db
        self.config = config
        self.key_type = config.key_type
        self.schema_version = 0

    def remove_existing_store(self):
        if os.path.exists(self.config.path):
            os.remove(self.config.path)
            logging.info(f"已删除旧的暂存库文件: {self.config.path}")

    async def configure_database(self):
        # 暂存库可以通过重新抓取重建，用持久性换吞吐量
        await self.db.execute("PRAGMA journal_mode = OFF")
        await self.db.execute("PRAGMA locking_mode = EXCLUSIVE")

    async def stored_key_type(self):
        has_settings = await self.db.fetchval(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'settings'"
        )
        if not has_settings:
            return None
        return await self.db.fetchval("SELECT value FROM settings WHERE key = 'key_type'")

    async def setup(self):
        if self.config.recreate:
            self.remove_existing_store()

        await self.db.open()
        await self.configure_database()

        stored = await self.stored_key_type()
        if stored and stored != self.key_type:
            logging.warning(
                f"暂存库 {self.config.path} 创建时使用 {stored} 主键，与当前配置的 {self.key_type} 不一致，继续使用 {stored}"
            )
            self.key_type = stored

        self.schema_version = await run_migrations(self.db, self.key_type)
        logging.info(f"暂存库已就绪: {self.config.path} (主键类型 {self.key_type}，版本 {self.schema_version})")
