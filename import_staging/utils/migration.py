# import_staging/utils/migration.py
import os
import importlib.util
import logging
from typing import TYPE_CHECKING, List, Tuple

if TYPE_CHECKING:
    from .database import DatabaseManager

MIGRATIONS_DIR = os.path.join(os.path.dirname(__file__), '..', 'migrations', 'versions')

def available_migrations(migrations_dir: str = MIGRATIONS_DIR) -> List[Tuple[int, str]]:
    migrations = []
    for filename in sorted(os.listdir(migrations_dir)):
        if filename.endswith('.py') and not filename.startswith('__'):
            try:
                version = int(filename.split('_')[0])
                migrations.append((version, filename))
            except (ValueError, IndexError):
                logging.warning(f"无法解析迁移文件名: {filename}")
    return sorted(migrations)

async def get_schema_version(db_manager: 'DatabaseManager') -> int:
    await db_manager.execute("""
        CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL PRIMARY KEY);
    """)
    current_version = await db_manager.fetchval("SELECT version FROM schema_version")
    if current_version is None:
        await db_manager.execute("INSERT INTO schema_version (version) VALUES (0)")
        current_version = 0
    return current_version

async def run_migrations(db_manager: 'DatabaseManager', key_type: str,
                         migrations_dir: str = MIGRATIONS_DIR) -> int:
    """
    依次执行比当前版本新的迁移脚本，返回迁移后的版本号

    每个脚本需提供 async def upgrade(db, key_type)
    """
    logging.info("开始检查暂存库结构迁移...")
    current_version = await get_schema_version(db_manager)
    logging.info(f"当前暂存库版本: {current_version}")

    for version, filename in available_migrations(migrations_dir):
        if version <= current_version:
            continue
        logging.info(f"准备应用迁移版本 {version}: {filename}")
        try:
            module_name = filename[:-3]
            filepath = os.path.join(migrations_dir, filename)
            spec = importlib.util.spec_from_file_location(module_name, filepath)
            migration_module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(migration_module)

            if not hasattr(migration_module, 'upgrade'):
                logging.error(f"迁移脚本 {filename} 中缺少 upgrade 函数")
                continue
            await migration_module.upgrade(db_manager, key_type)
            await db_manager.execute("UPDATE schema_version SET version = ?", (version,))
            logging.info(f"成功应用迁移版本 {version}")
            current_version = version
        except Exception as e:
            logging.critical(f"应用迁移版本 {version} ({filename}) 失败: {e}", exc_info=True)
            raise
    logging.info("暂存库结构迁移检查完成")
    return current_version
