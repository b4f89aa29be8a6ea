# import_staging/main.py
import asyncio
import logging
import sys

from import_staging.store import StagingStore
from import_staging.utils.logger import setup_logger, LOG_FILENAME, LOG_BACKUP_COUNT
from import_staging.utils.config import Config, StoreConfig, CONFIG_FILE_PATH

async def repair(store: StagingStore, delete_unused_users: bool = True):
    """
    抓取完成后、导出之前执行的整理步骤
    """
    await store.create_missing_topics()
    await store.sort_posts_by_created_at()
    await store.calculate_user_created_at_dates()
    await store.calculate_user_last_seen_at_dates()
    if delete_unused_users:
        await store.delete_unused_users()

    logging.info(
        f"整理完成: 用户 {await store.count_users()}，主题 {await store.count_topics()}，"
        f"帖子 {await store.count_posts()}，私信主题 {await store.count_pm_topics()}，"
        f"私信 {await store.count_pm_posts()}，点赞 {await store.count_likes()}"
    )

async def main(config_path: str = CONFIG_FILE_PATH):
    config = Config(config_path)
    setup_logger(
        log_dir=config.get('logging.dir'),
        level=config.get('logging.level'),
        debug=config.get('logging.debug'),
        filename=config.get('logging.filename', LOG_FILENAME),
        backup_count=config.get('logging.backup_count', LOG_BACKUP_COUNT)
    )

    # 整理阶段只处理已有的数据，不能删除暂存库
    store_config = StoreConfig.from_config(config)._replace(recreate=False)
    async with StagingStore(store_config) as store:
        await repair(store, delete_unused_users=config.get('repair.delete_unused_users', True))

if __name__ == "__main__":
    try:
        asyncio.run(main(*sys.argv[1:2]))
    except KeyboardInterrupt:
        pass
    logging.info("程序已退出")
