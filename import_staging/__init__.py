from import_staging.core.records import (
    CategoryRecord, UploadRecord, UserRecord, TopicRecord, PmTopicRecord,
    PostRecord, PmPostRecord, LikeRecord, normalize_row,
)
from import_staging.core.reader import Batch
from import_staging.store import StagingStore
from import_staging.utils.config import Config, StoreConfig

__all__ = [
    'StagingStore', 'StoreConfig', 'Config', 'Batch', 'normalize_row',
    'CategoryRecord', 'UploadRecord', 'UserRecord', 'TopicRecord', 'PmTopicRecord',
    'PostRecord', 'PmPostRecord', 'LikeRecord',
]
