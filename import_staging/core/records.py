# import_staging/core/records.py
import json
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

Key = Union[int, str]

R = TypeVar('R', bound='Record')


def normalize_value(value: Any) -> Any:
    """把单个值转换成 SQLite 能直接保存的形式"""
    if isinstance(value, bool):
        return 1 if value else 0
    # datetime 是 date 的子类，必须先判断
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, ensure_ascii=False)
    return value


def normalize_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """
    写入前的统一边界转换，与实体类型无关:
    布尔值 -> 0/1，datetime -> UTC ISO-8601，date -> YYYY-MM-DD，列表/字典 -> JSON
    """
    return {key: normalize_value(value) for key, value in row.items()}


class Record:
    def to_dict(self) -> Dict[str, Any]:
        return dict(vars(self))

    @classmethod
    def from_dict(cls: Type[R], data: Mapping[str, Any]) -> R:
        return cls(**data)

    @classmethod
    def coerce(cls: Type[R], value: Union[R, Mapping[str, Any]]) -> R:
        if isinstance(value, cls):
            return value
        if isinstance(value, Record):
            raise TypeError(f"需要 {cls.__name__}，实际为 {type(value).__name__}")
        return cls.from_dict(value)

    def __eq__(self, other):
        return type(self) is type(other) and vars(self) == vars(other)

    def __repr__(self):
        fields = ', '.join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({fields})"


class CategoryRecord(Record):
    def __init__(self, id: Key, name: str, description: Optional[str] = None,
                 position: Optional[int] = None, url: Optional[str] = None):
        self.id = id
        self.name = name
        self.description = description
        self.position = position
        self.url = url


class UploadRecord(Record):
    def __init__(self, id: Key, user_id: Optional[Key] = None, original_filename: Optional[str] = None,
                 filename: Optional[str] = None, description: Optional[str] = None, url: Optional[str] = None):
        self.id = id
        self.user_id = user_id
        self.original_filename = original_filename
        self.filename = filename
        self.description = description
        self.url = url


class UserRecord(Record):
    def __init__(self, id: Key, email: Optional[str] = None, username: Optional[str] = None,
                 name: Optional[str] = None, bio: Optional[str] = None, avatar_path: Optional[str] = None,
                 created_at: Any = None, last_seen_at: Any = None,
                 active: bool = True, staged: bool = False, admin: bool = False):
        self.id = id
        self.email = email
        self.username = username
        self.name = name
        self.bio = bio
        self.avatar_path = avatar_path
        self.created_at = created_at
        self.last_seen_at = last_seen_at
        self.active = active
        self.staged = staged
        self.admin = admin


class TopicRecord(Record):
    """
    attachments 和 like_user_ids 不是 topic 表的列，
    写入时分别展开到 topic_upload 和 like 表
    """
    def __init__(self, id: Key, user_id: Key, title: Optional[str] = None, raw: Optional[str] = None,
                 category_id: Optional[Key] = None, closed: bool = False, created_at: Any = None,
                 url: Optional[str] = None, tags: Any = None, upload_count: int = 0,
                 attachments: Optional[List[str]] = None, like_user_ids: Optional[List[Key]] = None):
        self.id = id
        self.user_id = user_id
        self.title = title
        self.raw = raw
        self.category_id = category_id
        self.closed = closed
        self.created_at = created_at
        self.url = url
        self.tags = tags
        self.upload_count = upload_count
        self.attachments = attachments
        self.like_user_ids = like_user_ids


class PmTopicRecord(Record):
    def __init__(self, id: Key, user_id: Key, title: Optional[str] = None, raw: Optional[str] = None,
                 category_id: Optional[Key] = None, closed: bool = False, created_at: Any = None,
                 url: Optional[str] = None, target_users: Any = None, upload_count: int = 0,
                 attachments: Optional[List[str]] = None):
        self.id = id
        self.user_id = user_id
        self.title = title
        self.raw = raw
        self.category_id = category_id
        self.closed = closed
        self.created_at = created_at
        self.url = url
        self.target_users = target_users
        self.upload_count = upload_count
        self.attachments = attachments


class PostRecord(Record):
    def __init__(self, id: Key, topic_id: Key, user_id: Key, raw: Optional[str] = None,
                 created_at: Any = None, reply_to_post_id: Optional[Key] = None, url: Optional[str] = None,
                 upload_count: int = 0, attachments: Optional[List[str]] = None,
                 like_user_ids: Optional[List[Key]] = None):
        self.id = id
        self.topic_id = topic_id
        self.user_id = user_id
        self.raw = raw
        self.created_at = created_at
        self.reply_to_post_id = reply_to_post_id
        self.url = url
        self.upload_count = upload_count
        self.attachments = attachments
        self.like_user_ids = like_user_ids


class PmPostRecord(Record):
    def __init__(self, id: Key, topic_id: Key, user_id: Key, raw: Optional[str] = None,
                 created_at: Any = None, reply_to_post_id: Optional[Key] = None, url: Optional[str] = None,
                 upload_count: int = 0, attachments: Optional[List[str]] = None):
        self.id = id
        self.topic_id = topic_id
        self.user_id = user_id
        self.raw = raw
        self.created_at = created_at
        self.reply_to_post_id = reply_to_post_id
        self.url = url
        self.upload_count = upload_count
        self.attachments = attachments


class LikeRecord(Record):
    """topic_id 和 post_id 同一时间只有一个有意义"""
    def __init__(self, user_id: Key, topic_id: Optional[Key] = None, post_id: Optional[Key] = None):
        self.user_id = user_id
        self.topic_id = topic_id
        self.post_id = post_id
