# import_staging/utils/config.py
import copy
import os
import yaml
import logging
from typing import Dict, Any, NamedTuple

DEFAULT_CONFIG = {
    'staging': {
        'directory': 'data',
        'filename': 'index.db',
        'batch_size': 1000,
        # true: 所有主键列使用 INTEGER，false: 使用 TEXT
        'numeric_keys': False,
        'recreate': False
    },
    'repair': {
        'delete_unused_users': True
    },
    'logging': { 'level': 'INFO', 'dir': 'logs', 'filename': 'import.log', 'backup_count': 7, 'debug': False }
}
CONFIG_FILE_PATH = 'staging.yml'

class Config:
    def __init__(self, path: str = CONFIG_FILE_PATH):
        self.path = path
        self._config = self._load_or_create_config()

    def _load_or_create_config(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            try:
                with open(self.path, 'w', encoding='utf-8') as f:
                    yaml.dump(DEFAULT_CONFIG, f, allow_unicode=True, sort_keys=False)
                logging.info(f"配置文件 '{self.path}' 不存在，已自动创建。")
            except IOError as e:
                logging.error(f"无法创建默认配置文件 '{self.path}': {e}")
            return copy.deepcopy(DEFAULT_CONFIG)
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                user_config = yaml.safe_load(f) or {}
        except (IOError, yaml.YAMLError) as e:
            logging.error(f"读取配置文件 '{self.path}' 失败: {e}，将使用默认配置")
            return copy.deepcopy(DEFAULT_CONFIG)

        config_data = copy.deepcopy(DEFAULT_CONFIG)
        for key, value in user_config.items():
            if isinstance(value, dict) and isinstance(config_data.get(key), dict):
                config_data[key].update(value)
            else:
                config_data[key] = value
        return config_data

    def get(self, key_path: str, default: Any = None) -> Any:
        keys = key_path.split('.')
        value = self._config
        try:
            for key in keys:
                if not isinstance(value, dict): return default
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default


class StoreConfig(NamedTuple):
    """暂存库的全部配置，构造后不可修改"""
    directory: str
    filename: str = 'index.db'
    batch_size: int = 1000
    numeric_keys: bool = False
    recreate: bool = False

    @property
    def path(self) -> str:
        return os.path.join(self.directory, self.filename)

    @property
    def key_type(self) -> str:
        return "INTEGER" if self.numeric_keys else "TEXT"

    def validate(self) -> 'StoreConfig':
        if isinstance(self.batch_size, bool) or not isinstance(self.batch_size, int) or self.batch_size <= 0:
            raise ValueError(f"batch_size 必须是正整数，当前值: {self.batch_size!r}")
        if not self.filename:
            raise ValueError("filename 不能为空")
        return self

    @classmethod
    def from_config(cls, config: Config) -> 'StoreConfig':
        return cls(
            directory=config.get('staging.directory', 'data'),
            filename=config.get('staging.filename', 'index.db'),
            batch_size=config.get('staging.batch_size', 1000),
            numeric_keys=bool(config.get('staging.numeric_keys', False)),
            recreate=bool(config.get('staging.recreate', False)),
        ).validate()
