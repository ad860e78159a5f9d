"""
core.config：路径与统一 YAML 配置 app_config.yaml 的加载。

- 配置：config/app_config.yaml（data、catalog、export、app 四节）。
- 路径：config 目录及 data/store/output/logs（见 .paths）。
- load_app_config() 启动时调用一次；之后通过 get_app_config() 获取。
"""

from __future__ import annotations

import logging
from pathlib import Path

from models.schemas import AppConfigSchema

from . import loader as _loader
from . import paths as _paths

logger = logging.getLogger(__name__)

get_app_config_path = _loader.get_app_config_path
get_base_dir = _paths.get_base_dir
get_config_dir = _paths.get_config_dir
get_data_dir = _paths.get_data_dir
get_store_dir = _paths.get_store_dir
get_output_dir = _paths.get_output_dir
get_log_dir = _paths.get_log_dir

_app_config: AppConfigSchema | None = None


def load_app_config(path: Path | None = None, *, reload: bool = False) -> AppConfigSchema:
    """加载并缓存配置；已加载时直接返回，reload=True 时重新读取。"""
    global _app_config

    if _app_config is not None and not reload:
        return _app_config
    _app_config = _loader.load_app_config_yaml(path)
    logger.debug("配置已加载: config_file=%s", path or get_app_config_path())
    return _app_config


def get_app_config() -> AppConfigSchema:
    """返回已加载的配置，未加载时先加载。"""
    return load_app_config()


__all__ = [
    "get_app_config",
    "get_app_config_path",
    "get_base_dir",
    "get_config_dir",
    "get_data_dir",
    "get_log_dir",
    "get_output_dir",
    "get_store_dir",
    "load_app_config",
]
