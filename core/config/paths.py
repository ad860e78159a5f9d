"""
路径解析：基准目录、配置目录及 data/store/output/logs 目录。

- 未打包：以项目根（core 的父目录）为基准；打包后以 exe 所在目录为基准。
- 环境变量：RETAIL_ORDERS_BASE_DIR / DATA_DIR / STORE_DIR / OUTPUT_DIR / LOG_DIR
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ENV_PREFIX = "RETAIL_ORDERS_"


def _exe_dir() -> Path:
    """打包为 exe 时，exe 所在目录。"""
    return Path(sys.executable).resolve().parent


def _env_dir(name: str) -> Path | None:
    value = os.environ.get(f"{ENV_PREFIX}{name}")
    return Path(value).resolve() if value else None


def get_base_dir() -> Path:
    """基准目录：环境变量优先；打包后为 exe 所在目录，否则为项目根。"""
    env = _env_dir("BASE_DIR")
    if env is not None:
        return env
    if getattr(sys, "frozen", False):
        return _exe_dir()
    return Path(__file__).resolve().parent.parent.parent


def get_config_dir() -> Path:
    """配置文件目录（不触发加载）。"""
    return get_base_dir() / "config"


def get_data_dir() -> Path:
    """CSV 兜底资源目录。"""
    return _env_dir("DATA_DIR") or get_base_dir() / "data"


def get_store_dir() -> Path:
    """JSON 文档库目录。"""
    return _env_dir("STORE_DIR") or get_base_dir() / "store"


def get_output_dir() -> Path:
    """导出文件目录。"""
    return _env_dir("OUTPUT_DIR") or get_base_dir() / "output"


def get_log_dir() -> Path:
    """日志文件目录。"""
    return _env_dir("LOG_DIR") or get_base_dir() / "logs"
