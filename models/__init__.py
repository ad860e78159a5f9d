"""Pydantic 配置 Schema。"""

from .schemas import (
    AppConfigSchema,
    AppSection,
    CatalogSection,
    DataSection,
    ExportSection,
    RunConfigSchema,
)

__all__ = [
    "AppConfigSchema",
    "AppSection",
    "CatalogSection",
    "DataSection",
    "ExportSection",
    "RunConfigSchema",
]
