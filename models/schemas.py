"""
Pydantic V2 Schema：统一配置 app_config.yaml 各节与运行时路径配置。

- DataSection: CSV 兜底资源文件名。
- CatalogSection: 编码目录与重复检测默认选项。
- ExportSection: 导出文件名、工作表名长度上限。
- AppSection: 本地订单快照文件名等。
- AppConfigSchema: 配置文件根结构，各节均有默认值。
- RunConfigSchema: 运行时目录（CSV、文档库、输出、日志）。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator


def _strip_str(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip()


# ----- 配置文件各节 -----


class DataSection(BaseModel):
    """CSV 兜底资源：文档库无数据或不可用时读取。"""

    categories_csv: str = Field(default="categories-export.csv", description="品类 CSV")
    store_lists_csv: str = Field(default="storelists-export.csv", description="标准门店清单 CSV")
    boosters_csv: str = Field(default="boosters-export.csv", description="加购零售商 CSV")
    custom_codes_csv: str = Field(default="customcategorycodes-export.csv", description="自定义编码 CSV")

    @field_validator("categories_csv", "store_lists_csv", "boosters_csv", "custom_codes_csv", mode="before")
    @classmethod
    def strip_strings(cls, v: Any) -> str:
        return _strip_str(v)


class CatalogSection(BaseModel):
    ignore_unique_per_country: bool = Field(default=True, description="重复检测时忽略「每国各一次」的编码")


class ExportSection(BaseModel):
    sheet_name_max_length: int = Field(default=31, ge=1, le=31, description="Excel 工作表名长度上限")
    code_directory_filename: str = Field(default="master-code-directory.csv")
    store_lists_filename: str = Field(default="store-lists.xlsx")


class AppSection(BaseModel):
    order_snapshot_filename: str = Field(default="order_entries.json", description="本地进行中订单快照")
    log_level: str = Field(default="INFO")

    @field_validator("log_level", mode="after")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return (v or "INFO").strip().upper()


class AppConfigSchema(BaseModel):
    """app_config.yaml 根结构。"""

    data: DataSection = Field(default_factory=DataSection)
    catalog: CatalogSection = Field(default_factory=CatalogSection)
    export: ExportSection = Field(default_factory=ExportSection)
    app: AppSection = Field(default_factory=AppSection)


# ----- 运行时路径 -----


class RunConfigSchema(BaseModel):
    """运行时路径配置：CSV 资源目录、文档库目录、输出目录、日志目录。"""

    data_dir: Path = Field(description="CSV 兜底资源目录")
    store_dir: Path = Field(description="JSON 文档库目录")
    output_dir: Path = Field(description="导出文件目录")
    log_dir: Path = Field(description="日志文件目录")
    order_snapshot_filename: str = Field(default="order_entries.json")

    @property
    def order_snapshot_path(self) -> Path:
        return self.store_dir / self.order_snapshot_filename

    model_config = {"frozen": False}
