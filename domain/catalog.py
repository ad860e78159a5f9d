"""目录参考数据模型（Pydantic V2）：品类、标准门店清单、加购零售商、自定义编码、授权用户。

字段名在 Python 侧使用 snake_case，外部 CSV / 文档库使用 camelCase 别名；
导出、落库时统一 model_dump(by_alias=True)。
"""

from __future__ import annotations

import math
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


def _strip_str(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip()


def to_int(v: Any) -> int:
    """尽力解析前导整数（"12abc" -> 12），失败返回 0。"""
    if isinstance(v, bool):
        return int(v)
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        return int(v) if math.isfinite(v) else 0
    m = _INT_PREFIX.match(_strip_str(v))
    return int(m.group(1)) if m else 0


def _as_bool(v: Any) -> bool:
    """仅字符串 "true"（忽略大小写）或布尔 True 视为真。"""
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    return str(v).strip().lower() == "true"


_ALIASED = ConfigDict(populate_by_name=True, extra="ignore")


# ----- 品类 -----


class CategoryRow(BaseModel):
    """品类原始行：一行对应「品类 × 国家」，同名品类可有多行。"""

    id: str = Field(default="", description="文档 ID / CSV 行 ID")
    name: str = Field(default="", description="品类名称，合并键（忽略大小写）")
    country: str = Field(default="", description="国家代码")
    department: str = Field(default="", description="部门")
    sub_department: str = Field(default="", alias="subDepartment", description="子部门")
    description: str = Field(default="", description="描述")
    example_brands: str = Field(default="", alias="exampleBrands", description="示例品牌，逗号分隔")
    notes: str = Field(default="", description="采集备注")
    number: str = Field(default="", description="品类编码")
    premium: bool = Field(default=False, description="是否高级品类")

    model_config = _ALIASED

    @field_validator(
        "id", "name", "country", "department", "sub_department", "description",
        "example_brands", "notes", "number", mode="before",
    )
    @classmethod
    def strip_strings(cls, v: Any) -> str:
        return _strip_str(v)

    @field_validator("premium", mode="before")
    @classmethod
    def parse_premium(cls, v: Any) -> bool:
        return _as_bool(v)


class Category(BaseModel):
    """合并后的品类：每个小写名称唯一一条，countries 无重复且保持首次出现顺序。"""

    id: str = Field(default="", description="品类 ID")
    name: str = Field(description="品类名称")
    countries: list[str] = Field(default_factory=list, description="可订阅的国家")
    department: str = Field(default="")
    sub_department: str = Field(default="", alias="subDepartment")
    description: str = Field(default="", description="多国描述以 ' | ' 拼接")
    example_brands: str = Field(default="", alias="exampleBrands", description="去重后以 ', ' 拼接")
    notes: str = Field(default="")
    number: str = Field(default="", description="多个不同编码以 ', ' 拼接")
    premium: bool = Field(default=False)

    model_config = _ALIASED


# ----- 标准门店清单 -----


class StoreListRetailer(BaseModel):
    """门店清单中的单个零售商及其周/月配额。"""

    id: str = Field(default="")
    retailer: str = Field(default="")
    weekly_quota: int = Field(default=0, alias="weeklyQuota")
    monthly_quota: int = Field(default=0, alias="monthlyQuota")

    model_config = _ALIASED

    @field_validator("id", "retailer", mode="before")
    @classmethod
    def strip_strings(cls, v: Any) -> str:
        return _strip_str(v)

    @field_validator("weekly_quota", "monthly_quota", mode="before")
    @classmethod
    def coerce_quota(cls, v: Any) -> int:
        return to_int(v)


class StoreList(BaseModel):
    """标准门店清单：名称 + 国家唯一。"""

    id: str = Field(default="", description="文档 ID，CSV 来源时为空")
    name: str
    country: str
    retailers: list[StoreListRetailer] = Field(default_factory=list)

    model_config = _ALIASED

    @property
    def key(self) -> str:
        return f"{self.name}::{self.country}"

    @property
    def total_weekly(self) -> int:
        return sum(r.weekly_quota for r in self.retailers)

    @property
    def total_monthly(self) -> int:
        return sum(r.monthly_quota for r in self.retailers)


# ----- 加购零售商 / 自定义编码 / 授权用户 -----


class Booster(BaseModel):
    id: str = Field(default="")
    name: str
    country: str

    model_config = _ALIASED


class CustomCategoryCode(BaseModel):
    """提交人临时录入的自定义品类编码，不绑定标准品类。"""

    id: str = Field(default="")
    category_code: str = Field(default="", alias="categoryCode")
    customer: str = Field(default="")
    category: str = Field(default="")
    submitted_by: str = Field(default="", alias="submittedBy")
    notes: str = Field(default="")
    job_ids: str = Field(default="", alias="jobIds")
    code_type: str = Field(default="Custom", alias="codeType")
    timestamp: str = Field(default="")

    model_config = _ALIASED

    @field_validator(
        "id", "category_code", "customer", "category", "submitted_by", "notes",
        "job_ids", "timestamp", mode="before",
    )
    @classmethod
    def strip_strings(cls, v: Any) -> str:
        return _strip_str(v)

    @field_validator("code_type", mode="before")
    @classmethod
    def default_code_type(cls, v: Any) -> str:
        return _strip_str(v) or "Custom"


class AuthorizedUser(BaseModel):
    id: str = Field(default="")
    name: str = Field(default="")
    email: str = Field(default="")

    model_config = _ALIASED

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> str:
        return _strip_str(v)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> str:
        return _strip_str(v).lower()


# ----- 编码目录 -----

CodeType = Literal["Standard", "Custom"]


class CodeRecord(BaseModel):
    """编码目录中的一行：标准编码来自品类行，自定义编码来自 customCategoryCodes。"""

    category: str = Field(default="")
    code: str = Field(description="编码值，重复检测的合并键")
    code_type: CodeType = Field(alias="codeType")
    country: str = Field(default="", description="自定义编码为空")
    department: str = Field(default="")
    customer: str = Field(default="--", description="标准编码为占位符 --")

    model_config = _ALIASED


class DuplicateGroup(BaseModel):
    """同一编码出现两次及以上的记录组，仅按需计算，不落库。"""

    code: str
    entries: list[CodeRecord] = Field(min_length=2)
