"""下单向导相关模型：品类选择、单个「品类 × 国家」的配置、订单行。"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_ALIASED = ConfigDict(populate_by_name=True, extra="ignore")


class CategorySelection(BaseModel):
    """第一步选中的品类及要订阅的国家（多国品类可只选部分国家）。"""

    category_id: str = Field(alias="categoryId")
    countries: list[str] = Field(default_factory=list)

    model_config = _ALIASED


class CategoryConfig(BaseModel):
    """第二步：某品类在某国家下选择的门店清单、加购零售商与采集周期。"""

    category_id: str = Field(alias="categoryId")
    category_name: str = Field(alias="categoryName")
    country: str
    selected_store_lists: list[str] = Field(default_factory=list, alias="selectedStoreLists", description="门店清单名称")
    selected_boosters: list[str] = Field(default_factory=list, alias="selectedBoosters", description="加购零售商 ID")
    start_date: date | None = Field(default=None, alias="startDate")
    end_date: date | None = Field(default=None, alias="endDate")
    collection_notes: str = Field(default="", alias="collectionNotes")
    proceed_without_list: bool = Field(default=False, alias="proceedWithoutList")

    model_config = _ALIASED

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def empty_date_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def key(self) -> str:
        return f"{self.category_id}::{self.country}"

    @property
    def label(self) -> str:
        return f"{self.category_name} ({self.country})"


class OrderEntry(BaseModel):
    """订单表中的一行：标准清单里的一个零售商，或一个加购零售商。"""

    id: str
    category: str
    country: str
    retailer: str
    type: Literal["standard", "booster"]
    store_list_name: str | None = Field(default=None, alias="storeListName")
    weekly_quota: int | None = Field(default=None, alias="weeklyQuota")
    monthly_quota: int | None = Field(default=None, alias="monthlyQuota")
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    collection_notes: str = Field(default="", alias="collectionNotes")

    model_config = _ALIASED


class RollupRow(BaseModel):
    """已提交订单按「品类 (国家)」汇总。"""

    label: str
    standard: int = 0
    booster: int = 0
    monthly_total: int = Field(default=0, alias="monthlyTotal")

    model_config = _ALIASED


class SummaryRow(BaseModel):
    """配置页右侧汇总表的一行；加购零售商无配额信息。"""

    retailer: str
    type: Literal["Standard", "Booster"]
    weekly_quota: int = Field(default=0, alias="weeklyQuota")
    monthly_quota: int = Field(default=0, alias="monthlyQuota")

    model_config = _ALIASED


class SubmittedOrder(BaseModel):
    """正式提交到文档库的订单：提交人、提交时间与全部订单行。"""

    id: str = Field(default="", description="文档 ID")
    submitted_by: str = Field(default="", alias="submittedBy", description="提交人姓名")
    submitted_by_email: str = Field(default="", alias="submittedByEmail")
    submitted_at: datetime = Field(alias="submittedAt", description="提交时间（UTC）")
    status: Literal["submitted"] = Field(default="submitted")
    entries: list[OrderEntry] = Field(default_factory=list)

    model_config = _ALIASED
