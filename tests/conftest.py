"""pytest 共享 fixture 与配置。"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# 保证项目根在 sys.path 中，便于导入 core / app / domain / models
_root = Path(__file__).resolve().parent.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from core.store import JsonDocumentStore  # noqa: E402

CATEGORIES_CSV = """id,name,country,department,subDepartment,description,exampleBrands,notes,number,premium
c1,Bottled Water,US,Beverages,Water,Still water,"Aquafina, Dasani",,101,false
c2,bottled water,CA,,Still,Sparkling water,"Dasani, Eska",Exclude private label,102,true
c3,Frozen Pizza,US,Frozen,Meals,Pizza,DiGiorno,,205,true
"""

STORE_LISTS_CSV = """id,name,country,retailer,weeklyQuota,monthlyQuota
s1,Grocery Core,US,Walmart,5,20
s2,Grocery Core,US,Kroger,3,12
s3,Grocery Core,CA,Loblaws,4,16
"""

BOOSTERS_CSV = """id,name,country
b1,Costco,US
b2,Metro,CA
"""

CUSTOM_CODES_CSV = """categoryCode,customer,category,submittedBy,notes,jobIds,codeType,timestamp
900,Northwind,Plant Milk,a@example.com,,J-1,Custom,2026-01-01
,Nobody,Empty Code,a@example.com,,J-2,Custom,2026-01-02
"""


@pytest.fixture
def csv_dir(tmp_path: Path) -> Path:
    """写入四个 CSV 兜底资源的临时目录。"""
    d = tmp_path / "data"
    d.mkdir()
    (d / "categories-export.csv").write_text(CATEGORIES_CSV, encoding="utf-8")
    (d / "storelists-export.csv").write_text(STORE_LISTS_CSV, encoding="utf-8")
    (d / "boosters-export.csv").write_text(BOOSTERS_CSV, encoding="utf-8")
    (d / "customcategorycodes-export.csv").write_text(CUSTOM_CODES_CSV, encoding="utf-8")
    return d


@pytest.fixture
def store(tmp_path: Path) -> JsonDocumentStore:
    return JsonDocumentStore(tmp_path / "store")
