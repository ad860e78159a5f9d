"""应用层：命令行输出格式化、下单文件读取。"""

from .file_io import read_order_request
from .output import (
    format_categories,
    format_duplicate_groups,
    format_order_entries,
    format_rollup,
    format_store_list,
    format_submitted_orders,
    format_table,
)

__all__ = [
    "format_categories",
    "format_duplicate_groups",
    "format_order_entries",
    "format_rollup",
    "format_store_list",
    "format_submitted_orders",
    "format_table",
    "read_order_request",
]
