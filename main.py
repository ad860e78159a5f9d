"""
零售数据采集下单与目录管理入口：浏览品类/门店清单/加购零售商、编码目录与重复编码报告、
导出、从 CSV 初始化文档库、授权用户管理、提交与查看订单。

流程：init_config -> build_services -> 子命令处理函数；子命令解析与各处理函数可单独单测。
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from app import (
    format_categories,
    format_duplicate_groups,
    format_order_entries,
    format_rollup,
    format_store_list,
    format_submitted_orders,
    format_table,
    read_order_request,
)
from core import Catalog, CatalogAdmin, JsonDocumentStore, StoreError
from core.codes import build_code_records, filter_code_records, find_duplicate_groups, list_code_countries
from core.config import get_app_config, get_data_dir, get_log_dir, get_output_dir, get_store_dir, load_app_config
from core.export import ExportError, write_csv, write_store_lists_workbook
from core.grouping import locale_key
from core.orders import (
    OrderSnapshot,
    OrderValidationError,
    apply_to_all,
    build_order_entries,
    category_rollup,
    clear_selection,
    count_needing_attention,
    delete_submitted_order,
    selection_summary,
    submit_order,
)
from core.search import search_categories, search_store_lists, search_submitted_orders, search_users
from core.seed import seed_store_from_csv
from core.store import (
    AUTHORIZED_USERS,
    NotAuthorizedError,
    add_authorized_user,
    fetch_authorized_users,
    fetch_category_rows,
    fetch_custom_codes,
    fetch_submitted_orders,
    is_authorized,
)
from models.schemas import RunConfigSchema

logger = logging.getLogger(__name__)


class Services:
    """一次运行内共享的运行配置、文档库与目录缓存。"""

    def __init__(self, config: RunConfigSchema) -> None:
        self.config = config
        self.store = JsonDocumentStore(config.store_dir)
        self.catalog = Catalog(self.store, config.data_dir, get_app_config().data)
        self.snapshot = OrderSnapshot(config.order_snapshot_path)
        self.admin = CatalogAdmin(self.store, self.catalog)


def init_config(
    *,
    data_dir: Path | None = None,
    store_dir: Path | None = None,
    output_dir: Path | None = None,
    log_dir: Path | None = None,
) -> RunConfigSchema:
    """
    初始化配置与日志：加载应用配置、配置 logging，返回 RunConfigSchema。

    Args:
        data_dir: CSV 兜底资源目录，默认 get_data_dir()。
        store_dir: 文档库目录，默认 get_store_dir()。
        output_dir: 导出目录，默认 get_output_dir()。
        log_dir: 日志目录，默认 get_log_dir()。
    """
    app_cfg = load_app_config().app
    config = RunConfigSchema(
        data_dir=data_dir or get_data_dir(),
        store_dir=store_dir or get_store_dir(),
        output_dir=output_dir or get_output_dir(),
        log_dir=log_dir or get_log_dir(),
        order_snapshot_filename=app_cfg.order_snapshot_filename,
    )
    _setup_logging(config.log_dir, app_cfg.log_level)
    logger.info("配置已加载: data_dir=%s, store_dir=%s", config.data_dir, config.store_dir)
    return config


def _setup_logging(log_dir: Path, level: str = "INFO") -> None:
    """
    将日志按日期写入 log_dir，文件名 retail_orders_YYYYMMDD.log。
    若已存在指向当日日志文件的 FileHandler 则不再添加，避免重复。
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    today = datetime.now().strftime("%Y%m%d")
    log_file = log_dir / f"retail_orders_{today}.log"
    log_path = str(log_file.resolve())
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == log_path:
            return
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(handler)


# ----- 子命令 -----


def cmd_categories(services: Services, args: argparse.Namespace) -> int:
    categories = search_categories(services.catalog.load_categories(), args.search or "")
    print(format_categories(categories))
    print(f"\n共 {len(categories)} 个品类（* 为高级品类）")
    return 0


def cmd_store_lists(services: Services, args: argparse.Namespace) -> int:
    lists = search_store_lists(services.catalog.load_store_lists(), args.search or "")
    if not lists:
        print("No store lists match your search.")
        return 0
    print("\n\n".join(format_store_list(sl) for sl in lists))
    return 0


def cmd_boosters(services: Services, args: argparse.Namespace) -> int:
    boosters = services.catalog.load_boosters()
    if args.country:
        boosters = [b for b in boosters if b.country == args.country]
    print(format_table(("ID", "Booster", "Country"), [(b.id, b.name, b.country) for b in boosters]))
    return 0


def _code_records(services: Services):
    return build_code_records(fetch_category_rows(services.store), fetch_custom_codes(services.store))


def cmd_codes(services: Services, args: argparse.Namespace) -> int:
    all_records = _code_records(services)
    if args.countries:
        print("\n".join(list_code_countries(all_records)))
        return 0
    records = filter_code_records(all_records, args.search or "", args.country or "")
    if args.export is not None:
        # --export 不带路径时写到输出目录下的默认文件名
        out = (
            Path(args.export)
            if args.export
            else services.config.output_dir / get_app_config().export.code_directory_filename
        )
        try:
            path = write_csv(out, records)
        except ExportError as e:
            print(e)
            return 1
        print(f"已导出: {path}")
        return 0
    rows = [(r.category, r.code, r.code_type, r.country, r.department, r.customer) for r in records]
    print(format_table(("Category", "Code", "Code Type", "Country", "Department", "Customer"), rows))
    print(f"\nDirectory ({len(records)} results)")
    return 0


def cmd_duplicates(services: Services, args: argparse.Namespace) -> int:
    ignore = get_app_config().catalog.ignore_unique_per_country
    if args.include_unique_per_country:
        ignore = False
    groups = find_duplicate_groups(_code_records(services), ignore_unique_per_country=ignore)
    print(format_duplicate_groups(groups))
    return 0


def cmd_export_store_lists(services: Services, args: argparse.Namespace) -> int:
    lists = services.catalog.load_store_lists()
    wanted = set(args.names or [])
    if wanted:
        lists = [sl for sl in lists if sl.name in wanted or sl.key in wanted]
    export_cfg = get_app_config().export
    out = Path(args.out) if args.out else services.config.output_dir / export_cfg.store_lists_filename
    try:
        path = write_store_lists_workbook(out, lists, max_title_length=export_cfg.sheet_name_max_length)
    except ExportError as e:
        print(e)
        return 1
    print(f"已导出 {len(lists)} 个清单: {path}")
    return 0


def cmd_seed(services: Services, args: argparse.Namespace) -> int:
    result = seed_store_from_csv(
        services.store, services.config.data_dir, force=args.force, data=get_app_config().data
    )
    for collection, count in result.written.items():
        status = "已存在，跳过" if result.skipped[collection] else f"写入 {count} 条"
        print(f"{collection}: {status}")
    services.catalog.invalidate_all()
    return 0


def cmd_users(services: Services, args: argparse.Namespace) -> int:
    if args.action == "list":
        users = search_users(fetch_authorized_users(services.store), args.search or "")
        users.sort(key=lambda u: locale_key(u.name))
        print(format_table(("ID", "Name", "Email"), [(u.id, u.name, u.email) for u in users]))
    elif args.action == "add":
        user_id = add_authorized_user(services.store, args.name, args.email)
        print(f"已添加: {user_id}")
    elif args.action == "remove":
        services.store.delete(AUTHORIZED_USERS, args.id)
        print(f"已删除: {args.id}")
    elif args.action == "check":
        ok = is_authorized(services.store, args.email)
        print("已授权" if ok else "未授权")
        return 0 if ok else 1
    return 0


def _edit_configs(configs: list, apply_from: int | None, clear: list[int] | None) -> list:
    """按 1 起的配置序号执行「应用到全部」与「清空选择」。"""
    for number in ([apply_from] if apply_from is not None else []) + (clear or []):
        if not 1 <= number <= len(configs):
            raise ValueError(f"配置序号 {number} 超出范围 1-{len(configs)}")
    if apply_from is not None:
        configs = apply_to_all(configs, apply_from - 1)
    for number in clear or []:
        configs = clear_selection(configs, number - 1)
    return configs


def cmd_orders(services: Services, args: argparse.Namespace) -> int:
    snapshot = services.snapshot
    if args.action == "add":
        boosters = services.catalog.load_boosters()
        store_lists = services.catalog.load_store_lists()
        configs = read_order_request(Path(args.file), services.catalog.load_categories(), boosters)
        configs = _edit_configs(configs, args.apply_to_all, args.clear)
        pending = count_needing_attention(configs)
        if pending:
            print(f"{pending} 个配置需要处理。")
        if args.preview:
            rows = [
                (r.retailer, r.type, r.weekly_quota, r.monthly_quota)
                for r in selection_summary(configs, store_lists, boosters)
            ]
            print(format_table(("Retailer", "Type", "Weekly", "Monthly"), rows))
            print(f"\n{len(configs)} 个配置，{len(rows)} 个零售商")
            return 0
        try:
            entries = build_order_entries(configs, store_lists, boosters)
        except OrderValidationError as e:
            print("订单行未添加：")
            for w in e.warnings:
                print(f"  - {w}")
            return 1
        if not entries:
            print("没有生成任何订单行。")
            return 1
        snapshot.append(entries)
        print(f"已添加 {len(entries)} 条订单行。")
    elif args.action == "list":
        print(format_order_entries(snapshot.load()))
    elif args.action == "rollup":
        print(format_rollup(category_rollup(snapshot.load())))
    elif args.action == "remove":
        if not snapshot.remove(args.id):
            print(f"未找到订单行: {args.id}")
            return 1
        print(f"已删除: {args.id}")
    elif args.action == "clear":
        snapshot.clear()
        print("已清空。")
    elif args.action == "submit":
        order = submit_order(services.store, snapshot, args.name, args.email)
        print(f"已提交订单 {order.id}（{len(order.entries)} 行）。")
    elif args.action == "submitted":
        orders = search_submitted_orders(fetch_submitted_orders(services.store), args.search or "")
        print(format_submitted_orders(orders))
    elif args.action == "delete-submitted":
        delete_submitted_order(services.store, args.id, args.email)
        print(f"已删除已提交订单: {args.id}")
    return 0


# ----- 目录维护 -----

# (命令行参数名, 文档字段)；update 只提交命令行上给出的字段
CATEGORY_FIELDS = (
    ("name", "name"),
    ("country", "country"),
    ("department", "department"),
    ("sub_department", "subDepartment"),
    ("description", "description"),
    ("example_brands", "exampleBrands"),
    ("notes", "notes"),
    ("number", "number"),
    ("premium", "premium"),
)
CUSTOM_CODE_FIELDS = (
    ("code", "categoryCode"),
    ("customer", "customer"),
    ("category", "category"),
    ("submitted_by", "submittedBy"),
    ("notes", "notes"),
    ("job_ids", "jobIds"),
    ("code_type", "codeType"),
)


def _given(args: argparse.Namespace, fields: tuple[tuple[str, str], ...]) -> dict[str, str]:
    return {key: getattr(args, dest) for dest, key in fields if getattr(args, dest, None) is not None}


def _admin_category(admin: CatalogAdmin, services: Services, args: argparse.Namespace) -> str:
    if args.action == "list":
        rows = [(r.id, r.name, r.country, r.number) for r in fetch_category_rows(services.store)]
        return format_table(("ID", "Category", "Country", "Code"), rows)
    if args.action == "add":
        return f"已添加品类: {admin.add_category(_given(args, CATEGORY_FIELDS))}"
    if args.action == "update":
        row = admin.update_category(args.id, _given(args, CATEGORY_FIELDS))
        return f"已更新品类: {row.name} ({row.country})"
    admin.delete_category(args.id)
    return f"已删除品类: {args.id}"


def _admin_store_list(admin: CatalogAdmin, args: argparse.Namespace) -> str:
    if args.action == "add":
        return f"已添加门店清单: {admin.add_store_list(args.name, args.country)}"
    if args.action == "delete":
        admin.delete_store_list(args.id)
        return f"已删除门店清单: {args.id}"
    if args.action == "add-retailer":
        r = admin.add_retailer(args.id, args.retailer, args.weekly, args.monthly)
        return f"已添加零售商: {r.retailer}（{r.weekly_quota}/{r.monthly_quota}）"
    if args.action == "update-retailer":
        changes = {
            k: v
            for k, v in (("retailer", args.retailer), ("weeklyQuota", args.weekly), ("monthlyQuota", args.monthly))
            if v is not None
        }
        r = admin.update_retailer(args.id, args.position - 1, changes)
        return f"已更新零售商: {r.retailer}（{r.weekly_quota}/{r.monthly_quota}）"
    r = admin.remove_retailer(args.id, args.position - 1)
    return f"已移除零售商: {r.retailer}"


def _admin_booster(admin: CatalogAdmin, args: argparse.Namespace) -> str:
    if args.action == "add":
        return f"已添加加购零售商: {admin.add_booster(args.name, args.country)}"
    if args.action == "update":
        changes = {k: v for k, v in (("name", args.name), ("country", args.country)) if v is not None}
        b = admin.update_booster(args.id, changes)
        return f"已更新加购零售商: {b.name} ({b.country})"
    admin.delete_booster(args.id)
    return f"已删除加购零售商: {args.id}"


def _admin_custom_code(admin: CatalogAdmin, services: Services, args: argparse.Namespace) -> str:
    if args.action == "list":
        rows = [(c.id, c.category_code, c.category, c.customer, c.code_type) for c in fetch_custom_codes(services.store)]
        return format_table(("ID", "Code", "Category", "Customer", "Code Type"), rows)
    if args.action == "add":
        return f"已添加自定义编码: {admin.add_custom_code(_given(args, CUSTOM_CODE_FIELDS))}"
    if args.action == "update":
        code = admin.update_custom_code(args.id, _given(args, CUSTOM_CODE_FIELDS))
        return f"已更新自定义编码: {code.category_code}"
    admin.delete_custom_code(args.id)
    return f"已删除自定义编码: {args.id}"


def cmd_admin(services: Services, args: argparse.Namespace) -> int:
    """目录维护，仅授权用户可执行。"""
    if not is_authorized(services.store, args.email):
        raise NotAuthorizedError(f"{args.email or '(empty)'} 无权维护目录数据")
    admin = services.admin
    if args.entity == "category":
        message = _admin_category(admin, services, args)
    elif args.entity == "store-list":
        message = _admin_store_list(admin, args)
    elif args.entity == "booster":
        message = _admin_booster(admin, args)
    else:
        message = _admin_custom_code(admin, services, args)
    print(message)
    return 0


def _add_field_options(parser: argparse.ArgumentParser, fields: tuple[tuple[str, str], ...]) -> None:
    for dest, _ in fields:
        if dest == "premium":
            parser.add_argument("--premium", choices=("true", "false"), default=None)
        else:
            parser.add_argument(f"--{dest.replace('_', '-')}", dest=dest, default=None)


def _add_admin_parser(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("admin", help="目录维护：品类、门店清单、加购零售商、自定义编码（需授权用户）")
    p.add_argument("--email", required=True, help="执行操作的授权用户邮箱")
    entities = p.add_subparsers(dest="entity", required=True)

    cat = entities.add_parser("category").add_subparsers(dest="action", required=True)
    cat.add_parser("list")
    _add_field_options(cat.add_parser("add"), CATEGORY_FIELDS)
    a = cat.add_parser("update")
    a.add_argument("id")
    _add_field_options(a, CATEGORY_FIELDS)
    cat.add_parser("delete").add_argument("id")

    sl = entities.add_parser("store-list").add_subparsers(dest="action", required=True)
    a = sl.add_parser("add")
    a.add_argument("name")
    a.add_argument("country")
    sl.add_parser("delete").add_argument("id")
    a = sl.add_parser("add-retailer")
    a.add_argument("id")
    a.add_argument("retailer")
    a.add_argument("--weekly", default="0")
    a.add_argument("--monthly", default="0")
    a = sl.add_parser("update-retailer", help="按清单内序号（1 起）修改零售商")
    a.add_argument("id")
    a.add_argument("position", type=int)
    a.add_argument("--retailer", default=None)
    a.add_argument("--weekly", default=None)
    a.add_argument("--monthly", default=None)
    a = sl.add_parser("remove-retailer")
    a.add_argument("id")
    a.add_argument("position", type=int)

    bo = entities.add_parser("booster").add_subparsers(dest="action", required=True)
    a = bo.add_parser("add")
    a.add_argument("name")
    a.add_argument("country")
    a = bo.add_parser("update")
    a.add_argument("id")
    a.add_argument("--name", default=None)
    a.add_argument("--country", default=None)
    bo.add_parser("delete").add_argument("id")

    cc = entities.add_parser("custom-code").add_subparsers(dest="action", required=True)
    cc.add_parser("list")
    _add_field_options(cc.add_parser("add"), CUSTOM_CODE_FIELDS)
    a = cc.add_parser("update")
    a.add_argument("id")
    _add_field_options(a, CUSTOM_CODE_FIELDS)
    cc.add_parser("delete").add_argument("id")

    p.set_defaults(handler=cmd_admin)


def _parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """解析命令行参数；args 为 None 时使用 sys.argv，便于单测注入。"""
    parser = argparse.ArgumentParser(description="零售数据采集：下单与目录参考数据管理。")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("categories", help="浏览品类")
    p.add_argument("--search", default="")
    p.set_defaults(handler=cmd_categories)

    p = sub.add_parser("store-lists", help="浏览标准门店清单")
    p.add_argument("--search", default="")
    p.set_defaults(handler=cmd_store_lists)

    p = sub.add_parser("boosters", help="浏览加购零售商")
    p.add_argument("--country", default="")
    p.set_defaults(handler=cmd_boosters)

    p = sub.add_parser("codes", help="主编码目录")
    p.add_argument("--search", default="")
    p.add_argument("--country", default="")
    p.add_argument(
        "--export",
        nargs="?",
        const="",
        default=None,
        help="导出为 CSV；不给路径时写到输出目录下的 export.code_directory_filename",
    )
    p.add_argument("--countries", action="store_true", help="只列出编码目录中出现的国家")
    p.set_defaults(handler=cmd_codes)

    p = sub.add_parser("duplicates", help="重复编码报告")
    p.add_argument(
        "--include-unique-per-country",
        action="store_true",
        help="不忽略「每个国家各用一次」的编码",
    )
    p.set_defaults(handler=cmd_duplicates)

    p = sub.add_parser("export-store-lists", help="导出门店清单为 Excel（每个清单一个工作表）")
    p.add_argument("names", nargs="*", help="清单名称或 名称::国家；不指定则导出全部")
    p.add_argument("--out", default=None)
    p.set_defaults(handler=cmd_export_store_lists)

    p = sub.add_parser("seed", help="从 CSV 初始化文档库")
    p.add_argument("--force", action="store_true", help="集合已有数据时仍写入")
    p.set_defaults(handler=cmd_seed)

    p = sub.add_parser("users", help="授权用户管理")
    users = p.add_subparsers(dest="action", required=True)
    u = users.add_parser("list")
    u.add_argument("--search", default="")
    u = users.add_parser("add")
    u.add_argument("name")
    u.add_argument("email")
    u = users.add_parser("remove")
    u.add_argument("id")
    u = users.add_parser("check")
    u.add_argument("email")
    p.set_defaults(handler=cmd_users)

    p = sub.add_parser("orders", help="订单")
    orders = p.add_subparsers(dest="action", required=True)
    o = orders.add_parser("add", help="按 YAML 下单文件生成订单行并加入本地快照")
    o.add_argument("file")
    o.add_argument("--apply-to-all", type=int, default=None, metavar="N", help="把第 N 个配置的选择与周期复制到全部配置")
    o.add_argument("--clear", type=int, action="append", metavar="N", help="清空第 N 个配置的选择，可重复")
    o.add_argument("--preview", action="store_true", help="只显示所选零售商汇总，不加入快照")
    orders.add_parser("list")
    orders.add_parser("rollup")
    o = orders.add_parser("remove")
    o.add_argument("id")
    orders.add_parser("clear")
    o = orders.add_parser("submit", help="将本地快照作为一份订单正式提交")
    o.add_argument("--name", required=True)
    o.add_argument("--email", required=True)
    o = orders.add_parser("submitted", help="查看已提交订单")
    o.add_argument("--search", default="")
    o = orders.add_parser("delete-submitted", help="删除已提交订单（需授权用户）")
    o.add_argument("id")
    o.add_argument("--email", required=True)
    p.set_defaults(handler=cmd_orders)

    _add_admin_parser(sub)

    return parser.parse_args(args)


def main(args: list[str] | None = None) -> None:
    """入口：解析参数 -> 初始化配置 -> 执行子命令；写入失败或校验失败时以非零状态退出。"""
    parsed = _parse_args(args)
    services = Services(init_config())
    try:
        code = parsed.handler(services, parsed)
    except (StoreError, ValueError, RuntimeError) as e:
        logger.error("命令 %s 失败: %s", parsed.command, e)
        print(f"操作失败: {e}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
