"""CLI 入口模块 -- python -m todotool.core <command>

支持的命令：
  verify                      加载数据并报告数据来源与记录数
  export <path>               导出主文件到指定路径
  import <path> [merge|replace]  从容器文件导入任务（默认 merge）
"""

import asyncio
import sys
from pathlib import Path

from .config import load_store_config
from .exceptions import MalformedImportError, StoreError
from .logging_config import setup_logging
from .models.enums import ImportMode

USAGE = """用法: python -m todotool.core <command>
命令:
  verify                         加载数据并报告数据来源与记录数
  export <path>                  导出主文件到指定路径
  import <path> [merge|replace]  从容器文件导入任务（默认 merge）"""


def main(argv: list[str] | None = None) -> int:
    """CLI 主入口，返回进程退出码"""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(USAGE)
        return 1

    setup_logging()
    command, rest = args[0], args[1:]

    if command == "verify" and not rest:
        return asyncio.run(verify())
    if command == "export" and len(rest) == 1:
        return asyncio.run(export_to(Path(rest[0])))
    if command == "import" and len(rest) in (1, 2):
        mode_name = rest[1] if len(rest) == 2 else ImportMode.MERGE.value
        try:
            mode = ImportMode(mode_name)
        except ValueError:
            print(f"未知导入模式: {mode_name}")
            return 1
        return asyncio.run(import_from(Path(rest[0]), mode))

    print(f"未知命令或参数错误: {' '.join(args)}")
    print(USAGE)
    return 1


async def verify() -> int:
    """加载数据并报告状态"""
    from .store import TodoStore

    config = load_store_config()
    print(f"数据目录: {config.data_dir}")

    store = TodoStore(config.data_dir, history_depth=config.history_depth)
    source = await store.load()
    print(f"数据来源: {source.value}")
    print(f"任务数: {len(store.tasks)}（已完成 {sum(t.is_completed for t in store.tasks)}）")
    print(f"标签数: {len(store.tags)}")
    return 0


async def export_to(target: Path) -> int:
    """导出主文件字节"""
    from .store import open_store

    store = await open_store()
    try:
        content = await store.export_data()
        target.write_bytes(content)
    except (StoreError, OSError) as e:
        print(f"导出失败: {e}")
        return 1
    print(f"已导出 {len(store.tasks)} 个任务到 {target}")
    return 0


async def import_from(source: Path, mode: ImportMode) -> int:
    """从容器文件导入"""
    from .store import open_store

    try:
        raw = source.read_bytes()
    except OSError as e:
        print(f"无法读取导入文件: {e}")
        return 1

    store = await open_store()
    try:
        result = await store.import_data(raw, mode)
    except MalformedImportError as e:
        print(f"导入失败: {e}")
        return 1

    print(f"导入完成（{mode.value}）：新增 {result.added}，跳过 {result.skipped}")
    if not result.persisted:
        print(f"警告：写入磁盘失败 -- {result.error}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
