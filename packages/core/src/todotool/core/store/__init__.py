"""TodoTool Core Store -- JSON 文件持久化实现

提供工厂函数创建并加载 TodoStore。
"""

from pathlib import Path

from ..config import load_store_config
from .change_hub import ChangeHub
from .durable_file import DurableFile
from .importer import ImportPlan, plan_import
from .todo_store import TodoStore


async def open_store(
    data_dir: str | Path | None = None,
    *,
    history_depth: int | None = None,
    hub: ChangeHub | None = None,
) -> TodoStore:
    """创建 TodoStore 并加载数据

    Args:
        data_dir: 数据目录，默认读取 TODOTOOL_DATA_DIR
        history_depth: 历史栈深度，默认读取 TODOTOOL_HISTORY_DEPTH
        hub: 变更发布器，默认新建

    Returns:
        已加载的 TodoStore 实例
    """
    config = load_store_config()
    path = Path(data_dir) if data_dir is not None else config.data_dir

    # 确保数据目录存在
    path.mkdir(parents=True, exist_ok=True)

    store = TodoStore(
        path,
        history_depth=history_depth or config.history_depth,
        hub=hub,
    )
    await store.load()
    return store


__all__ = [
    "TodoStore",
    "ChangeHub",
    "DurableFile",
    "ImportPlan",
    "plan_import",
    "open_store",
]
