"""导入引擎 -- replace / merge 两种模式的纯计算

只计算导入后的 (tasks, tags)，由 TodoStore 在同一变更单元内提交。
"""

from pydantic import BaseModel, Field

from ..models.container import Snapshot, TodoData
from ..models.enums import ImportMode
from ..models.task import Tag, Task


class ImportPlan(BaseModel):
    """导入计算结果"""

    tasks: tuple[Task, ...] = Field(description="导入后的任务列表")
    tags: tuple[Tag, ...] = Field(description="导入后的标签列表")
    added: int = Field(ge=0, description="新增任务数")
    skipped: int = Field(ge=0, description="跳过的重复任务数")


def plan_import(
    current: Snapshot,
    incoming: TodoData,
    mode: ImportMode,
    duplicate_tasks: int = 0,
) -> ImportPlan:
    """计算导入结果

    两种模式都不修改或删除现有标签，只追加导入数据中 ID 未知的标签，
    使导入任务的标签引用可以解析。

    Args:
        current: 当前状态
        incoming: 已解码的导入容器
        mode: 导入模式
        duplicate_tasks: 导入文件内因 ID 重复在解码时被丢弃的任务数，计入 skipped

    Returns:
        ImportPlan
    """
    existing_tag_ids = {t.tag_id for t in current.tags}
    tags = current.tags + tuple(t for t in incoming.tags if t.tag_id not in existing_tag_ids)

    if mode == ImportMode.REPLACE:
        # 覆盖模式：任务列表整体替换
        return ImportPlan(
            tasks=tuple(incoming.todos),
            tags=tags,
            added=len(incoming.todos),
            skipped=duplicate_tasks,
        )

    # 合并模式：只添加不存在的任务，新任务插入到列表开头
    existing_task_ids = {t.task_id for t in current.tasks}
    new_tasks = tuple(t for t in incoming.todos if t.task_id not in existing_task_ids)

    return ImportPlan(
        tasks=new_tasks + current.tasks,
        tags=tags,
        added=len(new_tasks),
        skipped=len(incoming.todos) - len(new_tasks) + duplicate_tasks,
    )
