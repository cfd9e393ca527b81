"""排序引擎 -- 拖拽排序的数值排序键

显示顺序：优先级权重升序 → sort_order 升序 → 创建时间倒序。
移动任务时只改写被移动任务的排序键：
- 移到最前：剩余元素最小键 - 10
- 移到最后：剩余元素最大键 + 10
- 移到中间：相邻两键的向下取整平均值；与任一相邻键相同则整体重排
整体重排按完整显示顺序重新赋值 index * 10。
"""

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from .config import ORDER_KEY_MAGNITUDE_LIMIT, ORDER_KEY_SPAN_LIMIT, ORDER_KEY_STEP
from .models.enums import PRIORITY_SORT_RANK
from .models.task import Task


class MovePlan(BaseModel):
    """一次移动的计算结果"""

    new_key: int | None = Field(default=None, description="新的排序键；需要重排时为 None")
    renormalize: bool = Field(default=False, description="间距不足，需要整体重排")
    anchor_id: str = Field(description="目标位置的相邻任务 ID")
    place_after: bool = Field(default=False, description="True 表示放在 anchor 之后")


def display_key(task: Task) -> tuple[int, int, float]:
    """显示排序键"""
    return (
        PRIORITY_SORT_RANK[task.priority],
        task.sort_order,
        -task.created_at.timestamp(),
    )


def sort_for_display(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=display_key)


def next_leading_key(tasks: Iterable[Task]) -> int:
    """新任务的排序键：比现有最小值还小 1，使其排在最前"""
    return min((t.sort_order for t in tasks), default=0) - 1


def plan_move(
    section: Sequence[Task],
    task_id: str,
    destination: int,
) -> MovePlan | None:
    """计算移动方案

    Args:
        section: 当前显示的同优先级子序列（已按显示顺序排列）
        task_id: 被移动的任务
        destination: 移除被移动任务后，它在子序列中的目标下标

    Returns:
        MovePlan；移动无效（任务不在子序列、下标越界、跨优先级）时返回 None
    """
    moved = next((t for t in section if t.task_id == task_id), None)
    if moved is None:
        return None

    others = [t for t in section if t.task_id != task_id]
    if not others or not 0 <= destination <= len(others):
        return None

    # 跨优先级拖拽不支持：目标位置两侧的任务必须与被移动任务同优先级
    neighbors = others[max(destination - 1, 0) : destination + 1]
    if any(n.priority != moved.priority for n in neighbors):
        return None

    if destination < len(others):
        anchor_id, place_after = others[destination].task_id, False
    else:
        anchor_id, place_after = others[-1].task_id, True

    if destination == 0:
        new_key = min(t.sort_order for t in others) - ORDER_KEY_STEP
    elif destination == len(others):
        new_key = max(t.sort_order for t in others) + ORDER_KEY_STEP
    else:
        before = others[destination - 1].sort_order
        after = others[destination].sort_order
        new_key = (before + after) // 2
        if new_key in (before, after):
            return MovePlan(renormalize=True, anchor_id=anchor_id, place_after=place_after)

    return MovePlan(new_key=new_key, anchor_id=anchor_id, place_after=place_after)


def renormalize(
    tasks: Sequence[Task],
    moved_id: str | None = None,
    anchor_id: str | None = None,
    place_after: bool = False,
) -> list[Task]:
    """按完整显示顺序重新赋值排序键 index * 10

    如果给出 moved_id 和 anchor_id，先把被移动任务放到 anchor 前（或后），再赋值。
    返回的列表保持 tasks 原有顺序，只替换排序键发生变化的记录。
    """
    order = sort_for_display(tasks)

    if moved_id is not None and anchor_id is not None and moved_id != anchor_id:
        moved = next((t for t in order if t.task_id == moved_id), None)
        if moved is not None:
            order.remove(moved)
            anchor_index = next(
                (i for i, t in enumerate(order) if t.task_id == anchor_id), None
            )
            if anchor_index is None:
                order.append(moved)
            else:
                order.insert(anchor_index + 1 if place_after else anchor_index, moved)

    new_keys = {t.task_id: index * ORDER_KEY_STEP for index, t in enumerate(order)}
    return [
        t if t.sort_order == new_keys[t.task_id]
        else t.model_copy(update={"sort_order": new_keys[t.task_id]})
        for t in tasks
    ]


def keys_degraded(
    tasks: Iterable[Task],
    span_limit: int = ORDER_KEY_SPAN_LIMIT,
    magnitude_limit: int = ORDER_KEY_MAGNITUDE_LIMIT,
) -> bool:
    """排序键跨度或绝对值是否已超出阈值（反复首尾插入导致漂移）"""
    keys = [t.sort_order for t in tasks]
    if not keys:
        return False
    if max(keys) - min(keys) > span_limit:
        return True
    return any(abs(k) > magnitude_limit for k in keys)
