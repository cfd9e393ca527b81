"""四象限推导 -- 由优先级和到期日计算，不存储

important = priority ∈ {high, medium}
urgent    = 有到期日，且到期日所在的本地日历日 ≤ 今天
"""

from datetime import date

from .enums import IMPORTANT_PRIORITIES, Quadrant
from .task import Task


def is_important(task: Task) -> bool:
    return task.priority in IMPORTANT_PRIORITIES


def is_urgent(task: Task, today: date | None = None) -> bool:
    if task.due_date is None:
        return False
    if today is None:
        today = date.today()
    return task.due_date.astimezone().date() <= today


def derive_quadrant(task: Task, today: date | None = None) -> Quadrant:
    """计算任务所属象限（纯函数）

    Args:
        task: 任务
        today: 参照日期，默认取本地今天

    Returns:
        Quadrant 枚举值
    """
    return Quadrant.from_flags(is_important(task), is_urgent(task, today))
