"""查询引擎 -- 过滤 + 排序视图，带结果缓存

过滤顺序：标题关键词（不区分大小写）→ 优先级精确匹配 → 标签包含。
缓存命中需要同时满足：
- 过滤参数三元组不变
- 未被标记为 dirty
- 源任务列表按内容相等（可捕获不改变顺序的原位字段修改）
"""

from collections.abc import Sequence

from .models.enums import Priority
from .models.task import Task
from .ordering import sort_for_display

_QueryKey = tuple[str, Priority | None, str | None]


class QueryEngine:
    """单条目结果缓存的查询引擎"""

    def __init__(self) -> None:
        self._key: _QueryKey | None = None
        self._source: tuple[Task, ...] = ()
        self._result: tuple[Task, ...] = ()
        self._dirty = True
        self.hits = 0
        self.misses = 0

    def invalidate(self) -> None:
        """标记缓存失效（任务列表发生变更时调用）"""
        self._dirty = True

    def filtered_and_sorted(
        self,
        tasks: Sequence[Task],
        search_text: str = "",
        priority: Priority | None = None,
        tag_id: str | None = None,
    ) -> list[Task]:
        """获取过滤并排序后的任务列表

        Args:
            tasks: 当前任务列表
            search_text: 标题关键词，空串表示不过滤
            priority: 优先级筛选（可选）
            tag_id: 标签筛选（可选）

        Returns:
            新列表，调用方可自由修改
        """
        key: _QueryKey = (search_text, priority, tag_id)
        source = tuple(tasks)

        if not self._dirty and key == self._key and source == self._source:
            self.hits += 1
            return list(self._result)

        self.misses += 1
        result = _apply_filters(source, search_text, priority, tag_id)
        self._key = key
        self._source = source
        self._result = tuple(sort_for_display(result))
        self._dirty = False
        return list(self._result)


def _apply_filters(
    tasks: Sequence[Task],
    search_text: str,
    priority: Priority | None,
    tag_id: str | None,
) -> list[Task]:
    result = list(tasks)
    if search_text:
        needle = search_text.casefold()
        result = [t for t in result if needle in t.title.casefold()]
    if priority is not None:
        result = [t for t in result if t.priority == priority]
    if tag_id is not None:
        result = [t for t in result if tag_id in t.tag_ids]
    return result
