"""TodoTool Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .container import Snapshot, TodoData
from .enums import (
    IMPORTANT_PRIORITIES,
    PRIORITY_DISPLAY_NAMES,
    PRIORITY_SORT_RANK,
    QUADRANT_GRID_ORDER,
    TAG_COLOR_DISPLAY_NAMES,
    ImportMode,
    LoadSource,
    MutationStatus,
    Priority,
    Quadrant,
    TagColor,
)
from .quadrant import derive_quadrant, is_important, is_urgent
from .results import DecodeReport, ImportResult, MutationResult
from .task import Tag, Task, new_id
from .timestamp import (
    Timestamp,
    format_timestamp,
    normalize_timestamp,
    parse_timestamp,
    utc_now,
)

__all__ = [
    # 枚举
    "Priority",
    "TagColor",
    "Quadrant",
    "ImportMode",
    "MutationStatus",
    "LoadSource",
    # 映射表
    "PRIORITY_SORT_RANK",
    "PRIORITY_DISPLAY_NAMES",
    "TAG_COLOR_DISPLAY_NAMES",
    "IMPORTANT_PRIORITIES",
    "QUADRANT_GRID_ORDER",
    # 记录
    "Task",
    "Tag",
    "new_id",
    # 容器
    "TodoData",
    "Snapshot",
    # 象限
    "derive_quadrant",
    "is_important",
    "is_urgent",
    # 结果
    "MutationResult",
    "ImportResult",
    "DecodeReport",
    # 时间戳
    "Timestamp",
    "utc_now",
    "format_timestamp",
    "parse_timestamp",
    "normalize_timestamp",
]
