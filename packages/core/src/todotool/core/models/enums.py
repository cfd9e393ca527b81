"""枚举定义

包含 Priority、TagColor、Quadrant、ImportMode、MutationStatus、LoadSource 枚举，
以及按成员穷举的映射表（排序权重、显示名称、行动建议）。
新增枚举成员时必须同步补齐每张映射表，test_models 会校验完整性。
"""

from enum import StrEnum


class Priority(StrEnum):
    """任务优先级：high > medium > low > none"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


# 排序权重：越小越靠前
PRIORITY_SORT_RANK: dict[Priority, int] = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2,
    Priority.NONE: 3,
}

PRIORITY_DISPLAY_NAMES: dict[Priority, str] = {
    Priority.HIGH: "高",
    Priority.MEDIUM: "中",
    Priority.LOW: "低",
    Priority.NONE: "无",
}

# 重要象限判定
IMPORTANT_PRIORITIES: set[Priority] = {Priority.HIGH, Priority.MEDIUM}


class TagColor(StrEnum):
    """标签颜色"""

    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    PURPLE = "purple"
    PINK = "pink"
    GRAY = "gray"


TAG_COLOR_DISPLAY_NAMES: dict[TagColor, str] = {
    TagColor.RED: "红色",
    TagColor.ORANGE: "橙色",
    TagColor.YELLOW: "黄色",
    TagColor.GREEN: "绿色",
    TagColor.BLUE: "蓝色",
    TagColor.PURPLE: "紫色",
    TagColor.PINK: "粉色",
    TagColor.GRAY: "灰色",
}


class Quadrant(StrEnum):
    """四象限分类（重要性 × 紧急性）

    - URGENT_IMPORTANT: 重要且紧急 → 立即执行
    - NOT_URGENT_IMPORTANT: 重要但不紧急 → 计划安排
    - URGENT_NOT_IMPORTANT: 不重要但紧急 → 考虑委托
    - NOT_URGENT_NOT_IMPORTANT: 不重要且不紧急 → 考虑删除
    """

    URGENT_IMPORTANT = "urgent_important"
    NOT_URGENT_IMPORTANT = "not_urgent_important"
    URGENT_NOT_IMPORTANT = "urgent_not_important"
    NOT_URGENT_NOT_IMPORTANT = "not_urgent_not_important"

    @property
    def display_name(self) -> str:
        return QUADRANT_DISPLAY_NAMES[self]

    @property
    def short_name(self) -> str:
        return QUADRANT_SHORT_NAMES[self]

    @property
    def action_hint(self) -> str:
        return QUADRANT_ACTION_HINTS[self]

    @property
    def is_important(self) -> bool:
        return self in (Quadrant.URGENT_IMPORTANT, Quadrant.NOT_URGENT_IMPORTANT)

    @property
    def is_urgent(self) -> bool:
        return self in (Quadrant.URGENT_IMPORTANT, Quadrant.URGENT_NOT_IMPORTANT)

    @classmethod
    def from_flags(cls, is_important: bool, is_urgent: bool) -> "Quadrant":
        """根据重要性和紧急性判断象限"""
        return _QUADRANT_BY_FLAGS[(is_important, is_urgent)]


QUADRANT_DISPLAY_NAMES: dict[Quadrant, str] = {
    Quadrant.URGENT_IMPORTANT: "重要且紧急",
    Quadrant.NOT_URGENT_IMPORTANT: "重要但不紧急",
    Quadrant.URGENT_NOT_IMPORTANT: "不重要但紧急",
    Quadrant.NOT_URGENT_NOT_IMPORTANT: "不重要且不紧急",
}

QUADRANT_SHORT_NAMES: dict[Quadrant, str] = {
    Quadrant.URGENT_IMPORTANT: "紧急重要",
    Quadrant.NOT_URGENT_IMPORTANT: "重要",
    Quadrant.URGENT_NOT_IMPORTANT: "紧急",
    Quadrant.NOT_URGENT_NOT_IMPORTANT: "其他",
}

QUADRANT_ACTION_HINTS: dict[Quadrant, str] = {
    Quadrant.URGENT_IMPORTANT: "立即执行",
    Quadrant.NOT_URGENT_IMPORTANT: "计划安排",
    Quadrant.URGENT_NOT_IMPORTANT: "考虑委托",
    Quadrant.NOT_URGENT_NOT_IMPORTANT: "考虑删除",
}

_QUADRANT_BY_FLAGS: dict[tuple[bool, bool], Quadrant] = {
    (True, True): Quadrant.URGENT_IMPORTANT,
    (True, False): Quadrant.NOT_URGENT_IMPORTANT,
    (False, True): Quadrant.URGENT_NOT_IMPORTANT,
    (False, False): Quadrant.NOT_URGENT_NOT_IMPORTANT,
}

# 网格布局顺序（左上 → 右上 → 左下 → 右下）
QUADRANT_GRID_ORDER: list[Quadrant] = [
    Quadrant.URGENT_IMPORTANT,
    Quadrant.NOT_URGENT_IMPORTANT,
    Quadrant.URGENT_NOT_IMPORTANT,
    Quadrant.NOT_URGENT_NOT_IMPORTANT,
]


class ImportMode(StrEnum):
    """导入模式"""

    REPLACE = "replace"  # 覆盖现有任务
    MERGE = "merge"  # 合并（跳过重复 ID）


class MutationStatus(StrEnum):
    """变更操作结果状态"""

    APPLIED = "applied"
    # 输入未通过字段校验，未做任何修改
    REJECTED = "rejected"
    # 目标 ID 不存在，未做任何修改
    NOT_FOUND = "not_found"
    # 目标已处于期望状态（或无可撤销/重做），未做任何修改
    UNCHANGED = "unchanged"


class LoadSource(StrEnum):
    """load() 实际使用的数据来源"""

    PRIMARY = "primary"
    BACKUP = "backup"
    EMPTY = "empty"
