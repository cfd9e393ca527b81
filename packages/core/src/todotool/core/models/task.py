"""Task / Tag Domain Model

记录不可变（frozen）：Store 通过 model_copy(update=...) 生成新值并原位替换，
历史快照因此可以直接共享同一批记录对象。
JSON 字段名使用 camelCase，与既有 data.json 保持兼容。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from ulid import ULID

from .enums import Priority, TagColor
from .timestamp import Timestamp, utc_now


def new_id() -> str:
    """生成新的记录 ID（ULID，时间有序）"""
    return str(ULID())


class Task(BaseModel):
    """Task 数据模型

    sort_order 只表达同优先级分组内的相对位置；
    completed_at 当且仅当 is_completed 为 True 时存在。
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    task_id: str = Field(alias="id", description="唯一标识，创建后不可变")
    title: str = Field(description="任务标题（非空，最大 200 字符）")
    detail: str = Field(default="", description="详细描述（最大 2000 字符）")
    is_completed: bool = Field(default=False, description="完成状态")
    priority: Priority = Field(default=Priority.NONE, description="优先级")
    created_at: Timestamp = Field(description="创建时间（UTC）")
    completed_at: Timestamp | None = Field(default=None, description="完成时间")
    updated_at: Timestamp = Field(description="最近修改时间（UTC）")
    due_date: Timestamp | None = Field(default=None, description="到期日期")
    sort_order: int = Field(default=0, description="同优先级分组内的排序键")
    tag_ids: tuple[str, ...] = Field(default=(), description="标签 ID（保持插入顺序）")

    @model_validator(mode="before")
    @classmethod
    def _default_updated_at(cls, data: Any) -> Any:
        # 旧数据无 updatedAt 时沿用 createdAt
        if isinstance(data, dict) and "updatedAt" not in data and "updated_at" not in data:
            created = data.get("createdAt", data.get("created_at"))
            if created is not None:
                data = {**data, "updatedAt": created}
        return data

    @field_validator("tag_ids", mode="after")
    @classmethod
    def _dedupe_tag_ids(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(value))

    @classmethod
    def new(
        cls,
        title: str,
        *,
        priority: Priority = Priority.NONE,
        detail: str = "",
        due_date: datetime | None = None,
        tag_ids: tuple[str, ...] = (),
        sort_order: int = 0,
    ) -> "Task":
        """以默认值构造新任务：新 ID、当前时间、未完成"""
        now = utc_now()
        return cls(
            task_id=new_id(),
            title=title,
            detail=detail,
            priority=priority,
            created_at=now,
            updated_at=now,
            due_date=due_date,
            sort_order=sort_order,
            tag_ids=tag_ids,
        )


class Tag(BaseModel):
    """标签数据模型"""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    tag_id: str = Field(alias="id", description="唯一标识")
    name: str = Field(description="标签名称（非空，最大 50 字符）")
    color: TagColor = Field(default=TagColor.BLUE, description="标签颜色")
    created_at: Timestamp = Field(description="创建时间（UTC）")

    @classmethod
    def new(cls, name: str, color: TagColor = TagColor.BLUE) -> "Tag":
        return cls(tag_id=new_id(), name=name, color=color, created_at=utc_now())
