"""持久化容器与历史快照

TodoData 是 data.json 的完整结构：version + todos + tags。
Snapshot 是某一时刻 (tasks, tags) 的不可变值副本，用于撤销/重做与变更发布。
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import CONTAINER_VERSION
from .task import Tag, Task


class TodoData(BaseModel):
    """JSON 存储容器

    同一列表内 ID 重复时保留第一次出现的记录；
    任务引用已删除标签（悬空引用）属于正常数据，不视为损坏。
    """

    version: int = Field(default=CONTAINER_VERSION, description="数据版本号")
    todos: list[Task] = Field(default_factory=list, description="任务数组")
    # 旧版本数据无 tags 字段时默认为空数组
    tags: list[Tag] = Field(default_factory=list, description="标签数组")

    @field_validator("todos", mode="after")
    @classmethod
    def _unique_tasks(cls, value: list[Task]) -> list[Task]:
        seen: set[str] = set()
        unique = []
        for task in value:
            if task.task_id not in seen:
                seen.add(task.task_id)
                unique.append(task)
        return unique

    @field_validator("tags", mode="after")
    @classmethod
    def _unique_tags(cls, value: list[Tag]) -> list[Tag]:
        seen: set[str] = set()
        unique = []
        for tag in value:
            if tag.tag_id not in seen:
                seen.add(tag.tag_id)
                unique.append(tag)
        return unique


class Snapshot(BaseModel):
    """(tasks, tags) 不可变快照"""

    model_config = ConfigDict(frozen=True)

    tasks: tuple[Task, ...] = ()
    tags: tuple[Tag, ...] = ()

    def to_container(self) -> TodoData:
        return TodoData(todos=list(self.tasks), tags=list(self.tags))

    @classmethod
    def from_container(cls, data: TodoData) -> "Snapshot":
        return cls(tasks=tuple(data.todos), tags=tuple(data.tags))
