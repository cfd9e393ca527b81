"""操作结果模型

变更操作不向调用方抛出校验/查找失败，统一以结果对象表达：
status 表示是否应用，persisted/error 表示持久化是否成功。
"""

from pydantic import BaseModel, ConfigDict, Field

from .enums import MutationStatus


class MutationResult(BaseModel):
    """单次变更操作结果"""

    model_config = ConfigDict(frozen=True)

    status: MutationStatus = Field(description="应用状态")
    persisted: bool = Field(default=False, description="是否已成功写入磁盘")
    error: str | None = Field(default=None, description="持久化失败原因")
    task_ids: tuple[str, ...] = Field(default=(), description="受影响的任务 ID")
    tag_ids: tuple[str, ...] = Field(default=(), description="受影响的标签 ID")

    @property
    def applied(self) -> bool:
        return self.status == MutationStatus.APPLIED

    @property
    def ok(self) -> bool:
        """已应用且已落盘"""
        return self.applied and self.persisted


class ImportResult(BaseModel):
    """导入结果"""

    added: int = Field(ge=0, description="新增任务数")
    skipped: int = Field(ge=0, description="因 ID 重复跳过的任务数")
    persisted: bool = Field(default=False, description="是否已成功写入磁盘")
    error: str | None = Field(default=None, description="持久化失败原因")


class DecodeReport(BaseModel):
    """解码报告 -- 记录哪些可选字段使用了默认值

    为后续显式的版本迁移保留依据，而不是静默补默认值。
    """

    version: int = Field(description="容器声明的版本号")
    defaulted: list[str] = Field(
        default_factory=list,
        description="被补默认值的字段路径，如 tags、todos[0].priority",
    )
    duplicate_tasks: int = Field(
        default=0,
        ge=0,
        description="因 ID 重复被丢弃的任务数（保留第一次出现的记录）",
    )

    @property
    def is_legacy(self) -> bool:
        return bool(self.defaulted)
