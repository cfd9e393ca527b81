"""Store 异常体系

只有 I/O 失败与数据损坏会越过 Store 的公共边界；
输入校验失败、ID 查找失败在操作边界内吸收，以 MutationStatus 返回。
"""

from pathlib import Path


class StoreError(Exception):
    """Store 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 调用方记录日志后能否继续运行
        """
        super().__init__(message)
        self.recoverable = recoverable


class PersistenceError(StoreError):
    """文件系统读写失败（磁盘已满、权限不足等）

    内存状态仍然权威且一致，上一次成功写入的主文件不受影响。
    """

    def __init__(self, path: Path, original_error: Exception) -> None:
        """
        Args:
            path: 失败时正在操作的文件
            original_error: 原始异常
        """
        super().__init__(f"持久化失败: {path} -- {original_error}", recoverable=True)
        self.path = path
        self.original_error = original_error


class MalformedDataError(StoreError):
    """容器数据无法解码（非 JSON、结构错误、缺少必填字段）"""

    def __init__(self, message: str = "数据格式错误") -> None:
        super().__init__(message, recoverable=True)


class MalformedTimestampError(MalformedDataError):
    """时间戳既不符合毫秒格式，也不符合秒级格式"""

    def __init__(self, value: str) -> None:
        super().__init__(f"无法解析日期格式: {value!r}")
        self.value = value


class MalformedImportError(MalformedDataError):
    """导入数据解码失败，导入被整体拒绝，不做任何修改"""

    def __init__(self, cause: MalformedDataError) -> None:
        super().__init__(f"导入数据无效: {cause}")
        self.cause = cause
