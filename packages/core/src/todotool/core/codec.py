"""容器编解码 -- data.json <-> TodoData

编码：JSON，键名排序 + 2 空格缩进（便于 diff 复现），时间戳带毫秒，None 字段省略。
解码：
- 时间戳先按毫秒格式、再按秒级格式解析，均失败抛 MalformedTimestampError
- 缺少 tags 视为空数组，缺少 priority 视为 none（唯一的模式演进机制）
- 其他结构错误抛 MalformedDataError
"""

import json
from typing import Any

import structlog
from pydantic import ValidationError

from .exceptions import MalformedDataError, MalformedTimestampError
from .models.container import TodoData
from .models.results import DecodeReport
from .models.timestamp import MALFORMED_TIMESTAMP

log = structlog.get_logger()

# 容器必填字段
_REQUIRED_KEYS: tuple[str, ...] = ("version", "todos")

# 任务可选字段（缺省时补默认值并记入 DecodeReport）
_OPTIONAL_TASK_KEYS: tuple[str, ...] = (
    "priority",
    "detail",
    "sortOrder",
    "tagIds",
    "updatedAt",
)


def encode_container(data: TodoData) -> bytes:
    """编码为 UTF-8 JSON 字节

    Raises:
        MalformedDataError: 内存数据无法序列化（正常数据不会发生）
    """
    try:
        payload = data.model_dump(mode="json", by_alias=True, exclude_none=True)
        text = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)
    except (TypeError, ValueError) as e:
        raise MalformedDataError(f"序列化失败: {e}") from e
    return text.encode("utf-8")


def decode_with_report(raw: bytes | str) -> tuple[TodoData, DecodeReport]:
    """解码并返回使用了默认值的字段列表

    Raises:
        MalformedTimestampError: 时间戳格式无法识别
        MalformedDataError: 非 JSON、结构错误或缺少必填字段
    """
    try:
        obj = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedDataError(f"JSON 解析失败: {e}") from e
    except RecursionError as e:
        raise MalformedDataError("JSON 嵌套层级过深") from e

    if not isinstance(obj, dict):
        raise MalformedDataError("容器顶层必须是对象")
    missing = [key for key in _REQUIRED_KEYS if key not in obj]
    if missing:
        raise MalformedDataError(f"缺少必填字段: {', '.join(missing)}")

    defaulted = _collect_defaulted(obj)

    try:
        data = TodoData.model_validate(obj)
    except ValidationError as e:
        for err in e.errors():
            if err["type"] == MALFORMED_TIMESTAMP:
                value = err.get("ctx", {}).get("value", "")
                raise MalformedTimestampError(str(value)) from e
        raise MalformedDataError(f"容器结构错误: {e.error_count()} 处校验失败") from e

    report = DecodeReport(
        version=data.version,
        defaulted=defaulted,
        duplicate_tasks=len(obj["todos"]) - len(data.todos),
    )
    if report.is_legacy:
        log.debug(
            "container_fields_defaulted",
            version=report.version,
            defaulted_count=len(defaulted),
        )
    return data, report


def decode_container(raw: bytes | str) -> TodoData:
    """解码容器（不关心默认值报告时使用）"""
    data, _ = decode_with_report(raw)
    return data


def _collect_defaulted(obj: dict[str, Any]) -> list[str]:
    defaulted: list[str] = []
    if "tags" not in obj:
        defaulted.append("tags")
    todos = obj.get("todos")
    if isinstance(todos, list):
        for index, item in enumerate(todos):
            if not isinstance(item, dict):
                continue
            for key in _OPTIONAL_TASK_KEYS:
                if key not in item:
                    defaulted.append(f"todos[{index}].{key}")
    return defaulted
