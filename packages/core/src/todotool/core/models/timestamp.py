"""时间戳类型 -- ISO 8601 文本，毫秒精度，UTC

编码固定为 ``YYYY-MM-DDTHH:MM:SS.mmmZ``。
解码依次尝试带毫秒格式、秒级格式，均失败时报 malformed_timestamp。
"""

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer
from pydantic_core import PydanticCustomError

# 解码格式链：先精确格式，再秒级格式
_PARSE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)

MALFORMED_TIMESTAMP = "malformed_timestamp"


def truncate_ms(value: datetime) -> datetime:
    """截断到毫秒精度"""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def normalize_timestamp(value: datetime) -> datetime:
    """统一为带时区的 UTC 时间并截断到毫秒（naive 时间视为 UTC）"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return truncate_ms(value.astimezone(UTC))


def utc_now() -> datetime:
    """当前 UTC 时间（毫秒精度）"""
    return truncate_ms(datetime.now(UTC))


def format_timestamp(value: datetime) -> str:
    """编码为带毫秒的 ISO 8601 文本"""
    value = normalize_timestamp(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: Any) -> datetime:
    """解码时间戳

    Raises:
        PydanticCustomError: 两种格式都无法解析（type=malformed_timestamp）
    """
    if isinstance(value, datetime):
        try:
            return normalize_timestamp(value)
        except OverflowError as e:
            raise _malformed(value) from e
    if isinstance(value, str):
        for fmt in _PARSE_FORMATS:
            try:
                return normalize_timestamp(datetime.strptime(value, fmt))
            except (ValueError, OverflowError):
                # OverflowError: 格式合法，但换算到 UTC 后超出 datetime 范围
                continue
    raise _malformed(value)


def _malformed(value: Any) -> PydanticCustomError:
    return PydanticCustomError(
        MALFORMED_TIMESTAMP,
        "无法解析日期格式: {value}",
        {"value": str(value)},
    )


Timestamp = Annotated[
    datetime,
    BeforeValidator(parse_timestamp),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]
