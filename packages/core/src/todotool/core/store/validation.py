"""输入校验 -- 去除首尾空白 + 长度上限

校验通过返回清理后的值，否则返回 None；调用方据此静默拒绝，不抛异常。
"""

from ..config import DETAIL_MAX_LENGTH, TAG_NAME_MAX_LENGTH, TITLE_MAX_LENGTH


def clean_title(title: str) -> str | None:
    """标题：非空，最大 200 字符"""
    value = title.strip()
    if not value or len(value) > TITLE_MAX_LENGTH:
        return None
    return value


def clean_detail(detail: str) -> str | None:
    """详细描述：可为空，最大 2000 字符"""
    value = detail.strip()
    if len(value) > DETAIL_MAX_LENGTH:
        return None
    return value


def clean_tag_name(name: str) -> str | None:
    """标签名：非空，最大 50 字符"""
    value = name.strip()
    if not value or len(value) > TAG_NAME_MAX_LENGTH:
        return None
    return value
