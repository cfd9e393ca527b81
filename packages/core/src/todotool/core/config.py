"""配置常量模块 -- 可通过环境变量覆盖

包含数据目录、历史栈深度、字段长度上限、排序键阈值等可配置常量。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


def get_data_dir() -> Path:
    """获取数据目录（data.json / backup / tmp 三个文件所在目录）"""
    return Path(
        os.environ.get(
            "TODOTOOL_DATA_DIR",
            str(Path.home() / ".todotool"),
        )
    )


def _int_env(name: str, default: int) -> int:
    """读取整数环境变量；非法值记录告警并回退到默认值"""
    val = os.environ.get(name)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        log.warning("invalid_int_config", env_var=name, value=val, fallback=default)
        return default


# 持久化文件名（备份与临时文件在此基础上追加后缀）
DATA_FILE_NAME: str = "data.json"
BACKUP_SUFFIX: str = ".backup"
TEMP_SUFFIX: str = ".tmp"

# 容器格式版本号
CONTAINER_VERSION: int = 1

# 字段长度上限（按去除首尾空白后的字符数计算）
TITLE_MAX_LENGTH: int = 200
DETAIL_MAX_LENGTH: int = 2000
TAG_NAME_MAX_LENGTH: int = 50

# 撤销/重做历史栈默认最大深度
DEFAULT_HISTORY_DEPTH: int = 50

# 拖拽排序：首尾插入步长、重排后的间距
ORDER_KEY_STEP: int = 10

# 排序键跨度超过此值时主动重排
ORDER_KEY_SPAN_LIMIT: int = _int_env("TODOTOOL_ORDER_KEY_SPAN_LIMIT", 10**9)

# 任一排序键绝对值超过此值时主动重排
ORDER_KEY_MAGNITUDE_LIMIT: int = _int_env("TODOTOOL_ORDER_KEY_MAGNITUDE_LIMIT", 2**53 - 1)


class StoreConfig(BaseModel):
    """Store 运行配置 -- 从环境变量加载

    环境变量:
        TODOTOOL_DATA_DIR: 数据目录（默认 ~/.todotool）
        TODOTOOL_HISTORY_DEPTH: 历史栈深度（默认 50）
    """

    data_dir: Path = Field(
        default_factory=get_data_dir,
        description="数据目录",
    )
    history_depth: int = Field(
        default=DEFAULT_HISTORY_DEPTH,
        ge=1,
        description="撤销/重做历史栈最大深度",
    )


def load_store_config() -> StoreConfig:
    """从环境变量加载 Store 配置

    非法的数值配置会记录告警并回退到默认值，不阻塞启动。
    """
    kwargs: dict = {}

    if val := os.environ.get("TODOTOOL_DATA_DIR"):
        kwargs["data_dir"] = Path(val).expanduser()

    if val := os.environ.get("TODOTOOL_HISTORY_DEPTH"):
        try:
            depth = int(val)
        except ValueError:
            depth = 0
        if depth >= 1:
            kwargs["history_depth"] = depth
        else:
            log.warning(
                "invalid_history_depth_config",
                env_var="TODOTOOL_HISTORY_DEPTH",
                value=val,
                fallback=DEFAULT_HISTORY_DEPTH,
            )

    return StoreConfig(**kwargs)
