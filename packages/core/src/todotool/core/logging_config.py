"""structlog 配置模块 -- CLI 与嵌入式使用共用

dev 模式：pretty print 可读输出
json 模式：单行 JSON，便于收集
日志统一写 stderr，CLI 的正常输出独占 stdout。
"""

import logging
import os
import sys
from typing import TextIO

import structlog

LOG_FORMATS: tuple[str, ...] = ("dev", "json")


def setup_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """初始化 structlog 与标准库 logging

    Args:
        log_format: "dev" 或 "json"，默认读取 TODOTOOL_LOG_FORMAT（缺省 dev）
        log_level: 日志级别名称，默认读取 TODOTOOL_LOG_LEVEL（缺省 INFO）
        stream: 输出流，默认 sys.stderr
    """
    log_format = (log_format or os.environ.get("TODOTOOL_LOG_FORMAT", "dev")).lower()
    log_level = (log_level or os.environ.get("TODOTOOL_LOG_LEVEL", "INFO")).upper()
    if log_format not in LOG_FORMATS:
        log_format = "dev"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _select_renderer(log_format),
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))


def _select_renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=False)
