"""集成测试共享 fixture"""

from collections.abc import Generator
from pathlib import Path

import pytest


@pytest.fixture
def env_data_dir(tmp_path: Path, monkeypatch) -> Generator[Path, None, None]:
    """通过环境变量指定数据目录（CLI 与 open_store() 默认读取）"""
    directory = tmp_path / "todotool"
    monkeypatch.setenv("TODOTOOL_DATA_DIR", str(directory))
    monkeypatch.setenv("TODOTOOL_LOG_FORMAT", "json")
    monkeypatch.setenv("TODOTOOL_LOG_LEVEL", "WARNING")
    yield directory
