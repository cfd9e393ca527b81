"""全局 pytest 配置 -- 临时数据目录 + 已加载 TodoStore fixture"""

from collections.abc import AsyncGenerator, Awaitable, Callable, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from todotool.core.codec import encode_container
from todotool.core.models import Priority, Tag, TagColor, Task, TodoData
from todotool.core.store import TodoStore, open_store

BASE_TIME = datetime(2026, 1, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """提供临时数据目录"""
    directory = tmp_path / "data"
    directory.mkdir(parents=True, exist_ok=True)
    return directory


@pytest_asyncio.fixture
async def store(data_dir: Path) -> AsyncGenerator[TodoStore, None]:
    """提供已加载的空 TodoStore"""
    yield await open_store(data_dir)


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """构造测试用 Task（ID 可读、时间固定）"""

    def factory(
        name: str,
        *,
        key: int = 0,
        priority: Priority = Priority.NONE,
        minutes: int = 0,
        tag_ids: Sequence[str] = (),
        completed: bool = False,
        due_date: datetime | None = None,
        detail: str = "",
    ) -> Task:
        created = BASE_TIME + timedelta(minutes=minutes)
        return Task(
            task_id=f"task-{name}",
            title=name,
            detail=detail,
            priority=priority,
            sort_order=key,
            created_at=created,
            updated_at=created,
            is_completed=completed,
            completed_at=created if completed else None,
            due_date=due_date,
            tag_ids=tuple(tag_ids),
        )

    return factory


@pytest.fixture
def make_tag() -> Callable[..., Tag]:
    """构造测试用 Tag"""

    def factory(name: str, color: TagColor = TagColor.BLUE) -> Tag:
        return Tag(tag_id=f"tag-{name}", name=name, color=color, created_at=BASE_TIME)

    return factory


@pytest.fixture
def seed_store(data_dir: Path) -> Callable[..., Awaitable[TodoStore]]:
    """把给定任务/标签写入主文件后打开 Store"""

    async def factory(tasks: Sequence[Task] = (), tags: Sequence[Tag] = ()) -> TodoStore:
        data = TodoData(todos=list(tasks), tags=list(tags))
        (data_dir / "data.json").write_bytes(encode_container(data))
        return await open_store(data_dir)

    return factory
