"""ChangeHub -- 状态变更发布器

每次变更提交（落盘 + 快照 + 缓存失效）之后，Store 通过 ChangeHub 发布最新快照。
两种订阅方式：
- 回调：add_listener()，同步调用，返回取消订阅函数
- 队列：subscribe()，每个订阅者持有一个 asyncio.Queue，队列满时移除该订阅者
"""

import asyncio
from collections.abc import Callable

import structlog

from ..models.container import Snapshot

log = structlog.get_logger()

Listener = Callable[[Snapshot], None]


class ChangeHub:
    """快照发布/订阅"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        self._listeners: list[Listener] = []
        self._queues: set[asyncio.Queue] = set()
        self._queue_maxsize = queue_maxsize

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners) + len(self._queues)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """注册回调

        Returns:
            取消注册函数（重复调用无副作用）
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def subscribe(self) -> asyncio.Queue:
        """订阅快照流

        Returns:
            asyncio.Queue 实例，新快照会被推送到此队列
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._queues.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._queues.discard(queue)

    async def publish(self, snapshot: Snapshot) -> None:
        """向所有订阅者发布快照

        回调异常只记录日志，不影响已提交的变更。
        """
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                log.exception("change_listener_failed", listener=repr(listener))

        dead_queues = []
        for queue in self._queues:
            try:
                queue.put_nowait(snapshot)
            except asyncio.QueueFull:
                dead_queues.append(queue)

        # 清理已满的队列
        for q in dead_queues:
            self._queues.discard(q)
        if dead_queues:
            log.warning("change_subscribers_dropped", count=len(dead_queues))
