"""撤销/重做历史栈

线性历史：在撤销后产生新的修改会丢弃 cursor 之后的重做分支。
超过最大深度时淘汰最旧快照，cursor 同步减一以保持相对位置。
undo/redo 只在已有快照间移动，不产生新快照。
"""

from .config import DEFAULT_HISTORY_DEPTH
from .models.container import Snapshot


class HistoryManager:
    """基于完整快照的有界历史栈"""

    def __init__(self, max_depth: int = DEFAULT_HISTORY_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError("max_depth 必须 >= 1")
        self._max_depth = max_depth
        self._stack: list[Snapshot] = [Snapshot()]
        self._cursor = 0

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def current(self) -> Snapshot:
        return self._stack[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._stack) - 1

    def reset(self, snapshot: Snapshot) -> None:
        """以加载后的状态作为快照 0，清空历史"""
        self._stack = [snapshot]
        self._cursor = 0

    def push(self, snapshot: Snapshot) -> None:
        """在 cursor 之后追加快照"""
        # 不在栈顶时丢弃重做分支
        del self._stack[self._cursor + 1 :]
        self._stack.append(snapshot)
        self._cursor = len(self._stack) - 1

        if len(self._stack) > self._max_depth:
            self._stack.pop(0)
            self._cursor -= 1

    def undo(self) -> Snapshot | None:
        if not self.can_undo:
            return None
        self._cursor -= 1
        return self._stack[self._cursor]

    def redo(self) -> Snapshot | None:
        if not self.can_redo:
            return None
        self._cursor += 1
        return self._stack[self._cursor]
