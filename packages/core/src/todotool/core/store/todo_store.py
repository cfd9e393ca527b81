"""TodoStore -- 状态管理 + 持久化层

独占任务/标签的规范列表。每个变更操作是一个完整单元：
1. 校验输入并定位目标（失败则静默返回 REJECTED / NOT_FOUND，不产生历史）
2. 在内存中应用修改并更新 updated_at
3. 按三文件协议落盘（失败不回滚内存，结果中标记 persisted=False）
4. 追加历史快照
5. 查询缓存失效
6. 向订阅者发布新快照

整个单元在 asyncio.Lock 内执行，并发协程看到的是原子的提交；
save() 另有独立锁，阻塞的文件 I/O 放到工作线程执行。
"""

import asyncio
from collections.abc import Callable, Iterable
from datetime import date, datetime
from pathlib import Path
from typing import Any

import structlog

from ..codec import decode_with_report, encode_container
from ..config import DEFAULT_HISTORY_DEPTH
from ..exceptions import MalformedDataError, MalformedImportError, PersistenceError, StoreError
from ..history import HistoryManager
from ..models.container import Snapshot, TodoData
from ..models.enums import (
    QUADRANT_GRID_ORDER,
    ImportMode,
    LoadSource,
    MutationStatus,
    Priority,
    Quadrant,
    TagColor,
)
from ..models.quadrant import derive_quadrant
from ..models.results import ImportResult, MutationResult
from ..models.task import Tag, Task
from ..models.timestamp import normalize_timestamp, utc_now
from ..ordering import keys_degraded, next_leading_key, plan_move, renormalize, sort_for_display
from ..query import QueryEngine
from .change_hub import ChangeHub
from .durable_file import DurableFile
from .importer import plan_import
from .validation import clean_detail, clean_tag_name, clean_title

log = structlog.get_logger()

# 批量更新函数：(原任务, 当前时间) -> 需要更新的字段
TaskUpdate = Callable[[Task, datetime], dict[str, Any]]

_REJECTED = MutationResult(status=MutationStatus.REJECTED)
_NOT_FOUND = MutationResult(status=MutationStatus.NOT_FOUND)
_UNCHANGED = MutationResult(status=MutationStatus.UNCHANGED)


class TodoStore:
    """任务/标签状态存储"""

    def __init__(
        self,
        data_dir: str | Path,
        *,
        history_depth: int = DEFAULT_HISTORY_DEPTH,
        hub: ChangeHub | None = None,
    ) -> None:
        self._file = DurableFile(Path(data_dir))
        self._tasks: list[Task] = []
        self._tags: list[Tag] = []
        self._history = HistoryManager(history_depth)
        self._query = QueryEngine()
        self.hub = hub or ChangeHub()
        self._mutation_lock = asyncio.Lock()
        self._save_lock = asyncio.Lock()

    # ---- 只读视图 ----

    @property
    def data_dir(self) -> Path:
        return self._file.data_dir

    @property
    def primary_path(self) -> Path:
        return self._file.primary_path

    @property
    def backup_path(self) -> Path:
        return self._file.backup_path

    @property
    def temp_path(self) -> Path:
        return self._file.temp_path

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def tags(self) -> tuple[Tag, ...]:
        return tuple(self._tags)

    @property
    def history(self) -> HistoryManager:
        return self._history

    @property
    def query(self) -> QueryEngine:
        return self._query

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def snapshot(self) -> Snapshot:
        return Snapshot(tasks=tuple(self._tasks), tags=tuple(self._tags))

    def get_task(self, task_id: str) -> Task | None:
        return next((t for t in self._tasks if t.task_id == task_id), None)

    def get_tag(self, tag_id: str) -> Tag | None:
        return next((t for t in self._tags if t.tag_id == tag_id), None)

    def filtered_and_sorted(
        self,
        search_text: str = "",
        priority: Priority | None = None,
        tag_id: str | None = None,
    ) -> list[Task]:
        """过滤并排序后的任务列表（带缓存）"""
        return self._query.filtered_and_sorted(
            self._tasks, search_text=search_text, priority=priority, tag_id=tag_id
        )

    def tasks_by_quadrant(self, today: date | None = None) -> dict[Quadrant, list[Task]]:
        """按四象限分组，组内按显示顺序排列"""
        groups: dict[Quadrant, list[Task]] = {q: [] for q in QUADRANT_GRID_ORDER}
        for task in sort_for_display(self._tasks):
            groups[derive_quadrant(task, today)].append(task)
        return groups

    # ---- 加载 / 保存 ----

    async def load(self) -> LoadSource:
        """加载数据：主文件 → 备份文件 → 空数据

        不向调用方抛出任何错误，失败只体现在日志中。
        加载后的状态作为历史快照 0。
        """
        async with self._mutation_lock:
            source = await self._load_from_disk()
            self._history.reset(self.snapshot())
            self._query.invalidate()
            await self.hub.publish(self.snapshot())
        return source

    async def save(self) -> None:
        """将当前数据按三文件协议写入磁盘

        Raises:
            PersistenceError: 文件系统错误，内存状态不受影响
            MalformedDataError: 序列化失败
        """
        payload = encode_container(self.snapshot().to_container())
        async with self._save_lock:
            await asyncio.to_thread(self._file.write, payload)
        log.debug(
            "store_saved",
            path=str(self._file.primary_path),
            task_count=len(self._tasks),
            tag_count=len(self._tags),
            size_bytes=len(payload),
        )

    async def export_data(self) -> bytes:
        """导出主文件字节；尚未落盘时返回当前状态的编码

        Raises:
            PersistenceError: 主文件存在但无法读取
        """
        raw = await asyncio.to_thread(self._file.read, self._file.primary_path)
        if raw is None:
            return encode_container(self.snapshot().to_container())
        return raw

    async def _load_from_disk(self) -> LoadSource:
        data = await self._read_container(self._file.primary_path)
        if data is not None:
            self._apply_container(data)
            log.info("store_loaded", source=LoadSource.PRIMARY, task_count=len(self._tasks))
            return LoadSource.PRIMARY

        # 主文件不存在或损坏，尝试备份文件
        data = await self._read_container(self._file.backup_path)
        if data is not None:
            self._apply_container(data)
            log.warning(
                "store_load_fallback_backup",
                path=str(self._file.backup_path),
                task_count=len(self._tasks),
            )
            # 从备份恢复后，重新保存主文件
            try:
                await self.save()
            except StoreError as e:
                log.error("store_self_heal_failed", error=str(e))
            return LoadSource.BACKUP

        self._tasks = []
        self._tags = []
        log.warning("store_load_empty", data_dir=str(self._file.data_dir))
        return LoadSource.EMPTY

    async def _read_container(self, path: Path) -> TodoData | None:
        try:
            raw = await asyncio.to_thread(self._file.read, path)
        except PersistenceError as e:
            log.warning("store_read_failed", path=str(path), error=str(e))
            return None
        if raw is None:
            log.debug("store_file_missing", path=str(path))
            return None
        try:
            data, report = decode_with_report(raw)
        except MalformedDataError as e:
            log.warning("store_file_malformed", path=str(path), error=str(e))
            return None
        if report.is_legacy:
            log.info(
                "store_legacy_fields_defaulted",
                path=str(path),
                version=report.version,
                defaulted_count=len(report.defaulted),
            )
        return data

    def _apply_container(self, data: TodoData) -> None:
        self._tasks = list(data.todos)
        self._tags = list(data.tags)

    # ---- 变更单元 ----

    async def _commit(
        self,
        *,
        task_ids: Iterable[str] = (),
        tag_ids: Iterable[str] = (),
        record_history: bool = True,
    ) -> MutationResult:
        """落盘 → 历史快照 → 缓存失效 → 发布（调用方须持有 _mutation_lock）"""
        persisted, error = await self._persist()
        snapshot = self.snapshot()
        if record_history:
            self._history.push(snapshot)
        self._query.invalidate()
        await self.hub.publish(snapshot)
        return MutationResult(
            status=MutationStatus.APPLIED,
            persisted=persisted,
            error=error,
            task_ids=tuple(task_ids),
            tag_ids=tuple(tag_ids),
        )

    async def _persist(self) -> tuple[bool, str | None]:
        try:
            await self.save()
        except StoreError as e:
            # 保存失败不阻塞后续内存修改，由调用方根据结果决定是否提示
            log.error("store_save_failed", error=str(e), recoverable=e.recoverable)
            return False, str(e)
        return True, None

    async def _update_tasks(self, task_ids: Iterable[str], update: TaskUpdate) -> MutationResult:
        """对匹配 ID 的任务应用更新并提交；一个都没找到时返回 NOT_FOUND"""
        wanted = set(task_ids)
        if not wanted:
            return _NOT_FOUND
        async with self._mutation_lock:
            now = utc_now()
            changed: list[str] = []
            for index, task in enumerate(self._tasks):
                if task.task_id in wanted:
                    fields = {**update(task, now), "updated_at": now}
                    self._tasks[index] = task.model_copy(update=fields)
                    changed.append(task.task_id)
            if not changed:
                log.debug("task_not_found", task_ids=sorted(wanted))
                return _NOT_FOUND
            return await self._commit(task_ids=changed)

    # ---- 任务 CRUD ----

    async def add_task(
        self,
        title: str,
        *,
        priority: Priority = Priority.NONE,
        detail: str = "",
        due_date: datetime | None = None,
        tag_ids: Iterable[str] = (),
    ) -> MutationResult:
        """添加新任务（插入列表开头，排序键比现有最小值小 1）"""
        clean = clean_title(title)
        detail_clean = clean_detail(detail)
        if clean is None or detail_clean is None:
            log.debug("task_add_rejected", title_length=len(title), detail_length=len(detail))
            return _REJECTED

        async with self._mutation_lock:
            task = Task.new(
                clean,
                priority=priority,
                detail=detail_clean,
                due_date=normalize_timestamp(due_date) if due_date else None,
                tag_ids=tuple(dict.fromkeys(tag_ids)),
                sort_order=next_leading_key(self._tasks),
            )
            self._tasks.insert(0, task)
            log.info("task_added", task_id=task.task_id, priority=task.priority)
            return await self._commit(task_ids=(task.task_id,))

    async def toggle_completed(self, task_id: str) -> MutationResult:
        """切换完成状态"""
        return await self.toggle_completed_many((task_id,))

    async def toggle_completed_many(self, task_ids: Iterable[str]) -> MutationResult:
        def update(task: Task, now: datetime) -> dict[str, Any]:
            completed = not task.is_completed
            return {"is_completed": completed, "completed_at": now if completed else None}

        return await self._update_tasks(task_ids, update)

    async def set_completed_many(self, task_ids: Iterable[str], completed: bool) -> MutationResult:
        """批量设置完成状态；已完成的任务保留原完成时间"""

        def update(task: Task, now: datetime) -> dict[str, Any]:
            return {
                "is_completed": completed,
                "completed_at": (task.completed_at or now) if completed else None,
            }

        return await self._update_tasks(task_ids, update)

    async def delete_task(self, task_id: str) -> MutationResult:
        return await self.delete_tasks((task_id,))

    async def delete_tasks(self, task_ids: Iterable[str]) -> MutationResult:
        """批量删除任务"""
        wanted = set(task_ids)
        async with self._mutation_lock:
            removed = [t.task_id for t in self._tasks if t.task_id in wanted]
            if not removed:
                return _NOT_FOUND
            self._tasks = [t for t in self._tasks if t.task_id not in wanted]
            log.info("tasks_deleted", count=len(removed))
            return await self._commit(task_ids=removed)

    async def clear_completed(self) -> MutationResult:
        """清除所有已完成的任务"""
        async with self._mutation_lock:
            removed = [t.task_id for t in self._tasks if t.is_completed]
            if not removed:
                return _UNCHANGED
            self._tasks = [t for t in self._tasks if not t.is_completed]
            log.info("completed_tasks_cleared", count=len(removed))
            return await self._commit(task_ids=removed)

    async def update_title(self, task_id: str, title: str) -> MutationResult:
        return await self.update_title_many((task_id,), title)

    async def update_title_many(self, task_ids: Iterable[str], title: str) -> MutationResult:
        clean = clean_title(title)
        if clean is None:
            log.debug("task_title_rejected", title_length=len(title))
            return _REJECTED
        return await self._update_tasks(task_ids, lambda task, now: {"title": clean})

    async def update_detail(self, task_id: str, detail: str) -> MutationResult:
        return await self.update_detail_many((task_id,), detail)

    async def update_detail_many(self, task_ids: Iterable[str], detail: str) -> MutationResult:
        clean = clean_detail(detail)
        if clean is None:
            log.debug("task_detail_rejected", detail_length=len(detail))
            return _REJECTED
        return await self._update_tasks(task_ids, lambda task, now: {"detail": clean})

    async def set_priority(self, task_id: str, priority: Priority) -> MutationResult:
        return await self.set_priority_many((task_id,), priority)

    async def set_priority_many(self, task_ids: Iterable[str], priority: Priority) -> MutationResult:
        priority = Priority(priority)
        return await self._update_tasks(task_ids, lambda task, now: {"priority": priority})

    async def set_due_date(self, task_id: str, due_date: datetime | None) -> MutationResult:
        """设置到期日期（None 表示清除）"""
        return await self.set_due_date_many((task_id,), due_date)

    async def set_due_date_many(
        self, task_ids: Iterable[str], due_date: datetime | None
    ) -> MutationResult:
        value = normalize_timestamp(due_date) if due_date is not None else None
        return await self._update_tasks(task_ids, lambda task, now: {"due_date": value})

    # ---- 任务标签 ----

    async def set_task_tags(self, task_id: str, tag_ids: Iterable[str]) -> MutationResult:
        """为任务设置标签（不存在的标签 ID 被忽略）"""
        known = {t.tag_id for t in self._tags}
        value = tuple(i for i in dict.fromkeys(tag_ids) if i in known)
        return await self._update_tasks((task_id,), lambda task, now: {"tag_ids": value})

    async def add_tag_to_task(self, task_id: str, tag_id: str) -> MutationResult:
        task = self.get_task(task_id)
        if task is None or self.get_tag(tag_id) is None:
            return _NOT_FOUND
        if tag_id in task.tag_ids:
            return _UNCHANGED
        return await self._update_tasks(
            (task_id,), lambda task, now: {"tag_ids": tuple(dict.fromkeys((*task.tag_ids, tag_id)))}
        )

    async def remove_tag_from_task(self, task_id: str, tag_id: str) -> MutationResult:
        task = self.get_task(task_id)
        if task is None:
            return _NOT_FOUND
        if tag_id not in task.tag_ids:
            return _UNCHANGED
        return await self._update_tasks(
            (task_id,),
            lambda task, now: {"tag_ids": tuple(i for i in task.tag_ids if i != tag_id)},
        )

    # ---- 标签 CRUD ----

    async def add_tag(self, name: str, color: TagColor = TagColor.BLUE) -> MutationResult:
        clean = clean_tag_name(name)
        if clean is None:
            log.debug("tag_add_rejected", name_length=len(name))
            return _REJECTED
        async with self._mutation_lock:
            tag = Tag.new(clean, TagColor(color))
            self._tags.append(tag)
            log.info("tag_added", tag_id=tag.tag_id, color=tag.color)
            return await self._commit(tag_ids=(tag.tag_id,))

    async def update_tag(
        self,
        tag_id: str,
        *,
        name: str | None = None,
        color: TagColor | None = None,
    ) -> MutationResult:
        """更新标签名称和/或颜色"""
        fields: dict[str, Any] = {}
        if name is not None:
            clean = clean_tag_name(name)
            if clean is None:
                return _REJECTED
            fields["name"] = clean
        if color is not None:
            fields["color"] = TagColor(color)

        async with self._mutation_lock:
            index = next((i for i, t in enumerate(self._tags) if t.tag_id == tag_id), None)
            if index is None:
                return _NOT_FOUND
            if not fields:
                return _UNCHANGED
            self._tags[index] = self._tags[index].model_copy(update=fields)
            return await self._commit(tag_ids=(tag_id,))

    async def delete_tag(self, tag_id: str) -> MutationResult:
        return await self.delete_tags((tag_id,))

    async def delete_tags(self, tag_ids: Iterable[str]) -> MutationResult:
        """删除标签，并在同一单元内从所有任务中移除对应标签 ID"""
        wanted = set(tag_ids)
        async with self._mutation_lock:
            removed = [t.tag_id for t in self._tags if t.tag_id in wanted]
            if not removed:
                return _NOT_FOUND
            self._tags = [t for t in self._tags if t.tag_id not in wanted]

            now = utc_now()
            affected: list[str] = []
            for index, task in enumerate(self._tasks):
                if wanted.intersection(task.tag_ids):
                    remaining = tuple(i for i in task.tag_ids if i not in wanted)
                    self._tasks[index] = task.model_copy(
                        update={"tag_ids": remaining, "updated_at": now}
                    )
                    affected.append(task.task_id)

            log.info("tags_deleted", count=len(removed), affected_tasks=len(affected))
            return await self._commit(task_ids=affected, tag_ids=removed)

    # ---- 拖拽排序 ----

    async def move_task(
        self,
        task_id: str,
        destination: int,
        section_ids: Iterable[str] | None = None,
    ) -> MutationResult:
        """移动任务到同优先级分组内的新位置

        Args:
            task_id: 被移动的任务
            destination: 移除被移动任务后它在分组中的目标下标
            section_ids: 当前显示的分组（按显示顺序），默认取该任务所在优先级的全部任务
        """
        async with self._mutation_lock:
            moved = self.get_task(task_id)
            if moved is None:
                return _NOT_FOUND

            if section_ids is None:
                section = [t for t in sort_for_display(self._tasks) if t.priority == moved.priority]
            else:
                by_id = {t.task_id: t for t in self._tasks}
                section = [by_id[i] for i in section_ids if i in by_id]

            plan = plan_move(section, task_id, destination)
            if plan is None:
                log.debug("task_move_rejected", task_id=task_id, destination=destination)
                return _REJECTED

            if plan.renormalize:
                self._tasks = renormalize(
                    self._tasks,
                    moved_id=task_id,
                    anchor_id=plan.anchor_id,
                    place_after=plan.place_after,
                )
                log.info("task_move_renormalized", task_id=task_id, task_count=len(self._tasks))
            else:
                self._replace_task(task_id, sort_order=plan.new_key)
                if keys_degraded(self._tasks):
                    self._tasks = renormalize(self._tasks)
                    log.info("sort_keys_renormalized", reason="degraded")

            self._replace_task(task_id, updated_at=utc_now())
            return await self._commit(task_ids=(task_id,))

    def _replace_task(self, task_id: str, **fields: Any) -> None:
        for index, task in enumerate(self._tasks):
            if task.task_id == task_id:
                self._tasks[index] = task.model_copy(update=fields)
                return

    # ---- 撤销 / 重做 ----

    async def undo(self) -> MutationResult:
        """撤销上一步操作"""
        async with self._mutation_lock:
            snapshot = self._history.undo()
            if snapshot is None:
                return _UNCHANGED
            self._restore(snapshot)
            log.info("history_undo", cursor=self._history.cursor)
            return await self._commit(record_history=False)

    async def redo(self) -> MutationResult:
        """重做已撤销的操作"""
        async with self._mutation_lock:
            snapshot = self._history.redo()
            if snapshot is None:
                return _UNCHANGED
            self._restore(snapshot)
            log.info("history_redo", cursor=self._history.cursor)
            return await self._commit(record_history=False)

    def _restore(self, snapshot: Snapshot) -> None:
        self._tasks = list(snapshot.tasks)
        self._tags = list(snapshot.tags)

    # ---- 导入 ----

    async def import_data(
        self,
        raw: bytes | str,
        mode: ImportMode = ImportMode.MERGE,
    ) -> ImportResult:
        """从容器字节导入任务

        Raises:
            MalformedImportError: 解码失败，不做任何修改
        """
        mode = ImportMode(mode)
        try:
            incoming, report = decode_with_report(raw)
        except MalformedDataError as e:
            log.warning("import_rejected", mode=mode, error=str(e))
            raise MalformedImportError(e) from e

        async with self._mutation_lock:
            plan = plan_import(
                self.snapshot(),
                incoming,
                mode,
                duplicate_tasks=report.duplicate_tasks,
            )
            self._tasks = list(plan.tasks)
            self._tags = list(plan.tags)
            log.info("import_applied", mode=mode, added=plan.added, skipped=plan.skipped)
            result = await self._commit()

        return ImportResult(
            added=plan.added,
            skipped=plan.skipped,
            persisted=result.persisted,
            error=result.error,
        )
