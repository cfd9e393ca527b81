"""TodoStore 任务/标签 CRUD 测试

测试内容：
1. 添加任务：校验、插入位置、排序键
2. 完成状态、批量修改、删除、清除已完成
3. 标签 CRUD 与级联删除
4. 结果状态（REJECTED / NOT_FOUND / UNCHANGED）不产生历史
5. 四象限分组
"""

from datetime import UTC, date, datetime

from todotool.core.models import MutationStatus, Priority, Quadrant, TagColor


async def _add(store, title, **kwargs):
    result = await store.add_task(title, **kwargs)
    assert result.applied
    return store.get_task(result.task_ids[0])


class TestAddTask:
    """添加任务"""

    async def test_add_applies_and_persists(self, store):
        result = await store.add_task("买牛奶")
        assert result.status == MutationStatus.APPLIED
        assert result.persisted is True
        assert result.ok
        assert store.primary_path.exists()
        assert len(store.tasks) == 1

    async def test_title_trimmed(self, store):
        task = await _add(store, "  买牛奶  ")
        assert task.title == "买牛奶"

    async def test_title_length_boundary(self, store):
        assert (await store.add_task("x" * 200)).applied
        assert (await store.add_task("x" * 201)).status == MutationStatus.REJECTED
        assert (await store.add_task("   \n\t ")).status == MutationStatus.REJECTED
        assert (await store.add_task("")).status == MutationStatus.REJECTED
        assert len(store.tasks) == 1

    async def test_detail_length_boundary(self, store):
        assert (await store.add_task("a", detail="d" * 2000)).applied
        assert (await store.add_task("b", detail="d" * 2001)).status == MutationStatus.REJECTED

    async def test_rejected_produces_no_history(self, store):
        await store.add_task("")
        assert store.can_undo is False
        assert not store.primary_path.exists()

    async def test_new_task_first_with_leading_key(self, store):
        first = await _add(store, "first")
        second = await _add(store, "second")
        assert store.tasks[0].task_id == second.task_id
        assert second.sort_order == first.sort_order - 1
        assert [t.title for t in store.filtered_and_sorted()] == ["second", "first"]

    async def test_optional_fields(self, store):
        due = datetime(2026, 4, 1, 12, 0, 0, 123456, tzinfo=UTC)
        task = await _add(
            store,
            "报告",
            priority=Priority.HIGH,
            detail="  第一章  ",
            due_date=due,
            tag_ids=["x", "x", "y"],
        )
        assert task.priority == Priority.HIGH
        assert task.detail == "第一章"
        assert task.due_date == datetime(2026, 4, 1, 12, 0, 0, 123000, tzinfo=UTC)
        assert task.tag_ids == ("x", "y")


class TestUpdateTask:
    """修改任务"""

    async def test_toggle_completed(self, store):
        task = await _add(store, "a")
        await store.toggle_completed(task.task_id)
        done = store.get_task(task.task_id)
        assert done.is_completed is True
        assert done.completed_at is not None
        assert done.updated_at >= task.updated_at

        await store.toggle_completed(task.task_id)
        undone = store.get_task(task.task_id)
        assert undone.is_completed is False
        assert undone.completed_at is None

    async def test_toggle_unknown(self, store):
        result = await store.toggle_completed("missing")
        assert result.status == MutationStatus.NOT_FOUND
        assert result.persisted is False

    async def test_set_completed_many_keeps_completion_time(self, store):
        a = await _add(store, "a")
        b = await _add(store, "b")
        await store.toggle_completed(a.task_id)
        completed_at = store.get_task(a.task_id).completed_at

        result = await store.set_completed_many([a.task_id, b.task_id], True)
        assert set(result.task_ids) == {a.task_id, b.task_id}
        assert store.get_task(a.task_id).completed_at == completed_at
        assert store.get_task(b.task_id).is_completed is True

        await store.set_completed_many([a.task_id, b.task_id], False)
        assert not any(t.is_completed for t in store.tasks)

    async def test_update_title(self, store):
        task = await _add(store, "old")
        assert (await store.update_title(task.task_id, " new ")).applied
        assert store.get_task(task.task_id).title == "new"
        assert (await store.update_title(task.task_id, "")).status == MutationStatus.REJECTED
        assert (await store.update_title("missing", "x")).status == MutationStatus.NOT_FOUND

    async def test_update_title_many(self, store):
        a = await _add(store, "a")
        b = await _add(store, "b")
        await store.update_title_many([a.task_id, b.task_id, "missing"], "same")
        assert {t.title for t in store.tasks} == {"same"}

    async def test_update_detail(self, store):
        task = await _add(store, "a")
        await store.update_detail(task.task_id, "细节")
        assert store.get_task(task.task_id).detail == "细节"
        result = await store.update_detail(task.task_id, "x" * 2001)
        assert result.status == MutationStatus.REJECTED

    async def test_set_priority_many(self, store):
        a = await _add(store, "a")
        b = await _add(store, "b")
        await store.set_priority_many([a.task_id, b.task_id], Priority.MEDIUM)
        assert {t.priority for t in store.tasks} == {Priority.MEDIUM}

    async def test_set_and_clear_due_date(self, store):
        task = await _add(store, "a")
        due = datetime(2026, 4, 1, 8, 0, tzinfo=UTC)
        await store.set_due_date(task.task_id, due)
        assert store.get_task(task.task_id).due_date == due
        await store.set_due_date(task.task_id, None)
        assert store.get_task(task.task_id).due_date is None

    async def test_updated_at_stamped(self, store):
        task = await _add(store, "a")
        await store.set_priority(task.task_id, Priority.LOW)
        updated = store.get_task(task.task_id)
        assert updated.updated_at >= task.updated_at
        assert updated.created_at == task.created_at


class TestDeleteTask:
    """删除任务"""

    async def test_delete(self, store):
        a = await _add(store, "a")
        b = await _add(store, "b")
        result = await store.delete_task(a.task_id)
        assert result.task_ids == (a.task_id,)
        assert [t.task_id for t in store.tasks] == [b.task_id]

    async def test_delete_unknown(self, store):
        assert (await store.delete_task("missing")).status == MutationStatus.NOT_FOUND

    async def test_delete_many(self, store):
        ids = [(await _add(store, name)).task_id for name in "abc"]
        await store.delete_tasks(ids[:2])
        assert [t.task_id for t in store.tasks] == [ids[2]]

    async def test_clear_completed(self, store):
        a = await _add(store, "a")
        b = await _add(store, "b")
        await store.toggle_completed(a.task_id)
        result = await store.clear_completed()
        assert result.task_ids == (a.task_id,)
        assert [t.task_id for t in store.tasks] == [b.task_id]

    async def test_clear_completed_nothing(self, store):
        await _add(store, "a")
        depth = store.history.depth
        assert (await store.clear_completed()).status == MutationStatus.UNCHANGED
        assert store.history.depth == depth


class TestTags:
    """标签 CRUD"""

    async def _tag(self, store, name, color=TagColor.BLUE):
        result = await store.add_tag(name, color)
        assert result.applied
        return store.get_tag(result.tag_ids[0])

    async def test_add_tag(self, store):
        tag = await self._tag(store, " 工作 ", TagColor.RED)
        assert tag.name == "工作"
        assert tag.color == TagColor.RED
        assert store.tags == (tag,)

    async def test_tag_name_length(self, store):
        assert (await store.add_tag("n" * 50)).applied
        assert (await store.add_tag("n" * 51)).status == MutationStatus.REJECTED
        assert (await store.add_tag(" ")).status == MutationStatus.REJECTED

    async def test_update_tag(self, store):
        tag = await self._tag(store, "工作")
        await store.update_tag(tag.tag_id, name="学习", color=TagColor.GREEN)
        updated = store.get_tag(tag.tag_id)
        assert (updated.name, updated.color) == ("学习", TagColor.GREEN)
        assert updated.created_at == tag.created_at

    async def test_update_tag_results(self, store):
        tag = await self._tag(store, "工作")
        assert (await store.update_tag(tag.tag_id)).status == MutationStatus.UNCHANGED
        assert (await store.update_tag(tag.tag_id, name="")).status == MutationStatus.REJECTED
        assert (await store.update_tag("missing", name="x")).status == MutationStatus.NOT_FOUND

    async def test_task_tag_assignment(self, store):
        tag = await self._tag(store, "工作")
        task = await _add(store, "a")

        assert (await store.add_tag_to_task(task.task_id, tag.tag_id)).applied
        assert store.get_task(task.task_id).tag_ids == (tag.tag_id,)
        result = await store.add_tag_to_task(task.task_id, tag.tag_id)
        assert result.status == MutationStatus.UNCHANGED
        result = await store.add_tag_to_task(task.task_id, "missing")
        assert result.status == MutationStatus.NOT_FOUND

        assert (await store.remove_tag_from_task(task.task_id, tag.tag_id)).applied
        assert store.get_task(task.task_id).tag_ids == ()
        result = await store.remove_tag_from_task(task.task_id, tag.tag_id)
        assert result.status == MutationStatus.UNCHANGED

    async def test_set_task_tags_ignores_unknown(self, store):
        work = await self._tag(store, "工作")
        home = await self._tag(store, "家庭")
        task = await _add(store, "a")
        await store.set_task_tags(task.task_id, [home.tag_id, "missing", work.tag_id, home.tag_id])
        assert store.get_task(task.task_id).tag_ids == (home.tag_id, work.tag_id)

    async def test_delete_tag_cascades(self, store):
        work = await self._tag(store, "工作")
        home = await self._tag(store, "家庭")
        tagged = await _add(store, "a", tag_ids=[work.tag_id, home.tag_id])
        plain = await _add(store, "b")

        result = await store.delete_tag(work.tag_id)
        assert result.tag_ids == (work.tag_id,)
        assert result.task_ids == (tagged.task_id,)
        assert store.get_tag(work.tag_id) is None
        assert store.get_task(tagged.task_id).tag_ids == (home.tag_id,)
        assert store.get_task(plain.task_id) == plain
        assert all(work.tag_id not in t.tag_ids for t in store.tasks)

    async def test_delete_tags_many(self, store):
        ids = [(await self._tag(store, name)).tag_id for name in ("a", "b", "c")]
        await store.delete_tags(ids[:2])
        assert [t.tag_id for t in store.tags] == [ids[2]]
        assert (await store.delete_tag("missing")).status == MutationStatus.NOT_FOUND


class TestQueries:
    """读接口"""

    async def test_filtered_and_sorted_cache_invalidated_on_mutation(self, store):
        task = await _add(store, "milk")
        assert len(store.filtered_and_sorted("milk")) == 1
        store.filtered_and_sorted("milk")
        assert store.query.hits == 1

        await store.update_title(task.task_id, "bread")
        assert store.filtered_and_sorted("milk") == []

    async def test_tasks_by_quadrant(self, store):
        today = date(2026, 3, 10)
        due = datetime(2026, 3, 9, 12, 0).astimezone()
        await store.add_task("urgent", priority=Priority.HIGH, due_date=due)
        await store.add_task("plan", priority=Priority.MEDIUM)
        await store.add_task("later")

        groups = store.tasks_by_quadrant(today)
        assert list(groups) == list(Quadrant)
        assert [t.title for t in groups[Quadrant.URGENT_IMPORTANT]] == ["urgent"]
        assert [t.title for t in groups[Quadrant.NOT_URGENT_IMPORTANT]] == ["plan"]
        assert groups[Quadrant.URGENT_NOT_IMPORTANT] == []
        assert [t.title for t in groups[Quadrant.NOT_URGENT_NOT_IMPORTANT]] == ["later"]
