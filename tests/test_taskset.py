"""Tests for TaskSet: IDs, status transitions, filtering, sorting and aggregates."""

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from gittask.constants import ALL_STATUSES
from gittask.errors import BusinessRuleError, InvalidStatusTransitionError, TaskNotFoundError
from gittask.models.query import Query
from gittask.models.task import Task
from gittask.taskset import TaskSet
from tests.conftest import UUID_A, UUID_B, UUID_C

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _add(ts: TaskSet, summary: str, **fields) -> Task:
    return ts.load_task(Task(summary=summary, **fields))


def _change(ts: TaskSet, task_id: int, strict: bool = True, **fields) -> Task:
    task = ts.must_get_by_id(task_id).model_copy(deep=True)
    for name, value in fields.items():
        setattr(task, name, value)
    return ts.update_task(task, strict=strict)


class TestLoadTask:
    """Tests for TaskSet.load_task."""

    def test_sequential_ids(self, taskset):
        """Test that new tasks get IDs 1, 2, 3."""
        tasks = [_add(taskset, name) for name in ("a", "b", "c")]
        assert [t.id for t in tasks] == [1, 2, 3]

    def test_assigns_uuid_and_created(self, taskset):
        """Test UUID and creation stamp assignment."""
        task = _add(taskset, "a")
        assert len(task.uuid) == 36
        assert task.created is not None
        assert task.write_pending

    def test_duplicate_uuid_returns_existing(self, taskset):
        """Test that loading a UUID twice keeps the first copy."""
        first = _add(taskset, "first", uuid=UUID_A)
        second = _add(taskset, "second", uuid=UUID_A)
        assert second is first
        assert taskset.num_total() == 1

    def test_colliding_id_reassigned(self, taskset):
        """Test that a clashing stored ID gets a fresh one."""
        _add(taskset, "a", uuid=UUID_A, id=1)
        clash = _add(taskset, "b", uuid=UUID_B, id=1)
        assert clash.id == 2

    def test_resolved_gets_no_id(self, taskset):
        """Test that resolved tasks are loaded unnumbered."""
        task = _add(taskset, "old", status="resolved", id=5)
        assert task.id == 0
        assert taskset.get_by_id(5) is None


class TestUpdateTask:
    """Tests for TaskSet.update_task and the status state machine."""

    def test_resolve_frees_id(self, taskset):
        """Test that resolving removes the ID and stamps the resolution time."""
        for name in ("a", "b", "c"):
            _add(taskset, name)

        resolved = _change(taskset, 2, status="resolved")
        assert resolved.id == 0
        assert resolved.resolved is not None
        assert taskset.get_by_id(2) is None
        assert taskset.get_by_uuid(resolved.uuid) is resolved

    def test_freed_id_reused(self, taskset):
        """Test that the lowest free ID is reused."""
        for name in ("a", "b", "c"):
            _add(taskset, name)
        _change(taskset, 2, status="resolved")
        assert _add(taskset, "d").id == 2

    def test_valid_transitions(self, taskset):
        """Test pending -> active -> paused -> active."""
        _add(taskset, "a")
        assert _change(taskset, 1, status="active").status == "active"
        assert _change(taskset, 1, status="paused").status == "paused"
        assert _change(taskset, 1, status="active").status == "active"

    def test_active_to_template_rejected(self, taskset):
        """Test that only pending tasks become templates."""
        _add(taskset, "a", status="active")
        with pytest.raises(InvalidStatusTransitionError):
            _change(taskset, 1, status="template")

    def test_reopen_requires_non_strict(self, taskset):
        """Test that resolved -> pending only works with strict=False."""
        task = _add(taskset, "a", uuid=UUID_A)
        _change(taskset, 1, status="resolved")

        copy = taskset.get_by_uuid(UUID_A).model_copy(deep=True)
        copy.status = "pending"
        with pytest.raises(InvalidStatusTransitionError):
            taskset.update_task(copy)

        reopened = taskset.update_task(copy, strict=False)
        assert reopened.id == 1
        assert reopened.resolved is None
        assert taskset.get_by_id(1).uuid == task.uuid

    def test_open_checklist_blocks_resolve(self, taskset):
        """Test that unchecked checklist items prevent resolving."""
        _add(taskset, "a", notes="- [x] one\n- [ ] two")
        with pytest.raises(BusinessRuleError):
            _change(taskset, 1, status="resolved")
        assert taskset.get_by_id(1).status == "pending"

    def test_unknown_uuid(self, taskset):
        """Test that updating an unknown task raises."""
        with pytest.raises(TaskNotFoundError):
            taskset.update_task(Task(uuid=UUID_C, summary="ghost"))


class TestPersistence:
    """Tests for saving and reloading."""

    def test_ids_stable_across_loads(self, taskset, store, tmp_path):
        """Test that IDs survive a reload through the ID map."""
        for name in ("a", "b", "c"):
            _add(taskset, name)
        _change(taskset, 1, status="resolved")
        taskset.save_pending_changes()

        reloaded = TaskSet.load(store, tmp_path / "ids.json")
        assert sorted(t.id for t in reloaded.all_tasks()) == [2, 3]
        assert reloaded.get_by_id(3).summary == "c"

    def test_load_skips_unparseable(self, store, repo, tmp_path, caplog):
        """Test that broken files are logged and skipped."""
        pending = repo / "pending"
        pending.mkdir()
        (pending / "not-a-uuid.md").write_text("---\nsummary: x\n---\n")
        (pending / f"{UUID_A}.yml").write_text("summary: [broken\n")
        (pending / f"{UUID_B}.md").write_text("---\nsummary: fine\n---\n")

        with caplog.at_level(logging.WARNING, logger="gittask.taskset"):
            ts = TaskSet.load(store, tmp_path / "ids.json")

        assert [t.summary for t in ts.all_tasks()] == ["fine"]
        assert "Error loading task" in caplog.text

    def test_load_skips_invalid_utf8(self, store, repo, tmp_path, caplog):
        """Test that a file with undecodable bytes does not stop the load."""
        pending = repo / "pending"
        pending.mkdir()
        (pending / f"{UUID_A}.md").write_bytes(b"\xff\xfe")
        (pending / f"{UUID_B}.md").write_text("---\nsummary: fine\n---\n")

        with caplog.at_level(logging.WARNING, logger="gittask.taskset"):
            ts = TaskSet.load(store, tmp_path / "ids.json")

        assert [t.summary for t in ts.all_tasks()] == ["fine"]
        assert UUID_A in caplog.text

    def test_load_skips_malformed_list_field(self, store, repo, tmp_path):
        """Test that a scalar where a list belongs skips only that file."""
        pending = repo / "pending"
        pending.mkdir()
        (pending / f"{UUID_A}.md").write_text("---\nsummary: x\ntags: 5\n---\n")
        (pending / f"{UUID_B}.md").write_text("---\nsummary: fine\n---\n")

        ts = TaskSet.load(store, tmp_path / "ids.json")
        assert [t.summary for t in ts.all_tasks()] == ["fine"]

    def test_load_ignores_non_positive_ids(self, store, repo, tmp_path):
        """Test that stale zero or negative entries in the ID map are ignored."""
        pending = repo / "pending"
        pending.mkdir()
        (pending / f"{UUID_A}.md").write_text("---\nsummary: a\n---\n")
        (pending / f"{UUID_B}.md").write_text("---\nsummary: b\n---\n")
        ids_file = tmp_path / "ids.json"
        ids_file.write_text(json.dumps({UUID_A: -1, UUID_B: 0}))

        ts = TaskSet.load(store, ids_file)
        assert sorted(t.id for t in ts.all_tasks()) == [1, 2]
        assert ts.get_by_uuid(UUID_A).id > 0

    def test_hidden_statuses_filtered(self, store, tmp_path):
        """Test that templates load filtered until unhidden."""
        ts = TaskSet(store, tmp_path / "ids.json")
        _add(ts, "open")
        _add(ts, "tmpl", status="template")
        ts.save_pending_changes()

        loaded = TaskSet.load(store, tmp_path / "ids.json", ALL_STATUSES)
        assert [t.summary for t in loaded.tasks()] == ["open"]
        loaded.unhide()
        assert sorted(t.summary for t in loaded.tasks()) == ["open", "tmpl"]

    def test_delete_task(self, taskset, repo):
        """Test that deleting removes the file and the indices."""
        task = _add(taskset, "a")
        taskset.save_pending_changes()
        assert (repo / "pending" / f"{task.uuid}.md").exists()

        taskset.delete_task(task.uuid)
        assert not (repo / "pending" / f"{task.uuid}.md").exists()
        assert taskset.get_by_id(1) is None
        with pytest.raises(TaskNotFoundError):
            taskset.delete_task(task.uuid)

    def test_deleted_id_reused(self, taskset):
        """Test that deleting ID 2 frees it for the next task."""
        for name in ("a", "b", "c"):
            _add(taskset, name)
        taskset.delete_task(taskset.must_get_by_id(2).uuid)

        assert _add(taskset, "d").id == 2
        assert taskset.get_by_id(3).summary == "c"

    def test_id_ceiling_leaves_task_unnumbered(self, taskset, monkeypatch):
        """Test that a task beyond the ID ceiling loads with ID 0."""
        monkeypatch.setattr("gittask.taskset.MAX_TASKS_OPEN", 3)
        for name in ("a", "b", "c"):
            _add(taskset, name)

        overflow = _add(taskset, "d", uuid=UUID_A)
        assert overflow.id == 0
        assert taskset.get_by_uuid(UUID_A) is overflow
        assert taskset.num_total() == 4


class TestFilterAndSort:
    """Tests for filtering, sorting and aggregates."""

    def test_filter_is_monotonic(self, taskset):
        """Test that successive filters only narrow."""
        _add(taskset, "a", tags=["x"])
        _add(taskset, "b", tags=["y"])
        taskset.filter(Query(tags=["x"]))
        taskset.filter(Query())
        assert [t.summary for t in taskset.tasks()] == ["a"]

    def test_organised_and_unorganised(self, taskset):
        """Test the organised/unorganised split."""
        _add(taskset, "tagged", tags=["x"])
        _add(taskset, "bare")
        taskset.filter_unorganised()
        assert [t.summary for t in taskset.tasks()] == ["bare"]

    def test_filter_organised(self, taskset):
        """Test that tasks with a tag or a project are kept."""
        _add(taskset, "tagged", tags=["x"])
        _add(taskset, "filed", project="home")
        _add(taskset, "bare")
        taskset.filter_organised()
        assert [t.summary for t in taskset.tasks()] == ["tagged", "filed"]

    def test_sort_by_created_descending(self, taskset):
        """Test newest first."""
        _add(taskset, "old", created=BASE)
        _add(taskset, "new", created=BASE + timedelta(days=2))
        _add(taskset, "mid", created=BASE + timedelta(days=1))

        taskset.sort_by_created_descending()
        assert [t.summary for t in taskset.tasks()] == ["new", "mid", "old"]
        assert taskset.get_by_id(1).summary == "old"

    def test_sort_by_priority_descending(self, taskset):
        """Test lowest priority first."""
        _add(taskset, "critical", priority="P0")
        _add(taskset, "low", priority="P3")
        _add(taskset, "high", priority="P1")

        taskset.sort_by_priority_descending()
        assert [t.summary for t in taskset.tasks()] == ["low", "high", "critical"]

    def test_priority_then_created(self, taskset):
        """Test the next ordering: priority first, then age."""
        _add(taskset, "newer low", priority="P3", created=BASE + timedelta(days=2))
        _add(taskset, "newer high", priority="P1", created=BASE + timedelta(days=1))
        _add(taskset, "older high", priority="P1", created=BASE)

        taskset.sort_by_created_ascending()
        taskset.sort_by_priority_ascending()

        assert [t.summary for t in taskset.tasks()] == ["older high", "newer high", "newer low"]
        # indices follow the new order
        assert taskset.get_by_id(3).summary == "older high"

    def test_sort_by_resolved(self, taskset):
        """Test that unresolved tasks sort last ascending and first descending."""
        _add(taskset, "open")
        _add(taskset, "late", status="resolved", resolved=BASE + timedelta(days=3))
        _add(taskset, "early", status="resolved", resolved=BASE)

        taskset.sort_by_resolved_ascending()
        assert [t.summary for t in taskset.tasks()] == ["early", "late", "open"]

        taskset.sort_by_resolved_descending()
        assert [t.summary for t in taskset.tasks()] == ["open", "late", "early"]

    def test_get_tags(self, taskset):
        """Test sorted unique tags over visible tasks."""
        _add(taskset, "a", tags=["b", "a"])
        _add(taskset, "b", tags=["a", "c"])
        _add(taskset, "c", tags=["hidden"])
        taskset.filter(Query(anti_tags=["hidden"]))
        assert taskset.get_tags() == ["a", "b", "c"]

    def test_get_projects(self, taskset):
        """Test per-project counts and the top open priority."""
        _add(taskset, "a", project="tax", priority="P2", created=BASE + timedelta(days=1))
        _add(taskset, "b", project="tax", priority="P1", status="active", created=BASE)
        _add(taskset, "c", project="tax", priority="P0", status="resolved", resolved=BASE)
        _add(taskset, "d", project="home")
        _add(taskset, "e")

        home, tax = taskset.get_projects()
        assert home.name == "home"
        assert tax.tasks == 3
        assert tax.tasks_resolved == 1
        assert tax.tasks_open == 2
        assert tax.priority == "P1"
        assert tax.active is True
        assert tax.created == BASE
        assert tax.resolved == BASE
        assert home.active is False
