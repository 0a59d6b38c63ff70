"""Tests for the file-per-task store and its codecs."""

from datetime import datetime, timezone

import pytest

from gittask.constants import ZERO_DATE_STR
from gittask.errors import StoreError
from gittask.models.task import SubTask, Task
from gittask.store import (
    StoreEntry,
    TaskStore,
    _parse_instant,
    decode_markdown,
    decode_yaml,
    encode_markdown,
    encode_yaml,
    task_from_editor_text,
    task_to_editor_text,
)
from tests.conftest import UUID_A, UUID_B


class TestInstants:
    """Tests for timestamp parsing."""

    def test_zero_sentinel_is_unset(self):
        """Test that the year-one sentinel reads back as None."""
        assert _parse_instant(ZERO_DATE_STR) is None
        assert _parse_instant("") is None
        assert _parse_instant(None) is None

    def test_nanoseconds_truncated(self):
        """Test RFC 3339 with nanosecond precision."""
        parsed = _parse_instant("2024-01-02T03:04:05.123456789Z")
        assert parsed == datetime(2024, 1, 2, 3, 4, 5, 123456, tzinfo=timezone.utc)

    def test_offset_kept(self):
        """Test that explicit offsets are honoured."""
        parsed = _parse_instant("2024-01-02T05:04:05+02:00")
        assert parsed == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_invalid(self):
        """Test that garbage raises StoreError."""
        with pytest.raises(StoreError):
            _parse_instant("last tuesday")


class TestMarkdownCodec:
    """Tests for the Markdown-with-frontmatter format."""

    def test_layout(self, sample_task):
        """Test frontmatter first, notes as the body."""
        text = encode_markdown(sample_task)
        assert text.startswith("---\n")
        assert "summary: Call accountant" in text
        assert text.rstrip().endswith("- [x] gather invoices")
        assert "status" not in text

    def test_decode(self, sample_task):
        """Test that decoding restores the persisted fields."""
        sample_task.subtasks = [SubTask(summary="scan receipts")]
        task = decode_markdown(UUID_A, "pending", encode_markdown(sample_task))
        assert task.uuid == UUID_A
        assert task.status == "pending"
        assert task.summary == "Call accountant"
        assert task.notes == sample_task.notes
        assert task.tags == ["tax", "phone"]
        assert task.created == sample_task.created
        assert task.due == sample_task.due
        assert task.resolved is None
        assert task.subtasks == [SubTask(summary="scan receipts")]

    def test_unset_dates_written_as_zero(self):
        """Test that unset instants are written as the zero sentinel."""
        text = encode_markdown(Task(uuid=UUID_A, summary="x", priority="P2"))
        assert ZERO_DATE_STR in text
        assert decode_markdown(UUID_A, "pending", text).created is None

    def test_decode_without_frontmatter(self):
        """Test that a plain Markdown file becomes a task with notes only."""
        task = decode_markdown(UUID_A, "pending", "just some notes\n")
        assert task.notes == "just some notes"
        assert task.summary == ""


class TestYamlCodec:
    """Tests for the legacy YAML format."""

    def test_notes_inside_document(self, sample_task):
        """Test that notes are a YAML key."""
        text = encode_yaml(sample_task)
        assert "notes:" in text
        assert decode_yaml(UUID_A, "pending", text).notes == sample_task.notes

    def test_native_yaml_timestamp(self):
        """Test unquoted YAML timestamps."""
        task = decode_yaml(UUID_A, "pending", "summary: x\ncreated: 2024-01-02T03:04:05Z\n")
        assert task.created == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_invalid_yaml(self):
        """Test that broken YAML raises StoreError."""
        with pytest.raises(StoreError):
            decode_yaml(UUID_A, "pending", "summary: [unclosed\n")

    def test_not_a_mapping(self):
        """Test that a YAML list is rejected."""
        with pytest.raises(StoreError):
            decode_yaml(UUID_A, "pending", "- a\n- b\n")


class TestTaskStore:
    """Tests for TaskStore."""

    def test_unknown_format(self, repo):
        """Test that only md and yml are accepted."""
        with pytest.raises(StoreError):
            TaskStore(repo, "json")

    def test_write_and_read(self, store, repo, sample_task):
        """Test the on-disk path and read back."""
        path = store.write(sample_task)
        assert path == repo / "pending" / f"{UUID_A}.md"

        entry = store.read("pending", UUID_A)
        assert entry.suffix == ".md"
        assert store.decode(entry).summary == "Call accountant"

    def test_write_removes_stale_copies(self, store, repo, sample_task):
        """Test that a status change or format change leaves a single file."""
        legacy = repo / "pending" / f"{UUID_A}.yml"
        legacy.parent.mkdir(parents=True)
        legacy.write_text(encode_yaml(sample_task))

        sample_task.status = "active"
        store.write(sample_task)

        assert not legacy.exists()
        assert [p.name for p in repo.rglob(f"{UUID_A}*")] == [f"{UUID_A}.md"]
        assert (repo / "active" / f"{UUID_A}.md").exists()

    def test_yml_format(self, repo, sample_task):
        """Test writing in the legacy format."""
        path = TaskStore(repo, "yml").write(sample_task)
        assert path.suffix == ".yml"

    def test_list_order_and_dotfiles(self, store, repo):
        """Test Markdown before YAML and hidden files skipped."""
        directory = repo / "pending"
        directory.mkdir()
        (directory / f"{UUID_B}.yml").write_text("summary: b\n")
        (directory / f"{UUID_A}.md").write_text("---\nsummary: a\n---\n")
        (directory / ".hidden.md").write_text("x")

        entries = store.list("pending")
        assert [(e.uuid, e.suffix) for e in entries] == [(UUID_A, ".md"), (UUID_B, ".yml")]

    def test_list_missing_directory(self, store):
        """Test that a missing status directory is empty."""
        assert store.list("deferred") == []

    def test_decode_rejects_bad_filename(self, store):
        """Test that the file name must be a UUID."""
        with pytest.raises(StoreError, match="Filename does not encode UUID"):
            store.decode(StoreEntry("notes", "pending", ".md", b"---\nsummary: x\n---\n"))

    def test_decode_rejects_invalid_utf8(self, store):
        """Test that undecodable bytes become a StoreError."""
        with pytest.raises(StoreError, match="not valid UTF-8"):
            store.decode(StoreEntry(UUID_A, "pending", ".md", b"\xff\xfe"))

    @pytest.mark.parametrize("field", ["tags", "dependencies", "subtasks"])
    def test_decode_rejects_scalar_list_field(self, store, field):
        """Test that list fields holding a scalar are malformed."""
        for value in ("5", "foo"):
            raw = f"---\nsummary: x\n{field}: {value}\n---\n".encode()
            with pytest.raises(StoreError, match=f"{field} must be a list"):
                store.decode(StoreEntry(UUID_A, "pending", ".md", raw))

    def test_editor_text_rejects_scalar_tags(self, sample_task):
        """Test that an edited document with scalar tags is refused."""
        with pytest.raises(StoreError, match="tags must be a list"):
            task_from_editor_text(sample_task, "---\nsummary: x\ntags: 5\n---\n")

    def test_delete_removes_every_copy(self, store, repo, sample_task):
        """Test that delete clears all status directories."""
        store.write(sample_task)
        (repo / "resolved").mkdir()
        (repo / "resolved" / f"{UUID_A}.yml").write_text("summary: old\n")

        store.delete(UUID_A)
        assert list(repo.rglob(f"{UUID_A}*")) == []

    def test_read_missing(self, store):
        """Test reading an absent task."""
        with pytest.raises(StoreError):
            store.read("pending", UUID_A)


class TestEditorText:
    """Tests for the editor round trip."""

    def test_carries_status_and_due(self, sample_task):
        """Test that the editor document shows status and a plain due date."""
        text = task_to_editor_text(sample_task)
        assert "status: pending" in text
        assert "summary: Call accountant" in text

    def test_applies_edits(self, sample_task):
        """Test summary, status, tags and due edits."""
        text = task_to_editor_text(sample_task)
        text = text.replace("summary: Call accountant", "summary: Email accountant")
        text = text.replace("status: pending", "status: active")
        edited = task_from_editor_text(sample_task, text)

        assert edited.summary == "Email accountant"
        assert edited.status == "active"
        assert edited.uuid == sample_task.uuid
        assert edited.created == sample_task.created
        assert edited.notes == sample_task.notes
        assert edited.due is not None
        assert sample_task.summary == "Call accountant"

    def test_clearing_due(self, sample_task):
        """Test that an empty due removes the date."""
        edited = task_from_editor_text(sample_task, "---\nsummary: x\ndue: ''\n---\n")
        assert edited.due is None
        assert edited.status == "pending"

    def test_malformed_subtasks(self, sample_task):
        """Test that a bad subtasks value is reported."""
        with pytest.raises(StoreError):
            task_from_editor_text(sample_task, "---\nsummary: x\nsubtasks: [1, 2]\n---\n")
