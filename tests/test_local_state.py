"""Tests for persisted context and the ID map."""

import logging

import pytest

from gittask.errors import ParseError
from gittask.local_state import LocalState, load_ids, save_ids
from gittask.models.query import Query, parse_query
from tests.conftest import UUID_A, UUID_B


class TestLocalState:
    """Tests for LocalState."""

    def test_missing_file_is_empty(self, tmp_path):
        """Test that a fresh install has no context."""
        state = LocalState.load(tmp_path / "state.json")
        assert state.context == Query()

    def test_save_and_load(self, tmp_path):
        """Test that the context survives a round trip, parent dirs included."""
        path = tmp_path / "nested" / "state.json"
        state = LocalState.load(path)
        context = parse_query(["+work", "-project:hobby", "due.before:2030-01-01"])
        state.set_context(context)
        state.save()

        assert LocalState.load(path).context == context

    def test_corrupt_file(self, tmp_path, caplog):
        """Test that a corrupt file is logged and ignored."""
        path = tmp_path / "state.json"
        path.write_text("{not json")
        with caplog.at_level(logging.WARNING, logger="gittask.local_state"):
            state = LocalState.load(path)
        assert state.context == Query()
        assert "Ignoring unreadable state file" in caplog.text

    def test_context_rejects_ids(self, tmp_path):
        """Test that a context cannot address tasks."""
        with pytest.raises(ParseError, match="IDs"):
            LocalState.load(tmp_path / "s.json").set_context(Query(ids=[1]))

    def test_context_rejects_text(self, tmp_path):
        """Test that a context cannot carry text."""
        with pytest.raises(ParseError, match="text"):
            LocalState.load(tmp_path / "s.json").set_context(Query(text="hello"))


class TestIdsMap:
    """Tests for load_ids and save_ids."""

    def test_round_trip(self, tmp_path):
        """Test saving and loading the UUID -> ID map."""
        path = tmp_path / "ids.json"
        save_ids(path, {UUID_A: 1, UUID_B: 2})
        assert load_ids(path) == {UUID_A: 1, UUID_B: 2}

    def test_missing(self, tmp_path):
        """Test that a missing map is empty."""
        assert load_ids(tmp_path / "ids.json") == {}

    @pytest.mark.parametrize("content", ["garbage", "[1, 2]"])
    def test_corrupt(self, tmp_path, content):
        """Test that unreadable maps are treated as empty."""
        path = tmp_path / "ids.json"
        path.write_text(content)
        assert load_ids(path) == {}
