"""Process-local state: the persisted context and the UUID -> ID map."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pydantic

from gittask.errors import ParseError, StoreError
from gittask.models.query import Query

logger = logging.getLogger(__name__)

IdsMap = dict[str, int]


def _write(path: Path, data: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(data, encoding="utf-8")
    except OSError as e:
        raise StoreError(f"Failed to write {path}: {e}") from e


class LocalState:
    """Holds the context query between invocations."""

    def __init__(self, state_file: Path, context: Query | None = None) -> None:
        self.state_file = Path(state_file)
        self.context = context or Query()

    @classmethod
    def load(cls, state_file: Path) -> LocalState:
        """Read the persisted context. A missing or corrupt file yields an empty context."""
        path = Path(state_file)
        try:
            context = Query.model_validate_json(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            context = Query()
        except (OSError, pydantic.ValidationError) as e:
            logger.warning("Ignoring unreadable state file %s: %s", path, e)
            context = Query()
        return cls(path, context)

    def set_context(self, context: Query) -> None:
        """
        Replace the context.

        Raises:
            ParseError: if the query addresses IDs or carries free text
        """
        if context.ids:
            raise ParseError("Context cannot contain IDs")
        if context.text:
            raise ParseError("Context cannot contain text")
        self.context = context

    def save(self) -> None:
        _write(self.state_file, self.context.model_dump_json(indent=2))


def load_ids(ids_file: Path) -> IdsMap:
    """UUID -> ID map from the last run; empty when absent or corrupt."""
    path = Path(ids_file)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable ID map %s: %s", path, e)
        return {}

    if not isinstance(data, dict):
        return {}
    return {str(uuid): int(task_id) for uuid, task_id in data.items() if isinstance(task_id, int) and task_id > 0}


def save_ids(ids_file: Path, ids: IdsMap) -> None:
    _write(Path(ids_file), json.dumps(ids, indent=2, sort_keys=True))
