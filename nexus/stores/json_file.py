"""JSON-file store: one document per collection under the workspace directory."""

import logging
import os
import tempfile
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from nexus.errors import StoreError
from nexus.models import Developer, Robot, Task
from nexus.stores.base import TaskStore

logger = logging.getLogger(__name__)

TASKS_FILE = "tasks.json"
DEVELOPERS_FILE = "developers.json"
ROBOTS_FILE = "robots.json"

M = TypeVar("M", bound=BaseModel)


class JsonFileStore(TaskStore):
    def __init__(self, directory: Path) -> None:
        self._dir = directory

    @property
    def directory(self) -> Path:
        return self._dir

    def _read(self, name: str, adapter: TypeAdapter[list[M]]) -> list[M]:
        path = self._dir / name
        if not path.exists():
            return []
        try:
            return adapter.validate_json(path.read_bytes())
        except ValidationError as exc:
            raise StoreError(f"{path} is not a valid {name} document: {exc.error_count()} error(s)") from exc

    def _write(self, name: str, adapter: TypeAdapter[list[M]], items: list[M]) -> None:
        """Replace the document in one step: write a sibling temp file, then rename."""
        self._dir.mkdir(parents=True, exist_ok=True)
        payload = adapter.dump_json(items, by_alias=True, indent=2)
        fd, tmp = tempfile.mkstemp(dir=self._dir, prefix=f".{name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
            os.replace(tmp, self._dir / name)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Wrote %d record(s) to %s", len(items), self._dir / name)

    def load(self) -> list[Task]:
        return self._read(TASKS_FILE, _TASKS)

    def save(self, tasks: list[Task]) -> None:
        self._write(TASKS_FILE, _TASKS, tasks)

    def load_developers(self) -> list[Developer]:
        return self._read(DEVELOPERS_FILE, _DEVELOPERS)

    def save_developers(self, developers: list[Developer]) -> None:
        self._write(DEVELOPERS_FILE, _DEVELOPERS, developers)

    def load_robots(self) -> list[Robot]:
        return self._read(ROBOTS_FILE, _ROBOTS)

    def save_robots(self, robots: list[Robot]) -> None:
        self._write(ROBOTS_FILE, _ROBOTS, robots)


_TASKS = TypeAdapter(list[Task])
_DEVELOPERS = TypeAdapter(list[Developer])
_ROBOTS = TypeAdapter(list[Robot])
