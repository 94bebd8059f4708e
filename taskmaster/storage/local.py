"""Task repository persisted to a local JSON file."""

import json
import logging
from pathlib import Path
from typing import Dict, List

from ..models.task import Task
from .base import RepositoryError
from .memory import InMemoryTaskRepository
from .migrations import partition_records

logger = logging.getLogger(__name__)


class JsonFileTaskRepository(InMemoryTaskRepository):
    """Keeps tasks in memory and rewrites the JSON file after every change.

    The file holds a JSON array of task records in the wire format. A
    missing file is an empty store. Records that cannot be read are kept
    as they are and written back after the readable tasks.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._unreadable: List = []
        super().__init__(self._load())

    def _load(self) -> List[Task]:
        if not self.path.exists():
            logger.info(f"No task file at {self.path}, starting empty")
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RepositoryError(f"Could not read tasks from {self.path}: {str(e)}") from e

        if not isinstance(data, list):
            raise RepositoryError(f"Task file {self.path} must contain a JSON array")

        tasks, self._unreadable = partition_records(data)
        if self._unreadable:
            logger.warning(f"Keeping {len(self._unreadable)} unreadable records in {self.path} untouched")
        logger.info(f"Loaded {len(tasks)} tasks from {self.path}")
        return tasks

    def _save(self, tasks: List[Task]) -> None:
        records = [task.to_record() for task in tasks] + self._unreadable
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except OSError as e:
            raise RepositoryError(f"Could not write tasks to {self.path}: {str(e)}") from e
        logger.debug(f"Saved {len(records)} task records to {self.path}")

    def _commit(self, tasks: Dict[str, Task]) -> None:
        self._save(list(tasks.values()))
        super()._commit(tasks)
