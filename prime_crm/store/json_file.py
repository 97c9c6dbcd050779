"""JSON file store: one document per process with embedded checklist."""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator

from prime_crm.exceptions import ProcessNotFoundError, StoreError
from prime_crm.models.process import Process, utcnow
from prime_crm.sinks.serialization import process_from_dict, process_to_dict
from prime_crm.store.base import ProcessRepository

logger = logging.getLogger(__name__)


class JsonFileProcessStore(ProcessRepository):
    """Store each process as ``<data_dir>/<process_id>.json``."""

    def __init__(
        self,
        data_dir: str | Path,
        pretty: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize JSON file store.

        Parameters
        ----------
        data_dir : str | Path
            Directory holding the process documents.
        pretty : bool
            Pretty-print JSON output.
        clock : Callable[[], datetime]
            Source of ``updated_at`` timestamps.
        """
        super().__init__(clock)
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.pretty = pretty

    def _path(self, process_id: str) -> Path:
        if not process_id or "/" in process_id or "\\" in process_id or process_id.startswith("."):
            raise StoreError(f"Invalid process id for file storage: {process_id!r}")
        return self.data_dir / f"{process_id}.json"

    def _read(self, path: Path) -> Process:
        try:
            with open(path, encoding="utf-8") as f:
                return process_from_dict(json.load(f))
        except (OSError, ValueError, KeyError) as e:
            raise StoreError(f"Could not read {path}: {e}") from e

    def _write(self, process: Process) -> None:
        path = self._path(process.id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(
                    process_to_dict(process),
                    f,
                    indent=2 if self.pretty else None,
                    ensure_ascii=False,
                    default=str,
                )
            os.replace(tmp_path, path)
        except OSError as e:
            raise StoreError(f"Could not write {path}: {e}") from e

    def get_process(self, process_id: str) -> Process:
        path = self._path(process_id)
        if not path.exists():
            raise ProcessNotFoundError(f"Process {process_id} not found")
        return self._read(path)

    def _list_all(self) -> Iterator[Process]:
        for path in sorted(self.data_dir.glob("*.json")):
            yield self._read(path)

    def _insert(self, process: Process) -> None:
        if self._path(process.id).exists():
            raise StoreError(f"Process {process.id} already exists")
        self._write(process)

    def _save(self, process: Process) -> None:
        if not self._path(process.id).exists():
            raise ProcessNotFoundError(f"Process {process.id} not found")
        self._write(process)
