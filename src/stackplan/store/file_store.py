"""Local JSON file plan store."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path

from stackplan.errors import InvalidStateError
from stackplan.plan import StateRecord, dumps_record, loads_record

from .base import check_version

logger = logging.getLogger(__name__)


class FilePlanStore:
    """StateRecord persisted as one JSON document, replaced atomically."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> StateRecord:
        if not self._path.exists():
            logger.info("No state at %s; starting from an empty record", self._path)
            return StateRecord.empty()

        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise InvalidStateError(
                "Failed to read state file",
                details={"path": str(self._path)},
                cause=exc,
            ) from exc

        record = loads_record(text)
        logger.info("Loaded state version %d from %s", record.version, self._path)
        return record

    def save(self, record: StateRecord, *, expected_version: int) -> None:
        with self._lock:
            check_version(self.load().version, expected_version, str(self._path))

            directory = self._path.parent
            directory.mkdir(parents=True, exist_ok=True)

            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=directory,
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(dumps_record(record))
                os.replace(tmp_name, self._path)
            except OSError as exc:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise InvalidStateError(
                    "Failed to write state file",
                    details={"path": str(self._path)},
                    cause=exc,
                ) from exc

            logger.info("Saved state version %d to %s", record.version, self._path)
