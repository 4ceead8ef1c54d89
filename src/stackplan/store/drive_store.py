"""Google Drive plan store: the state document lives in a Drive folder."""

from __future__ import annotations

import logging
import threading

from stackplan.controller import DriveFile, DriveStateController
from stackplan.errors import InvalidStateError
from stackplan.plan import StateRecord, dumps_record, loads_record

from .base import check_version

logger = logging.getLogger(__name__)

VERSION_PROPERTY: str = "stackplanVersion"
DEFAULT_STATE_NAME: str = "stackplan-state.json"


class DrivePlanStore:
    """
    StateRecord stored as a JSON file in a Drive folder.

    The record version is mirrored into the file's appProperties so the
    conflict check does not need to download the document.
    """

    def __init__(
        self,
        controller: DriveStateController,
        folder_id: str,
        *,
        name: str = DEFAULT_STATE_NAME,
    ) -> None:
        self._controller = controller
        self._folder_id = folder_id
        self._name = name
        self._lock = threading.Lock()

    @property
    def location(self) -> str:
        return f"drive://{self._folder_id}/{self._name}"

    def load(self) -> StateRecord:
        file = self._controller.find_file(self._folder_id, self._name)
        if file is None:
            logger.info("No state at %s; starting from an empty record", self.location)
            return StateRecord.empty()

        record = self._read(file)
        logger.info("Loaded state version %d from %s", record.version, self.location)
        return record

    def save(self, record: StateRecord, *, expected_version: int) -> None:
        with self._lock:
            file = self._controller.find_file(self._folder_id, self._name)
            current = self._stored_version(file)
            check_version(current, expected_version, self.location)

            data = dumps_record(record).encode("utf-8")
            props = {VERSION_PROPERTY: str(record.version)}
            if file is None:
                self._controller.create(self._folder_id, self._name, data, app_properties=props)
            else:
                self._controller.update(file.file_id, data, app_properties=props)

            logger.info("Saved state version %d to %s", record.version, self.location)

    # ----------------------------
    # Internals
    # ----------------------------
    def _read(self, file: DriveFile) -> StateRecord:
        raw = self._controller.download(file.file_id)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidStateError(
                "State document is not UTF-8",
                details={"file_id": file.file_id},
                cause=exc,
            ) from exc
        return loads_record(text)

    def _stored_version(self, file: DriveFile | None) -> int:
        if file is None:
            return 0
        value = file.app_properties.get(VERSION_PROPERTY)
        if value is not None and value.isdigit():
            return int(value)
        return self._read(file).version
