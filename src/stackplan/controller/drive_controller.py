"""Google Drive API access for the state backend (internal use only)."""

from __future__ import annotations

import io
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterator, Optional, Sequence, TypeVar

from stackplan.auth import AuthInfo, DriveAuthClient
from stackplan.errors import (
    ApiError,
    HttpErrorInfo,
    NetworkError,
    RateLimitError,
    StackPlanError,
    map_http_error,
)
from stackplan.util.time import parse_rfc3339

T = TypeVar("T")

logger = logging.getLogger(__name__)

FILE_FIELDS: str = "id,name,parents,modifiedTime,version,size,appProperties"
LIST_FIELDS: str = f"nextPageToken,files({FILE_FIELDS})"

JSON_MIME: str = "application/json"


@dataclass(slots=True)
class DriveFile:
    """Metadata of a Drive file holding a state document."""

    file_id: str
    name: str
    parents: list[str] = field(default_factory=list)
    modified_time: Optional[datetime] = None
    version: Optional[int] = None
    size: Optional[int] = None
    app_properties: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential backoff for rate limits, network errors and 5xx."""

    max_retries: int = 3
    initial_delay_sec: float = 1.0
    multiplier: float = 2.0

    def delays(self) -> Iterator[float]:
        delay = self.initial_delay_sec
        for _ in range(self.max_retries):
            yield delay
            delay *= self.multiplier


class DriveStateController:
    """
    Minimal Drive v3 client for one JSON state document.

    Only the calls the plan store needs are exposed: find by name inside a
    folder, download, create and update (content plus appProperties).
    """

    DEFAULT_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/drive.file",)

    def __init__(
        self,
        auth_info: AuthInfo,
        *,
        scopes: Optional[Sequence[str]] = None,
        supports_all_drives: bool = True,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        service = DriveAuthClient(auth_info).drive_service(scopes or self.DEFAULT_SCOPES)
        self._init(service, supports_all_drives, retry_policy)

    @classmethod
    def from_service(
        cls,
        service: Any,
        *,
        supports_all_drives: bool = True,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> "DriveStateController":
        """Wrap an already built Drive service (tests, custom transports)."""
        obj = cls.__new__(cls)
        obj._init(service, supports_all_drives, retry_policy)
        return obj

    def _init(
        self,
        service: Any,
        supports_all_drives: bool,
        retry_policy: Optional[RetryPolicy],
    ) -> None:
        self._service = service
        self._retry_policy = retry_policy or RetryPolicy()
        self._drive_kwargs: dict[str, Any] = (
            {"supportsAllDrives": True} if supports_all_drives else {}
        )
        self._list_kwargs: dict[str, Any] = (
            {"supportsAllDrives": True, "includeItemsFromAllDrives": True}
            if supports_all_drives
            else {}
        )

    # ----------------------------
    # Public API
    # ----------------------------
    def get(self, file_id: str) -> DriveFile:
        request = self._service.files().get(fileId=file_id, fields=FILE_FIELDS, **self._drive_kwargs)
        return _to_drive_file(self._with_retry(request.execute))

    def find_file(self, folder_id: str, name: str) -> Optional[DriveFile]:
        """Newest non-trashed file called `name` directly inside `folder_id`."""
        query = (
            f"name = '{_quote(name)}' and '{_quote(folder_id)}' in parents and trashed = false"
        )
        matches = list(self._list(query))
        if len(matches) > 1:
            logger.warning(
                "%d files named %s in folder %s; using the most recently modified",
                len(matches),
                name,
                folder_id,
            )
        return matches[0] if matches else None

    def download(self, file_id: str) -> bytes:
        from googleapiclient.http import MediaIoBaseDownload

        request = self._service.files().get_media(fileId=file_id, **self._drive_kwargs)
        buffer = io.BytesIO()
        downloader = MediaIoBaseDownload(buffer, request)
        finished = False
        while not finished:
            _, finished = self._with_retry(downloader.next_chunk)
        return buffer.getvalue()

    def create(
        self,
        folder_id: str,
        name: str,
        data: bytes,
        *,
        app_properties: Optional[dict[str, str]] = None,
        mime_type: str = JSON_MIME,
    ) -> DriveFile:
        body: dict[str, Any] = {"name": name, "parents": [folder_id], "mimeType": mime_type}
        if app_properties:
            body["appProperties"] = dict(app_properties)
        request = self._service.files().create(
            body=body,
            media_body=_upload(data, mime_type),
            fields=FILE_FIELDS,
            **self._drive_kwargs,
        )
        return _to_drive_file(self._with_retry(request.execute))

    def update(
        self,
        file_id: str,
        data: bytes,
        *,
        app_properties: Optional[dict[str, str]] = None,
        mime_type: str = JSON_MIME,
    ) -> DriveFile:
        body = {"appProperties": dict(app_properties)} if app_properties else {}
        request = self._service.files().update(
            fileId=file_id,
            body=body,
            media_body=_upload(data, mime_type),
            fields=FILE_FIELDS,
            **self._drive_kwargs,
        )
        return _to_drive_file(self._with_retry(request.execute))

    # ----------------------------
    # Internals
    # ----------------------------
    def _list(self, query: str) -> Iterator[DriveFile]:
        page_token: Optional[str] = None
        while True:
            request = self._service.files().list(
                q=query,
                fields=LIST_FIELDS,
                orderBy="modifiedTime desc",
                pageToken=page_token,
                **self._list_kwargs,
            )
            page = self._with_retry(request.execute)
            for item in page.get("files", []):
                yield _to_drive_file(item)
            page_token = page.get("nextPageToken")
            if not page_token:
                return

    def _with_retry(self, call: Callable[[], T]) -> T:
        delays = self._retry_policy.delays()
        while True:
            try:
                return call()
            except Exception as exc:
                error = _translate(exc)
                delay = next(delays, None) if _retryable(error) else None
                if delay is None:
                    raise error from exc
                logger.debug("Drive call failed (%s); retrying in %.1fs", error, delay)
                time.sleep(delay)


def _retryable(error: StackPlanError) -> bool:
    if isinstance(error, (RateLimitError, NetworkError)):
        return True
    status = error.details.get("status_code")
    return isinstance(error, ApiError) and isinstance(status, int) and status >= 500


def _translate(exc: Exception) -> StackPlanError:
    from googleapiclient.errors import HttpError

    if isinstance(exc, HttpError):
        return map_http_error(_http_error_info(exc), cause=exc)
    if isinstance(exc, (OSError, TimeoutError)):
        return NetworkError("Network error talking to Drive", cause=exc)
    return ApiError(f"Drive call failed: {exc}", cause=exc)


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _upload(data: bytes, mime_type: str) -> Any:
    from googleapiclient.http import MediaIoBaseUpload

    return MediaIoBaseUpload(io.BytesIO(data), mimetype=mime_type, resumable=False)


def _digits(value: Any) -> Optional[int]:
    return int(value) if isinstance(value, str) and value.isdigit() else None


def _to_drive_file(data: dict[str, Any]) -> DriveFile:
    modified: Optional[datetime] = None
    raw_modified = data.get("modifiedTime")
    if isinstance(raw_modified, str):
        try:
            modified = parse_rfc3339(raw_modified)
        except ValueError:
            logger.debug("Ignoring unparsable modifiedTime %r", raw_modified)

    parents = data.get("parents")
    app_properties = data.get("appProperties")
    return DriveFile(
        file_id=str(data.get("id", "")),
        name=str(data.get("name", "")),
        parents=list(parents) if isinstance(parents, list) else [],
        modified_time=modified,
        version=_digits(data.get("version")),
        size=_digits(data.get("size")),
        app_properties=dict(app_properties) if isinstance(app_properties, dict) else {},
    )


def _http_error_info(exc: Any) -> HttpErrorInfo:
    resp = getattr(exc, "resp", None)
    status = getattr(resp, "status", None)
    reason = getattr(resp, "reason", None)
    message: Optional[str] = None
    details: dict[str, Any] = {}

    try:
        payload = json.loads(bytes(getattr(exc, "content", b"") or b"{}").decode("utf-8"))
    except (TypeError, UnicodeDecodeError, ValueError):
        payload = {}

    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        message = error.get("message") or None
        errors = error.get("errors")
        first = errors[0] if isinstance(errors, list) and errors else None
        if isinstance(first, dict):
            details["domain"] = first.get("domain")
            if isinstance(first.get("reason"), str):
                reason = first["reason"]

    return HttpErrorInfo(
        status_code=status if isinstance(status, int) else 0,
        reason=reason if isinstance(reason, str) else None,
        message=message,
        details=details or None,
    )
