"""Google credentials for the Drive state backend."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

from stackplan.errors import AuthError, InvalidArgumentError

from .auth_info import AuthInfo

logger = logging.getLogger(__name__)


class DriveAuthClient:
    """
    Turn an AuthInfo into Google credentials and a Drive v3 service.

    OAuth tokens are cached in `token_file`: an expired token with a refresh
    token is refreshed in place, anything else falls back to the installed-app
    browser flow. Service-account keys are loaded as-is.
    """

    def __init__(self, auth_info: AuthInfo) -> None:
        self._auth_info = auth_info

    def credentials(self, scopes: Sequence[str]) -> Any:
        """
        Raises:
            InvalidArgumentError: if `scopes` is empty or holds non-strings.
            AuthError: if keys/tokens cannot be loaded, refreshed or obtained.
        """
        scope_list = _check_scopes(scopes)
        if self._auth_info.kind == "service_account":
            return self._service_account(scope_list)

        creds = self._cached_token(scope_list)
        if creds is not None and not creds.valid and creds.refresh_token:
            self._refresh(creds)
        if creds is None or not creds.valid:
            creds = self._authorize(scope_list)
        return creds

    def drive_service(self, scopes: Sequence[str]) -> Any:
        """Drive API v3 resource built from `credentials(scopes)`."""
        try:
            from googleapiclient.discovery import build
        except ImportError as exc:  # pragma: no cover
            raise AuthError("google-api-python-client is not installed", cause=exc) from exc

        creds = self.credentials(scopes)
        try:
            return build("drive", "v3", credentials=creds, cache_discovery=False)
        except Exception as exc:
            raise AuthError("Could not build the Drive service", cause=exc) from exc

    # ----------------------------
    # Internals
    # ----------------------------
    def _service_account(self, scopes: list[str]) -> Any:
        from google.oauth2 import service_account

        key_file = self._auth_info.key_file
        try:
            return service_account.Credentials.from_service_account_file(key_file, scopes=scopes)
        except (OSError, ValueError) as exc:
            raise AuthError(
                "Service account key could not be loaded",
                details={"key_file": key_file},
                cause=exc,
            ) from exc

    def _cached_token(self, scopes: list[str]) -> Any:
        from google.oauth2.credentials import Credentials

        token_path = Path(self._auth_info.token_file)
        if not token_path.exists():
            return None
        try:
            return Credentials.from_authorized_user_file(str(token_path), scopes=scopes)
        except (OSError, ValueError) as exc:
            raise AuthError(
                "Cached OAuth token is unreadable",
                details={"token_file": str(token_path)},
                cause=exc,
            ) from exc

    def _refresh(self, creds: Any) -> None:
        from google.auth.exceptions import RefreshError
        from google.auth.transport.requests import Request

        logger.debug("Refreshing OAuth token from %s", self._auth_info.token_file)
        try:
            creds.refresh(Request())
        except RefreshError as exc:
            logger.warning("OAuth token refresh failed; re-authorizing: %s", exc)
            return
        self._store_token(creds)

    def _authorize(self, scopes: list[str]) -> Any:
        from google_auth_oauthlib.flow import InstalledAppFlow

        secrets = self._auth_info.client_secrets_file
        logger.info("Opening browser for OAuth authorization")
        try:
            flow = InstalledAppFlow.from_client_secrets_file(secrets, scopes=scopes)
            creds = flow.run_local_server(port=0)
        except Exception as exc:
            raise AuthError(
                "OAuth authorization did not complete",
                details={"client_secrets_file": secrets},
                cause=exc,
            ) from exc
        self._store_token(creds)
        return creds

    def _store_token(self, creds: Any) -> None:
        token_path = Path(self._auth_info.token_file)
        try:
            token_path.parent.mkdir(parents=True, exist_ok=True)
            token_path.write_text(creds.to_json(), encoding="utf-8")
        except OSError as exc:
            raise AuthError(
                "OAuth token could not be saved",
                details={"token_file": str(token_path)},
                cause=exc,
            ) from exc


def _check_scopes(scopes: Sequence[str]) -> list[str]:
    if isinstance(scopes, str) or not scopes:
        raise InvalidArgumentError("scopes must be a non-empty sequence of strings")
    if not all(isinstance(s, str) and s.strip() for s in scopes):
        raise InvalidArgumentError("scopes must be a non-empty sequence of strings")
    return list(scopes)
