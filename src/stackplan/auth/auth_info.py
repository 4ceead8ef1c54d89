"""Authentication information for the Google Drive state backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_REQUIRED_KEYS: dict[str, tuple[str, ...]] = {
    "oauth": ("client_secrets_file", "token_file"),
    "service_account": ("key_file",),
}


@dataclass(slots=True, frozen=True)
class AuthInfo:
    """
    Authentication information.

    Supported kinds:
        kind = "oauth"            data: client_secrets_file, token_file
        kind = "service_account"  data: key_file
    """

    kind: str
    data: dict[str, Any]

    def __post_init__(self) -> None:
        if self.kind not in _REQUIRED_KEYS:
            raise ValueError(
                f"AuthInfo.kind must be one of {sorted(_REQUIRED_KEYS)}, got {self.kind!r}"
            )

        if not isinstance(self.data, dict):
            raise TypeError("AuthInfo.data must be a mapping of settings")

        for key in _REQUIRED_KEYS[self.kind]:
            value = self.data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"AuthInfo.data[{key!r}] is required for kind={self.kind!r}")

    @classmethod
    def oauth(cls, client_secrets_file: str, token_file: str) -> "AuthInfo":
        return cls(
            kind="oauth",
            data={"client_secrets_file": client_secrets_file, "token_file": token_file},
        )

    @classmethod
    def service_account(cls, key_file: str) -> "AuthInfo":
        return cls(kind="service_account", data={"key_file": key_file})

    @property
    def client_secrets_file(self) -> str:
        """OAuth client secrets JSON (installed-app credentials)."""
        return str(self.data["client_secrets_file"])

    @property
    def token_file(self) -> str:
        """Where the authorized-user token is cached between runs."""
        return str(self.data["token_file"])

    @property
    def key_file(self) -> str:
        """Path to a service account key JSON."""
        return str(self.data["key_file"])
