"""Public auth exports for stackplan."""

from __future__ import annotations

from .auth_info import AuthInfo
from .credentials import DriveAuthClient

__all__ = ["AuthInfo", "DriveAuthClient"]
