"""Internal controller exports for stackplan."""

from __future__ import annotations

from .drive_controller import DriveFile, DriveStateController

__all__ = ["DriveFile", "DriveStateController"]
