"""
Error taxonomy for the view pipeline.

FetchError and ActionError are surfaced to the owning view; SecondaryWriteError
is only ever logged and attached to an ActionResult.
"""

from __future__ import annotations

from typing import Optional


class MagnateError(Exception):
    """Base class for errors raised by the view pipeline."""


class FetchError(MagnateError):
    """A collection query failed (connectivity, permission, bad query)."""

    def __init__(self, collection: str, cause: Optional[BaseException] = None) -> None:
        self.collection = collection
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to load '{collection}'{detail}")


class ActionError(MagnateError):
    """A single-record update failed; nothing was patched locally."""

    def __init__(
        self,
        record_id: str,
        cause: Optional[BaseException] = None,
        message: Optional[str] = None,
    ) -> None:
        self.record_id = record_id
        self.cause = cause
        if message is None:
            message = f"Action on '{record_id}' failed"
            if cause is not None:
                message = f"{message}: {cause}"
        super().__init__(message)


class SecondaryWriteError(MagnateError):
    """A best-effort side write (notification, activity log) failed."""

    def __init__(self, collection: str, cause: Optional[BaseException] = None) -> None:
        self.collection = collection
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Secondary write to '{collection}' failed{detail}")


__all__ = ["MagnateError", "FetchError", "ActionError", "SecondaryWriteError"]
