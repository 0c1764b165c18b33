"""
Identity and asset-upload adapters.

``StaticIdentity`` stands in for the hosted identity provider (CLI sessions,
tests); ``LocalAssetUploader`` writes uploads into a directory and hands back a
``file://`` URL, standing in for the hosted upload API.
"""

from __future__ import annotations

import asyncio
import hashlib
import mimetypes
import uuid
from pathlib import Path
from typing import Optional

from magnate.domain.models import CurrentUser, UploadedAsset
from magnate.utils.logging import get_logger

log = get_logger(__name__)


class StaticIdentity:
    """Identity provider that always reports the same user (or nobody)."""

    def __init__(self, user: Optional[CurrentUser] = None) -> None:
        self._user = user

    @classmethod
    def for_user_id(
        cls,
        user_id: Optional[str],
        email: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> "StaticIdentity":
        if not user_id:
            return cls(None)
        return cls(CurrentUser(id=user_id, email=email, display_name=display_name))

    def current_user(self) -> Optional[CurrentUser]:
        return self._user

    def sign_out(self) -> None:
        self._user = None


class LocalAssetUploader:
    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _write(self, filename: str, content: bytes) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / f"{uuid.uuid4().hex}-{Path(filename).name}"
        target.write_bytes(content)
        return target

    async def upload(self, filename: str, content: bytes) -> UploadedAsset:
        target = await asyncio.to_thread(self._write, filename, content)
        content_type, _ = mimetypes.guess_type(filename)
        metadata = {
            "filename": Path(filename).name,
            "size": len(content),
            "content_type": content_type or "application/octet-stream",
            "sha256": hashlib.sha256(content).hexdigest(),
        }
        log.info("Stored upload", extra={"path": str(target), "size": len(content)})
        return UploadedAsset(url=target.resolve().as_uri(), metadata=metadata)


__all__ = ["StaticIdentity", "LocalAssetUploader"]
