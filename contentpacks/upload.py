"""
Content Package Upload Pipeline

Turns an uploaded byte stream into a deployed content package:
1. Persist the stream as CONTENT_PATH/{id}.zip (fully written before step 2)
2. Extract into a staging directory
3. Swap the staging directory over CONTENT_PATH/{id}/

The blocking work runs in the thread pool so uploads never stall the
event loop. No validation runs here; see validation.py.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional

from fastapi.concurrency import run_in_threadpool

from .paths import validate_content_id
from .store import PackageStore

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Outcome of a successful upload"""
    content_id: str
    archive_path: Path
    extracted_dir: Path
    file_count: int
    redirect_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content_id": self.content_id,
            "archive_path": str(self.archive_path),
            "extracted_dir": str(self.extracted_dir),
            "file_count": self.file_count,
            "redirect_url": self.redirect_url,
        }


class UploadPipeline:
    """
    Accepts uploads for a PackageStore.

    Usage:
        pipeline = UploadPipeline(store)
        result = await pipeline.accept_upload("demo", upload.file, "/overview?success=demo")
    """

    def __init__(self, store: PackageStore, log: Optional[logging.Logger] = None):
        self.store = store
        self.logger = log or logger

    async def accept_upload(self, content_id: str, stream: BinaryIO,
                            redirect_url: str = "") -> UploadResult:
        """
        Store and extract an uploaded archive.

        An existing package with the same ID is replaced. Concurrent uploads
        or deletions for the same ID wait for each other.

        Args:
            content_id: ID of the content package
            stream: Binary file-like object with the zip data
            redirect_url: Where the caller should be sent on success

        Returns:
            UploadResult describing the deployed package

        Raises:
            InvalidPathError: If the content ID is not usable
            UnpackError: If the archive cannot be stored or extracted
        """
        validate_content_id(content_id)
        self.logger.debug(f"Receiving upload for content package {content_id}")

        file_count = await run_in_threadpool(self.store.replace_package, content_id, stream)

        return UploadResult(
            content_id=content_id,
            archive_path=self.store.paths.archive_path(content_id),
            extracted_dir=self.store.paths.extracted_dir(content_id),
            file_count=file_count,
            redirect_url=redirect_url,
        )
