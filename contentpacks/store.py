"""
Content Package Store

Owns the content root and every filesystem mutation below it:
- Listing packages and archives
- Persisting uploaded archives (staging file + atomic rename)
- Replacing extracted trees (extract into staging, then swap into place)
- Deleting packages (archive first, then directory)

Operations on the same content ID are serialized through PackageLocks.
Operations on different IDs run in parallel.
"""

import logging
import os
import shutil
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, List, Optional, Union

from .errors import DeletionError, NotFoundError, UnpackError
from .extractor import unzip
from .paths import PackagePaths, ARCHIVE_SUFFIX, STAGING_PREFIX, is_staging_name

logger = logging.getLogger(__name__)

# Copy buffer for streaming uploads to disk
CHUNK_SIZE = 1024 * 1024


# =============================================================================
# PER-ID LOCKS
# =============================================================================

class PackageLocks:
    """
    One lock per content ID, created on demand.

    Locks are reference counted and dropped once nobody holds or waits for
    them, so the map only contains IDs with operations in flight.

    Usage:
        locks = PackageLocks()
        with locks.hold("demo"):
            ...
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}

    @contextmanager
    def hold(self, content_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(content_id, threading.Lock())
            self._users[content_id] = self._users.get(content_id, 0) + 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._users[content_id] -= 1
                if self._users[content_id] == 0:
                    del self._users[content_id]
                    del self._locks[content_id]

    def active_ids(self) -> List[str]:
        """IDs that currently have an operation running or waiting"""
        with self._guard:
            return list(self._locks)


# =============================================================================
# STORE
# =============================================================================

class PackageStore:
    """
    Filesystem-backed store for content packages.

    Layout:
        root/{id}.zip   - archive
        root/{id}/      - extracted contents
        root/.*         - staging entries of in-flight operations
    """

    def __init__(self, root: Union[str, Path], log: Optional[logging.Logger] = None,
                 locks: Optional[PackageLocks] = None):
        self.root = Path(root)
        self.paths = PackagePaths(self.root)
        self.logger = log or logger
        self.locks = locks or PackageLocks()

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def list_packages(self) -> List[str]:
        """
        IDs of all extracted packages (direct subdirectories of the root).

        Order depends on the filesystem. Errors are logged and give [].
        """
        try:
            return [
                entry.name for entry in self.root.iterdir()
                if entry.is_dir() and not is_staging_name(entry.name)
            ]
        except OSError as e:
            self.logger.warning(f"Failed to retrieve content directory listing: {e}")
            return []

    def list_archives(self) -> List[Path]:
        """
        Regular *.zip files directly under the root.

        Raises:
            OSError: If the root cannot be listed
        """
        return [
            entry for entry in self.root.iterdir()
            if entry.is_file()
            and entry.name.endswith(ARCHIVE_SUFFIX)
            and not is_staging_name(entry.name)
        ]

    def has_package(self, content_id: str) -> bool:
        return self.paths.extracted_dir(content_id).is_dir()

    # -------------------------------------------------------------------------
    # Lookup for serving
    # -------------------------------------------------------------------------

    def archive_file(self, content_id: str) -> Path:
        """
        Raises:
            NotFoundError: If no archive exists for the ID
        """
        archive = self.paths.archive_path(content_id)
        if not archive.is_file():
            raise NotFoundError(f"No content package with id {content_id} available.", content_id)
        return archive

    def member_file(self, content_id: str, relative_path: str) -> Path:
        """
        Raises:
            InvalidPathError: If the path would leave the package directory
            NotFoundError: If the file does not exist
        """
        member = self.paths.member_path(content_id, relative_path)
        if not member.is_file():
            raise NotFoundError(f"File not found in content package {content_id}: {relative_path}", content_id)
        return member

    # -------------------------------------------------------------------------
    # Filesystem helpers
    # -------------------------------------------------------------------------

    def _staging_path(self, kind: str) -> Path:
        return self.root / f"{STAGING_PREFIX}{kind}-{uuid.uuid4().hex[:12]}"

    @staticmethod
    def remove_tree(path: Path) -> None:
        """
        Recursively delete a directory (or a single file).

        Raises:
            OSError: If anything cannot be removed
        """
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()

    def _discard(self, path: Path) -> None:
        """Best-effort removal of a staging entry"""
        try:
            if path.exists() or path.is_symlink():
                self.remove_tree(path)
        except OSError as e:
            self.logger.warning(f"Could not remove staging entry {path.name}: {e}")

    def _swap_into_place(self, staging: Path, target: Path) -> None:
        """
        Move a fully extracted staging directory over the target.

        Only a directory is retired. A regular file in the target's place
        makes the rename fail instead of being removed.
        """
        retired = None
        if target.is_dir():
            retired = self._staging_path("retired")
            os.replace(target, retired)
        os.replace(staging, target)
        if retired is not None:
            self._discard(retired)

    # -------------------------------------------------------------------------
    # Archive persistence and extraction (caller holds the ID lock)
    # -------------------------------------------------------------------------

    def _write_archive(self, content_id: str, stream: BinaryIO) -> Path:
        """Stream bytes to a staging file, fsync, then rename over the archive"""
        archive = self.paths.archive_path(content_id)
        staging = self._staging_path("upload")
        bytes_written = 0
        try:
            with open(staging, "wb") as out:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    out.write(chunk)
                    bytes_written += len(chunk)
                out.flush()
                os.fsync(out.fileno())
            os.replace(staging, archive)
        except OSError as e:
            self._discard(staging)
            raise UnpackError(f"Failed to store archive for {content_id}: {e}", content_id) from e
        except BaseException:
            self._discard(staging)
            raise

        self.logger.debug(f"Stored archive {archive.name} ({bytes_written} bytes)")
        return archive

    def _extract_package(self, content_id: str) -> int:
        """
        Extract root/{id}.zip into staging and swap it over root/{id}.

        On failure the staging tree and any previous extraction are removed;
        the archive stays where it is.
        """
        archive = self.paths.archive_path(content_id)
        target = self.paths.extracted_dir(content_id)
        staging = self._staging_path("extract")

        try:
            file_count = unzip(archive, staging, log=self.logger)
        except UnpackError as e:
            e.content_id = content_id
            self._discard(staging)
            if target.is_dir():
                try:
                    self.remove_tree(target)
                except OSError as rm_error:
                    self.logger.warning(f"Could not remove previous extraction of {content_id}: {rm_error}")
            raise

        try:
            self._swap_into_place(staging, target)
        except OSError as e:
            self._discard(staging)
            raise UnpackError(f"Failed to move extracted content into place: {e}", content_id) from e
        return file_count

    # -------------------------------------------------------------------------
    # Package operations
    # -------------------------------------------------------------------------

    def replace_package(self, content_id: str, stream: BinaryIO) -> int:
        """
        Store an uploaded archive and replace the extracted package.

        The archive is completely written before extraction starts. The old
        directory stays in place until the new one is ready.

        Returns:
            Number of extracted files

        Raises:
            UnpackError: If the archive cannot be stored or extracted
        """
        with self.locks.hold(content_id):
            self._write_archive(content_id, stream)
            file_count = self._extract_package(content_id)

        self.logger.info(f"Content package {content_id} deployed ({file_count} files)")
        return file_count

    def import_archive(self, content_id: str) -> bool:
        """
        Extract an existing archive if its directory is missing.

        Returns:
            True if the archive was extracted, False if the directory exists

        Raises:
            UnpackError: If extraction fails
        """
        with self.locks.hold(content_id):
            if self.has_package(content_id):
                return False
            self._extract_package(content_id)
        return True

    def delete_package(self, content_id: str) -> None:
        """
        Delete the archive, then the extracted directory.

        Raises:
            NotFoundError: If there is no archive (the directory is left alone)
            DeletionError: If removal fails after the archive check
        """
        with self.locks.hold(content_id):
            archive = self.paths.archive_path(content_id)
            try:
                archive.unlink()
            except FileNotFoundError:
                raise NotFoundError(f"No content package with id {content_id} available.", content_id)
            except OSError as e:
                raise DeletionError(f"Failed to delete content package: {e}", content_id) from e

            target = self.paths.extracted_dir(content_id)
            if target.is_dir():
                try:
                    self.remove_tree(target)
                except OSError as e:
                    raise DeletionError(f"Failed to delete content package: {e}", content_id) from e

        self.logger.info(f"Content package {content_id} deleted")

    def purge_staging(self) -> List[str]:
        """
        Remove staging entries left behind by an interrupted process.

        Only call this while no uploads are running.
        """
        removed = []
        try:
            entries = [e for e in self.root.iterdir() if is_staging_name(e.name)]
        except OSError as e:
            self.logger.warning(f"Failed to retrieve content directory listing: {e}")
            return removed

        for entry in entries:
            # Leave unrelated dotfiles alone
            if not entry.name.startswith((".upload-", ".extract-", ".retired-")):
                continue
            self._discard(entry)
            removed.append(entry.name)

        if removed:
            self.logger.info(f"Removed {len(removed)} stale staging entries")
        return removed
