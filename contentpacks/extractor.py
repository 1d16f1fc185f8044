"""
Archive Extractor

Unpacks zip archives onto a directory tree, keeping each entry's relative
path. Extraction is not atomic: a failure partway through leaves whatever
was already written. Callers that need atomic replacement extract into a
staging directory first (see store.py).
"""

import logging
import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from .errors import UnpackError

logger = logging.getLogger(__name__)

# Copy buffer for entry data
CHUNK_SIZE = 1024 * 1024


def _entry_target(target_dir: Path, entry_name: str) -> Path:
    """Map an archive entry name to its path below target_dir (zip-slip guard)"""
    rel = PurePosixPath(entry_name.replace("\\", "/"))
    if rel.is_absolute() or ".." in rel.parts:
        raise UnpackError(f"Unsafe entry path in archive: {entry_name}")
    parts = [p for p in rel.parts if p not in ("", ".")]
    return target_dir.joinpath(*parts)


def unzip(source_path: Union[str, Path], target_dir: Union[str, Path],
          log: Optional[logging.Logger] = None) -> int:
    """
    Extract every entry of a zip archive into target_dir.

    Creates target_dir (and parents) if needed. Directory entries are
    created, file entries are written with their parent folders.

    Args:
        source_path: Zip file to read
        target_dir: Directory to extract into
        log: Logger to use instead of the module logger

    Returns:
        Number of files written

    Raises:
        UnpackError: If the archive is missing, corrupt, contains unsafe
            entry names, or an I/O error occurs while writing
    """
    log = log or logger
    source = Path(source_path)
    target = Path(target_dir)

    files_written = 0
    try:
        target.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(source, "r") as zf:
            for info in zf.infolist():
                entry_path = _entry_target(target, info.filename)
                if info.is_dir():
                    entry_path.mkdir(parents=True, exist_ok=True)
                    continue

                entry_path.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info, "r") as src, open(entry_path, "wb") as dst:
                    shutil.copyfileobj(src, dst, CHUNK_SIZE)
                files_written += 1
    except UnpackError:
        raise
    except zipfile.BadZipFile as e:
        raise UnpackError(f"Corrupt archive {source.name}: {e}") from e
    except (OSError, zlib.error, zipfile.LargeZipFile, RuntimeError, EOFError) as e:
        # RuntimeError: encrypted entries, EOFError: truncated entry data
        raise UnpackError(f"Failed to extract {source.name}: {e}") from e

    log.debug(f"Extracted {files_written} files from {source} to {target}")
    return files_written
