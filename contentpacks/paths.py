"""
Content Package Path Resolver

Maps content IDs to their locations under the content root:
    CONTENT_PATH/{content_id}.zip            - uploaded archive
    CONTENT_PATH/{content_id}/               - extracted contents
    CONTENT_PATH/{content_id}/content.json   - package descriptor

Names starting with "." are reserved for in-flight uploads and extractions.
"""

from pathlib import Path, PurePosixPath
from typing import Union

from .errors import InvalidPathError


ARCHIVE_SUFFIX = ".zip"
DESCRIPTOR_FILE = "content.json"
STAGING_PREFIX = "."


def is_staging_name(name: str) -> bool:
    """Check if a root entry belongs to an in-flight operation"""
    return name.startswith(STAGING_PREFIX)


def validate_content_id(content_id: str) -> str:
    """
    Reject content IDs that cannot name a single entry under the root.

    An ID may not end in the archive suffix either: the folder of "demo.zip"
    would be the archive of "demo".

    Raises:
        InvalidPathError: If the ID is empty, contains a separator or NUL,
            starts with the staging prefix or ends with the archive suffix
    """
    if not content_id:
        raise InvalidPathError("Content ID must not be empty", content_id)
    if content_id in (".", ".."):
        raise InvalidPathError(f"Invalid content ID: {content_id!r}", content_id)
    if any(c in content_id for c in ("/", "\\", "\x00")):
        raise InvalidPathError(f"Content ID contains a path separator: {content_id!r}", content_id)
    if is_staging_name(content_id):
        raise InvalidPathError(f"Content ID must not start with '{STAGING_PREFIX}': {content_id!r}", content_id)
    if content_id.lower().endswith(ARCHIVE_SUFFIX):
        raise InvalidPathError(f"Content ID must not end with '{ARCHIVE_SUFFIX}': {content_id!r}", content_id)
    return content_id


class PackagePaths:
    """Resolves archive, directory and member paths for content packages"""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def archive_path(self, content_id: str) -> Path:
        """Path of the uploaded archive: root/{id}.zip"""
        validate_content_id(content_id)
        return self.root / f"{content_id}{ARCHIVE_SUFFIX}"

    def extracted_dir(self, content_id: str) -> Path:
        """Path of the extracted package: root/{id}"""
        validate_content_id(content_id)
        return self.root / content_id

    def descriptor_path(self, content_id: str) -> Path:
        return self.extracted_dir(content_id) / DESCRIPTOR_FILE

    def member_path(self, content_id: str, relative_path: str) -> Path:
        """
        Path of a file inside an extracted package: root/{id}/{relative_path}

        The relative path uses forward slashes. Absolute paths and ".."
        components are rejected, and the joined path has to stay inside
        the package directory even after symlinks are resolved.

        Raises:
            InvalidPathError: If the path would leave the package directory
        """
        package_dir = self.extracted_dir(content_id)

        normalized = relative_path.replace("\\", "/")
        rel = PurePosixPath(normalized)
        if not normalized or rel.is_absolute() or ".." in rel.parts or "\x00" in normalized:
            raise InvalidPathError(f"Invalid member path: {relative_path!r}", content_id)

        target = package_dir.joinpath(*rel.parts)
        try:
            target.resolve().relative_to(package_dir.resolve())
        except ValueError:
            raise InvalidPathError(
                f"Member path resolves outside package '{content_id}': {relative_path!r}",
                content_id
            )
        return target

    def content_id_from_archive(self, archive: Path) -> str:
        """Strip the archive suffix: root/demo.zip -> demo"""
        return archive.name[:-len(ARCHIVE_SUFFIX)]
