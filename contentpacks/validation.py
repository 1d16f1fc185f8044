"""
Content Package Validation

Best-effort checks over extracted packages:
- check_descriptor() - content.json exists, is readable, parses as a JSON object
- check_package_content() - every path component matches FILENAME_PATTERN
- validate_package() - both checks as a ValidationResult report
- check_content_packages() - report for every package in the store

Validation never raises, never blocks serving and never removes anything.
Findings are logged as warnings and recorded in the report.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple, TYPE_CHECKING

from .errors import ContentPackageError
from .paths import PackagePaths

if TYPE_CHECKING:
    from .store import PackageStore

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

# Allowed characters for every file and folder name inside a package
FILENAME_PATTERN = re.compile(r"[A-Za-z0-9_.]+")


# =============================================================================
# VALIDATION RESULT DATACLASS
# =============================================================================

@dataclass
class ValidationResult:
    """
    Validation status for a single content package.

    `valid` is True only when the descriptor parses and every filename is
    legal. `issues` holds a readable reason per failed check.
    """
    content_id: str = ""
    validated_at: str = ""

    # Descriptor checks
    has_descriptor: bool = False
    descriptor_valid: bool = False

    # Filename checks
    filenames_valid: bool = False
    invalid_path: str = ""  # First offending path, relative to the package
    file_count: int = 0     # Files checked before the first offending one

    issues: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.descriptor_valid and self.filenames_valid

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["valid"] = self.valid
        return data


# =============================================================================
# VALIDATOR
# =============================================================================

class PackageValidator:
    """
    Runs descriptor and filename checks over extracted packages.

    Usage:
        validator = PackageValidator(PackagePaths("/srv/content"))
        if not validator.check_descriptor("demo"):
            ...
        report = validator.validate_package("demo")
    """

    def __init__(self, paths: PackagePaths, log: Optional[logging.Logger] = None):
        self.paths = paths
        self.logger = log or logger

    # -------------------------------------------------------------------------
    # Descriptor
    # -------------------------------------------------------------------------

    def _descriptor_issue(self, content_id: str) -> Tuple[bool, Optional[str]]:
        """Returns (descriptor exists, issue or None)"""
        descriptor = self.paths.descriptor_path(content_id)

        try:
            readable = descriptor.is_file() and os.access(descriptor, os.R_OK)
        except OSError as e:
            return False, f"Content package descriptor cannot be accessed: {descriptor} ({e})"
        if not readable:
            return False, f"Content package descriptor does not exist or cannot be accessed: {descriptor}"

        try:
            with open(descriptor, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return True, f"Failed to parse content package descriptor for content package: {content_id} ({e})"
        except OSError as e:
            return True, f"Failed to read content package descriptor for content package: {content_id} ({e})"

        if not isinstance(data, dict):
            return True, (
                f"Content package descriptor for {content_id} is not a JSON object "
                f"(got {type(data).__name__})"
            )
        return True, None

    def check_descriptor(self, content_id: str) -> bool:
        """True if {package}/content.json exists, is readable and is a JSON object"""
        _, issue = self._descriptor_issue(content_id)
        if issue:
            self.logger.warning(issue)
            return False
        return True

    # -------------------------------------------------------------------------
    # Filenames
    # -------------------------------------------------------------------------

    def _iter_member_files(self, package_dir: Path, errors: List[OSError]):
        """
        Yield relative paths of all regular files below package_dir.

        Folders and files that cannot be read are skipped and collected in errors.
        """
        for dirpath, _dirnames, filenames in os.walk(package_dir, onerror=errors.append):
            for name in filenames:
                full = Path(dirpath) / name
                try:
                    if not full.is_file():
                        continue
                except OSError as e:
                    errors.append(e)
                    continue
                yield full.relative_to(package_dir)

    def _find_invalid_path(self, content_id: str) -> Tuple[Optional[Path], int, Optional[str]]:
        """Returns (first offending relative path or None, files checked, read error or None)"""
        package_dir = self.paths.extracted_dir(content_id)
        errors: List[OSError] = []
        checked = 0
        for rel in self._iter_member_files(package_dir, errors):
            checked += 1
            for part in rel.parts:
                if not FILENAME_PATTERN.fullmatch(part):
                    return rel, checked, None

        if errors:
            return None, checked, f"Failed to read content package {content_id}: {errors[0]}"
        return None, checked, None

    def check_package_content(self, content_id: str) -> bool:
        """
        True if every component of every file path in the package is legal.

        Stops at the first offending file and logs its relative path. A package
        that cannot be read completely is not valid either.
        """
        invalid, _, error = self._find_invalid_path(content_id)
        if invalid is not None:
            self.logger.warning(f'Invalid file name in package "{content_id}": {invalid.as_posix()}')
            return False
        if error:
            self.logger.warning(error)
            return False
        return True

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def validate_package(self, content_id: str) -> ValidationResult:
        """Run both checks and return a structured report"""
        result = ValidationResult(content_id=content_id, validated_at=_timestamp())

        result.has_descriptor, issue = self._descriptor_issue(content_id)
        result.descriptor_valid = issue is None
        if issue:
            result.issues.append(issue)
            self.logger.warning(issue)

        invalid, result.file_count, error = self._find_invalid_path(content_id)
        result.filenames_valid = invalid is None and error is None
        if invalid is not None:
            result.invalid_path = invalid.as_posix()
            issue = f'Invalid file name in package "{content_id}": {result.invalid_path}'
            result.issues.append(issue)
            self.logger.warning(issue)
        elif error:
            result.issues.append(error)
            self.logger.warning(error)

        if result.valid:
            self.logger.debug(f"Content package validated: {content_id}")
        return result

    def check_content_packages(self, store: "PackageStore") -> List[ValidationResult]:
        """
        Validate every package in the store.

        A package that cannot be checked at all gets an invalid report with
        the error as its issue. Nothing stops the loop.
        """
        results = []
        for content_id in store.list_packages():
            try:
                results.append(self.validate_package(content_id))
            except (ContentPackageError, OSError) as e:
                issue = f"Failed to validate content package {content_id}: {e}"
                self.logger.warning(issue)
                results.append(ValidationResult(
                    content_id=content_id,
                    validated_at=_timestamp(),
                    issues=[issue],
                ))
        return results


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def get_validation_summary(results: List[ValidationResult]) -> Dict[str, Any]:
    """Aggregate counts for display"""
    invalid = [r.content_id for r in results if not r.valid]
    return {
        "total": len(results),
        "valid": len(results) - len(invalid),
        "invalid": len(invalid),
        "invalid_ids": invalid,
    }
