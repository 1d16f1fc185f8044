"""
Startup Reconciliation

Runs once when the service starts, before requests are served:
- purge staging entries left by an interrupted process
- extract archives that have no matching directory (initialize_packages)
- validate every package and log the findings

Nothing here is fatal to startup. Errors are logged and the scan goes on.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ContentPackageError
from .store import PackageStore
from .validation import PackageValidator, ValidationResult, get_validation_summary

logger = logging.getLogger(__name__)


@dataclass
class BootstrapReport:
    """What the startup pass did"""
    purged: List[str] = field(default_factory=list)
    imported: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    validation: List[ValidationResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "purged": self.purged,
            "imported": self.imported,
            "failed": self.failed,
            "validation": get_validation_summary(self.validation),
        }


def initialize_packages(store: PackageStore, log: Optional[logging.Logger] = None,
                        failed: Optional[List[str]] = None) -> List[str]:
    """
    Extract every archive that lacks an extracted directory.

    Running it again extracts nothing, since the directories now exist.

    Args:
        store: Store whose root is scanned
        log: Logger to use instead of the module logger
        failed: Optional list that collects IDs whose extraction failed

    Returns:
        IDs of the newly extracted packages
    """
    log = log or logger
    imported = []

    try:
        archives = store.list_archives()
    except OSError as e:
        log.warning(f"Failed to retrieve content directory listing: {e}")
        return imported

    for archive in archives:
        content_id = store.paths.content_id_from_archive(archive)
        try:
            if store.import_archive(content_id):
                log.debug(f"Deployed new content package: {content_id}")
                imported.append(content_id)
        except ContentPackageError as e:
            log.warning(f"Failed to deploy content package {content_id}: {e}")
            if failed is not None:
                failed.append(content_id)

    return imported


def bootstrap(store: PackageStore, validator: Optional[PackageValidator] = None,
              log: Optional[logging.Logger] = None, validate: bool = True) -> BootstrapReport:
    """Full startup pass: purge staging, import archives, validate packages"""
    log = log or logger
    report = BootstrapReport()

    report.purged = store.purge_staging()
    report.imported = initialize_packages(store, log=log, failed=report.failed)
    log.info(f"{len(report.imported)} new content packages available.")

    if validate:
        validator = validator or PackageValidator(store.paths, log=log)
        report.validation = validator.check_content_packages(store)
        summary = get_validation_summary(report.validation)
        if summary["invalid"]:
            log.warning(
                f"{summary['invalid']} of {summary['total']} content packages failed validation: "
                f"{', '.join(summary['invalid_ids'])}"
            )

    return report
