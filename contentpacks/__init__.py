"""
Content Packages

Stores, unpacks, validates and serves zip content packages kept under a
single content folder.
"""

__version__ = "0.1.0"

from .errors import ContentPackageError, DeletionError, InvalidPathError, NotFoundError, UnpackError
from .paths import PackagePaths
from .store import PackageStore, PackageLocks
from .upload import UploadPipeline, UploadResult
from .validation import PackageValidator, ValidationResult
from .bootstrap import bootstrap, initialize_packages

__all__ = [
    '__version__',
    'ContentPackageError', 'DeletionError', 'InvalidPathError', 'NotFoundError', 'UnpackError',
    'PackagePaths', 'PackageStore', 'PackageLocks',
    'UploadPipeline', 'UploadResult',
    'PackageValidator', 'ValidationResult',
    'bootstrap', 'initialize_packages',
]
