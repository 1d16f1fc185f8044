"""Pytest fixtures for the content delivery service test suite."""

import io
import zipfile
from pathlib import Path
from typing import Dict, Union

import pytest
from fastapi.testclient import TestClient

from contentpacks.config import LocalConfig
from contentpacks.server import create_app
from contentpacks.store import PackageStore
from contentpacks.validation import PackageValidator


# ============================================================================
# ARCHIVE HELPERS
# ============================================================================


def build_zip(entries: Dict[str, Union[str, bytes, None]]) -> bytes:
    """
    Build a zip archive in memory.

    Args:
        entries: Entry name -> content. A name ending in "/" with content
            None becomes a directory entry.

    Returns:
        Raw zip bytes
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            if content is None:
                zf.writestr(zipfile.ZipInfo(name), b"")
            else:
                zf.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def demo_zip():
    """Archive with index.html="hi" and an empty descriptor"""
    return build_zip({"index.html": "hi", "content.json": "{}"})


@pytest.fixture
def make_zip():
    """Factory fixture: make_zip({...}) -> bytes"""
    return build_zip


@pytest.fixture
def write_archive(content_root):
    """Factory fixture: write_archive("demo", {...}) -> Path of root/demo.zip"""

    def _write(content_id: str, entries: Dict[str, Union[str, bytes, None]]) -> Path:
        archive = content_root / f"{content_id}.zip"
        archive.write_bytes(build_zip(entries))
        return archive

    return _write


# ============================================================================
# STORE FIXTURES
# ============================================================================


@pytest.fixture
def content_root(tmp_path):
    """Empty content folder"""
    root = tmp_path / "content"
    root.mkdir()
    return root


@pytest.fixture
def store(content_root):
    return PackageStore(content_root)


@pytest.fixture
def validator(store):
    return PackageValidator(store.paths)


# ============================================================================
# APP FIXTURES
# ============================================================================


@pytest.fixture
def app_config(tmp_path, content_root):
    """Config pointing at the temporary content folder, ignoring the environment"""
    config = LocalConfig(config_path=str(tmp_path / "local_settings.json"), use_env=False)
    config.set_content_path(str(content_root))
    return config


@pytest.fixture
def client(app_config):
    """
    Test client with lifespan (startup scan) enabled.

    Yields:
        fastapi.testclient.TestClient
    """
    app = create_app(app_config)
    with TestClient(app) as test_client:
        yield test_client
