"""
Tests for the startup reconciliation pass.
"""

import logging

from contentpacks.bootstrap import bootstrap, initialize_packages
from contentpacks.store import PackageStore
from contentpacks.validation import PackageValidator


class TestInitializePackages:
    """Test suite for initialize_packages()."""

    def test_imports_archives_once(self, store, content_root, write_archive):
        write_archive("one", {"a.txt": "1"})
        write_archive("two", {"b/c.txt": "2"})

        first = initialize_packages(store)
        second = initialize_packages(store)

        assert sorted(first) == ["one", "two"]
        assert second == []
        assert (content_root / "two" / "b" / "c.txt").read_text() == "2"

    def test_existing_directory_is_untouched(self, store, content_root, write_archive):
        write_archive("demo", {"a.txt": "from zip"})
        (content_root / "demo").mkdir()

        assert initialize_packages(store) == []
        assert not (content_root / "demo" / "a.txt").exists()

    def test_bad_archive_is_skipped(self, store, content_root, write_archive, caplog):
        (content_root / "broken.zip").write_bytes(b"not a zip")
        write_archive("good", {"a.txt": "1"})
        failed = []

        with caplog.at_level(logging.WARNING):
            imported = initialize_packages(store, failed=failed)

        assert imported == ["good"]
        assert failed == ["broken"]
        assert "broken" in caplog.text
        assert (content_root / "broken.zip").exists()

    def test_ignores_non_zip_files(self, store, content_root):
        (content_root / "notes.txt").write_text("x")
        assert initialize_packages(store) == []

    def test_missing_root(self, tmp_path):
        assert initialize_packages(PackageStore(tmp_path / "missing")) == []


class TestBootstrap:
    """Test suite for bootstrap()."""

    def test_full_pass(self, store, content_root, write_archive, caplog):
        write_archive("good", {"content.json": "{}"})
        write_archive("bad", {"x y.txt": "1"})
        (content_root / ".upload-stale").write_bytes(b"partial")

        with caplog.at_level(logging.INFO):
            report = bootstrap(store)

        assert report.purged == [".upload-stale"]
        assert sorted(report.imported) == ["bad", "good"]
        assert report.failed == []
        assert "2 new content packages available." in caplog.text
        assert report.to_dict()["validation"]["invalid_ids"] == ["bad"]

    def test_without_validation(self, store, write_archive):
        write_archive("demo", {"x y.txt": "1"})

        report = bootstrap(store, validate=False)

        assert report.imported == ["demo"]
        assert report.validation == []

    def test_second_run_imports_nothing(self, store, write_archive, caplog):
        write_archive("demo", {"content.json": "{}"})
        bootstrap(store)

        with caplog.at_level(logging.INFO):
            report = bootstrap(store)

        assert report.imported == []
        assert "0 new content packages available." in caplog.text

    def test_validation_error_does_not_abort(self, store, write_archive, monkeypatch):
        """A package that cannot be read is reported, the pass completes."""
        write_archive("good", {"content.json": "{}"})
        write_archive("locked", {"content.json": "{}"})
        original = PackageValidator.validate_package

        def validate(self, content_id):
            if content_id == "locked":
                raise PermissionError(13, "Permission denied")
            return original(self, content_id)

        monkeypatch.setattr(PackageValidator, "validate_package", validate)

        report = bootstrap(store)

        assert sorted(report.imported) == ["good", "locked"]
        assert report.to_dict()["validation"]["invalid_ids"] == ["locked"]

    def test_archive_suffix_archive_is_skipped(self, store, content_root, write_archive):
        """demo.zip.zip would unpack over the archive of "demo"."""
        write_archive("demo", {"content.json": "{}"})
        write_archive("demo.zip", {"other.txt": "1"})

        report = bootstrap(store, validate=False)

        assert report.imported == ["demo"]
        assert report.failed == ["demo.zip"]
        assert (content_root / "demo.zip").is_file()
        assert (content_root / "demo" / "content.json").exists()
