"""
Tests for the local maintenance CLI.
"""

import json

from cli.local import main


def test_init_deploys_archives(content_root, write_archive, capsys):
    write_archive("demo", {"content.json": "{}"})

    assert main(["init", "--path", str(content_root)]) == 0

    out = capsys.readouterr().out
    assert "[NEW] demo" in out
    assert (content_root / "demo" / "content.json").exists()


def test_init_reports_failures(content_root, capsys):
    (content_root / "broken.zip").write_bytes(b"nope")

    assert main(["init", "--path", str(content_root)]) == 1
    assert "[FAILED] broken" in capsys.readouterr().out


def test_validate_json(content_root, write_archive, capsys):
    write_archive("good", {"content.json": "{}"})
    write_archive("bad", {"x y.txt": "1"})
    main(["init", "--path", str(content_root)])
    capsys.readouterr()

    assert main(["validate", "--path", str(content_root), "--json"]) == 1

    report = json.loads(capsys.readouterr().out)
    assert [p["content_id"] for p in report["packages"]] == ["bad", "good"]
    assert report["summary"]["invalid_ids"] == ["bad"]


def test_validate_all_valid(content_root, write_archive, capsys):
    write_archive("good", {"content.json": "{}"})
    main(["init", "--path", str(content_root)])

    assert main(["validate", "--path", str(content_root)]) == 0
    assert "[OK] good" in capsys.readouterr().out


def test_list(content_root, capsys):
    (content_root / "b").mkdir()
    (content_root / "a").mkdir()

    assert main(["list", "--path", str(content_root)]) == 0
    assert capsys.readouterr().out.split() == ["a", "b"]


def test_missing_path(tmp_path, capsys):
    assert main(["list", "--path", str(tmp_path / "missing")]) == 1
    assert "does not exist" in capsys.readouterr().out


def test_no_command(capsys):
    assert main([]) == 1
