import logging
import os
from pathlib import Path

import pytest

from core.indexing import SUPPORTED_EXTENSIONS, ImageScanner, accepts


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x")
    return path


def test_accepts_known_extensions(tmp_path):
    for extension in SUPPORTED_EXTENSIONS:
        assert accepts(_touch(tmp_path / f"image.{extension}"))


def test_extension_match_is_case_sensitive(tmp_path):
    assert not accepts(_touch(tmp_path / "upper.PNG"))
    assert not accepts(_touch(tmp_path / "mixed.Jpg"))


def test_rejects_other_files_and_directories(tmp_path):
    assert not accepts(_touch(tmp_path / "notes.txt"))
    assert not accepts(_touch(tmp_path / "noextension"))
    (tmp_path / "folder.png").mkdir()
    assert not accepts(tmp_path / "folder.png")
    assert not accepts(tmp_path / "missing.png")


def test_rejects_symlinks(tmp_path):
    target = _touch(tmp_path / "real.png")
    link = tmp_path / "link.png"
    try:
        link.symlink_to(target)
    except OSError:
        pytest.skip("symlinks not supported")
    assert not accepts(link)


def test_scan_is_recursive_filtered_and_sorted(tmp_path):
    _touch(tmp_path / "b.png")
    _touch(tmp_path / "a.jpg")
    _touch(tmp_path / "readme.md")
    _touch(tmp_path / "sub" / "z" / "deep.gif")
    _touch(tmp_path / "sub" / "c.webp")

    scanner = ImageScanner(tmp_path)
    found = [path.relative_to(tmp_path).as_posix() for path in scanner.scan()]

    assert found == ["a.jpg", "b.png", "sub/c.webp", "sub/z/deep.gif"]
    assert scanner.total == 4


def test_scan_order_is_reproducible(tmp_path):
    for name in ["q.png", "d/e.png", "d/a.png", "m.bmp", "c/x.tga"]:
        _touch(tmp_path / name)
    first = list(ImageScanner(tmp_path).scan())
    second = list(ImageScanner(tmp_path).scan())
    assert first == second


def test_total_is_unknown_until_exhausted(tmp_path):
    _touch(tmp_path / "one.png")
    _touch(tmp_path / "two.png")
    scanner = ImageScanner(tmp_path)
    iterator = scanner.scan()
    next(iterator)
    assert scanner.total is None
    list(iterator)
    assert scanner.total == 2


def test_scan_cannot_be_restarted(tmp_path):
    scanner = ImageScanner(tmp_path)
    list(scanner.scan())
    with pytest.raises(RuntimeError):
        scanner.scan()


def test_missing_root_yields_nothing(tmp_path):
    scanner = ImageScanner(tmp_path / "does-not-exist")
    assert list(scanner.scan()) == []
    assert scanner.total == 0


def test_unreadable_directory_is_skipped_and_siblings_are_counted(tmp_path, monkeypatch, caplog):
    _touch(tmp_path / "a" / "one.png")
    _touch(tmp_path / "locked" / "hidden.png")
    _touch(tmp_path / "z" / "two.jpg")
    _touch(tmp_path / "top.gif")

    real_scandir = os.scandir

    def scandir(path="."):
        if os.path.basename(os.fspath(path)) == "locked":
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", scandir)
    scanner = ImageScanner(tmp_path)
    with caplog.at_level(logging.DEBUG, logger="core.indexing.scanner"):
        found = list(scanner.scan())

    assert found == [tmp_path / "top.gif", tmp_path / "a" / "one.png", tmp_path / "z" / "two.jpg"]
    assert scanner.total == 3
    assert "locked" in caplog.text
