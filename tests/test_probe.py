from pathlib import Path

import pytest

from jpegmark.probe import size_of


def test_size_of_returns_byte_count(tmp_path: Path) -> None:
    path = tmp_path / "blob.bin"
    path.write_bytes(b"x" * 2048)

    assert size_of(path) == 2048
    assert size_of(str(path)) == 2048


def test_size_of_in_kilobytes(tmp_path: Path) -> None:
    path = tmp_path / "blob.bin"
    path.write_bytes(b"x" * 1536)

    assert size_of(path, kilobytes=True) == 1.5


def test_size_of_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        size_of(tmp_path / "missing.jpg")
