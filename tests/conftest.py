from pathlib import Path

import pytest
from PIL import Image


def write_jpeg(path: Path, size=(640, 480), color=(30, 120, 200)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format="JPEG")
    return path


@pytest.fixture
def make_jpeg(tmp_path: Path):
    def _make(name: str = "photo.jpg", size=(640, 480)) -> Path:
        return write_jpeg(tmp_path / name, size)

    return _make


@pytest.fixture
def watermark(tmp_path: Path) -> Path:
    """A 4:1 opaque white watermark."""
    path = tmp_path / "assets" / "watermark.png"
    path.parent.mkdir()
    Image.new("RGBA", (400, 100), (255, 255, 255, 255)).save(path)
    return path
