import math
import os
from pathlib import Path
from typing import List, Tuple, Union

from PIL import Image, ExifTags
from PIL.Image import Transpose, Resampling

from .errors import CompositeError, DecodeError, WriteError
from .logger import get_logger
from .probe import size_of

_logger = get_logger("compositor")

BOUND = 320
WATERMARK_OPACITY = 0.5
DEFAULT_QUALITY = 90
PART_SUFFIX = ".part"

_ORIENTATION_TAG = next(tag for tag, name in ExifTags.TAGS.items() if name == "Orientation")

# EXIF orientation -> transposes that bring the image upright
_ORIENTATION_FIXES = {
    2: (Transpose.FLIP_LEFT_RIGHT,),
    3: (Transpose.ROTATE_180,),
    4: (Transpose.FLIP_TOP_BOTTOM,),
    5: (Transpose.FLIP_LEFT_RIGHT, Transpose.ROTATE_90),
    6: (Transpose.ROTATE_270,),
    7: (Transpose.FLIP_LEFT_RIGHT, Transpose.ROTATE_270),
    8: (Transpose.ROTATE_90,),
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fix_orientation(image: Image.Image) -> Image.Image:
    """Rotate/flip the image according to its EXIF orientation tag."""
    orientation = image.getexif().get(_ORIENTATION_TAG)
    for method in _ORIENTATION_FIXES.get(orientation, ()):
        image = image.transpose(method)
    return image


def load_image(path: Union[str, Path]) -> Image.Image:
    """Decode an image file into an upright RGBA bitmap."""
    try:
        with Image.open(path) as image:
            image.load()
            return fix_orientation(image).convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"cannot decode {path}: {exc}") from exc


def bounded_size(width: int, height: int, bound: int = BOUND) -> Tuple[int, int]:
    """Size that pins the shorter side to ``bound`` and keeps the aspect ratio.

    Portrait images get ``bound`` as width; landscape and square ones get it
    as height.
    """
    if height > width:
        return bound, max(1, round_half_up(height * bound / width))
    return max(1, round_half_up(width * bound / height)), bound


def resize_source(image: Image.Image, bound: int = BOUND) -> Image.Image:
    return image.resize(bounded_size(image.width, image.height, bound), Resampling.LANCZOS)


def prepare_watermark(
    watermark: Image.Image, width: int, opacity: float = WATERMARK_OPACITY
) -> Image.Image:
    """Scale the watermark to ``width`` and fade its alpha channel."""
    height = max(1, round_half_up(watermark.height * width / watermark.width))
    watermark = watermark.resize((width, height), Resampling.LANCZOS)

    alpha = watermark.getchannel("A").point(lambda a: round_half_up(a * opacity))
    watermark.putalpha(alpha)
    return watermark


def tile_count(source_height: int, watermark_height: int) -> int:
    """Number of watermark rows stacked up from the bottom edge.

    Never less than one, so a watermark taller than the photo is still
    placed once, bottom-aligned and cropped at the top.
    """
    return max(1, round_half_up(source_height / watermark_height))


def tile_offsets(source_height: int, watermark_height: int) -> List[int]:
    count = tile_count(source_height, watermark_height)
    top = source_height - count * watermark_height
    return [top + i * watermark_height for i in range(count)]


def destination_over(layer: Image.Image, tile: Image.Image) -> Image.Image:
    """Blend ``tile`` behind ``layer``: existing content stays on top."""
    return Image.alpha_composite(tile, layer)


def apply_watermark(image: Image.Image, watermark: Image.Image) -> Image.Image:
    """Tile ``watermark`` over ``image`` from the bottom edge upwards.

    Every tile is blended destination-over into a separate layer, so a tile
    never covers one placed before it. The finished layer then goes over the
    photo.
    """
    layer = Image.new("RGBA", image.size, (0, 0, 0, 0))

    for y in tile_offsets(image.height, watermark.height):
        tile = Image.new("RGBA", image.size, (0, 0, 0, 0))
        tile.paste(watermark, (0, y))
        layer = destination_over(layer, tile)

    return Image.alpha_composite(image, layer)


def save_jpeg(image: Image.Image, output_path: Union[str, Path], quality: int = DEFAULT_QUALITY) -> None:
    """Write the image as an RGB JPEG, replacing any existing file.

    The JPEG is encoded next to the destination and moved into place, so a
    failed encode never leaves ``output_path`` half written.
    """
    part_path = f"{output_path}{PART_SUFFIX}"
    try:
        image.convert("RGB").save(part_path, format="JPEG", quality=quality)
        os.replace(part_path, output_path)
    except OSError as exc:
        raise WriteError(f"cannot write {output_path}: {exc}") from exc
    finally:
        if os.path.exists(part_path):
            os.remove(part_path)


def composite(
    source_path: Union[str, Path],
    watermark_path: Union[str, Path],
    output_path: Union[str, Path],
    quality: int = DEFAULT_QUALITY,
) -> int:
    """Resize, watermark and write one image. Returns the written size in bytes."""
    image = load_image(source_path)
    watermark = load_image(watermark_path)

    try:
        image = resize_source(image)
        watermark = prepare_watermark(watermark, image.width)
        image = apply_watermark(image, watermark)
    except (OSError, ValueError) as exc:
        raise CompositeError(f"cannot watermark {source_path}: {exc}") from exc

    _logger.debug(
        "watermarked %s: %dx%d, %d tile(s)",
        source_path,
        image.width,
        image.height,
        tile_count(image.height, watermark.height),
    )

    save_jpeg(image, output_path, quality)
    return size_of(output_path)
