import argparse
import sys
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from PIL import Image

from jpegmark.config import load_config
from jpegmark.errors import ConfigError
from jpegmark.logger import get_logger
from jpegmark.pipeline import JobContext, Pipeline

_logger = get_logger("main")


def ensure_watermark(watermark_path: Path) -> None:
    """Create a plain semi-transparent watermark if none is installed."""
    if watermark_path.exists():
        return
    watermark_path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", (320, 64), color=(255, 255, 255, 160)).save(watermark_path)
    _logger.info("created default watermark %s", watermark_path)


def expand_inputs(paths: Iterable[str]) -> Iterator[Path]:
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            yield from sorted(p for p in path.glob("*") if p.is_file())
        else:
            yield path


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Shrink and watermark JPEG images")
    parser.add_argument("files", nargs="+", help="JPEG files or directories of them")
    parser.add_argument("--config", default="config.yaml", help="settings file (YAML)")
    parser.add_argument("--watermark", help="watermark image, overrides the settings file")
    args = parser.parse_args(argv)

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        _logger.error("%s", exc)
        return 2

    watermark_path = Path(args.watermark) if args.watermark else config.watermark_path
    ensure_watermark(watermark_path)

    # Expand directories before any job writes into them
    inputs = list(expand_inputs(args.files))

    context = JobContext(show_error=lambda message: print(message, file=sys.stderr))
    with Pipeline(config, context, watermark_path=watermark_path) as pipeline:
        results = pipeline.process_many(inputs)

    for result in results:
        if result.ok:
            saved = result.original_size - result.result_size
            print(f"{result.output_path}: {result.original_size} -> {result.result_size} bytes ({saved:+d} saved)")
        else:
            print(f"{result.display_name}: failed ({result.error})")

    return 0 if all(result.ok for result in results) else 1


if __name__ == "__main__":
    sys.exit(main())
