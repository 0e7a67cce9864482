from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .config import Config

SUBFOLDER_NAME = "with-watermark"
SUFFIX = ".watermark"


@dataclass(frozen=True)
class OutputPlan:
    directory: Path
    file_name: str
    full_path: Path


def ensure_directory(directory: Union[str, Path]) -> Path:
    """Create a directory and any missing parents. No error if it exists."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def output_directory(source_path: Union[str, Path], config: Config) -> Path:
    """Directory the watermarked file goes to, without touching the disk."""
    directory = Path(source_path).parent

    # Override directory only applies when not writing next to the original
    if config.override_directory is not None:
        directory = Path(config.override_directory)

    if config.use_subfolder:
        directory = directory / SUBFOLDER_NAME

    return directory


def output_name(source_path: Union[str, Path], config: Config) -> str:
    source_path = Path(source_path)
    suffix = SUFFIX if config.append_suffix else ""
    return f"{source_path.stem}{suffix}{source_path.suffix}"


def plan(source_path: Union[str, Path], config: Config) -> OutputPlan:
    """Work out where the watermarked copy of ``source_path`` is written.

    The destination directory is created as a side effect.
    """
    directory = ensure_directory(output_directory(source_path, config))
    file_name = output_name(source_path, config)
    return OutputPlan(directory=directory, file_name=file_name, full_path=directory / file_name)
