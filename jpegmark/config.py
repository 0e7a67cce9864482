from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .errors import ConfigError

DEFAULT_SETTINGS: Dict[str, Any] = {
    "notification": True,
    "folderswitch": True,
    "clearlist": False,
    "suffix": True,
    "updatecheck": True,
    "subfolder": False,
    "watermark": "assets/watermark.png",
    "quality": 90,
}


@dataclass(frozen=True)
class Config:
    use_original_folder: bool = True
    save_paths: Tuple[str, ...] = ()
    use_subfolder: bool = False
    append_suffix: bool = True
    watermark_path: Path = Path(DEFAULT_SETTINGS["watermark"])
    quality: int = 90
    # Read by the desktop shell only
    notification: bool = True
    clear_list: bool = False
    update_check: bool = True

    @property
    def override_directory(self) -> Optional[str]:
        """First configured save path, honored only when not using the original folder."""
        if self.use_original_folder or not self.save_paths:
            return None
        return self.save_paths[0]

    @classmethod
    def from_mapping(cls, settings: Optional[Dict[str, Any]]) -> "Config":
        """Build a configuration from stored settings, filling in defaults."""
        if settings is None:
            settings = {}
        if not isinstance(settings, dict):
            raise ConfigError(f"settings must be a mapping, got {type(settings).__name__}")

        merged = {**DEFAULT_SETTINGS, **settings}

        save_paths = merged.get("savepath")
        if save_paths is None:
            save_paths = []
        elif isinstance(save_paths, str):
            save_paths = [save_paths]
        elif not isinstance(save_paths, list):
            raise ConfigError("savepath must be a list of directories")

        try:
            quality = int(merged["quality"])
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid quality: {merged['quality']!r}") from exc

        return cls(
            use_original_folder=bool(merged["folderswitch"]),
            save_paths=tuple(str(p) for p in save_paths),
            use_subfolder=bool(merged["subfolder"]),
            append_suffix=bool(merged["suffix"]),
            watermark_path=Path(merged["watermark"]),
            quality=quality,
            notification=bool(merged["notification"]),
            clear_list=bool(merged["clearlist"]),
            update_check=bool(merged["updatecheck"]),
        )


def load_config(config_path: Union[str, Path]) -> Config:
    """Load configuration from YAML file."""
    config_path = Path(config_path)
    if not config_path.exists():
        return Config.from_mapping({})

    with config_path.open("r") as f:
        try:
            settings = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"cannot parse {config_path}: {exc}") from exc

    return Config.from_mapping(settings)
