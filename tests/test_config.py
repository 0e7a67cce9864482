from pathlib import Path

import pytest

from jpegmark.config import Config, load_config
from jpegmark.errors import ConfigError


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "nope.yaml")

    assert config == Config()
    assert config.use_original_folder is True
    assert config.append_suffix is True
    assert config.use_subfolder is False
    assert config.override_directory is None


def test_partial_file_is_merged_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("subfolder: true\nquality: 75\n", encoding="utf-8")

    config = load_config(path)

    assert config.use_subfolder is True
    assert config.quality == 75
    assert config.append_suffix is True


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(path) == Config()


def test_override_directory_only_without_original_folder() -> None:
    settings = {"savepath": ["/out/first", "/out/second"]}

    assert Config.from_mapping({**settings, "folderswitch": True}).override_directory is None
    assert Config.from_mapping({**settings, "folderswitch": False}).override_directory == "/out/first"


def test_savepath_as_single_string() -> None:
    config = Config.from_mapping({"folderswitch": False, "savepath": "/out"})

    assert config.override_directory == "/out"


def test_savepath_must_be_a_list() -> None:
    with pytest.raises(ConfigError):
        Config.from_mapping({"savepath": 42})


def test_non_mapping_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


def test_invalid_yaml_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("suffix: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)
