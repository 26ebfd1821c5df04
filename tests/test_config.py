from __future__ import annotations

from pathlib import Path

import pytest

from tree_mirror.config import ConfigManager


def _write_config(tmp_path: Path, text: str) -> str:
    path = tmp_path / "tree-mirror.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_defaults_fill_optional_fields(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        "\n".join(
            [
                "mirrors:",
                "  - name: assets",
                "    source: ./assets",
                "    destination_root: /srv/www",
            ]
        ),
    )
    manager = ConfigManager(config_path)

    config = manager.load_config()

    mirror = manager.get_mirrors()[0]
    assert mirror["type"] == "auto"
    assert mirror["subtree"] == ""
    assert mirror["destination_prefix"] == ""
    assert config["reports"]["save_local"] is False
    assert config["reports"]["retention_days"] == 30
    assert manager.get_logging_config()["level"] == "INFO"


def test_missing_file_is_reported(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ConfigManager(str(tmp_path / "absent.yaml")).load_config()


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("logging: {level: INFO}\n", "Missing required configuration sections"),
        ("mirrors: []\n", "At least one mirror"),
        ("mirrors:\n  - name: a\n    source: s\n", "missing required fields"),
        (
            "mirrors:\n  - {name: a, source: s, destination_root: d}\n"
            "  - {name: a, source: t, destination_root: d}\n",
            "duplicate name",
        ),
        ("mirrors:\n  - {name: a, source: s, destination_root: d, type: ftp}\n", "invalid type"),
        (
            "mirrors:\n  - {name: a, source: s, destination_root: d}\nreports: {retention_days: -1}\n",
            "retention_days",
        ),
        ("mirrors: [unclosed\n", "Invalid YAML"),
    ],
)
def test_invalid_configs_are_rejected(tmp_path: Path, text: str, message: str) -> None:
    manager = ConfigManager(_write_config(tmp_path, text))

    with pytest.raises(ValueError, match=message):
        manager.load_config()
