"""Shared pytest fixtures."""

from pathlib import Path

import pytest
from mimequery.core.services.output_formatter import _reset_schema_cache


@pytest.fixture(autouse=True)
def reset_schema_validator_cache():
    """Ensure schema validator cache is reset before each test."""
    _reset_schema_cache()
    yield
    _reset_schema_cache()


@pytest.fixture(autouse=True)
def isolate_mimequery_env(monkeypatch):
    for name in ("MIMEQUERY_ERROR_POLICY", "MIMEQUERY_DEBUG", "MIMEQUERY_LOG_SILENT", "MIMEQUERY_LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)


class XdgTree:
    """A fake home plus one system data dir and one system config dir under tmp_path."""

    def __init__(self, root: Path):
        self.root = root
        self.home = root / "home"
        self.data_home = self.home / ".local" / "share"
        self.config_home = self.home / ".config"
        self.system_data = root / "usr" / "share"
        self.system_config = root / "etc" / "xdg"
        for directory in (self.data_home, self.config_home, self.system_data, self.system_config):
            directory.mkdir(parents=True)

    def env(self, **extra: str) -> dict:
        env = {
            "HOME": str(self.home),
            "XDG_DATA_DIRS": str(self.system_data),
            "XDG_CONFIG_DIRS": str(self.system_config),
        }
        env.update(extra)
        return env

    def write_mimeapps(self, directory: Path, entries: dict, name: str = "mimeapps.list") -> Path:
        lines = ["[Default Applications]"]
        lines.extend(f"{mime}={';'.join(ids)};" for mime, ids in entries.items())
        path = directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    def write_desktop(self, relative: str, exec_line: str, data_dir: Path = None) -> Path:
        path = (data_dir or self.system_data) / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            "[Desktop Entry]\nType=Application\nName=Test\n" + exec_line + "\n",
            encoding="utf-8",
        )
        return path


@pytest.fixture
def xdg(tmp_path) -> XdgTree:
    return XdgTree(tmp_path)
