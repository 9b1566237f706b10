"""Snapshot of the XDG base directory variables.

The snapshot is taken once per query and passed down explicitly so that no
nested component reads ``os.environ`` on its own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Tuple

RELEVANT_PREFIXES = ("XDG_CONFIG", "XDG_DATA", "XDG_CURRENT_DESKTOP")

DEFAULT_DATA_HOME_SUFFIX = "/.local/share"
DEFAULT_CONFIG_HOME_SUFFIX = "/.config"
DEFAULT_DATA_DIRS = "/usr/local/share:/usr/share"

CONFIG_VARIABLES = ("XDG_CONFIG_HOME", "XDG_CONFIG_DIRS")
DATA_VARIABLES = ("XDG_DATA_HOME", "XDG_DATA_DIRS")


@dataclass(frozen=True)
class XdgEnvironment:
    variables: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    def get(self, name: str) -> Optional[str]:
        return self.variables.get(name)

    def search_dirs(self, name: str) -> List[str]:
        """Return the ``:``-separated directories of ``name``, empty entries dropped."""
        return [d for d in (self.variables.get(name) or "").split(":") if d]

    def iter_search_dirs(self, *names: str) -> Iterator[Tuple[str, str]]:
        """Yield ``(variable, directory)`` pairs for each variable in order."""
        for name in names:
            for directory in self.search_dirs(name):
                yield name, directory

    def config_dirs(self) -> List[str]:
        return [d for _, d in self.iter_search_dirs(*CONFIG_VARIABLES)]

    def data_dirs(self) -> List[str]:
        return [d for _, d in self.iter_search_dirs(*DATA_VARIABLES)]

    @property
    def desktops(self) -> Tuple[str, ...]:
        raw = self.variables.get("XDG_CURRENT_DESKTOP")
        if raw is None:
            return ()
        return tuple(d for d in raw.strip().split(":") if d)

    @property
    def config_home(self) -> Optional[Path]:
        value = self.variables.get("XDG_CONFIG_HOME")
        return Path(value) if value else None


def _is_relevant(name: str) -> bool:
    return name == "HOME" or name.startswith(RELEVANT_PREFIXES)


def resolve_environment(env: Optional[Mapping[str, str]] = None) -> XdgEnvironment:
    """
    Build an XdgEnvironment from ``env`` (defaults to ``os.environ``).

    Defaults, applied only when the variable is absent:
    - XDG_DATA_HOME: $HOME/.local/share (needs HOME)
    - XDG_CONFIG_HOME: $HOME/.config (needs HOME)
    - XDG_DATA_DIRS: /usr/local/share:/usr/share
    XDG_CONFIG_DIRS has no default.
    """

    source = os.environ if env is None else env
    variables = {k: v for k, v in source.items() if _is_relevant(k)}

    home = variables.get("HOME")
    if home is not None:
        variables.setdefault("XDG_DATA_HOME", home + DEFAULT_DATA_HOME_SUFFIX)
        variables.setdefault("XDG_CONFIG_HOME", home + DEFAULT_CONFIG_HOME_SUFFIX)
    variables.setdefault("XDG_DATA_DIRS", DEFAULT_DATA_DIRS)

    return XdgEnvironment(variables=variables)
