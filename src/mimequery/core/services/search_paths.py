"""Ordered enumeration of candidate ``mimeapps.list`` files.

Priority order:
- Tier A: $XDG_CONFIG_HOME, $XDG_CONFIG_DIRS, $XDG_DATA_HOME, $XDG_DATA_DIRS,
  looking for ``{desktop}-mimeapps.list`` then ``mimeapps.list`` directly in
  each directory.
- Tier B: $XDG_DATA_HOME, $XDG_DATA_DIRS, same file names under
  ``applications/``.

Desktop-specific variants always come before the generic file of the same
directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple

from mimequery.core.domain.entities import CandidateConfigPath, SearchTier
from mimequery.core.services.xdg_environment import (
    CONFIG_VARIABLES,
    DATA_VARIABLES,
    XdgEnvironment,
)

MIMEAPPS_LIST = "mimeapps.list"

_TIERS: Tuple[Tuple[SearchTier, Tuple[str, ...], Optional[str]], ...] = (
    (SearchTier.CONFIG, CONFIG_VARIABLES + DATA_VARIABLES, None),
    (SearchTier.APPLICATIONS, DATA_VARIABLES, "applications"),
)


def mimeapps_file_names(desktops: Tuple[str, ...]) -> list[str]:
    """Return file names to probe in one directory, most specific first."""
    return [f"{desktop}-{MIMEAPPS_LIST}" for desktop in desktops] + [MIMEAPPS_LIST]


@dataclass(frozen=True)
class SearchPathPlan:
    """Restartable, ordered plan of config files to scan.

    Iterating the plan yields only candidates that exist on disk. The plan
    holds no filesystem state, so every iteration re-checks existence.
    """

    env: XdgEnvironment

    def candidates(self) -> Iterator[CandidateConfigPath]:
        desktops = self.env.desktops
        for tier, variables, subdir in _TIERS:
            for source, directory in self.env.iter_search_dirs(*variables):
                base = Path(directory) / subdir if subdir else Path(directory)
                for desktop in desktops:
                    yield CandidateConfigPath(
                        path=base / f"{desktop}-{MIMEAPPS_LIST}",
                        tier=tier,
                        source=source,
                        desktop=desktop,
                    )
                yield CandidateConfigPath(
                    path=base / MIMEAPPS_LIST,
                    tier=tier,
                    source=source,
                )

    def __iter__(self) -> Iterator[CandidateConfigPath]:
        for candidate in self.candidates():
            if candidate.path.exists():
                yield candidate


def enumerate_search_paths(env: XdgEnvironment) -> SearchPathPlan:
    return SearchPathPlan(env=env)
