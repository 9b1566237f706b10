from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional

from mimequery.core.services.search_paths import enumerate_search_paths
from mimequery.core.services.xdg_environment import resolve_environment


@dataclass(frozen=True)
class SearchPathEntry:
    path: str
    tier: str
    source: str
    desktop: Optional[str]
    exists: bool

    def as_dict(self) -> dict:
        return {
            "path": self.path,
            "tier": self.tier,
            "source": self.source,
            "desktop": self.desktop,
            "exists": self.exists,
        }


class ListSearchPathsUseCase:
    def __init__(self, env: Optional[Mapping[str, str]] = None):
        self._env = env

    def execute(self, include_missing: bool = False) -> List[SearchPathEntry]:
        plan = enumerate_search_paths(resolve_environment(self._env))
        entries = []
        for candidate in plan.candidates():
            exists = candidate.path.exists()
            if not exists and not include_missing:
                continue
            entries.append(
                SearchPathEntry(
                    path=str(candidate.path),
                    tier=candidate.tier.value,
                    source=candidate.source,
                    desktop=candidate.desktop,
                    exists=exists,
                )
            )
        return entries
