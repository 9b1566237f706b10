from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class ErrorPolicy(str, Enum):
    """What to do with a candidate file that exists but cannot be used."""

    BEST_EFFORT = "best-effort"
    FAIL_FAST = "fail-fast"


class SearchTier(str, Enum):
    CONFIG = "config"
    APPLICATIONS = "applications"


@dataclass(frozen=True)
class CandidateConfigPath:
    path: Path
    tier: SearchTier
    source: str
    desktop: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "tier": self.tier.value,
            "source": self.source,
            "desktop": self.desktop,
        }


@dataclass(frozen=True)
class Resolution:
    """A desktop id that led to a usable Exec binary."""

    binary: Path
    desktop_id: str
    desktop_file: Path


@dataclass
class DefaultAppResult:
    mime_type: str
    binary: Path
    desktop_id: str
    desktop_file: Path
    mimeapps_list: Path
    issues: List[Dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "mime_type": self.mime_type,
            "binary": str(self.binary),
            "desktop_id": self.desktop_id,
            "desktop_file": str(self.desktop_file),
            "mimeapps_list": str(self.mimeapps_list),
        }


@dataclass(frozen=True)
class FileHandlerResult:
    file: str
    mime_type: str
    default_app: DefaultAppResult

    def as_dict(self) -> Dict[str, Any]:
        data = self.default_app.as_dict()
        data["file"] = self.file
        return data
