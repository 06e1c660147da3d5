"""
Package records shared by every stage of a run.

Records are rebuilt from live command output on each run and only persist
through the snapshot store.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class RiskLevel(str, Enum):
    """Compatibility risk assigned by the oracle."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class ChangelogRecord:
    """Fields extracted from the changelog entries newer than the installed version."""
    summary: str = ""
    urgency: str = ""
    cves: List[str] = field(default_factory=list)
    author: str = ""
    date: str = ""
    raw: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChangelogRecord":
        return cls(
            summary=data.get("summary", ""),
            urgency=data.get("urgency", ""),
            cves=list(data.get("cves") or []),
            author=data.get("author", ""),
            date=data.get("date", ""),
            raw=data.get("raw", ""),
        )


@dataclass
class UpgradeRecord:
    """An available upgrade and, once scored, its risk assessment."""
    new_version: str
    has_upgrade: bool = True
    changelog: Optional[ChangelogRecord] = None
    risk_level: str = ""  # "" until scored
    risk_reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpgradeRecord":
        changelog = data.get("changelog")
        return cls(
            new_version=data.get("new_version", ""),
            has_upgrade=bool(data.get("has_upgrade", False)),
            changelog=ChangelogRecord.from_dict(changelog) if changelog else None,
            risk_level=data.get("risk_level", ""),
            risk_reason=data.get("risk_reason", ""),
        )


@dataclass
class PackageRecord:
    """An installed package, keyed by name within one inventory."""
    name: str
    version: str
    architecture: str = ""
    description: str = ""
    upgrade: Optional[UpgradeRecord] = None

    @property
    def has_upgrade(self) -> bool:
        return self.upgrade is not None and self.upgrade.has_upgrade

    @property
    def risk_level(self) -> str:
        return self.upgrade.risk_level if self.upgrade else ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageRecord":
        upgrade = data.get("upgrade")
        return cls(
            name=data["name"],
            version=data.get("version", ""),
            architecture=data.get("architecture", ""),
            description=data.get("description", ""),
            upgrade=UpgradeRecord.from_dict(upgrade) if upgrade else None,
        )
