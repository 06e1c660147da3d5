"""
Daily snapshot store.

Layout under the base directory:

    snapshots/<YYYYMMDD>/installed.json
    snapshots/<YYYYMMDD>/updates.json
    snapshots/<YYYYMMDD>/summary.txt

Package snapshots are overwritten on every run. The summary is written once
per snapshot id and never regenerated.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from wachturm.exceptions import StorageFailure
from wachturm.models import PackageRecord, RiskLevel

logger = logging.getLogger(__name__)

SNAPSHOT_INSTALLED = "installed"
SNAPSHOT_UPDATES = "updates"

SNAPSHOT_FILES = {
    SNAPSHOT_INSTALLED: "installed.json",
    SNAPSHOT_UPDATES: "updates.json",
}
SUMMARY_FILE = "summary.txt"

# RFC 1123
TIMESTAMP_FORMAT = "%a, %d %b %Y %H:%M:%S %Z"


def snapshot_id(now: Optional[datetime] = None) -> str:
    """Snapshot id for the calendar day of now."""
    return (now or datetime.now()).strftime("%Y%m%d")


def filter_upgradable(packages: List[PackageRecord]) -> List[PackageRecord]:
    """Return only the packages that have an available upgrade."""
    return [pkg for pkg in packages if pkg.has_upgrade]


def render_summary(packages: List[PackageRecord], generated_at: datetime) -> str:
    """Render the human-readable daily report."""
    total = 0
    counts = {level: 0 for level in RiskLevel}
    high_risk = []
    medium_risk = []

    for pkg in packages:
        if pkg.upgrade is None:
            continue
        total += 1
        level = pkg.upgrade.risk_level
        if level == RiskLevel.HIGH.value:
            counts[RiskLevel.HIGH] += 1
            high_risk.append(pkg.name)
        elif level == RiskLevel.MEDIUM.value:
            counts[RiskLevel.MEDIUM] += 1
            medium_risk.append(pkg.name)
        elif level == RiskLevel.LOW.value:
            counts[RiskLevel.LOW] += 1

    lines = [
        f"Update Summary - {generated_at.strftime(TIMESTAMP_FORMAT).strip()}",
        "",
        f"Total packages available for update: {total}",
        f"High risk updates: {counts[RiskLevel.HIGH]}",
        f"Medium risk updates: {counts[RiskLevel.MEDIUM]}",
        f"Low risk updates: {counts[RiskLevel.LOW]}",
        "",
    ]

    if high_risk:
        lines.append("High risk packages (manual review recommended):")
        lines.extend(f"- {name}" for name in high_risk)
        lines.append("")

    if medium_risk:
        lines.append("Medium risk packages (caution advised):")
        lines.extend(f"- {name}" for name in medium_risk)
        lines.append("")

    lines.append("Low risk packages will be updated automatically.")
    return "\n".join(lines) + "\n"


class SnapshotStore:
    """
    Persists one directory of package state per day.

    Args:
        base_dir (Path): Root directory; snapshots live under base_dir/snapshots.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.snapshots_dir = self.base_dir / "snapshots"

    def snapshot_dir(self, snapshot_id: str) -> Path:
        """Ensure the directory for snapshot_id exists and return it."""
        path = self.snapshots_dir / snapshot_id
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFailure(f"failed to create snapshot directory {path}: {e}") from e
        return path

    def write_snapshot(self, packages: List[PackageRecord], snapshot_id: str, kind: str) -> Path:
        """
        Write packages as pretty-printed JSON, replacing any earlier file.

        Args:
            packages: Records to persist.
            snapshot_id: Day id, e.g. "20250101".
            kind: "installed" or "updates".

        Returns:
            Path: The written file.
        """
        if kind not in SNAPSHOT_FILES:
            raise ValueError(f"Unknown snapshot kind: {kind}")

        path = self.snapshot_dir(snapshot_id) / SNAPSHOT_FILES[kind]
        try:
            with open(path, "w") as f:
                json.dump([pkg.to_dict() for pkg in packages], f, indent=2)
                f.write("\n")
        except OSError as e:
            raise StorageFailure(f"failed to write snapshot file {path}: {e}") from e

        logger.info(f"Wrote {kind} snapshot with {len(packages)} packages to {path}")
        return path

    def read_snapshot(self, snapshot_id: str, kind: str = SNAPSHOT_INSTALLED) -> List[PackageRecord]:
        """Load a snapshot back into records, for audit and history."""
        if kind not in SNAPSHOT_FILES:
            raise ValueError(f"Unknown snapshot kind: {kind}")

        path = self.snapshots_dir / snapshot_id / SNAPSHOT_FILES[kind]
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except OSError as e:
            raise StorageFailure(f"failed to open snapshot file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise StorageFailure(f"failed to decode snapshot file {path}: {e}") from e

        try:
            return [PackageRecord.from_dict(item) for item in data]
        except (KeyError, TypeError, AttributeError) as e:
            raise StorageFailure(f"malformed package data in {path}: {e}") from e

    def list_snapshots(self) -> List[str]:
        """Return the ids of all snapshots on disk, oldest first."""
        if not self.snapshots_dir.is_dir():
            return []
        return sorted(p.name for p in self.snapshots_dir.iterdir() if p.is_dir())

    def summary_path(self, snapshot_id: str) -> Path:
        return self.snapshots_dir / snapshot_id / SUMMARY_FILE

    def write_summary_if_missing(
        self,
        snapshot_id: str,
        packages: List[PackageRecord],
        generated_at: Optional[datetime] = None,
    ) -> Path:
        """
        Write the day's summary unless it already exists.

        An existing summary is returned untouched, even if the risk scores
        of a later run differ.
        """
        path = self.summary_path(snapshot_id)
        if path.exists():
            logger.info(f"Summary already exists at {path}")
            return path

        self.snapshot_dir(snapshot_id)
        content = render_summary(packages, generated_at or datetime.now().astimezone())
        try:
            with open(path, "w") as f:
                f.write(content)
        except OSError as e:
            raise StorageFailure(f"failed to create summary file {path}: {e}") from e
        return path
