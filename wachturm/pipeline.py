"""
The daily update run.

Stages run strictly in sequence; a fatal error in any stage propagates and
the remaining stages are skipped.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from wachturm.applicator import UpdateApplicator
from wachturm.branding import wt_print
from wachturm.exceptions import NotificationError
from wachturm.inventory import InventoryReader
from wachturm.models import PackageRecord
from wachturm.notification import Notifier
from wachturm.risk import RiskAssessor
from wachturm.storage import SNAPSHOT_INSTALLED, SNAPSHOT_UPDATES, SnapshotStore, snapshot_id

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Outcome of a completed run."""
    snapshot_id: str
    installed_count: int = 0
    scored: List[PackageRecord] = field(default_factory=list)
    applied: List[str] = field(default_factory=list)
    summary_path: Optional[Path] = None
    notified: bool = False


class UpdatePipeline:
    """
    Wires inventory, risk assessment, storage, upgrade and notification.

    Args:
        inventory (InventoryReader): Source of package records.
        assessor (RiskAssessor): Scores upgradable packages.
        store (SnapshotStore): Daily snapshot storage.
        applicator (UpdateApplicator): Upgrades the low risk subset.
        notifier (Notifier): Optional; None disables notification.
        clock: Returns the current time, used for the snapshot id and summary.
    """

    def __init__(
        self,
        inventory: InventoryReader,
        assessor: RiskAssessor,
        store: SnapshotStore,
        applicator: UpdateApplicator,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = lambda: datetime.now().astimezone(),
    ):
        self.inventory = inventory
        self.assessor = assessor
        self.store = store
        self.applicator = applicator
        self.notifier = notifier
        self.clock = clock

    def run(self) -> RunReport:
        now = self.clock()
        report = RunReport(snapshot_id=snapshot_id(now))
        wt_print(f"Snapshot directory: {self.store.snapshot_dir(report.snapshot_id)}")

        wt_print("Collecting information about installed packages...")
        installed = self.inventory.list_installed()
        report.installed_count = len(installed)
        wt_print(f"Found {len(installed)} installed packages")
        self.store.write_snapshot(installed, report.snapshot_id, SNAPSHOT_INSTALLED)

        wt_print("Checking for available updates...")
        upgradable_map = self.inventory.list_upgradable()
        wt_print(f"Found {len(upgradable_map)} packages with available updates")
        upgradable = self.inventory.enrich(installed, upgradable_map)

        wt_print("Assessing update risks...")
        report.scored = self.assessor.score_risks(upgradable)
        self.store.write_snapshot(report.scored, report.snapshot_id, SNAPSHOT_UPDATES)

        wt_print("Generating update summary...")
        report.summary_path = self.store.write_summary_if_missing(report.snapshot_id, report.scored, now)
        wt_print(f"Summary written to: {report.summary_path}")

        wt_print("Updating safe packages...")
        report.applied = self.applicator.apply(report.scored)
        if report.applied:
            wt_print(f"Upgraded: {', '.join(report.applied)}", "success")
        else:
            wt_print("No packages to upgrade.")

        report.notified = self._notify(report.summary_path)
        return report

    def _notify(self, summary_path: Path) -> bool:
        if self.notifier is None:
            return False

        wt_print("Sending notification...")
        try:
            self.notifier.send_summary(summary_path)
        except NotificationError as e:
            logger.error(f"Error sending notification: {e}")
            wt_print(f"Error sending notification: {e}", "warning")
            return False

        wt_print("Notification sent successfully", "success")
        return True
