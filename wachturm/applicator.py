"""
Applies the upgrades the oracle scored as low risk.
"""

import logging
from typing import List

from wachturm.exceptions import ApplyFailure, ExecFailure
from wachturm.inventory import PackageSource
from wachturm.models import PackageRecord, RiskLevel

logger = logging.getLogger(__name__)


def select_low_risk(packages: List[PackageRecord]) -> List[str]:
    """Names of packages explicitly scored low risk, in input order."""
    return [
        pkg.name for pkg in packages
        if pkg.upgrade is not None and pkg.upgrade.risk_level.lower() == RiskLevel.LOW.value
    ]


class UpdateApplicator:
    """
    Upgrades low risk packages in one batch.

    Args:
        source (PackageSource): Package manager performing the upgrade.
        dry_run (bool): If True, log the selection instead of upgrading.
    """

    def __init__(self, source: PackageSource, dry_run: bool = False):
        self.source = source
        self.dry_run = dry_run

    def apply(self, packages: List[PackageRecord]) -> List[str]:
        """
        Upgrade the low risk subset of packages.

        Returns:
            List[str]: Names passed to the upgrade, empty if none qualified.

        Raises:
            ApplyFailure: The batch upgrade failed. Some packages may have
            been upgraded regardless.
        """
        safe = select_low_risk(packages)
        if not safe:
            logger.info("No packages to upgrade")
            return []

        if self.dry_run:
            logger.info(f"[Dry Run] would upgrade: {' '.join(safe)}")
            return safe

        logger.info(f"Upgrading safe packages: {' '.join(safe)}")
        try:
            self.source.upgrade(safe)
        except ExecFailure as e:
            raise ApplyFailure(f"upgrade failed: {e}") from e

        logger.info("Upgrade completed")
        return safe
