"""
wachturm
========

Daily, risk-gated upgrades for apt based hosts. Changelogs of pending
upgrades are classified by a language model; only low risk upgrades are
applied automatically.
"""

from .branding import VERSION
from .models import ChangelogRecord, PackageRecord, RiskLevel, UpgradeRecord
from .pipeline import RunReport, UpdatePipeline

__version__ = VERSION

__all__ = [
    "ChangelogRecord",
    "PackageRecord",
    "RiskLevel",
    "RunReport",
    "UpdatePipeline",
    "UpgradeRecord",
]
