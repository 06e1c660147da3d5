"""wachturm - daily risk-gated package upgrades.

Entry point: reads the environment once, builds the collaborators and runs
the pipeline. This is the only place that decides the exit status.
"""

import logging
import sys
from typing import List, Optional

from rich.table import Table

from wachturm.applicator import UpdateApplicator
from wachturm.branding import console, wt_header, wt_print
from wachturm.config import WachturmConfig
from wachturm.exceptions import (
    ApplyFailure,
    ConfigError,
    ExecFailure,
    OracleFailure,
    StorageFailure,
    WachturmError,
)
from wachturm.inventory import AptPackageSource, InventoryReader
from wachturm.models import PackageRecord
from wachturm.notification import TelegramNotifier
from wachturm.pipeline import UpdatePipeline
from wachturm.risk import AnthropicRiskOracle, RiskAssessor
from wachturm.storage import SnapshotStore

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_STAGE_MESSAGES = {
    ConfigError: "Configuration error",
    ExecFailure: "Error fetching installed packages",
    OracleFailure: "Error assessing risks",
    StorageFailure: "Storage error",
    ApplyFailure: "Error updating packages",
}

_RISK_STYLES = {"low": "green", "medium": "yellow", "high": "red"}


def describe_error(error: WachturmError) -> str:
    """One-line diagnostic for a fatal error."""
    for error_type, label in _STAGE_MESSAGES.items():
        if isinstance(error, error_type):
            return f"{label}: {error}"
    return f"Error: {error}"


def build_pipeline(config: WachturmConfig) -> UpdatePipeline:
    source = AptPackageSource()
    oracle = AnthropicRiskOracle(
        api_key=config.oracle_api_key,
        model=config.oracle_model,
        timeout=config.oracle_timeout,
    )
    notifier = None
    if config.notifications_enabled:
        notifier = TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)

    return UpdatePipeline(
        inventory=InventoryReader(source),
        assessor=RiskAssessor(oracle),
        store=SnapshotStore(config.base_dir),
        applicator=UpdateApplicator(source, dry_run=config.dry_run),
        notifier=notifier,
    )


def show_risk_table(packages: List[PackageRecord]) -> None:
    """Print the scored updates."""
    if not packages:
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Package")
    table.add_column("Update")
    table.add_column("Risk")
    table.add_column("Reason", style="dim")

    for pkg in packages:
        level = pkg.risk_level or "unscored"
        style = _RISK_STYLES.get(level, "dim")
        table.add_row(
            pkg.name,
            f"{pkg.version} -> {pkg.upgrade.new_version}",
            f"[{style}]{level}[/{style}]",
            pkg.upgrade.risk_reason,
        )
    console.print(table)


def main(environ: Optional[dict] = None) -> int:
    """Run once and return the process exit status."""
    try:
        config = WachturmConfig.from_env(environ)
    except ConfigError as e:
        wt_print(describe_error(e), "error")
        return 1

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    # Suppress noisy log messages
    logging.getLogger("httpx").setLevel(logging.WARNING)

    wt_header("wachturm")
    try:
        report = build_pipeline(config).run()
    except KeyboardInterrupt:
        console.print("\nInterrupted")
        return 130
    except WachturmError as e:
        wt_print(describe_error(e), "error")
        return 1

    show_risk_table(report.scored)
    wt_print("All operations completed successfully.", "success")
    return 0


if __name__ == "__main__":
    sys.exit(main())
