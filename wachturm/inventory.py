#!/usr/bin/env python3
"""
Package inventory for apt/dpkg systems.

Reads installed and upgradable packages from the package manager and turns
the raw listings into PackageRecord objects.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from wachturm.changelog import parse_changelog
from wachturm.exceptions import ExecFailure
from wachturm.models import ChangelogRecord, PackageRecord, UpgradeRecord

logger = logging.getLogger(__name__)

INSTALLED_MARKER = "ii"
INSTALLED_MIN_FIELDS = 5
UPGRADABLE_MARKER = "[upgradable from:"


class PackageSource(ABC):
    """Access to the host package manager."""

    @abstractmethod
    def installed_listing(self) -> str:
        """Return the raw installed-package listing. Raises ExecFailure."""

    @abstractmethod
    def upgradable_listing(self) -> str:
        """Return the raw upgrade-candidate listing. Raises ExecFailure."""

    @abstractmethod
    def changelog_text(self, package_name: str) -> str:
        """Return the raw changelog of a package. Raises ExecFailure."""

    @abstractmethod
    def upgrade(self, package_names: Sequence[str]) -> None:
        """Upgrade exactly the named packages in one batch. Raises ExecFailure."""


class AptPackageSource(PackageSource):
    """PackageSource backed by dpkg, apt and apt-get."""

    def __init__(self, command_timeout: int = 120, upgrade_timeout: int = 3600):
        self.command_timeout = command_timeout
        self.upgrade_timeout = upgrade_timeout

    def _run_command(self, cmd: List[str]) -> str:
        """Execute command and return stdout, raising ExecFailure on any error"""
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                # Changelogs are not guaranteed to be UTF-8.
                encoding="utf-8",
                errors="replace",
                timeout=self.command_timeout
            )
        except subprocess.TimeoutExpired as e:
            raise ExecFailure(cmd, f"timed out after {self.command_timeout}s") from e
        except OSError as e:
            raise ExecFailure(cmd, str(e)) from e

        if result.returncode != 0:
            raise ExecFailure(cmd, f"exit status {result.returncode}: {result.stderr.strip()}")
        return result.stdout

    def installed_listing(self) -> str:
        return self._run_command(["dpkg", "-l"])

    def upgradable_listing(self) -> str:
        return self._run_command(["apt", "list", "--upgradable"])

    def changelog_text(self, package_name: str) -> str:
        return self._run_command(["apt", "changelog", package_name])

    def upgrade(self, package_names: Sequence[str]) -> None:
        cmd = ["apt-get", "install", "--only-upgrade", "-y", *package_names]
        # apt-get output goes straight to the terminal
        try:
            subprocess.check_call(cmd, timeout=self.upgrade_timeout)
        except subprocess.TimeoutExpired as e:
            raise ExecFailure(cmd, f"timed out after {self.upgrade_timeout}s") from e
        except subprocess.CalledProcessError as e:
            raise ExecFailure(cmd, f"exit status {e.returncode}") from e
        except OSError as e:
            raise ExecFailure(cmd, str(e)) from e


def parse_installed(text: str) -> List[PackageRecord]:
    """
    Parse `dpkg -l` output.

    Only lines whose status prefix is "ii" are kept. Lines with fewer than
    five fields are dropped.
    """
    packages = []
    for line in text.splitlines():
        if not line.startswith(INSTALLED_MARKER):
            continue
        fields = line.split()
        if len(fields) < INSTALLED_MIN_FIELDS:
            continue
        packages.append(PackageRecord(
            name=fields[1],
            version=fields[2],
            architecture=fields[3],
            description=" ".join(fields[4:]),
        ))
    return packages


def parse_upgradable(text: str) -> Dict[str, str]:
    """
    Parse `apt list --upgradable` output into a name -> new version map.

    Format: name/suite version arch [upgradable from: oldversion]
    """
    upgradable = {}
    for line in text.splitlines():
        if UPGRADABLE_MARKER not in line:
            continue
        fields = line.split()
        if len(fields) < 2:
            continue

        name = fields[0].split("/", 1)[0].strip()
        # libperl5.34:arm64 -> libperl5.34
        if ":" in name:
            name = name.split(":")[0]

        upgradable[name] = fields[1]
    return upgradable


class InventoryReader:
    """Builds package records from a PackageSource."""

    def __init__(self, source: PackageSource):
        self.source = source

    def list_installed(self) -> List[PackageRecord]:
        """Return installed packages. ExecFailure is propagated."""
        packages = parse_installed(self.source.installed_listing())
        logger.info(f"Found {len(packages)} installed packages")
        return packages

    def list_upgradable(self) -> Dict[str, str]:
        """Return the upgradable map, empty when the listing cannot be fetched."""
        try:
            listing = self.source.upgradable_listing()
        except ExecFailure as e:
            logger.warning(f"Could not list upgradable packages: {e}")
            return {}
        upgradable = parse_upgradable(listing)
        logger.info(f"Found {len(upgradable)} packages with available updates")
        return upgradable

    def fetch_changelog(self, package_name: str, stop_version: str) -> Optional[ChangelogRecord]:
        """Return the parsed changelog, or None when it is unavailable."""
        try:
            text = self.source.changelog_text(package_name)
        except ExecFailure as e:
            logger.warning(f"Changelog unavailable for {package_name}: {e}")
            return None
        return parse_changelog(text, stop_version)

    def enrich(self, installed: List[PackageRecord], upgradable: Dict[str, str]) -> List[PackageRecord]:
        """
        Attach upgrade information to the installed packages that have one.

        Args:
            installed: Installed packages. Not modified.
            upgradable: Map of package name to new version.

        Returns:
            List[PackageRecord]: New records, in installed order, for the
            packages found in the upgradable map.
        """
        enriched = []
        for pkg in installed:
            new_version = upgradable.get(pkg.name)
            if new_version is None:
                continue

            logger.info(f"Fetching changelog for {pkg.name}...")
            upgrade = UpgradeRecord(
                new_version=new_version,
                has_upgrade=True,
                changelog=self.fetch_changelog(pkg.name, pkg.version),
            )
            enriched.append(replace(pkg, upgrade=upgrade))
        return enriched
