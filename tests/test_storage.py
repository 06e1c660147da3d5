"""
Unit tests for wachturm/storage.py - daily snapshots and summary.
"""

import json
from datetime import datetime, timezone

import pytest

from tests.fakes import make_package
from wachturm.exceptions import StorageFailure
from wachturm.models import ChangelogRecord, PackageRecord, UpgradeRecord
from wachturm.storage import (
    SNAPSHOT_INSTALLED,
    SNAPSHOT_UPDATES,
    SnapshotStore,
    filter_upgradable,
    render_summary,
    snapshot_id,
)

GENERATED_AT = datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    return SnapshotStore(tmp_path)


@pytest.fixture
def mixed_packages():
    return [
        PackageRecord(name="apt", version="2.4.9", architecture="amd64", description="package manager"),
        PackageRecord(
            name="bash",
            version="5.1-6ubuntu1",
            architecture="amd64",
            description="shell",
            upgrade=UpgradeRecord(
                new_version="5.1-6ubuntu1.1",
                has_upgrade=True,
                changelog=ChangelogRecord(
                    summary="* fix",
                    urgency="medium",
                    cves=["CVE-2024-0001", "CVE-2024-0001"],
                    author="Jane Doe <jane@example.com>",
                    date="Mon, 03 Jul 2023 12:00:00 +0000",
                    raw="bash (5.1-6ubuntu1.1) jammy; urgency=medium\n",
                ),
                risk_level="low",
                risk_reason="bug fix",
            ),
        ),
    ]


class TestSnapshotId:
    def test_day_format(self):
        assert snapshot_id(datetime(2025, 1, 9, 23, 59)) == "20250109"


class TestWriteSnapshot:
    def test_layout(self, store, tmp_path, mixed_packages):
        installed = store.write_snapshot(mixed_packages, "20250101", SNAPSHOT_INSTALLED)
        updates = store.write_snapshot(mixed_packages[1:], "20250101", SNAPSHOT_UPDATES)

        assert installed == tmp_path / "snapshots" / "20250101" / "installed.json"
        assert updates == tmp_path / "snapshots" / "20250101" / "updates.json"

    def test_json_shape(self, store, mixed_packages):
        path = store.write_snapshot(mixed_packages, "20250101", SNAPSHOT_INSTALLED)

        data = json.loads(path.read_text())
        assert data[0]["upgrade"] is None
        assert data[1]["upgrade"]["has_upgrade"] is True
        assert data[1]["upgrade"]["changelog"]["cves"] == ["CVE-2024-0001", "CVE-2024-0001"]
        assert data[1]["upgrade"]["risk_level"] == "low"
        assert "\n  " in path.read_text()

    def test_overwrites_existing(self, store, mixed_packages):
        store.write_snapshot(mixed_packages, "20250101", SNAPSHOT_INSTALLED)
        path = store.write_snapshot(mixed_packages[:1], "20250101", SNAPSHOT_INSTALLED)

        assert len(json.loads(path.read_text())) == 1

    def test_unknown_kind(self, store, mixed_packages):
        with pytest.raises(ValueError):
            store.write_snapshot(mixed_packages, "20250101", "summary")

    def test_unwritable_base_dir(self, tmp_path, mixed_packages):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(StorageFailure):
            SnapshotStore(blocker).write_snapshot(mixed_packages, "20250101", SNAPSHOT_INSTALLED)


class TestReadSnapshot:
    def test_round_trip(self, store, mixed_packages):
        store.write_snapshot(mixed_packages, "20250101", SNAPSHOT_INSTALLED)

        assert store.read_snapshot("20250101") == mixed_packages

    def test_read_updates(self, store, mixed_packages):
        store.write_snapshot(mixed_packages[1:], "20250101", SNAPSHOT_UPDATES)

        assert store.read_snapshot("20250101", SNAPSHOT_UPDATES) == mixed_packages[1:]

    def test_missing_snapshot(self, store):
        with pytest.raises(StorageFailure):
            store.read_snapshot("19990101")

    def test_corrupt_snapshot(self, store, tmp_path):
        day = tmp_path / "snapshots" / "20250101"
        day.mkdir(parents=True)
        (day / "installed.json").write_text("{not json")

        with pytest.raises(StorageFailure):
            store.read_snapshot("20250101")

    def test_list_snapshots(self, store, mixed_packages):
        assert store.list_snapshots() == []

        store.write_snapshot(mixed_packages, "20250102", SNAPSHOT_INSTALLED)
        store.write_snapshot(mixed_packages, "20250101", SNAPSHOT_INSTALLED)

        assert store.list_snapshots() == ["20250101", "20250102"]


class TestSummary:
    def test_counts_and_lists(self, scored_packages):
        text = render_summary(scored_packages, GENERATED_AT)

        assert "Total packages available for update: 3" in text
        assert "High risk updates: 1" in text
        assert "Medium risk updates: 1" in text
        assert "Low risk updates: 1" in text
        assert "High risk packages (manual review recommended):\n- C\n" in text
        assert "Medium risk packages (caution advised):\n- B\n" in text
        assert text.endswith("Low risk packages will be updated automatically.\n")

    def test_timestamp_header(self, scored_packages):
        text = render_summary(scored_packages, GENERATED_AT)

        assert text.startswith("Update Summary - Tue, 04 Mar 2025 05:06:07 UTC\n\n")

    def test_packages_without_upgrade_are_not_counted(self, mixed_packages):
        text = render_summary(mixed_packages, GENERATED_AT)

        assert "Total packages available for update: 1" in text
        assert "High risk packages" not in text
        assert "Medium risk packages" not in text

    def test_unscored_counted_in_total_only(self):
        text = render_summary([make_package("x"), make_package("y", "high")], GENERATED_AT)

        assert "Total packages available for update: 2" in text
        assert "Low risk updates: 0" in text

    def test_names_keep_input_order(self):
        packages = [make_package("z", "high"), make_package("a", "high")]

        assert "- z\n- a\n" in render_summary(packages, GENERATED_AT)

    def test_write_summary_if_missing(self, store, scored_packages):
        path = store.write_summary_if_missing("20250101", scored_packages, GENERATED_AT)

        assert path.name == "summary.txt"
        assert "Total packages available for update: 3" in path.read_text()

    def test_summary_is_write_once(self, store, scored_packages):
        first = store.write_summary_if_missing("20250101", scored_packages, GENERATED_AT)
        content = first.read_text()
        mtime = first.stat().st_mtime_ns

        later = datetime(2025, 3, 4, 18, 0, 0, tzinfo=timezone.utc)
        second = store.write_summary_if_missing("20250101", [make_package("D", "high")], later)

        assert second == first
        assert second.read_text() == content
        assert second.stat().st_mtime_ns == mtime


class TestFilterUpgradable:
    def test_filters(self, mixed_packages):
        assert [p.name for p in filter_upgradable(mixed_packages)] == ["bash"]
