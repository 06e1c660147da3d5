"""
Unit tests for wachturm/changelog.py - Debian changelog parsing.
"""

from tests.fakes import BASH_CHANGELOG, OPENSSL_CHANGELOG
from wachturm.changelog import parse_changelog

SINGLE_CVE_CHANGELOG = """\
curl (7.81.0-1ubuntu1.14) jammy-security; urgency=medium

  * SECURITY UPDATE: cookie injection
    - CVE-2023-38546

 -- Ian Lane <ian@example.com>  Wed, 11 Oct 2023 08:00:00 -0400

curl (7.81.0-1ubuntu1.13) jammy-security; urgency=high

  * older entry
"""


class TestParseChangelog:
    def test_urgency_and_single_cve(self):
        record = parse_changelog(SINGLE_CVE_CHANGELOG, "7.81.0-1ubuntu1.13")

        assert record.urgency == "medium"
        assert record.cves == ["CVE-2023-38546"]

    def test_single_plain_cve_token(self):
        text = (
            "pkg (2.0) jammy; urgency=medium\n"
            "\n"
            "  * SECURITY UPDATE\n"
            "    - fixes CVE-2024-12345.\n"
            "pkg (1.0) jammy; urgency=low\n"
        )
        record = parse_changelog(text, "1.0")

        assert record.urgency == "medium"
        assert record.cves == ["CVE-2024-12345"]
        assert "pkg (1.0)" not in record.raw

    def test_raw_stops_before_installed_version(self):
        record = parse_changelog(OPENSSL_CHANGELOG, "3.0.2-0ubuntu1.10")

        assert record.raw.startswith("openssl (3.0.2-0ubuntu1.12)")
        assert "3.0.2-0ubuntu1.10" not in record.raw
        assert "older fix" not in record.raw
        assert record.raw.endswith("\n")

    def test_cves_keep_order_and_duplicates(self):
        record = parse_changelog(OPENSSL_CHANGELOG, "3.0.2-0ubuntu1.10")

        assert record.cves == ["CVE-2023-3817", "CVE-2023-3446", "CVE-2023-3817"]

    def test_summary_is_first_bullet_from_line_three(self):
        # The bullet on line 2 sits directly under the header and is skipped.
        record = parse_changelog(OPENSSL_CHANGELOG, "3.0.2-0ubuntu1.10")

        assert record.summary == "* SECURITY UPDATE: excessive time checking DH keys"

    def test_summary_ignores_bullets_before_index_three(self):
        text = "* header bullet\n\n* second\n  * real summary\n"
        record = parse_changelog(text, "never-matches")

        assert record.summary == "* real summary"

    def test_author_and_date_from_footer(self):
        record = parse_changelog(OPENSSL_CHANGELOG, "3.0.2-0ubuntu1.10")

        assert record.author == "Marc Deslauriers <marc.deslauriers@ubuntu.com>"
        assert record.date == "Tue, 01 Aug 2023 09:30:00 -0400"

    def test_footer_without_double_space_is_ignored(self):
        record = parse_changelog(" -- Someone <a@b.c> Mon, 01 Jan 2024\n", "9.9")

        assert record.author == ""
        assert record.date == ""

    def test_last_urgency_before_stop_wins(self):
        text = (
            "pkg (3.0) jammy; urgency=high\n"
            "\n"
            "  * third\n"
            "pkg (2.0) jammy; urgency=low\n"
            "\n"
            "  * second\n"
            "pkg (1.0) jammy; urgency=medium\n"
        )
        record = parse_changelog(text, "(1.0)")

        assert record.urgency == "low"

    def test_no_stop_line_consumes_everything(self):
        record = parse_changelog(OPENSSL_CHANGELOG, "0.0.0-never")

        assert record.raw == OPENSSL_CHANGELOG
        assert record.cves[-1] == "CVE-2023-0464"

    def test_empty_text(self):
        record = parse_changelog("", "1.0")

        assert record.raw == ""
        assert record.cves == []
        assert record.urgency == ""

    def test_substring_stop_version_truncates_early(self):
        # Installed 5.1-6ubuntu1 is a substring of the newer 5.1-6ubuntu1.1
        # header, so nothing is captured.
        record = parse_changelog(BASH_CHANGELOG, "5.1-6ubuntu1")

        assert record.raw == ""
        assert record.summary == ""
