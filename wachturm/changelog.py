"""
Debian changelog parsing.

`apt changelog <pkg>` prints entries newest first. Only the entries newer
than the installed version are of interest, so scanning stops at the first
line that mentions the installed version.
"""

from typing import List

from wachturm.models import ChangelogRecord

URGENCY_MARKER = "urgency="
CVE_PREFIX = "CVE-"
FOOTER_PREFIX = " -- "

# The first lines of an entry are the header and a blank line; bullets
# before this index are never taken as the summary.
SUMMARY_MIN_INDEX = 3


def _parse_urgency(line: str) -> str:
    tail = line.split(URGENCY_MARKER)[1]
    tokens = tail.split()
    return tokens[0] if tokens else ""


def _parse_cves(line: str) -> List[str]:
    return [word.strip(".,") for word in line.split() if word.startswith(CVE_PREFIX)]


def parse_changelog(text: str, stop_version: str) -> ChangelogRecord:
    """
    Extract a ChangelogRecord from raw changelog text.

    Args:
        text: Full changelog output, newest entry first.
        stop_version: Installed version. The first line containing it ends
            the scan and is not included in `raw`.

    Returns:
        ChangelogRecord: urgency is taken from the last entry header scanned,
        cves keep their order of appearance including repeats.
    """
    record = ChangelogRecord()
    raw_lines = []

    for index, line in enumerate(text.splitlines()):
        # Substring match: see DESIGN.md for the known limitation.
        if stop_version in line:
            break

        if URGENCY_MARKER in line:
            record.urgency = _parse_urgency(line)

        stripped = line.strip()
        if index >= SUMMARY_MIN_INDEX and not record.summary and stripped.startswith("*"):
            record.summary = stripped

        if CVE_PREFIX in line:
            record.cves.extend(_parse_cves(line))

        if line.startswith(FOOTER_PREFIX):
            parts = line[len(FOOTER_PREFIX):].split("  ", 1)
            if len(parts) == 2:
                record.author = parts[0].strip()
                record.date = parts[1].strip()

        raw_lines.append(line + "\n")

    record.raw = "".join(raw_lines)
    return record
