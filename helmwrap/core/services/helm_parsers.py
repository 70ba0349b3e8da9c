"""Helm output parsers — turn column-aligned CLI text into Python values.

Helm's table output is not versioned, so every parser is lenient: the
header and separator lines are skipped, rows that can't be understood are
dropped, and a partial result is returned rather than an error.
"""

from __future__ import annotations

# Header + separator lines preceding the rows of every helm table
HEADER_LINES = 2


def _data_lines(output: str, header_lines: int = HEADER_LINES) -> list[str]:
    """Lines of ``output`` after the fixed table header."""
    return output.split("\n")[header_lines:]


def parse_repo_list(output: str) -> dict[str, str]:
    """Parse ``helm repo list`` into ``{name: url}``.

    A row with only a name maps to an empty URL.
    """
    repos: dict[str, str] = {}
    for line in _data_lines(output):
        fields = line.split()
        if len(fields) > 1:
            repos[fields[0]] = fields[1]
        elif fields:
            repos[fields[0]] = ""
    return repos


def parse_search_versions(output: str) -> list[str]:
    """Parse ``helm search <chart> --versions`` into the version column.

    Order and duplicates are kept as printed.
    """
    versions: list[str] = []
    for line in _data_lines(output):
        fields = line.split()
        if len(fields) > 1 and fields[1]:
            versions.append(fields[1])
    return versions


def parse_release_statuses(output: str) -> dict[str, str]:
    """Parse tab-separated ``helm list`` rows into ``{release: status}``.

    Only rows with more than three fields are used; the status is the
    fourth field.
    """
    statuses: dict[str, str] = {}
    for line in _data_lines(output):
        fields = line.split("\t")
        if len(fields) > 3:
            statuses[fields[0].strip()] = fields[3].strip()
    return statuses
