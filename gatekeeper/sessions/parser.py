"""
VPN Session Report Parser

Turns the output of `show vpn-sessiondb full remote` into a SessionMap.

Each session is printed on one line as pipe-separated `Label: value`
pairs after a fixed preamble, e.g.:

    Session Type: Remote Detailed

    Username: alice | Index: 1 | Assigned IP: 10.8.0.12 | Protocol: AnyConnect-Parent |

Values are kept as opaque strings.
"""

import re
from typing import Optional

from gatekeeper.exceptions import ParseError
from gatekeeper.sessions.models import SessionMap, SessionRecord


HEADER_LINES = 3
USERNAME_LABEL = "Username"

# whitespace, label of letters/spaces, ": ", value, one or more '|'
PAIR_PATTERN = re.compile(r"\s+([a-zA-Z ]+): ([a-zA-Z0-9.\-_ ]+?)\s*\|+")


def parse_line(line: str) -> SessionRecord:
    """
    Extract every `Label: value |` pair from one report line.

    Args:
        line: One line of the report

    Returns:
        Record of stripped labels to stripped values (possibly empty)
    """
    record: SessionRecord = {}
    # Leading space lets the first pair on an unindented line match
    for label, value in PAIR_PATTERN.findall(" " + line):
        record[label.strip()] = value.strip()
    return record


def parse_sessions(report: Optional[str], header_lines: int = HEADER_LINES) -> SessionMap:
    """
    Parse a session report into a mapping keyed by username.

    Lines without a Username pair are dropped. Repeated usernames are
    merged: later labels overwrite earlier ones, others are kept.

    Args:
        report: Raw report text
        header_lines: Non-blank preamble lines to skip

    Returns:
        SessionMap in report order

    Raises:
        ParseError: If the report is absent or shorter than the preamble
    """
    if report is None:
        raise ParseError("Session report is empty")

    lines = [line for line in report.splitlines() if line.strip()]
    if len(lines) < header_lines:
        raise ParseError(
            f"Session report has {len(lines)} lines, expected at least {header_lines}"
        )

    sessions: SessionMap = {}
    for line in lines[header_lines:]:
        record = parse_line(line)
        username = record.get(USERNAME_LABEL)
        if not username:
            continue
        sessions.setdefault(username, {}).update(record)

    return sessions
