"""Mention parsing for comment bodies.

A mention is an ``@`` followed by an email address, e.g.
``@alice@example.com``. Parsing is pure text scanning; resolving the
emails to users is a separate step done by the task service.
"""

import re

MENTION_PATTERN = re.compile(
    r"@([A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,})",
    re.IGNORECASE,
)


def extract_mention_emails(body: str | None) -> list[str]:
    """Return the lower-cased, de-duplicated mentioned emails in order of first appearance."""
    if not body or not isinstance(body, str):
        return []

    seen: dict[str, None] = {}
    for match in MENTION_PATTERN.finditer(body):
        seen.setdefault(match.group(1).lower(), None)
    return list(seen)
