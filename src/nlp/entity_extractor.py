"""
Regex extraction of durations, email addresses and titles from free text
"""
import re
from typing import List, Optional, Tuple

EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')

# Hours are always tried before minutes; the first pattern that matches wins
DURATION_PATTERNS = [
    (re.compile(r'(?<![\d.])(\d+)\s*(?:hours?|hrs?|h)\b', re.IGNORECASE), 60),
    (re.compile(r'(?<![\d.])(\d+)\s*(?:minutes?|mins?|m)\b', re.IGNORECASE), 1),
]

TITLE_PATTERNS = [
    re.compile(r'"([^"]+)"'),
    re.compile(r'meeting (?:about|for|with|on)\s+([^,.\n]+)', re.IGNORECASE),
    re.compile(r'schedule\s+(?:a\s+)?(.+?)(?:\s+(?:at|on|for|with))', re.IGNORECASE),
]

RENAME_PATTERN = re.compile(r'(?:change|update|rename)\s+(.+?)\s+to\s+(.+)$', re.IGNORECASE | re.DOTALL)


def extract_duration(text: str) -> Optional[int]:
    """Duration in minutes from "<N> hours" or "<N> minutes", else None"""
    if not text:
        return None

    for pattern, multiplier in DURATION_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1)) * multiplier

    return None


def extract_emails(text: str) -> Optional[List[str]]:
    """Email addresses in order of first appearance, else None"""
    if not text:
        return None

    emails = []
    for email in EMAIL_PATTERN.findall(text):
        if email not in emails:
            emails.append(email)
    return emails or None


def extract_title(text: str) -> Optional[str]:
    """Quoted title, "meeting about X" or "schedule a X at/on/for/with" """
    if not text:
        return None

    for pattern in TITLE_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()

    return None


def _clean_title(value: str) -> str:
    return value.strip().rstrip('.!?,;').strip().strip('"\'').strip()


def extract_rename_pair(text: str) -> Optional[Tuple[str, str]]:
    """(current title, new title) from "change/update/rename X to Y" """
    if not text:
        return None

    match = RENAME_PATTERN.search(text.strip())
    if not match:
        return None

    current_title = _clean_title(match.group(1))
    new_title = _clean_title(match.group(2))
    if not current_title or not new_title:
        return None
    return current_title, new_title
