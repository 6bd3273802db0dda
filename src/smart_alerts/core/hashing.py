"""
Deterministic content hashing for alert deduplication.

A smart alert is suppressed when its body is byte-for-byte the same as the
last body delivered under the same (alert_type, identifier). Rather than
persisting whole message bodies, the dedup gate stores a fingerprint and
compares fingerprints.

Manifesto:
    - **Deterministic:** Same body always produces the same fingerprint
    - **Exact:** Whitespace and case changes count as content changes
    - **Compact:** 32 hex chars (128 bits) fits a one-line state file
    - **Not security:** Used for equality only, never for authentication

Examples:
    >>> fingerprint("Service nginx is down") == fingerprint("Service nginx is down")
    True
    >>> fingerprint("Disk at 91%") == fingerprint("Disk at 92%")
    False
    >>> len(fingerprint("anything", length=16))
    16

Tags:
    hashing, deduplication, smart-alerts
"""

import hashlib

DEFAULT_LENGTH = 32


def fingerprint(body: str, length: int = DEFAULT_LENGTH) -> str:
    """
    Fingerprint the exact text of an alert body.

    Args:
        body: Alert body, hashed as UTF-8 without any normalization
        length: Hex digest length (default 32 = 128 bits)

    Returns:
        Hex string of the requested length
    """
    return hashlib.sha256(body.encode("utf-8")).hexdigest()[:length]
