# packages/ticker_lib/redaction.py

from typing import Iterable

MASK = "***REDACTED***"


def redact_secrets(text: str, secrets: Iterable[str]) -> str:
    """Masks every occurrence of each non-empty secret in text."""
    # Longest first: a secret may contain another one
    for secret in sorted({s for s in secrets if s}, key=len, reverse=True):
        text = text.replace(secret, MASK)
    return text
