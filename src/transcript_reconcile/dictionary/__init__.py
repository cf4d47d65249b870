"""Smart dictionary of learned correction rules."""

from transcript_reconcile.dictionary.store import SmartDictionary, now_ms, parse_entries

__all__ = [
    "SmartDictionary",
    "now_ms",
    "parse_entries",
]
