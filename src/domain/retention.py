"""
Entry merge and retention trimming.

Feeds are kept most-recent-first. Trimming is greedy and structural: the
oldest entries are dropped until both the entry count and the total
content size fit the configured limits.
"""

import logging
from typing import List, Sequence

from .models import Entry, TrimResult

logger = logging.getLogger(__name__)


def merge_entry(existing: Sequence[Entry], new_entry: Entry) -> List[Entry]:
    """
    Put new_entry at the front, dropping any existing entry with the same id.

    Other entries keep their relative order and are not modified.
    """
    merged = [entry for entry in existing if entry.id != new_entry.id]
    replaced = len(existing) - len(merged)
    if replaced:
        logger.info(f"Replacing {replaced} existing entry with id {new_entry.id}")
    merged.insert(0, new_entry)
    return merged


def trim_entries(entries: Sequence[Entry], max_bytes: int, max_count: int) -> TrimResult:
    """
    Evict oldest entries until both retention limits hold.

    Args:
        entries: Most-recent-first entries
        max_bytes: Max total UTF-8 content bytes (negative disables trimming)
        max_count: Max number of entries (negative disables trimming)

    Returns:
        TrimResult: kept entries (input order) and evicted entries
        in the order they were removed

    Note:
        A negative value for either limit disables trimming entirely,
        even if the other limit is non-negative.
    """
    kept = list(entries)
    evicted: List[Entry] = []

    if max_bytes < 0 or max_count < 0 or not kept:
        return TrimResult(kept=kept, evicted=evicted)

    sizes = [entry.size_bytes for entry in kept]
    total_size = sum(sizes)

    while kept and (len(kept) > max_count or total_size > max_bytes):
        entry = kept.pop()
        total_size -= sizes.pop()
        evicted.append(entry)

    if evicted:
        logger.info(
            f"Trimmed {len(evicted)} entry(ies): kept={len(kept)}, "
            f"size={total_size} bytes (limits: {max_count} entries, {max_bytes} bytes)"
        )

    return TrimResult(kept=kept, evicted=evicted)
