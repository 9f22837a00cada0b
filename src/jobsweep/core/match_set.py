"""
Match Set - Cross-batch accumulation and id deduplication.

Strategies can see the same job definition in several batches (overlapping
keyword chunks, repeated listing heads). Matches are appended as they are
found and collapsed once, at the end of the scan, to the first occurrence
of each id.
"""

from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, List, Mapping

import structlog

Record = Mapping[str, Any]


@dataclass
class MatchStats:
    """Statistics for one match set"""
    total_added: int = 0
    missing_id: int = 0


def _identity(record: Record) -> Hashable:
    # Ids of different types never merge (1, 1.0 and True stay distinct)
    job_id = record.get("id")
    try:
        hash(job_id)
    except TypeError:
        return (type(job_id).__name__, repr(job_id))
    return (type(job_id).__name__, job_id)


def dedupe_by_id(records: Iterable[Record]) -> List[Record]:
    """
    Keep the first occurrence of every id, in order.

    Records without an id share one identity, so only the first of them
    is kept. Applying this to its own output returns the same sequence.
    """
    seen = set()
    unique: List[Record] = []

    for record in records:
        key = _identity(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)

    return unique


class MatchSet:
    """
    Ordered accumulator of matching records for one scan.

    Example:
        >>> matches = MatchSet()
        >>> matches.add_all(batch_matches)
        >>> unique = matches.unique()
    """

    def __init__(self):
        self._records: List[Record] = []
        self.stats = MatchStats()
        self.logger = structlog.get_logger(__name__)

    def add(self, record: Record):
        self._records.append(record)
        self.stats.total_added += 1
        if record.get("id") is None:
            self.stats.missing_id += 1

    def add_all(self, records: Iterable[Record]) -> int:
        """
        Append records in order.

        Returns:
            Number of records appended
        """
        count = 0
        for record in records:
            self.add(record)
            count += 1
        return count

    def records(self) -> List[Record]:
        """All appended records, duplicates included"""
        return list(self._records)

    def unique(self) -> List[Record]:
        """First occurrence per id, in append order"""
        unique = dedupe_by_id(self._records)
        self.logger.debug(
            "matches_deduplicated",
            total=len(self._records),
            unique=len(unique),
        )
        return unique

    def get_statistics(self) -> Dict[str, Any]:
        unique_count = len(dedupe_by_id(self._records))
        return {
            "total_added": self.stats.total_added,
            "unique_matches": unique_count,
            "duplicate_count": self.stats.total_added - unique_count,
            "missing_id": self.stats.missing_id,
        }

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"MatchSet(total={self.stats.total_added}, missing_id={self.stats.missing_id})"
