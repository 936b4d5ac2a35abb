"""
Identifier collation for PROV registry records

PROV identifiers look like "PROV VA 12": a series code, a category code and
a sequence number. Every ordering in the harvester (JSON export and the
reconstructed XML) goes through sort_key so the two outputs agree.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from oai.models import Record

SortKey = Tuple[str, str, int]

# (output name, identifier prefix) in file order
SPLIT_CATEGORIES: List[Tuple[str, str]] = [
    ('agencies', 'PROV VA '),
    ('functions', 'PROV VF '),
    ('series', 'PROV VPRS '),
]

_LEADING_INT = re.compile(r'^[+-]?\d+')


def _to_int(token: str) -> int:
    """Leading integer of a token, 0 when there is none ("12a" -> 12, "x" -> 0)"""
    match = _LEADING_INT.match(token)
    return int(match.group()) if match else 0


def sort_key(identifier: Optional[str]) -> SortKey:
    """
    Build the comparison key for an identifier

    Only the first three whitespace-separated tokens take part; missing
    tokens count as empty strings and the third is compared numerically.

    Args:
        identifier: Record identifier (None is treated as "")

    Returns:
        (token0, token1, int(token2))

    Example:
        sort_key("PROV VA 12") == ("PROV", "VA", 12)
    """
    parts = (identifier or '').split()
    parts.extend([''] * (3 - len(parts)))
    return parts[0], parts[1], _to_int(parts[2])


def sort_records(records: Iterable[Record]) -> List[Record]:
    """Stable sort of records by identifier key"""
    return sorted(records, key=lambda record: sort_key(record.identifier))


def partition_records(records: Iterable[Record]) -> Dict[str, List[Record]]:
    """
    Split records into the agencies/functions/series groups

    Records whose identifier matches none of the prefixes are left out.
    Input order is preserved inside each group.
    """
    records = list(records)
    partitions = {}
    for name, prefix in SPLIT_CATEGORIES:
        partitions[name] = [
            record for record in records
            if record.identifier and record.identifier.startswith(prefix)
        ]
    return partitions
