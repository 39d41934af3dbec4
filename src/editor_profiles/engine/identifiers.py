"""Identifier validation for profile collections.

Profile identifiers are canonical 128-bit unique identifiers
(``xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx``). Collections loaded from disk
can contain empty, malformed or duplicated identifiers; the helpers here
re-key the offending records in place.
"""

from collections import Counter
from typing import Any, Iterable, Protocol
import re
import uuid


_CANONICAL_ID = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


class IdentifiedRecord(Protocol):
    """Anything carrying a mutable ``profile_id``."""

    profile_id: str


def is_valid_unique_id(value: Any) -> bool:
    """Check whether a value is a unique identifier in canonical form."""
    if not isinstance(value, str):
        return False
    return _CANONICAL_ID.match(value) is not None


def new_unique_id(taken: Iterable[str] = ()) -> str:
    """Generate a fresh identifier that is not in ``taken``."""
    taken = set(taken)
    while True:
        candidate = str(uuid.uuid4())
        if candidate not in taken:
            return candidate


def repair_invalid_ids(records: list[IdentifiedRecord]) -> list[IdentifiedRecord]:
    """Assign fresh identifiers to records whose identifier is malformed.

    Must run before :func:`deduplicate_ids`, otherwise unrelated records
    sharing an empty identifier would be treated as duplicates.

    Args:
        records: Records to repair in place

    Returns:
        The records that received a new identifier
    """
    taken = {r.profile_id for r in records if is_valid_unique_id(r.profile_id)}
    repaired = []
    for record in records:
        if is_valid_unique_id(record.profile_id):
            continue
        record.profile_id = new_unique_id(taken)
        taken.add(record.profile_id)
        repaired.append(record)
    return repaired


def deduplicate_ids(records: list[IdentifiedRecord]) -> list[IdentifiedRecord]:
    """Re-key records that share an identifier.

    Every record of a duplicated group except the first one (in input
    order) gets a fresh identifier. The occurrence counter is decremented
    as each duplicate is fixed, so three or more copies are all re-keyed.

    Args:
        records: Records to deduplicate in place

    Returns:
        The records that received a new identifier
    """
    occurrences = Counter(r.profile_id for r in records)
    taken = set(occurrences)
    rekeyed = []

    # Walking backwards leaves the first occurrence of each group untouched.
    for record in reversed(records):
        original = record.profile_id
        if occurrences[original] > 1:
            record.profile_id = new_unique_id(taken)
            taken.add(record.profile_id)
            occurrences[original] -= 1
            rekeyed.append(record)

    rekeyed.reverse()
    return rekeyed


def distinct_ids(ids: Iterable[str]) -> list[str]:
    """Drop empty and repeated identifiers, keeping first-seen order."""
    seen: set[str] = set()
    result = []
    for value in ids:
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result
