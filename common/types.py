"""Shared data type definitions (Record) and their wire form."""

from dataclasses import dataclass
from typing import Dict, Iterable, List


@dataclass(frozen=True)
class Record:
    """
    A single key/value pair held in a node's store.

    Duplicate keys are allowed; a record never changes once appended.
    """
    key: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        """Wire form, with keys in the canonical order used for hashing."""
        return {"key": self.key, "value": self.value}


def records_to_wire(records: Iterable[Record]) -> List[Dict[str, str]]:
    """Convert an ordered sequence of records to a JSON-ready list."""
    return [record.to_dict() for record in records]
