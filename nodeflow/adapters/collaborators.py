"""
Collaborator Interfaces

Record storage and identity services consumed by nodes. Only in-memory
implementations live here; real backends are supplied by the host
application.
"""

import itertools
import threading
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from ..errors import NodeflowError, Unauthorized

Record = Dict[str, Any]


class RecordNotFound(NodeflowError):
    """patch() was called for an id that does not exist"""


@runtime_checkable
class RecordStore(Protocol):
    """Append/list/patch access to thread, message and note-like records"""

    def append(self, record: Record) -> str:
        ...

    def list(self, filter: Optional[Dict[str, Any]] = None) -> List[Record]:
        ...

    def patch(self, record_id: str, fields: Dict[str, Any]) -> Record:
        ...


@runtime_checkable
class IdentityProvider(Protocol):
    """Resolves the user on whose behalf a run executes"""

    def current_user_id(self) -> str:
        ...


class InMemoryRecordStore:
    """
    Thread-safe RecordStore backed by a dict.

    Records get an "id" field on append. list() matches records whose fields
    equal every key of the filter; a callable filter value is used as a
    predicate on that field.
    """

    def __init__(self):
        self._records: Dict[str, Record] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def append(self, record: Record) -> str:
        with self._lock:
            record_id = str(next(self._ids))
            self._records[record_id] = {**record, "id": record_id}
            return record_id

    def list(self, filter: Optional[Dict[str, Any]] = None) -> List[Record]:
        with self._lock:
            records = [dict(r) for r in self._records.values()]
        if not filter:
            return records
        return [r for r in records if all(_matches(r.get(k), v) for k, v in filter.items())]

    def patch(self, record_id: str, fields: Dict[str, Any]) -> Record:
        with self._lock:
            if record_id not in self._records:
                raise RecordNotFound(f"No record with id '{record_id}'")
            updated = {**self._records[record_id], **fields, "id": record_id}
            self._records[record_id] = updated
            return dict(updated)


def _matches(value: Any, expected: Any) -> bool:
    if callable(expected):
        return bool(expected(value))
    return value == expected


class StaticIdentityProvider:
    """Identity provider with a fixed user (None means unauthenticated)"""

    def __init__(self, user_id: Optional[str] = None):
        self.user_id = user_id

    def current_user_id(self) -> str:
        if not self.user_id:
            raise Unauthorized("No authenticated user")
        return self.user_id
