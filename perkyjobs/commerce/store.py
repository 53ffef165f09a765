"""Document store contract for perkyjobs.

The lifecycle engine and settlement orchestrator only need keyed document
storage: get by id, query by a single field, insert and partial update.
Records are plain dicts; every record returned by a store carries its id
under the "id" key.

Stores give no concurrency control. Updates are read-then-write and the
last writer wins.
"""

import copy
import logging
import uuid
from typing import Any, Dict, List, Optional, Protocol

from perkyjobs.commerce.errors import NotFoundError

logger = logging.getLogger(__name__)

JOBS_COLLECTION = "jobs"
USERS_COLLECTION = "users"


class DocumentStore(Protocol):
    """Protocol for document persistence backends."""

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Get a record by id, or None if absent."""
        ...

    def query(
        self,
        collection: str,
        field: Optional[str] = None,
        value: Any = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
        descending: bool = True,
    ) -> List[Dict[str, Any]]:
        """Records whose ``field`` equals ``value`` (all records if field is None)."""
        ...

    def insert(self, collection: str, record: Dict[str, Any]) -> str:
        """Insert a record. Returns the assigned id."""
        ...

    def update(self, collection: str, record_id: str, partial: Dict[str, Any]) -> None:
        """Merge ``partial`` into an existing record. Raises NotFoundError if absent."""
        ...


class InMemoryDocumentStore:
    """In-memory document store for testing and local development."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.write_count = 0

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        record = self._collection(collection).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def query(
        self,
        collection: str,
        field: Optional[str] = None,
        value: Any = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
        descending: bool = True,
    ) -> List[Dict[str, Any]]:
        records = list(self._collection(collection).values())

        if field is not None:
            records = [r for r in records if r.get(field) == value]

        if order_by is not None:
            # Records missing the sort key go last regardless of direction
            present = [r for r in records if r.get(order_by) is not None]
            missing = [r for r in records if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            records = present + missing

        if limit is not None:
            records = records[:limit]

        return [copy.deepcopy(r) for r in records]

    def insert(self, collection: str, record: Dict[str, Any]) -> str:
        record_id = record.get("id") or str(uuid.uuid4())
        stored = copy.deepcopy(record)
        stored["id"] = record_id
        self._collection(collection)[record_id] = stored
        self.write_count += 1
        return record_id

    def update(self, collection: str, record_id: str, partial: Dict[str, Any]) -> None:
        records = self._collection(collection)
        if record_id not in records:
            raise NotFoundError(f"{collection} record {record_id} not found")
        changes = {k: copy.deepcopy(v) for k, v in partial.items() if k != "id"}
        records[record_id].update(changes)
        self.write_count += 1
