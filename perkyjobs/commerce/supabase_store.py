"""Supabase-backed document store.

Maps each collection to a table of the same name. Tables are expected to
have a text/uuid ``id`` primary key generated by the database and columns
named after the document fields.
"""

import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from perkyjobs.commerce.errors import NotFoundError

logger = logging.getLogger(__name__)


class SupabaseDocumentStore:
    """DocumentStore implementation over a Supabase client."""

    def __init__(self, client: Client):
        self.client = client

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        result = self.client.table(collection).select("*").eq("id", record_id).execute()
        return result.data[0] if result.data else None

    def query(
        self,
        collection: str,
        field: Optional[str] = None,
        value: Any = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
        descending: bool = True,
    ) -> List[Dict[str, Any]]:
        query = self.client.table(collection).select("*")
        if field is not None:
            query = query.eq(field, value)
        if order_by is not None:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        result = query.execute()
        return result.data or []

    def insert(self, collection: str, record: Dict[str, Any]) -> str:
        data = {k: v for k, v in record.items() if not (k == "id" and v is None)}
        result = self.client.table(collection).insert(data).execute()
        if not result.data:
            raise RuntimeError(f"Insert into {collection} returned no data")
        return str(result.data[0]["id"])

    def update(self, collection: str, record_id: str, partial: Dict[str, Any]) -> None:
        data = {k: v for k, v in partial.items() if k != "id"}
        result = self.client.table(collection).update(data).eq("id", record_id).execute()
        if not result.data:
            logger.warning(f"Update matched no rows | {collection}={record_id}")
            raise NotFoundError(f"{collection} record {record_id} not found")
