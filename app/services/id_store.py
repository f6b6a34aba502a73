"""Async record storage for lost items, found items and students.

Usage:
  from app.services.id_store import get_store
  store = get_store()
  unmatched = await store.query_where("foundItems", "matched", False)

Backends:
    - FirestoreIdStore: firebase-admin async Firestore client
    - MemoryIdStore: in-process dicts, for tests/local

Documents are plain dicts; the document id is injected as "id" on read.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
import abc
import copy
import uuid

from config import settings
from app.scripts.logging_config import get_logger

logger = get_logger("id_store")

Record = Dict[str, Any]


class BaseIdStore(abc.ABC):
    name: str

    @abc.abstractmethod
    async def query_where(self, collection: str, field: str, value: Any) -> List[Record]:
        ...

    @abc.abstractmethod
    async def get_all(self, collection: str) -> List[Record]:
        ...

    @abc.abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> Optional[Record]:
        ...

    @abc.abstractmethod
    async def update_fields(self, collection: str, doc_id: str, fields: Record) -> bool:
        """Merge fields into one document. False when the document does not exist."""
        ...

    @abc.abstractmethod
    async def add_document(self, collection: str, data: Record) -> str:
        ...

    @abc.abstractmethod
    async def set_document(self, collection: str, doc_id: str, data: Record) -> None:
        ...

    @abc.abstractmethod
    async def delete_document(self, collection: str, doc_id: str) -> None:
        ...


class MemoryIdStore(BaseIdStore):
    name = "memory"

    def __init__(self, data: Optional[Dict[str, Dict[str, Record]]] = None):
        self._data: Dict[str, Dict[str, Record]] = copy.deepcopy(data) if data else {}

    def _col(self, collection: str) -> Dict[str, Record]:
        return self._data.setdefault(collection, {})

    @staticmethod
    def _with_id(doc_id: str, doc: Record) -> Record:
        out = copy.deepcopy(doc)
        out["id"] = doc_id
        return out

    async def query_where(self, collection: str, field: str, value: Any) -> List[Record]:
        return [self._with_id(k, v) for k, v in self._col(collection).items() if v.get(field) == value]

    async def get_all(self, collection: str) -> List[Record]:
        return [self._with_id(k, v) for k, v in self._col(collection).items()]

    async def get_document(self, collection: str, doc_id: str) -> Optional[Record]:
        doc = self._col(collection).get(doc_id)
        if doc is None:
            return None
        return self._with_id(doc_id, doc)

    async def update_fields(self, collection: str, doc_id: str, fields: Record) -> bool:
        doc = self._col(collection).get(doc_id)
        if doc is None:
            return False
        doc.update(copy.deepcopy(fields))
        return True

    async def add_document(self, collection: str, data: Record) -> str:
        doc_id = uuid.uuid4().hex
        self._col(collection)[doc_id] = copy.deepcopy(data)
        return doc_id

    async def set_document(self, collection: str, doc_id: str, data: Record) -> None:
        self._col(collection)[doc_id] = copy.deepcopy(data)

    async def delete_document(self, collection: str, doc_id: str) -> None:
        self._col(collection).pop(doc_id, None)


class FirestoreIdStore(BaseIdStore):
    name = "firestore"

    def __init__(self, client=None):
        self._client = client

    def _db(self):
        if self._client is None:
            from firebase_admin import firestore_async
            self._client = firestore_async.client()
        return self._client

    @staticmethod
    def _snap_to_record(snap) -> Record:
        data = snap.to_dict() or {}
        data["id"] = snap.id
        return data

    async def query_where(self, collection: str, field: str, value: Any) -> List[Record]:
        from google.cloud.firestore_v1.base_query import FieldFilter
        query = self._db().collection(collection).where(filter=FieldFilter(field, "==", value))
        snaps = await query.get()
        logger.info("firestore.read op=query col=%s %s==%r docs=%d", collection, field, value, len(snaps))
        return [self._snap_to_record(s) for s in snaps]

    async def get_all(self, collection: str) -> List[Record]:
        snaps = await self._db().collection(collection).get()
        logger.info("firestore.read op=scan col=%s docs=%d", collection, len(snaps))
        return [self._snap_to_record(s) for s in snaps]

    async def get_document(self, collection: str, doc_id: str) -> Optional[Record]:
        snap = await self._db().collection(collection).document(doc_id).get()
        if not snap.exists:
            return None
        return self._snap_to_record(snap)

    async def update_fields(self, collection: str, doc_id: str, fields: Record) -> bool:
        from google.api_core.exceptions import NotFound
        try:
            await self._db().collection(collection).document(doc_id).update(fields)
        except NotFound:
            logger.warning("firestore.write op=update doc=%s/%s missing", collection, doc_id)
            return False
        logger.info("firestore.write op=update doc=%s/%s fields=%s", collection, doc_id, sorted(fields))
        return True

    async def add_document(self, collection: str, data: Record) -> str:
        _, ref = await self._db().collection(collection).add(data)
        logger.info("firestore.write op=add doc=%s/%s", collection, ref.id)
        return ref.id

    async def set_document(self, collection: str, doc_id: str, data: Record) -> None:
        await self._db().collection(collection).document(doc_id).set(data)
        logger.info("firestore.write op=set doc=%s/%s", collection, doc_id)

    async def delete_document(self, collection: str, doc_id: str) -> None:
        await self._db().collection(collection).document(doc_id).delete()
        logger.info("firestore.write op=delete doc=%s/%s", collection, doc_id)


_store: Optional[BaseIdStore] = None


def get_store() -> BaseIdStore:
    global _store
    if _store is None:
        backend = (settings.STORE_BACKEND or "firestore").lower()
        if backend == "memory":
            _store = MemoryIdStore()
        else:
            _store = FirestoreIdStore()
        logger.info("id_store backend=%s", _store.name)
    return _store


def set_store(store: Optional[BaseIdStore]) -> None:
    """Swap the process-wide store (tests, scripts). None resets to lazy selection."""
    global _store
    _store = store
