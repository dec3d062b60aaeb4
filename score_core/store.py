"""Document-store seam used by the recompute engine.

The engine only needs to list a collection, filter it by one equality
predicate, read one document and upsert one document with merge semantics.
``MemoryStore`` backs tests and ad hoc runs; ``api.storage.JsonFileStore``
persists to disk.
"""
from __future__ import annotations

import copy
import threading
from typing import Any, Dict, List, Optional


class DocumentStore:
    """Minimal store contract.  Records are dicts carrying their ``id``."""

    def list_all(self, collection: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def upsert(self, collection: str, doc_id: str, fields: Dict[str, Any], merge: bool = True) -> None:
        raise NotImplementedError

    def where_equals(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        return [r for r in self.list_all(collection) if r.get(field) == value]


def merge_fields(existing: Optional[Dict[str, Any]], fields: Dict[str, Any], merge: bool) -> Dict[str, Any]:
    """Top-level merge: given fields replace existing ones, the rest survive."""

    base = dict(existing or {}) if merge else {}
    base.update(copy.deepcopy(fields))
    return base


class MemoryStore(DocumentStore):
    def __init__(self, seed: Optional[Dict[str, List[Dict[str, Any]]]] = None) -> None:
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()
        for collection, records in (seed or {}).items():
            for rec in records:
                self.upsert(collection, str(rec["id"]), rec, merge=False)

    def list_all(self, collection: str) -> List[Dict[str, Any]]:
        with self._lock:
            docs = self._data.get(collection, {})
            return [dict(copy.deepcopy(doc), id=doc_id) for doc_id, doc in docs.items()]

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._data.get(collection, {}).get(doc_id)
            return None if doc is None else dict(copy.deepcopy(doc), id=doc_id)

    def upsert(self, collection: str, doc_id: str, fields: Dict[str, Any], merge: bool = True) -> None:
        with self._lock:
            docs = self._data.setdefault(collection, {})
            merged = merge_fields(docs.get(doc_id), fields, merge)
            merged.pop("id", None)
            docs[doc_id] = merged
