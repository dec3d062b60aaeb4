"""JSON-file document store used by the API and the CLI.

Each collection is one JSON object (``{doc_id: fields}``) under ``DATA_DIR``;
nested collection paths such as ``rubricStats/geral/criteria`` map to
``rubricStats__geral__criteria.json``.  Writes go through a temp file and an
atomic rename.  Unlike a missing file, an unreadable collection raises so a
recompute never runs on silently empty data.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from score_core.store import DocumentStore, merge_fields


DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()

_LOCK = threading.Lock()


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    return json.loads(path.read_text(encoding="utf-8"))


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)


class JsonFileStore(DocumentStore):
    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = Path(root).resolve() if root is not None else DATA_ROOT

    def collection_path(self, collection: str) -> Path:
        name = collection.strip("/").replace("/", "__")
        if not name or ".." in name:
            raise ValueError(f"invalid collection name: {collection!r}")
        return self.root / f"{name}.json"

    def _load(self, collection: str) -> Dict[str, Dict[str, Any]]:
        data = _read_json(self.collection_path(collection), {})
        if not isinstance(data, dict):
            raise ValueError(f"collection {collection!r} is not a JSON object")
        return data

    def list_all(self, collection: str) -> List[Dict[str, Any]]:
        with _LOCK:
            docs = self._load(collection)
        return [dict(doc, id=doc_id) for doc_id, doc in docs.items()]

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with _LOCK:
            doc = self._load(collection).get(doc_id)
        return None if doc is None else dict(doc, id=doc_id)

    def upsert(self, collection: str, doc_id: str, fields: Dict[str, Any], merge: bool = True) -> None:
        with _LOCK:
            docs = self._load(collection)
            merged = merge_fields(docs.get(doc_id), fields, merge)
            merged.pop("id", None)
            docs[doc_id] = merged
            _write_json(self.collection_path(collection), docs)


def get_store() -> JsonFileStore:
    return JsonFileStore(DATA_ROOT)
