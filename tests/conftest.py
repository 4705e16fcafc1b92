"""Common utilities for tests."""

import unittest.mock
from typing import Any, Optional

from google.api_core.exceptions import AlreadyExists, NotFound
from mockfirestore import CollectionReference, MockFirestore, Query
from mockfirestore.document import DocumentReference


def _doc_path(ref: Any) -> str:
    return "/".join(ref._path)


def apply_transforms(current: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    """Resolve Firestore field transforms against a document's current data."""
    new_data = {}
    for k, v in data.items():
        kind = type(v).__name__
        if kind == "Increment":
            new_data[k] = (current.get(k) or 0) + v.value
        elif kind == "ArrayUnion":
            existing = current.get(k, [])
            if not isinstance(existing, list):
                existing = []
            merged = list(existing)
            for item in v.values:
                if item not in merged:
                    merged.append(item)
            new_data[k] = merged
        elif kind == "ArrayRemove":
            existing = current.get(k, [])
            if not isinstance(existing, list):
                existing = []
            new_data[k] = [i for i in existing if i not in v.values]
        else:
            new_data[k] = v
    return new_data


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore.

    Adds FieldFilter queries, reference equality, create-if-absent writes,
    write options and field transforms, raising the same google API errors
    the real client does.
    """

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    def query_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = query_where

    def doc_ref_eq(self: Any, other: Any) -> bool:
        if not isinstance(other, DocumentReference):
            return False
        return self._path == other._path

    if not hasattr(DocumentReference, "_orig_eq"):
        DocumentReference._orig_eq = DocumentReference.__eq__
        DocumentReference.__eq__ = doc_ref_eq
        DocumentReference.__hash__ = lambda self: hash(tuple(self._path))

    if not hasattr(DocumentReference, "_orig_update"):
        DocumentReference._orig_update = DocumentReference.update
        DocumentReference._orig_delete = DocumentReference.delete

        def patched_update(self: Any, data: dict[str, Any], option: Any = None) -> Any:
            snapshot = self.get()
            if not snapshot.exists:
                raise NotFound(f"No document to update: {_doc_path(self)}")
            return self._orig_update(apply_transforms(snapshot.to_dict() or {}, data))

        def patched_delete(self: Any, option: Any = None) -> Any:
            if option and option.get("exists") and not self.get().exists:
                raise NotFound(f"No document to delete: {_doc_path(self)}")
            return self._orig_delete()

        def doc_create(self: Any, data: dict[str, Any]) -> None:
            if self.get().exists:
                raise AlreadyExists(f"Document already exists: {_doc_path(self)}")
            self.set(data)

        DocumentReference.update = patched_update
        DocumentReference.delete = patched_delete
        DocumentReference.create = doc_create

    MockFirestore.write_option = lambda self, **kwargs: kwargs
    MockFirestore.batch = lambda self: MockBatch(self)


class MockBatch:
    """A write batch that applies nothing unless every write can succeed."""

    def __init__(self, db: Any) -> None:
        self.db = db
        self.writes: list[tuple[str, Any, Any, Any]] = []
        self.commit = unittest.mock.MagicMock(side_effect=self._real_commit)

    def create(self, ref: Any, data: Any) -> None:
        self.writes.append(("create", ref, data, None))

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append(("set", ref, data, merge))

    def update(self, ref: Any, data: Any, option: Any = None) -> None:
        self.writes.append(("update", ref, data, option))

    def delete(self, ref: Any, option: Any = None) -> None:
        self.writes.append(("delete", ref, None, option))

    def _real_commit(self) -> None:
        for op, ref, _, option in self.writes:
            exists = ref.get().exists
            if op == "create" and exists:
                raise AlreadyExists(f"Document already exists: {_doc_path(ref)}")
            if op == "update" and not exists:
                raise NotFound(f"No document to update: {_doc_path(ref)}")
            if op == "delete" and option and option.get("exists") and not exists:
                raise NotFound(f"No document to delete: {_doc_path(ref)}")

        for op, ref, data, option in self.writes:
            if op == "create":
                ref.set(data)
            elif op == "set":
                ref.set(data, merge=option)
            elif op == "update":
                ref.update(data)
            else:
                ref.delete()
