from __future__ import annotations


class StoreError(Exception):
    """Base class for document store failures."""


class StoreUnavailableError(StoreError):
    """The store could not be reached. Callers may retry the whole job."""


class MalformedDocumentError(StoreError):
    def __init__(self, collection: str, doc_id: str, reason: str) -> None:
        super().__init__(f"{collection}/{doc_id}: {reason}")
        self.collection = collection
        self.doc_id = doc_id


class DocumentNotFoundError(StoreError):
    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id
