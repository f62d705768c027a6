from __future__ import annotations

import copy
import logging
import threading
import uuid
from collections import defaultdict
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..places.models import Place, Report, Review, TopPicksList, UserStats
from .errors import DocumentNotFoundError, MalformedDocumentError

logger = logging.getLogger(__name__)

PLACES = "places"
REVIEWS = "reviews"
REPORTS = "reports"
TOP_PICKS = "topPicks"
USERS = "users"
USER_STATS = "userStats"
USER_PREFERENCES = "userPreferences"
FAVORITES = "favorites"
MODERATORS = "moderators"

M = TypeVar("M", bound=BaseModel)


class WriteBatch:
    """Writes collected here are applied together by ``DocumentStore.commit``."""

    def __init__(self) -> None:
        self._ops: list[tuple[str, str, str, dict[str, Any] | None, bool]] = []

    def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        self._ops.append(("set", collection, doc_id, dict(data), merge))

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        self._ops.append(("update", collection, doc_id, dict(fields), False))

    def delete(self, collection: str, doc_id: str) -> None:
        self._ops.append(("delete", collection, doc_id, None, False))

    def __len__(self) -> int:
        return len(self._ops)

    def __iter__(self) -> Iterator[tuple[str, str, str, dict[str, Any] | None, bool]]:
        return iter(self._ops)


class DocumentStore:
    """
    In-memory document database with named collections of schema-less
    documents keyed by id.

    Typed readers validate each document into a record. Bulk readers log and
    skip documents that fail validation; single-document readers raise
    ``MalformedDocumentError``.
    """

    def __init__(self, collections: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self._collections: defaultdict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        for name, docs in (collections or {}).items():
            self._collections[name] = copy.deepcopy(docs)
        self._lock = threading.Lock()

    # ── Raw document access ──────────────────────────────────────────────

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex[:20]

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            doc = self._collections[collection].get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def put(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        with self._lock:
            self._collections[collection][doc_id] = copy.deepcopy(data)

    def ids(self, collection: str) -> list[str]:
        with self._lock:
            return list(self._collections[collection])

    def ids_where(self, collection: str, where: Callable[[dict[str, Any]], bool]) -> list[str]:
        """Ids of raw documents matching ``where``, whether or not they validate."""
        return [doc_id for doc_id, _ in self._snapshot(collection, where)]

    def _snapshot(
        self,
        collection: str,
        where: Callable[[dict[str, Any]], bool] | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        with self._lock:
            docs = list(self._collections[collection].items())
        return [
            (doc_id, copy.deepcopy(data))
            for doc_id, data in docs
            if where is None or where(data)
        ]

    # ── Validation at the store boundary ─────────────────────────────────

    @staticmethod
    def _validate(model: type[M], collection: str, doc_id: str, data: dict[str, Any]) -> M:
        try:
            return model.model_validate({**data, "id": doc_id})
        except ValidationError as exc:
            raise MalformedDocumentError(collection, doc_id, str(exc)) from exc

    def _read_all(
        self,
        model: type[M],
        collection: str,
        where: Callable[[dict[str, Any]], bool] | None = None,
    ) -> list[M]:
        records: list[M] = []
        for doc_id, data in self._snapshot(collection, where):
            try:
                records.append(self._validate(model, collection, doc_id, data))
            except MalformedDocumentError as exc:
                logger.warning("Skipping malformed document %s", exc)
        return records

    def _read_one(self, model: type[M], collection: str, doc_id: str) -> M:
        data = self.get(collection, doc_id)
        if data is None:
            raise DocumentNotFoundError(collection, doc_id)
        return self._validate(model, collection, doc_id, data)

    # ── Places ───────────────────────────────────────────────────────────

    def list_places(self) -> list[Place]:
        return self._read_all(Place, PLACES)

    def get_place(self, place_id: str) -> Place:
        return self._read_one(Place, PLACES, place_id)

    def places_created_by(self, user_id: str) -> list[Place]:
        return self._read_all(Place, PLACES, lambda d: d.get("createdBy") == user_id)

    def update_place(self, place_id: str, fields: dict[str, Any]) -> None:
        self.commit(self._single("update", PLACES, place_id, fields))

    # ── Reviews ──────────────────────────────────────────────────────────

    def get_review(self, review_id: str) -> Review:
        return self._read_one(Review, REVIEWS, review_id)

    def reviews_for_place(self, place_id: str) -> list[Review]:
        return self._read_all(Review, REVIEWS, lambda d: d.get("placeId") == place_id)

    def reviews_by_author(self, user_id: str) -> list[Review]:
        return self._read_all(Review, REVIEWS, lambda d: d.get("userId") == user_id)

    def reviews_by_place(self) -> dict[str, list[Review]]:
        grouped: dict[str, list[Review]] = defaultdict(list)
        for review in self._read_all(Review, REVIEWS):
            grouped[review.place_id].append(review)
        return dict(grouped)

    def add_review(self, review: Review) -> Review:
        review_id = review.id or self.new_id()
        self.put(REVIEWS, review_id, review.to_document())
        return review.model_copy(update={"id": review_id})

    def update_review(self, review_id: str, fields: dict[str, Any]) -> Review:
        self.commit(self._single("update", REVIEWS, review_id, fields))
        return self.get_review(review_id)

    def delete_review(self, review_id: str) -> Review:
        review = self.get_review(review_id)
        self.commit(self._single("delete", REVIEWS, review_id))
        return review

    # ── Reports ──────────────────────────────────────────────────────────

    def list_reports(self) -> list[Report]:
        return self._read_all(Report, REPORTS)

    def unresolved_reports_for_place(self, place_id: str) -> list[Report]:
        return self._read_all(
            Report,
            REPORTS,
            lambda d: d.get("placeId") == place_id and d.get("isResolved") is False,
        )

    def add_report(self, report: Report) -> Report:
        report_id = report.id or self.new_id()
        self.put(REPORTS, report_id, report.to_document())
        return report.model_copy(update={"id": report_id})

    def delete_reports(self, report_ids: list[str]) -> int:
        batch = WriteBatch()
        for report_id in report_ids:
            batch.delete(REPORTS, report_id)
        self.commit(batch)
        return len(batch)

    # ── Top Picks ────────────────────────────────────────────────────────

    def set_top_picks(self, list_id: str, top_picks: TopPicksList) -> None:
        self.put(TOP_PICKS, list_id, top_picks.to_document())

    def get_top_picks(self, list_id: str) -> TopPicksList | None:
        data = self.get(TOP_PICKS, list_id)
        if data is None:
            return None
        try:
            return TopPicksList.model_validate(data)
        except ValidationError as exc:
            raise MalformedDocumentError(TOP_PICKS, list_id, str(exc)) from exc

    # ── Accounts ─────────────────────────────────────────────────────────

    def set_user_stats(self, stats: UserStats) -> None:
        self.commit(self._single("set", USER_STATS, stats.user_id, stats.to_document(), merge=True))

    def get_user_stats(self, user_id: str) -> UserStats:
        data = self.get(USER_STATS, user_id)
        if data is None:
            raise DocumentNotFoundError(USER_STATS, user_id)
        try:
            return UserStats.model_validate(data)
        except ValidationError as exc:
            raise MalformedDocumentError(USER_STATS, user_id, str(exc)) from exc

    def moderators(self) -> list[dict[str, Any]]:
        return [{"id": doc_id, **data} for doc_id, data in self._snapshot(MODERATORS)]

    # ── Batched writes ───────────────────────────────────────────────────

    @staticmethod
    def _single(
        kind: str,
        collection: str,
        doc_id: str,
        data: dict[str, Any] | None = None,
        merge: bool = False,
    ) -> WriteBatch:
        batch = WriteBatch()
        if kind == "set":
            batch.set(collection, doc_id, data or {}, merge=merge)
        elif kind == "update":
            batch.update(collection, doc_id, data or {})
        else:
            batch.delete(collection, doc_id)
        return batch

    @contextmanager
    def batch(self) -> Iterator[WriteBatch]:
        """Collect writes and commit them together when the block exits cleanly."""
        batch = WriteBatch()
        yield batch
        self.commit(batch)

    def commit(self, batch: WriteBatch) -> None:
        """Apply every write in ``batch`` or none of them."""
        with self._lock:
            for kind, collection, doc_id, _, _ in batch:
                if kind == "update" and doc_id not in self._collections[collection]:
                    raise DocumentNotFoundError(collection, doc_id)

            for kind, collection, doc_id, data, merge in batch:
                docs = self._collections[collection]
                if kind == "delete":
                    docs.pop(doc_id, None)
                elif kind == "update" or merge:
                    docs.setdefault(doc_id, {}).update(copy.deepcopy(data))
                else:
                    docs[doc_id] = copy.deepcopy(data)


_store: DocumentStore | None = None


def get_store() -> DocumentStore:
    """Return the process-wide default store, creating it on first call."""
    global _store
    if _store is None:
        _store = DocumentStore()
    return _store


def reset_store(collections: dict[str, dict[str, dict[str, Any]]] | None = None) -> DocumentStore:
    global _store
    _store = DocumentStore(collections)
    return _store
