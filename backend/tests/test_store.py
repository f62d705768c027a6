from __future__ import annotations

import logging

import pytest

from backend.places.models import Review
from backend.store.errors import DocumentNotFoundError, MalformedDocumentError
from backend.store.memory import DocumentStore, get_store, reset_store

REVIEW = {"placeId": "p1", "userId": "u1", "rating": 4, "createdAt": "2026-09-01T10:00:00Z"}


def test_malformed_documents_are_skipped_in_bulk_reads(caplog):
    caplog.set_level(logging.WARNING, logger="backend.store.memory")
    store = DocumentStore({
        "reviews": {
            "good": REVIEW,
            "bad": {**REVIEW, "rating": 9},
        },
    })

    reviews = store.reviews_for_place("p1")

    assert [r.id for r in reviews] == ["good"]
    assert "reviews/bad" in caplog.text


def test_ids_where_matches_raw_documents():
    store = DocumentStore({
        "reviews": {
            "good": REVIEW,
            "bad": {**REVIEW, "rating": 9},
            "other": {**REVIEW, "userId": "u2"},
        },
    })

    assert store.ids_where("reviews", lambda d: d.get("userId") == "u1") == ["good", "bad"]


def test_malformed_document_raises_on_single_read():
    store = DocumentStore({"reviews": {"bad": {**REVIEW, "rating": "five"}}})
    with pytest.raises(MalformedDocumentError) as exc_info:
        store.get_review("bad")
    assert exc_info.value.doc_id == "bad"


def test_missing_document_raises():
    with pytest.raises(DocumentNotFoundError):
        DocumentStore().get_place("nowhere")


def test_reviews_grouped_by_place():
    store = DocumentStore({
        "reviews": {
            "r1": REVIEW,
            "r2": {**REVIEW, "placeId": "p2"},
            "r3": {**REVIEW, "rating": 2},
        },
    })

    grouped = store.reviews_by_place()

    assert sorted(grouped) == ["p1", "p2"]
    assert [r.id for r in grouped["p1"]] == ["r1", "r3"]


def test_unresolved_reports_filter():
    store = DocumentStore({
        "reports": {
            "a": {"placeId": "p1", "isResolved": False, "createdAt": "2026-09-01T00:00:00Z"},
            "b": {"placeId": "p1", "isResolved": True, "createdAt": "2026-09-01T00:00:00Z"},
            "c": {"placeId": "p2", "isResolved": False, "createdAt": "2026-09-01T00:00:00Z"},
        },
    })
    assert [r.id for r in store.unresolved_reports_for_place("p1")] == ["a"]


def test_batch_with_missing_update_target_applies_nothing():
    store = DocumentStore({"places": {"p1": {"name": "Bark Park"}}})

    with pytest.raises(DocumentNotFoundError):
        with store.batch() as batch:
            batch.delete("places", "p1")
            batch.update("places", "ghost", {"needsReview": True})

    assert store.get("places", "p1") == {"name": "Bark Park"}


def test_batch_is_dropped_when_block_raises():
    store = DocumentStore({"places": {"p1": {"name": "Bark Park"}}})

    with pytest.raises(RuntimeError):
        with store.batch() as batch:
            batch.delete("places", "p1")
            raise RuntimeError("boom")

    assert store.get("places", "p1") is not None


def test_returned_documents_are_copies():
    store = DocumentStore({"places": {"p1": {"tags": ["shade"]}}})

    store.get("places", "p1")["tags"].append("water")

    assert store.get("places", "p1") == {"tags": ["shade"]}


def test_add_review_assigns_id():
    store = DocumentStore()
    saved = store.add_review(Review.model_validate(REVIEW))

    assert saved.id
    assert store.get_review(saved.id).rating == 4


def test_reset_store_replaces_default():
    first = get_store()
    second = reset_store({"places": {"p1": {}}})
    assert first is not second
    assert get_store() is second
    assert get_store().get_place("p1").id == "p1"
