from __future__ import annotations

import logging
import os
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_job_stats
from .analytics.store import get_events
from .auth.dependencies import require_admin, require_user
from .auth.users import authenticate
from .jobs.runner import (
    on_report_created,
    on_review_written,
    on_user_deleted,
    on_user_updated,
    run_stale_report_cleanup,
    run_top_picks_update,
)
from .places.models import (
    LoginRequest,
    PruneResponse,
    Report,
    ReportCreate,
    ReportResponse,
    Review,
    ReviewCreate,
    ReviewUpdate,
)
from .store.errors import (
    DocumentNotFoundError,
    MalformedDocumentError,
    StoreUnavailableError,
)
from .store.memory import DocumentStore, get_store

logger = logging.getLogger(__name__)

app = FastAPI(title="PawMap Backend API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "pawmap-secret-change-in-production"),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Store error mapping ──────────────────────────────────────────────────


@app.exception_handler(DocumentNotFoundError)
def not_found(request: Request, exc: DocumentNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(MalformedDocumentError)
def malformed(request: Request, exc: MalformedDocumentError) -> JSONResponse:
    logger.warning("Malformed document %s/%s", exc.collection, exc.doc_id)
    return JSONResponse(status_code=500, content={"detail": "Stored document is malformed"})


@app.exception_handler(StoreUnavailableError)
def unavailable(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": "Store unavailable, retry later"})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/top-picks/{list_id}")
def top_picks(list_id: str, store: DocumentStore = Depends(get_store)) -> dict:
    result = store.get_top_picks(list_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Top Picks not computed yet")
    return result.model_dump(by_alias=True)


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── User endpoints ───────────────────────────────────────────────────────


def _check_author(review: Review, user: dict) -> None:
    if review.user_id != user["username"] and user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Only the author can change this review")


@app.post("/reviews")
def create_review(
    body: ReviewCreate,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    store.get_place(body.place_id)
    review = store.add_review(Review(
        place_id=body.place_id,
        user_id=user["username"],
        user_name=user["display_name"],
        rating=body.rating,
        comment=body.comment,
        created_at=_utcnow(),
    ))
    update = on_review_written(store, body.place_id)
    return {
        "review": review.model_dump(by_alias=True),
        "place_rating": update.model_dump(by_alias=True),
    }


@app.put("/reviews/{review_id}")
def update_review(
    review_id: str,
    body: ReviewUpdate,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    review = store.get_review(review_id)
    _check_author(review, user)

    fields: dict = {"rating": body.rating}
    if body.comment is not None:
        fields["comment"] = body.comment
    review = store.update_review(review_id, fields)
    update = on_review_written(store, review.place_id)
    return {
        "review": review.model_dump(by_alias=True),
        "place_rating": update.model_dump(by_alias=True),
    }


@app.delete("/reviews/{review_id}")
def delete_review(
    review_id: str,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    _check_author(store.get_review(review_id), user)
    review = store.delete_review(review_id)
    update = on_review_written(store, review.place_id)
    return {"status": "deleted", "place_rating": update.model_dump(by_alias=True)}


@app.post("/reports", response_model=ReportResponse)
def create_report(
    body: ReportCreate,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> ReportResponse:
    store.get_place(body.place_id)
    report = store.add_report(Report(
        place_id=body.place_id,
        reporter_id=user["username"],
        reason=body.reason,
        description=body.description,
        created_at=_utcnow(),
    ))
    flagged = on_report_created(store, report)
    return ReportResponse(report_id=report.id, place_flagged=flagged)


@app.get("/users/{user_id}/stats")
def user_stats(
    user_id: str,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    if user_id != user["username"] and user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Stats are visible only to their owner")
    return on_user_updated(store, user_id).model_dump(by_alias=True)


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.post("/jobs/top-picks")
def trigger_top_picks(
    user: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
) -> dict:
    result = run_top_picks_update(store)
    return {
        "places_ranked": len(result.places),
        "last_updated": result.last_updated.isoformat(),
        "algorithm": result.algorithm,
    }


@app.post("/jobs/cleanup", response_model=PruneResponse)
def trigger_cleanup(
    user: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
) -> PruneResponse:
    return PruneResponse(deleted=run_stale_report_cleanup(store))


@app.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    user: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
) -> dict:
    return on_user_deleted(store, user_id).model_dump(by_alias=True)


@app.get("/jobs/stats")
def job_stats(user: dict = Depends(require_admin)) -> dict:
    return compute_job_stats(get_events())
