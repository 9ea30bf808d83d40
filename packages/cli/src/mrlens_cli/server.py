"""HTTP surface for the review pipeline.

POST /gitlab/reviewmr acknowledges immediately with the review id; the rest
of the chain runs as a background task after the response is sent.
"""

from __future__ import annotations

import importlib.metadata
import logging

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from mrlens_core.errors import InvalidMergeRequestURL
from mrlens_core.events import EventBus

logger = logging.getLogger(__name__)


class ReviewRequest(BaseModel):
    mrUrl: str


class ReviewAccepted(BaseModel):
    message: str
    reviewId: str
    mrUrl: str


def _dispatch(bus: EventBus, topic: str, data: dict) -> None:
    # Last stop for background work: the failing step has already written
    # its error status to the state store.
    try:
        bus.emit(topic, data)
    except Exception:
        logger.exception("Review pipeline failed (review_id=%s)", data.get("review_id"))


def create_app(pipeline) -> FastAPI:
    app = FastAPI(title="mrlens", version=importlib.metadata.version("mrlens"))

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Request body must be JSON with an 'mrUrl' string"})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.post("/gitlab/reviewmr", response_model=ReviewAccepted)
    def trigger_review(req: ReviewRequest, background_tasks: BackgroundTasks):
        def emit(topic: str, data: dict) -> None:
            background_tasks.add_task(_dispatch, pipeline.bus, topic, data)

        try:
            return pipeline.trigger(req.mrUrl, emit=emit)
        except InvalidMergeRequestURL as e:
            logger.error("Rejected review request for %r: %s", req.mrUrl, e)
            return JSONResponse(status_code=400, content={"error": str(e)})

    @app.get("/reviews/{review_id}")
    def get_review(review_id: str) -> dict:
        record = pipeline.state.get(review_id)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Review {review_id} not found")
        # The raw diff can be large; callers only need the outcome.
        record.pop("mr_diff", None)
        return record

    return app
