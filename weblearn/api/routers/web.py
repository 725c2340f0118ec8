from collections import deque
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import json
import logging
import queue
import threading

from fastapi import APIRouter, HTTPException
from starlette.responses import StreamingResponse
from pydantic import BaseModel

from weblearn.domain.progress import ProgressEvent
from weblearn.services.acquisition_service import WebAcquisitionService

logger = logging.getLogger(__name__)

PROGRESS_LOG_LIMIT = 120


class SearchRequest(BaseModel):
    query: str
    options: Optional[Dict[str, Any]] = None


class CrawlRequest(BaseModel):
    urls: List[str]
    options: Optional[Dict[str, Any]] = None


class AcquireRequest(BaseModel):
    message: str = ""
    urls: Optional[List[str]] = None
    crawl_options: Optional[Dict[str, Any]] = None
    search_options: Optional[Dict[str, Any]] = None


class ProgressLog:
    """Timestamped progress events, keeping only the most recent `limit`."""

    def __init__(self, limit: int = PROGRESS_LOG_LIMIT):
        self.entries = deque(maxlen=limit)

    def __call__(self, event: ProgressEvent) -> dict:
        entry = {"at": datetime.now(timezone.utc).isoformat()}
        entry.update(event.to_dict())
        self.entries.append(entry)
        return entry

    def to_list(self) -> List[dict]:
        return list(self.entries)


def _options_error(e: Exception) -> HTTPException:
    return HTTPException(status_code=400, detail=f"invalid options: {e}")


def create_web_router(acquisition_service: WebAcquisitionService):
    router = APIRouter(prefix="/web", tags=["Web"])

    @router.post("/search")
    def search(req: SearchRequest):
        if not req.query.strip():
            raise HTTPException(status_code=400, detail="missing query")
        try:
            result = acquisition_service.search_web(req.query, req.options)
        except (TypeError, ValueError) as e:
            raise _options_error(e)
        return result.to_dict()

    @router.post("/crawl")
    def crawl(req: CrawlRequest):
        urls = [u for u in req.urls if u.strip()]
        if not urls:
            raise HTTPException(status_code=400, detail="missing urls")
        log = ProgressLog()
        try:
            result = acquisition_service.crawl_from_urls(urls, req.options, on_progress=log)
        except (TypeError, ValueError) as e:
            raise _options_error(e)
        payload = result.to_dict()
        payload["progress"] = log.to_list()
        return payload

    def _validate_acquire(req: AcquireRequest) -> None:
        if not req.message.strip() and not req.urls:
            raise HTTPException(status_code=400, detail="missing message or urls")

    @router.post("/acquire")
    def acquire(req: AcquireRequest):
        _validate_acquire(req)
        log = ProgressLog()
        try:
            result = acquisition_service.acquire(
                req.message,
                urls=req.urls,
                crawl_options=req.crawl_options,
                search_options=req.search_options,
                on_progress=log,
            )
        except (TypeError, ValueError) as e:
            raise _options_error(e)
        payload = result.to_dict()
        payload["progress"] = log.to_list()
        return payload

    @router.post(
        "/acquire/stream",
        responses={
            200: {
                "content": {
                    "application/x-ndjson": {
                        "schema": {"type": "string", "format": "binary"}
                    }
                },
                "description": "NDJSON stream: progress events, then one `result` line"
            }
        },
    )
    def acquire_stream(req: AcquireRequest):
        _validate_acquire(req)
        log = ProgressLog()
        events: queue.Queue = queue.Queue()
        stop_event = threading.Event()
        done = object()

        def on_progress(event: ProgressEvent):
            events.put(log(event))

        def _run():
            try:
                result = acquisition_service.acquire(
                    req.message,
                    urls=req.urls,
                    crawl_options=req.crawl_options,
                    search_options=req.search_options,
                    on_progress=on_progress,
                    stop_event=stop_event,
                )
                payload = result.to_dict()
                payload["progress"] = log.to_list()
                events.put({"type": "result", **payload})
            except Exception as e:
                logger.exception("Streaming acquisition failed")
                events.put({"type": "error", "detail": str(e)})
            finally:
                events.put(done)

        worker = threading.Thread(target=_run, daemon=True)
        worker.start()

        def gen_ndjson():
            try:
                while True:
                    item = events.get()
                    if item is done:
                        break
                    yield (json.dumps(item, default=str) + "\n").encode("utf-8")
            finally:
                # client went away or stream finished; let the crawl wind down
                stop_event.set()

        return StreamingResponse(gen_ndjson(), media_type="application/x-ndjson")

    return router
