"""
HTTP API for the dashboard frontend.

Thin transport over `MonitorService`: every route fetches a fresh snapshot (or performs a
context switch) and serializes the plain result models. Failures are mapped to status
codes by error type so a client can tell a transient fetch problem from a bad request.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional, Type

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from podmon.config import CorsConfig, Settings
from podmon.core.errors import (
    ClientConstructionFailure,
    ClusterRefInvalid,
    ConfigurationInvalid,
    ContextNotFound,
    ContextsUnavailable,
    FetchFailure,
    MonitorError,
    NotReady,
    PersistFailure,
    SwitchInProgress,
)
from podmon.core.models import ContextListing, CycleResult, ErrorRecord, NamespaceStats
from podmon.service import MonitorService

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: Dict[Type[MonitorError], int] = {
    FetchFailure: 503,
    ContextNotFound: 404,
    ClusterRefInvalid: 400,
    ContextsUnavailable: 400,
    SwitchInProgress: 409,
    NotReady: 503,
    PersistFailure: 500,
    ClientConstructionFailure: 500,
    ConfigurationInvalid: 500,
}


def status_for(err: MonitorError) -> int:
    for cls in type(err).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 500


def _service(request: Request) -> MonitorService:
    return request.app.state.service


def create_app(service: MonitorService, *, cors: Optional[CorsConfig] = None) -> FastAPI:
    app = FastAPI(title="pod-error-monitor")
    app.state.service = service

    cors = cors or CorsConfig()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors.allowed_origins),
        allow_methods=list(cors.allowed_methods),
        allow_headers=["*"],
    )

    @app.exception_handler(MonitorError)
    async def _monitor_error(_request: Request, exc: MonitorError) -> JSONResponse:
        status = status_for(exc)
        if status >= 500 and not exc.retryable:
            logger.error("Request failed (%s): %s", exc.code, exc)
        else:
            logger.info("Request rejected (%s): %s", exc.code, exc)
        return JSONResponse(
            status_code=status,
            content={"error": exc.code, "detail": exc.message, "retryable": exc.retryable},
        )

    @app.get("/healthz")
    def healthz() -> Dict[str, bool]:
        return {"ok": True}

    # Sync handlers: FastAPI runs them in its threadpool, so the blocking pod list
    # does not stall the event loop.
    @app.get("/api/namespaces", response_model=List[NamespaceStats])
    def get_namespace_stats(request: Request) -> List[NamespaceStats]:
        return _service(request).compute_namespace_stats()

    @app.get("/api/namespaces/{namespace}/pods", response_model=List[ErrorRecord])
    def get_namespace_pod_errors(namespace: str, request: Request) -> List[ErrorRecord]:
        return _service(request).classify_instance_errors(namespace)

    @app.get("/api/latest", response_model=CycleResult)
    def get_latest(request: Request) -> CycleResult:
        latest = _service(request).latest
        if latest is None:
            raise NotReady("no completed poll cycle yet")
        return latest

    @app.get("/api/contexts", response_model=ContextListing)
    def get_contexts(request: Request) -> ContextListing:
        return ContextListing.from_context_set(_service(request).list_contexts())

    @app.post("/api/contexts/{context}", response_model=ContextListing)
    def switch_context(context: str, request: Request) -> ContextListing:
        return ContextListing.from_context_set(_service(request).switch_context(context))

    return app


def run(settings: Settings, *, host: Optional[str] = None, port: Optional[int] = None) -> None:
    import uvicorn

    from podmon.poller import Poller
    from podmon.service import build_service

    log_level = os.getenv("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger().setLevel(getattr(logging, log_level, logging.INFO))

    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    service = build_service(settings)
    poller = Poller(service, interval=settings.kubernetes.refresh_interval)
    app = create_app(service, cors=settings.server.cors)

    @app.on_event("startup")
    def _start_poller() -> None:
        poller.start()

    @app.on_event("shutdown")
    def _stop_poller() -> None:
        poller.stop(timeout=5.0)

    bind_host = host or settings.server.host
    bind_port = port or settings.server.port
    logger.info("Server starting on %s:%d", bind_host, bind_port)
    uvicorn.run(app, host=bind_host, port=bind_port, log_level=uvicorn_log_level)
