"""Local FastAPI surface over the scan history and feature gate."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, status

from ..errors import PersistenceError
from ..runtime import ScanRuntime
from .schemas import (
    FeatureResponse,
    GalleryScanRequest,
    HistoryResponse,
    RemoveResponse,
    ScanRecordModel,
)


def _unavailable(exc: PersistenceError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"history storage unavailable: {exc}",
    )


def create_app(runtime: ScanRuntime | None = None) -> FastAPI:
    scan_runtime = runtime or ScanRuntime()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        await scan_runtime.start()
        try:
            yield
        finally:
            await scan_runtime.close()

    app = FastAPI(title="Scanvault Local API", version="0.1.0", lifespan=lifespan)
    app.state.runtime = scan_runtime

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {
            "status": "ok",
            "history_key": scan_runtime.store.key,
            "connectivity": scan_runtime.probe.state.value,
        }

    @app.get("/v1/history", response_model=HistoryResponse)
    def history() -> HistoryResponse:
        snapshot = scan_runtime.store.snapshot
        return HistoryResponse(
            count=len(snapshot),
            records=[ScanRecordModel.from_record(record) for record in snapshot],
        )

    @app.post(
        "/v1/scans/gallery",
        response_model=ScanRecordModel,
        status_code=status.HTTP_201_CREATED,
    )
    async def gallery_scan(request: GalleryScanRequest) -> ScanRecordModel:
        try:
            record = await scan_runtime.orchestrator.import_gallery(request.payload)
        except PersistenceError as exc:
            raise _unavailable(exc) from exc
        return ScanRecordModel.from_record(record)

    @app.delete("/v1/history/{record_id}", response_model=RemoveResponse)
    async def remove_record(record_id: str) -> RemoveResponse:
        try:
            removed = await scan_runtime.store.remove(record_id)
        except PersistenceError as exc:
            raise _unavailable(exc) from exc
        return RemoveResponse(id=record_id, removed=removed)

    @app.delete("/v1/history")
    async def clear_history() -> dict[str, str]:
        try:
            await scan_runtime.store.clear()
        except PersistenceError as exc:
            raise _unavailable(exc) from exc
        return {"status": "cleared"}

    @app.get("/v1/features", response_model=FeatureResponse)
    def features() -> FeatureResponse:
        return FeatureResponse(
            enhanced=scan_runtime.gate.active,
            connectivity=scan_runtime.gate.connectivity.value,
        )

    return app


_app: FastAPI | None = None


def get_app() -> FastAPI:
    global _app
    if _app is None:
        _app = create_app()
    return _app
