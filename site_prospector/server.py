"""
HTTP API (FastAPI).

Routes::

  GET  /api/health            → {"status": "ok"}
  POST /api/analyze           body {url, includeCompetitors?}
                              → full analysis (camelCase) plus its history "id"
                                400 {"error": "URL is required"}
                                500 {"error": "Failed to analyze website", "details": ...}
  GET  /api/history           → [{id, url, overallScore, timestamp}], newest first
  GET  /api/analysis/{id}     → stored analysis, 404 when unknown

Built by ``create_app(config)`` so tests can inject a pipeline with fake
collectors. Run with ``site-prospector serve``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from site_prospector.config import AppConfig
from site_prospector.db.connection import connect_from_config
from site_prospector.db.migrations import init_database
from site_prospector.db.repositories.analysis_repo import AnalysisRepository
from site_prospector.models.audit import WIRE_CONFIG
from site_prospector.pipeline.analyze import AnalysisError, AnalysisPipeline

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    """``POST /api/analyze`` body."""

    model_config = WIRE_CONFIG

    url: Optional[str] = None
    include_competitors: bool = True


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def create_app(
    config: AppConfig,
    pipeline: Optional[AnalysisPipeline] = None,
) -> FastAPI:
    """Build the API application.

    Args:
        config: Application configuration.
        pipeline: Analysis pipeline; built from ``config`` when ``None``.
    """
    app = FastAPI(title="Site Prospector", version="0.1.0")
    analysis_pipeline = pipeline or AnalysisPipeline(config)

    @contextmanager
    def repository() -> Iterator[AnalysisRepository]:
        with connect_from_config(config.database) as conn:
            init_database(conn)
            yield AnalysisRepository(conn)

    @app.get("/api/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.post("/api/analyze")
    async def analyze(request: AnalyzeRequest):
        if not request.url or not request.url.strip():
            return _error(400, "URL is required")

        try:
            result = await analysis_pipeline.analyze(
                request.url, include_competitors=request.include_competitors
            )
            analysis_id = await run_in_threadpool(analysis_pipeline.save, result)
        except ValueError as exc:
            return _error(400, str(exc))
        except AnalysisError as exc:
            return _error(500, "Failed to analyze website", exc.details or str(exc))
        except Exception as exc:
            logger.exception("Analysis error | url=%s", request.url)
            return _error(500, "Failed to analyze website", str(exc))

        payload = result.to_wire()
        payload["id"] = analysis_id
        return payload

    # sqlite3 blocks; sync routes run in FastAPI's threadpool.
    @app.get("/api/history")
    def history(limit: Optional[int] = None):
        try:
            with repository() as repo:
                entries = repo.list_history(limit=limit or config.history.limit)
        except Exception as exc:
            logger.exception("History error")
            return _error(500, "Failed to retrieve history", str(exc))
        return [e.model_dump(mode="json", by_alias=True) for e in entries]

    @app.get("/api/analysis/{analysis_id}")
    def get_analysis(analysis_id: int):
        try:
            with repository() as repo:
                stored = repo.get_by_id(analysis_id)
        except Exception as exc:
            logger.exception("Analysis retrieval error | id=%d", analysis_id)
            return _error(500, "Failed to retrieve analysis", str(exc))
        if stored is None:
            return _error(404, "Analysis not found")
        return stored.model_dump(mode="json", by_alias=True)

    return app
