"""FastAPI application backing the docseek web UI."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from docseek.config import AppConfig
from docseek.index.indexer import Indexer
from docseek.index.search import Searcher
from docseek.index.storage import DocumentIndex
from docseek.utils.ignore import IgnoreMatcher
from docseek.web.frontend import router as frontend_router

LOGGER = logging.getLogger(__name__)


class SearchPayload(BaseModel):
    query: str
    top_k: int = 20


class SearchHit(BaseModel):
    path: str
    score: float
    preview: str = ""


def _run_index_job(indexer: Indexer, root: Path, snapshot_path: Path) -> dict[str, Any]:
    stats = indexer.index_folder(root)
    if stats.indexed > 0:
        indexer.store.save(snapshot_path)
    return {
        "indexed": stats.indexed,
        "current": stats.current,
        "skipped": stats.skipped,
        "failed": stats.failed,
        "processed_files": [str(path) for path in stats.processed_files],
    }


def create_app(
    index: DocumentIndex,
    root: Path,
    *,
    config: AppConfig | None = None,
    ignore: IgnoreMatcher | None = None,
) -> FastAPI:
    """Build the HTTP application serving ``index`` for the folder ``root``."""
    config = config or AppConfig()
    root = Path(root).resolve()
    snapshot_path = config.resolve_snapshot_path(root)
    searcher = Searcher(index)
    indexer = Indexer(
        index,
        ignore or IgnoreMatcher(config.ignore_filename),
        workers=config.workers,
    )

    app = FastAPI(title="docseek", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(frontend_router)
    app.state.index = index
    app.state.root = root

    @app.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    @app.post("/search")
    async def search_documents(payload: SearchPayload) -> dict[str, List[SearchHit]]:
        query = payload.query.strip()
        if not query:
            raise HTTPException(status_code=400, detail="Empty query")

        top_k = max(1, min(payload.top_k, 100))
        results = await asyncio.to_thread(
            searcher.search,
            query,
            top_k=top_k,
            min_score=config.min_score,
            with_preview=True,
        )
        return {
            "results": [
                SearchHit(path=str(result.path), score=result.score, preview=result.preview)
                for result in results
            ]
        }

    @app.get("/documents")
    async def list_documents() -> dict[str, Any]:
        """List all indexed documents."""
        return {"documents": index.paths(), "stats": asdict(index.stats())}

    @app.delete("/documents/cleanup")
    async def cleanup_missing_files() -> dict[str, Any]:
        """Remove documents whose files no longer exist on disk."""
        removed_count = await asyncio.to_thread(index.remove_missing_files)
        if removed_count:
            await asyncio.to_thread(index.save, snapshot_path)
        return {"status": "ok", "removed_count": removed_count}

    @app.post("/index")
    async def index_documents() -> dict[str, Any]:
        if not root.is_dir():
            raise HTTPException(status_code=404, detail=f"Folder not found: {root}")
        try:
            stats = await asyncio.to_thread(_run_index_job, indexer, root, snapshot_path)
        except OSError as exc:
            LOGGER.exception("Indexing failed: %s", exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return {"status": "ok", "root": str(root), "stats": stats}

    return app
