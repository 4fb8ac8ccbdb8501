# lucid_rag/app/api.py
from __future__ import annotations

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from lucid_rag.common import InvalidQueryError, Query
from lucid_rag.config import GlobalConfig
from lucid_rag.app.container import LucidContainer, build_container
import logging
import os

logger = logging.getLogger("lucid_rag.api")


class QueryRequest(BaseModel):
    query: str
    top_k: int | None = None
    threshold: float | None = None


class ChunkPayload(BaseModel):
    id: str | None = None
    document_id: str
    chunk_index: int
    content: str
    embedding: list[float] = Field(default_factory=list)
    created_at: str | None = None


class QueryResponse(BaseModel):
    answer: str
    relevant_chunks: list[ChunkPayload] = Field(default_factory=list)
    confidence_score: float
    processing_time_ms: int


def create_app(container: LucidContainer | None = None) -> FastAPI:
    """Create the HTTP application.

    When ``container`` is omitted, it is built on startup from the YAML file
    named by ``LUCID_RAG_CONFIG``.
    """
    app = FastAPI(title="Lucid RAG API", version="0.1.0")
    app.state.container = container

    @app.on_event("startup")
    def startup():
        if app.state.container is not None:
            return
        # Use env var so Docker can pass config location
        cfg_path = os.environ.get("LUCID_RAG_CONFIG", "/app/config/config.yaml")
        app.state.container = build_container(GlobalConfig.load(cfg_path))

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/v1/rag/query", response_model=QueryResponse)
    def query(req: QueryRequest):
        try:
            response = app.state.container.pipeline.query(
                Query(text=req.query, top_k=req.top_k or 0, threshold=req.threshold or 0.0)
            )
        except InvalidQueryError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception:
            # Full traceback goes to the logs, never to the client
            logger.exception("Error while handling /v1/rag/query")
            raise HTTPException(status_code=500, detail="Failed to answer the query.")

        return QueryResponse(**response.to_dict())

    return app


app = create_app()
