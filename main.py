"""
Entry point for the Spanlink relation engine API server.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from api.routes import router
from config import settings
from engine.relations import builtin_relation_views, builtin_relations

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
log = logging.getLogger(__name__)

_catalog_ready = False


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    global _catalog_ready

    relations = builtin_relations()
    views = builtin_relation_views()
    log.info("Loaded %d built-in relations and %d views", len(relations), len(views))
    _catalog_ready = True
    try:
        yield
    finally:
        _catalog_ready = False


app = FastAPI(
    title="Spanlink Relation Engine",
    description="Relation matching, dependency analysis, and fixpoint scheduling over timed hierarchical spans.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


@app.get("/api/v1/ready", tags=["health"], summary="Engine readiness check")
async def ready() -> JSONResponse:
    code = 200 if _catalog_ready else 503
    return JSONResponse(status_code=code, content={"ready": _catalog_ready})


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
