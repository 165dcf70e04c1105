from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from app.web import router as web_router
from logging_config import configure_logging
from services.poller import build_default_poller


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    poller = build_default_poller()
    poller.start()
    try:
        yield
    finally:
        await poller.stop()
        build_default_poller.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Trash Rake Monitor",
        description="Live dashboard over the trash-rake sensor sheet with flood and trash alerts.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
