from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .routers import games as games_router
from .routers import websockets as ws_router

logging.basicConfig(level=settings.log_level)

# -----------------------------
# FastAPI app instance
# -----------------------------

app = FastAPI(title=settings.app_title)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


# Register routers
app.include_router(games_router.router)
app.include_router(ws_router.router)

__all__ = ["app"]
