"""
api/app.py — FastAPI app for the browser UI

create_app() wires one credential store, one backend client and the
per-browser session registry into app.state. On startup it reports whether
the remote quiz backend answers; the app still starts when it does not.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from api.routes import router
from api.session import SessionRegistry
from config import BACKEND_URL, CLEANUP_INTERVAL, SESSION_COOKIE, SESSION_TTL, STATIC_DIR
from quiz_client.services.backend_client import QuizBackendClient
from quiz_client.services.credential_store import CredentialStore, credentials
from quiz_client.services.session_machine import QuizSessionMachine

logger = logging.getLogger(__name__)


async def _cleanup_loop(sessions: SessionRegistry) -> None:
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL)
        removed = sessions.cleanup_expired()
        if removed:
            logger.info(f"Removed {removed} expired sessions")


@asynccontextmanager
async def lifespan(app: FastAPI):
    backend = app.state.backend
    if await backend.is_reachable():
        logger.info(f"Quiz backend reachable at {backend.base_url}")
    else:
        logger.warning(
            f"Quiz backend not reachable at {backend.base_url}; "
            "login and generation will fail until it is up"
        )

    cleanup = asyncio.create_task(_cleanup_loop(app.state.sessions))
    try:
        yield
    finally:
        cleanup.cancel()


def create_app(
    backend_url: str = BACKEND_URL,
    store: Optional[CredentialStore] = None,
    backend: Optional[QuizBackendClient] = None,
) -> FastAPI:
    """
    Args:
        backend_url: remote quiz backend; ignored when `backend` is given.
        store:       credential store; defaults to the process-wide one.
        backend:     prebuilt backend client (tests inject fakes here).
    """
    store = store if store is not None else credentials
    backend = backend if backend is not None else QuizBackendClient(store, base_url=backend_url)

    app = FastAPI(title="AI Quiz", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.credentials = store
    app.state.backend = backend
    app.state.sessions = SessionRegistry(lambda: QuizSessionMachine(backend), ttl=SESSION_TTL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One quiz session per browser, keyed by cookie
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = app.state.sessions.open(request.cookies.get(SESSION_COOKIE))
        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=SESSION_TTL,
        )
        return response

    app.include_router(router)

    if os.path.isdir(STATIC_DIR):
        app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/")
    async def serve_index():
        index_path = os.path.join(STATIC_DIR, "index.html")
        if os.path.exists(index_path):
            return FileResponse(index_path)
        return {"error": "index.html not found"}

    return app
