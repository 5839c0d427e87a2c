#!/usr/bin/env python3
"""
websession - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Builds the session store
3. Gives every request its own session scope
4. Runs the API server

All session logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
import secrets
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import redis.asyncio as redis
import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from websession import __version__
from websession.config.provider import ConfigProvider, EnvConfigProvider, SessionConfig
from websession.logging_config import get_logging_config
from websession.modules.api import (
    DestroyResponse,
    GarbageCollectionResponse,
    RestoreResponse,
    RestoreSessionRequest,
    SessionResponse,
    SetValueRequest,
    StoreResponse,
    ValueResponse,
)
from websession.modules.config import get_config
from websession.modules.session import (
    SessionInitError,
    SessionManager,
    SessionScope,
    SessionSerializationError,
)
from websession.modules.storage import SessionStore, SessionStoreError, StorageModule, build_store

# Get configuration
config = get_config()

log_config.dictConfig(get_logging_config(config.get("log_level")))
logger = logging.getLogger(__name__)

# Configuration provider (centralized config access)
config_provider: ConfigProvider = EnvConfigProvider()

# Module instances (initialized at startup)
storage_module: Optional[StorageModule] = None
session_store: Optional[SessionStore] = None
session_config: Optional[SessionConfig] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - initialize and cleanup resources.
    """
    global storage_module, session_store, session_config

    logger.info("Starting websession API...")

    store_config = config_provider.get_store_config()
    session_config = config_provider.get_session_config()

    redis_client = None
    if store_config.uses_redis:
        storage_module = StorageModule(store_config.redis_url)
        redis_client = await storage_module.connect()

    session_store = build_store(store_config, redis_client)
    logger.info(
        f"websession API started (backend={store_config.backend}, "
        f"ttl={session_config.ttl_minutes}min)"
    )

    yield

    logger.info("Shutting down websession API...")
    if storage_module:
        await storage_module.disconnect()
        storage_module = None
    session_store = None
    logger.info("websession API shutdown complete")


app = FastAPI(
    title="websession API",
    description="Fingerprint-keyed sessions for server-rendered web applications",
    version=__version__,
    lifespan=lifespan,
)


# Dependency injection helpers


async def get_session_scope(request: Request) -> AsyncGenerator[SessionScope, None]:
    """
    Build the session scope of the current request.

    The scope is closed after the handler returns, which flushes the session
    to the store.
    """
    if not session_store or not session_config:
        raise HTTPException(503, "Service not initialized")

    scope = SessionScope(
        session_store,
        client_ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        name_prefix=session_config.name_prefix,
        name_salt=session_config.name_salt,
        gc_probability=session_config.gc_probability,
    )
    try:
        yield scope
    finally:
        await scope.close()


async def get_session(
    request: Request, scope: SessionScope = Depends(get_session_scope)
) -> SessionManager:
    """Start the request's session, keyed by the optional session id header."""
    session_id = None
    if session_config.id_header:
        session_id = request.headers.get(session_config.id_header)

    return await scope.start(session_id, session_config.ttl_minutes)


async def verify_api_key(
    x_api_key: str = Header(..., description="API key for admin endpoints")
) -> str:
    """Verify an admin API key."""
    api_keys = config.get("api_keys") or []
    if not api_keys:
        raise HTTPException(503, "Admin API keys not configured")

    if not any(secrets.compare_digest(x_api_key, key) for key in api_keys):
        raise HTTPException(401, "Invalid API key")

    return x_api_key


# Session Endpoints


@app.get("/session", response_model=SessionResponse)
async def read_session(session: SessionManager = Depends(get_session)):
    """
    Get every value in the caller's session.

    Returns:
        200: Session name, id and data
        422: A stored value could not be decoded
    """
    return SessionResponse(name=session.get_name(), id=session.get_id(), data=session.get_all())


@app.get("/session/{key}", response_model=ValueResponse)
async def read_value(key: str, session: SessionManager = Depends(get_session)):
    """
    Get one value from the caller's session.

    Returns:
        200: Key and value
        404: Key not set
    """
    if not session.exists(key):
        raise HTTPException(404, f"Key '{key}' not found")

    return ValueResponse(key=key, value=session.get(key))


@app.put("/session/{key}", response_model=StoreResponse)
async def store_value(
    key: str, payload: SetValueRequest, session: SessionManager = Depends(get_session)
):
    """
    Store a value in the caller's session.

    Returns:
        200: Value stored
        422: Value is not JSON serializable
    """
    return StoreResponse(key=key, stored=session.set(key, payload.value))


@app.delete("/session/{key}", status_code=204)
async def delete_value(key: str, session: SessionManager = Depends(get_session)):
    """
    Delete one key from the caller's session. Deleting a missing key succeeds.

    Returns:
        204: Key deleted
    """
    session.delete(key)
    return Response(status_code=204)


@app.delete("/session", status_code=204)
async def clear_session(session: SessionManager = Depends(get_session)):
    """
    Delete every key from the caller's session, keeping the session itself.

    Returns:
        204: Session cleared
    """
    session.delete_all()
    return Response(status_code=204)


@app.post("/session/destroy", response_model=DestroyResponse)
async def destroy_session(session: SessionManager = Depends(get_session)):
    """
    Destroy the caller's session.

    Returns:
        200: Snapshot of the destroyed session, usable with /session/restore
    """
    snapshot = await session.destroy()
    if snapshot is False:
        raise HTTPException(409, "Session is not started")

    return DestroyResponse(snapshot=snapshot)


@app.post("/session/restore", response_model=RestoreResponse)
async def restore_session(
    payload: RestoreSessionRequest, session: SessionManager = Depends(get_session)
):
    """
    Replace the caller's session with the contents of a snapshot.

    Returns:
        200: Whether the snapshot could be decoded
    """
    return RestoreResponse(restored=session.restore(payload.snapshot))


# Admin Endpoints


@app.post("/admin/sessions/gc", response_model=GarbageCollectionResponse)
async def collect_sessions(api_key: str = Depends(verify_api_key)):
    """
    Remove expired sessions from the store.

    Returns:
        200: Number of records removed
        401: Unauthorized
    """
    if not session_store or not session_config:
        raise HTTPException(503, "Service not initialized")

    removed = await session_store.gc(session_config.ttl_seconds)
    logger.info(f"Admin gc removed {removed} expired sessions")

    return GarbageCollectionResponse(
        removed=removed, max_lifetime_seconds=session_config.ttl_seconds
    )


# Health/Monitoring Endpoints


@app.get("/healthz")
async def healthz():
    """
    Minimal health check endpoint for readiness/liveness probes.

    Returns:
        200: Service is running
    """
    return {"status": "ok"}


@app.get("/health")
async def health_check():
    """
    Health check including the session store.

    Returns:
        200: Service healthy
        503: Service unhealthy
    """
    if not session_store or not session_config:
        return JSONResponse(
            status_code=503, content={"status": "unhealthy", "store": "not initialized"}
        )

    try:
        await session_store.open(session_config.ttl_seconds)
    except SessionStoreError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "error": str(e)})

    return {
        "status": "healthy",
        "store": type(session_store).__name__,
        "environment": config.get("environment"),
        "version": __version__,
    }


# Error handlers


@app.exception_handler(SessionInitError)
async def session_init_error_handler(request, exc):
    """Handle sessions that could not be started."""
    logger.error(f"Session init error: {exc}")
    return JSONResponse(status_code=503, content={"error": "Session unavailable", "detail": str(exc)})


@app.exception_handler(SessionSerializationError)
async def serialization_error_handler(request, exc):
    """Handle values that cannot be encoded or decoded."""
    logger.warning(f"Serialization error: {exc}")
    return JSONResponse(status_code=422, content={"error": str(exc)})


@app.exception_handler(SessionStoreError)
async def store_error_handler(request, exc):
    """Handle session store failures outside session start."""
    logger.error(f"Session store error: {exc}")
    return JSONResponse(status_code=503, content={"error": "Session store failed"})


@app.exception_handler(redis.ConnectionError)
async def redis_error_handler(request, exc):
    """Handle Redis connection errors."""
    logger.error(f"Redis connection error: {exc}")
    return JSONResponse(status_code=503, content={"error": "Database connection failed"})


def run():
    """Run the API server with uvicorn."""
    uvicorn.run(
        "websession.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )


if __name__ == "__main__":
    run()
