"""
turing/main.py
FastAPI application: HTTP surface of the Turing response engine.
Endpoints: GET /health, GET /api/stats, GET /api/metrics, POST /api/check-text, POST /api/chat, POST /api/train
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any
import logging
import time

from fastapi import FastAPI, HTTPException, Request
from dotenv import load_dotenv

from turing.common.garbage import classify_garbage, contains_profanity
from turing.common.text_clean import InvalidMessageError
from turing.config import load_settings
from turing.engine import ResponseEngine

logger = logging.getLogger(__name__)
load_dotenv()

STARTED_AT = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load memory on startup, autosave while running, flush everything on shutdown."""
    settings = load_settings()
    engine = ResponseEngine.from_settings(settings)
    await engine.startup()
    engine.coordinator.start_autosave(settings.save_interval_ms)
    app.state.engine = engine
    stats = engine.get_stats()
    logger.info(
        "Turing engine started: %d messages seen, %d patterns learned.",
        stats.total_messages,
        stats.live_conversations_learned,
    )
    try:
        yield
    finally:
        logger.info("Shutdown requested; flushing memory.")
        await engine.shutdown()


app = FastAPI(title="Turing", lifespan=lifespan)


def _engine(request: Request) -> ResponseEngine:
    return request.app.state.engine


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Return service health status."""
    return {
        "status": "healthy",
        "uptime": round(time.time() - STARTED_AT, 3),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/api/stats")
async def stats(request: Request) -> dict[str, Any]:
    """Return persisted usage stats, active sessions and store size."""
    engine = _engine(request)
    engine.sessions.cleanup()
    return {
        "stats": engine.get_stats().to_dict(),
        "activeUsers": engine.sessions.active_count(),
        "memorySize": engine.store.memory_size(),
    }


@app.get("/api/metrics")
async def metrics(request: Request) -> dict[str, Any]:
    """Return in-process counters alongside store size."""
    engine = _engine(request)
    memory_size = engine.store.memory_size()
    return {
        "metrics": engine.metrics.snapshot(),
        "sessions": {
            "active": engine.sessions.active_count(),
            "max": engine.policy.max_sessions,
        },
        "memory": {
            "contextPairs": memory_size["contextPairs"],
            "semanticClusters": memory_size["semanticClusters"],
            "stats": engine.get_stats().to_dict(),
        },
    }


@app.post("/api/check-text")
async def check_text(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Classify text without learning from it.

    Args:
        payload: JSON body with a `text` string.
    Returns:
        Text, garbage flag, and matched profanity.
    Raises:
        HTTPException 400: Missing or non-string text.
    """
    text = payload.get("text")
    if not isinstance(text, str):
        raise HTTPException(status_code=400, detail="text is required")
    return {
        "text": text,
        "flagged": classify_garbage(text),
        "profanityMatches": contains_profanity(text).matches,
    }


@app.post("/api/chat")
async def chat(request: Request, payload: dict[str, Any]) -> dict[str, Any]:
    """
    Answer a chat message and learn from the conversation.

    Args:
        payload: JSON body with `message` and optional `sessionId`.
    Returns:
        Response text, whether it came from memory, and current stats.
    Raises:
        HTTPException 400: Invalid message or session id.
        HTTPException 500: Unexpected engine failure.
    """
    engine = _engine(request)
    started = time.perf_counter()
    try:
        turn = engine.chat(payload.get("message"), payload.get("sessionId", "default"))
    except InvalidMessageError as exc:
        engine.metrics.record_request((time.perf_counter() - started) * 1000, has_error=True)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        engine.metrics.record_request((time.perf_counter() - started) * 1000, has_error=True)
        logger.exception("Chat request failed.")
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    duration_ms = (time.perf_counter() - started) * 1000
    engine.metrics.record_request(duration_ms)
    logger.info("Chat completed in %.1fms (from memory: %s).", duration_ms, turn.from_memory)
    return {
        "response": turn.response,
        "learned": turn.from_memory,
        "stats": engine.get_stats().to_dict(),
        "activeUsers": engine.sessions.active_count(),
    }


@app.post("/api/train")
def train() -> None:
    """Removed bulk-training endpoint."""
    logger.warning("Deprecated /api/train endpoint called.")
    raise HTTPException(status_code=410, detail="Training endpoint has been removed")
