"""
Core API backend for Modo.

This module exposes the coach through a RESTful API used by frontends:
- **GET /health**  - liveness probe for health checks.
- **POST /sessions** - create a new session, returns a session ID.
- **GET /sessions** - list all active sessions.
- **POST /chat**   - multi-turn interaction: {"message": "...", "session_id": "..."}
"""

import asyncio
import logging
import uuid
from datetime import date
from typing import (
    Dict,
    List,
    Optional,
)

from fastapi import (
    Depends,
    FastAPI,
    HTTPException,
)
from fastapi.middleware.cors import CORSMiddleware

from modo.agent.services import (
    Services,
    build_services,
)
from modo.api.models import (
    ChatRequest,
    ChatResponse,
    SessionResponse,
)
from modo.common import (
    AnsiColors,
    colored_print,
)
from modo.config import settings
from modo.core.context import current_user_id
from modo.core.errors import ModoError
from modo.core.schema import (
    ExchangeResult,
    Turn,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "local-user"

SYSTEM_PROMPT = """\
You are Modo Coach, a creative AI fitness assistant inside the Modo Fitness App.

Your role:
- Generate personalized, diverse workout and nutrition plans
- Manage the user's schedule with the task tools (query, create, update, delete)
- Analyze training progress and suggest improvements

Rules:
- Look tasks up with query_tasks before updating or deleting them
- Use generate_workout_plan / generate_nutrition_plan for a single day and
  generate_multi_day_plan for 2-7 days
- You ONLY handle fitness, nutrition and training questions; politely redirect anything else
- Keep responses concise and friendly, in plain text without markdown

Today is {today}."""

# Session storage (in-memory for now, could be moved to a database)
sessions: Dict[str, List[Turn]] = {}

app = FastAPI(title="Modo API", version="0.1.0", description="Modo coach orchestrator API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[f"http://localhost:{settings.API_PORT}"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------
def get_services() -> Services:
    """Shared services, built on first use."""
    if getattr(app.state, "services", None) is None:
        app.state.services = build_services()
    return app.state.services


def get_or_create_session(session_id: Optional[str] = None) -> str:
    """Get existing session or create a new one."""
    if session_id and session_id in sessions:
        return session_id

    new_session_id = str(uuid.uuid4())
    sessions[new_session_id] = []
    return new_session_id


def build_turns(history: List[Turn], message: str) -> List[Turn]:
    """System prompt, the most recent history and the new user message."""
    recent = history[-settings.MAX_HISTORY_MESSAGES :] if settings.MAX_HISTORY_MESSAGES else []
    return [
        Turn.system(SYSTEM_PROMPT.format(today=date.today().isoformat())),
        *recent,
        Turn.user(message),
    ]


def to_response(result: ExchangeResult, session_id: str) -> ChatResponse:
    if result.kind == "plan":
        return ChatResponse(
            reply=result.text,
            message_type=result.plan.message_type.value,
            plan=result.plan.plan.model_dump(mode="json"),
            session_id=session_id,
        )
    return ChatResponse(reply=result.text, session_id=session_id)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health", summary="Health check")
async def health() -> dict[str, str]:
    """Return a simple liveness payload."""
    return {"status": "ok"}


@app.post("/sessions", response_model=SessionResponse, summary="Create a new session")
async def create_session() -> SessionResponse:
    """Create a new conversation session."""
    session_id = get_or_create_session()
    return SessionResponse(session_id=session_id)


@app.get("/sessions", response_model=List[str], summary="List active sessions")
async def list_sessions() -> List[str]:
    """List all active session IDs."""
    return list(sessions.keys())


@app.post("/chat", response_model=ChatResponse, summary="Talk to the coach")
async def chat_endpoint(
    req: ChatRequest, services: Services = Depends(get_services)
) -> ChatResponse:
    """Run one exchange with the coach in the context of *req.session_id*."""
    session_id = get_or_create_session(req.session_id)
    turns = build_turns(sessions[session_id], req.message)
    logger.debug("Chat request with %d turns for session %s", len(turns), session_id)

    coordinator = services.coordinator()
    token = current_user_id.set(req.user_id or DEFAULT_USER_ID)
    try:
        result = await asyncio.wait_for(
            coordinator.ask(turns, context=session_id), timeout=settings.EXCHANGE_TIMEOUT
        )
    except asyncio.TimeoutError as exc:
        logger.warning("Exchange timed out after %.1fs", settings.EXCHANGE_TIMEOUT)
        raise HTTPException(status_code=504, detail="Request timeout, please try again.") from exc
    except ModoError as exc:
        logger.warning("Exchange failed (%s): %s", type(exc).__name__, exc)
        return ChatResponse(
            reply=exc.user_message,
            message_type="error",
            session_id=session_id,
            error=exc.recovery_hint,
            recoverable=exc.recoverable,
        )
    finally:
        coordinator.close()
        current_user_id.reset(token)

    history = sessions[session_id]
    history.extend([Turn.user(req.message), Turn.assistant(result.text)])
    sessions[session_id] = history[-settings.MAX_HISTORY_MESSAGES :] if settings.MAX_HISTORY_MESSAGES else []

    return to_response(result, session_id)


@app.get("/", summary="API root")
async def root() -> dict[str, str]:
    """Return a simple welcome message."""
    return {"message": "Welcome to the Modo API! Use /docs for API documentation."}


# ---------------------------------------------------------------------------
# Public helper to launch the API (imported by main.py)
# ---------------------------------------------------------------------------
def run_api(
    host: str = "0.0.0.0", port: int = 8000, reload: bool = False, log_level: str | None = None
) -> None:
    """Start a uvicorn server hosting *app*.

    Parameters
    ----------
    host, port:
        Bind address for the HTTP server.
    reload:
        If *True*, enable auto-reload (useful in development).
    log_level:
        Logging level to use (default from settings if not provided).
    """

    # Lazy import - keeps uvicorn out of the import path of the library modules
    import uvicorn  # pylint: disable=import-outside-toplevel

    if log_level is None:
        log_level = settings.LOG_LEVEL

    logger.info(
        "Starting Modo API at %s:%d (reload=%s, log_level=%s)", host, port, reload, log_level
    )
    logger.debug("API settings: %s", settings.model_dump(exclude={"OPENAI_API_KEY", "ANTHROPIC_API_KEY"}))

    colored_print(f"🏋️ Modo API is running at http://localhost:{port}.", AnsiColors.GREEN)
    colored_print(f"Visit http://localhost:{port}/docs for API documentation.", AnsiColors.BLUE)
    uvicorn.run(
        "modo.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


# ---------------------------------------------------------------------------
# `python -m modo.api.app` helper
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    run_api(reload=True)
