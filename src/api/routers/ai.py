import logging
import time

from fastapi import APIRouter, Depends, HTTPException

from api import state
from api.dependencies import get_current_user, get_event_collection, get_task_generator
from api.metrics import (
    ACTIVE_SESSIONS,
    FALLBACK_ACTIVATIONS_TOTAL,
    GENERATION_FAILURES_TOTAL,
    RECONCILIATION_TOTAL,
    REQUEST_LATENCY_SECONDS,
    REQUESTS_TOTAL,
    TASKS_GENERATED_TOTAL,
)
from auth.auth_service import AuthenticatedUser
from generation.task_generator import MissingCredentialError, TaskGenerator, is_fallback_batch
from llm.providers.base import (
    InvalidCredentialError,
    ProviderError,
    QuotaExceededError,
)
from planner_smart.models import CamelModel
from reconciliation.engine import ReconciliationEngine
from reconciliation.events import EventCollection
from reconciliation.session import GenerationSession

router = APIRouter(prefix="/ai")
logger = logging.getLogger(__name__)


class GenerateIn(CamelModel):
    user_prompt: str = ""


def _fail(reason: str, status_code: int, detail: str) -> HTTPException:
    try:
        GENERATION_FAILURES_TOTAL.labels(reason=reason).inc()
        REQUESTS_TOTAL.labels(endpoint="/ai/generate-tasks", status="failed").inc()
    except Exception:
        pass
    return HTTPException(status_code=status_code, detail=detail)


def _get_session(session_id: str, user: AuthenticatedUser) -> GenerationSession:
    session = state.sessions.get(session_id)
    if session is None or session.user_id != user.user_id:
        raise HTTPException(status_code=404, detail="Generation session not found.")
    return session


@router.post("/generate-tasks")
async def generate_tasks(
    payload: GenerateIn,
    user: AuthenticatedUser = Depends(get_current_user),
    collection: EventCollection = Depends(get_event_collection),
    generator: TaskGenerator = Depends(get_task_generator),
) -> dict:
    if not payload.user_prompt.strip():
        raise HTTPException(status_code=400, detail="User prompt is required.")

    start = time.time()
    try:
        tasks = await generator.generate(user.user_id, payload.user_prompt)
    except MissingCredentialError:
        raise _fail("missing_credential", 404, "API Key not found for this user.")
    except InvalidCredentialError:
        raise _fail("invalid_credential", 401, "Your stored API Key is invalid. Please update it.")
    except QuotaExceededError:
        raise _fail("quota", 429, "AI provider quota exceeded. Please try again later.")
    except ProviderError as e:
        logger.error(f"Error generating tasks via AI for user {user.user_id}: {e}")
        raise _fail("provider", 502, "Server error generating AI tasks.")

    # a new batch replaces the user's previous one
    for sid in [sid for sid, s in state.sessions.items() if s.user_id == user.user_id]:
        del state.sessions[sid]
    session = GenerationSession(
        user_id=user.user_id,
        goal=payload.user_prompt,
        tasks=tasks,
        engine=ReconciliationEngine(collection),
    )
    state.sessions[session.id] = session

    try:
        REQUESTS_TOTAL.labels(endpoint="/ai/generate-tasks", status="processed").inc()
        REQUEST_LATENCY_SECONDS.labels(endpoint="/ai/generate-tasks").observe(time.time() - start)
        TASKS_GENERATED_TOTAL.inc(len(tasks))
        if is_fallback_batch(tasks):
            FALLBACK_ACTIVATIONS_TOTAL.inc()
        ACTIVE_SESSIONS.set(len(state.sessions))
    except Exception:
        pass

    return session.to_dict()


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    return _get_session(session_id, user).to_dict()


@router.post("/sessions/{session_id}/tasks/{index}")
async def add_task(
    session_id: str,
    index: int,
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    session = _get_session(session_id, user)
    if not 0 <= index < len(session.tasks):
        raise HTTPException(status_code=404, detail="Task index out of range.")

    outcome = await session.engine.add_one(session.tasks[index], index)
    if outcome.already_added:
        return {"status": "already_added", "index": index}
    if not outcome.success:
        RECONCILIATION_TOTAL.labels(outcome="failed").inc()
        raise HTTPException(status_code=422, detail=f"Failed to add task: {outcome.error}")

    RECONCILIATION_TOTAL.labels(outcome="added").inc()
    return {
        "status": "added",
        "index": index,
        "event": outcome.event.model_dump(by_alias=True),
    }


@router.post("/sessions/{session_id}/add-all")
async def add_all_tasks(
    session_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    session = _get_session(session_id, user)
    result = await session.engine.add_all(session.tasks)

    RECONCILIATION_TOTAL.labels(outcome="added").inc(result.added)
    RECONCILIATION_TOTAL.labels(outcome="failed").inc(result.failed)

    return {
        "added": result.added,
        "failed": result.failed,
        "nothingToDo": result.nothing_to_do,
        "failedIndices": [o.index for o in result.outcomes if not o.success],
        "addedIndices": session.added_indices(),
    }
