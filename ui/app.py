from __future__ import annotations

import logging
import os
import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from pile import (
    ChangeSignal,
    NotFoundError,
    PileError,
    Repository,
    ValidationError,
    __version__,
    attach_hooks,
    build_tree,
    export_day,
    load_settings,
    open_store,
    task_item,
    workspace_root,
)
from pile.logging_setup import setup_logging
from pile.workspace import log_dir

logger = logging.getLogger(__name__)


# ── Repository wiring ─────────────────────────────────────────


def build_repository() -> Repository:
    """Open the workspace store and wire hooks onto its change signal."""
    root = workspace_root()
    settings = load_settings(root)
    signal = ChangeSignal()
    repo = Repository(open_store(settings, root), signal, settings)
    attach_hooks(signal, repo, root)
    logger.info("Serving %s store from %s", settings.storage_scope, repo.store.path)
    return repo


def get_repository(request: Request) -> Repository:
    return request.app.state.repository


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging(log_dir=log_dir(workspace_root()))
    app.state.repository = build_repository()
    yield


app = FastAPI(title="Pile", version=__version__, lifespan=lifespan)


# ── Auth ──────────────────────────────────────────────────────

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("PILE_USERNAME", "")
    expected_password = os.environ.get("PILE_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


def _http_error(e: PileError) -> HTTPException:
    """Translate a core error into an HTTP error."""
    logger.warning("Request failed: %s: %s", type(e).__name__, e)
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=409, detail=str(e))


def _label(payload: dict[str, Any]) -> str:
    label = payload.get("label")
    if not isinstance(label, str):
        raise HTTPException(status_code=400, detail="Missing label")
    return label


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/days")
def api_list_days(
    repo: Repository = Depends(get_repository),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """The whole tree: days in date order, each with its task subtree."""
    try:
        return {"days": build_tree(repo)}
    except PileError as e:
        raise _http_error(e)


@app.get("/api/days/{date}")
def api_get_day(
    date: str,
    repo: Repository = Depends(get_repository),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    day = repo.day(date)
    if day is None:
        raise HTTPException(status_code=404, detail=f"Day not found: {date}")
    tasks = [task_item(t, repo.settings.enable_completions).to_dict() for t in repo.children(day)]
    return {"day": day.to_dict(), "tasks": tasks}


@app.post("/api/days/{date}/tasks")
def api_add_task(
    date: str,
    payload: dict[str, Any] = Body(...),
    repo: Repository = Depends(get_repository),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Add a top-level task to a day, creating the day if needed."""
    try:
        task = repo.add_task(date, _label(payload))
    except PileError as e:
        raise _http_error(e)
    return {"ok": True, "task": task.to_dict()}


@app.get("/api/days/{date}/export")
def api_export_day(
    date: str,
    fmt: str | None = Query(None, alias="format"),
    repo: Repository = Depends(get_repository),
    username: str = Depends(get_current_user),
):
    try:
        text = export_day(repo, date, fmt=fmt)
    except PileError as e:
        raise _http_error(e)
    if (fmt or repo.settings.export_format) == "richtext":
        return HTMLResponse(text)
    return PlainTextResponse(text)


@app.get("/api/tasks/{task_id}")
def api_get_task(
    task_id: str,
    repo: Repository = Depends(get_repository),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    task = repo.task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    subtasks = [task_item(t, repo.settings.enable_completions).to_dict() for t in repo.children(task)]
    return {"task": task.to_dict(), "subtasks": subtasks}


@app.post("/api/tasks/{task_id}/subtasks")
def api_add_subtask(
    task_id: str,
    payload: dict[str, Any] = Body(...),
    repo: Repository = Depends(get_repository),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        task = repo.add_task(task_id, _label(payload))
    except PileError as e:
        raise _http_error(e)
    return {"ok": True, "task": task.to_dict()}


@app.put("/api/tasks/{task_id}")
def api_edit_task(
    task_id: str,
    payload: dict[str, Any] = Body(...),
    repo: Repository = Depends(get_repository),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Rename a task."""
    try:
        task = repo.edit_task(task_id, _label(payload))
    except PileError as e:
        raise _http_error(e)
    return {"ok": True, "task": task.to_dict()}


@app.post("/api/tasks/{task_id}/toggle")
def api_toggle_task(
    task_id: str,
    repo: Repository = Depends(get_repository),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        task = repo.toggle_task(task_id)
    except PileError as e:
        raise _http_error(e)
    return {"ok": True, "task": task.to_dict()}


@app.post("/api/reset")
def api_reset(
    repo: Repository = Depends(get_repository),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Wipe the store. Irreversible; clients confirm before calling."""
    repo.reset()
    return {"ok": True}
