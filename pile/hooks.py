"""Shell hooks for Pile.

Lifecycle hooks run shell commands when tasks change.
Configured via .pile/hooks.yaml.

Hook points:
- on_task_add, on_task_edit
- on_task_complete, on_task_reopen
- on_reset
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pile.events import Change, ChangeSignal
from pile.fileio import read_yaml
from pile.repository import Repository
from pile.workspace import hooks_config_path, workspace_root

logger = logging.getLogger(__name__)

VALID_HOOK_POINTS = {
    "on_task_add",
    "on_task_edit",
    "on_task_complete",
    "on_task_reopen",
    "on_reset",
}

DEFAULT_TIMEOUT = 30


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Load hooks configuration from .pile/hooks.yaml."""
    if root is None:
        root = workspace_root()
    return read_yaml(hooks_config_path(root))


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[dict[str, Any]]:
    """Run all hooks registered for a given hook point.

    Context is passed as JSON via stdin to each hook subprocess.
    Returns list of results with stdout/stderr and exit codes.
    """
    if hook_point not in VALID_HOOK_POINTS:
        return []

    if root is None:
        root = workspace_root()

    config = load_hooks_config(root)
    hooks = config.get(hook_point, [])

    if not hooks or not isinstance(hooks, list):
        return []

    results = []
    context_json = json.dumps(context, ensure_ascii=False)

    for hook in hooks:
        if isinstance(hook, str):
            command = hook
            timeout = DEFAULT_TIMEOUT
        elif isinstance(hook, dict):
            command = hook.get("command", "")
            timeout = hook.get("timeout", DEFAULT_TIMEOUT)
        else:
            continue

        if not command:
            continue

        result: dict[str, Any] = {"command": command, "hook_point": hook_point}
        try:
            proc = subprocess.run(
                command,
                shell=True,
                input=context_json,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=str(root),
            )
            result["exit_code"] = proc.returncode
            result["stdout"] = proc.stdout[:4096]  # Cap output
            result["stderr"] = proc.stderr[:4096]
        except subprocess.TimeoutExpired:
            result["exit_code"] = -1
            result["error"] = f"Hook timed out after {timeout}s"
        except OSError as e:
            result["exit_code"] = -1
            result["error"] = str(e)

        if result["exit_code"] != 0:
            logger.warning("Hook %s failed: %s", command, result.get("error") or result.get("stderr"))
        results.append(result)

    return results


def hook_point_for(change: Change, repo: Repository) -> tuple[str | None, dict[str, Any]]:
    """Map a change to its hook point and the JSON context for it."""
    if change.kind == "reset":
        return "on_reset", {}
    if change.kind not in {"task_added", "task_edited", "task_toggled"} or not change.key:
        return None, {}
    task = repo.task(change.key)
    if task is None:
        return None, {}
    context = {"task": task.to_dict()}
    if change.kind == "task_added":
        return "on_task_add", context
    if change.kind == "task_edited":
        return "on_task_edit", context
    return ("on_task_complete" if task.completed else "on_task_reopen"), context


def attach_hooks(
    signal: ChangeSignal,
    repo: Repository,
    root: Path | None = None,
) -> Callable[[], None]:
    """Run configured hooks after every change. Returns the unsubscribe callable."""

    def on_change(change: Change) -> None:
        hook_point, context = hook_point_for(change, repo)
        if hook_point is not None:
            run_hooks(hook_point, context, root)

    return signal.subscribe(on_change)
