"""Pile core library: day/task data model and key-value persistence.

Public API re-exports for convenient imports:
    from pile import Store, Repository, today, export_day, ...
"""

__version__ = "0.4.0"

# Errors
from pile.errors import (
    PileError,
    ValidationError,
    NotFoundError,
    UserCancelled,
    ParseError,
)

# Identifiers & keys
from pile.ids import generate_task_id, validate_task_id
from pile.keys import DateKey, TaskId, parse_key, validate_date_key

# Dates
from pile.dates import (
    today,
    day_ago,
    day_ahead,
    days_ago,
    days_ahead,
    format_key,
    to_key,
)

# Models
from pile.models import Task, Day, Settings, sort_days

# Storage
from pile.store import Store

# Workspace & settings
from pile.workspace import (
    workspace_root,
    global_home,
    state_path,
    settings_path,
    hooks_config_path,
    load_settings,
    save_settings,
    get_user_timezone,
    open_store,
)

# Orchestration
from pile.events import Change, ChangeSignal
from pile.repository import Repository
from pile.prompts import (
    Prompter,
    prompt_new_task,
    prompt_update_task,
    prompt_date_selection,
)

# Views
from pile.projection import DayItem, TaskItem, day_item, task_item, build_tree
from pile.export import export_day, export_picked_day

# Hooks
from pile.hooks import run_hooks, attach_hooks
