# src/supertask/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import date

from ..core.ports import NotificationPermission
from ..core.state import AppState
from ..tasks import task_api
from ..tasks.task_models import Priority, SortMode, StatusFilter, Task, TaskStatus, parse_due_date
from ..tasks.task_scheduler import is_due

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str | Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be plain functions or coroutines.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        result = handler(state, args, emit)
        if inspect.isawaitable(result):
            result = await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _say(emit: CommandEmitter | None, text: str) -> None:
    if emit:
        with contextlib.suppress(Exception):
            emit(text)


def resolve_task(state: AppState, ref: str) -> Task | None:
    """
    Find a task by its position in the current view (1-based)
    or by a unique id prefix.

    Numbers past the end of the view are tried as id prefixes,
    since an id prefix can be all digits.
    """
    ref = ref.strip()
    if not ref:
        return None

    if ref.isdigit():
        view = task_api.current_view(state)
        idx = int(ref) - 1
        if 0 <= idx < len(view):
            return view[idx]

    matches = [t for t in state.task_store.snapshot() if t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def format_task(task: Task, position: int | None = None, *, today: date | None = None) -> str:
    check = "x" if task.status == TaskStatus.DONE else ("~" if task.status == TaskStatus.IN_PROGRESS else " ")
    head = f"{position}. " if position is not None else ""
    parts = [f"{head}[{check}] ({task.priority.value}) {task.title}"]
    if task.due_date:
        due = f"due {task.due_date.isoformat()}"
        if today is not None and not task.is_done and is_due(task, today):
            due += " (overdue)"
        parts.append(due)
    parts.append(f"[{task.category}]")
    if task.tags:
        parts.append(" ".join(f"#{t}" for t in task.tags))
    done, total, _ = task_api.subtask_progress(task)
    if total:
        parts.append(f"subtasks {done}/{total}")
    parts.append(f"id={task.id[:8]}")
    return "  ".join(parts)


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


async def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    text = " ".join(args)
    if not text.strip():
        return "Usage: /add <what needs doing, e.g. 'call the dentist friday, urgent'>"
    _say(emit, "[ASSISTANT] Reading your task...")
    task = await task_api.add_task_from_text(state, text)
    if task is None:
        return "Nothing to add."
    return "Added: " + format_task(task)


def cmd_new(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    title = " ".join(args).strip()
    if not title:
        return "Usage: /new <title>"
    task = task_api.add_task(state, title=title)
    return "Added: " + format_task(task)


def cmd_list(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    view = task_api.current_view(state)
    v = state.view
    header = f"Tasks (filter={v.status_filter.value}, sort={v.sort_mode.value}"
    header += f", search={v.search!r})" if v.search else ")"
    if not view:
        return header + "\n  No tasks found. Use /add to create one."
    lines = [header]
    today = state.reminders.today()
    for i, task in enumerate(view, start=1):
        lines.append("  " + format_task(task, i, today=today))
        if args and args[0].lower() in ("-v", "full"):
            for j, st in enumerate(task.subtasks, start=1):
                lines.append(f"       {j}) [{'x' if st.completed else ' '}] {st.title}")
    return "\n".join(lines)


def cmd_done(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /done <n|id>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    updated = task_api.toggle_status(state, task.id)
    if updated is None:
        return "Task no longer exists."
    return ("Completed: " if updated.status == TaskStatus.DONE else "Reopened: ") + updated.title


def cmd_delete(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /del <n|id>"
    task = resolve_task(state, args[0])
    if task is None or not task_api.delete_task(state, task.id):
        return f"No task matches {args[0]!r}."
    return f"Deleted: {task.title}"


def _parse_edit(field_name: str, value: str) -> tuple[str, object]:
    name = field_name.lower()
    if name in ("title", "description", "category"):
        return name, value
    if name == "priority":
        return name, Priority.from_raw(value)
    if name == "status":
        return name, TaskStatus.from_raw(value)
    if name == "tags":
        return name, [t.strip() for t in value.split(",") if t.strip()]
    if name in ("due", "due_date"):
        if value.lower() in ("", "none", "-"):
            return "due_date", None
        due = parse_due_date(value)
        if due is None:
            raise ValueError("due date must be YYYY-MM-DD or 'none'")
        return "due_date", due
    raise ValueError(f"unknown field {field_name!r}")


def cmd_edit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /edit <n|id> <field> <value...>
    fields: title, description, priority, category, tags (comma separated), due, status
    """
    if len(args) < 2:
        return "Usage: /edit <n|id> <title|description|priority|category|tags|due|status> <value>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    try:
        name, value = _parse_edit(args[1], " ".join(args[2:]).strip())
    except ValueError as e:
        return f"Cannot edit: {e}."
    updated = task_api.edit_task(state, task.id, **{name: value})
    if updated is None:
        return "Task no longer exists."
    return "Updated: " + format_task(updated)


def cmd_filter(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return f"Filter is {state.view.status_filter.value}. Use /filter all|active|completed."
    try:
        status_filter = StatusFilter(args[0].lower())
    except ValueError:
        return "Usage: /filter all|active|completed"
    task_api.set_filter(state, status_filter)
    return cmd_list(state, [])


def cmd_search(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    state.view.search = " ".join(args)
    return cmd_list(state, [])


def cmd_sort(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return f"Sort mode is {state.view.sort_mode.value}. Use /sort default|smart."
    try:
        state.view.sort_mode = SortMode(args[0].lower())
    except ValueError:
        return "Usage: /sort default|smart"
    return cmd_list(state, [])


async def cmd_smart(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    _say(emit, "[ASSISTANT] Optimizing your day...")
    if not await task_api.smart_prioritize(state):
        return "Need at least two open tasks to prioritize."
    return cmd_list(state, [])


async def cmd_split(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /split <n|id>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    if not task.subtasks:
        _say(emit, "[ASSISTANT] Breaking the task down...")
    subtasks = await task_api.decompose_task(state, task.id)
    if not subtasks:
        return "No subtasks suggested."
    lines = [f"Subtasks of {task.title}:"]
    for j, st in enumerate(subtasks, start=1):
        lines.append(f"  {j}) [{'x' if st.completed else ' '}] {st.title}")
    return "\n".join(lines)


def cmd_subtask(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) < 2 or not args[1].isdigit():
        return "Usage: /sub <n|id> <subtask number>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    idx = int(args[1]) - 1
    if not 0 <= idx < len(task.subtasks):
        return f"Task has {len(task.subtasks)} subtasks."
    updated = task_api.toggle_subtask(state, task.id, task.subtasks[idx].id)
    if updated is None:
        return "Task no longer exists."
    done, total, percent = task_api.subtask_progress(updated)
    return f"{updated.title}: subtasks {done}/{total} ({percent}%)"


async def cmd_advice(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    _say(emit, "[ASSISTANT] Looking at your open tasks...")
    return "[ASSISTANT] " + await task_api.get_advice(state, refresh=True)


def cmd_stats(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    s = task_api.compute_stats(state.task_store.snapshot())
    line = f"Total: {s.total}  Completed: {s.completed}  Progress: {s.progress}%"
    if state.advice:
        line += f"\n[ASSISTANT] {state.advice}"
    return line


async def cmd_remind(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /remind     -> show reminder status
    /remind on  -> ask for notification permission and start reminders
    """
    if args and args[0].lower() in ("on", "1", "true", "yes"):
        permission = state.notifier.request_permission()
        if permission != NotificationPermission.GRANTED:
            return f"Reminders unavailable (permission {permission.value})."
        await state.reminders.on_permission_changed()
        return "Reminders are on."

    status = "running" if state.reminders.running else "stopped"
    return f"Reminders: permission={state.notifier.permission.value}, scheduler={status}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Add a task from free text (assistant parses it).")
registry.register("new", cmd_new, help_text="Add a task with just a title.")
registry.register("list", cmd_list, help_text="Show the task list (/list -v shows subtasks).", aliases=["ls"])
registry.register("done", cmd_done, help_text="Toggle a task done/open: /done <n|id>.")
registry.register("del", cmd_delete, help_text="Delete a task: /del <n|id>.", aliases=["rm"])
registry.register("edit", cmd_edit, help_text="Edit a field: /edit <n|id> <field> <value>.")
registry.register("filter", cmd_filter, help_text="Filter: /filter all | active | completed.")
registry.register("search", cmd_search, help_text="Search title/category/tags: /search [term].")
registry.register("sort", cmd_sort, help_text="Sort mode: /sort default | smart.")
registry.register("smart", cmd_smart, help_text="Let the assistant order open tasks.")
registry.register("split", cmd_split, help_text="Break a task into subtasks: /split <n|id>.")
registry.register("sub", cmd_subtask, help_text="Toggle a subtask: /sub <n|id> <k>.")
registry.register("advice", cmd_advice, help_text="Ask the assistant again where to start.")
registry.register("stats", cmd_stats, help_text="Show totals and progress.")
registry.register("remind", cmd_remind, help_text="Due-date reminders: /remind | /remind on.")
