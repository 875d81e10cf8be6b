# tests/test_commands.py

from __future__ import annotations

from datetime import date

import pytest

from supertask.cli.commands import CommandRegistry, registry, resolve_task
from supertask.core.ports import NotificationPermission
from supertask.tasks.task_models import Priority, TaskStatus

from .fakes import make_task


@pytest.mark.asyncio
async def test_command_registry_routes_sync_and_async_handlers(state) -> None:
    reg = CommandRegistry()
    called = {"sync": 0, "async": 0}

    def h_sync(state, args, emit):
        called["sync"] += 1
        return "sync " + " ".join(args)

    async def h_async(state, args, emit):
        called["async"] += 1
        if emit is not None:
            emit("note")
        return "async"

    reg.register("a", h_sync, "a")
    reg.register("b", h_async, "b", aliases=["bee"])

    notes: list[str] = []
    assert await reg.handle(state, "/a x y") == "sync x y"
    assert await reg.handle(state, "/BEE", emit=notes.append) == "async"
    assert called == {"sync": 1, "async": 1}
    assert notes == ["note"]


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert "Empty command" in (await reg.handle(state, "/") or "")


def test_resolve_task_by_position_and_id_prefix(state) -> None:
    state.task_store.add(make_task("abc-1", priority=Priority.LOW))
    state.task_store.add(make_task("abd-2", priority=Priority.CRITICAL))

    assert resolve_task(state, "1").id == "abd-2"
    assert resolve_task(state, "2").id == "abc-1"
    assert resolve_task(state, "abc").id == "abc-1"
    assert resolve_task(state, "ab") is None  # ambiguous
    assert resolve_task(state, "9") is None


@pytest.mark.asyncio
async def test_add_list_done_flow(state) -> None:
    reply = await registry.handle(state, "/add buy milk")
    assert reply is not None and "buy milk" in reply

    listing = await registry.handle(state, "/list")
    assert "1. [ ] (medium) buy milk" in listing

    assert (await registry.handle(state, "/done 1")).startswith("Completed")
    assert state.task_store.snapshot()[0].status == TaskStatus.DONE

    assert "Progress: 100%" in await registry.handle(state, "/stats")


@pytest.mark.asyncio
async def test_edit_command_parses_fields(state) -> None:
    state.task_store.add(make_task("abc"))

    await registry.handle(state, "/edit abc due 2024-02-03")
    await registry.handle(state, "/edit abc tags work, urgent")
    await registry.handle(state, "/edit abc priority critique")

    task = state.task_store.get("abc")
    assert task.due_date.isoformat() == "2024-02-03"
    assert task.tags == ["work", "urgent"]
    assert task.priority == Priority.CRITICAL

    assert "Cannot edit" in await registry.handle(state, "/edit abc due someday")


@pytest.mark.asyncio
async def test_remind_on_starts_scheduler(state) -> None:
    state.notifier.permission = NotificationPermission.UNDETERMINED

    assert "permission=undetermined" in await registry.handle(state, "/remind")
    assert await registry.handle(state, "/remind on") == "Reminders are on."
    assert state.reminders.running

    await state.reminders.stop()


@pytest.mark.asyncio
async def test_remind_on_respects_denial(state) -> None:
    state.notifier.permission = NotificationPermission.DENIED

    reply = await registry.handle(state, "/remind on")

    assert "denied" in reply
    assert not state.reminders.running


def test_resolve_task_falls_back_to_numeric_id_prefix(state) -> None:
    state.task_store.add(make_task("12345678-aaaa"))
    state.task_store.add(make_task("abc-2"))

    assert resolve_task(state, "2").id == "12345678-aaaa"
    assert resolve_task(state, "12345678").id == "12345678-aaaa"
    assert resolve_task(state, "99") is None


@pytest.mark.asyncio
async def test_list_marks_open_overdue_tasks(state) -> None:
    # conftest pins today to 2024-01-02
    state.task_store.add(make_task("late", title="late", due_date=date(2024, 1, 1)))
    state.task_store.add(make_task("today", title="today", due_date=date(2024, 1, 2)))
    state.task_store.add(make_task("later", title="later", due_date=date(2024, 1, 3)))
    state.task_store.add(make_task("closed", title="closed", due_date=date(2023, 12, 1), status=TaskStatus.DONE))

    listing = await registry.handle(state, "/list")
    lines = {line.split(") ", 1)[1].split("  ")[0]: line for line in listing.splitlines()[1:]}

    assert "due 2024-01-01 (overdue)" in lines["late"]
    assert "due 2024-01-02 (overdue)" in lines["today"]
    assert "overdue" not in lines["later"]
    assert "overdue" not in lines["closed"]


@pytest.mark.asyncio
async def test_advice_command_refreshes_and_stats_shows_cached(state, gateway) -> None:
    state.task_store.add(make_task("A"))

    assert "[ASSISTANT]" not in await registry.handle(state, "/stats")

    assert await registry.handle(state, "/advice") == "[ASSISTANT] " + gateway.advice
    gateway.advice = "Fresh take."
    assert await registry.handle(state, "/advice") == "[ASSISTANT] Fresh take."
    assert gateway.calls.count("advise") == 2

    assert "[ASSISTANT] Fresh take." in await registry.handle(state, "/stats")
    assert gateway.calls.count("advise") == 2
