import asyncio

import pytest

from forwarding import Connected, EventBus, MessageEvent, MethodCall, method_event


async def _noop_respond(*args, **kwargs):
    return None


def make_call(method="m", params=None):
    return MethodCall(id="1", method=method, params=params, respond=_noop_respond)


def test_handlers_run_in_registration_order():
    bus = EventBus()
    order = []
    bus.on("connected", lambda e: order.append("a"))
    bus.on("connected", lambda e: order.append("b"))
    bus.emit(Connected("ws://x"))
    assert order == ["a", "b"]


def test_duplicate_registration_is_ignored():
    bus = EventBus()
    seen = []
    bus.on("message", seen.append)
    bus.on("message", seen.append)
    bus.emit(MessageEvent({"n": 1}))
    assert len(seen) == 1
    assert len(bus.listeners("message")) == 1


def test_off_removes_handler_and_unknown_off_is_harmless():
    bus = EventBus()
    seen = []
    bus.on("message", seen.append)
    bus.off("message", seen.append)
    bus.off("message", seen.append)
    bus.off("never-registered", seen.append)
    bus.emit(MessageEvent({}))
    assert seen == []


def test_method_call_fans_out_to_namespaced_subscribers():
    bus = EventBus()
    generic, specific, other = [], [], []
    bus.on("method", generic.append)
    bus.on(method_event("tree.get"), specific.append)
    bus.on(method_event("tree.set"), other.append)

    call = make_call("tree.get", {"depth": 1})
    bus.emit(call)
    assert generic == [call]
    assert specific == [call]
    assert other == []


def test_other_events_do_not_fan_out():
    bus = EventBus()
    seen = []
    bus.on("message:anything", seen.append)
    bus.emit(MessageEvent({"method": "anything"}))
    assert seen == []


def test_subscription_changes_during_emit_apply_next_time():
    bus = EventBus()
    calls = []

    def late(event):
        calls.append("late")

    def first(event):
        calls.append("first")
        bus.off("connected", first)
        bus.on("connected", late)

    bus.on("connected", first)
    bus.emit(Connected("ws://x"))
    assert calls == ["first"]
    bus.emit(Connected("ws://x"))
    assert calls == ["first", "late"]


def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    seen = []

    def broken(event):
        raise RuntimeError("observer bug")

    bus.on("message", broken)
    bus.on("message", seen.append)
    bus.emit(MessageEvent({"ok": True}))
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_async_handlers_are_scheduled_and_drained():
    bus = EventBus()
    seen = []

    async def handler(event):
        await asyncio.sleep(0)
        seen.append(event.url)

    async def broken(event):
        raise RuntimeError("async observer bug")

    bus.on("connected", handler)
    bus.on("connected", broken)
    bus.emit(Connected("ws://a"))
    assert seen == []
    await bus.drain()
    assert seen == ["ws://a"]
