"""Tests for the host input queue."""

from __future__ import annotations

from a1emu.core.input_queue import (
    Direction,
    HandlerKind,
    InputQueue,
    InputResult,
    KeyInput,
    MouseInput,
    MouseKind,
)
from a1emu.core.types import Status


def test_keyboard_handlers_stop_at_consumed() -> None:
    queue = InputQueue()
    calls = []

    def first(event):
        calls.append("first")
        return InputResult.SHARED

    def second(event):
        calls.append("second")
        return InputResult.CONSUMED

    def third(event):
        calls.append("third")
        return InputResult.IGNORED

    for handler in (first, second, third):
        assert queue.register(handler, HandlerKind.KEYBOARD) == Status.OK

    queue.put(KeyInput(Direction.DOWN, ord("a")))
    assert queue.dispatch() == 1
    assert calls == ["first", "second"]
    assert len(queue) == 0


def test_motion_handlers_all_run() -> None:
    queue = InputQueue()
    calls = []
    queue.register(lambda e: calls.append(1) or InputResult.CONSUMED, HandlerKind.MOTION)
    queue.register(lambda e: calls.append(2) or InputResult.CONSUMED, HandlerKind.MOTION)

    queue.put(MouseInput(MouseKind.MOTION, pos=(3, 4)))
    queue.dispatch()

    assert calls == [1, 2]


def test_button_events_go_to_button_handlers() -> None:
    queue = InputQueue()
    seen = []
    queue.register(lambda e: seen.append(("key", e)) or InputResult.IGNORED, HandlerKind.KEYBOARD)
    queue.register(lambda e: seen.append(("btn", e)) or InputResult.IGNORED, HandlerKind.MOUSE_BUTTON)

    event = MouseInput(MouseKind.BUTTON, Direction.DOWN, button=1)
    queue.put(event)
    queue.dispatch()

    assert seen == [("btn", event)]


def test_events_dispatched_in_fifo_order() -> None:
    queue = InputQueue()
    keys = []
    queue.register(lambda e: keys.append(e.key) or InputResult.CONSUMED, HandlerKind.KEYBOARD)

    for key in (1, 2, 3):
        queue.put(KeyInput(Direction.DOWN, key))
    queue.dispatch()

    assert keys == [1, 2, 3]


def test_register_rejects_unknown_kind() -> None:
    queue = InputQueue()
    assert queue.register(lambda e: InputResult.IGNORED, 9) == Status.INVALID_ARGUMENT


def test_dispatch_with_no_handlers_drains_queue() -> None:
    queue = InputQueue()
    queue.put(KeyInput(Direction.UP, 0))
    assert queue.dispatch() == 1
    assert queue.dispatch() == 0
