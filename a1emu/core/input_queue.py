"""
Host input queue.

The platform layer converts host events into :class:`KeyInput` and
:class:`MouseInput` records and :meth:`InputQueue.put` s them; once per
step :meth:`InputQueue.dispatch` drains the FIFO into the registered
handlers.

Keyboard and mouse-button handlers are offered each event in registration
order until one answers :attr:`InputResult.CONSUMED`.  Motion handlers all
see every motion event.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Deque, Dict, List, Tuple, Union

from a1emu.core.types import Status

logger = logging.getLogger(__name__)


class InputResult(IntEnum):
    CONSUMED = 1
    SHARED = 2
    IGNORED = 3


class HandlerKind(IntEnum):
    KEYBOARD = 0
    MOUSE_BUTTON = 1
    MOTION = 2


class Direction(IntEnum):
    UP = 0
    DOWN = 1
    NONE = 2


class MouseKind(IntEnum):
    BUTTON = 0
    MOTION = 1
    WHEEL = 2


@dataclass(frozen=True)
class KeyInput:
    type: Direction
    key: int
    mod: int = 0


@dataclass(frozen=True)
class MouseInput:
    kind: MouseKind
    direction: Direction = Direction.NONE
    button: int = 0
    pos: Tuple[int, int] = (0, 0)


InputEvent = Union[KeyInput, MouseInput]
Handler = Callable[[InputEvent], InputResult]


class InputQueue:
    """FIFO of host input events plus the handlers that consume them."""

    def __init__(self) -> None:
        self._events: Deque[InputEvent] = deque()
        self._handlers: Dict[HandlerKind, List[Handler]] = {
            kind: [] for kind in HandlerKind
        }

    def register(self, handler: Handler, kind: HandlerKind) -> Status:
        if kind not in self._handlers:
            return Status.INVALID_ARGUMENT
        self._handlers[kind].append(handler)
        return Status.OK

    def handlers(self, kind: HandlerKind) -> Tuple[Handler, ...]:
        return tuple(self._handlers[kind])

    def put(self, event: InputEvent) -> None:
        self._events.append(event)

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _offer(self, handlers: List[Handler], event: InputEvent) -> InputResult:
        result = InputResult.IGNORED
        for handler in handlers:
            result = handler(event)
            if result == InputResult.CONSUMED:
                break
        return result

    def dispatch_one(self, event: InputEvent) -> InputResult:
        if isinstance(event, KeyInput):
            return self._offer(self._handlers[HandlerKind.KEYBOARD], event)
        if event.kind == MouseKind.MOTION:
            for handler in self._handlers[HandlerKind.MOTION]:
                handler(event)
            return InputResult.IGNORED
        return self._offer(self._handlers[HandlerKind.MOUSE_BUTTON], event)

    def dispatch(self) -> int:
        """Drain the queue.  Returns the number of events dispatched."""
        count = 0
        while self._events:
            self.dispatch_one(self._events.popleft())
            count += 1
        return count

    def __repr__(self) -> str:
        return (
            f"InputQueue(pending={len(self._events)}, "
            f"handlers={sum(len(h) for h in self._handlers.values())})"
        )
