"""
Input handler for the Apple-1 terminal.
Turns pygame keyboard and mouse events into :class:`KeyInput` /
:class:`MouseInput` records on an :class:`InputQueue`.

The handler does not interpret keys; the terminal peripheral registers a
keyboard handler on the queue for that.  Closing the window sets
:attr:`InputHandler.quit_requested`.
"""

from __future__ import annotations

import logging

import pygame

from a1emu.core.input_queue import (
    Direction,
    InputQueue,
    KeyInput,
    MouseInput,
    MouseKind,
)

logger = logging.getLogger(__name__)


class InputHandler:
    """Pumps the pygame event queue into an :class:`InputQueue`.

    Parameters
    ----------
    queue:
        Destination for translated events.
    """

    def __init__(self, queue: InputQueue) -> None:
        self._queue = queue
        self._quit_requested: bool = False

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def quit_requested(self) -> bool:
        """``True`` once the user closed the window."""
        return self._quit_requested

    def poll(self) -> None:
        """Translate every pending pygame event."""
        for event in pygame.event.get():
            self.handle_event(event)

    def handle_event(self, event: pygame.event.Event) -> None:
        """Process a single pygame event."""
        if event.type == pygame.QUIT:
            self._quit_requested = True
            return

        if event.type == pygame.KEYDOWN:
            self._queue.put(KeyInput(Direction.DOWN, event.key, event.mod))
        elif event.type == pygame.KEYUP:
            self._queue.put(KeyInput(Direction.UP, event.key, event.mod))
        elif event.type in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP):
            direction = Direction.DOWN if event.type == pygame.MOUSEBUTTONDOWN else Direction.UP
            self._queue.put(
                MouseInput(MouseKind.BUTTON, direction, event.button, tuple(event.pos))
            )
        elif event.type == pygame.MOUSEMOTION:
            self._queue.put(MouseInput(MouseKind.MOTION, pos=tuple(event.pos)))
        elif event.type == pygame.MOUSEWHEEL:
            if event.y > 0:
                direction = Direction.UP
            elif event.y < 0:
                direction = Direction.DOWN
            else:
                direction = Direction.NONE
            self._queue.put(MouseInput(MouseKind.WHEEL, direction))
