"""
Terminal window for the Apple-1 display.
Draws a :class:`~a1emu.core.screen.Screen` with the 128-glyph character ROM
in a pygame window.

Character ROM layout
--------------------
128 glyphs of 8 bytes each, one byte per pixel row.  Only the low six bits
are used; bit ``x`` lights pixel column ``x``.

Rendering builds a numpy glyph atlas of shape ``(128, 8, 6)`` once, indexes
it with the screen's cell array to get the whole frame in one operation,
and blits the result through :mod:`pygame.surfarray`.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
import pygame

from a1emu.core.screen import Screen
from a1emu.core.types import Status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_WINDOW_TITLE: str = "A1 Console"

CHAR_WIDTH: int = 6
CHAR_HEIGHT: int = 8
GLYPH_COUNT: int = 128
CHARMAP_SIZE: int = GLYPH_COUNT * CHAR_HEIGHT

CURSOR_CHAR: int = ord("_")
BLINK_DELAY_MS: int = 400

_MIN_SCALE: int = 1
_MAX_SCALE: int = 8

# pixel value -> RGB
_COLOURS = np.array([(0x00, 0x00, 0x00), (0xFF, 0xFF, 0xFF)], dtype=np.uint8)


# ---------------------------------------------------------------------------
# Character ROM
# ---------------------------------------------------------------------------

def build_atlas(data: bytes) -> np.ndarray:
    """Expand a raw character ROM into a ``(128, 8, 6)`` array of 0/1 pixels.

    Raises:
        ValueError: If *data* is shorter than 1024 bytes.
    """
    if len(data) < CHARMAP_SIZE:
        raise ValueError(
            f"Character ROM too short: expected {CHARMAP_SIZE} bytes, got {len(data)}"
        )
    rows = np.frombuffer(data[:CHARMAP_SIZE], dtype=np.uint8).reshape(GLYPH_COUNT, CHAR_HEIGHT)
    shifts = np.arange(CHAR_WIDTH, dtype=np.uint8)
    return ((rows[:, :, None] >> shifts) & 1).astype(np.uint8)


def load_charmap(path: str) -> np.ndarray:
    """Read the character ROM at *path* into a glyph atlas.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is too short.
    """
    with open(path, "rb") as fh:
        data = fh.read(CHARMAP_SIZE)
    return build_atlas(data)


def compose_frame(
    atlas: np.ndarray,
    screen: Screen,
    cursor: Optional[Tuple[int, int]] = None,
) -> np.ndarray:
    """Render *screen* into a ``(rows * 8, cols * 6)`` array of 0/1 pixels.

    When *cursor* is a ``(col, row)`` pair the cursor glyph is drawn over
    that cell.
    """
    cells = np.frombuffer(bytes(screen.cells), dtype=np.uint8).reshape(screen.rows, screen.cols)
    cells = cells & 0x7F
    glyphs = atlas[cells]  # (rows, cols, 8, 6)
    frame = glyphs.transpose(0, 2, 1, 3).reshape(
        screen.rows * CHAR_HEIGHT, screen.cols * CHAR_WIDTH
    )
    if cursor is not None:
        col, row = cursor
        y = row * CHAR_HEIGHT
        x = col * CHAR_WIDTH
        frame[y:y + CHAR_HEIGHT, x:x + CHAR_WIDTH] = atlas[CURSOR_CHAR]
    return frame


# ---------------------------------------------------------------------------
# Window
# ---------------------------------------------------------------------------

class TerminalWindow:
    """Pygame window showing a text screen.

    Parameters
    ----------
    screen:
        The cell grid to draw.
    scale:
        Integer scale factor applied to the native 6x8 glyph resolution.
    """

    def __init__(self, screen: Screen, scale: int = 2) -> None:
        self._screen_model = screen
        self._scale: int = max(_MIN_SCALE, min(_MAX_SCALE, scale))

        self._native_width: int = screen.cols * CHAR_WIDTH
        self._native_height: int = screen.rows * CHAR_HEIGHT

        self._atlas: Optional[np.ndarray] = None
        self._display: Optional[pygame.Surface] = None
        self._surface: Optional[pygame.Surface] = None

        self._show_cursor: bool = False
        self._last_blink: int = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def scale(self) -> int:
        return self._scale

    @property
    def size(self) -> Tuple[int, int]:
        """Display size in pixels."""
        return self._native_width * self._scale, self._native_height * self._scale

    @property
    def is_open(self) -> bool:
        return self._display is not None

    @property
    def show_cursor(self) -> bool:
        return self._show_cursor

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self, charmap_path: str) -> Status:
        """Load the character ROM and create the window."""
        try:
            self._atlas = load_charmap(charmap_path)
        except OSError as exc:
            logger.error("Cannot open character ROM %s: %s", charmap_path, exc)
            return Status.OPEN_FAILURE
        except ValueError as exc:
            logger.error("Bad character ROM %s: %s", charmap_path, exc)
            return Status.OPEN_FAILURE
        logger.info("Loaded character ROM %s", charmap_path)

        try:
            if not pygame.get_init():
                pygame.init()
            self._display = pygame.display.set_mode(self.size)
            pygame.display.set_caption(_WINDOW_TITLE)
            self._surface = pygame.Surface((self._native_width, self._native_height))
        except pygame.error as exc:
            logger.error("Cannot create window: %s", exc)
            self._display = None
            return Status.PLATFORM_FAILURE

        self._last_blink = pygame.time.get_ticks()
        self._show_cursor = False

        logger.info(
            "Window: %dx%d native, %dx%d display (scale=%d)",
            self._native_width,
            self._native_height,
            *self.size,
            self._scale,
        )
        self.render(redraw=True)
        return Status.OK

    def close(self) -> None:
        if self._display is None:
            return
        logger.info("Closing window")
        self._display = None
        self._surface = None
        pygame.quit()

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _tick_blink(self) -> bool:
        now = pygame.time.get_ticks()
        if now - self._last_blink > BLINK_DELAY_MS:
            self._show_cursor = not self._show_cursor
            self._last_blink = now
            return True
        return False

    def render(self, redraw: bool = False) -> None:
        """Redraw if the screen changed or the cursor blinked."""
        if self._display is None or self._atlas is None:
            return
        if self._tick_blink():
            redraw = True
        if not redraw:
            return

        model = self._screen_model
        cursor = (model.col, model.row) if self._show_cursor else None
        frame = compose_frame(self._atlas, model, cursor)

        # surfarray wants (W, H, 3)
        rgb = _COLOURS[frame]
        pygame.surfarray.blit_array(self._surface, rgb.transpose(1, 0, 2))

        if self._scale != 1:
            scaled = pygame.transform.scale(self._surface, self.size)
        else:
            scaled = self._surface
        self._display.blit(scaled, (0, 0))
        pygame.display.flip()
