"""Tests for the terminal window and glyph rendering (SDL dummy driver)."""

from __future__ import annotations

import pygame
import pytest

from a1emu.core.screen import Screen
from a1emu.core.types import Status
from a1emu.platform.window import (
    CHAR_HEIGHT,
    CHAR_WIDTH,
    CHARMAP_SIZE,
    CURSOR_CHAR,
    TerminalWindow,
    build_atlas,
    compose_frame,
    load_charmap,
)


def build_charmap() -> bytes:
    data = bytearray(CHARMAP_SIZE)
    # 'H': leftmost pixel on every row
    for row in range(CHAR_HEIGHT):
        data[ord("H") * CHAR_HEIGHT + row] = 0b000001
    # cursor: solid bottom row
    data[CURSOR_CHAR * CHAR_HEIGHT + 7] = 0b111111
    return bytes(data)


def test_build_atlas_shape_and_bit_order() -> None:
    atlas = build_atlas(build_charmap())

    assert atlas.shape == (128, CHAR_HEIGHT, CHAR_WIDTH)
    assert atlas[ord("H"), 0, 0] == 1
    assert atlas[ord("H"), 0, 1:].sum() == 0
    assert atlas[CURSOR_CHAR, 7].tolist() == [1] * 6


def test_build_atlas_ignores_top_two_bits() -> None:
    data = bytearray(CHARMAP_SIZE)
    data[0] = 0xC0
    atlas = build_atlas(bytes(data))
    assert atlas[0].sum() == 0


def test_short_charmap_rejected(tmp_path) -> None:
    path = tmp_path / "short.bin"
    path.write_bytes(bytes(100))
    with pytest.raises(ValueError):
        load_charmap(str(path))


def test_compose_frame_places_glyphs_and_cursor() -> None:
    atlas = build_atlas(build_charmap())
    screen = Screen(4, 2)
    screen.put_char(ord("H"))

    frame = compose_frame(atlas, screen)
    assert frame.shape == (2 * CHAR_HEIGHT, 4 * CHAR_WIDTH)
    assert frame[:CHAR_HEIGHT, 0].tolist() == [1] * CHAR_HEIGHT
    assert frame[:, 1:].sum() == 0

    with_cursor = compose_frame(atlas, screen, cursor=(screen.col, screen.row))
    assert with_cursor[7, CHAR_WIDTH:2 * CHAR_WIDTH].tolist() == [1] * CHAR_WIDTH
    assert with_cursor[6, CHAR_WIDTH:2 * CHAR_WIDTH].sum() == 0


def test_window_open_render_close(tmp_path) -> None:
    path = tmp_path / "a1chr.bin"
    path.write_bytes(build_charmap())
    screen = Screen()
    window = TerminalWindow(screen, scale=1)

    assert window.open(str(path)) == Status.OK
    assert window.is_open
    assert window.size == (60 * CHAR_WIDTH, 36 * CHAR_HEIGHT)

    screen.put_char(ord("H"))
    window.render(redraw=True)
    display = pygame.display.get_surface()
    assert display.get_at((0, 0))[:3] == (255, 255, 255)
    assert display.get_at((1, 0))[:3] == (0, 0, 0)

    window.close()
    assert not window.is_open


def test_window_missing_charmap(tmp_path) -> None:
    window = TerminalWindow(Screen())
    assert window.open(str(tmp_path / "missing.bin")) == Status.OPEN_FAILURE
    assert not window.is_open


def test_scale_is_clamped() -> None:
    assert TerminalWindow(Screen(), scale=0).scale == 1
    assert TerminalWindow(Screen(), scale=99).scale == 8


def test_render_without_open_is_noop() -> None:
    TerminalWindow(Screen()).render(redraw=True)
