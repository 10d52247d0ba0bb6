"""Tests for the terminal peripherals and the pygame input handler."""

from __future__ import annotations

import io

import pygame

from a1emu.core.input_queue import (
    Direction,
    HandlerKind,
    InputQueue,
    InputResult,
    KeyInput,
    MouseInput,
    MouseKind,
)
from a1emu.core.m6502 import M6502
from a1emu.core.pia6820 import DSP_CR, DSP_DATA
from a1emu.core.types import Status
from a1emu.core.vm import VM
from a1emu.platform.input_handler import InputHandler
from a1emu.platform.terminal import Apple1Terminal, ConsoleTerminal
from a1emu.platform.window import CHARMAP_SIZE
from a1emu.shell.runner import run

# LDA #4 ; STA DSPCR ; LDA #'H' ; STA DSP ; LDA #'I' ; STA DSP ; JMP *
PRINT_HI = bytes([
    0xA9, 0x04, 0x8D, 0x13, 0xD0,
    0xA9, 0xC8, 0x8D, 0x12, 0xD0,
    0xA9, 0xC9, 0x8D, 0x12, 0xD0,
    0x4C, 0x0F, 0x02,
])

# wait: LDA KBDCR ; BPL wait ; LDA KBD ; STA $0300 ; JMP *
READ_KEY = bytes([
    0xAD, 0x11, 0xD0,
    0x10, 0xFB,
    0xAD, 0x10, 0xD0,
    0x8D, 0x00, 0x03,
    0x4C, 0x0B, 0x02,
])


def _load(vm: VM, program: bytes, at: int = 0x0200) -> None:
    for i, b in enumerate(program):
        vm.bus[at + i] = b
    vm.cpu.set_pc(at)


def _charmap(tmp_path) -> str:
    path = tmp_path / "a1chr.bin"
    path.write_bytes(bytes(CHARMAP_SIZE))
    return str(path)


# ---------------------------------------------------------------------------
# ConsoleTerminal
# ---------------------------------------------------------------------------

def test_console_terminal_prints_characters() -> None:
    out = io.StringIO()
    term = ConsoleTerminal(out)
    vm, status = VM.create(M6502, term)
    assert status == Status.OK
    _load(vm, PRINT_HI)

    assert run(vm, max_steps=100) == Status.LOOP

    assert out.getvalue() == "HI"
    assert term.screen.text() == "HI"


def test_console_terminal_carriage_return_is_newline() -> None:
    out = io.StringIO()
    term = ConsoleTerminal(out)
    vm, _ = VM.create(M6502, term)
    vm.bus[DSP_CR] = 0x04
    vm.bus[DSP_DATA] = 0x8D

    term.step(vm)

    assert out.getvalue() == "\n"


def test_console_terminal_scripted_keys() -> None:
    term = ConsoleTerminal(io.StringIO(), keys="a")
    vm, _ = VM.create(M6502, term)
    _load(vm, READ_KEY)

    assert run(vm, max_steps=100) == Status.LOOP

    assert vm.bus[0x0300] == ord("A") | 0x80
    assert term.pending_keys == 0


def test_console_terminal_waits_until_key_is_read() -> None:
    term = ConsoleTerminal(io.StringIO(), keys="AB")
    vm, _ = VM.create(M6502, term)

    term.step(vm)
    term.step(vm)

    assert term.pia.kbd_data == ord("A") | 0x80
    assert term.pending_keys == 1


def test_escape_sets_quit() -> None:
    term = ConsoleTerminal(io.StringIO())
    vm, _ = VM.create(M6502, term)

    term.on_key(KeyInput(Direction.DOWN, pygame.K_ESCAPE))

    assert vm.quit


def test_shifted_key_is_translated() -> None:
    term = ConsoleTerminal(io.StringIO())
    VM.create(M6502, term)

    term.on_key(KeyInput(Direction.DOWN, ord("1"), pygame.KMOD_LSHIFT))

    assert term.pia.kbd_data == ord("!") | 0x80


def test_key_up_and_non_ascii_keys_ignored() -> None:
    term = ConsoleTerminal(io.StringIO())
    VM.create(M6502, term)

    term.on_key(KeyInput(Direction.UP, ord("a")))
    term.on_key(KeyInput(Direction.DOWN, pygame.K_UP))

    assert term.pia.kbd_cr == 0


def test_f1_resets_terminal_and_cpu() -> None:
    term = ConsoleTerminal(io.StringIO())
    vm, _ = VM.create(M6502, term)
    vm.bus[0xFFFC] = 0x00
    vm.bus[0xFFFD] = 0xFF
    term.screen.put_char(ord("X"))
    term.pia.dsp_cr = 0x04

    term.on_key(KeyInput(Direction.DOWN, pygame.K_F1))

    assert vm.cpu.get_pc() == 0xFF00
    assert term.screen.text() == ""
    assert term.pia.dsp_cr == 0


# ---------------------------------------------------------------------------
# Apple1Terminal
# ---------------------------------------------------------------------------

def test_apple1_terminal_shows_output(tmp_path) -> None:
    term = Apple1Terminal(_charmap(tmp_path), scale=1)
    vm, status = VM.create(M6502, term)
    assert status == Status.OK
    _load(vm, PRINT_HI)

    try:
        assert run(vm, max_steps=100) == Status.LOOP
        assert term.screen.text() == "HI"
        assert term.window.is_open
    finally:
        vm.teardown()

    assert not term.window.is_open


def test_apple1_terminal_missing_charmap(tmp_path) -> None:
    vm, status = VM.create(M6502, Apple1Terminal(str(tmp_path / "missing.bin")))
    assert vm is None
    assert status == Status.OPEN_FAILURE


def test_apple1_terminal_quits_on_window_close(tmp_path) -> None:
    term = Apple1Terminal(_charmap(tmp_path), scale=1)
    vm, _ = VM.create(M6502, term)
    try:
        term.input.handle_event(pygame.event.Event(pygame.QUIT))
        term.step(vm)
        assert vm.quit
    finally:
        vm.teardown()


# ---------------------------------------------------------------------------
# InputHandler
# ---------------------------------------------------------------------------

def test_input_handler_queues_key_events() -> None:
    queue = InputQueue()
    handler = InputHandler(queue)

    handler.handle_event(pygame.event.Event(pygame.KEYDOWN, key=ord("a"), mod=0))
    handler.handle_event(pygame.event.Event(pygame.KEYUP, key=ord("a"), mod=0))

    seen = []
    queue.register(lambda e: seen.append(e) or InputResult.CONSUMED, HandlerKind.KEYBOARD)
    queue.dispatch()
    assert seen == [
        KeyInput(Direction.DOWN, ord("a"), 0),
        KeyInput(Direction.UP, ord("a"), 0),
    ]


def test_input_handler_mouse_events() -> None:
    queue = InputQueue()
    handler = InputHandler(queue)

    handler.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(2, 3)))
    handler.handle_event(pygame.event.Event(pygame.MOUSEMOTION, pos=(4, 5), rel=(1, 1), buttons=(0, 0, 0)))

    assert len(queue) == 2
    seen = []
    queue.register(lambda e: seen.append(e) or InputResult.IGNORED, HandlerKind.MOUSE_BUTTON)
    queue.register(lambda e: seen.append(e) or InputResult.IGNORED, HandlerKind.MOTION)
    queue.dispatch()
    assert seen == [
        MouseInput(MouseKind.BUTTON, Direction.DOWN, 1, (2, 3)),
        MouseInput(MouseKind.MOTION, pos=(4, 5)),
    ]


def test_input_handler_quit() -> None:
    handler = InputHandler(InputQueue())
    assert not handler.quit_requested
    handler.handle_event(pygame.event.Event(pygame.QUIT))
    assert handler.quit_requested
