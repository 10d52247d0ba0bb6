"""Tests for the command-line entry point (headless)."""

from __future__ import annotations

import pytest

from a1emu.main import main

# LDA #4 ; STA DSPCR ; LDA #'O' ; STA DSP ; LDA #'K' ; STA DSP ; JMP *
PRINT_OK = bytes([
    0xA9, 0x04, 0x8D, 0x13, 0xD0,
    0xA9, 0xCF, 0x8D, 0x12, 0xD0,
    0xA9, 0xCB, 0x8D, 0x12, 0xD0,
    0x4C, 0x0F, 0x03,
])


def _rom(tmp_path, data: bytes, name: str = "prog.bin") -> str:
    path = tmp_path / name
    path.write_bytes(data)
    return str(path)


def test_self_test(capsys) -> None:
    assert main(["--self-test"]) == 0
    assert "151 instructions implemented." in capsys.readouterr().out


def test_headless_run_prints_terminal_output(tmp_path, capsys) -> None:
    rom = _rom(tmp_path, PRINT_OK)

    code = main(["--headless", "--rom", f"{rom}@0300", "--entry", "0300"])

    assert code == 0
    assert capsys.readouterr().out == "OK"


def test_max_steps_stops_early(tmp_path, capsys) -> None:
    rom = _rom(tmp_path, PRINT_OK)

    code = main(["--headless", "--rom", f"{rom}@0300", "--entry", "0300", "--max-steps", "4"])

    assert code == 0
    assert capsys.readouterr().out == "O"


def test_trace_prints_one_line_per_step(tmp_path, capsys) -> None:
    rom = _rom(tmp_path, bytes([0xEA, 0x4C, 0x01, 0x03]))  # NOP ; JMP *

    main(["--headless", "--trace", "--rom", f"{rom}@0300", "--entry", "$0300"])

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("ST:        1 PC: 0301 I: 4c")
    assert lines[1].startswith("ST:        2 PC: 0301 I: 4c")


def test_illegal_instruction_exits_with_error(tmp_path, capsys) -> None:
    rom = _rom(tmp_path, bytes([0xEA, 0x02]))

    code = main(["--headless", "--rom", f"{rom}@0300", "--entry", "0300"])

    assert code == 1
    assert "illegal instruction at $0301 after 2 steps" in capsys.readouterr().err


def test_dump_writes_memory_images(tmp_path, monkeypatch) -> None:
    rom = _rom(tmp_path, PRINT_OK)
    monkeypatch.chdir(tmp_path)

    assert main(["--headless", "--dump", "--rom", f"{rom}@0300", "--entry", "0300"]) == 0

    ram = (tmp_path / "ram.bin").read_bytes()
    mem = (tmp_path / "mem.bin").read_bytes()
    assert len(ram) == len(mem) == 0x10000
    assert mem[0x0300] == 0xA9
    assert ram[0x0300] == 0x00


def test_default_preset_needs_test_image(tmp_path, capsys) -> None:
    code = main(["--headless", "--rom-dir", str(tmp_path)])

    assert code == 1
    assert "test.bin" in capsys.readouterr().err


def test_default_preset_runs_test_image(tmp_path, capsys) -> None:
    image = bytearray(0x10000)
    image[0x0400:0x0403] = bytes([0x4C, 0x00, 0x04])  # JMP *
    _rom(tmp_path, bytes(image), "test.bin")

    assert main(["--headless", "--rom-dir", str(tmp_path)]) == 0


def test_bad_rom_spec_is_usage_error(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--rom", "no-address.bin"])
    assert exc.value.code == 2


def test_negative_max_steps(capsys) -> None:
    assert main(["--headless", "--max-steps", "-1"]) == 1
