"""Tests for the VM orchestrator."""

from __future__ import annotations

from a1emu.core.bus import Bus
from a1emu.core.m6502 import M6502
from a1emu.core.peripheral import NullPeripheral, Peripheral
from a1emu.core.types import MemResult, MmioKind, Status
from a1emu.core.vm import VM


class RecordingPeripheral(Peripheral):
    def __init__(self, init_status: Status = Status.OK, quit_after: int = 0) -> None:
        self.init_status = init_status
        self.quit_after = quit_after
        self.steps = 0
        self.cleaned = False
        self.vm = None

    def init(self, vm: VM) -> Status:
        self.vm = vm
        vm.bus.register_hook(MmioKind.READ, self.read_hook)
        return self.init_status

    def read_hook(self, addr: int):
        if addr == 0xC000:
            return MemResult.INTERCEPTED, 0x5A
        return MemResult.IGNORED, 0

    def step(self, vm: VM) -> None:
        self.steps += 1
        if self.quit_after and self.steps >= self.quit_after:
            vm.quit = True

    def clean(self) -> None:
        self.cleaned = True


def _vm(program: bytes, at: int = 0x0200, peripheral=None) -> VM:
    vm, status = VM.create(M6502, peripheral)
    assert status == Status.OK
    for i, b in enumerate(program):
        vm.bus[at + i] = b
    vm.cpu.set_pc(at)
    return vm


def test_create_zeroes_bus_and_uses_null_peripheral() -> None:
    vm, status = VM.create(M6502)

    assert status == Status.OK
    assert isinstance(vm.bus, Bus)
    assert vm.bus.ram == bytearray(0x10000)
    assert isinstance(vm.peripheral, NullPeripheral)
    assert vm.mmio is vm.bus.mmio
    assert (vm.step_count, vm.cycle_count, vm.quit) == (0, 0, False)


def test_each_vm_gets_its_own_null_peripheral() -> None:
    first, _ = VM.create(M6502)
    second, _ = VM.create(M6502)
    assert first.peripheral is not second.peripheral


def test_create_registers_peripheral_hooks() -> None:
    periph = RecordingPeripheral()
    vm = _vm(bytes([0xAD, 0x00, 0xC0]), peripheral=periph)  # LDA $C000

    vm.step()

    assert periph.vm is vm
    assert vm.cpu.a == 0x5A


def test_create_reports_peripheral_failure() -> None:
    vm, status = VM.create(M6502, RecordingPeripheral(Status.PLATFORM_FAILURE))

    assert vm is None
    assert status == Status.PLATFORM_FAILURE


def test_step_counts_steps_and_cycles() -> None:
    vm = _vm(bytes([0xA9, 0x01, 0xEA, 0x8D, 0x00, 0x03]))  # LDA #1 ; NOP ; STA $0300

    assert vm.step() == Status.OK
    assert vm.step() == Status.OK
    assert vm.step() == Status.OK

    assert vm.step_count == 3
    assert vm.cycle_count == 2 + 2 + 4
    assert vm.bus[0x0300] == 0x01


def test_jump_maps_to_ok() -> None:
    vm = _vm(bytes([0x4C, 0x00, 0x30]))
    assert vm.step() == Status.OK
    assert vm.cpu.get_pc() == 0x3000


def test_jump_to_self_is_loop() -> None:
    vm = _vm(bytes([0x4C, 0x00, 0x02]))  # JMP $0200
    assert vm.step() == Status.LOOP
    assert vm.step_count == 1


def test_branch_to_self_is_loop() -> None:
    vm = _vm(bytes([0xD0, 0xFE]))  # BNE *
    assert vm.step() == Status.LOOP


def test_illegal_instruction_leaves_pc_and_is_loop() -> None:
    vm = _vm(bytes([0x02]))
    assert vm.step() == Status.LOOP
    assert vm.cpu.get_pc() == 0x0200
    assert vm.cycle_count == 0


def test_quit_overrides_everything() -> None:
    periph = RecordingPeripheral(quit_after=1)
    vm = _vm(bytes([0x02]), peripheral=periph)

    assert vm.step() == Status.QUIT


def test_quit_overrides_loop() -> None:
    vm = _vm(bytes([0x4C, 0x00, 0x02]))
    vm.quit = True
    assert vm.step() == Status.QUIT


def test_peripheral_runs_after_each_instruction() -> None:
    periph = RecordingPeripheral()
    vm = _vm(bytes([0xEA, 0xEA, 0xEA]), peripheral=periph)

    for _ in range(3):
        vm.step()

    assert periph.steps == 3


def test_reset_delegates_to_cpu() -> None:
    vm = _vm(b"")
    vm.bus[0xFFFC] = 0x00
    vm.bus[0xFFFD] = 0xE0

    vm.reset()

    assert vm.cpu.get_pc() == 0xE000


def test_teardown_cleans_peripheral() -> None:
    periph = RecordingPeripheral()
    vm = _vm(b"", peripheral=periph)

    vm.teardown()

    assert periph.cleaned


def test_cpu_factory_receives_bus() -> None:
    seen = []

    def factory(bus: Bus) -> M6502:
        seen.append(bus)
        return M6502(bus, legacy_branch_timing=True)

    vm, status = VM.create(factory)

    assert status == Status.OK
    assert seen == [vm.bus]
    assert vm.cpu.legacy_branch_timing
