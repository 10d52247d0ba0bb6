"""
Memory-mapped I/O hook registry.

Peripherals register read and write hooks here during their initialisation.
The registry is owned by the VM and handed to the :class:`~a1emu.core.bus.Bus`
that consults it on every access.  Hooks run in registration order and can
never be removed.

Hook signatures
---------------
Read hook::

    def read_hook(addr: int) -> tuple[MemResult, int]

Return ``(MemResult.INTERCEPTED, value)`` to supply the byte, or
``(MemResult.IGNORED, 0)`` to let the next hook (and finally the bus) answer.

Write hook::

    def write_hook(addr: int, value: int) -> MemResult

``USED`` means the hook consumed the value but the bus still performs its
default write; ``INTERCEPTED`` stops the chain and suppresses the default
write.
"""

from __future__ import annotations

from typing import Callable, List, Tuple

from a1emu.core.types import MemResult, MmioKind, Status

ReadHook = Callable[[int], Tuple[MemResult, int]]
WriteHook = Callable[[int, int], MemResult]


class MmioRegistry:
    """Ordered read/write hook lists."""

    def __init__(self) -> None:
        self._read_hooks: List[ReadHook] = []
        self._write_hooks: List[WriteHook] = []

    def register(self, kind: MmioKind, hook: Callable) -> Status:
        """Append *hook* to the registry selected by *kind*."""
        if kind == MmioKind.READ:
            self._read_hooks.append(hook)
        elif kind == MmioKind.WRITE:
            self._write_hooks.append(hook)
        else:
            return Status.INVALID_ARGUMENT
        return Status.OK

    def dispatch_read(self, addr: int) -> Tuple[bool, int]:
        """Run the read hooks; return ``(intercepted, value)``."""
        for hook in self._read_hooks:
            result, value = hook(addr)
            if result == MemResult.INTERCEPTED:
                return True, value & 0xFF
        return False, 0

    def dispatch_write(self, addr: int, value: int) -> bool:
        """Run the write hooks; return ``True`` if one intercepted."""
        for hook in self._write_hooks:
            if hook(addr, value) == MemResult.INTERCEPTED:
                return True
        return False

    def __len__(self) -> int:
        return len(self._read_hooks) + len(self._write_hooks)

    def __repr__(self) -> str:
        return (
            f"MmioRegistry(read={len(self._read_hooks)}, "
            f"write={len(self._write_hooks)})"
        )
