"""a1emu -- MOS 6502 emulator with an Apple-1 style terminal."""

__version__ = "1.0.0"
