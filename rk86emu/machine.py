"""Memory/IO bus and register file of the 8080 processor."""

import struct
from dataclasses import dataclass, field

from .alu import Flags

MEMORY_SIZE = 0x10000
RESET_PC = 0xF800

# Eight flag bytes, then AF, BC, DE, HL, SP, PC, IFF and the last PC as
# little-endian words.
_STATE = struct.Struct("<8B8H")
STATE_SIZE = _STATE.size

_BYTE_REGISTERS = ("a", "b", "c", "d", "e", "h", "l")
_PAIRS = {"bc": ("b", "c"), "de": ("d", "e"), "hl": ("h", "l")}
_WORD_REGISTERS = ("sp", "pc")


class Bus:
    """Memory and I/O ports seen by the processor.

    Addresses wrap at 64 KiB. Reads beyond the end of a smaller memory give
    0xFF and writes there are ignored. Ports hold the last value written and
    read as 0xFF until then.
    """

    def __init__(self, memory=None):
        self.memory = bytearray(MEMORY_SIZE) if memory is None else memory
        self.ports = {}
        self.interrupts_enabled = False

    def read_byte(self, addr):
        addr &= 0xFFFF
        if addr >= len(self.memory):
            return 0xFF
        return self.memory[addr]

    def write_byte(self, addr, value):
        addr &= 0xFFFF
        if addr < len(self.memory):
            self.memory[addr] = value & 0xFF

    def read_word(self, addr):
        return self.read_byte(addr) | (self.read_byte(addr + 1) << 8)

    def write_word(self, addr, value):
        self.write_byte(addr, value)
        self.write_byte(addr + 1, value >> 8)

    def io_input(self, port):
        return self.ports.get(port & 0xFF, 0xFF)

    def io_output(self, port, value):
        self.ports[port & 0xFF] = value & 0xFF

    def set_interrupts(self, enabled):
        self.interrupts_enabled = bool(enabled)


@dataclass
class Registers:
    """Processor registers, flags and the interrupt enable flip-flop."""

    a: int = 0
    b: int = 0
    c: int = 0
    d: int = 0
    e: int = 0
    h: int = 0
    l: int = 0  # noqa: E741
    sp: int = 0
    pc: int = RESET_PC
    iff: bool = False
    last_pc: int = 0
    flags: Flags = field(default_factory=Flags)

    def get(self, name):
        """Read a register, register pair ("bc", "de", "hl"), "sp", "pc" or "psw"."""
        key = name.lower()
        if key in _BYTE_REGISTERS or key in _WORD_REGISTERS:
            return getattr(self, key)
        if key in _PAIRS:
            high, low = _PAIRS[key]
            return (getattr(self, high) << 8) | getattr(self, low)
        if key in ("psw", "af"):
            return (self.a << 8) | self.flags.pack()
        raise KeyError(f"unknown register {name!r}")

    def set(self, name, value):
        """Write a register or pair, truncating the value to its width."""
        key = name.lower()
        if key in _BYTE_REGISTERS:
            setattr(self, key, value & 0xFF)
        elif key in _WORD_REGISTERS:
            setattr(self, key, value & 0xFFFF)
        elif key in _PAIRS:
            high, low = _PAIRS[key]
            setattr(self, high, (value >> 8) & 0xFF)
            setattr(self, low, value & 0xFF)
        elif key in ("psw", "af"):
            self.a = (value >> 8) & 0xFF
            self.flags = Flags.unpack(value & 0xFF)
        else:
            raise KeyError(f"unknown register {name!r}")

    def pack(self):
        """Serialise the processor state."""
        f = self.flags
        return _STATE.pack(
            int(f.carry), 1, int(f.parity), 0,
            int(f.half_carry), 0, int(f.zero), int(f.sign),
            self.get("psw"),
            self.get("bc"),
            self.get("de"),
            self.get("hl"),
            self.sp & 0xFFFF,
            self.pc & 0xFFFF,
            int(bool(self.iff)),
            self.last_pc & 0xFFFF,
        )

    @classmethod
    def unpack(cls, data):
        """Rebuild registers from the bytes produced by :meth:`pack`."""
        data = bytes(data)
        if len(data) != STATE_SIZE:
            raise ValueError(f"state must be {STATE_SIZE} bytes, got {len(data)}")
        (carry, _un1, par, _un3, half, _un5, zero, sign,
         af, bc, de, hl, sp, pc, iff, last_pc) = _STATE.unpack(data)
        regs = cls(sp=sp, pc=pc, iff=bool(iff), last_pc=last_pc)
        regs.a = af >> 8
        regs.set("bc", bc)
        regs.set("de", de)
        regs.set("hl", hl)
        regs.flags = Flags(
            sign=bool(sign),
            zero=bool(zero),
            half_carry=bool(half),
            parity=bool(par),
            carry=bool(carry),
        )
        return regs