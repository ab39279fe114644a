"""Control-flow instructions and the instruction loop of the 8080 processor."""

from .alu import Flags
from .instructions import arithmetic_table, data_transfer_table
from .machine import RESET_PC, Registers

_HLT = 0x76

# Condition field of conditional jumps, calls and returns.
_CONDITIONS = (
    lambda flags: not flags.zero,
    lambda flags: flags.zero,
    lambda flags: not flags.carry,
    lambda flags: flags.carry,
    lambda flags: not flags.parity,
    lambda flags: flags.parity,
    lambda flags: not flags.sign,
    lambda flags: flags.sign,
)

# Register pair field of PUSH and POP.
_STACK_PAIRS = ("bc", "de", "hl", "psw")


def _push(regs, bus, value):
    regs.sp = (regs.sp - 2) & 0xFFFF
    bus.write_word(regs.sp, value & 0xFFFF)


def _pop(regs, bus):
    value = bus.read_word(regs.sp)
    regs.sp = (regs.sp + 2) & 0xFFFF
    return value


def _call(regs, bus):
    _push(regs, bus, regs.pc + 2)
    regs.pc = bus.read_word(regs.pc)


def _jmp(regs, bus):
    regs.pc = bus.read_word(regs.pc)
    return 10


def _jump_if(condition):
    def handler(regs, bus):
        if condition(regs.flags):
            regs.pc = bus.read_word(regs.pc)
        else:
            regs.pc = (regs.pc + 2) & 0xFFFF
        return 10
    return handler


def _call_always(regs, bus):
    _call(regs, bus)
    return 17


def _call_if(condition):
    def handler(regs, bus):
        if condition(regs.flags):
            _call(regs, bus)
            return 17
        regs.pc = (regs.pc + 2) & 0xFFFF
        return 11
    return handler


def _ret(regs, bus):
    regs.pc = _pop(regs, bus)
    return 10


def _return_if(condition):
    def handler(regs, bus):
        if condition(regs.flags):
            regs.pc = _pop(regs, bus)
            return 11
        return 5
    return handler


def _rst(vector):
    def handler(regs, bus):
        _push(regs, bus, regs.pc)
        regs.pc = vector
        return 11
    return handler


def _push_pair(pair):
    def handler(regs, bus):
        _push(regs, bus, regs.get(pair))
        return 11
    return handler


def _pop_pair(pair):
    cycles = 10 if pair == "psw" else 11

    def handler(regs, bus):
        regs.set(pair, _pop(regs, bus))
        return cycles
    return handler


def _pchl(regs, bus):
    regs.pc = regs.get("hl")
    return 5


def _hlt(regs, bus):
    regs.pc = (regs.pc - 1) & 0xFFFF
    return 4


def _out(regs, bus):
    port = bus.read_byte(regs.pc)
    regs.pc = (regs.pc + 1) & 0xFFFF
    bus.io_output(port, regs.a)
    return 10


def _in(regs, bus):
    port = bus.read_byte(regs.pc)
    regs.pc = (regs.pc + 1) & 0xFFFF
    regs.a = bus.io_input(port) & 0xFF
    return 10


def _interrupts(enabled):
    def handler(regs, bus):
        regs.iff = enabled
        bus.set_interrupts(enabled)
        return 4
    return handler


def branch_table():
    """Return handlers for jumps, calls, returns, stack, I/O and interrupt control."""
    table = {}
    for code, condition in enumerate(_CONDITIONS):
        table[0xC0 | code << 3] = _return_if(condition)
        table[0xC2 | code << 3] = _jump_if(condition)
        table[0xC4 | code << 3] = _call_if(condition)
        table[0xC7 | code << 3] = _rst(code << 3)
    for index, pair in enumerate(_STACK_PAIRS):
        table[0xC1 | index << 4] = _pop_pair(pair)
        table[0xC5 | index << 4] = _push_pair(pair)
    for opcode in (0xC3, 0xCB):
        table[opcode] = _jmp
    for opcode in (0xC9, 0xD9):
        table[opcode] = _ret
    for opcode in (0xCD, 0xDD, 0xED, 0xFD):
        table[opcode] = _call_always
    table[0xE9] = _pchl
    table[_HLT] = _hlt
    table[0xD3] = _out
    table[0xDB] = _in
    table[0xF3] = _interrupts(False)
    table[0xFB] = _interrupts(True)
    return table


def _build_dispatch():
    table = {}
    for part in (data_transfer_table(), arithmetic_table(), branch_table()):
        table.update(part)
    return tuple(table[opcode] for opcode in range(256))


_DISPATCH = _build_dispatch()


class I8080:
    """An 8080 processor running against a :class:`~rk86emu.machine.Bus`."""

    def __init__(self, bus):
        self.bus = bus
        self.regs = Registers()
        self.reset()

    def reset(self):
        """Clear the flags and start again from the monitor entry point."""
        self.regs.flags = Flags()
        self.regs.pc = RESET_PC

    def step(self):
        """Execute one instruction; return the clock cycles it took."""
        regs = self.regs
        opcode = self.bus.read_byte(regs.pc)
        regs.pc = (regs.pc + 1) & 0xFFFF
        return _DISPATCH[opcode](regs, self.bus)

    def jump(self, addr):
        """Continue execution at ``addr``."""
        self.regs.pc = addr & 0xFFFF

    def save_state(self):
        """Return the processor state as bytes."""
        return self.regs.pack()

    def load_state(self, data):
        """Restore a state produced by :meth:`save_state`."""
        self.regs = Registers.unpack(data)