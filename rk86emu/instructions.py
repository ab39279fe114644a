"""Data-transfer and arithmetic instruction handlers of the 8080 processor.

Each table maps an opcode to a handler called as ``handler(regs, bus)``.
The handler runs with ``regs.pc`` already past the opcode byte, fetches any
operand bytes itself and returns the number of clock cycles taken.
"""

from . import alu

# Operand field encoding of the instruction set; 6 addresses memory at HL.
_REGISTERS = ("b", "c", "d", "e", "h", "l", "m", "a")
_M = 6
# Register pair field encoding.
_PAIRS = ("bc", "de", "hl", "sp")

_HLT = 0x76


def _fetch_byte(regs, bus):
    value = bus.read_byte(regs.pc)
    regs.pc = (regs.pc + 1) & 0xFFFF
    return value


def _fetch_word(regs, bus):
    value = bus.read_word(regs.pc)
    regs.pc = (regs.pc + 2) & 0xFFFF
    return value


def _read_operand(regs, bus, code):
    if code == _M:
        return bus.read_byte(regs.get("hl"))
    return getattr(regs, _REGISTERS[code])


def _write_operand(regs, bus, code, value):
    if code == _M:
        bus.write_byte(regs.get("hl"), value)
    else:
        setattr(regs, _REGISTERS[code], value & 0xFF)


# --- data transfer -------------------------------------------------------


def _nop(regs, bus):
    return 4


def _lxi(pair):
    def handler(regs, bus):
        regs.set(pair, _fetch_word(regs, bus))
        return 10
    return handler


def _stax(pair):
    def handler(regs, bus):
        bus.write_byte(regs.get(pair), regs.a)
        return 7
    return handler


def _ldax(pair):
    def handler(regs, bus):
        regs.a = bus.read_byte(regs.get(pair))
        return 7
    return handler


def _shld(regs, bus):
    bus.write_word(_fetch_word(regs, bus), regs.get("hl"))
    return 16


def _lhld(regs, bus):
    regs.set("hl", bus.read_word(_fetch_word(regs, bus)))
    return 16


def _sta(regs, bus):
    bus.write_byte(_fetch_word(regs, bus), regs.a)
    return 13


def _lda(regs, bus):
    regs.a = bus.read_byte(_fetch_word(regs, bus))
    return 13


def _mvi(code):
    cycles = 10 if code == _M else 7

    def handler(regs, bus):
        _write_operand(regs, bus, code, _fetch_byte(regs, bus))
        return cycles
    return handler


def _mov(dst, src, cycles):
    def handler(regs, bus):
        _write_operand(regs, bus, dst, _read_operand(regs, bus, src))
        return cycles
    return handler


def _xchg(regs, bus):
    de = regs.get("de")
    regs.set("de", regs.get("hl"))
    regs.set("hl", de)
    return 4


def _xthl(regs, bus):
    top = bus.read_word(regs.sp)
    bus.write_word(regs.sp, regs.get("hl"))
    regs.set("hl", top)
    return 18


def _sphl(regs, bus):
    regs.sp = regs.get("hl")
    return 5


def data_transfer_table():
    """Return handlers for moves, loads, stores, exchanges and the NOPs."""
    table = {}
    for opcode in range(0x00, 0x40, 0x08):
        table[opcode] = _nop
    for index, pair in enumerate(_PAIRS):
        table[0x01 | index << 4] = _lxi(pair)
    table[0x02] = _stax("bc")
    table[0x12] = _stax("de")
    table[0x0A] = _ldax("bc")
    table[0x1A] = _ldax("de")
    table[0x22] = _shld
    table[0x2A] = _lhld
    table[0x32] = _sta
    table[0x3A] = _lda
    for code in range(8):
        table[0x06 | code << 3] = _mvi(code)
    for dst in range(8):
        for src in range(8):
            opcode = 0x40 | dst << 3 | src
            if opcode == _HLT:
                continue
            if dst == _M or src == _M:
                cycles = 7
            elif opcode == 0x40:
                cycles = 4
            else:
                cycles = 5
            table[opcode] = _mov(dst, src, cycles)
    table[0xEB] = _xchg
    table[0xE3] = _xthl
    table[0xF9] = _sphl
    return table


# --- arithmetic and logic ------------------------------------------------


def _inr(code):
    cycles = 10 if code == _M else 5

    def handler(regs, bus):
        _write_operand(regs, bus, code, alu.inr(regs.flags, _read_operand(regs, bus, code)))
        return cycles
    return handler


def _dcr(code):
    cycles = 10 if code == _M else 5

    def handler(regs, bus):
        _write_operand(regs, bus, code, alu.dcr(regs.flags, _read_operand(regs, bus, code)))
        return cycles
    return handler


def _inx(pair):
    def handler(regs, bus):
        regs.set(pair, regs.get(pair) + 1)
        return 5
    return handler


def _dcx(pair):
    def handler(regs, bus):
        regs.set(pair, regs.get(pair) - 1)
        return 5
    return handler


def _dad(pair):
    def handler(regs, bus):
        total = regs.get("hl") + regs.get(pair)
        regs.set("hl", total)
        regs.flags.carry = total > 0xFFFF
        return 10
    return handler


_OPERATIONS = (
    lambda flags, a, value: alu.add(flags, a, value),
    lambda flags, a, value: alu.add(flags, a, value, True),
    lambda flags, a, value: alu.sub(flags, a, value),
    lambda flags, a, value: alu.sub(flags, a, value, True),
    alu.ana,
    alu.xra,
    alu.ora,
    alu.compare,
)


def _alu_register(operation, code):
    cycles = 7 if code == _M else 4

    def handler(regs, bus):
        regs.a = operation(regs.flags, regs.a, _read_operand(regs, bus, code))
        return cycles
    return handler


def _alu_immediate(operation):
    def handler(regs, bus):
        regs.a = operation(regs.flags, regs.a, _fetch_byte(regs, bus))
        return 7
    return handler


def _rlc(regs, bus):
    carry = bool(regs.a & 0x80)
    regs.flags.carry = carry
    regs.a = ((regs.a << 1) | int(carry)) & 0xFF
    return 4


def _rrc(regs, bus):
    carry = bool(regs.a & 0x01)
    regs.flags.carry = carry
    regs.a = (regs.a >> 1) | (int(carry) << 7)
    return 4


def _ral(regs, bus):
    old = int(regs.flags.carry)
    regs.flags.carry = bool(regs.a & 0x80)
    regs.a = ((regs.a << 1) | old) & 0xFF
    return 4


def _rar(regs, bus):
    old = int(regs.flags.carry)
    regs.flags.carry = bool(regs.a & 0x01)
    regs.a = (regs.a >> 1) | (old << 7)
    return 4


def _daa(regs, bus):
    regs.a = alu.daa(regs.flags, regs.a)
    return 4


def _cma(regs, bus):
    regs.a ^= 0xFF
    return 4


def _stc(regs, bus):
    regs.flags.carry = True
    return 4


def _cmc(regs, bus):
    regs.flags.carry = not regs.flags.carry
    return 4


def arithmetic_table():
    """Return handlers for increments, additions, logic, rotates and flag ops."""
    table = {}
    for code in range(8):
        table[0x04 | code << 3] = _inr(code)
        table[0x05 | code << 3] = _dcr(code)
    for index, pair in enumerate(_PAIRS):
        table[0x03 | index << 4] = _inx(pair)
        table[0x0B | index << 4] = _dcx(pair)
        table[0x09 | index << 4] = _dad(pair)
    for op_index, operation in enumerate(_OPERATIONS):
        for code in range(8):
            table[0x80 | op_index << 3 | code] = _alu_register(operation, code)
        table[0xC6 | op_index << 3] = _alu_immediate(operation)
    table[0x07] = _rlc
    table[0x0F] = _rrc
    table[0x17] = _ral
    table[0x1F] = _rar
    table[0x27] = _daa
    table[0x2F] = _cma
    table[0x37] = _stc
    table[0x3F] = _cmc
    return table