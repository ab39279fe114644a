"""Flag handling and arithmetic/logic operations of the 8080 processor."""

from dataclasses import dataclass

F_CARRY = 0x01
F_UN1 = 0x02
F_PARITY = 0x04
F_UN3 = 0x08
F_HCARRY = 0x10
F_UN5 = 0x20
F_ZERO = 0x40
F_NEG = 0x80

_PARITY = tuple(bin(value).count("1") % 2 == 0 for value in range(256))

# Indexed by (a bit 3, operand bit 3, result bit 3).
_HALF_CARRY = (False, False, True, False, True, False, True, True)
_SUB_HALF_CARRY = (False, True, True, True, False, False, False, True)


@dataclass
class Flags:
    """The five condition flags of the processor."""

    sign: bool = False
    zero: bool = False
    half_carry: bool = False
    parity: bool = False
    carry: bool = False

    def pack(self):
        """Return the flag byte as pushed by PUSH PSW."""
        value = F_UN1
        if self.sign:
            value |= F_NEG
        if self.zero:
            value |= F_ZERO
        if self.half_carry:
            value |= F_HCARRY
        if self.parity:
            value |= F_PARITY
        if self.carry:
            value |= F_CARRY
        return value

    @classmethod
    def unpack(cls, value):
        """Build flags from a flag byte as popped by POP PSW."""
        return cls(
            sign=bool(value & F_NEG),
            zero=bool(value & F_ZERO),
            half_carry=bool(value & F_HCARRY),
            parity=bool(value & F_PARITY),
            carry=bool(value & F_CARRY),
        )


def parity(value):
    """True when the byte has an even number of set bits."""
    return _PARITY[value & 0xFF]


def _set_szp(flags, result):
    flags.sign = bool(result & 0x80)
    flags.zero = result == 0
    flags.parity = _PARITY[result]


def _index(a, value, work):
    return (((a & 0x88) >> 1) | ((value & 0x88) >> 2) | ((work & 0x88) >> 3)) & 0x7


def add(flags, a, value, carry_in=False):
    """Add ``value`` (and the carry when ``carry_in``) to ``a``; return the new A."""
    work = a + value + (1 if carry_in and flags.carry else 0)
    result = work & 0xFF
    _set_szp(flags, result)
    flags.half_carry = _HALF_CARRY[_index(a, value, work)]
    flags.carry = bool(work & 0x100)
    return result


def _subtract(flags, a, value, borrow):
    work = (a - value - borrow) & 0xFFFF
    flags.half_carry = not _SUB_HALF_CARRY[_index(a, value, work)]
    flags.carry = bool(work & 0x100)
    result = work & 0xFF
    _set_szp(flags, result)
    return result


def sub(flags, a, value, borrow_in=False):
    """Subtract ``value`` (and the carry when ``borrow_in``) from ``a``; return the new A."""
    return _subtract(flags, a, value, 1 if borrow_in and flags.carry else 0)


def compare(flags, a, value):
    """Set the flags as ``sub`` would, leaving A unchanged; return A."""
    _subtract(flags, a, value, 0)
    return a


def ana(flags, a, value):
    """Logical AND; return the new A."""
    flags.half_carry = bool((a | value) & 0x08)
    result = a & value & 0xFF
    _set_szp(flags, result)
    flags.carry = False
    return result


def xra(flags, a, value):
    """Logical exclusive OR; return the new A."""
    result = (a ^ value) & 0xFF
    _set_szp(flags, result)
    flags.half_carry = False
    flags.carry = False
    return result


def ora(flags, a, value):
    """Logical OR; return the new A."""
    result = (a | value) & 0xFF
    _set_szp(flags, result)
    flags.half_carry = False
    flags.carry = False
    return result


def inr(flags, value):
    """Increment a byte, leaving the carry untouched; return the result."""
    result = (value + 1) & 0xFF
    _set_szp(flags, result)
    flags.half_carry = (result & 0x0F) == 0
    return result


def dcr(flags, value):
    """Decrement a byte, leaving the carry untouched; return the result."""
    result = (value - 1) & 0xFF
    _set_szp(flags, result)
    flags.half_carry = (result & 0x0F) != 0x0F
    return result


def daa(flags, a):
    """Decimal-adjust A after a BCD addition; return the new A."""
    carry = flags.carry
    low = a & 0x0F
    high = a >> 4
    correction = 0
    if flags.half_carry or low > 9:
        correction = 0x06
    if flags.carry or high > 9 or (high >= 9 and low > 9):
        correction |= 0x60
        carry = True
    result = add(flags, a, correction)
    flags.parity = _PARITY[result]
    flags.carry = carry
    return result