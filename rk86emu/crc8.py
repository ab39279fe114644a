"""CRC-8 with polynomial 0x2F, as used to protect flash file table entries."""

CRC8_INIT = 0xFF
CRC8_OK = 0x00

_POLYNOMIAL = 0x2F


def _build_table():
    table = []
    for value in range(256):
        crc = value
        for _ in range(8):
            crc = ((crc << 1) ^ (_POLYNOMIAL if crc & 0x80 else 0)) & 0xFF
        table.append(crc)
    return tuple(table)


_TABLE = _build_table()


def crc8(data, crc=CRC8_INIT):
    """Return the CRC-8 of ``data``, continuing from ``crc``.

    Appending the result to the data makes the CRC of the whole equal to
    ``CRC8_OK``.
    """
    for byte in data:
        crc = _TABLE[(crc ^ byte) & 0xFF]
    return crc