"""A small flat file system stored in SPI flash after the firmware image."""

import struct
from dataclasses import dataclass, field, replace
from enum import IntEnum

from .crc8 import CRC8_OK, crc8

FFS_AT = 0x80000
SECTOR_SIZE = 4096
ENTRY_SIZE = 16
FAT_SIZE = SECTOR_SIZE // ENTRY_SIZE
FAT_BYTES = FAT_SIZE * ENTRY_SIZE
NAME_LENGTH = 8
MAX_FILE_SIZE = 0xFFFF

_ENTRY = struct.Struct("<HH8sBBBB")
_ERASED_ENTRY = b"\xff" * ENTRY_SIZE
_CLEANUP_FREE_THRESHOLD = 32
_FLASH_MAGIC = 0xE9

# Flash size code stored in the upper nibble of the fourth header byte.
_SIZE_BY_CODE = {3: 2048 * 1024, 4: 4096 * 1024}
_DEFAULT_FLASH_SIZE = 1024 * 1024


class FfsError(Exception):
    """Raised when the flash file system cannot carry out a request."""


class FileType(IntEnum):
    REMOVED = 0
    TAPE = 1
    ANY = 2
    FREE = 0xFF


@dataclass
class FatEntry:
    """One 16-byte record of the file allocation table."""

    page: int = 0xFFFF
    size: int = 0xFFFF
    name: bytes = field(default=b"\xff" * NAME_LENGTH)
    name_end: int = 0xFF
    file_type: int = FileType.FREE
    reserved: int = 0xFF
    crc: int = 0xFF

    def pack(self):
        """Return the on-flash representation of the entry."""
        return _ENTRY.pack(
            self.page,
            self.size,
            bytes(self.name),
            self.name_end,
            int(self.file_type),
            self.reserved,
            self.crc,
        )

    @classmethod
    def unpack(cls, raw):
        """Build an entry from its 16-byte on-flash representation."""
        if len(raw) != ENTRY_SIZE:
            raise FfsError(f"FAT entry must be {ENTRY_SIZE} bytes, got {len(raw)}")
        page, size, name, name_end, file_type, reserved, crc = _ENTRY.unpack(bytes(raw))
        return cls(page, size, name, name_end, file_type, reserved, crc)

    @property
    def is_erased(self):
        return self.pack() == _ERASED_ENTRY

    @property
    def in_use(self):
        return self.file_type not in (FileType.REMOVED, FileType.FREE)

    @property
    def sectors(self):
        return (self.size + SECTOR_SIZE - 1) // SECTOR_SIZE


def _sealed(entry):
    entry.crc = crc8(entry.pack()[:-1])
    return entry


def _convert_name(name):
    """Turn a file name into the 8-byte upper-case stem stored in the FAT."""
    raw = name.encode("latin-1") if isinstance(name, str) else bytes(name)
    stem = raw.split(b".", 1)[0].split(b"\0", 1)[0][:NAME_LENGTH]
    return stem.upper().ljust(NAME_LENGTH, b"\0")


class Flash:
    """An in-memory NOR flash: erasing sets bytes to 0xFF, writing clears bits."""

    def __init__(self, size):
        if size <= 0 or size % SECTOR_SIZE:
            raise ValueError(f"flash size must be a positive multiple of {SECTOR_SIZE}")
        self.size = size
        self._data = bytearray(b"\xff") * size
        code = next((c for c, s in _SIZE_BY_CODE.items() if s == size), 2)
        self._data[0:4] = bytes([_FLASH_MAGIC, 1, 0, code << 4])

    def _check(self, addr, size):
        if addr < 0 or size < 0 or addr + size > self.size:
            raise FfsError(f"flash access 0x{addr:X}+{size} out of range")

    def read(self, addr, size):
        self._check(addr, size)
        return bytes(self._data[addr:addr + size])

    def write(self, addr, data):
        data = bytes(data)
        self._check(addr, len(data))
        current = self._data[addr:addr + len(data)]
        self._data[addr:addr + len(data)] = bytes(a & b for a, b in zip(current, data))

    def erase_sector(self, sector):
        addr = sector * SECTOR_SIZE
        self._check(addr, SECTOR_SIZE)
        self._data[addr:addr + SECTOR_SIZE] = b"\xff" * SECTOR_SIZE


class FlashFileSystem:
    """Files stored as contiguous runs of 4 KiB sectors after a one-sector FAT."""

    def __init__(self, flash):
        self._flash = flash
        flags2 = flash.read(3, 1)[0]
        total = _SIZE_BY_CODE.get(flags2 >> 4, _DEFAULT_FLASH_SIZE)
        sectors = (total - FFS_AT - FAT_BYTES) // SECTOR_SIZE
        self._sectors = sectors & ~0x07

        raw = self._read(0, FAT_BYTES)
        self._fat = [
            FatEntry.unpack(raw[offset:offset + ENTRY_SIZE])
            for offset in range(0, FAT_BYTES, ENTRY_SIZE)
        ]

        n_free = n_removed = 0
        for entry in self._fat:
            if entry.is_erased:
                n_free += 1
                continue
            if (
                crc8(entry.pack()) != CRC8_OK
                or entry.page >= self._sectors
                or entry.page + entry.sectors > self._sectors
            ):
                entry.file_type = FileType.REMOVED
                n_removed += 1

        self._free = [True] * self._sectors
        for entry in self._fat:
            if entry.in_use:
                self._mark(entry.page, entry.sectors, free=False)

        if n_free < _CLEANUP_FREE_THRESHOLD and n_removed > 0:
            self._fat = [
                FatEntry() if entry.file_type == FileType.REMOVED else entry
                for entry in self._fat
            ]
            self._erase(0)
            self._write(0, b"".join(entry.pack() for entry in self._fat))

    def _read(self, pos, size):
        return self._flash.read(FFS_AT + pos, size)

    def _write(self, pos, data):
        self._flash.write(FFS_AT + pos, data)

    def _erase(self, pos):
        self._flash.erase_sector((FFS_AT + pos) // SECTOR_SIZE)

    def _write_entry(self, n):
        self._write(n * ENTRY_SIZE, self._fat[n].pack())

    def _mark(self, page, count, free):
        for sector in range(page, page + count):
            self._free[sector] = free

    def _free_slot(self):
        for n, entry in enumerate(self._fat):
            if entry.file_type == FileType.FREE:
                return n
        raise FfsError("file table is full")

    def _find_run(self, count):
        need = max(count, 1)
        start = None
        for sector, free in enumerate(self._free):
            if not free:
                start = None
                continue
            if start is None:
                start = sector
            if sector - start + 1 >= need:
                return start
        raise FfsError("not enough free space")

    def _data_addr(self, n, offset):
        return FAT_BYTES + self._fat[n].page * SECTOR_SIZE + offset

    def image_at(self):
        """Flash address where the file system image starts."""
        return FFS_AT

    def image_size(self):
        """Size of the whole image, table included."""
        return self._sectors * SECTOR_SIZE + FAT_BYTES

    def size(self):
        """Capacity available to file data, in bytes."""
        return self._sectors * SECTOR_SIZE

    def free(self):
        """Bytes in sectors not owned by any file."""
        return sum(self._free) * SECTOR_SIZE

    def read(self, n, offset, size):
        """Read ``size`` bytes of file ``n`` starting at ``offset``."""
        return self._read(self._data_addr(n, offset), size)

    def create(self, name, file_type, size):
        """Allocate a file table entry and space for ``size`` bytes; return its index."""
        if not 0 <= size <= MAX_FILE_SIZE:
            raise ValueError(f"file size must be within 0..{MAX_FILE_SIZE}")
        n = self._free_slot()
        count = (size + SECTOR_SIZE - 1) // SECTOR_SIZE
        page = self._find_run(count)

        entry = replace(
            self._fat[n],
            name=_convert_name(name),
            page=page,
            size=size,
            file_type=int(file_type),
            reserved=0,
        )
        self._fat[n] = _sealed(entry)
        self._write_entry(n)
        self._mark(page, count, free=False)
        return n

    def write_data(self, n, offset, data):
        """Write ``data`` into file ``n``, erasing each sector as it is entered."""
        data = bytes(data)
        padded = (len(data) + 3) & ~0x03
        data = data.ljust(padded, b"\xff")
        position = 0
        while position < len(data):
            addr = self._data_addr(n, offset + position)
            if addr % SECTOR_SIZE == 0:
                self._erase(addr)
            chunk = min(SECTOR_SIZE - addr % SECTOR_SIZE, len(data) - position)
            self._write(addr, data[position:position + chunk])
            position += chunk

    def write(self, name, file_type, data):
        """Create a file holding ``data``; return its index."""
        n = self.create(name, file_type, len(data))
        self.write_data(n, 0, data)
        return n

    def find(self, name):
        """Return the index of the file with this name, or None."""
        wanted = _convert_name(name)
        for n, entry in enumerate(self._fat):
            if entry.in_use and entry.name == wanted:
                return n
        return None

    def flash_addr(self, n):
        """Absolute flash address of the data of file ``n``."""
        return FFS_AT + self._data_addr(n, 0)

    def remove(self, n):
        """Mark file ``n`` removed and release its sectors."""
        entry = self._fat[n]
        entry.file_type = FileType.REMOVED
        self._write_entry(n)
        self._mark(entry.page, entry.sectors, free=True)

    def rename(self, n, name):
        """Move file ``n`` to a new table entry under ``name``; return the new index."""
        new_n = self._free_slot()
        old = self._fat[n]
        self._fat[new_n] = _sealed(replace(old, name=_convert_name(name)))
        old.file_type = FileType.REMOVED
        self._write_entry(new_n)
        self._write_entry(n)
        return new_n

    def name(self, n):
        """Stored name of file ``n``."""
        return self._fat[n].name.split(b"\0", 1)[0].decode("latin-1")