"""Sector storage in flash and the block-device layer a FAT driver talks to."""

from enum import IntEnum

DEFAULT_SECTOR_SIZE = 4096
DEFAULT_SECTORS = 128

STA_NOINIT = 0x01
STA_NODISK = 0x02
STA_PROTECT = 0x04


class DiskError(Exception):
    """Raised when a block-device request fails."""


class IoctlCommand(IntEnum):
    CTRL_SYNC = 0
    GET_SECTOR_COUNT = 1
    GET_SECTOR_SIZE = 2
    GET_BLOCK_SIZE = 3
    CTRL_TRIM = 4
    CTRL_POWER = 5
    CTRL_LOCK = 6
    CTRL_EJECT = 7
    CTRL_FORMAT = 8
    MMC_GET_TYPE = 10
    MMC_GET_CSD = 11
    MMC_GET_CID = 12
    MMC_GET_OCR = 13
    MMC_GET_SDSTAT = 14
    ATA_GET_REV = 20
    ATA_GET_MODEL = 21
    ATA_GET_SN = 22
    ISDIO_READ = 55
    ISDIO_WRITE = 56
    ISDIO_MRITE = 57


class FlashStorage:
    """A run of flash sectors; a write at offset 0 erases its sector first."""

    def __init__(self, sectors=DEFAULT_SECTORS, sector_size=DEFAULT_SECTOR_SIZE):
        if sectors <= 0 or sector_size <= 0:
            raise ValueError("sector count and size must be positive")
        self.sectors = sectors
        self.sector_size = sector_size
        self._data = bytearray(b"\xff") * (sectors * sector_size)

    def size(self):
        """Return ``(block_size, block_count)``."""
        return self.sector_size, self.sectors

    def _address(self, sector, offset, size):
        start = sector * self.sector_size + offset
        if not 0 <= sector < self.sectors or offset < 0 or size < 0 or start + size > len(self._data):
            raise ValueError(f"access to sector {sector} offset {offset} size {size} out of range")
        return start

    def read(self, sector, offset, size):
        start = self._address(sector, offset, size)
        return bytes(self._data[start:start + size])

    def write(self, sector, offset, data):
        """Program ``data``; return the number of bytes written."""
        data = bytes(data)
        start = self._address(sector, offset, len(data))
        if offset == 0:
            base = sector * self.sector_size
            self._data[base:base + self.sector_size] = b"\xff" * self.sector_size
        current = self._data[start:start + len(data)]
        self._data[start:start + len(data)] = bytes(a & b for a, b in zip(current, data))
        return len(data)


class DiskIO:
    """Block-device operations over a :class:`FlashStorage`."""

    def __init__(self, storage):
        self._storage = storage

    def initialize(self):
        """Storage needs no set-up; return the status bits (none set)."""
        return 0

    def status(self):
        """Storage is always present and ready; return the status bits (none set)."""
        return 0

    def read(self, sector, count):
        size = self._storage.sector_size * count
        try:
            data = self._storage.read(sector, 0, size)
        except ValueError as exc:
            raise DiskError(str(exc)) from exc
        if len(data) != size:
            raise DiskError(f"short read: {len(data)} of {size} bytes")
        return data

    def write(self, sector, data):
        data = bytes(data)
        sector_size = self._storage.sector_size
        if len(data) % sector_size:
            raise DiskError(f"data length must be a multiple of {sector_size}")
        for index in range(len(data) // sector_size):
            chunk = data[index * sector_size:(index + 1) * sector_size]
            try:
                written = self._storage.write(sector + index, 0, chunk)
            except ValueError as exc:
                raise DiskError(str(exc)) from exc
            if written != sector_size:
                raise DiskError(f"short write: {written} of {sector_size} bytes")

    def ioctl(self, command):
        """Answer a control request; unsupported commands raise DiskError."""
        try:
            command = IoctlCommand(command)
        except ValueError as exc:
            raise DiskError(f"unknown ioctl command {command}") from exc
        if command is IoctlCommand.CTRL_SYNC:
            return None
        if command is IoctlCommand.GET_SECTOR_COUNT:
            return self._storage.size()[1]
        if command is IoctlCommand.GET_BLOCK_SIZE:
            return 1
        raise DiskError(f"unsupported ioctl command {command.name}")