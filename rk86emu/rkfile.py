"""Loading of Radio-86RK tape images (.rk files) into machine memory."""

from dataclasses import dataclass
from pathlib import Path

SYNC_BYTE = 0xE6
MEMORY_LIMIT = 0x8000


class RkFileError(Exception):
    """Raised when a tape image cannot be loaded."""


@dataclass(frozen=True)
class RkHeader:
    """Load address range of a tape image and the length of its header."""

    start: int
    end: int
    length: int

    @property
    def size(self):
        return self.end - self.start + 1


def parse_header(data):
    """Parse and check the address header at the start of a tape image."""
    data = bytes(data)
    length = 5 if data[:1] == bytes([SYNC_BYTE]) else 4
    if len(data) < length:
        raise RkFileError("Unable to read header")
    fields = data[length - 4:length]
    start = int.from_bytes(fields[0:2], "big")
    end = int.from_bytes(fields[2:4], "big")
    if end < start or start >= MEMORY_LIMIT or end + 1 > MEMORY_LIMIT:
        raise RkFileError(f"Wrong header: {start:04X},{end:04X}")
    return RkHeader(start, end, length)


def load_rk(data, memory):
    """Copy the body of a tape image into ``memory``; return the start address."""
    data = bytes(data)
    header = parse_header(data)
    body = data[header.length:header.length + header.size]
    if len(body) < header.size:
        raise RkFileError(
            f"Unable to read from position: {header.length + len(body)} (of {header.size})"
        )
    if len(memory) <= header.end:
        raise ValueError("memory is too small for this image")
    memory[header.start:header.end + 1] = body
    return header.start


def load_rk_file(path, memory):
    """Read a tape image file and load it into ``memory``; return the start address."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise RkFileError(f"Unable to open: {path}") from exc
    return load_rk(data, memory)