# rk86emu

Pure-Python pieces for emulating the Radio-86RK home computer:

- `rk86emu.cpu`: an Intel 8080 (KR580VM80A) processor core, `I8080`. Each
  call to `step()` runs one instruction and returns the clock cycles it took.
  `branch_table()` returns the handlers for jumps, calls, returns, stack, I/O
  and interrupt control.
- `rk86emu.machine`: the `Bus` the processor talks to, which holds memory,
  I/O ports and the interrupt-enable line. It also has the `Registers` set,
  which can be packed into bytes and rebuilt from them.
- `rk86emu.alu`: the flags (`Flags`, with `pack`/`unpack`) and the
  arithmetic and logic operations. These are `parity`, `add`, `sub`,
  `compare`, `ana`, `xra`, `ora`, `inr`, `dcr` and `daa`.
- `rk86emu.instructions`: the opcode handler tables `data_transfer_table()`
  and `arithmetic_table()`.
- `rk86emu.rkfile`: RK tape images.
  - `parse_header` reads the start and end addresses, with or without a
    leading `0xE6` sync byte, and returns an `RkHeader`.
  - `load_rk` and `load_rk_file` copy the program into memory below `0x8000`.
- `rk86emu.ffs`: a small flash file system. `FlashFileSystem` runs over a
  `Flash` image and keeps a one-sector table of CRC-checked `FatEntry`
  records. Files are 4 KiB sectors with 8-character upper-case names.
- `rk86emu.storage`: a sector store (`FlashStorage`) and a block-device layer
  on top of it (`DiskIO`, `IoctlCommand`, `DiskError`).
- `rk86emu.palette`: VGA colour tables.
  - `rgb888`, `convert_color` and `background_color` handle colour conversion.
  - `default_palette` gives the 3-3-2 palettes and `text_palette` the 16
    text colours. `fast_text_palette` builds the two-pixel lookup table.
  - `PaletteCycler` steps through the preset text colour schemes.
- `rk86emu.crc8`: the CRC-8 (polynomial `0x2F`) used by the file system.

The package has no dependencies outside the standard library. It supports
Python 3.10 and later.

## Running a program

```python
from rk86emu.cpu import I8080
from rk86emu.machine import Bus
from rk86emu.rkfile import load_rk_file

memory = bytearray(0x10000)
bus = Bus(memory)
cpu = I8080(bus)

start = load_rk_file("game.rk", memory)
cpu.jump(start)

cycles = 0
while cycles < 1_000_000:
    cycles += cpu.step()
```

`I8080.reset()` does two things:

- it clears the flags;
- it sets the program counter to `0xF800`, the monitor entry point.

The other registers keep their values. `save_state()` returns the registers,
flags and interrupt flip-flop as bytes, and `load_state()` restores them.

`Bus` addresses wrap at 64 KiB. Memory smaller than that reads as `0xFF`
past its end and ignores writes there. Ports hold the last value written to
them and read as `0xFF` until then.

Subclass `Bus` to attach devices:

- override `io_input` and `io_output` for the `IN` and `OUT` instructions;
- override `set_interrupts` to see `EI` and `DI`.

`load_rk` and `load_rk_file` raise `RkFileError` in these cases:

- the header is bad;
- the image is shorter than its header says;
- the file cannot be opened.

## The flash file system

```python
from rk86emu.ffs import FileType, Flash, FlashFileSystem

fs = FlashFileSystem(Flash(1024 * 1024))
fs.write("HELLO.RK", FileType.TAPE, b"\x00\x00\x00\x03\xc3\x00\xf8")

n = fs.find("hello")
print(fs.name(n), fs.read(n, 0, 4))
print(fs.free(), "bytes free of", fs.size())
```

Names are cut at the first dot, limited to eight characters and compared in
upper case. `find` returns `None` when no file matches.

`create`, `write` and `rename` raise `FfsError` when the table is full.
`create` and `write` also raise it when no run of free sectors is long enough.

When the file system is opened, table entries with a bad CRC or an
out-of-range position are dropped. If that leaves the table nearly full, the
table is compacted and rewritten.

## Sector storage

```python
from rk86emu.storage import DiskIO, FlashStorage, IoctlCommand

disk = DiskIO(FlashStorage(sectors=128, sector_size=4096))
disk.write(0, bytes(4096))
data = disk.read(0, 1)
count = disk.ioctl(IoctlCommand.GET_SECTOR_COUNT)
```

A `FlashStorage` write at offset 0 erases the sector before programming it.

`DiskIO.ioctl` answers these commands:

- `CTRL_SYNC` returns `None`;
- `GET_SECTOR_COUNT` returns the number of sectors;
- `GET_BLOCK_SIZE` returns `1`.

Any other command, and any out-of-range read or write, raises `DiskError`.

## Checksums

```python
from rk86emu.crc8 import crc8

checksum = crc8(b"RADIO-86RK", 0xFF)
```

Run a record followed by its own CRC through `crc8` from the same starting
value and the result is zero.

## What is not included

This is a library of parts, not a complete emulator:

- There is no command-line program, window or screen output. The palette
  module builds colour tables but does not draw anything.
- There is no keyboard handling, file manager or monitor ROM image.
- `DiskIO` is only the block-device layer. There is no FAT file system driver
  on top of it.