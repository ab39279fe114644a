import pytest
from hypothesis import given, settings, strategies as st

from rk86emu.crc8 import CRC8_OK, crc8
from rk86emu.ffs import (
    ENTRY_SIZE,
    FAT_SIZE,
    FFS_AT,
    SECTOR_SIZE,
    FatEntry,
    FfsError,
    FileType,
    Flash,
    FlashFileSystem,
)

MEGABYTE = 1024 * 1024


@pytest.fixture
def flash():
    return Flash(MEGABYTE)


@pytest.fixture
def fs(flash):
    return FlashFileSystem(flash)


def _entry_with_crc(**fields):
    entry = FatEntry(**fields)
    entry.crc = crc8(entry.pack()[:-1])
    return entry


def test_fresh_file_system_is_empty(fs):
    assert fs.free() == fs.size()
    assert fs.image_at() == FFS_AT
    assert fs.image_size() == fs.size() + SECTOR_SIZE
    assert fs.size() % (8 * SECTOR_SIZE) == 0
    assert fs.size() > 0


def test_larger_flash_gives_more_space():
    small = FlashFileSystem(Flash(MEGABYTE))
    large = FlashFileSystem(Flash(4 * MEGABYTE))
    assert large.size() > small.size()


def test_write_and_read_back(fs):
    data = bytes(range(256)) * 20
    n = fs.write("game.rk", FileType.TAPE, data)
    assert fs.read(n, 0, len(data)) == data
    assert fs.read(n, 100, 10) == data[100:110]


def test_find_ignores_case_and_extension(fs):
    n = fs.write("game.rk", FileType.TAPE, b"abcd")
    assert fs.find("GAME") == n
    assert fs.find("Game.gam") == n
    assert fs.find("missing") is None
    assert fs.name(n) == "GAME"


def test_long_names_are_cut_to_eight_characters(fs):
    n = fs.write("verylongname.rk", FileType.ANY, b"")
    assert fs.name(n) == "VERYLONG"
    assert fs.find("verylong") == n


def test_space_is_taken_in_whole_sectors(fs):
    fs.write("a", FileType.TAPE, b"x" * (SECTOR_SIZE + 1))
    assert fs.free() == fs.size() - 2 * SECTOR_SIZE


def test_remove_releases_space(fs):
    n = fs.write("a", FileType.TAPE, b"x" * 5000)
    fs.remove(n)
    assert fs.find("a") is None
    assert fs.free() == fs.size()


def test_rename_moves_entry(fs):
    data = b"payload!"
    old = fs.write("old", FileType.TAPE, data)
    new = fs.rename(old, "new")
    assert new != old
    assert fs.find("new") == new
    assert fs.find("old") is None
    assert fs.read(new, 0, len(data)) == data


def test_files_survive_remount(flash, fs):
    data = b"persisted data"
    n = fs.write("keep", FileType.TAPE, data)
    fs.write("gone", FileType.TAPE, b"1234")
    fs.remove(fs.find("gone"))
    reopened = FlashFileSystem(flash)
    assert reopened.find("keep") == n
    assert reopened.find("gone") is None
    assert reopened.read(n, 0, len(data)) == data
    assert reopened.free() == fs.free()


def test_created_entry_carries_valid_crc(flash, fs):
    n = fs.create("x", FileType.ANY, 10)
    raw = flash.read(FFS_AT + n * ENTRY_SIZE, ENTRY_SIZE)
    assert crc8(raw) == CRC8_OK
    assert FatEntry.unpack(raw).file_type == FileType.ANY


def test_flash_addr_points_at_data(flash, fs):
    data = b"ROMDATA!"
    n = fs.write("rom", FileType.ANY, data)
    assert flash.read(fs.flash_addr(n), len(data)) == data


def test_write_data_into_created_file(fs):
    n = fs.create("blank", FileType.TAPE, 100)
    fs.write_data(n, 0, b"hello")
    assert fs.read(n, 0, 5) == b"hello"


def test_entry_with_bad_crc_is_ignored(flash):
    entry = _entry_with_crc(page=0, size=10, name=b"BAD\0\0\0\0\0", file_type=FileType.TAPE, reserved=0)
    entry.crc ^= 1
    flash.write(FFS_AT, entry.pack())
    fs = FlashFileSystem(flash)
    assert fs.find("bad") is None
    assert fs.free() == fs.size()


def test_entry_past_end_is_ignored(flash):
    probe = FlashFileSystem(Flash(MEGABYTE))
    entry = _entry_with_crc(
        page=probe.size() // SECTOR_SIZE, size=10, name=b"FAR\0\0\0\0\0",
        file_type=FileType.TAPE, reserved=0,
    )
    flash.write(FFS_AT, entry.pack())
    assert FlashFileSystem(flash).find("far") is None


def test_valid_raw_entry_is_recognised(flash):
    entry = _entry_with_crc(page=0, size=5000, name=b"GOOD\0\0\0\0", file_type=FileType.TAPE, reserved=0)
    flash.write(FFS_AT, entry.pack())
    fs = FlashFileSystem(flash)
    assert fs.find("good") == 0
    assert fs.free() == fs.size() - 2 * SECTOR_SIZE


def test_running_out_of_space(fs):
    with pytest.raises(FfsError):
        while True:
            fs.create("big", FileType.TAPE, 0xFFFF)
    assert fs.free() < 16 * SECTOR_SIZE


def test_file_size_limit(fs):
    with pytest.raises(ValueError):
        fs.create("huge", FileType.TAPE, 0x10000)


def test_table_full_and_cleanup_on_remount(flash, fs):
    for index in range(FAT_SIZE):
        fs.create(f"F{index}", FileType.ANY, 0)
    with pytest.raises(FfsError):
        fs.create("extra", FileType.ANY, 0)
    fs.remove(5)
    with pytest.raises(FfsError):
        fs.create("extra", FileType.ANY, 0)
    reopened = FlashFileSystem(flash)
    assert reopened.create("extra", FileType.ANY, 0) == 5
    assert reopened.find("F6") == 6


@settings(max_examples=20, deadline=None)
@given(st.binary(max_size=9000))
def test_round_trip_any_data(data):
    fs = FlashFileSystem(Flash(MEGABYTE))
    n = fs.write("data", FileType.ANY, data)
    assert fs.read(n, 0, len(data)) == data


@given(
    st.integers(0, 0xFFFF), st.integers(0, 0xFFFF), st.binary(min_size=8, max_size=8),
    st.integers(0, 255), st.integers(0, 255), st.integers(0, 255), st.integers(0, 255),
)
def test_entry_pack_round_trip(page, size, name, name_end, file_type, reserved, crc):
    entry = FatEntry(page, size, name, name_end, file_type, reserved, crc)
    raw = entry.pack()
    assert len(raw) == ENTRY_SIZE
    assert FatEntry.unpack(raw) == entry


def test_default_entry_is_erased():
    assert FatEntry().pack() == b"\xff" * ENTRY_SIZE


def test_unpack_rejects_wrong_length():
    with pytest.raises(FfsError):
        FatEntry.unpack(b"\x00" * 15)


def test_flash_write_only_clears_bits():
    flash = Flash(MEGABYTE)
    flash.write(SECTOR_SIZE, b"\xf0")
    flash.write(SECTOR_SIZE, b"\x0f")
    assert flash.read(SECTOR_SIZE, 1) == b"\x00"
    flash.erase_sector(1)
    assert flash.read(SECTOR_SIZE, 1) == b"\xff"


def test_flash_bounds_are_checked():
    flash = Flash(MEGABYTE)
    with pytest.raises(FfsError):
        flash.read(MEGABYTE - 1, 2)
    with pytest.raises(ValueError):
        Flash(1000)