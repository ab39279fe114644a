import pytest
from hypothesis import given, strategies as st

from rk86emu.storage import DiskError, DiskIO, FlashStorage, IoctlCommand


@pytest.fixture
def storage():
    return FlashStorage(sectors=8, sector_size=512)


def test_default_geometry():
    assert FlashStorage().size() == (4096, 128)


def test_fresh_storage_is_erased(storage):
    assert storage.read(0, 0, 512) == b"\xff" * 512


def test_write_then_read(storage):
    assert storage.write(2, 0, b"hello") == 5
    assert storage.read(2, 0, 5) == b"hello"


def test_write_at_offset_zero_erases_sector(storage):
    storage.write(1, 0, b"\x00" * 512)
    storage.write(1, 0, b"\xaa")
    data = storage.read(1, 0, 512)
    assert data[0] == 0xAA
    assert data[1:] == b"\xff" * 511


def test_write_at_offset_only_clears_bits(storage):
    storage.write(3, 0, b"")
    storage.write(3, 10, b"\xf0")
    storage.write(3, 10, b"\x0f")
    assert storage.read(3, 10, 1) == b"\x00"


def test_out_of_range(storage):
    with pytest.raises(ValueError):
        storage.read(8, 0, 1)
    with pytest.raises(ValueError):
        storage.write(7, 511, b"ab")


def test_disk_status(storage):
    disk = DiskIO(storage)
    assert disk.initialize() == 0
    assert disk.status() == 0


@given(st.integers(0, 5), st.binary(min_size=512 * 2, max_size=512 * 2))
def test_disk_round_trip(sector, data):
    disk = DiskIO(FlashStorage(sectors=8, sector_size=512))
    disk.write(sector, data)
    assert disk.read(sector, 2) == data


def test_disk_rewrite_multiple_sectors(storage):
    disk = DiskIO(storage)
    disk.write(0, b"\x00" * 1024)
    disk.write(0, b"\x5a" * 1024)
    assert disk.read(0, 2) == b"\x5a" * 1024


def test_disk_read_past_end(storage):
    with pytest.raises(DiskError):
        DiskIO(storage).read(7, 2)


def test_disk_write_requires_whole_sectors(storage):
    with pytest.raises(DiskError):
        DiskIO(storage).write(0, b"abc")


def test_ioctl_answers(storage):
    disk = DiskIO(storage)
    assert disk.ioctl(IoctlCommand.GET_SECTOR_COUNT) == storage.size()[1]
    assert disk.ioctl(IoctlCommand.GET_BLOCK_SIZE) == 1
    assert disk.ioctl(IoctlCommand.CTRL_SYNC) is None


@pytest.mark.parametrize("command", [IoctlCommand.CTRL_TRIM, IoctlCommand.GET_SECTOR_SIZE, 99])
def test_ioctl_unsupported(storage, command):
    with pytest.raises(DiskError):
        DiskIO(storage).ioctl(command)