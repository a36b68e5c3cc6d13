import pytest

from rtcremote.bufferutil import ByteReader, pack_float, pack_u16, pack_u32


def test_pack_u32_is_big_endian():
    assert pack_u32(0x01020304) == b"\x01\x02\x03\x04"


def test_pack_u16_is_big_endian():
    assert pack_u16(0x0102) == b"\x01\x02"


def test_pack_truncates_to_width():
    assert pack_u16(0x12345) == pack_u16(0x2345)
    assert pack_u32(0x1_0000_0001) == pack_u32(1)


def test_pack_float_size():
    assert len(pack_float(0.5)) == 4


@pytest.mark.parametrize("value", [0, 1, 255, 256, 0xFFFF])
def test_u16_round_trip(value):
    reader = ByteReader(pack_u16(value))
    assert reader.read_u16() == value
    assert reader.remaining() == 0


@pytest.mark.parametrize("value", [0, 1, 0x7FFFFFFF, 0xFFFFFFFF, 123456789])
def test_u32_round_trip(value):
    reader = ByteReader(pack_u32(value))
    assert reader.read_u32() == value
    assert reader.remaining() == 0


def test_u64_reads_two_u32_msb_first():
    reader = ByteReader(pack_u32(7) + pack_u32(9))
    assert reader.read_u64() == (7 << 32) | 9


@pytest.mark.parametrize("value", [0.0, 0.5, -0.25, 1.0, 1024.0])
def test_float_round_trip_exact(value):
    assert ByteReader(pack_float(value)).read_float() == value


def test_float_round_trip_approximate():
    assert ByteReader(pack_float(0.1)).read_float() == pytest.approx(0.1, rel=1e-6)


def test_sequential_reads_and_remaining():
    reader = ByteReader(pack_u16(5) + pack_u32(6) + pack_float(0.75))
    assert reader.remaining() == 10
    assert reader.read_u16() == 5
    assert reader.remaining() == 8
    assert reader.read_u32() == 6
    assert reader.read_float() == 0.75
    assert reader.remaining() == 0


def test_short_read_raises():
    reader = ByteReader(b"\x00\x01\x02")
    with pytest.raises(EOFError):
        reader.read_u32()


def test_short_read_does_not_consume():
    reader = ByteReader(b"\x00\x01\x02")
    with pytest.raises(EOFError):
        reader.read_u32()
    assert reader.read_u16() == 1
    assert reader.remaining() == 1