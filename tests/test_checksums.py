import zlib

import pytest

from rmiiudp.checksums import CRC32, CRC32_RESIDUE, InternetChecksum
from rmiiudp.types import get_bits


def _crc_of(data):
    crc = CRC32()
    for byte in data:
        crc.add(byte)
    return crc


@pytest.mark.parametrize("data", [b"", b"a", b"123456789", bytes(range(64))])
def test_crc_matches_reference(data):
    expected = zlib.crc32(data)
    value = _crc_of(data).value
    assert value.to_bytes(4, "big") == expected.to_bytes(4, "little")


@pytest.mark.parametrize("data", [b"x", b"hello frame", bytes(range(100))])
def test_residue_after_fcs(data):
    crc = _crc_of(data)
    fcs = crc.value
    for high in (31, 23, 15, 7):
        crc.add(get_bits(fcs, high, high - 7))
    assert crc.accumulator == CRC32_RESIDUE
    assert crc.is_good


def test_corrupted_fcs_is_not_good():
    crc = _crc_of(b"payload")
    fcs = crc.value ^ 1
    for high in (31, 23, 15, 7):
        crc.add(get_bits(fcs, high, high - 7))
    assert not crc.is_good


def test_crc_reset():
    crc = _crc_of(b"abc")
    crc.reset()
    for byte in b"xyz":
        crc.add(byte)
    assert crc.value == _crc_of(b"xyz").value


def test_crc_rejects_wide_byte():
    with pytest.raises(ValueError):
        CRC32().add(256)


IP_HEADER = [0x4500, 0x0073, 0x0000, 0x4000, 0x4011, 0x0000, 0xC0A8, 0x0001, 0xC0A8, 0x00C7]


def test_ip_header_example():
    cs = InternetChecksum()
    for word in IP_HEADER:
        cs.add(word)
    assert cs.value == 0xB861


def test_adding_checksum_gives_zero():
    cs = InternetChecksum()
    for word in IP_HEADER:
        cs.add(word)
    check = cs.value
    cs.add(check)
    assert cs.value == 0


def test_add_half_pairs_bytes():
    halves = InternetChecksum()
    for byte in [0x12, 0x34, 0xAB, 0xCD, 0x7F]:
        halves.add_half(byte)
    words = InternetChecksum()
    for word in [0x1234, 0xABCD, 0x7F00]:
        words.add(word)
    assert halves.accumulator == words.accumulator


def test_add_other_checksum_uses_sum():
    a = InternetChecksum(0x1234)
    b = InternetChecksum(0x0F0F)
    a.add(b)
    direct = InternetChecksum(0x1234)
    direct.add(0x0F0F)
    assert a.accumulator == direct.accumulator


def test_reset_restarts_half_pairing():
    cs = InternetChecksum()
    cs.add_half(0x11)
    cs.reset()
    cs.add_half(0x22)
    assert cs.accumulator == 0x2200


def test_rejects_wide_word():
    with pytest.raises(ValueError):
        InternetChecksum().add(0x10000)