import struct
import zlib

import pytest

from rmiiudp.receiver import EthernetReceiver
from rmiiudp.types import Addresses, AxisWord

NUM_CYCLES = 400

LOC = Addresses(0xFEDCBA987654, 0x98765432, 0x0035)
SRC = Addresses(0x123456789ABC, 0x13579BDF, 0xDE60)

# Captured frame (without FCS) whose sender MAC has been replaced by a
# made-up one; the FCS is recomputed when the dibits are built.
REAL_LOC = Addresses(0xAAAAAAAAAAAA, 0xA9FECD01, 0x0035)
REAL_SRC = Addresses(0x020000000001, 0xA9FECDA9, 0xE5B8)
REAL_FRAME = bytes.fromhex(
    "aaaaaaaaaaaa"
    "020000000001"
    "0800"
    "4500001d48eb00008011033da9fecda9a9fecd01"
    "e5b8003500098145"
    "aa"
    + "00" * 17
)

PREAMBLE = bytes([0x55] * 7 + [0xD5])


def _ones_complement(data):
    if len(data) % 2:
        data += b"\0"
    total = sum(high << 8 | low for high, low in zip(data[::2], data[1::2]))
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF


def udp_frame(src, dst, payload):
    udp_len = 8 + len(payload)
    src_ip = src.ip_addr.to_bytes(4, "big")
    dst_ip = dst.ip_addr.to_bytes(4, "big")
    pseudo = src_ip + dst_ip + bytes([0, 17]) + udp_len.to_bytes(2, "big")
    header = struct.pack("!HHHH", src.udp_port, dst.udp_port, udp_len, 0)
    checksum = _ones_complement(pseudo + header + payload) or 0xFFFF
    udp = struct.pack("!HHHH", src.udp_port, dst.udp_port, udp_len, checksum) + payload
    fields = [0x45, 0, 20 + udp_len, 0, 0, 64, 17, 0, src_ip, dst_ip]
    ip = struct.pack("!BBHHHBBH4s4s", *fields)
    fields[7] = _ones_complement(ip)
    ip = struct.pack("!BBHHHBBH4s4s", *fields)
    frame = (
        dst.mac_addr.to_bytes(6, "big")
        + src.mac_addr.to_bytes(6, "big")
        + b"\x08\x00"
        + ip
        + udp
    )
    return frame.ljust(60, b"\0")


def to_dibits(frame):
    wire = PREAMBLE + frame + zlib.crc32(frame).to_bytes(4, "little")
    return [(byte >> shift) & 3 for byte in wire for shift in (0, 2, 4, 6)]


def timed_outputs(rxd, crsdv, rxerr=(), loc=LOC, cycles=NUM_CYCLES):
    receiver = EthernetReceiver(loc)
    outputs = []
    for cycle in range(cycles):
        dibit = rxd[cycle] if cycle < len(rxd) else 0
        carrier = crsdv[cycle] if cycle < len(crsdv) else 0
        error = rxerr[cycle] if cycle < len(rxerr) else 0
        word = receiver.step(dibit, error, carrier)
        if word is not None:
            outputs.append((cycle, word))
    return outputs


def test_frame_is_288_dibits():
    assert len(to_dibits(udp_frame(SRC, LOC, b"\xaa"))) == 288


def test_real_world_example_packet():
    rxd = to_dibits(REAL_FRAME)
    outputs = timed_outputs(rxd, [1] * 288, loc=REAL_LOC)
    assert outputs == [(288, AxisWord(0xAA, True, REAL_SRC.user))]


def test_normal_packet():
    rxd = to_dibits(udp_frame(SRC, LOC, b"\xaa"))
    outputs = timed_outputs(rxd, [1] * 288)
    assert outputs == [(288, AxisWord(0xAA, True, SRC.user))]


def test_normal_packet_delayed_rxd():
    rxd = [0, 0, 0, 0] + to_dibits(udp_frame(SRC, LOC, b"\xaa"))
    outputs = timed_outputs(rxd, [1] * 292)
    assert outputs == [(292, AxisWord(0xAA, True, SRC.user))]


def test_wrong_frame_check_sequence_delayed_rxd():
    rxd = [0, 0, 0, 0] + to_dibits(udp_frame(SRC, LOC, b"\xaa"))
    rxd[254] ^= 3
    assert timed_outputs(rxd, [1] * 292) == []


@pytest.mark.parametrize(
    "dst",
    [
        Addresses(0xBBBBBBBBBBBC, 0x22222222, 0x0035),
        Addresses(0xBBBBBBBBBBBB, 0x22222223, 0x0035),
        Addresses(0xBBBBBBBBBBBB, 0x22222222, 0x0040),
    ],
    ids=["wrong mac", "wrong ip", "wrong udp port"],
)
def test_wrong_destination_is_dropped(dst):
    rxd = [0, 0, 0, 0] + to_dibits(udp_frame(SRC, dst, b"\xaa"))
    assert timed_outputs(rxd, [1] * 292) == []


def test_receive_error_drops_frame():
    rxd = to_dibits(udp_frame(SRC, LOC, b"\xaa"))
    rxerr = [0] * 288
    rxerr[100] = 1
    assert timed_outputs(rxd, [1] * 288, rxerr) == []


def test_run_returns_multibyte_payload_in_order():
    payload = bytes(range(1, 11))
    rxd = to_dibits(udp_frame(SRC, LOC, payload))
    words = EthernetReceiver(LOC).run(rxd, [1] * len(rxd))
    assert [word.data for word in words] == list(payload)
    assert [word.last for word in words] == [False] * 9 + [True]
    assert all(word.user == SRC.user for word in words)


def test_run_delivers_consecutive_frames():
    first = to_dibits(udp_frame(SRC, LOC, b"\x01"))
    second = to_dibits(udp_frame(SRC, LOC, b"\x02"))
    gap = [0] * 96
    rxd = first + gap + second
    crsdv = [1] * len(first) + gap + [1] * len(second)
    words = EthernetReceiver(LOC).run(rxd, crsdv)
    assert words == [AxisWord(1, True, SRC.user), AxisWord(2, True, SRC.user)]


def test_run_matches_stepping():
    rxd = to_dibits(REAL_FRAME)
    stepped = [word for _, word in timed_outputs(rxd, [1] * 288, loc=REAL_LOC)]
    assert EthernetReceiver(REAL_LOC).run(rxd, [1] * 288) == stepped


def test_idle_line_gives_nothing():
    assert EthernetReceiver(LOC).run([0] * 200, [0] * 200) == []


def test_step_rejects_invalid_dibit():
    with pytest.raises(ValueError):
        EthernetReceiver(LOC).step(4, False, True)