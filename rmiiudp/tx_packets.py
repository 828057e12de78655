"""Transmit-side IPv4 and Ethernet framing of UDP datagrams."""

from __future__ import annotations

from collections import deque
from enum import Enum, auto

from .checksums import InternetChecksum
from .rx_ethernet import ETH_HEADER_BYTES, ETHERTYPE_IPV4
from .tx_payload import (
    IP_PROTOCOL_UDP,
    UDP_PKT_HEADER_BYTE_SIZE,
    FCSWordGenerator,
    PreambleWordGenerator,
    UDPPacketWordGenerator,
)
from .types import Addresses, AxisWord, Meta, get_bits

IP_VERSION_AND_STD_IHL = 0x45
IP_VERSION_AND_STD_IHL_AND_NO_SPECIAL = 0x4500
IP_HOP_COUNT = 0x80
IP_PKT_HEADER_BYTE_SIZE = 20
IP_AND_UDP_HEADER_BYTE_SIZE = IP_PKT_HEADER_BYTE_SIZE + UDP_PKT_HEADER_BYTE_SIZE

# The IPv4 total length is kept in an 11-bit register.
_IP_LENGTH_MASK = 0x7FF
_MAC_BYTES = 6


def _byte(value: int, index: int, width_bytes: int) -> int:
    """Return byte ``index`` of a big-endian field ``width_bytes`` wide."""
    shift = 8 * (width_bytes - 1 - index)
    return get_bits(value, shift + 7, shift)


class IPPacketWordGenerator:
    """Emits an IPv4 header from ``loc`` to ``meta`` followed by a UDP datagram."""

    def __init__(self) -> None:
        self._count = 0
        self._checksum = InternetChecksum()
        self._length = 0
        self._udp = UDPPacketWordGenerator()

    def next_word(
        self, loc: Addresses, meta: Meta, buffer: deque[AxisWord]
    ) -> AxisWord:
        """Return the next header or datagram word of the packet."""
        if self._count >= IP_PKT_HEADER_BYTE_SIZE:
            return self._udp.next_word(loc, meta, buffer)
        data = self._header_byte(loc, meta)
        self._count += 1
        return AxisWord(data, False, 0)

    def _header_byte(self, loc: Addresses, meta: Meta) -> int:
        position = self._count
        match position:
            case 0:
                self._checksum.add(IP_VERSION_AND_STD_IHL_AND_NO_SPECIAL)
                self._length = (
                    meta.payload_length + IP_AND_UDP_HEADER_BYTE_SIZE
                ) & _IP_LENGTH_MASK
                return IP_VERSION_AND_STD_IHL
            case 1:  # DSCP and ECN
                self._checksum.add(get_bits(loc.ip_addr, 31, 16))
                return 0
            case 2:  # total length, high byte
                self._checksum.add(get_bits(loc.ip_addr, 15, 0))
                return get_bits(self._length, 10, 8)
            case 3:  # total length, low byte
                self._checksum.add(self._length)
                return get_bits(self._length, 7, 0)
            case 4:  # identification, high byte
                self._checksum.add(get_bits(meta.dst_ip_addr, 31, 16))
                return 0
            case 5:  # identification, low byte
                self._checksum.add(get_bits(meta.dst_ip_addr, 15, 0))
                return 0
            case 6 | 7:  # flags and fragment offset
                return 0
            case 8:
                return IP_HOP_COUNT
            case 9:
                self._checksum.add((IP_HOP_COUNT << 8) | IP_PROTOCOL_UDP)
                return IP_PROTOCOL_UDP
            case 10:
                return get_bits(self._checksum.value, 15, 8)
            case 11:
                return get_bits(self._checksum.value, 7, 0)
            case _ if position < 16:
                return _byte(loc.ip_addr, position - 12, 4)
            case _:
                return _byte(meta.dst_ip_addr, position - 16, 4)

    def reset(self) -> None:
        """Prepare for a new packet."""
        self._count = 0
        self._checksum.reset()
        self._udp.reset()


class ETHPacketWordGenerator:
    """Emits an Ethernet II header followed by an IPv4 packet."""

    def __init__(self) -> None:
        self._count = 0
        self._ip = IPPacketWordGenerator()

    def next_word(
        self, loc: Addresses, meta: Meta, buffer: deque[AxisWord]
    ) -> AxisWord:
        """Return the next header or packet word of the frame."""
        if self._count >= ETH_HEADER_BYTES:
            return self._ip.next_word(loc, meta, buffer)
        position = self._count
        self._count += 1
        if position < _MAC_BYTES:
            data = _byte(meta.dst_mac_addr, position, _MAC_BYTES)
        elif position < 2 * _MAC_BYTES:
            data = _byte(loc.mac_addr, position - _MAC_BYTES, _MAC_BYTES)
        else:
            data = _byte(ETHERTYPE_IPV4, position - 2 * _MAC_BYTES, 2)
        return AxisWord(data, False, 0)

    def reset(self) -> None:
        """Prepare for a new frame."""
        self._count = 0
        self._ip.reset()


class _FrameState(Enum):
    PREAMBLE = auto()
    DATA = auto()
    FCS = auto()


class DataWordGenerator:
    """Emits a whole frame: preamble, Ethernet frame and frame check sequence.

    After each :meth:`next_word`, :meth:`maintenance` must be called once to
    feed the CRC and move between the parts of the frame. Only the final FCS
    word carries ``last``.
    """

    def __init__(self) -> None:
        self._state = _FrameState.PREAMBLE
        self._preamble = PreambleWordGenerator()
        self._eth = ETHPacketWordGenerator()
        self._fcs = FCSWordGenerator()
        self._word = AxisWord()

    def next_word(
        self, loc: Addresses, meta: Meta, buffer: deque[AxisWord]
    ) -> AxisWord:
        """Return the next word to put on the wire."""
        if self._state is _FrameState.PREAMBLE:
            self._word = self._preamble.next_word()
            return AxisWord(self._word.data, False, 0)
        if self._state is _FrameState.DATA:
            self._word = self._eth.next_word(loc, meta, buffer)
            return AxisWord(self._word.data, False, 0)
        self._word = self._fcs.next_word()
        return self._word

    def maintenance(self) -> None:
        """Account for the word last returned."""
        if self._state is _FrameState.PREAMBLE:
            if self._word.last:
                self._state = _FrameState.DATA
        elif self._state is _FrameState.DATA:
            self._fcs.add_to_fcs(self._word.data)
            if self._word.last:
                self._state = _FrameState.FCS
        elif self._word.last:
            self._state = _FrameState.PREAMBLE

    def reset(self) -> None:
        """Prepare for a new frame."""
        self._preamble.reset()
        self._eth.reset()
        self._fcs.reset()
        self._state = _FrameState.PREAMBLE