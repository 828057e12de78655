"""Transmit-side word generators for the preamble, UDP datagram and FCS."""

from __future__ import annotations

from collections import deque
from enum import Enum, auto

from .checksums import CRC32, InternetChecksum
from .types import Addresses, AxisWord, Meta, get_bits

PREAMBLE_BYTE = 0x55
START_FRAME_DELIMITER = 0xD5
PREAMBLE_BYTES = 8
FCS_BYTES = 4
UDP_PKT_HEADER_BYTE_SIZE = 8
MIN_UDP_PAYLOAD_BYTE_SIZE = 18
IP_PROTOCOL_UDP = 0x11

_MIN_PAYLOAD_LIMIT = 64
# The payload byte counter is five bits wide and wraps.
_PAYLOAD_COUNT_MASK = 0x1F
_UDP_LENGTH_MASK = 0xFFFF


def _read(buffer: deque[AxisWord]) -> AxisWord:
    if not buffer:
        raise IndexError("payload buffer is empty")
    return buffer.popleft()


class _PayloadState(Enum):
    READING_BUFFER = auto()
    FILLING_OUTPUT = auto()


class PayloadWordGenerator:
    """Emits payload bytes from a buffer, padding short payloads with zeros.

    The final word of the payload, or of the padding, carries ``last``.
    """

    def __init__(self, min_payload_byte_size: int = MIN_UDP_PAYLOAD_BYTE_SIZE) -> None:
        if not 0 <= min_payload_byte_size < _MIN_PAYLOAD_LIMIT:
            raise ValueError(
                f"minimum payload size {min_payload_byte_size!r} "
                f"must be below {_MIN_PAYLOAD_LIMIT}"
            )
        self.min_payload_byte_size = min_payload_byte_size
        self._count = 0
        self._state = _PayloadState.READING_BUFFER

    def _counted(self, data: int, last: bool = False) -> AxisWord:
        self._count = (self._count + 1) & _PAYLOAD_COUNT_MASK
        return AxisWord(data, last, 0)

    def next_word(self, buffer: deque[AxisWord]) -> AxisWord:
        """Return the next payload or padding word."""
        final_index = self.min_payload_byte_size - 1
        if self._state is _PayloadState.READING_BUFFER:
            word = _read(buffer)
            last = False
            if word.last:
                if self._count >= final_index:
                    last = True
                else:
                    self._state = _PayloadState.FILLING_OUTPUT
            return self._counted(word.data, last)
        return self._counted(0, self._count == final_index)

    def reset(self) -> None:
        """Prepare for a new payload."""
        self._count = 0
        self._state = _PayloadState.READING_BUFFER


class PreambleWordGenerator:
    """Emits seven preamble bytes followed by the start frame delimiter."""

    def __init__(self) -> None:
        self._count = 0

    def next_word(self) -> AxisWord:
        """Return the next preamble word; the delimiter carries ``last``."""
        is_delimiter = self._count == PREAMBLE_BYTES - 1
        self._count = (self._count + 1) % PREAMBLE_BYTES
        if is_delimiter:
            return AxisWord(START_FRAME_DELIMITER, True, 0)
        return AxisWord(PREAMBLE_BYTE, False, 0)

    def reset(self) -> None:
        """Start the preamble over."""
        self._count = 0


class FCSWordGenerator:
    """Accumulates the frame's CRC and emits it as four FCS words."""

    def __init__(self) -> None:
        self._count = 0
        self._fcs = CRC32()

    def next_word(self) -> AxisWord:
        """Return the next FCS byte; the fourth carries ``last``."""
        index = self._count
        self._count = (self._count + 1) % FCS_BYTES
        shift = 8 * (FCS_BYTES - 1 - index)
        byte = get_bits(self._fcs.value, shift + 7, shift)
        return AxisWord(byte, index == FCS_BYTES - 1, 0)

    def add_to_fcs(self, byte: int) -> None:
        """Feed one frame byte into the CRC."""
        self._fcs.add(byte)

    def reset(self) -> None:
        """Prepare for a new frame."""
        self._count = 0
        self._fcs.reset()


class UDPPacketWordGenerator:
    """Emits a UDP header from ``loc`` to ``meta`` followed by the payload."""

    def __init__(self) -> None:
        self._count = 0
        self._length = 0
        self._checksum = InternetChecksum()
        self._partial = InternetChecksum()
        self._payload = PayloadWordGenerator(MIN_UDP_PAYLOAD_BYTE_SIZE)

    def next_word(
        self, loc: Addresses, meta: Meta, buffer: deque[AxisWord]
    ) -> AxisWord:
        """Return the next header or payload word of the datagram."""
        if self._count >= UDP_PKT_HEADER_BYTE_SIZE:
            return self._payload.next_word(buffer)
        data = self._header_byte(loc, meta)
        self._count += 1
        return AxisWord(data, False, 0)

    def _header_byte(self, loc: Addresses, meta: Meta) -> int:
        match self._count:
            case 0:
                self._length = (meta.payload_length + UDP_PKT_HEADER_BYTE_SIZE) & _UDP_LENGTH_MASK
                self._checksum = InternetChecksum(get_bits(loc.ip_addr, 31, 16))
                self._partial = InternetChecksum(get_bits(meta.dst_ip_addr, 31, 16))
                return get_bits(loc.udp_port, 15, 8)
            case 1:
                self._checksum.add(get_bits(loc.ip_addr, 15, 0))
                self._partial.add(get_bits(meta.dst_ip_addr, 15, 0))
                return get_bits(loc.udp_port, 7, 0)
            case 2:
                self._checksum.add(self._length)
                self._partial.add(self._length)
                return get_bits(meta.dst_udp_port, 15, 8)
            case 3:
                self._checksum.add(loc.udp_port)
                self._partial.add(meta.dst_udp_port)
                return get_bits(meta.dst_udp_port, 7, 0)
            case 4:
                self._checksum.add(IP_PROTOCOL_UDP)
                self._partial.add(meta.payload_checksum)
                # Only the three bits an 11-bit length can use are sent.
                return get_bits(self._length, 10, 8)
            case 5:
                self._checksum.add(self._partial)
                return get_bits(self._length, 7, 0)
            case 6:
                return get_bits(self._checksum.value, 15, 8)
            case _:
                return get_bits(self._checksum.value, 7, 0)

    def reset(self) -> None:
        """Prepare for a new datagram."""
        self._count = 0
        self._checksum.reset()
        self._partial.reset()
        self._payload.reset()