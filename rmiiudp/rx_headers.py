"""Receive-side IPv4 and UDP header parsing."""

from __future__ import annotations

from dataclasses import replace

from .checksums import InternetChecksum
from .rx_filters import NOTHING, StageResult
from .types import USER_IP_FIELD, USER_PORT_FIELD, Addresses, AxisWord, get_bits, set_bits

UDP_HEADER_BYTES = 8
IP_HEADER_BYTES = 20
IP_PROTOCOL_UDP = 0x11

_UDP_COUNT_MASK = 0x7FF


def _put_byte(value: int, index: int, width_bytes: int, byte: int) -> int:
    """Place ``byte`` at position ``index`` of a big-endian field."""
    shift = 8 * (width_bytes - 1 - index)
    return set_bits(value, shift + 7, shift, byte)


class UDPPacketHandler:
    """Parses a UDP header and yields the payload bytes of matching datagrams."""

    def __init__(self) -> None:
        self._checksum = InternetChecksum()
        self._pseudo = InternetChecksum()
        self._count = 0
        self._src_port = 0
        self._dst_port = 0
        self._length = 0
        self._pkt_checksum = 0

    def get_payload(
        self, word: AxisWord | None, loc: Addresses, src_ip_addr: int
    ) -> StageResult:
        """Take one byte of the UDP datagram; return payload words.

        Payload words carry the sender's port in the ``user`` side band.
        The final payload word reports a bad frame when a non-zero
        checksum does not match.
        """
        if word is None:
            return NOTHING
        if self._count < UDP_HEADER_BYTES:
            self._take_header_byte(word.data, loc, src_ip_addr)
            self._count += 1
            return NOTHING
        return self._take_payload_byte(word, loc)

    def _take_header_byte(self, data: int, loc: Addresses, src_ip_addr: int) -> None:
        match self._count:
            case 0:
                self._src_port = set_bits(self._src_port, 15, 8, data)
                self._checksum.add(get_bits(loc.ip_addr, 31, 16))
                self._pseudo.add(get_bits(loc.ip_addr, 15, 0))
            case 1:
                self._src_port = set_bits(self._src_port, 7, 0, data)
                self._checksum.add(get_bits(src_ip_addr, 31, 16))
                self._pseudo.add(get_bits(src_ip_addr, 15, 0))
            case 2:
                self._dst_port = set_bits(self._dst_port, 15, 8, data)
                self._checksum.add(self._src_port)
                self._pseudo.add(IP_PROTOCOL_UDP)
            case 3:
                self._dst_port = set_bits(self._dst_port, 7, 0, data)
                self._checksum.add(self._dst_port)
            case 4:
                # The whole field is loaded here and its low byte replaced by
                # the next byte, so only the low length byte takes effect.
                self._length = data
            case 5:
                self._length = set_bits(self._length, 7, 0, data)
                self._checksum.add(self._length)
                self._pseudo.add(self._length)
            case 6:
                self._pkt_checksum = set_bits(self._pkt_checksum, 15, 8, data)
                self._checksum.add(self._pseudo)
            case 7:
                self._pkt_checksum = set_bits(self._pkt_checksum, 7, 0, data)
                self._checksum.add(self._pkt_checksum)

    def _take_payload_byte(self, word: AxisWord, loc: Addresses) -> StageResult:
        if loc.udp_port != self._dst_port:
            return NOTHING
        if self._count >= self._length:
            return NOTHING
        is_last = self._count == self._length - 1
        user = set_bits(word.user, *USER_PORT_FIELD, self._src_port)
        self._checksum.add_half(word.data)
        self._count = (self._count + 1) & _UDP_COUNT_MASK
        bad = is_last and self._pkt_checksum != 0 and self._checksum.value != 0
        return StageResult(AxisWord(word.data, is_last, user), bad)

    def reset(self) -> None:
        """Prepare for a new datagram."""
        self._checksum.reset()
        self._pseudo.reset()
        self._count = 0


class IPPacketHandler:
    """Parses an IPv4 header and hands UDP datagrams addressed to us onward."""

    def __init__(self) -> None:
        self._udp = UDPPacketHandler()
        self._count = 0
        self._ihl = 0
        self._protocol = 0
        self._src_ip_addr = 0
        self._dst_ip_addr = 0

    def get_payload(self, word: AxisWord | None, loc: Addresses) -> StageResult:
        """Take one byte of the IPv4 packet; return UDP payload words.

        Payload words carry the sender's IPv4 address in the ``user`` side
        band. Packets whose header carries options are not delivered.
        """
        if word is None:
            return NOTHING
        if self._count < IP_HEADER_BYTES:
            self._take_header_byte(word.data)
            self._count += 1
            return NOTHING
        if loc.ip_addr != self._dst_ip_addr:
            return NOTHING
        if self._count < self._ihl * 4:
            return NOTHING
        if self._protocol != IP_PROTOCOL_UDP:
            return NOTHING
        tagged = replace(word, user=set_bits(word.user, *USER_IP_FIELD, self._src_ip_addr))
        return self._udp.get_payload(tagged, loc, self._src_ip_addr)

    def _take_header_byte(self, data: int) -> None:
        position = self._count
        if position == 0:
            self._ihl = data & 0x0F
        elif position == 9:
            self._protocol = data
        elif 12 <= position < 16:
            self._src_ip_addr = _put_byte(self._src_ip_addr, position - 12, 4, data)
        elif 16 <= position < 20:
            self._dst_ip_addr = _put_byte(self._dst_ip_addr, position - 16, 4, data)

    def reset(self) -> None:
        """Prepare for a new packet."""
        self._udp.reset()
        self._count = 0