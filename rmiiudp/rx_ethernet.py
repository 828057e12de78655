"""Receive-side Ethernet II header parsing."""

from __future__ import annotations

from dataclasses import replace

from .rx_filters import NOTHING, StageResult
from .rx_headers import IPPacketHandler
from .types import USER_MAC_FIELD, Addresses, AxisWord, set_bits

ETH_HEADER_BYTES = 14
ETHERTYPE_IPV4 = 0x0800

_DST_MAC = range(0, 6)
_SRC_MAC = range(6, 12)
_ETHERTYPE = range(12, 14)


def _put_byte(value: int, index: int, width_bytes: int, byte: int) -> int:
    """Place ``byte`` at position ``index`` of a big-endian field."""
    shift = 8 * (width_bytes - 1 - index)
    return set_bits(value, shift + 7, shift, byte)


class EthDataHandler:
    """Parses the Ethernet header and hands IPv4 frames addressed to us onward."""

    def __init__(self) -> None:
        self._ip = IPPacketHandler()
        self._count = 0
        self._dst_mac = 0
        self._src_mac = 0
        self._ethertype = 0

    def get_payload(self, word: AxisWord | None, loc: Addresses) -> StageResult:
        """Take one byte of the frame; return UDP payload words.

        Payload words carry the sender's MAC address in the ``user`` side
        band. Frames for another MAC address or of another type than IPv4
        are not delivered.
        """
        if word is None:
            return NOTHING
        if self._count < ETH_HEADER_BYTES:
            self._take_header_byte(word.data)
            self._count += 1
            return NOTHING
        if loc.mac_addr != self._dst_mac:
            return NOTHING
        if self._ethertype != ETHERTYPE_IPV4:
            return NOTHING
        tagged = replace(word, user=set_bits(word.user, *USER_MAC_FIELD, self._src_mac))
        return self._ip.get_payload(tagged, loc)

    def _take_header_byte(self, data: int) -> None:
        position = self._count
        if position in _DST_MAC:
            self._dst_mac = _put_byte(self._dst_mac, position - _DST_MAC.start, 6, data)
        elif position in _SRC_MAC:
            self._src_mac = _put_byte(self._src_mac, position - _SRC_MAC.start, 6, data)
        elif position in _ETHERTYPE:
            self._ethertype = _put_byte(self._ethertype, position - _ETHERTYPE.start, 2, data)

    def reset(self) -> None:
        """Prepare for a new frame."""
        self._ip.reset()
        self._count = 0