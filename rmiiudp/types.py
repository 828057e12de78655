"""Bus words, address sets and bit-field helpers shared by both pipelines."""

from __future__ import annotations

from dataclasses import dataclass

MAC_BITS = 48
IP_BITS = 32
PORT_BITS = 16
USER_BITS = 96

# Layout of the side-band ``user`` field of a payload word.
USER_MAC_FIELD = (47, 0)
USER_IP_FIELD = (79, 48)
USER_PORT_FIELD = (95, 80)


def _check_range(high: int, low: int) -> None:
    if low < 0 or high < low:
        raise ValueError(f"invalid bit range ({high}, {low})")


def _check_field(name: str, value: int, width: int) -> None:
    if not 0 <= value < (1 << width):
        raise ValueError(f"{name}={value!r} does not fit in {width} bits")


def get_bits(value: int, high: int, low: int) -> int:
    """Return bits ``high`` down to ``low`` (inclusive) of ``value``."""
    _check_range(high, low)
    return (value >> low) & ((1 << (high - low + 1)) - 1)


def set_bits(value: int, high: int, low: int, bits: int) -> int:
    """Return ``value`` with bits ``high`` down to ``low`` replaced by ``bits``.

    Bits of ``bits`` that do not fit into the range are dropped.
    """
    _check_range(high, low)
    mask = ((1 << (high - low + 1)) - 1) << low
    return (value & ~mask) | ((bits << low) & mask)


@dataclass(frozen=True)
class AxisWord:
    """One byte on a stream bus with its end-of-packet flag and side band."""

    data: int = 0
    last: bool = False
    user: int = 0

    def __post_init__(self) -> None:
        _check_field("data", self.data, 8)
        _check_field("user", self.user, USER_BITS)


@dataclass(frozen=True)
class Addresses:
    """MAC address, IPv4 address and UDP port of one endpoint."""

    mac_addr: int
    ip_addr: int
    udp_port: int

    def __post_init__(self) -> None:
        _check_field("mac_addr", self.mac_addr, MAC_BITS)
        _check_field("ip_addr", self.ip_addr, IP_BITS)
        _check_field("udp_port", self.udp_port, PORT_BITS)

    @property
    def user(self) -> int:
        """The addresses packed into a word's ``user`` side band."""
        packed = set_bits(0, *USER_MAC_FIELD, self.mac_addr)
        packed = set_bits(packed, *USER_IP_FIELD, self.ip_addr)
        return set_bits(packed, *USER_PORT_FIELD, self.udp_port)

    @classmethod
    def from_user(cls, user: int) -> Addresses:
        """Unpack addresses from a word's ``user`` side band."""
        _check_field("user", user, USER_BITS)
        return cls(
            mac_addr=get_bits(user, *USER_MAC_FIELD),
            ip_addr=get_bits(user, *USER_IP_FIELD),
            udp_port=get_bits(user, *USER_PORT_FIELD),
        )


@dataclass(frozen=True)
class Meta:
    """Per-packet facts gathered before a payload is sent."""

    payload_checksum: int = 0
    payload_length: int = 0
    dst_mac_addr: int = 0
    dst_ip_addr: int = 0
    dst_udp_port: int = 0

    def __post_init__(self) -> None:
        _check_field("payload_checksum", self.payload_checksum, 16)
        _check_field("payload_length", self.payload_length, 11)
        _check_field("dst_mac_addr", self.dst_mac_addr, MAC_BITS)
        _check_field("dst_ip_addr", self.dst_ip_addr, IP_BITS)
        _check_field("dst_udp_port", self.dst_udp_port, PORT_BITS)