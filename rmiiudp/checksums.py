"""Ethernet frame check sequence and Internet one's-complement checksum."""

from __future__ import annotations

_CRC32_POLY_REFLECTED = 0xEDB88320
_CRC32_INIT = 0xFFFFFFFF

# Register value left after a frame and its own FCS have been fed through.
CRC32_RESIDUE = 0xDEBB20E3


def _make_table() -> tuple[int, ...]:
    table = []
    for entry in range(256):
        crc = entry
        for _ in range(8):
            crc = (crc >> 1) ^ _CRC32_POLY_REFLECTED if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_CRC32_TABLE = _make_table()


class CRC32:
    """Running CRC-32 over a frame, fed one byte at a time in wire order."""

    def __init__(self) -> None:
        self.accumulator = _CRC32_INIT

    def add(self, byte: int) -> None:
        """Feed one byte."""
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"byte {byte!r} out of range")
        index = (self.accumulator ^ byte) & 0xFF
        self.accumulator = (self.accumulator >> 8) ^ _CRC32_TABLE[index]

    def reset(self) -> None:
        """Start a new frame."""
        self.accumulator = _CRC32_INIT

    @property
    def value(self) -> int:
        """The FCS as a 32-bit word whose top byte goes on the wire first."""
        crc = self.accumulator ^ 0xFFFFFFFF
        return int.from_bytes(crc.to_bytes(4, "little"), "big")

    @property
    def is_good(self) -> bool:
        """True when the bytes fed so far end with a matching FCS."""
        return self.accumulator == CRC32_RESIDUE


class InternetChecksum:
    """16-bit one's-complement sum as used by IPv4 and UDP."""

    def __init__(self, initial: int = 0) -> None:
        self.accumulator = 0
        self._high_pending = True
        self.add(initial)

    def add(self, value: int | InternetChecksum) -> None:
        """Add a 16-bit word, or the running sum of another checksum."""
        if isinstance(value, InternetChecksum):
            value = value.accumulator
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"word {value!r} out of range")
        total = self.accumulator + value
        self.accumulator = (total & 0xFFFF) + (total >> 16)

    def add_half(self, byte: int) -> None:
        """Add one byte; bytes alternate between high and low halves of a word."""
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"byte {byte!r} out of range")
        self.add(byte << 8 if self._high_pending else byte)
        self._high_pending = not self._high_pending

    def reset(self) -> None:
        """Clear the sum."""
        self.accumulator = 0
        self._high_pending = True

    @property
    def value(self) -> int:
        """The checksum field value: the complement of the sum."""
        return ~self.accumulator & 0xFFFF