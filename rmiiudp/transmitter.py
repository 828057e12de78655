"""Complete RMII transmit pipeline sending UDP payload words as frames."""

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Iterable
from enum import Enum, auto
from typing import NamedTuple

from .checksums import InternetChecksum
from .tx_packets import DataWordGenerator
from .types import Addresses, AxisWord, Meta, get_bits

# Clocks of idle line kept after each frame, counted from zero.
MAX_IPG_INDEX = 95
DIBITS_PER_BYTE = 4

# The payload byte counter is eleven bits wide and wraps.
_BYTE_COUNT_MASK = 0x7FF


class TxSample(NamedTuple):
    """The RMII transmit signals during one clock."""

    txd: int = 0
    txen: bool = False


IDLE_SAMPLE = TxSample()


class DataInputAnalyzer:
    """Buffers incoming payload words and gathers per-packet facts.

    When the word flagged ``last`` arrives, the payload's byte count, its
    running one's-complement sum and the destination taken from the word's
    ``user`` side band are queued as a :class:`Meta`.
    """

    def __init__(self) -> None:
        self._byte_count = 0
        self._checksum = InternetChecksum()

    def handle(
        self,
        data_in: deque[AxisWord],
        buffer: deque[AxisWord],
        meta_buffer: deque[Meta],
    ) -> None:
        """Advance by one clock, moving at most one word."""
        if not data_in:
            return
        word = data_in.popleft()
        buffer.append(word)
        self._checksum.add_half(word.data)
        self._byte_count = (self._byte_count + 1) & _BYTE_COUNT_MASK
        if word.last:
            dst = Addresses.from_user(word.user)
            meta_buffer.append(
                Meta(
                    payload_checksum=self._checksum.accumulator,
                    payload_length=self._byte_count,
                    dst_mac_addr=dst.mac_addr,
                    dst_ip_addr=dst.ip_addr,
                    dst_udp_port=dst.udp_port,
                )
            )
            self._byte_count = 0
            self._checksum.reset()


class _SenderState(Enum):
    IDLE = auto()
    SENDING_PACKET = auto()
    WAITING_FOR_INTER_PACKET_GAP = auto()


class DataSender:
    """Puts whole frames on the wire two bits per clock.

    A frame starts as soon as its :class:`Meta` is available and is
    followed by an inter-packet gap of idle clocks.
    """

    def __init__(self) -> None:
        self._state = _SenderState.IDLE
        self._meta = Meta()
        self._word = AxisWord()
        self._pair_count = 0
        self._ipg_count = 0
        self._generator = DataWordGenerator()

    def handle(
        self,
        buffer: deque[AxisWord],
        meta_buffer: deque[Meta],
        loc: Addresses,
    ) -> TxSample:
        """Advance by one clock and return the signals to drive."""
        if self._state is _SenderState.IDLE:
            if not meta_buffer:
                return IDLE_SAMPLE
            self._meta = meta_buffer.popleft()
            self._state = _SenderState.SENDING_PACKET
            self._word = self._generator.next_word(loc, self._meta, buffer)
            return self._send_pair()

        if self._state is _SenderState.SENDING_PACKET:
            if self._pair_count == 0:
                self._word = self._generator.next_word(loc, self._meta, buffer)
            elif self._pair_count == 1:
                self._generator.maintenance()
            elif self._pair_count == 3 and self._word.last:
                self._generator.reset()
                self._state = _SenderState.WAITING_FOR_INTER_PACKET_GAP
            return self._send_pair()

        if self._ipg_count < MAX_IPG_INDEX:
            self._ipg_count += 1
        else:
            self._ipg_count = 0
            self._state = _SenderState.IDLE
        return IDLE_SAMPLE

    def _send_pair(self) -> TxSample:
        low = 2 * self._pair_count
        txd = get_bits(self._word.data, low + 1, low)
        self._pair_count = (self._pair_count + 1) % DIBITS_PER_BYTE
        return TxSample(txd, True)


class EthernetTransmitter:
    """Turns UDP payload words into RMII transmit signals from ``loc``.

    Each payload word's ``user`` side band names the destination; the word
    flagged ``last`` ends a datagram. Each call to :meth:`step` is one clock.
    """

    def __init__(self, loc: Addresses) -> None:
        self.loc = loc
        self._input: deque[AxisWord] = deque()
        self._buffer: deque[AxisWord] = deque()
        self._meta_buffer: deque[Meta] = deque()
        self._analyzer = DataInputAnalyzer()
        self._sender = DataSender()

    def step(self, data_in: AxisWord | None = None) -> TxSample:
        """Offer an optional payload word and advance by one clock."""
        if data_in is not None:
            self._input.append(data_in)
        self._analyzer.handle(self._input, self._buffer, self._meta_buffer)
        return self._sender.handle(self._buffer, self._meta_buffer, self.loc)

    def run(
        self, words: Iterable[tuple[int, AxisWord]], cycles: int
    ) -> list[TxSample]:
        """Clock ``cycles`` times, offering each word at its given clock.

        ``words`` holds pairs of clock index and word. Returns the signals
        of every clock.
        """
        if cycles < 0:
            raise ValueError(f"cycle count {cycles!r} is negative")
        schedule: defaultdict[int, list[AxisWord]] = defaultdict(list)
        for cycle, word in words:
            if cycle < 0:
                raise ValueError(f"clock index {cycle!r} is negative")
            schedule[cycle].append(word)
        samples = []
        for cycle in range(cycles):
            self._input.extend(schedule.get(cycle, ()))
            samples.append(self.step())
        return samples