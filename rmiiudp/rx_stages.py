"""First receive stages: preamble detection, dibit bundling, word framing."""

from __future__ import annotations

from enum import Enum, auto

from .types import AxisWord, set_bits

PREAMBLE_DIBITS = 31


class _SpotterState(Enum):
    PREAMBLE_CHECK = auto()
    PREAMBLE_END = auto()
    DATA = auto()


class DataSpotter:
    """Watches the RMII dibit stream for the preamble and start delimiter."""

    def __init__(self) -> None:
        self._state = _SpotterState.PREAMBLE_CHECK
        self._state_before = _SpotterState.PREAMBLE_CHECK
        self._count = 0

    def feed(self, rxd: int, crsdv: bool) -> None:
        """Advance by one clock with the given dibit and carrier sense."""
        self._state_before = self._state
        if not crsdv:
            self._state = _SpotterState.PREAMBLE_CHECK
            self._count = 0
            return
        if self._state is _SpotterState.PREAMBLE_CHECK:
            if rxd == 1 and self._count < PREAMBLE_DIBITS:
                self._count += 1
            elif rxd == 3 and self._count == PREAMBLE_DIBITS:
                self._state = _SpotterState.PREAMBLE_END
        elif self._state is _SpotterState.PREAMBLE_END:
            self._state = _SpotterState.DATA

    @property
    def spotted(self) -> bool:
        """True while frame data is arriving."""
        return self._state is _SpotterState.DATA

    @property
    def spotted_before(self) -> bool:
        """The value ``spotted`` had one clock earlier."""
        return self._state_before is _SpotterState.DATA


class DataBundler:
    """Collects four dibits, least significant first, into a byte."""

    def __init__(self) -> None:
        self._data = 0
        self._pair_count = 0

    def bundle(self, rxd: int) -> int | None:
        """Take one dibit; return the byte when the fourth dibit arrives."""
        low = 2 * self._pair_count
        self._data = set_bits(self._data, low + 1, low, rxd)
        complete = self._pair_count == 3
        self._pair_count = (self._pair_count + 1) % 4
        return self._data if complete else None

    def reset(self) -> None:
        """Start a new byte."""
        self._pair_count = 0


class AxisWordGenerator:
    """Delays bytes by one to mark the final byte when carrier sense drops."""

    def __init__(self) -> None:
        self._data = 0
        self._data_valid = False

    def next(self, data: int | None, crsdv: bool) -> AxisWord | None:
        """Take an optional byte; emit the previously held byte as a word."""
        word = None
        if self._data_valid:
            self._data_valid = False
            word = AxisWord(self._data, not crsdv, 0)
        if data is not None:
            self._data = data
            self._data_valid = True
        return word

    def reset(self) -> None:
        """Drop any held byte."""
        self._data_valid = False