"""Receive-side frame check sequence validation and output gating."""

from __future__ import annotations

from collections import deque
from typing import MutableSequence, NamedTuple

from .checksums import CRC32
from .types import AxisWord

FCS_BYTES = 4


class StageResult(NamedTuple):
    """A stage's optional output word and whether it found the frame bad."""

    word: AxisWord | None = None
    bad: bool = False


NOTHING = StageResult()


class DataGate:
    """Forwards buffered frames whose verdict is good and drops the others.

    A verdict is taken from ``valid_buffer`` when one is available; the
    words of that frame are then drained from ``data_buffer`` one per call
    up to and including the word flagged ``last``.
    """

    def __init__(self) -> None:
        self._working = False
        self._sending = False

    def handle(
        self,
        data_buffer: deque[AxisWord],
        valid_buffer: deque[bool],
        data_out: MutableSequence[AxisWord] | deque[AxisWord],
    ) -> None:
        """Advance by one clock."""
        if valid_buffer:
            self._working = True
            self._sending = bool(valid_buffer.popleft())
        if self._working:
            if not data_buffer:
                raise IndexError("data buffer is empty while a frame is pending")
            word = data_buffer.popleft()
            if self._sending:
                data_out.append(word)
            self._working = not word.last


class FCSValidator:
    """Holds back the trailing FCS bytes of a frame and checks the CRC.

    Bytes leave four words after they arrive, so the four FCS bytes never
    leave; the word that leaves when the frame's last word arrives carries
    the ``last`` flag and the verdict of the check.
    """

    def __init__(self) -> None:
        self._stages: deque[int] = deque([0] * FCS_BYTES, maxlen=FCS_BYTES)
        self._shift_count = 0
        self._fcs = CRC32()

    def validate(self, word: AxisWord | None) -> StageResult:
        """Take an optional word and emit the one four positions earlier."""
        if word is None:
            return NOTHING
        next_data = self._stages[0]
        self._stages.append(word.data)
        if self._shift_count < FCS_BYTES:
            self._shift_count += 1
            return NOTHING
        bad = word.last and not self._fcs.is_good
        return StageResult(AxisWord(next_data, word.last, 0), bad)

    def add_to_fcs(self, data: int | None) -> None:
        """Feed an optional received byte into the running CRC."""
        if data is not None:
            self._fcs.add(data)

    def reset(self) -> None:
        """Prepare for a new frame."""
        self._shift_count = 0
        self._fcs.reset()