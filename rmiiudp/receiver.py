"""Complete RMII receive pipeline delivering UDP payload words."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from itertools import zip_longest

from .rx_ethernet import EthDataHandler
from .rx_filters import DataGate, FCSValidator
from .rx_stages import AxisWordGenerator, DataBundler, DataSpotter
from .types import Addresses, AxisWord


class EthernetReceiver:
    """Turns RMII receive signals into payload words of UDP datagrams for ``loc``.

    Each call to :meth:`step` is one clock of the 2-bit RMII interface.
    Payload words are held back until their frame has been checked and
    leave one per clock; words of bad frames never leave.
    """

    def __init__(self, loc: Addresses) -> None:
        self.loc = loc
        self._spotter = DataSpotter()
        self._bundler = DataBundler()
        self._word_generator = AxisWordGenerator()
        self._validator = FCSValidator()
        self._handler = EthDataHandler()
        self._gate = DataGate()
        self._data_buffer: deque[AxisWord] = deque()
        self._valid_buffer: deque[bool] = deque()
        self._bad_data = False
        self._data_written = False

    def step(self, rxd: int, rxerr: bool, crsdv: bool) -> AxisWord | None:
        """Advance by one clock; return the payload word released, if any."""
        if not 0 <= rxd <= 3:
            raise ValueError(f"rxd {rxd!r} is not a dibit")
        self._spotter.feed(rxd, bool(crsdv))
        if self._spotter.spotted or self._spotter.spotted_before:
            self._receive(rxd, bool(rxerr), bool(crsdv))
        else:
            self._reset_frame()
        released: list[AxisWord] = []
        self._gate.handle(self._data_buffer, self._valid_buffer, released)
        return released[0] if released else None

    def run(
        self,
        rxd: Iterable[int],
        crsdv: Iterable[int],
        rxerr: Iterable[int] | None = None,
    ) -> list[AxisWord]:
        """Clock through the given signals and return every word released.

        Shorter signals are padded with zeros. After the inputs end the
        line is held idle until the last frame has been delivered.
        """
        received = []
        signals = zip_longest(rxd, crsdv, rxerr or (), fillvalue=0)
        for dibit, carrier, error in signals:
            word = self.step(dibit, error, carrier)
            if word is not None:
                received.append(word)
        while self._in_frame or self._frame_queued:
            word = self.step(0, False, False)
            if word is not None:
                received.append(word)
        return received

    @property
    def _in_frame(self) -> bool:
        return self._spotter.spotted or self._spotter.spotted_before

    @property
    def _frame_queued(self) -> bool:
        return any(word.last for word in self._data_buffer)

    def _receive(self, rxd: int, rxerr: bool, crsdv: bool) -> None:
        if rxerr:
            self._bad_data = True
        byte = self._bundler.bundle(rxd)
        self._validator.add_to_fcs(byte)
        word = self._word_generator.next(byte, crsdv)
        checked = self._validator.validate(word)
        self._bad_data |= checked.bad
        payload = self._handler.get_payload(checked.word, self.loc)
        self._bad_data |= payload.bad
        if payload.word is not None:
            self._data_buffer.append(payload.word)
            self._data_written = True
        if checked.word is not None and checked.word.last and self._data_written:
            self._valid_buffer.append(not self._bad_data)

    def _reset_frame(self) -> None:
        self._bundler.reset()
        self._word_generator.reset()
        self._validator.reset()
        self._handler.reset()
        self._bad_data = False
        self._data_written = False