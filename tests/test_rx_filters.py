import zlib
from collections import deque

import pytest

from rmiiudp.rx_filters import NOTHING, DataGate, FCSValidator, StageResult
from rmiiudp.types import AxisWord

FRAME = b"made-up frame body for checking"


def with_fcs(frame: bytes) -> bytes:
    return frame + zlib.crc32(frame).to_bytes(4, "little")


def run_frame(validator, wire):
    results = []
    for position, byte in enumerate(wire):
        validator.add_to_fcs(byte)
        results.append(validator.validate(AxisWord(byte, position == len(wire) - 1)))
    return results


def frame_words(data: bytes):
    return [AxisWord(byte, position == len(data) - 1) for position, byte in enumerate(data)]


def test_gate_forwards_good_frame():
    words = frame_words(b"\x01\x02\x03")
    data_buffer = deque(words)
    valid_buffer = deque([True])
    out = []
    gate = DataGate()
    for _ in range(5):
        gate.handle(data_buffer, valid_buffer, out)
    assert out == words
    assert not data_buffer
    assert not valid_buffer


def test_gate_drains_bad_frame_without_output():
    data_buffer = deque(frame_words(b"\x01\x02\x03"))
    valid_buffer = deque([False])
    out = []
    gate = DataGate()
    for _ in range(3):
        gate.handle(data_buffer, valid_buffer, out)
    assert out == []
    assert len(data_buffer) == 0


def test_gate_waits_for_verdict():
    words = frame_words(b"\x0a\x0b")
    data_buffer = deque(words)
    out = []
    gate = DataGate()
    gate.handle(data_buffer, deque(), out)
    assert list(data_buffer) == words
    assert out == []


def test_gate_reports_empty_buffer_mid_frame():
    gate = DataGate()
    with pytest.raises(IndexError):
        gate.handle(deque(), deque([True]), [])


def test_validator_strips_fcs_and_accepts_good_frame():
    results = run_frame(FCSValidator(), with_fcs(FRAME))
    assert results[:4] == [NOTHING] * 4
    words = [result.word for result in results[4:]]
    assert bytes(word.data for word in words) == FRAME
    assert [word.last for word in words] == [False] * (len(FRAME) - 1) + [True]
    assert not any(result.bad for result in results)


def test_validator_flags_corrupted_fcs_on_last_word():
    wire = bytearray(with_fcs(FRAME))
    wire[-2] ^= 0x10
    results = run_frame(FCSValidator(), bytes(wire))
    assert results[-1].bad
    assert results[-1].word.last
    assert not any(result.bad for result in results[:-1])


def test_validator_flags_corrupted_body():
    wire = bytearray(with_fcs(FRAME))
    wire[3] ^= 0x01
    results = run_frame(FCSValidator(), bytes(wire))
    assert results[-1] == StageResult(AxisWord(wire[-5], True, 0), True)


def test_validator_ignores_missing_words_and_bytes():
    validator = FCSValidator()
    wire = with_fcs(FRAME)
    results = []
    for position, byte in enumerate(wire):
        validator.add_to_fcs(None)
        assert validator.validate(None) == NOTHING
        validator.add_to_fcs(byte)
        results.append(validator.validate(AxisWord(byte, position == len(wire) - 1)))
    assert bytes(result.word.data for result in results[4:]) == FRAME
    assert not results[-1].bad


def test_validator_reset_starts_new_frame():
    validator = FCSValidator()
    bad_wire = bytearray(with_fcs(FRAME))
    bad_wire[0] ^= 0xFF
    assert run_frame(validator, bytes(bad_wire))[-1].bad
    validator.reset()
    other = b"another made-up frame"
    results = run_frame(validator, with_fcs(other))
    assert results[:4] == [NOTHING] * 4
    assert bytes(result.word.data for result in results[4:]) == other
    assert not results[-1].bad