import threading

import numpy as np
import pytest

from song_detection.audio.accumulator import RingAccumulator


def test_snapshot_is_none_before_capture():
    acc = RingAccumulator(sample_rate=8000, max_duration_seconds=1.0)

    assert acc.snapshot() is None
    assert len(acc) == 0


def test_keeps_only_most_recent_window():
    acc = RingAccumulator(sample_rate=10, max_duration_seconds=1.0)

    acc.push(np.arange(6, dtype=np.float32))
    acc.push(np.arange(6, 12, dtype=np.float32))
    snap = acc.snapshot()

    assert snap is not None
    assert snap.sample_rate == 10
    assert snap.samples.tolist() == list(range(2, 12))
    assert acc.duration_seconds == pytest.approx(1.0)


def test_oversized_frame_keeps_its_tail():
    acc = RingAccumulator(sample_rate=4, max_duration_seconds=1.0)
    acc.push(np.array([9.0], dtype=np.float32))

    acc.push(np.arange(10, dtype=np.float32))

    assert acc.snapshot().samples.tolist() == [6.0, 7.0, 8.0, 9.0]


def test_snapshot_is_an_immutable_copy():
    acc = RingAccumulator(sample_rate=4, max_duration_seconds=1.0)
    acc.push(np.array([0.1, 0.2], dtype=np.float32))

    snap = acc.snapshot()
    acc.push(np.array([0.3, 0.4, 0.5], dtype=np.float32))

    assert snap.samples.tolist() == pytest.approx([0.1, 0.2])
    with pytest.raises(ValueError):
        snap.samples[0] = 1.0


def test_clear_does_not_touch_existing_snapshot():
    acc = RingAccumulator(sample_rate=4, max_duration_seconds=1.0)
    acc.push(np.array([0.25, 0.5], dtype=np.float32))
    snap = acc.snapshot()

    acc.clear()

    assert acc.snapshot() is None
    assert acc.level == 0.0
    assert snap.samples.tolist() == [0.25, 0.5]


def test_int16_and_stereo_frames_are_normalized():
    acc = RingAccumulator(sample_rate=8, max_duration_seconds=1.0)

    acc.push(np.array([16384, -32768], dtype=np.int16))
    acc.push(np.array([[0.2, 0.4], [-1.0, 1.0]], dtype=np.float32))

    assert acc.snapshot().samples.tolist() == pytest.approx([0.5, -1.0, 0.3, 0.0])


def test_int16_stereo_frames_are_scaled_before_mixdown():
    acc = RingAccumulator(sample_rate=8, max_duration_seconds=1.0)

    acc.push(np.array([[16384, 16384], [-32768, -32768], [16384, -16384]], dtype=np.int16))

    assert acc.snapshot().samples.tolist() == pytest.approx([0.5, -1.0, 0.0])


def test_level_reports_rms_percentage():
    acc = RingAccumulator(sample_rate=8, max_duration_seconds=1.0)

    acc.push(np.full(4, 0.5, dtype=np.float32))

    assert acc.level == pytest.approx(50.0)


def test_subscribers_receive_frames_and_failures_are_isolated():
    acc = RingAccumulator(sample_rate=8, max_duration_seconds=1.0)
    received = []

    def broken(_frame):
        raise RuntimeError("listener failure")

    acc.subscribe(broken)
    unsubscribe = acc.subscribe(lambda frame: received.append(frame.tolist()))
    acc.push(np.array([0.5], dtype=np.float32))
    unsubscribe()
    acc.push(np.array([0.25], dtype=np.float32))

    assert received == [[0.5]]
    assert len(acc) == 2


def test_changing_sample_rate_discards_buffer():
    acc = RingAccumulator(sample_rate=8, max_duration_seconds=2.0)
    acc.push(np.ones(4, dtype=np.float32))

    acc.set_sample_rate(16)

    assert acc.snapshot() is None
    assert acc.capacity == 32


def test_rejects_invalid_configuration():
    with pytest.raises(ValueError):
        RingAccumulator(sample_rate=0)
    with pytest.raises(ValueError):
        RingAccumulator(sample_rate=44100, max_duration_seconds=0)


def test_concurrent_push_and_snapshot_stay_consistent():
    acc = RingAccumulator(sample_rate=1000, max_duration_seconds=1.0)
    stop = threading.Event()

    def writer():
        value = 0
        while not stop.is_set():
            frame = (np.arange(value, value + 64) % 4096).astype(np.float32)
            acc.push(frame)
            value = (value + 64) % 4096

    thread = threading.Thread(target=writer)
    thread.start()
    try:
        for _ in range(200):
            snap = acc.snapshot()
            if snap is None:
                continue
            diffs = np.diff(snap.samples)
            assert np.all(diffs % 4096 == 1.0)
    finally:
        stop.set()
        thread.join()
