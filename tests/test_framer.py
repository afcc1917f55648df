import numpy as np
import pytest

from melstream.pipeline.framer import Framer, chunk, deinterleave


def _pcm(values) -> bytes:
    return np.asarray(values, dtype="<f4").tobytes()


def test_deinterleave_mono_decodes_float32_le():
    # Given three little-endian float32 samples
    buffer = _pcm([0.5, -0.25, 1.0])
    # When decoded as one channel
    (mono,) = deinterleave(buffer, 1)
    # Then the values come back unchanged as float32
    assert mono.dtype == np.float32
    np.testing.assert_array_equal(mono, [0.5, -0.25, 1.0])


def test_deinterleave_discards_trailing_partial_sample():
    """Given 3 samples plus 2 stray bytes → Then only the 3 whole samples decode"""
    buffer = _pcm([0.1, 0.2, 0.3]) + b"\x01\x02"
    (mono,) = deinterleave(buffer, 1)
    np.testing.assert_allclose(mono, [0.1, 0.2, 0.3], rtol=1e-6)


def test_deinterleave_shorter_than_one_sample_is_empty():
    (mono,) = deinterleave(b"\x00\x01\x02", 1)
    assert mono.size == 0
    (mono,) = deinterleave(b"", 1)
    assert mono.size == 0


def test_deinterleave_stereo_splits_channels_and_drops_orphan():
    # L0 R0 L1 R1 L2 → L2 has no right partner
    buffer = _pcm([1.0, -1.0, 2.0, -2.0, 3.0])
    left, right = deinterleave(buffer, 2)
    np.testing.assert_array_equal(left, [1.0, 2.0])
    np.testing.assert_array_equal(right, [-1.0, -2.0])


def test_deinterleave_rejects_zero_channels():
    with pytest.raises(ValueError):
        deinterleave(_pcm([0.0]), 0)


def test_chunk_slices_with_short_tail():
    samples = np.arange(10, dtype=np.float32)
    sizes = [len(c) for c in chunk(samples, 4)]
    assert sizes == [4, 4, 2]


def test_framer_keeps_sample_split_across_reads():
    # Given one sample whose bytes arrive in two reads
    raw = _pcm([0.75, -0.5])
    framer = Framer()
    first = framer.push(raw[:6])
    second = framer.push(raw[6:])
    # Then nothing is lost at the read boundary
    np.testing.assert_array_equal(np.concatenate([first, second]), [0.75, -0.5])
    assert framer.flush() == 0


def test_framer_flush_reports_dropped_bytes():
    framer = Framer()
    out = framer.push(_pcm([0.25]) + b"\xff\xff\xff")
    np.testing.assert_array_equal(out, [0.25])
    assert framer.flush() == 3
    assert framer.flush() == 0
