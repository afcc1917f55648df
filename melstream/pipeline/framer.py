from __future__ import annotations

from typing import Iterator, List

import numpy as np

from melstream.constants import SAMPLE_WIDTH

# Interleaved little-endian IEEE float32 PCM
PCM_DTYPE = np.dtype("<f4")


def deinterleave(buffer: bytes, channels: int = 1) -> List[np.ndarray]:
    """
    Split interleaved float32 PCM into one float32 array per channel.

    Trailing bytes that do not make up a whole sample, and trailing samples
    that do not make up a whole frame across all channels, are dropped.
    """
    if channels < 1:
        raise ValueError(f"channels must be >= 1, got {channels}")

    n_frames = len(buffer) // (SAMPLE_WIDTH * channels)
    usable = n_frames * SAMPLE_WIDTH * channels
    if usable == 0:
        return [np.zeros(0, dtype=np.float32) for _ in range(channels)]

    data = np.frombuffer(buffer[:usable], dtype=PCM_DTYPE).reshape(n_frames, channels)
    return [data[:, ch].astype(np.float32) for ch in range(channels)]


def chunk(samples: np.ndarray, size: int) -> Iterator[np.ndarray]:
    """Yield consecutive slices of *size* samples; the last may be shorter."""
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, len(samples), size):
        yield samples[start:start + size]


class Framer:
    """
    Streaming front-end for a PCM byte source.

    Reads may end in the middle of a sample. The incomplete tail is held
    back and prefixed to the next push, so only end-of-stream can lose
    bytes, and then never more than one frame's worth.
    """

    def __init__(self, channels: int = 1):
        if channels < 1:
            raise ValueError(f"channels must be >= 1, got {channels}")
        self.channels = channels
        self._remainder = b""

    def push(self, buffer: bytes) -> np.ndarray:
        """Decode whole samples from *buffer* and return channel 0."""
        data = self._remainder + bytes(buffer)
        frame_bytes = SAMPLE_WIDTH * self.channels
        usable = len(data) - len(data) % frame_bytes
        self._remainder = data[usable:]
        return deinterleave(data[:usable], self.channels)[0]

    def flush(self) -> int:
        """Discard the incomplete tail; returns the number of bytes dropped."""
        dropped = len(self._remainder)
        self._remainder = b""
        return dropped
