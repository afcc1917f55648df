"""
mel.py — Stage 2: streaming mel spectrogram
===========================================
Causal sliding-window transform. Frame ``i`` is computed over stream
samples ``[i * hop, i * hop + fft)``; input may arrive in pieces of any size,
so leftover samples are kept in a rolling buffer between calls.

Per window (same recipe as Whisper's front-end):
  periodic Hann window → |rFFT|² → Slaney-normalised mel filterbank

Values are mel *power*, i.e. non-negative energies. Log compression is left
to the consumer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import librosa
import numpy as np
from scipy.signal import get_window

from melstream.config import MelConfig


@dataclass(frozen=True)
class MelFrame:
    index: int
    values: np.ndarray   # shape (n_mels,), float32, >= 0


class MelTransform:
    def __init__(self, config: MelConfig):
        self.config = config
        self._window = get_window("hann", config.fft_size, fftbins=True).astype(np.float32)
        self._filters = librosa.filters.mel(
            sr=config.sampling_rate,
            n_fft=config.fft_size,
            n_mels=config.n_mels,
        ).astype(np.float32)
        self._buffer = np.zeros(0, dtype=np.float32)
        self._next_index = 0
        self._closed = False
        self.samples_received = 0

    @property
    def frames_emitted(self) -> int:
        return self._next_index

    # ------------------------------------------------------------------ #
    # Public API                                                          #
    # ------------------------------------------------------------------ #

    def add(self, samples) -> List[MelFrame]:
        """Append *samples* and return every frame that became complete."""
        if self._closed:
            raise RuntimeError("MelTransform already flushed")

        samples = np.asarray(samples, dtype=np.float32).ravel()
        if samples.size == 0:
            return []
        self.samples_received += samples.size
        self._buffer = np.concatenate([self._buffer, samples])

        fft_size, hop_size = self.config.fft_size, self.config.hop_size
        if len(self._buffer) < fft_size:
            return []

        num_frames = 1 + (len(self._buffer) - fft_size) // hop_size
        indices = (np.arange(fft_size)[None, :] +
                   np.arange(num_frames)[:, None] * hop_size)
        frames = self._emit(self._buffer[indices])

        # Keep everything from the start of the next window onwards
        self._buffer = self._buffer[num_frames * hop_size:]
        return frames

    def flush(self) -> List[MelFrame]:
        """
        End of stream. A stream shorter than one window is zero-padded to
        a single frame; otherwise the trailing partial hop is discarded.
        """
        if self._closed:
            return []
        self._closed = True

        frames: List[MelFrame] = []
        if self._next_index == 0 and self._buffer.size:
            padded = np.zeros(self.config.fft_size, dtype=np.float32)
            padded[:self._buffer.size] = self._buffer
            frames = self._emit(padded[None, :])
        self._buffer = np.zeros(0, dtype=np.float32)
        return frames

    # ------------------------------------------------------------------ #
    # Internal helpers                                                    #
    # ------------------------------------------------------------------ #

    def _emit(self, windows: np.ndarray) -> List[MelFrame]:
        """windows: (num_frames, fft_size) → one MelFrame per row."""
        spectrum = np.abs(np.fft.rfft(windows * self._window, axis=1)) ** 2
        mel = spectrum.astype(np.float32) @ self._filters.T
        np.maximum(mel, 0.0, out=mel)
        assert mel.shape[1] == self.config.n_mels, (
            f"mel frame width {mel.shape[1]} != n_mels {self.config.n_mels}"
        )

        frames = []
        for row in mel:
            frames.append(MelFrame(index=self._next_index, values=row.copy()))
            self._next_index += 1
        return frames
