"""
vad.py — Stage 3: energy-based voice activity segmentation
==========================================================
Consumes mel frames in index order and cuts the stream into speech
segments with a two-state machine:

  IDLE         : waiting for an active frame (enough bins above threshold)
  ACCUMULATING : collecting a candidate; closes after more than
                 ``intersection_threshold`` consecutive inactive frames

A closed candidate ends on its last active frame (the debounce tail is not
part of it). It is emitted only if it spans at least ``min_frames`` frames
and its cumulative active-bin weight reaches ``min_mel``. Everything else
is dropped silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np

from melstream.config import DetectionSettings
from melstream.pipeline.mel import MelFrame


class VadState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


@dataclass
class Segment:
    start: int
    mel: np.ndarray      # (n_mels, frame_count), columns in frame order
    weight: int

    @property
    def frame_count(self) -> int:
        return self.mel.shape[1]

    @property
    def end(self) -> int:
        return self.start + self.frame_count - 1


def duration_ms_for_n_frames(hop_size: int, sampling_rate: float, n_frames: int) -> float:
    return n_frames * hop_size * 1000.0 / sampling_rate


def format_milliseconds(milliseconds: int) -> str:
    """12_345 → '00:12.345'. Minutes are not wrapped into hours."""
    minutes, rem = divmod(int(milliseconds), 60_000)
    seconds, millis = divmod(rem, 1000)
    return f"{minutes:02d}:{seconds:02d}.{millis:03d}"


class VoiceActivityDetector:
    def __init__(self, settings: DetectionSettings):
        self.settings = settings
        self._state = VadState.IDLE
        self._columns: List[np.ndarray] = []
        self._start = 0
        self._weight = 0
        self._inactive_run = 0
        self._width: Optional[int] = None
        self._last_index: Optional[int] = None
        self.segments_emitted = 0
        self.candidates_discarded = 0

    @property
    def state(self) -> VadState:
        return self._state

    def intersections(self, values: np.ndarray) -> int:
        """Number of mel bins strictly above the energy threshold."""
        return int(np.count_nonzero(values > self.settings.energy_threshold))

    def feed(self, frame: MelFrame) -> Optional[Segment]:
        """Advance by one frame; returns a Segment when one is accepted."""
        values = frame.values
        if self._width is None:
            self._width = values.shape[0]
        assert values.shape == (self._width,), (
            f"frame {frame.index} has shape {values.shape}, expected ({self._width},)"
        )
        assert self._last_index is None or frame.index == self._last_index + 1, (
            f"frame index {frame.index} does not follow {self._last_index}"
        )
        self._last_index = frame.index

        hits = self.intersections(values)
        active = hits >= self.settings.min_intersections

        if self._state is VadState.IDLE:
            if active:
                self._state = VadState.ACCUMULATING
                self._start = frame.index
                self._columns = [values]
                self._weight = hits
                self._inactive_run = 0
            return None

        self._columns.append(values)
        if active:
            self._weight += hits
            self._inactive_run = 0
            return None

        self._inactive_run += 1
        if self._inactive_run > self.settings.intersection_threshold:
            return self._close()
        return None

    def finish(self) -> Optional[Segment]:
        """End of stream: evaluate any open candidate."""
        if self._state is VadState.ACCUMULATING:
            return self._close()
        return None

    def _close(self) -> Optional[Segment]:
        # trailing inactive frames only debounced the close; the segment ends
        # on its last active frame
        columns = self._columns[:len(self._columns) - self._inactive_run]
        start, weight = self._start, self._weight
        self._state = VadState.IDLE
        self._columns = []
        self._weight = 0
        self._inactive_run = 0

        if len(columns) >= self.settings.min_frames and weight >= self.settings.min_mel:
            self.segments_emitted += 1
            return Segment(start=start, mel=np.stack(columns, axis=1), weight=weight)

        self.candidates_discarded += 1
        return None
