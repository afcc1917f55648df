"""
orchestrator.py — Stage 4: Pipeline
====================================
Runs the mel transform and the VAD as two background workers joined by
ordered channels:

  send() ─► ingress (bounded) ─► [mel worker] ─► mel frames ─► [vad worker] ─► egress ─► receive()

``close_ingress()`` is the only shutdown primitive. Each worker drains its
input, flushes its own state and closes its output channel, so the close
cascades downstream and ``receive()`` ends with ``ChannelClosed`` after the
last segment.
"""

from __future__ import annotations

import threading
from typing import Callable, List, Optional

import numpy as np

from melstream.config import PipelineConfig
from melstream.pipeline.channel import Channel
from melstream.pipeline.mel import MelTransform
from melstream.pipeline.vad import Segment, VoiceActivityDetector


class Pipeline:
    def __init__(self, config: PipelineConfig):
        self.config = config
        self._ingress = Channel(maxsize=config.ingress_capacity)
        self._mel_frames = Channel()
        self._egress = Channel()
        self._handles: List[threading.Thread] = []
        self._errors: List[BaseException] = []
        self._started = False

        # Written by the owning worker when it finishes; read after join()
        self.samples_received = 0
        self.frames_emitted = 0
        self.segments_emitted = 0
        self.candidates_discarded = 0

    # ------------------------------------------------------------------ #
    # Public API                                                          #
    # ------------------------------------------------------------------ #

    def send(self, samples) -> None:
        """Queue a chunk of float32 samples. Raises ChannelClosed after close."""
        self._ingress.send(np.array(samples, dtype=np.float32).ravel())

    def close_ingress(self) -> None:
        self._ingress.close()

    def rx(self) -> Channel:
        """Egress channel; iterate it to receive segments until closed."""
        return self._egress

    def receive(self, timeout: Optional[float] = None) -> Segment:
        return self._egress.receive(timeout)

    def start(self) -> List[threading.Thread]:
        if self._started:
            raise RuntimeError("pipeline already started")
        self._started = True

        self._handles = [
            self._spawn("melstream-mel", self._run_mel),
            self._spawn("melstream-vad", self._run_vad),
        ]
        return list(self._handles)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for both workers; re-raises the first worker failure."""
        for handle in self._handles:
            handle.join(timeout)
        if self._errors:
            raise self._errors[0]

    # ------------------------------------------------------------------ #
    # Workers                                                             #
    # ------------------------------------------------------------------ #

    def _spawn(self, name: str, target: Callable[[], None]) -> threading.Thread:
        handle = threading.Thread(
            target=self._guarded, args=(target,), name=name, daemon=True
        )
        handle.start()
        return handle

    def _guarded(self, target: Callable[[], None]) -> None:
        try:
            target()
        except BaseException as exc:
            # Surfaced by join(); closing unblocks the producer and the sibling worker
            self._errors.append(exc)
            self._ingress.close()
            self._mel_frames.close()

    def _run_mel(self) -> None:
        transform = MelTransform(self.config.mel)
        try:
            for samples in self._ingress:
                for frame in transform.add(samples):
                    self._mel_frames.send(frame)
            for frame in transform.flush():
                self._mel_frames.send(frame)
        finally:
            self.samples_received = transform.samples_received
            self.frames_emitted = transform.frames_emitted
            self._mel_frames.close()

    def _run_vad(self) -> None:
        detector = VoiceActivityDetector(self.config.vad)
        try:
            for frame in self._mel_frames:
                segment = detector.feed(frame)
                if segment is not None:
                    self._egress.send(segment)
            segment = detector.finish()
            if segment is not None:
                self._egress.send(segment)
        finally:
            self.segments_emitted = detector.segments_emitted
            self.candidates_discarded = detector.candidates_discarded
            self._egress.close()
