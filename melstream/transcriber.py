"""
transcriber.py — segment consumer
=================================
Pulls finalized segments off the pipeline's egress channel one at a time,
runs the recognition engine on each and prints

    <frame_index> [<mm:ss.mmm>] <text>

to stdout. A failed recognition prints a diagnostic line and moves on to the
next segment; it never stops the loop.
"""

from __future__ import annotations

import os
import sys
import threading
from dataclasses import dataclass
from typing import List, Optional, Protocol

import numpy as np

from melstream.config import MelConfig
from melstream.errors import RecognitionError
from melstream.pipeline.channel import Channel
from melstream.pipeline.vad import Segment, duration_ms_for_n_frames, format_milliseconds
from melstream.visualization import save_mel_image

ERROR_LINE = "Error retrieving text for segment."


class RecognitionEngine(Protocol):
    def transcribe(self, mel: np.ndarray, language: str) -> List[str]:
        ...


@dataclass
class TranscriptRecord:
    index: int
    end_index: int
    time: str
    start_time: float
    end_time: float
    text: Optional[str]     # None when recognition failed or came back empty


class Transcriber:
    def __init__(
        self,
        engine: RecognitionEngine,
        mel_config: MelConfig,
        language: str = "en",
        image_dir: Optional[str] = None,
        out=None,
        verbose: bool = False,
    ):
        self.engine = engine
        self.mel_config = mel_config
        self.language = language
        self.image_dir = image_dir
        self.out = out          # None → sys.stdout at write time
        self.verbose = verbose
        self.records: List[TranscriptRecord] = []
        self.error: Optional[Exception] = None
        self._cancelled = threading.Event()

    # ------------------------------------------------------------------ #
    # Public API                                                          #
    # ------------------------------------------------------------------ #

    def handle(self, segment: Segment) -> Optional[str]:
        """Transcribe one segment; returns the printed line, if any."""
        cfg = self.mel_config
        ms = duration_ms_for_n_frames(cfg.hop_size, cfg.sampling_rate, segment.start)
        time = format_milliseconds(int(ms))

        if self.image_dir:
            save_mel_image(segment.mel, os.path.join(self.image_dir, f"frame_{segment.start}.png"))

        record = TranscriptRecord(
            index=segment.start,
            end_index=segment.end,
            time=time,
            start_time=cfg.frame_time(segment.start),
            end_time=cfg.frame_time(segment.end + 1),
            text=None,
        )
        self.records.append(record)

        try:
            texts = self.engine.transcribe(segment.mel, self.language)
        except RecognitionError as exc:
            if self.verbose:
                print(f"[Transcriber] Segment {segment.start}: {exc}", file=sys.stderr)
            self._write(ERROR_LINE)
            return None

        if not texts:
            if self.verbose:
                print(f"[Transcriber] Segment {segment.start}: no text", file=sys.stderr)
            return None

        record.text = texts[0]
        line = f"{segment.start} [{time}] {record.text}"
        self._write(line)
        return line

    def run(self, channel: Channel) -> None:
        """Consume *channel* until it is closed and drained, or cancel() is called.

        An engine failure other than RecognitionError stops the loop and is
        kept in ``error`` for the caller to re-raise after joining.
        """
        try:
            for segment in channel:
                if self._cancelled.is_set():
                    break
                self.handle(segment)
        except Exception as exc:
            self.error = exc
            print(f"[Transcriber] Stopped: {exc!r}", file=sys.stderr)

    def spawn(self, channel: Channel) -> threading.Thread:
        handle = threading.Thread(
            target=self.run, args=(channel,), name="melstream-transcriber", daemon=True
        )
        handle.start()
        return handle

    def cancel(self) -> None:
        """Stop after the segment currently being transcribed."""
        self._cancelled.set()

    # ------------------------------------------------------------------ #
    # Internal helpers                                                    #
    # ------------------------------------------------------------------ #

    def _write(self, line: str) -> None:
        print(line, file=self.out, flush=True)
