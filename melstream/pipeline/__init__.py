"""
melstream/pipeline — streaming segmentation engine
==================================================
Stage 1: framer.py       — float32 PCM bytes → samples
Stage 2: mel.py          — sliding-window mel spectrogram
Stage 3: vad.py          — energy VAD state machine → segments
Stage 4: orchestrator.py — background workers, channels, drain on close
"""

from melstream.pipeline.channel import Channel
from melstream.pipeline.framer import Framer, chunk, deinterleave
from melstream.pipeline.mel import MelFrame, MelTransform
from melstream.pipeline.orchestrator import Pipeline
from melstream.pipeline.vad import (
    Segment,
    VadState,
    VoiceActivityDetector,
    duration_ms_for_n_frames,
    format_milliseconds,
)

__all__ = [
    "Channel",
    "Framer",
    "MelFrame",
    "MelTransform",
    "Pipeline",
    "Segment",
    "VadState",
    "VoiceActivityDetector",
    "chunk",
    "deinterleave",
    "duration_ms_for_n_frames",
    "format_milliseconds",
]
