"""
recognizer.py — Whisper recognition engine
==========================================
Wraps an openai-whisper model so it can be driven directly with the mel
matrices the pipeline produces (skipping Whisper's own audio front-end).

The pipeline emits mel *power*; Whisper expects its normalised log-mel over
a fixed 30 s window (3000 frames). ``log_mel_for_whisper`` bridges the two
the same way ``whisper.log_mel_spectrogram`` does: pad in power space,
log10, floor at (max - 8), rescale.

The engine is not reentrant. It is owned by the transcriber thread and
called one segment at a time.
"""

from __future__ import annotations

import sys
from typing import List

import numpy as np
import torch
import whisper

from melstream.errors import EngineLoadError, RecognitionError

WHISPER_FRAMES = whisper.audio.N_FRAMES   # 3000 frames = 30 s at 10 ms hops


def log_mel_for_whisper(mel: np.ndarray, n_frames: int = WHISPER_FRAMES) -> np.ndarray:
    """(n_mels, T) mel power → (n_mels, n_frames) Whisper-normalised log-mel."""
    padded = np.zeros((mel.shape[0], n_frames), dtype=np.float32)
    width = min(mel.shape[1], n_frames)
    padded[:, :width] = mel[:, :width]

    log_spec = np.log10(np.maximum(padded, 1e-10))
    log_spec = np.maximum(log_spec, log_spec.max() - 8.0)
    return (log_spec + 4.0) / 4.0


class WhisperEngine:
    """
    Greedy, single-segment Whisper decoding on pre-computed mel input.

    Segments longer than Whisper's 30 s window are trimmed to it.
    """

    def __init__(self, model: str = "medium.en", device: str = "cpu"):
        print(f"[Whisper] Loading model '{model}' on {device} …", file=sys.stderr)
        try:
            self._model = whisper.load_model(model, device=device)
        except (RuntimeError, OSError, ValueError) as exc:
            raise EngineLoadError(f"failed to load Whisper model '{model}': {exc}") from exc
        self.device = device
        print("[Whisper] Model ready ✓", file=sys.stderr)

    @property
    def n_mels(self) -> int:
        return self._model.dims.n_mels

    def transcribe(self, mel: np.ndarray, language: str) -> List[str]:
        """Return ``[text]`` for a non-blank decode, ``[]`` otherwise."""
        if mel.shape[0] != self.n_mels:
            raise RecognitionError(
                f"model expects {self.n_mels} mel bins, segment has {mel.shape[0]}"
            )

        features = torch.from_numpy(log_mel_for_whisper(mel)).to(self._model.device)
        options = whisper.DecodingOptions(
            language=language,
            without_timestamps=True,
            fp16=False,
        )
        try:
            result = whisper.decode(self._model, features, options)
        except (RuntimeError, ValueError) as exc:
            raise RecognitionError(f"Whisper decode failed: {exc}") from exc

        text = result.text.strip()
        return [text] if text else []
