import os
import sys

import numpy as np
import soundfile as sf

from melstream.constants import READ_CHUNK_BYTES, SAMPLE_WIDTH, SAMPLING_RATE
from melstream.pipeline.framer import Framer

RAW_EXTENSIONS = {".f32", ".raw", ".pcm"}


class AudioStreamer:
    """
    Yields float32 mono sample chunks from stdin (raw float32 PCM), a raw
    float32 file, or any file soundfile can decode (WAV, FLAC, OGG …).
    """

    def __init__(self, file_path=None, sample_rate: int = SAMPLING_RATE,
                 chunk_bytes: int = READ_CHUNK_BYTES):
        if chunk_bytes < SAMPLE_WIDTH:
            raise ValueError(f"chunk_bytes must be >= {SAMPLE_WIDTH}, got {chunk_bytes}")
        self.file_path = file_path
        self.sample_rate = sample_rate
        self.chunk_bytes = chunk_bytes
        self.bytes_dropped = 0
        self.info = None
        if file_path is not None:
            self._check_input()

    def _check_input(self):
        # Fail before any model load or worker start, not mid-stream.
        if not os.path.isfile(self.file_path):
            raise FileNotFoundError(f"Input file not found: '{self.file_path}'")
        if not os.access(self.file_path, os.R_OK):
            raise PermissionError(f"Input file not readable: '{self.file_path}'")
        if self.is_raw:
            return
        try:
            self.info = sf.info(self.file_path)
        except RuntimeError as exc:
            raise ValueError(f"Cannot decode '{self.file_path}': {exc}") from exc
        if self.info.samplerate != self.sample_rate:
            raise ValueError(
                f"Expected {self.sample_rate} Hz input, got {self.info.samplerate} Hz "
                f"in '{self.file_path}'."
            )

    @property
    def is_raw(self) -> bool:
        return os.path.splitext(self.file_path)[1].lower() in RAW_EXTENSIONS

    def stream(self):
        """Yields audio chunks sequentially until end of input."""
        if self.file_path is None:
            yield from self._stream_raw(sys.stdin.buffer)
        elif self.is_raw:
            with open(self.file_path, "rb") as fh:
                yield from self._stream_raw(fh)
        else:
            yield from self._stream_soundfile()

    def _stream_raw(self, fh):
        framer = Framer(channels=1)
        while True:
            data = fh.read(self.chunk_bytes)
            if not data:
                break
            samples = framer.push(data)
            if samples.size:
                yield samples
        # a trailing partial sample can never complete
        self.bytes_dropped = framer.flush()

    def _stream_soundfile(self):
        frames_per_chunk = self.chunk_bytes // SAMPLE_WIDTH
        with sf.SoundFile(self.file_path, 'r') as f:
            while True:
                data = f.read(frames_per_chunk, dtype='float32', always_2d=True)
                if len(data) == 0:
                    break
                # mono downmix
                yield np.ascontiguousarray(data.mean(axis=1), dtype=np.float32)
