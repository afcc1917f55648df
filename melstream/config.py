"""
config.py — Immutable pipeline configuration
=============================================
MelConfig         : FFT / hop / mel-bin / sample-rate layout of the front-end
DetectionSettings : VAD thresholds
PipelineConfig    : both of the above plus the ingress buffer size

All three are frozen dataclasses built once at startup and shared read-only
by every stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from melstream import constants


@dataclass(frozen=True)
class MelConfig:
    fft_size: int = constants.FFT_SIZE
    hop_size: int = constants.HOP_SIZE
    n_mels: int = constants.N_MELS
    sampling_rate: float = constants.SAMPLING_RATE

    def __post_init__(self):
        if self.sampling_rate <= 0:
            raise ValueError(f"sampling_rate must be positive, got {self.sampling_rate}")
        if self.hop_size <= 0 or self.hop_size >= self.fft_size:
            raise ValueError(
                f"hop_size must satisfy 0 < hop_size < fft_size, "
                f"got hop_size={self.hop_size} fft_size={self.fft_size}"
            )
        if self.n_mels <= 0:
            raise ValueError(f"n_mels must be positive, got {self.n_mels}")

    @property
    def n_fft_bins(self) -> int:
        return self.fft_size // 2 + 1

    def frame_time(self, index: int) -> float:
        """Start time (seconds) of mel frame *index*."""
        return index * self.hop_size / self.sampling_rate


@dataclass(frozen=True)
class DetectionSettings:
    energy_threshold: float = constants.ENERGY_THRESHOLD
    min_intersections: int = constants.MIN_INTERSECTIONS
    intersection_threshold: int = constants.INTERSECTION_THRESHOLD
    min_mel: int = constants.MIN_MEL
    min_frames: int = constants.MIN_FRAMES

    def __post_init__(self):
        for name in ("energy_threshold", "min_intersections",
                     "intersection_threshold", "min_mel", "min_frames"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")


@dataclass(frozen=True)
class PipelineConfig:
    mel: MelConfig = field(default_factory=MelConfig)
    vad: DetectionSettings = field(default_factory=DetectionSettings)
    ingress_capacity: int = constants.INGRESS_CAPACITY

    def __post_init__(self):
        if self.ingress_capacity <= 0:
            raise ValueError(
                f"ingress_capacity must be positive, got {self.ingress_capacity}"
            )

    @classmethod
    def from_args(cls, args) -> "PipelineConfig":
        """Build a config from the CLI namespace; the mel layout stays fixed."""
        vad = DetectionSettings(
            energy_threshold=args.energy_threshold,
            min_intersections=args.min_intersections,
            intersection_threshold=args.intersection_threshold,
            min_mel=args.min_mel,
            min_frames=args.min_frames,
        )
        return cls(mel=MelConfig(), vad=vad)
