"""Shared pytest fixtures: configs and synthetic signals."""

import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from melstream.config import DetectionSettings, MelConfig, PipelineConfig

SAMPLE_RATE = 16000
HOP = 160


@pytest.fixture
def mel_config() -> MelConfig:
    return MelConfig()


@pytest.fixture
def vad_settings() -> DetectionSettings:
    """Thresholds scaled for the synthetic noise bursts used in tests."""
    return DetectionSettings(
        energy_threshold=0.01,
        min_intersections=5,
        intersection_threshold=10,
        min_mel=10,
        min_frames=50,
    )


@pytest.fixture
def pipeline_config(mel_config, vad_settings) -> PipelineConfig:
    return PipelineConfig(mel=mel_config, vad=vad_settings, ingress_capacity=64)


def noise(n_samples: int, scale: float = 0.3, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return (rng.normal(0, scale, size=n_samples)).astype(np.float32)


def silence(n_samples: int) -> np.ndarray:
    return np.zeros(n_samples, dtype=np.float32)


def burst(lead_hops: int, burst_hops: int, tail_hops: int, seed: int = 0) -> np.ndarray:
    """Silence, broadband noise, silence, measured in hops."""
    return np.concatenate([
        silence(lead_hops * HOP),
        noise(burst_hops * HOP, seed=seed),
        silence(tail_hops * HOP),
    ])
