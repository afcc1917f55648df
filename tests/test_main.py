import io
import sys
from types import SimpleNamespace

import numpy as np
import pytest
import soundfile as sf

from conftest import burst
from melstream.errors import EngineLoadError
from melstream.main import build_parser, run

VAD_ARGS = ["--energy-threshold", "0.01", "--min-frames", "50", "--no-images"]


class EchoEngine:
    def __init__(self, model, device):
        self.model = model
        self.device = device

    def transcribe(self, mel, language):
        return [f"{mel.shape[1]} frames"]


def _raw_file(tmp_path, samples, name="input.f32"):
    path = tmp_path / name
    path.write_bytes(np.asarray(samples, dtype="<f4").tobytes())
    return str(path)


def test_defaults():
    args = build_parser().parse_args([])
    assert args.energy_threshold == 1.0
    assert args.min_intersections == 5
    assert args.intersection_threshold == 10
    assert args.min_mel == 10
    assert args.min_frames == 100
    assert args.input is None
    assert args.chunk_bytes == 128


def test_transcribes_one_line_per_segment(tmp_path, capsys):
    samples = np.concatenate([burst(20, 120, 40, seed=1), burst(0, 120, 40, seed=2)])
    args = build_parser().parse_args(["-i", _raw_file(tmp_path, samples)] + VAD_ARGS)

    assert run(args, engine_factory=EchoEngine) == 0

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    index, stamp, text = lines[0].split(" ", 2)
    assert stamp.startswith("[") and stamp.endswith("]")
    assert text.endswith("frames")
    assert int(lines[0].split()[0]) < int(lines[1].split()[0])


def test_empty_stdin_exits_cleanly(monkeypatch, capsys):
    """Scenario D: zero bytes → no transcript lines, exit status 0"""
    monkeypatch.setattr(sys, "stdin", SimpleNamespace(buffer=io.BytesIO(b"")))
    args = build_parser().parse_args(VAD_ARGS)
    assert run(args, engine_factory=EchoEngine) == 0
    assert capsys.readouterr().out == ""


def test_stdin_with_partial_trailing_sample(monkeypatch, capsys):
    data = np.asarray(burst(20, 120, 40), dtype="<f4").tobytes() + b"\x01"
    monkeypatch.setattr(sys, "stdin", SimpleNamespace(buffer=io.BytesIO(data)))
    args = build_parser().parse_args(VAD_ARGS)
    assert run(args, engine_factory=EchoEngine) == 0
    assert len(capsys.readouterr().out.splitlines()) == 1


def test_silence_prints_nothing(tmp_path, capsys):
    args = build_parser().parse_args(["-i", _raw_file(tmp_path, np.zeros(32000))] + VAD_ARGS)
    assert run(args, engine_factory=EchoEngine) == 0
    assert capsys.readouterr().out == ""


def test_missing_input_is_fatal(tmp_path, capsys):
    args = build_parser().parse_args(["-i", str(tmp_path / "nope.f32")] + VAD_ARGS)
    assert run(args, engine_factory=EchoEngine) == 1
    captured = capsys.readouterr()
    assert "Error: Input file not found" in captured.err
    assert "Error reading input" not in captured.err
    assert captured.out == ""


def test_bad_input_is_rejected_before_the_model_loads(tmp_path, capsys, mocker):
    path = tmp_path / "44k.wav"
    sf.write(str(path), np.zeros(441, dtype=np.float32), 44100)
    factory = mocker.Mock(side_effect=EchoEngine)
    spawn = mocker.patch("melstream.main.Pipeline.start")

    args = build_parser().parse_args(["-i", str(path)] + VAD_ARGS)
    assert run(args, engine_factory=factory) == 1
    assert "Error: Expected 16000 Hz" in capsys.readouterr().err
    factory.assert_not_called()
    spawn.assert_not_called()


def test_engine_load_failure_is_fatal(capsys):
    def failing(model, device):
        raise EngineLoadError("failed to load Whisper model 'x'")

    args = build_parser().parse_args(VAD_ARGS)
    assert run(args, engine_factory=failing) == 1
    assert "Error: failed to load" in capsys.readouterr().err


def test_invalid_vad_settings_are_fatal(capsys):
    args = build_parser().parse_args(["--min-frames", "-1"])
    assert run(args, engine_factory=EchoEngine) == 1
    assert "min_frames" in capsys.readouterr().err


def test_segments_csv_and_images(tmp_path, capsys):
    out_dir = tmp_path / "mel_out"
    csv_path = tmp_path / "segments.csv"
    args = build_parser().parse_args([
        "-i", _raw_file(tmp_path, burst(20, 120, 40)),
        "--energy-threshold", "0.01", "--min-frames", "50",
        "-o", str(out_dir), "--segments-csv", str(csv_path),
    ])
    assert run(args, engine_factory=EchoEngine) == 0

    assert len(csv_path.read_text(encoding="utf-8").splitlines()) == 2
    assert len(list(out_dir.glob("frame_*.png"))) == 1
    assert (out_dir / "timeline.png").exists()


def test_unexpected_engine_error_is_raised_after_drain(tmp_path, capsys):
    class BrokenEngine(EchoEngine):
        def transcribe(self, mel, language):
            raise KeyError("tokenizer")

    args = build_parser().parse_args(["-i", _raw_file(tmp_path, burst(20, 120, 40))] + VAD_ARGS)
    with pytest.raises(KeyError):
        run(args, engine_factory=BrokenEngine)
    assert capsys.readouterr().out == ""
