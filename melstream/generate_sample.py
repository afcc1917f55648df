import argparse

import numpy as np
import scipy.io.wavfile as wavfile

from melstream.constants import SAMPLING_RATE


def generate_test_audio(duration=30, sample_rate=SAMPLING_RATE, seed=0):
    # Noise floor with three "speech" bursts (mixed tones + broadband noise)
    # so the energy VAD has something to segment.
    rng = np.random.default_rng(seed)
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)

    audio = rng.normal(0, 0.001, size=t.shape)

    bursts = [
        (2, 5),
        (8, 12),
        (15, 25)
    ]

    for start, end in bursts:
        idx_start = int(start * sample_rate)
        idx_end = int(end * sample_rate)

        span = t[idx_start:idx_end]
        burst_signal = (0.4 * np.sin(2 * np.pi * 300 * span) +
                        0.3 * np.sin(2 * np.pi * 1500 * span) +
                        0.2 * rng.normal(0, 1, size=span.shape))
        burst_signal *= rng.normal(1, 0.2, size=span.shape)  # modulate

        audio[idx_start:idx_end] += burst_signal

    audio = audio / np.max(np.abs(audio))
    return audio.astype(np.float32)


def write_sample(filename, raw=False, duration=30):
    audio = generate_test_audio(duration=duration)
    if raw:
        # headerless little-endian float32, as read from stdin
        audio.astype("<f4").tofile(filename)
    else:
        wavfile.write(filename, SAMPLING_RATE, audio)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Write a synthetic 16 kHz mono test signal")
    parser.add_argument("output", help="Output path (.wav, or raw float32 with --raw)")
    parser.add_argument("--raw", action="store_true")
    parser.add_argument("--duration", type=float, default=30)
    args = parser.parse_args(argv)
    write_sample(args.output, raw=args.raw, duration=args.duration)


if __name__ == "__main__":
    main()
