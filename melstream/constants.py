"""Fixed deployment values and CLI defaults."""

# ── Mel front-end (Whisper-compatible, fixed for this deployment) ─────── #
FFT_SIZE      = 400       # 25 ms analysis window at 16 kHz
HOP_SIZE      = 160       # 10 ms between frames
N_MELS        = 80
SAMPLING_RATE = 16_000
# ──────────────────────────────────────────────────────────────────────── #

# ── VAD defaults (tunable per invocation) ─────────────────────────────── #
ENERGY_THRESHOLD       = 1.0
MIN_INTERSECTIONS      = 5      # bins above threshold for an active frame
INTERSECTION_THRESHOLD = 10     # inactive frames tolerated inside a segment
MIN_MEL                = 10     # cumulative active-bin weight per segment
MIN_FRAMES             = 100    # 1 s of audio at 10 ms hops
# ──────────────────────────────────────────────────────────────────────── #

# ── I/O ───────────────────────────────────────────────────────────────── #
SAMPLE_WIDTH     = 4            # bytes per float32 sample
READ_CHUNK_BYTES = 128
INGRESS_CAPACITY = 1024         # chunks buffered before send() blocks
# ──────────────────────────────────────────────────────────────────────── #

# ── Recognition ───────────────────────────────────────────────────────── #
DEFAULT_MODEL    = "medium.en"
DEFAULT_DEVICE   = "cpu"
DEFAULT_LANGUAGE = "en"
DEFAULT_OUT_PATH = "./mel_out"
# ──────────────────────────────────────────────────────────────────────── #
