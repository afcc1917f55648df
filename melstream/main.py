import argparse
import sys

from melstream import constants
from melstream.audio_streamer import AudioStreamer
from melstream.config import PipelineConfig
from melstream.errors import ChannelClosed, EngineLoadError
from melstream.pipeline import Pipeline
from melstream.recognizer import WhisperEngine
from melstream.report_generator import ReportGenerator
from melstream.transcriber import Transcriber
from melstream.visualization import Visualization


def build_parser():
    parser = argparse.ArgumentParser(
        prog="melstream",
        description="Real-time mel-spectrogram VAD + Whisper transcription of a float32 PCM stream"
    )
    parser.add_argument("-m", "--model", default=constants.DEFAULT_MODEL,
                        help="Whisper model name or checkpoint path")
    parser.add_argument("--device", default=constants.DEFAULT_DEVICE)
    parser.add_argument("--language", default=constants.DEFAULT_LANGUAGE)
    parser.add_argument("-o", "--out-path", default=constants.DEFAULT_OUT_PATH,
                        help="Directory for per-segment mel images")
    parser.add_argument("--no-images", action="store_true",
                        help="Skip mel image export")
    parser.add_argument("-i", "--input", default=None,
                        help="Input file (default: raw float32 PCM on stdin)")
    parser.add_argument("--chunk-bytes", type=int, default=constants.READ_CHUNK_BYTES)
    parser.add_argument("--segments-csv", default=None,
                        help="Write a CSV of emitted segments after the run")
    parser.add_argument("-v", "--verbose", action="store_true")

    vad = parser.add_argument_group("voice activity detection")
    vad.add_argument("--energy-threshold", type=float, default=constants.ENERGY_THRESHOLD)
    vad.add_argument("--min-intersections", type=int, default=constants.MIN_INTERSECTIONS)
    vad.add_argument("--intersection-threshold", type=int,
                     default=constants.INTERSECTION_THRESHOLD)
    vad.add_argument("--min-mel", type=int, default=constants.MIN_MEL)
    vad.add_argument("--min-frames", type=int, default=constants.MIN_FRAMES)
    return parser


def run(args, engine_factory=WhisperEngine):
    # ------------------------------------------------------------------ #
    # Startup: everything that can fail fatally happens before any      #
    # worker thread exists.                                              #
    # ------------------------------------------------------------------ #
    try:
        config = PipelineConfig.from_args(args)
        streamer = AudioStreamer(args.input, sample_rate=int(config.mel.sampling_rate),
                                 chunk_bytes=args.chunk_bytes)
        engine = engine_factory(args.model, args.device)
    except (ValueError, OSError, EngineLoadError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    pipeline = Pipeline(config)
    transcriber = Transcriber(
        engine,
        config.mel,
        language=args.language,
        image_dir=None if args.no_images else args.out_path,
        verbose=args.verbose,
    )

    handles = pipeline.start()
    handles.append(transcriber.spawn(pipeline.rx()))
    if args.verbose:
        print(f"[Pipeline] Started {len(handles)} worker(s).", file=sys.stderr)

    # ------------------------------------------------------------------ #
    # Ingestion                                                          #
    # ------------------------------------------------------------------ #
    status = 0
    try:
        for samples in streamer.stream():
            pipeline.send(samples)
    except (OSError, RuntimeError, ValueError) as exc:
        print(f"Error reading input: {exc}", file=sys.stderr)
        transcriber.cancel()
        status = 1
    except ChannelClosed:
        # a worker died; join() below re-raises its error
        pass
    finally:
        pipeline.close_ingress()

    # ------------------------------------------------------------------ #
    # Drain                                                              #
    # ------------------------------------------------------------------ #
    pipeline.join()
    for handle in handles:
        handle.join()
    if transcriber.error is not None:
        raise transcriber.error

    if status:
        return status

    if args.verbose:
        print(f"[Pipeline] {pipeline.frames_emitted} mel frame(s), "
              f"{pipeline.segments_emitted} segment(s), "
              f"{pipeline.candidates_discarded} candidate(s) discarded, "
              f"{streamer.bytes_dropped} trailing byte(s) dropped.", file=sys.stderr)
        ReportGenerator(transcriber.records).print_console(file=sys.stderr)

    if args.segments_csv:
        ReportGenerator(transcriber.records).export_csv(args.segments_csv)
    if not args.no_images and transcriber.records:
        total_duration = pipeline.samples_received / config.mel.sampling_rate
        try:
            Visualization(transcriber.records, total_duration,
                          output_dir=args.out_path).generate_timeline()
        except OSError as exc:
            print(f"[Visualization] Timeline not written: {exc}", file=sys.stderr)

    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
