from __future__ import annotations

import argparse
import logging
import sys
import threading

from tone_finder import __version__
from tone_finder.analyzer import AnalysisResult, AnalyzerConfig, FrequencyAnalyzer
from tone_finder.audio import AudioInput, AudioInputConfig
from tone_finder.display import render
from tone_finder.recorder import Recorder, RecorderConfig

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tone-finder",
        description="Show the dominant frequency, note and tuning of the microphone input.",
    )
    parser.add_argument("--sample-rate", type=int, default=44100, help="Capture rate in Hz (default: 44100)")
    parser.add_argument(
        "--block-size",
        type=int,
        default=4096,
        help="Samples per analysis block (default: 4096, ~10.8 Hz per bin at 44.1 kHz)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=0.1,
        help="Seconds to wait between analyses (default: 0.1)",
    )
    parser.add_argument("--device", default=None, help="Input device index or name substring")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)
    if args.sample_rate <= 0:
        parser.error("--sample-rate must be positive")
    if args.block_size <= 0:
        parser.error("--block-size must be positive")
    if args.interval < 0:
        parser.error("--interval must not be negative")
    return args


def _device(value: str | None) -> int | str | None:
    if value is None:
        return None
    return int(value) if value.isdigit() else value


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    audio = AudioInput(
        AudioInputConfig(sample_rate=args.sample_rate, block_size=args.block_size, device=_device(args.device))
    )
    analyzer = FrequencyAnalyzer(AnalyzerConfig(sample_rate=args.sample_rate))
    failed = threading.Event()
    errors: list[str] = []

    def on_result(result: AnalysisResult | None) -> None:
        print(render(result).as_line(), flush=True)

    def on_error(message: str) -> None:
        errors.append(message)
        failed.set()

    recorder = Recorder(audio, analyzer, on_result, on_error, RecorderConfig(interval=args.interval))
    if not recorder.start():
        print(f"error: {errors[-1] if errors else 'unable to start recording'}", file=sys.stderr)
        return 1

    print("Listening... (Ctrl+C to stop)", flush=True)
    try:
        while not failed.wait(0.25):
            pass
    except KeyboardInterrupt:
        logger.debug("Interrupted by user")
    finally:
        recorder.stop()

    if errors:
        print(f"error: {errors[-1]}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
