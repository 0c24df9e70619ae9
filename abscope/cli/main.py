"""abscope CLI - compare loudness and spectra of two recordings."""
from __future__ import annotations
import argparse
import csv
import json
import logging
import sys
from pathlib import Path

import numpy as np

from abscope.version import __version__
from abscope.analysis.spectrogram import compute_spectrogram
from abscope.analysis.spectrum import average_spectrum, spectrum_difference
from abscope.config import AnalysisConfig, load_config
from abscope.errors import InvalidInputError
from abscope.io.audio import load_audio
from abscope.metrics.loudness import compute_loudness
from abscope.metrics.range_stats import stats_for_range
from abscope.reporting.compare_report import build_compare_report, loudness_summary
from abscope.types import SampleBuffer
from abscope.utils.formatting import format_lufs, format_time

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BAD_ARGS = 2
EXIT_DECODE_ERROR = 3
EXIT_CONFIG_ERROR = 4
EXIT_INTERNAL_ERROR = 5


class DecodeError(Exception):
    """An input file could not be decoded."""


def _load_config(path: str | None) -> AnalysisConfig:
    if not path:
        return AnalysisConfig()
    return load_config(path)


def _load(path: str) -> SampleBuffer:
    try:
        buf = load_audio(path)
    except (RuntimeError, OSError, ValueError) as exc:
        raise DecodeError(f"{path}: {exc}") from exc
    for w in buf.warnings:
        logger.warning("%s: %s", path, w)
    return buf


def _input_meta(path: str, buf: SampleBuffer) -> dict:
    return {
        "path": str(path),
        "sample_rate_hz": buf.sample_rate,
        "channels": buf.num_channels,
        "duration_s": round(buf.duration, 6),
        "decode_warnings": list(buf.warnings),
    }


def _time_range(args) -> tuple[float, float] | None:
    if args.start is None and args.end is None:
        return None
    start = float(args.start) if args.start is not None else 0.0
    end = float(args.end) if args.end is not None else float("inf")
    if end < start:
        raise InvalidInputError("--end must not be before --start.")
    return start, end


def _run(handler, args) -> int:
    """Run a command handler and map failures to exit codes."""
    try:
        return handler(args)
    except DecodeError as e:
        print(f"Error: Could not decode audio - {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR
    except FileNotFoundError as e:
        print(f"Error: File not found - {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR
    except json.JSONDecodeError as e:
        print(f"Error: Invalid config JSON - {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except InvalidInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR


def cmd_compare(args) -> int:
    """Handle compare command."""
    cfg = _load_config(args.config)
    time_range = _time_range(args)
    buf_a = _load(args.audio_a)
    buf_b = _load(args.audio_b)

    loud = (compute_loudness(buf_a, cfg.loudness), compute_loudness(buf_b, cfg.loudness))
    specs = (
        compute_spectrogram(buf_a, cfg.spectrogram),
        compute_spectrogram(buf_b, cfg.spectrogram),
    )
    if time_range is not None and not np.isfinite(time_range[1]):
        time_range = (time_range[0], max(buf_a.duration, buf_b.duration))

    report = build_compare_report(
        engine={"name": "abscope", "version": __version__},
        inputs=[_input_meta(args.audio_a, buf_a), _input_meta(args.audio_b, buf_b)],
        loudness=loud,
        spectrograms=specs,
        time_range=time_range,
        include_spectra=args.spectra,
        display=cfg.spectrum,
    )
    output_json = json.dumps(report, indent=2)
    if args.out:
        Path(args.out).write_text(output_json, encoding="utf-8")
        print(f"Report written to: {args.out}", file=sys.stderr)
    else:
        print(output_json)
    return EXIT_OK


def cmd_loudness(args) -> int:
    """Handle loudness command."""
    cfg = _load_config(args.config)
    buf = _load(args.audio_path)
    result = compute_loudness(buf, cfg.loudness)

    if args.json:
        print(json.dumps(loudness_summary(result), indent=2))
        return EXIT_OK

    print(f"File: {args.audio_path} ({format_time(buf.duration)}, "
          f"{buf.sample_rate:g} Hz, {buf.num_channels} ch)")
    print(f"Integrated: {format_lufs(result.integrated)}")
    print(f"Threshold: {format_lufs(result.threshold)}")
    print(f"Momentary max: {format_lufs(result.max_lkfs)}")
    print(f"Loudness range: {format_lufs(result.loudness_range, 'LU')}")
    if result.lra_low is not None:
        print(f"  LRA low/high: {format_lufs(result.lra_low)} / {format_lufs(result.lra_high)}")
    time_range = _time_range(args)
    if time_range is not None:
        stats = stats_for_range(result, time_range[0], min(time_range[1], buf.duration))
        print(f"Range {format_time(time_range[0])}-{format_time(min(time_range[1], buf.duration))}: "
              f"integrated {format_lufs(stats.integrated)}, peak {format_lufs(stats.peak)}")
    return EXIT_OK


def cmd_spectrum(args) -> int:
    """Handle spectrum command: averaged spectra of A and B and their difference."""
    cfg = _load_config(args.config)
    buf_a = _load(args.audio_a)
    buf_b = _load(args.audio_b)
    spec_a = compute_spectrogram(buf_a, cfg.spectrogram)
    spec_b = compute_spectrogram(buf_b, cfg.spectrogram)

    time_range = _time_range(args)
    start, end = (0.0, spec_a.duration) if time_range is None else time_range
    end = min(end, spec_a.duration)
    avg_a = average_spectrum(spec_a, start, end)
    avg_b = average_spectrum(spec_b, start, end)
    diff = spectrum_difference(avg_a, avg_b)
    freqs = spec_a.bin_frequencies()[: diff.size]

    out = open(args.csv, "w", newline="", encoding="utf-8") if args.csv else sys.stdout
    try:
        writer = csv.writer(out)
        writer.writerow(["freq_hz", "a_db", "b_db", "delta_db"])
        for f, a, b, d in zip(freqs, avg_a, avg_b, diff):
            if f < cfg.spectrum.min_freq:
                continue
            writer.writerow([f"{f:.2f}", f"{a:.2f}", f"{b:.2f}", f"{d:.2f}"])
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", "-c", help="Path to analysis config JSON")
    p.add_argument("--start", type=float, help="Range start in seconds")
    p.add_argument("--end", type=float, help="Range end in seconds")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="abscope",
        description="abscope - A/B loudness and spectrum comparison"
    )
    parser.add_argument(
        "--version", action="version",
        version=f"abscope {__version__}"
    )
    parser.add_argument(
        "--verbose", "-v", action="count", default=0,
        help="Log progress (-v info, -vv debug)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compare_parser = subparsers.add_parser(
        "compare",
        help="Compare loudness and spectra of two files"
    )
    compare_parser.add_argument("audio_a", help="Path to file A")
    compare_parser.add_argument("audio_b", help="Path to file B")
    _add_common(compare_parser)
    compare_parser.add_argument("--out", "-o", help="Output path for report JSON")
    compare_parser.add_argument(
        "--spectra", action="store_true",
        help="Include per-bin averaged spectra in the report"
    )
    compare_parser.set_defaults(func=cmd_compare)

    loudness_parser = subparsers.add_parser(
        "loudness",
        help="Measure BS.1770-4 loudness of one file"
    )
    loudness_parser.add_argument("audio_path", help="Path to audio file")
    _add_common(loudness_parser)
    loudness_parser.add_argument("--json", action="store_true", help="Print JSON summary")
    loudness_parser.set_defaults(func=cmd_loudness)

    spectrum_parser = subparsers.add_parser(
        "spectrum",
        help="Averaged spectra of two files and their difference (CSV)"
    )
    spectrum_parser.add_argument("audio_a", help="Path to file A")
    spectrum_parser.add_argument("audio_b", help="Path to file B")
    _add_common(spectrum_parser)
    spectrum_parser.add_argument("--csv", help="Write CSV here instead of stdout")
    spectrum_parser.set_defaults(func=cmd_spectrum)
    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if hasattr(args, "func"):
        sys.exit(_run(args.func, args))
    parser.print_help()
    sys.exit(EXIT_BAD_ARGS)


if __name__ == "__main__":
    main()
