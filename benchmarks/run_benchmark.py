#!/usr/bin/env python3
"""
Benchmark suite for punctuation-normalizer.

Measures character reduction and timing for a set of option presets across
corpus files.

Usage:
    python benchmarks/run_benchmark.py                 # every preset
    python benchmarks/run_benchmark.py --preset strict # a single preset
    python benchmarks/run_benchmark.py --scale 50      # repeat each corpus file 50x
    python benchmarks/run_benchmark.py --output results.json  # also write JSON
    python benchmarks/run_benchmark.py --iterations 20  # time 20 runs per preset
"""

from __future__ import annotations

import argparse
import json
import platform
import statistics
import sys
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path

# Run from a checkout without installing.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_PROJECT_ROOT / "src"))

from punctuation_normalizer import NormalizationOptions, normalize_with_stats  # noqa: E402

PRESETS: dict[str, NormalizationOptions] = {
    "default": NormalizationOptions(),
    "strict": NormalizationOptions(
        keep_apostrophes=False,
        keep_hyphens=False,
        keep_email_url=False,
        keep_numbers=False,
        keep_line_breaks=False,
    ),
    "permissive": NormalizationOptions(keep_hyphens=True, custom_keep_list="$%#"),
}


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class PresetResult:
    """Benchmark result for a single (file, preset) combination."""

    preset: str
    original_chars: int
    result_chars: int
    reduction_pct: int
    protected: int
    mean_time_ms: float
    median_time_ms: float
    min_time_ms: float
    max_time_ms: float


@dataclass(slots=True)
class FileResult:
    """Benchmark results for a single corpus file across all presets."""

    filename: str
    original_chars: int
    presets: list[PresetResult] = field(default_factory=list)


@dataclass(slots=True)
class BenchmarkReport:
    """Everything measured in one run."""

    timestamp: str
    python_version: str
    platform: str
    iterations: int
    scale: int
    files: list[FileResult] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

_SEP = "-" * 100
_HEADER_FMT = "  {:<12s} {:>10s} {:>10s} {:>8s} {:>10s} {:>10s} {:>10s}"
_ROW_FMT = "  {:<12s} {:>10,d} {:>10,d} {:>7d}% {:>10,d} {:>9.2f}ms {:>9.2f}ms"


def _print_table_header() -> None:
    print(_HEADER_FMT.format(
        "Preset", "Orig", "Result", "Reduced", "Protected", "Mean(ms)", "Med(ms)"
    ))


def _print_table_row(r: PresetResult) -> None:
    print(_ROW_FMT.format(
        r.preset,
        r.original_chars,
        r.result_chars,
        r.reduction_pct,
        r.protected,
        r.mean_time_ms,
        r.median_time_ms,
    ))


# ---------------------------------------------------------------------------
# Core benchmark logic
# ---------------------------------------------------------------------------


def benchmark_text(
    text: str,
    presets: dict[str, NormalizationOptions],
    *,
    iterations: int = 10,
) -> list[PresetResult]:
    """Normalize *text* with every preset and return results."""
    results: list[PresetResult] = []

    for name, options in presets.items():
        timings: list[float] = []
        result = None

        for _ in range(iterations):
            t0 = time.perf_counter()
            result = normalize_with_stats(text, options)
            t1 = time.perf_counter()
            timings.append((t1 - t0) * 1000)  # ms

        assert result is not None
        counts = result.stats.protected_elements
        results.append(PresetResult(
            preset=name,
            original_chars=result.stats.original_length,
            result_chars=result.stats.result_length,
            reduction_pct=result.stats.reduction_percentage,
            protected=counts.emails + counts.urls + counts.contractions + counts.hyphens,
            mean_time_ms=statistics.mean(timings),
            median_time_ms=statistics.median(timings),
            min_time_ms=min(timings),
            max_time_ms=max(timings),
        ))

    return results


def run_benchmark(
    corpus_dir: Path,
    presets: dict[str, NormalizationOptions],
    *,
    iterations: int = 10,
    scale: int = 1,
    output_path: Path | None = None,
) -> BenchmarkReport:
    """Normalize every corpus file with every preset and print the tables."""

    import datetime

    report = BenchmarkReport(
        timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat(),
        python_version=platform.python_version(),
        platform=platform.platform(),
        iterations=iterations,
        scale=scale,
    )

    corpus_files = sorted(corpus_dir.glob("*.txt"))
    if not corpus_files:
        print(f"No corpus files (*.txt) in {corpus_dir}")
        sys.exit(1)

    print("\npunctuation-normalizer benchmark")
    print(f"Python {platform.python_version()} on {platform.platform()}")
    print(f"Iterations per preset: {iterations}")
    if scale > 1:
        print(f"Corpus scale: x{scale}")
    print(_SEP)

    for fp in corpus_files:
        text = fp.read_text(encoding="utf-8") * scale
        filename = fp.name

        print(f"\n  File: {filename} ({len(text):,d} chars)")
        _print_table_header()

        preset_results = benchmark_text(text, presets, iterations=iterations)
        report.files.append(FileResult(
            filename=filename, original_chars=len(text), presets=preset_results
        ))

        for pr in preset_results:
            _print_table_row(pr)

    print(f"\n{_SEP}")
    print("  ALL FILES")
    print(_SEP)
    _print_table_header()

    for name in presets:
        rows = [pr for fr in report.files for pr in fr.presets if pr.preset == name]
        all_orig = sum(pr.original_chars for pr in rows)
        all_result = sum(pr.result_chars for pr in rows)
        reduced = round((all_orig - all_result) / all_orig * 100) if all_orig > 0 else 0
        _print_table_row(PresetResult(
            preset=name,
            original_chars=all_orig,
            result_chars=all_result,
            reduction_pct=reduced,
            protected=sum(pr.protected for pr in rows),
            mean_time_ms=statistics.mean(pr.mean_time_ms for pr in rows),
            median_time_ms=statistics.median(pr.median_time_ms for pr in rows),
            min_time_ms=0.0,
            max_time_ms=0.0,
        ))

    print()

    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(asdict(report), indent=2), encoding="utf-8")
        print(f"  Results saved to {output_path}")
        print()

    return report


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark punctuation-normalizer")
    parser.add_argument(
        "--corpus",
        type=Path,
        default=_PROJECT_ROOT / "benchmarks" / "corpus",
        help="Directory of .txt files to normalize",
    )
    parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        default=None,
        help="Run a single preset instead of all of them",
    )
    parser.add_argument("--iterations", type=int, default=10, help="Runs per preset")
    parser.add_argument("--scale", type=int, default=1, help="Repeat each corpus file N times")
    parser.add_argument("--output", type=Path, default=None, help="Write a JSON report here")
    args = parser.parse_args()

    presets = {args.preset: PRESETS[args.preset]} if args.preset else PRESETS
    run_benchmark(
        args.corpus,
        presets,
        iterations=args.iterations,
        scale=args.scale,
        output_path=args.output,
    )


if __name__ == "__main__":
    main()
