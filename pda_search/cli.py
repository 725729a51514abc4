"""
cli.py - Command line front end for the PDA search engine

Example:
    pda-search --program-id <PROGRAM_ID> --seed str:vault --seed u16:0..9999 --prefix abc
"""

import argparse
import logging
import signal
import sys
import time

from .constraints import Constraints
from .difficulty import estimate_difficulty
from .errors import ValidationError
from .parallel import ParallelSearch
from .presets import PRESETS, build_preset
from .report import (
    default_output_path,
    describe_seed,
    format_rate,
    save_results,
    text_report,
)
from .search import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_ATTEMPTS,
    PDABruteForcer,
    SearchOptions,
    validate_options,
)
from .seeds import ADDRESS, AUTO, BYTES, INTEGER, STRING, Literal, Range

logger = logging.getLogger("pda_search")

_WIDTHS = {"u8": 1, "u16": 2, "u32": 4, "u64": 8}

SEED_HELP = (
    "Seed as TYPE:VALUE, in order. Types: str:TEXT, pubkey:BASE58, auto:TEXT, "
    "bytes:HEX, int:N, u8|u16|u32|u64:N (fixed width), range:MIN..MAX (tiered width), "
    "u8|u16|u32|u64:MIN..MAX (fixed width range)"
)


def parse_seed(text):
    """Parse one --seed argument into a Literal or Range"""
    kind, sep, value = text.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"seed {text!r} must look like TYPE:VALUE")
    kind = kind.lower()

    if kind in ("str", "string"):
        return Literal(value, STRING)
    if kind in ("pubkey", "address"):
        return Literal(value, ADDRESS)
    if kind == "auto":
        return Literal(value, AUTO)
    if kind in ("bytes", "hex"):
        return Literal(bytes.fromhex(value), BYTES)
    if kind in ("int", "integer"):
        return Literal(int(value, 0), INTEGER)
    if kind == "range" or kind in _WIDTHS:
        width = _WIDTHS.get(kind)
        if ".." in value:
            lo, hi = value.split("..", 1)
            return Range(int(lo, 0), int(hi, 0), width)
        if kind == "range":
            raise argparse.ArgumentTypeError(f"range seed {text!r} must look like range:MIN..MAX")
        return Literal(int(value, 0), INTEGER, width)

    raise argparse.ArgumentTypeError(f"unknown seed type {kind!r} in {text!r}")


def build_parser():
    parser = argparse.ArgumentParser(description="Program-derived address (PDA) vanity search")
    parser.add_argument("--program-id", type=str, required=True,
                        help="Base58 program id the addresses are derived for")
    parser.add_argument("--seed", type=parse_seed, action="append", default=[],
                        help=SEED_HELP)
    parser.add_argument("--preset", choices=sorted(PRESETS),
                        help="Use a common seed layout instead of --seed")
    parser.add_argument("--preset-arg", action="append", default=[],
                        help="Address needed by the preset (repeat in order)")

    parser.add_argument("--prefix", type=str, default="", help="Base58 prefix to match")
    parser.add_argument("--suffix", type=str, default="", help="Base58 suffix to match")
    parser.add_argument("--contains", type=str, default="", help="Substring the address must contain")
    parser.add_argument("--starts-with", type=str, default="", help="Additional prefix test")
    parser.add_argument("--ends-with", type=str, default="", help="Additional suffix test")
    parser.add_argument("--min-length", type=int, default=None, help="Minimum address length")
    parser.add_argument("--max-length", type=int, default=None, help="Maximum address length")
    parser.add_argument("--exclude", action="append", default=[],
                        help="Reject addresses containing this pattern (repeatable)")
    parser.add_argument("--case-sensitive", action="store_true",
                        help="Compare patterns case-sensitively")

    parser.add_argument("--max-attempts", type=int, default=DEFAULT_MAX_ATTEMPTS,
                        help=f"Stop after this many derivations (default: {DEFAULT_MAX_ATTEMPTS:,})")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE,
                        help=f"Combinations pulled per batch (default: {DEFAULT_BATCH_SIZE})")
    parser.add_argument("--workers", type=int, default=1,
                        help="Worker processes (1 = single cooperative loop, 0 = all CPUs)")
    parser.add_argument("--status-interval", type=float, default=1.0,
                        help="Seconds between status lines")
    parser.add_argument("--estimate-only", action="store_true",
                        help="Print the difficulty estimate and exit")

    parser.add_argument("--output", type=str, default="", help="Output file path")
    parser.add_argument("--output-dir", type=str, default="./pdas", help="Output directory")
    parser.add_argument("--report", type=str, default="",
                        help="Also write a plain-text report to this path")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def constraints_from_args(args):
    return Constraints(
        prefix=args.prefix or None,
        suffix=args.suffix or None,
        contains=args.contains or None,
        starts_with=args.starts_with or None,
        ends_with=args.ends_with or None,
        min_length=args.min_length,
        max_length=args.max_length,
        case_sensitive=args.case_sensitive,
        exclude_patterns=list(args.exclude),
    )


class StatusPrinter:
    """Progress callback that prints a status line at most once per interval"""

    def __init__(self, interval):
        self.interval = interval
        self._last = 0.0

    def __call__(self, progress):
        now = time.time()
        if progress.is_running and now - self._last < self.interval:
            return
        self._last = now
        print(
            f"\r[INFO] {progress.attempts:,} attempts, {format_rate(progress.rate)}, "
            f"{progress.results_so_far:,} found",
            end="", flush=True,
        )


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )

    seeds = list(args.seed)
    if args.preset:
        if seeds:
            parser.error("use either --preset or --seed, not both")
        try:
            seeds = build_preset(args.preset, args.preset_arg)
        except ValueError as e:
            parser.error(str(e))

    constraints = constraints_from_args(args)
    options = SearchOptions(
        program_id=args.program_id,
        seeds=seeds,
        constraints=constraints,
        max_attempts=args.max_attempts,
        batch_size=args.batch_size,
    )

    try:
        validate_options(options)
    except ValidationError as e:
        logger.error("%s", e)
        return 2

    print(f"[INFO] Program ID: {args.program_id}")
    for i, spec in enumerate(seeds, 1):
        print(f"[INFO] Seed {i}: {describe_seed(spec)}")

    estimate = estimate_difficulty(seeds, constraints)
    print(f"[INFO] {estimate.total_combinations:,} seed combinations")
    print(f"[INFO] Difficulty: {estimate.tier.value} (estimated {estimate.estimated_time})")
    if args.estimate_only:
        return 0

    try:
        if args.workers == 1:
            searcher = PDABruteForcer()
        else:
            searcher = ParallelSearch(options, workers=args.workers)
    except ValidationError as e:
        logger.error("%s", e)
        return 2

    previous = signal.signal(signal.SIGINT, lambda signum, frame: searcher.stop())
    start_time = time.time()
    try:
        if isinstance(searcher, PDABruteForcer):
            results = searcher.search(options, StatusPrinter(args.status_interval))
            session = searcher.last_session
            attempts, reason = session.attempts, session.reason
        else:
            outcome = searcher.run(StatusPrinter(args.status_interval))
            results, attempts, reason = outcome.results, outcome.attempts, outcome.reason
    except ValidationError as e:
        logger.error("%s", e)
        return 2
    finally:
        signal.signal(signal.SIGINT, previous)

    elapsed = time.time() - start_time
    print()
    for r in results:
        print(f"[FOUND] {r.address} (bump {r.bump}) after {r.attempts:,} attempts")

    if reason == "cancelled":
        print(f"[INFO] Search stopped by user after {attempts:,} attempts")
    elif reason == "completed":
        print(f"[INFO] Attempt limit reached after {attempts:,} attempts - consider narrowing constraints")
    elif not results:
        print(f"[INFO] No matches found in the explored space ({attempts:,} combinations)")
    print(f"[INFO] {len(results):,} result(s) in {elapsed:.2f} seconds")

    if results:
        out_path = args.output or default_output_path(args.output_dir, constraints)
        save_results(out_path, args.program_id, seeds, constraints, results, reason, attempts, elapsed)
        print(f"[INFO] Saved results to: {out_path}")

    if args.report:
        with open(args.report, "w") as f:
            f.write(text_report(args.program_id, seeds, constraints, results))
        print(f"[INFO] Saved report to: {args.report}")

    return 1 if reason == "failed" else 0


if __name__ == "__main__":
    sys.exit(main())
