"""
search.py - Batched, cancellable PDA search

A SearchSession pulls seed combinations from a SeedCursor in batches, derives
the address for each one, keeps the ones that satisfy the constraints and
reports progress along the way. The loop is a generator that yields at its
suspension points, so a host can interleave other work or stop it between
slices.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .constraints import Constraints, match_address
from .derive import MAX_SEED_LEN, find_program_address
from .difficulty import estimate_difficulty
from .enumerator import SeedCursor
from .errors import DerivationError, ValidationError
from .seeds import decode_program_id, encode_address

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 1_000_000
DEFAULT_BATCH_SIZE = 1000
MAX_SEEDS = 8
PROGRESS_EVERY = 100       # attempts between progress reports
PROGRESS_INTERVAL = 1.0    # seconds between progress reports
YIELD_EVERY = 100          # attempts between cooperative yields


class SearchState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


TERMINAL_STATES = (
    SearchState.COMPLETED,
    SearchState.CANCELLED,
    SearchState.EXHAUSTED,
    SearchState.FAILED,
)


@dataclass
class SearchOptions:
    program_id: str
    seeds: list
    constraints: Constraints = field(default_factory=Constraints)
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    batch_size: int = DEFAULT_BATCH_SIZE
    yield_every: int = YIELD_EVERY

    def __post_init__(self):
        if self.constraints is None:
            self.constraints = Constraints()


def _printable(value):
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return value


@dataclass(frozen=True)
class SearchResult:
    address: str
    bump: int
    seeds_used: Tuple[bytes, ...]
    seed_values: Tuple[object, ...]
    attempts: int
    elapsed_ms: float
    matched_constraints: Tuple[str, ...]

    def to_dict(self):
        return {
            "address": self.address,
            "bump": self.bump,
            "seeds_used": [seed.hex() for seed in self.seeds_used],
            "seed_values": [_printable(v) for v in self.seed_values],
            "attempts": self.attempts,
            "elapsed_ms": self.elapsed_ms,
            "matched_constraints": list(self.matched_constraints),
        }


@dataclass(frozen=True)
class SearchProgress:
    attempts: int
    elapsed_ms: float
    rate: float
    results_so_far: int
    is_running: bool
    current_seeds: Optional[Tuple[object, ...]]
    skipped: int = 0


def validate_options(options):
    """Reject bad search options up front and return the decoded program id"""
    program_id = decode_program_id(options.program_id)

    seeds = options.seeds
    if not seeds:
        raise ValidationError("At least one seed must be specified")
    if len(seeds) > MAX_SEEDS:
        raise ValidationError(f"Maximum {MAX_SEEDS} seeds allowed, got {len(seeds)}")

    for index, spec in enumerate(seeds):
        if not hasattr(spec, "validate"):
            raise ValidationError(f"Seed at index {index} is not a Literal or Range: {spec!r}")
        encoded = spec.validate(index)
        if encoded is not None and len(encoded) > MAX_SEED_LEN:
            logger.warning(
                "Seed at index %d is %d bytes (max %d); every derivation will be skipped",
                index, len(encoded), MAX_SEED_LEN,
            )

    for name in ("max_attempts", "batch_size", "yield_every"):
        if getattr(options, name) < 1:
            raise ValidationError(f"{name} must be at least 1, got {getattr(options, name)}")

    if not isinstance(options.constraints, Constraints):
        raise ValidationError(
            f"constraints must be a Constraints instance, got {type(options.constraints).__name__}"
        )
    if options.constraints.is_empty():
        logger.warning("No constraints specified - every derived address will match")

    return program_id


class SearchSession:
    """State of one search: cursor, counters, flags and the results found"""

    def __init__(self, options, on_progress=None, cursor=None, stop_event=None):
        self.options = options
        self.program_id = validate_options(options)
        self.cursor = cursor if cursor is not None else SeedCursor(options.seeds)
        self.on_progress = on_progress
        # Optional cross-process event, polled only at yield points
        self.stop_event = stop_event

        self.state = SearchState.IDLE
        self.is_running = False
        self.attempts = 0
        self.skipped = 0
        self.results = []

        self._stop_requested = False
        self._start_time = None
        self._end_time = None
        self._last_progress = 0.0

    @property
    def reason(self):
        """Tag of the terminal state, or None while the session is not finished"""
        return self.state.value if self.state in TERMINAL_STATES else None

    @property
    def elapsed_ms(self):
        if self._start_time is None:
            return 0.0
        end = self._end_time if self._end_time is not None else time.monotonic()
        return (end - self._start_time) * 1000

    def stop(self):
        """Ask the loop to stop at its next check point"""
        self._stop_requested = True

    def _poll_stop_event(self):
        if self.stop_event is not None and self.stop_event.is_set():
            self._stop_requested = True

    def steps(self):
        """Run the search, yielding the attempt count at every suspension point"""
        if self.state is not SearchState.IDLE:
            raise RuntimeError(f"Search session already {self.state.value}")

        opts = self.options
        self.state = SearchState.RUNNING
        self.is_running = True
        self._start_time = time.monotonic()
        self._last_progress = self._start_time
        logger.debug("Search started over %d combinations", len(self.cursor))

        combination = None
        try:
            while True:
                self._poll_stop_event()
                if self._stop_requested:
                    self._finish(SearchState.CANCELLED, combination)
                    return
                if self.attempts >= opts.max_attempts:
                    self._finish(SearchState.COMPLETED, combination)
                    return

                batch = self.cursor.next_batch(min(opts.batch_size, opts.max_attempts - self.attempts))
                if not batch:
                    self._finish(SearchState.EXHAUSTED, combination)
                    return

                for combination in batch:
                    if self._stop_requested:
                        self._finish(SearchState.CANCELLED, combination)
                        return
                    self.attempts += 1
                    self._check(combination)

                    now = time.monotonic()
                    if (self.attempts % PROGRESS_EVERY == 0
                            or now - self._last_progress >= PROGRESS_INTERVAL):
                        self._report(combination, now)

                    if self.attempts >= opts.max_attempts:
                        self._finish(SearchState.COMPLETED, combination)
                        return
                    if self.attempts % opts.yield_every == 0:
                        yield self.attempts
                        self._poll_stop_event()

                # Batch boundary
                yield self.attempts
        except GeneratorExit:
            # The host dropped the loop; treat it like a stop request
            if self.is_running:
                self._finish(SearchState.CANCELLED, combination)
            raise
        except Exception:
            self.state = SearchState.FAILED
            self.is_running = False
            self._end_time = time.monotonic()
            logger.exception("Search failed after %d attempts", self.attempts)
            raise

    def run(self):
        """Run the search to a terminal state and return the results"""
        for _ in self.steps():
            pass
        return self.results

    async def run_async(self):
        """Run the search, handing control back to the event loop at every yield point"""
        for _ in self.steps():
            await asyncio.sleep(0)
        return self.results

    def _check(self, combination):
        try:
            raw, bump = find_program_address(combination.seeds, self.program_id)
        except DerivationError as e:
            self.skipped += 1
            logger.debug("Skipping seeds %r: %s", combination.values, e)
            return

        address = encode_address(raw)
        match = match_address(address, self.options.constraints)
        if not match.ok:
            return

        result = SearchResult(
            address=address,
            bump=bump,
            seeds_used=combination.seeds,
            seed_values=combination.values,
            attempts=self.attempts,
            elapsed_ms=self.elapsed_ms,
            matched_constraints=tuple(match.satisfied),
        )
        self.results.append(result)
        logger.debug("Match %s (bump %d) after %d attempts", address, bump, self.attempts)

    def progress(self, current_seeds=None):
        """Snapshot of the session's counters"""
        elapsed_ms = self.elapsed_ms
        rate = self.attempts / (elapsed_ms / 1000) if elapsed_ms > 0 else 0.0
        return SearchProgress(
            attempts=self.attempts,
            elapsed_ms=elapsed_ms,
            rate=rate,
            results_so_far=len(self.results),
            is_running=self.is_running,
            current_seeds=current_seeds,
            skipped=self.skipped,
        )

    def _report(self, combination, now):
        self._last_progress = now
        if self.on_progress is not None:
            self.on_progress(self.progress(combination.values if combination else None))

    def _finish(self, state, combination):
        self.state = state
        self.is_running = False
        self._end_time = time.monotonic()
        logger.info(
            "Search %s: %d attempts, %d results, %d skipped in %.2f seconds",
            state.value, self.attempts, len(self.results), self.skipped, self.elapsed_ms / 1000,
        )
        self._report(combination, time.monotonic())


class PDABruteForcer:
    """Finds program-derived addresses whose Base58 text matches constraints"""

    def __init__(self):
        self._session = None

    @property
    def last_session(self):
        return self._session

    @property
    def running(self):
        return self._session is not None and self._session.is_running

    def search(self, options, on_progress=None):
        """Run a search to completion and return its results in discovery order"""
        self._session = None
        self._session = SearchSession(options, on_progress)
        return self._session.run()

    async def search_async(self, options, on_progress=None):
        """Same as search(), but cooperative inside an asyncio event loop"""
        self._session = None
        self._session = SearchSession(options, on_progress)
        return await self._session.run_async()

    def stop(self):
        """Request cancellation of the running search"""
        if self._session is not None:
            self._session.stop()

    def estimate_search_difficulty(self, options):
        return estimate_difficulty(options.seeds, options.constraints)
