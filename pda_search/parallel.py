"""
parallel.py - Multi-process PDA search

The first min(total, max_attempts) positions of the enumeration order are cut
into contiguous chunks. Each chunk runs as its own SearchSession in a worker
process; results come back tagged with their global position and are merged
in chunk order, so they stay sorted by attempt number exactly as in a
sequential search.

Progress is reported once per finished chunk rather than every 100 attempts;
smaller chunks give finer progress and a faster reaction to stop().
"""

import contextlib
import logging
import math
import multiprocessing
import signal
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import replace
from typing import List, NamedTuple

from .enumerator import SeedCursor
from .search import SearchProgress, SearchResult, SearchSession, SearchState, validate_options

logger = logging.getLogger(__name__)

# Chunks handed out per worker; more chunks means a faster reaction to stop()
CHUNKS_PER_WORKER = 4


class ParallelOutcome(NamedTuple):
    results: List[SearchResult]
    attempts: int
    skipped: int
    reason: str


def _ignore_sigint():
    # Ctrl-C is handled by the parent, which tells workers to stop
    signal.signal(signal.SIGINT, signal.SIG_IGN)


def run_chunk(options, start, stop, stop_event=None):
    """Search positions [start, stop) of the enumeration order"""
    cursor = SeedCursor(options.seeds, start, stop)
    chunk_options = replace(options, max_attempts=stop - start)
    session = SearchSession(chunk_options, cursor=cursor, stop_event=stop_event)
    results = session.run()
    return {
        "start": start,
        "attempts": session.attempts,
        "skipped": session.skipped,
        "state": session.state.value,
        # Attempt numbers become global positions (1-based)
        "results": [replace(r, attempts=r.attempts + start) for r in results],
    }


def plan_chunks(limit, workers, chunk_size=None):
    """Split [0, limit) into contiguous (start, stop) pairs"""
    if limit <= 0:
        return []
    if chunk_size is None:
        chunk_size = max(1, math.ceil(limit / (workers * CHUNKS_PER_WORKER)))
    return [(s, min(s + chunk_size, limit)) for s in range(0, limit, chunk_size)]


class ParallelSearch:
    """Runs one search across a pool of worker processes"""

    def __init__(self, options, workers=None, chunk_size=None, stop_event=None):
        validate_options(options)
        self.options = options
        self.workers = workers if workers and workers > 0 else multiprocessing.cpu_count()
        self.chunk_size = chunk_size
        self.total = SeedCursor(options.seeds).total
        self.limit = min(self.total, options.max_attempts)

        self._stop_requested = False
        # A caller-owned Manager().Event(); one is created per run otherwise
        self._caller_event = stop_event
        self._stop_event = None
        self._futures = []

    def stop(self):
        """Ask every worker to stop at its next yield point"""
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()
        for future in self._futures:
            future.cancel()

    def run(self, on_progress=None):
        chunks = plan_chunks(self.limit, self.workers, self.chunk_size)
        logger.info(
            "Searching %s combinations in %d chunks on %d workers",
            f"{self.limit:,}", len(chunks), self.workers,
        )

        start_time = time.time()
        done = {}
        attempts = 0
        skipped = 0
        found = 0
        failed = False

        with contextlib.ExitStack() as stack:
            if self._caller_event is not None:
                self._stop_event = self._caller_event
            else:
                manager = stack.enter_context(multiprocessing.Manager())
                self._stop_event = manager.Event()
            if self._stop_requested:
                self._stop_event.set()

            with ProcessPoolExecutor(max_workers=self.workers, initializer=_ignore_sigint) as executor:
                future_to_chunk = {}
                for start, stop in chunks:
                    future = executor.submit(run_chunk, self.options, start, stop, self._stop_event)
                    future_to_chunk[future] = (start, stop)
                self._futures = list(future_to_chunk)

                for future in as_completed(future_to_chunk):
                    if future.cancelled():
                        continue
                    start, stop = future_to_chunk[future]
                    try:
                        chunk = future.result()
                    except Exception as e:
                        logger.error("Chunk [%d, %d) failed: %s", start, stop, e)
                        failed = True
                        continue

                    done[start] = chunk
                    attempts += chunk["attempts"]
                    skipped += chunk["skipped"]
                    found += len(chunk["results"])

                    if on_progress is not None:
                        elapsed_ms = (time.time() - start_time) * 1000
                        on_progress(SearchProgress(
                            attempts=attempts,
                            elapsed_ms=elapsed_ms,
                            rate=attempts / (elapsed_ms / 1000) if elapsed_ms > 0 else 0.0,
                            results_so_far=found,
                            is_running=True,
                            current_seeds=None,
                            skipped=skipped,
                        ))

            self._futures = []
            cancelled = self._stop_requested or self._stop_event.is_set()
            self._stop_event = None

        results = []
        for start in sorted(done):
            results.extend(done[start]["results"])

        if cancelled:
            reason = SearchState.CANCELLED.value
        elif failed:
            reason = SearchState.FAILED.value
        elif self.limit < self.total:
            reason = SearchState.COMPLETED.value
        else:
            reason = SearchState.EXHAUSTED.value

        logger.info(
            "Parallel search %s: %d attempts, %d results in %.2f seconds",
            reason, attempts, len(results), time.time() - start_time,
        )
        return ParallelOutcome(results, attempts, skipped, reason)


def search_parallel(options, workers=None, chunk_size=None, on_progress=None, stop_event=None):
    """Convenience wrapper: build a ParallelSearch and run it"""
    return ParallelSearch(options, workers, chunk_size, stop_event).run(on_progress)
