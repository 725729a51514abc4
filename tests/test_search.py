import asyncio

import pytest

from pda_search import derive
from pda_search.constraints import NO_CONSTRAINTS, Constraints
from pda_search.derive import find_program_address
from pda_search.difficulty import Tier, estimate_difficulty
from pda_search.errors import InvalidPDA, ValidationError
from pda_search.search import (
    PDABruteForcer,
    SearchOptions,
    SearchSession,
    SearchState,
)
from pda_search.seeds import Literal, Range, decode_program_id, encode_address

# '0' is not in the Base58 alphabet, so this never matches
NEVER = Constraints(contains="0")


def test_single_literal_unconstrained(program_id):
    seeds = [Literal("test")]
    forcer = PDABruteForcer()
    results = forcer.search(SearchOptions(program_id, seeds, Constraints()))

    assert len(results) == 1
    assert results[0].matched_constraints == (NO_CONSTRAINTS,)
    assert forcer.last_session.attempts == 1
    assert forcer.last_session.reason == "exhausted"
    assert estimate_difficulty(seeds, Constraints()).tier is Tier.EASY


def test_small_range_with_prefix(program_id):
    forcer = PDABruteForcer()
    results = forcer.search(SearchOptions(
        program_id,
        [Range(0, 9, 1)],
        Constraints(prefix="A", case_sensitive=False),
    ))
    session = forcer.last_session
    assert session.attempts == 10
    assert session.state is SearchState.EXHAUSTED
    for r in results:
        assert r.address.lower().startswith("a")


def test_too_many_seeds(program_id):
    forcer = PDABruteForcer()
    with pytest.raises(ValidationError, match="Maximum 8 seeds"):
        forcer.search(SearchOptions(program_id, [Literal(str(i)) for i in range(9)]))
    assert forcer.last_session is None


def test_inverted_range(program_id):
    with pytest.raises(ValidationError, match="min > max"):
        SearchSession(SearchOptions(program_id, [Range(10, 5)]))


def test_attempt_limit(program_id):
    forcer = PDABruteForcer()
    results = forcer.search(SearchOptions(program_id, [Range(0, 999)], NEVER, max_attempts=50))
    session = forcer.last_session
    assert results == []
    assert session.attempts == 50
    assert session.state is SearchState.COMPLETED
    assert session.reason == "completed"


@pytest.mark.parametrize("options", [
    SearchOptions("not base58!", [Literal("a")]),
    SearchOptions("11111111111111111111111111111111", []),
    SearchOptions("11111111111111111111111111111111", [Literal()]),
    SearchOptions("11111111111111111111111111111111", [Range(0, 100_000)]),
    SearchOptions("11111111111111111111111111111111", [Literal("a")], batch_size=0),
])
def test_validation_errors(options):
    with pytest.raises(ValidationError):
        SearchSession(options)


def test_validation_error_names_seed_index(program_id):
    with pytest.raises(ValidationError, match="index 2"):
        SearchSession(SearchOptions(program_id, [Literal("a"), Literal("b"), Literal()]))


def test_results_reproduce_and_are_ordered(program_id):
    options = SearchOptions(program_id, [Literal("vault"), Range(0, 299, 2)], Constraints(contains="a"))
    results = PDABruteForcer().search(options)

    assert results
    attempts = [r.attempts for r in results]
    assert attempts == sorted(set(attempts))
    raw_program_id = decode_program_id(program_id)
    for r in results:
        address, bump = find_program_address(r.seeds_used, raw_program_id)
        assert encode_address(address) == r.address
        assert bump == r.bump
        assert r.seeds_used[1] == r.seed_values[1].to_bytes(2, "little")
        # attempts count from 1 in enumeration order
        assert r.seed_values[1] == r.attempts - 1


def test_results_are_deterministic(program_id):
    options = SearchOptions(program_id, [Range(0, 199)], Constraints(prefix="b"))
    first = [(r.address, r.bump, r.attempts) for r in PDABruteForcer().search(options)]
    second = [(r.address, r.bump, r.attempts) for r in PDABruteForcer().search(options)]
    assert first == second


def test_progress_is_reported(program_id):
    snapshots = []
    PDABruteForcer().search(
        SearchOptions(program_id, [Range(0, 349)], NEVER, batch_size=64),
        snapshots.append,
    )
    running = [p for p in snapshots if p.is_running]
    assert [p.attempts for p in running][:3] == [100, 200, 300]
    final = snapshots[-1]
    assert not final.is_running
    assert final.attempts == 350
    assert final.results_so_far == 0


def test_stop_from_progress_callback(program_id):
    forcer = PDABruteForcer()
    batch_size = 50

    def on_progress(progress):
        if progress.attempts >= 200:
            forcer.stop()

    forcer.search(SearchOptions(program_id, [Range(0, 999)], Constraints(), batch_size=batch_size), on_progress)
    session = forcer.last_session
    assert session.state is SearchState.CANCELLED
    assert 200 <= session.attempts <= 200 + batch_size
    assert len(session.results) == session.attempts
    assert not forcer.running


def test_host_driven_steps_can_stop_between_slices(program_id):
    session = SearchSession(SearchOptions(program_id, [Range(0, 999)], NEVER, yield_every=25))
    steps = session.steps()

    assert next(steps) == 25
    assert session.is_running
    session.stop()
    assert list(steps) == []
    assert session.state is SearchState.CANCELLED
    assert session.attempts == 25


def test_results_never_shrink_after_stop(program_id):
    session = SearchSession(SearchOptions(program_id, [Range(0, 999)], Constraints(), yield_every=10))
    steps = session.steps()
    next(steps)
    found = list(session.results)
    session.stop()
    for _ in steps:
        pass
    assert session.results[:len(found)] == found


def test_async_search(program_id):
    forcer = PDABruteForcer()

    async def main():
        ticks = 0

        async def ticker():
            nonlocal ticks
            while forcer.running or ticks == 0:
                ticks += 1
                await asyncio.sleep(0)

        task = asyncio.ensure_future(ticker())
        results = await forcer.search_async(
            SearchOptions(program_id, [Range(0, 499)], Constraints(), yield_every=50)
        )
        await task
        return results, ticks

    results, ticks = asyncio.run(main())
    assert len(results) == 500
    assert forcer.last_session.reason == "exhausted"
    # the event loop got control back while the search was running
    assert ticks > 1


def test_derivation_failures_are_skipped(monkeypatch, program_id):
    def always_on_curve(seeds, program_id):
        raise InvalidPDA("on curve")

    monkeypatch.setattr(derive, "create_program_address", always_on_curve)
    forcer = PDABruteForcer()
    results = forcer.search(SearchOptions(program_id, [Range(0, 4)], Constraints()))
    session = forcer.last_session
    assert results == []
    assert session.attempts == 5
    assert session.skipped == 5
    assert session.state is SearchState.EXHAUSTED


def test_oversized_literal_is_skipped_not_fatal(program_id):
    forcer = PDABruteForcer()
    results = forcer.search(SearchOptions(program_id, [Literal("x" * 40), Range(0, 2)], Constraints()))
    assert results == []
    assert forcer.last_session.skipped == 3


def test_callback_error_fails_session(program_id):
    def boom(progress):
        raise RuntimeError("boom")

    session = SearchSession(SearchOptions(program_id, [Range(0, 199)], NEVER), boom)
    with pytest.raises(RuntimeError):
        session.run()
    assert session.state is SearchState.FAILED
    assert not session.is_running


def test_session_runs_once(program_id):
    session = SearchSession(SearchOptions(program_id, [Literal("a")]))
    session.run()
    with pytest.raises(RuntimeError):
        session.run()


def test_independent_sessions(program_id):
    a = SearchSession(SearchOptions(program_id, [Range(0, 99)], Constraints(), yield_every=10))
    b = SearchSession(SearchOptions(program_id, [Range(0, 99)], Constraints(), yield_every=10))
    steps_a = a.steps()
    next(steps_a)
    a.stop()
    list(steps_a)
    b.run()
    assert a.state is SearchState.CANCELLED
    assert b.state is SearchState.EXHAUSTED
    assert b.attempts == 100


def test_failed_validation_clears_previous_session(program_id):
    forcer = PDABruteForcer()
    forcer.search(SearchOptions(program_id, [Literal("a")]))
    assert forcer.last_session is not None

    with pytest.raises(ValidationError):
        forcer.search(SearchOptions(program_id, [Range(10, 5)]))
    assert forcer.last_session is None
    assert not forcer.running


def test_missing_constraints_mean_unconstrained(program_id):
    results = PDABruteForcer().search(SearchOptions(program_id, [Range(0, 2)], constraints=None))
    assert len(results) == 3
    assert all(r.matched_constraints == (NO_CONSTRAINTS,) for r in results)


def test_constraints_of_wrong_type(program_id):
    with pytest.raises(ValidationError, match="constraints"):
        SearchSession(SearchOptions(program_id, [Literal("a")], constraints={"prefix": "a"}))
