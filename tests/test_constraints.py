import hashlib

import base58
import pytest

from pda_search.constraints import NO_CONSTRAINTS, Constraints, match_address

ADDRESS = "AbcDefGhijkmnoPQRSTuvwxyz123456789ABCDEFGHJ"


def sample_addresses(n=200):
    return [base58.b58encode(hashlib.sha256(bytes([i])).digest()).decode() for i in range(n)]


def test_empty_constraints_match_everything():
    for address in sample_addresses(20):
        result = match_address(address, Constraints())
        assert result.ok
        assert result.satisfied == [NO_CONSTRAINTS]


def test_empty_strings_are_unspecified():
    assert Constraints(prefix="", exclude_patterns=[""]).is_empty()


def test_prefix_is_case_insensitive_by_default():
    assert match_address(ADDRESS, Constraints(prefix="abc")).ok
    assert not match_address(ADDRESS, Constraints(prefix="abc", case_sensitive=True)).ok
    assert match_address(ADDRESS, Constraints(prefix="Abc", case_sensitive=True)).ok


def test_all_positive_constraints_are_recorded_in_order():
    result = match_address(ADDRESS, Constraints(
        prefix="Ab", suffix="HJ", contains="xyz", starts_with="abcd", ends_with="ghj",
    ))
    assert result.ok
    assert result.satisfied == ["prefix", "suffix", "contains", "startsWith", "endsWith"]


def test_one_failing_constraint_rejects():
    result = match_address(ADDRESS, Constraints(prefix="Ab", suffix="zz"))
    assert not result.ok
    assert result.satisfied == []


def test_length_limits_checked_first():
    assert not match_address(ADDRESS, Constraints(min_length=50, prefix="Ab")).ok
    assert not match_address(ADDRESS, Constraints(max_length=10)).ok
    result = match_address(ADDRESS, Constraints(min_length=32, max_length=44))
    assert result.ok
    assert result.satisfied == ["minLength", "maxLength"]


def test_exclude_patterns_fold_case():
    assert not match_address(ADDRESS, Constraints(exclude_patterns=["PQR"])).ok
    assert not match_address(ADDRESS, Constraints(exclude_patterns=["pqr"])).ok
    assert match_address(ADDRESS, Constraints(exclude_patterns=["pqr"], case_sensitive=True)).ok


@pytest.mark.parametrize("constraints", [
    Constraints(prefix="a"),
    Constraints(suffix="B", contains="1"),
    Constraints(contains="x", case_sensitive=True),
    Constraints(starts_with="3", exclude_patterns=["z"]),
    Constraints(ends_with="e", min_length=44),
])
def test_conjunction(constraints):
    fold = (lambda s: s) if constraints.case_sensitive else str.lower
    for address in sample_addresses():
        a = fold(address)
        expected = all([
            not constraints.prefix or a.startswith(fold(constraints.prefix)),
            not constraints.suffix or a.endswith(fold(constraints.suffix)),
            not constraints.contains or fold(constraints.contains) in a,
            not constraints.starts_with or a.startswith(fold(constraints.starts_with)),
            not constraints.ends_with or a.endswith(fold(constraints.ends_with)),
            constraints.min_length is None or len(address) >= constraints.min_length,
            not any(fold(p) in a for p in constraints.exclude_patterns),
        ])
        assert match_address(address, constraints).ok == expected


def test_specified_lists_reported_names():
    spec = Constraints(prefix="ab", max_length=44, exclude_patterns=["x", ""]).specified()
    assert spec == {"prefix": "ab", "maxLength": 44, "excludePatterns": ["x"], "caseSensitive": False}
    assert Constraints().specified() == {}
