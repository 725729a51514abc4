"""
constraints.py - Pattern constraints on derived addresses

All specified constraints must hold (AND). Length limits are checked first,
then exclusions, then the positive string tests in a fixed order.
"""

from dataclasses import dataclass, field, fields
from typing import List, NamedTuple, Optional

NO_CONSTRAINTS = "no constraints"

# (attribute, reported name, test) for the positive string constraints
_POSITIVE = (
    ("prefix", "prefix", str.startswith),
    ("suffix", "suffix", str.endswith),
    ("contains", "contains", lambda address, pattern: pattern in address),
    ("starts_with", "startsWith", str.startswith),
    ("ends_with", "endsWith", str.endswith),
)


@dataclass
class Constraints:
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    contains: Optional[str] = None
    starts_with: Optional[str] = None
    ends_with: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    case_sensitive: bool = False
    exclude_patterns: List[str] = field(default_factory=list)

    def is_empty(self):
        """True when no constraint at all is specified"""
        return not any(getattr(self, attr) for attr, _, _ in _POSITIVE) and (
            self.min_length is None
            and self.max_length is None
            and not any(self.exclude_patterns)
        )

    def specified(self):
        """Mapping of the specified constraints, keyed by their reported names"""
        out = {}
        for attr, name, _ in _POSITIVE:
            if getattr(self, attr):
                out[name] = getattr(self, attr)
        if self.min_length is not None:
            out["minLength"] = self.min_length
        if self.max_length is not None:
            out["maxLength"] = self.max_length
        if any(self.exclude_patterns):
            out["excludePatterns"] = [p for p in self.exclude_patterns if p]
        if out:
            out["caseSensitive"] = self.case_sensitive
        return out

    def to_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}


class MatchResult(NamedTuple):
    ok: bool
    satisfied: List[str]


_REJECT = MatchResult(False, [])


def match_address(address, constraints):
    """Check an address string against constraints"""
    if constraints.is_empty():
        return MatchResult(True, [NO_CONSTRAINTS])

    satisfied = []

    if constraints.min_length is not None:
        if len(address) < constraints.min_length:
            return _REJECT
        satisfied.append("minLength")
    if constraints.max_length is not None:
        if len(address) > constraints.max_length:
            return _REJECT
        satisfied.append("maxLength")

    fold = (lambda s: s) if constraints.case_sensitive else str.lower
    target = fold(address)

    excludes = [p for p in constraints.exclude_patterns if p]
    for pattern in excludes:
        if fold(pattern) in target:
            return _REJECT
    if excludes:
        satisfied.append("excludePatterns")

    for attr, name, test in _POSITIVE:
        pattern = getattr(constraints, attr)
        if not pattern:
            continue
        if not test(target, fold(pattern)):
            return _REJECT
        satisfied.append(name)

    return MatchResult(True, satisfied)
