"""
enumerator.py - Seed-space enumeration

SeedCursor walks every seed combination in a fixed order: the last seed
varies fastest, like the digits of an odometer. Nothing is generated ahead of
what the caller asks for, and the cursor can be moved to any position.
"""

import math
from typing import NamedTuple, Tuple


class Combination(NamedTuple):
    """One point of the seed space: human-level values and their encoded bytes"""

    values: Tuple[object, ...]
    seeds: Tuple[bytes, ...]


class SeedCursor:
    """Odometer-style cursor over the product of the seed specs"""

    def __init__(self, specs, start=0, stop=None):
        self.specs = list(specs)
        self._dims = [spec.cardinality for spec in self.specs]
        self.total = math.prod(self._dims) if self.specs else 0

        if stop is None or stop > self.total:
            stop = self.total
        if start < 0 or start > stop:
            raise ValueError(f"Invalid cursor slice [{start}, {stop}) for {self.total} combinations")
        self.start = start
        self.stop = stop

        # Literal bytes never change, so they are encoded once
        self._fixed = [
            spec.encode_value(spec.value) if spec.kind == "literal" else None
            for spec in self.specs
        ]
        self.seek(start)

    def __len__(self):
        return self.stop - self.start

    def __iter__(self):
        while not self.exhausted:
            yield from self.next_batch(1024)

    @property
    def position(self):
        """Global index of the next combination"""
        return self._position

    @property
    def exhausted(self):
        """True once every combination in the slice has been handed out"""
        return self._position >= self.stop

    def reset(self):
        self.seek(self.start)

    def seek(self, position):
        """Move to a global position, rebuilding the per-dimension indices"""
        if position < self.start or position > self.stop:
            raise ValueError(f"Position {position} outside [{self.start}, {self.stop}]")
        self._position = position
        indices = [0] * len(self._dims)
        rest = min(position, self.total - 1) if self.total else 0
        for d in range(len(self._dims) - 1, -1, -1):
            rest, indices[d] = divmod(rest, self._dims[d])
        self._indices = indices

    def _current(self):
        values = []
        seeds = []
        for spec, fixed, index in zip(self.specs, self._fixed, self._indices):
            value = spec.value_at(index)
            values.append(value)
            seeds.append(fixed if fixed is not None else spec.encode_value(value))
        return Combination(tuple(values), tuple(seeds))

    def _advance(self):
        self._position += 1
        for d in range(len(self._indices) - 1, -1, -1):
            self._indices[d] += 1
            if self._indices[d] < self._dims[d]:
                return
            self._indices[d] = 0

    def next_batch(self, n):
        """Return up to n combinations; an empty list means the space is exhausted"""
        batch = []
        while len(batch) < n and not self.exhausted:
            batch.append(self._current())
            self._advance()
        return batch
