"""
neighborhood.py

Relative neighbor offsets for grid graph construction.

- offsets are integer vectors in index order (dx, dy[, dz, ...])
- the zero offset is rejected (it would produce self-loops)
- two population policies:
    ORDERED : insertion order, duplicates kept
    UNIQUE  : set semantics, first insertion wins, duplicates ignored
  Mirror offsets (o and -o) are distinct offsets under both policies.
"""

from __future__ import annotations

import itertools
from enum import Enum
from numbers import Integral
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from grid_errors import ConfigurationError, RangeError

Offset = Tuple[int, ...]

_OFFSET_MAX = int(np.iinfo(np.int64).max)


class OffsetPolicy(str, Enum):
    ORDERED = "ordered"
    UNIQUE = "unique"

    @classmethod
    def coerce(cls, value: Union["OffsetPolicy", str]) -> "OffsetPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigurationError(
                f"offset_policy must be 'ordered' or 'unique', got {value!r}"
            ) from None


def normalize_offset(offset: Sequence[int]) -> Offset:
    comps = []
    for c in offset:
        if isinstance(c, (bool, np.bool_)) or not isinstance(c, (Integral, np.integer)):
            raise ConfigurationError(f"offset components must be integers, got {tuple(offset)!r}")
        c = int(c)
        if abs(c) > _OFFSET_MAX:
            raise RangeError(f"offset component {c} exceeds the 64-bit range")
        comps.append(c)
    if not comps:
        raise ConfigurationError("offset must have at least one component")
    if all(c == 0 for c in comps):
        raise ConfigurationError(f"zero offset {tuple(comps)} is not a valid neighbor")
    return tuple(comps)


class NeighborhoodOffsetSet:
    def __init__(
        self,
        offsets: Optional[Iterable[Sequence[int]]] = None,
        policy: Union[OffsetPolicy, str] = OffsetPolicy.ORDERED,
    ):
        self.policy = OffsetPolicy.coerce(policy)
        self._offsets: List[Offset] = []
        self._seen: set = set()
        if offsets is not None:
            self.extend(offsets)

    # ------------------------------------------------------------------ #
    # Population
    # ------------------------------------------------------------------ #
    def add(self, offset: Sequence[int]) -> bool:
        """
        Register `offset`. Returns False when the UNIQUE policy drops it
        as a duplicate, True otherwise.
        """
        off = normalize_offset(offset)
        dim = self.dimension
        if dim is not None and len(off) != dim:
            raise ConfigurationError(
                f"offset {off} has {len(off)} components, expected {dim}"
            )
        if self.policy is OffsetPolicy.UNIQUE and off in self._seen:
            return False
        self._offsets.append(off)
        self._seen.add(off)
        return True

    def extend(self, offsets: Iterable[Sequence[int]]) -> None:
        for off in offsets:
            self.add(off)

    def clear(self) -> None:
        self._offsets.clear()
        self._seen.clear()

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    @property
    def dimension(self) -> Optional[int]:
        return len(self._offsets[0]) if self._offsets else None

    @property
    def offsets(self) -> Tuple[Offset, ...]:
        return tuple(self._offsets)

    def derived_radius(self) -> Tuple[int, ...]:
        """Componentwise max of |offset[i]|; empty tuple when no offsets."""
        dim = self.dimension
        if dim is None:
            return ()
        radius = [0] * dim
        for off in self._offsets:
            for d, c in enumerate(off):
                if abs(c) > radius[d]:
                    radius[d] = abs(c)
        return tuple(radius)

    def enumerate_active_neighbors(self, center: Sequence[int]) -> Iterator[Tuple[Offset, Offset]]:
        """Yield (offset, center + offset) per registered offset. No bounds check."""
        for off in self._offsets:
            yield off, tuple(c + o for c, o in zip(center, off))

    def is_symmetric(self) -> bool:
        return all(tuple(-c for c in off) in self._seen for off in self._offsets)

    def __len__(self) -> int:
        return len(self._offsets)

    def __iter__(self) -> Iterator[Offset]:
        return iter(self._offsets)

    def __contains__(self, offset) -> bool:
        return tuple(offset) in self._seen

    def __repr__(self) -> str:
        return f"NeighborhoodOffsetSet(policy={self.policy.value}, offsets={self._offsets})"


# ---------------------------------------------------------------------- #
# Connectivity presets
# ---------------------------------------------------------------------- #
def face_offsets(ndim: int) -> List[Offset]:
    """4-connectivity in 2D, 6-connectivity in 3D: +-1 along a single axis."""
    out: List[Offset] = []
    for d in range(ndim):
        for step in (-1, 1):
            off = [0] * ndim
            off[d] = step
            out.append(tuple(off))
    return out


def full_offsets(ndim: int) -> List[Offset]:
    """8-connectivity in 2D, 26-connectivity in 3D: every non-zero offset in {-1,0,1}^n."""
    return [
        tuple(reversed(off))
        for off in itertools.product((-1, 0, 1), repeat=ndim)
        if any(off)
    ]


_MODES = {
    "4": (2, face_offsets),
    "8": (2, full_offsets),
    "6": (3, face_offsets),
    "26": (3, full_offsets),
    "face": (None, face_offsets),
    "full": (None, full_offsets),
}


def offsets_for_mode(mode: Union[str, int], ndim: int) -> List[Offset]:
    key = str(mode).lower()
    if key not in _MODES:
        raise ConfigurationError(
            f"neighbor_mode must be one of {sorted(_MODES)}, got {mode!r}"
        )
    required_dim, factory = _MODES[key]
    if required_dim is not None and required_dim != ndim:
        raise ConfigurationError(
            f"neighbor_mode {key!r} is for {required_dim}D grids, grid is {ndim}D"
        )
    return factory(ndim)
