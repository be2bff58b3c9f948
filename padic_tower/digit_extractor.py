#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Digit extraction: the canonical approximation tower of a p-adic integer.

    appr(x, 0)   = 0
    appr(x, n+1) = appr(x, n)                              if y = 0
                 = appr(x, n) + p^n · ρ(u · p^(v-n))        otherwise

where y = x - appr(x, n) = u · p^v (u a unit, v >= n) and ρ is the residue
map to ℤ/pℤ with values in [0, p).

Invariants:
  - 0 <= appr(x, n) < p^n
  - appr(x, n) is reused verbatim as the low part of appr(x, n+1), hence
    p^m | appr(x, n) - appr(x, m) for m <= n (digit stability)

The y = 0 branch fires exactly when x is the natural number appr(x, n); every
higher digit of x is then 0 and the plateau is the correct expansion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from .complete_ring import CompleteRing
from .prime_base import PadicContractError, PadicInputError, require_level
from .ring_base import is_value_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Approximation:
    """
    A value in [0, p^precision), refused at construction otherwise.

    This is the typed form of one level of the tower; restrict() moves down
    the tower, refines() checks digit stability between two levels.
    """
    value: int
    precision: int
    p: int

    def __post_init__(self):
        require_level(self.precision, name="precision")
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise PadicInputError(f"approximation value must be int, got {type(self.value).__name__}")
        if not 0 <= self.value < self.p ** self.precision:
            raise PadicContractError(
                f"approximation {self.value} out of range [0, {self.p}^{self.precision})"
            )

    @property
    def modulus(self) -> int:
        return self.p ** self.precision

    def digits(self) -> Tuple[int, ...]:
        """Base-p digits, low order first, exactly `precision` of them."""
        out: List[int] = []
        r = self.value
        for _ in range(self.precision):
            r, d = divmod(r, self.p)
            out.append(d)
        return tuple(out)

    def restrict(self, m: int) -> "Approximation":
        m = require_level(m, name="m")
        if m > self.precision:
            raise PadicContractError(f"cannot restrict precision {self.precision} up to {m}")
        return Approximation(self.value % (self.p ** m), m, self.p)

    def refines(self, other: "Approximation") -> bool:
        """True when other is a lower level of the same tower."""
        if other.p != self.p or other.precision > self.precision:
            return False
        return self.restrict(other.precision) == other

    def __repr__(self) -> str:
        return f"{self.value} mod {self.p}^{self.precision}"


class DigitExtractor:
    """
    appr(x, n) over one complete ring.

    The recurrence is evaluated iteratively and the tower of each int,
    Fraction or str input is memoised, so asking for level n after level
    m < n costs n - m steps. Each step is O(1) collaborator operations.
    """

    def __init__(self, ring: CompleteRing):
        if not isinstance(ring, CompleteRing):
            raise PadicInputError(f"ring must be a CompleteRing, got {type(ring).__name__}")
        self.ring = ring
        self.p = ring.p
        self._towers: Dict[Any, List[int]] = {}

    # -------------------------------------------------------
    # recurrence
    # -------------------------------------------------------

    def _tower(self, x: Any) -> List[int]:
        if not is_value_key(x):
            return [0]
        tower = self._towers.get(x)
        if tower is None:
            tower = [0]
            self._towers[x] = tower
        return tower

    def _next_level(self, x: Any, n: int, a: int) -> int:
        """appr(x, n+1) from a = appr(x, n)."""
        ring = self.ring
        y = ring.sub(x, ring.from_int(a))
        if ring.is_zero(y):
            return a
        u, v = ring.unit_valuation_decompose(y)
        if v < n:
            raise PadicContractError(
                f"collaborator reported v(x - appr(x, {n})) = {v} < {n} for {x!r}"
            )
        digit = ring.residue_mod_p(ring.mul(u, ring.pow_p(v - n)))
        if not 0 <= digit < self.p:
            raise PadicContractError(f"residue_mod_p returned {digit}, expected [0, {self.p})")
        return a + self.p ** n * digit

    def appr(self, x: Any, n: int) -> int:
        """Canonical representative of x mod p^n in [0, p^n)."""
        n = self.ring.require_level(n)
        element = self.ring.element(x)
        # keyed on the caller's value; lazy limits are rebuilt on every call
        tower = self._tower(x)
        start = len(tower)
        while len(tower) <= n:
            level = len(tower) - 1
            tower.append(self._next_level(element, level, tower[level]))
        if len(tower) > start:
            logger.debug("appr tower of %r extended from level %s to %s", x, start - 1, n)
        return tower[n]

    def approximation(self, x: Any, n: int) -> Approximation:
        return Approximation(self.appr(x, n), n, self.p)

    def appr_tower(self, x: Any, n: int) -> List[int]:
        """[appr(x, 0), ..., appr(x, n)]."""
        top = self.appr(x, n)
        tower = self._tower(x)
        if len(tower) > n:
            return list(tower[: n + 1])
        # identity-hashed element: nothing memoised, rebuild level by level
        return [self.appr(x, i) for i in range(n)] + [top]

    def clear_cache(self) -> None:
        self._towers.clear()

    # -------------------------------------------------------
    # derived views
    # -------------------------------------------------------

    def digits(self, x: Any, n: int) -> Tuple[int, ...]:
        return self.approximation(x, n).digits()

    def numeral(self, x: Any, n: int) -> str:
        """Digit string, most significant first, e.g. '…0011' for 3 ∈ ℤ_2 at n = 4."""
        ds = self.digits(x, n)
        if self.p <= 10:
            body = "".join(str(d) for d in reversed(ds))
        else:
            body = ".".join(str(d) for d in reversed(ds))
        return "…" + body

    def digit_table(self, xs: Sequence[Any], n: int) -> np.ndarray:
        """
        Base-p digits of several elements, shape (len(xs), n), object dtype.

        Row i, column j holds digit j (coefficient of p^j) of xs[i].
        """
        n = self.ring.require_level(n)
        table = np.zeros((len(xs), n), dtype=object)
        for i, x in enumerate(xs):
            table[i, :] = self.digits(x, n)
        return table

    def dvd_appr_sub_appr(self, x: Any, m: int, n: int) -> bool:
        """p^m | appr(x, n) - appr(x, m), for m <= n."""
        m = require_level(m, name="m")
        n = require_level(n, name="n")
        if m > n:
            raise PadicContractError(f"dvd_appr_sub_appr requires m <= n, got m={m} n={n}")
        return (self.appr(x, n) - self.appr(x, m)) % (self.p ** m) == 0

    def exists_mem_range(self, x: Any) -> int:
        """The unique d in [0, p) with x - d in the maximal ideal pℤ_p."""
        return self.appr(x, 1)

    def distance_to_appr(self, x: Any, n: int) -> Fraction:
        """|x - appr(x, n)|_p, always <= p^-n."""
        a = self.appr(x, n)
        return self.ring.norm(self.ring.sub(x, self.ring.from_int(a)))
