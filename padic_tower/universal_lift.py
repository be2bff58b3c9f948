#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Universal lift: the projective-limit morphism lift(f) : Source → ℤ_p.

    lift(f)(r) = lim_{n→∞} nthHom(r)(n)        (p-adic limit)

No infinite sequence is materialised. lift(f)(r) is a PadicLimit whose level
k is nthHom(r)(k), produced on demand. The next `guard` terms are checked to
agree with it modulo p^k; for a compatible family they always do, so any
disagreement is reported as PadicCompatibilityError rather than skipped.

Universal property (the defining contract):
    toResidue(n) ∘ lift(f) = f_n      for every n
and lift(f) is the only ring homomorphism with it. Feeding the projection
family itself back in gives the identity (lift_self).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Sequence

from .compatible_family import CompatibleFamily, CompatibleFamilyReducer, projection_family
from .complete_ring import PadicLimit, PadicLimitRing
from .prime_base import (
    PadicCompatibilityError,
    PadicContractError,
    PadicDomainError,
    PadicInputError,
    PadicPrecisionError,
    canonical_symmetric_lift,
    require_level,
)
from .quotient_projection import QuotientProjection
from .ring_base import is_value_key

logger = logging.getLogger(__name__)


class UniversalLift:
    """lift(f) for one compatible family, valued in a PadicLimitRing."""

    def __init__(
        self,
        reducer: CompatibleFamilyReducer,
        limit_ring: Optional[PadicLimitRing] = None,
        *,
        guard: int = 1,
    ):
        if not isinstance(reducer, CompatibleFamilyReducer):
            raise PadicInputError(f"reducer must be a CompatibleFamilyReducer, got {type(reducer).__name__}")
        if limit_ring is None:
            limit_ring = PadicLimitRing(reducer.family.tower.spec)
        if limit_ring.p != reducer.p:
            raise PadicInputError(f"limit ring prime {limit_ring.p} != family prime {reducer.p}")
        self.reducer = reducer
        self.family = reducer.family
        self.limit_ring = limit_ring
        self.p = reducer.p
        self.guard = require_level(guard, name="guard")
        self._lifts: Dict[Any, PadicLimit] = {}
        self._projection: Optional[QuotientProjection] = None

    @classmethod
    def of_family(cls, family: CompatibleFamily, limit_ring: Optional[PadicLimitRing] = None, **kwargs) -> "UniversalLift":
        return cls(CompatibleFamilyReducer(family), limit_ring, **kwargs)

    @classmethod
    def from_projection(
        cls,
        projection: QuotientProjection,
        limit_ring: Optional[PadicLimitRing] = None,
        **kwargs,
    ) -> "UniversalLift":
        """lift(toResidue): the identity of ℤ_p, up to the ring change into limit_ring."""
        return cls.of_family(projection_family(projection), limit_ring, **kwargs)

    # -------------------------------------------------------
    # the limit
    # -------------------------------------------------------

    def approximate(self, r: Any, k: int) -> int:
        """
        lift(f)(r) mod p^k = nthHom(r)(k).

        Levels k+1 .. k+guard must agree with level k modulo p^k; the first
        one that does not is reported with both levels in `analysis`.
        """
        k = require_level(k, name="k")
        if k == 0:
            return 0
        top = self.family.max_level
        if top is not None and k > top:
            raise PadicPrecisionError(f"lift({r!r}) asked for precision {k} beyond {self.family.name} level {top}")
        seq = self.reducer.nth_hom(r)
        modulus = self.p ** k
        head = seq[k]
        last = k + self.guard if top is None else min(k + self.guard, top)
        for j in range(k + 1, last + 1):
            if (seq[j] - head) % modulus != 0:
                logger.debug("lift(%r): nthHom levels %s and %s disagree modulo %s^%s", r, k, j, self.p, k)
                raise PadicCompatibilityError(
                    f"{self.family.name} is not compatible on {r!r}: "
                    f"nthHom({j}) = {seq[j]} is not ≡ nthHom({k}) = {head} (mod {self.p}^{k})",
                    analysis={"levels": (k, j), "values": (head, seq[j]), "precision": k, "guard": self.guard},
                )
        return head

    def lift(self, r: Any) -> PadicLimit:
        cacheable = is_value_key(r)
        if cacheable:
            cached = self._lifts.get(r)
            if cached is not None:
                return cached
        limit = self.limit_ring.from_oracle(lambda k: self.approximate(r, k), label=f"lift({r!r})")
        if cacheable:
            self._lifts[r] = limit
        return limit

    def __call__(self, r: Any) -> PadicLimit:
        return self.lift(r)

    def default_depth(self) -> int:
        return self.limit_ring.spec.k

    def limit_projection(self) -> QuotientProjection:
        """toResidue(n) on the target ring ℤ_p."""
        if self._projection is None:
            self._projection = QuotientProjection.over(self.limit_ring)
        return self._projection

    # -------------------------------------------------------
    # ring homomorphism
    # -------------------------------------------------------

    def ring_hom_report(self, r: Any, s: Any, depth: Optional[int] = None) -> Dict[str, bool]:
        depth = self.default_depth() if depth is None else require_level(depth, name="depth")
        source, target = self.family.source, self.limit_ring
        same = target.equal_up_to
        return {
            "map_zero": same(self.lift(source.zero()), target.zero(), depth),
            "map_one": same(self.lift(source.one()), target.one(), depth),
            "map_add": same(self.lift(source.add(r, s)), self.lift(r) + self.lift(s), depth),
            "map_mul": same(self.lift(source.mul(r, s)), self.lift(r) * self.lift(s), depth),
        }

    def verify_ring_hom(self, r: Any, s: Any, depth: Optional[int] = None) -> bool:
        report = self.ring_hom_report(r, s, depth)
        failed = [name for name, ok in report.items() if not ok]
        if failed:
            logger.warning("lift(%s) failed %s on r=%r s=%r", self.family.name, failed, r, s)
        return not failed

    # -------------------------------------------------------
    # universal property
    # -------------------------------------------------------

    def verify_universal_property(self, r: Any, n: int, projection: Optional[QuotientProjection] = None) -> bool:
        """toResidue(n)(lift(f)(r)) == f_n(r)."""
        projection = self.limit_projection() if projection is None else projection
        return projection.apply(n, self.lift(r)) == self.family.at(n)(r)

    def lift_unique(self, g: Callable[[Any], Any], samples: Sequence[Any], depth: Optional[int] = None) -> bool:
        """
        Any g with toResidue(n) ∘ g = f_n agrees with lift(f).

        A g that breaks the projection law is outside the statement and is
        rejected with PadicContractError.
        """
        depth = self.default_depth() if depth is None else require_level(depth, name="depth")
        projection = self.limit_projection()
        for r in samples:
            gr = self.limit_ring.element(g(r))
            for n in range(depth + 1):
                if projection.apply(n, gr) != self.family.at(n)(r):
                    raise PadicContractError(
                        f"candidate does not satisfy toResidue({n}) ∘ g = {self.family.name}[{n}] on {r!r}"
                    )
            if not self.limit_ring.equal_up_to(gr, self.lift(r), depth):
                return False
        return True

    def recognize_integer(self, r: Any, height: int) -> int:
        """
        The only integer N with |N| <= height that lift(f)(r) can equal, read
        off by the symmetric lift at the least k with p^k > 2 · height.
        """
        if isinstance(height, bool) or not isinstance(height, int) or height < 0:
            raise PadicInputError(f"height must be a non-negative int, got {height!r}")
        k = self.limit_ring.spec.required_precision_for_height(2 * height)
        candidate = canonical_symmetric_lift(self.approximate(r, k), self.p ** k)
        if abs(candidate) > height:
            raise PadicDomainError(
                f"lift({r!r}) is not an integer of height <= {height} "
                f"(symmetric residue {candidate} mod {self.p}^{k})"
            )
        return candidate
