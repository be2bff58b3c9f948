#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Compatible families f_n : Source → ℤ/p^nℤ and their reduction to Cauchy sequences.

A family is compatible when project(m ← n) ∘ f_n = f_m for all m <= n. That is
a precondition supplied by the caller; it is never derived. Given it,

    nthHom(r)(n) := value(f_n(r)) ∈ [0, p^n)

satisfies p^i | nthHom(r)(j) - nthHom(r)(i) for i <= j, i.e. the sequence is
Cauchy for the p-adic absolute value. On an incompatible family the sequence
carries no meaning: every check here reports the first offending pair
through PadicCompatibilityError instead of tolerating it.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .complete_ring import LocalizedIntegerRing
from .prime_base import (
    PadicCompatibilityError,
    PadicContractError,
    PadicInputError,
    PadicPrecisionError,
    require_level,
)
from .quotient_projection import QuotientProjection
from .residue_ring import ResidueHom, ResidueTower
from .ring_base import CommutativeRing, IntegerPolynomial, IntegerRing, PolynomialRing, is_value_key

logger = logging.getLogger(__name__)


# ===========================================================
# Section 1: the family
# ===========================================================

class CompatibleFamily:
    """
    f_n given by component(n, r) -> int representative of f_n(r).

    source is the ring the f_n are homomorphisms from; it is used only to
    state the algebraic checks (r + s, r · s, 0, 1).
    """

    def __init__(
        self,
        source: CommutativeRing,
        tower: ResidueTower,
        component: Callable[[int, Any], int],
        *,
        name: str = "f",
        max_level: Optional[int] = None,
    ):
        if not isinstance(source, CommutativeRing):
            raise PadicInputError(f"source must be a CommutativeRing, got {type(source).__name__}")
        self.source = source
        self.tower = tower
        self.p = tower.p
        self.name = name
        self.max_level = None if max_level is None else require_level(max_level, name="max_level")
        self._component = component
        self._homs: Dict[int, ResidueHom] = {}

    def at(self, n: int) -> ResidueHom:
        """The homomorphism f_n."""
        n = require_level(n)
        if self.max_level is not None and n > self.max_level:
            raise PadicPrecisionError(f"{self.name} is only defined up to level {self.max_level}, asked for {n}")
        hom = self._homs.get(n)
        if hom is None:
            component = self._component
            hom = ResidueHom(self.tower.ring(n), lambda r: component(n, r), name=f"{self.name}[{n}]")
            self._homs[n] = hom
        return hom

    def value(self, n: int, r: Any) -> int:
        return self.at(n).value(r)

    def check_levels(self, samples: Sequence[Any], depth: int) -> None:
        """
        Eager compatibility check on samples for levels 0..depth.

        Consecutive levels suffice: restrictions compose, so agreement of
        f_{n-1} with project(n-1 ← n) ∘ f_n for every n gives every m <= n.
        """
        depth = require_level(depth, name="depth")
        for r in samples:
            for n in range(1, depth + 1):
                lower = self.at(n - 1)(r)
                upper = self.at(n)(r).project(n - 1)
                if upper != lower:
                    raise PadicCompatibilityError(
                        f"{self.name} is not compatible at levels {n - 1} ← {n} on {r!r}",
                        analysis={"sample": repr(r), "levels": (n - 1, n),
                                  "projected": upper.value, "expected": lower.value},
                    )

    def __repr__(self) -> str:
        return f"CompatibleFamily({self.name}: {self.source!r} → ℤ/{self.p}^nℤ)"


# ===========================================================
# Section 2: family builders
# ===========================================================

def integer_family(tower: ResidueTower) -> CompatibleFamily:
    """ℤ → ℤ/p^nℤ, r ↦ r mod p^n."""
    ring = IntegerRing()
    return CompatibleFamily(ring, tower, lambda n, r: ring.from_int(r), name="cast")


def localized_family(ring: LocalizedIntegerRing, tower: Optional[ResidueTower] = None) -> CompatibleFamily:
    """ℤ_(p) → ℤ/p^nℤ, a/b ↦ a · b^(-1) mod p^n."""
    if tower is None:
        tower = ResidueTower(ring.spec)
    return CompatibleFamily(ring, tower, lambda n, r: ring.approximate(r, n), name="mod_part")


def projection_family(projection: QuotientProjection) -> CompatibleFamily:
    """The family toResidue(n) itself; its lift is the identity."""
    extractor = projection.extractor
    return CompatibleFamily(
        projection.ring,
        projection.tower,
        lambda n, x: extractor.appr(x, n),
        name="toResidue",
        max_level=projection.ring.precision_cap,
    )


def hensel_lift_root(polynomial: IntegerPolynomial, root_mod_p: int, p: int, target_precision: int) -> int:
    """
    Lift a simple root of `polynomial` modulo p to modulo p^target_precision.

    Newton step x ← x - P(x) · P'(x)^(-1), precision doubling each round. The
    result is the unique root modulo p^target congruent to root_mod_p.
    """
    target_precision = require_level(target_precision, name="target_precision")
    if target_precision == 0:
        return 0
    derivative = polynomial.derivative()
    if polynomial.evaluate_mod(root_mod_p, p) != 0:
        raise PadicInputError(f"{root_mod_p} is not a root of {polynomial!r} modulo {p}")
    if derivative.evaluate_mod(root_mod_p, p) == 0:
        raise PadicInputError(f"{root_mod_p} is a multiple root of {polynomial!r} modulo {p}; Hensel lifting is not unique")

    x = root_mod_p % p
    precision = 1
    while precision < target_precision:
        precision = min(precision * 2, target_precision)
        modulus = p ** precision
        slope_inv = pow(derivative.evaluate_mod(x, modulus), -1, modulus)
        x = (x - polynomial.evaluate_mod(x, modulus) * slope_inv) % modulus
    return int(x)


class HenselRoot:
    """Memoised α_n = Hensel lift of a simple root modulo p^n."""

    def __init__(self, polynomial: IntegerPolynomial, root_mod_p: int, p: int):
        self.polynomial = polynomial
        self.p = p
        self._root = hensel_lift_root(polynomial, root_mod_p, p, 1)
        self._precision = 1

    def at(self, n: int) -> int:
        n = require_level(n)
        if n > self._precision:
            self._root = hensel_lift_root(self.polynomial, self._root % self.p, self.p, n)
            self._precision = n
        return self._root % (self.p ** n)


def hensel_root_family(
    tower: ResidueTower,
    polynomial: IntegerPolynomial,
    root_mod_p: int,
) -> CompatibleFamily:
    """
    ℤ[X] → ℤ/p^nℤ, P ↦ P(α_n) mod p^n, α_n the Hensel lift of root_mod_p.

    Uniqueness of the lift makes the α_n compatible, so the lift of X is the
    p-adic root of `polynomial` (√-1 ∈ ℤ_5 for X^2 + 1 and root 2).
    """
    root = HenselRoot(polynomial, root_mod_p, tower.p)
    p = tower.p

    def component(n: int, r: IntegerPolynomial) -> int:
        if not isinstance(r, IntegerPolynomial):
            raise PadicInputError(f"ℤ[X] element must be IntegerPolynomial, got {type(r).__name__}")
        return r.evaluate_mod(root.at(n), p ** n)

    return CompatibleFamily(PolynomialRing(), tower, component, name=f"eval[{polynomial!r} = 0]")


# ===========================================================
# Section 3: reduction to Cauchy sequences
# ===========================================================

class NthHomSequence:
    """n ↦ nthHom(r)(n), memoised."""

    def __init__(self, family: CompatibleFamily, r: Any):
        self.family = family
        self.r = r
        self._values: Dict[int, int] = {}

    def __getitem__(self, n: int) -> int:
        n = require_level(n)
        value = self._values.get(n)
        if value is None:
            value = self.family.value(n, self.r)
            self._values[n] = value
        return value

    def prefix(self, depth: int) -> List[int]:
        """[nthHom(r)(0), ..., nthHom(r)(depth)]."""
        return [self[n] for n in range(require_level(depth, name="depth") + 1)]

    def as_array(self, depth: int) -> np.ndarray:
        return np.array(self.prefix(depth), dtype=object)

    def __repr__(self) -> str:
        return f"nthHom({self.r!r})"


class CompatibleFamilyReducer:
    """Cauchy-sequence view of a compatible family."""

    def __init__(self, family: CompatibleFamily):
        if not isinstance(family, CompatibleFamily):
            raise PadicInputError(f"family must be a CompatibleFamily, got {type(family).__name__}")
        self.family = family
        self.source = family.source
        self.p = family.p
        self._sequences: Dict[Any, NthHomSequence] = {}

    def nth_hom(self, r: Any) -> NthHomSequence:
        if not is_value_key(r):
            return NthHomSequence(self.family, r)
        seq = self._sequences.get(r)
        if seq is None:
            seq = NthHomSequence(self.family, r)
            self._sequences[r] = seq
        return seq

    def pow_dvd_nth_hom_sub(self, r: Any, i: int, j: int) -> bool:
        """p^i | nthHom(r)(j) - nthHom(r)(i), for i <= j."""
        i = require_level(i, name="i")
        j = require_level(j, name="j")
        if i > j:
            raise PadicContractError(f"pow_dvd_nth_hom_sub requires i <= j, got i={i} j={j}")
        seq = self.nth_hom(r)
        return (seq[j] - seq[i]) % (self.p ** i) == 0

    def cauchy_defects(self, r: Any, depth: int) -> List[Tuple[int, int]]:
        """All pairs i <= j <= depth with p^i ∤ nthHom(r)(j) - nthHom(r)(i)."""
        values = self.nth_hom(r).as_array(depth)
        defects: List[Tuple[int, int]] = []
        for i in range(len(values)):
            tail = (values[i:] - values[i]) % (self.p ** i)
            defects.extend((i, i + offset) for offset, d in enumerate(tail) if d != 0)
        return defects

    def is_cauchy(self, r: Any, depth: int) -> bool:
        return not self.cauchy_defects(r, depth)

    def verify_cauchy(self, r: Any, depth: int) -> None:
        defects = self.cauchy_defects(r, depth)
        if defects:
            i, j = defects[0]
            seq = self.nth_hom(r)
            logger.debug("%r: %s Cauchy defects up to depth %s", self.family, len(defects), depth)
            raise PadicCompatibilityError(
                f"{self.family.name} is not compatible on {r!r}: "
                f"{self.p}^{i} does not divide nthHom({j}) - nthHom({i})",
                analysis={"defects": defects, "values": (seq[i], seq[j]), "depth": depth},
            )

    # -------------------------------------------------------
    # algebraic compatibility (p-adic equivalence, not equality)
    # -------------------------------------------------------

    def equivalent(self, a: Any, b: Any, depth: int) -> bool:
        """p^n | a(n) - b(n) for n = 0..depth."""
        depth = require_level(depth, name="depth")
        return all((a[n] - b[n]) % (self.p ** n) == 0 for n in range(depth + 1))

    def verify_add(self, r: Any, s: Any, depth: int) -> bool:
        """nthHom(r + s) ≈ nthHom(r) + nthHom(s)."""
        a, b = self.nth_hom(r), self.nth_hom(s)
        pointwise = [a[n] + b[n] for n in range(depth + 1)]
        return self.equivalent(self.nth_hom(self.source.add(r, s)), pointwise, depth)

    def verify_mul(self, r: Any, s: Any, depth: int) -> bool:
        """nthHom(r · s) ≈ nthHom(r) · nthHom(s)."""
        a, b = self.nth_hom(r), self.nth_hom(s)
        pointwise = [a[n] * b[n] for n in range(depth + 1)]
        return self.equivalent(self.nth_hom(self.source.mul(r, s)), pointwise, depth)

    def verify_zero(self, depth: int) -> bool:
        return self.equivalent(self.nth_hom(self.source.zero()), [0] * (depth + 1), depth)

    def verify_one(self, depth: int) -> bool:
        return self.equivalent(self.nth_hom(self.source.one()), [1] * (depth + 1), depth)

    def table(self, rs: Sequence[Any], depth: int) -> np.ndarray:
        """Rows nthHom(r)(0..depth), shape (len(rs), depth + 1), object dtype."""
        depth = require_level(depth, name="depth")
        out = np.zeros((len(rs), depth + 1), dtype=object)
        for i, r in enumerate(rs):
            out[i, :] = self.nth_hom(r).prefix(depth)
        return out
