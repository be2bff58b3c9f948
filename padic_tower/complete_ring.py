#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Complete ring collaborators consumed by the digit extractor.

Two concrete rings share one primitive surface (CompleteRing):

  1. LocalizedIntegerRing  ℤ_(p) = {a/b : p ∤ b} ⊂ ℤ_p
     Exact: elements are Fractions, is_zero and the unit/valuation split are
     decided without truncation.

  2. PadicLimitRing        ℤ_p
     Elements are PadicLimit precision oracles n ↦ x mod p^n. Equality and
     valuation are decided modulo p^k, k = PrimeSpec.k, which is the same
     convention as a truncated ℤ/p^kℤ digit vector: the zero element has
     valuation "k", and no question about digits beyond k is answered.

Redline: a collaborator must never report a valuation it cannot justify.
Levels above the working precision raise PadicPrecisionError.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from fractions import Fraction
from typing import Any, Callable, Dict, Optional, Tuple

from .prime_base import (
    PadicCompatibilityError,
    PadicDomainError,
    PadicInputError,
    PadicPrecisionError,
    PrimeSpec,
    as_fraction_strict,
    require_level,
    valuation_int,
)
from .ring_base import CommutativeRing

logger = logging.getLogger(__name__)


# ===========================================================
# Section 1: primitive surface
# ===========================================================

class CompleteRing(CommutativeRing):
    """
    Complete discretely valued ring with uniformiser p.

    Subclasses provide the exact primitives; the helpers below are derived
    from them only (never from digit extraction).
    """

    def __init__(self, spec: PrimeSpec):
        if not isinstance(spec, PrimeSpec):
            raise PadicInputError(f"spec must be a PrimeSpec, got {type(spec).__name__}")
        self.spec = spec
        self.p = spec.p

    @property
    def precision_cap(self) -> Optional[int]:
        """Largest level the ring can answer questions about; None means exact."""
        return None

    @abstractmethod
    def element(self, x: Any) -> Any:
        """Coerce x into the ring or raise PadicInputError."""

    @abstractmethod
    def is_zero(self, y: Any) -> bool: ...

    @abstractmethod
    def unit_valuation_decompose(self, y: Any) -> Tuple[Any, int]:
        """Return (u, v) with y = u · p^v and u a unit; y = 0 is a PadicDomainError."""

    @abstractmethod
    def residue_mod_p(self, x: Any) -> int:
        """Value in [0, p) of the image of x in the residue field ℤ/pℤ."""

    def require_level(self, n: int) -> int:
        n = require_level(n)
        cap = self.precision_cap
        if cap is not None and n > cap:
            raise PadicPrecisionError(
                f"level {n} exceeds working precision k={cap} of {self!r}"
            )
        return n

    def pow_p(self, e: int) -> Any:
        return self.from_int(self.p ** require_level(e, name="e"))

    def valuation(self, x: Any) -> int:
        return self.unit_valuation_decompose(x)[1]

    def mem_span_pow(self, x: Any, n: int) -> bool:
        """x ∈ (p^n), decided from is_zero and the valuation only."""
        n = self.require_level(n)
        if self.is_zero(x):
            return True
        return self.valuation(x) >= n

    def is_unit(self, x: Any) -> bool:
        return self.residue_mod_p(x) != 0

    def norm(self, x: Any) -> Fraction:
        """|x|_p = p^(-v(x)); on a truncated ring the zero class has norm 0."""
        if self.is_zero(x):
            return Fraction(0)
        return Fraction(1, self.p ** self.valuation(x))


# ===========================================================
# Section 2: exact ℤ_(p)
# ===========================================================

class LocalizedIntegerRing(CompleteRing):
    """
    ℤ_(p): rationals whose reduced denominator is prime to p.

    It is dense in ℤ_p and closed under +, -, ·, so every primitive is exact.
    """

    def __init__(self, spec: PrimeSpec):
        super().__init__(spec)
        self.name = f"ℤ_({spec.p})"

    def element(self, x: Any) -> Fraction:
        q = as_fraction_strict(x, name="ℤ_(p) element")
        if q.denominator % self.p == 0:
            raise PadicInputError(f"{q} is not in ℤ_({self.p}): denominator divisible by p")
        return q

    def zero(self) -> Fraction:
        return Fraction(0)

    def one(self) -> Fraction:
        return Fraction(1)

    def from_int(self, n: int) -> Fraction:
        return self.element(n)

    def add(self, a: Any, b: Any) -> Fraction:
        return self.element(a) + self.element(b)

    def neg(self, a: Any) -> Fraction:
        return -self.element(a)

    def sub(self, a: Any, b: Any) -> Fraction:
        return self.element(a) - self.element(b)

    def mul(self, a: Any, b: Any) -> Fraction:
        return self.element(a) * self.element(b)

    def is_zero(self, y: Any) -> bool:
        return self.element(y) == 0

    def unit_valuation_decompose(self, y: Any) -> Tuple[Fraction, int]:
        q = self.element(y)
        if q == 0:
            raise PadicDomainError("unit_valuation_decompose(0): zero has no unit part")
        v = valuation_int(q.numerator, self.p)
        return q / (self.p ** v), v

    def residue_mod_p(self, x: Any) -> int:
        return self.approximate(x, 1)

    def approximate(self, x: Any, n: int) -> int:
        """
        Image of a/b in ℤ/p^nℤ as a · b^(-1) mod p^n.

        Independent of digit extraction; used to cross-check it.
        """
        q = self.element(x)
        n = require_level(n)
        modulus = self.p ** n
        if modulus == 1:
            return 0
        return int(q.numerator * pow(q.denominator, -1, modulus) % modulus)

    def mod_part(self, x: Any) -> int:
        """The unique d in [0, p) with x - d ∈ pℤ_(p)."""
        return self.approximate(x, 1)

    def inverse(self, x: Any) -> Fraction:
        q = self.element(x)
        if not self.is_unit(q):
            raise PadicDomainError(f"{q} is not a unit of ℤ_({self.p})")
        return 1 / q


# ===========================================================
# Section 3: lazy ℤ_p
# ===========================================================

class PadicLimit:
    """
    Element of ℤ_p given by a precision oracle n ↦ x mod p^n.

    Every answered level is memoised and checked against the levels already
    known: an oracle that contradicts itself raises PadicCompatibilityError
    instead of producing an inconsistent number.
    """

    __slots__ = ("_p", "_oracle", "_levels", "label")

    def __init__(self, p: int, oracle: Callable[[int], int], *, label: Optional[str] = None):
        self._p = int(p)
        self._oracle = oracle
        self._levels: Dict[int, int] = {0: 0}
        self.label = label

    @property
    def p(self) -> int:
        return self._p

    def approx(self, n: int) -> int:
        """Canonical representative of x mod p^n, in [0, p^n)."""
        n = require_level(n)
        known = self._levels.get(n)
        if known is not None:
            return known
        raw = self._oracle(n)
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise PadicInputError(f"precision oracle returned {type(raw).__name__} at level {n}")
        value = raw % (self._p ** n)
        for m, other in self._levels.items():
            lo = min(m, n)
            if value % (self._p ** lo) != other % (self._p ** lo):
                logger.debug("oracle of %s answered %s at level %s after %s at level %s", self._describe(), value, n, other, m)
                raise PadicCompatibilityError(
                    f"{self._describe()} is inconsistent between levels {m} and {n}",
                    analysis={"levels": (m, n), "values": (other, value), "p": self._p},
                )
        self._levels[n] = value
        return value

    def known_precision(self) -> int:
        return max(self._levels)

    def agrees_with(self, other: "PadicLimit", n: int) -> bool:
        return self.approx(n) == other.approx(n)

    def _binary(self, other: Any, op: Callable[[int, int], int], symbol: str) -> "PadicLimit":
        other = _as_limit(other, self._p)
        if other._p != self._p:
            raise PadicInputError(f"prime mismatch: {self._p} vs {other._p}")
        a, b = self, other
        return PadicLimit(
            self._p,
            lambda n: op(a.approx(n), b.approx(n)),
            label=f"({a._describe()} {symbol} {b._describe()})",
        )

    def __add__(self, other) -> "PadicLimit":
        return self._binary(other, lambda u, v: u + v, "+")

    def __radd__(self, other) -> "PadicLimit":
        return self + other

    def __sub__(self, other) -> "PadicLimit":
        return self._binary(other, lambda u, v: u - v, "-")

    def __rsub__(self, other) -> "PadicLimit":
        return _as_limit(other, self._p) - self

    def __mul__(self, other) -> "PadicLimit":
        return self._binary(other, lambda u, v: u * v, "·")

    def __rmul__(self, other) -> "PadicLimit":
        return self * other

    def __neg__(self) -> "PadicLimit":
        a = self
        return PadicLimit(self._p, lambda n: -a.approx(n), label=f"-{a._describe()}")

    def _describe(self) -> str:
        return self.label if self.label else f"x@{id(self):x}"

    def __repr__(self) -> str:
        m = self.known_precision()
        return f"ℤ_{self._p}({self._describe()}: {self._levels[m]} mod {self._p}^{m})"


def _as_limit(x: Any, p: int) -> PadicLimit:
    if isinstance(x, PadicLimit):
        return x
    if isinstance(x, int) and not isinstance(x, bool):
        c = int(x)
        return PadicLimit(p, lambda n: c, label=str(c))
    raise PadicInputError(f"cannot coerce {type(x).__name__} into ℤ_{p}")


class PadicLimitRing(CompleteRing):
    """ℤ_p with lazy elements, decided modulo p^k."""

    def __init__(self, spec: PrimeSpec):
        super().__init__(spec)
        self.name = f"ℤ_{spec.p}[k={spec.k}]"

    @property
    def precision_cap(self) -> int:
        return self.spec.k

    def element(self, x: Any) -> PadicLimit:
        if isinstance(x, PadicLimit):
            if x.p != self.p:
                raise PadicInputError(f"prime mismatch: {x.p} vs {self.p}")
            return x
        if isinstance(x, int) and not isinstance(x, bool):
            return _as_limit(x, self.p)
        q = as_fraction_strict(x, name="ℤ_p element")
        if q.denominator % self.p == 0:
            raise PadicInputError(f"{q} is not in ℤ_{self.p}: denominator divisible by p")
        num, den, p = q.numerator, q.denominator, self.p

        def oracle(n: int) -> int:
            modulus = p ** n
            return 0 if modulus == 1 else num * pow(den, -1, modulus)

        return PadicLimit(p, oracle, label=str(q))

    def from_oracle(self, oracle: Callable[[int], int], *, label: Optional[str] = None) -> PadicLimit:
        return PadicLimit(self.p, oracle, label=label)

    def zero(self) -> PadicLimit:
        return self.element(0)

    def one(self) -> PadicLimit:
        return self.element(1)

    def from_int(self, n: int) -> PadicLimit:
        return self.element(n)

    def add(self, a: Any, b: Any) -> PadicLimit:
        return self.element(a) + self.element(b)

    def neg(self, a: Any) -> PadicLimit:
        return -self.element(a)

    def sub(self, a: Any, b: Any) -> PadicLimit:
        return self.element(a) - self.element(b)

    def mul(self, a: Any, b: Any) -> PadicLimit:
        return self.element(a) * self.element(b)

    def is_zero(self, y: Any) -> bool:
        """y ≡ 0 (mod p^k)."""
        return self.element(y).approx(self.spec.k) == 0

    def unit_valuation_decompose(self, y: Any) -> Tuple[PadicLimit, int]:
        x = self.element(y)
        a = x.approx(self.spec.k)
        if a == 0:
            raise PadicDomainError(
                f"unit_valuation_decompose: {x._describe()} vanishes modulo {self.p}^{self.spec.k}"
            )
        v = valuation_int(a, self.p)
        pv = self.p ** v

        def unit_oracle(n: int) -> int:
            # x ≡ 0 (mod p^v) at every level >= v, so the division is exact.
            return x.approx(n + v) // pv

        return PadicLimit(self.p, unit_oracle, label=f"unit({x._describe()})"), v

    def residue_mod_p(self, x: Any) -> int:
        return self.element(x).approx(1)

    def equal_up_to(self, x: Any, y: Any, n: int) -> bool:
        return self.element(x).approx(n) == self.element(y).approx(n)
