#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Prime base layer: the fixed prime, working precision and exact integer helpers.

Redlines:
  - p is validated once (deterministic Miller-Rabin) and never changes afterwards
  - no float contamination: every quantity is int or Fraction
  - bad input raises, never silently normalised
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Optional

logger = logging.getLogger(__name__)

PRIME_ENV = "PADIC_TOWER_PRIME"
PRECISION_ENV = "PADIC_TOWER_PRECISION"
DEFAULT_PRIME = 2
DEFAULT_PRECISION = 16


# ===========================================================
# Section 0: exception hierarchy
# ===========================================================

class PadicError(RuntimeError):
    """Root of every failure raised by the tower."""


class PadicInputError(PadicError):
    """Malformed input: wrong type, non-prime p, element outside the ring."""


class PadicContractError(PadicError):
    """A programming contract was broken by the caller or a collaborator."""


class PadicCompatibilityError(PadicContractError):
    """A family of residue maps is not compatible across precision levels."""

    def __init__(self, message: str, *, analysis: Optional[dict] = None):
        super().__init__(message)
        self.analysis = dict(analysis or {})


class PadicDomainError(PadicError):
    """An operation was asked outside its mathematical domain (e.g. v_p(0))."""


class PadicPrecisionError(PadicError):
    """Requested level exceeds the working precision of a truncated ring."""


# ===========================================================
# Section 1: exact integer primitives
# ===========================================================

MILLER_RABIN_BOUND = 3_317_044_064_679_887_385_961_981


def is_prime(n: int) -> bool:
    """
    Deterministic Miller-Rabin with the first twelve primes as witnesses.

    The witness set is complete below MILLER_RABIN_BOUND (~3.3e24); larger
    inputs raise PadicInputError instead of getting a probabilistic answer.
    """
    if n < 2:
        return False
    if n >= MILLER_RABIN_BOUND:
        raise PadicInputError(f"primality of {n} is not decided deterministically (bound {MILLER_RABIN_BOUND})")
    small = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37)
    if n in small:
        return True
    if any(n % q == 0 for q in small):
        return False
    d = n - 1
    r = 0
    while d % 2 == 0:
        d //= 2
        r += 1
    for a in small:
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(r - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def require_level(n: Any, *, name: str = "n") -> int:
    """Precision levels are non-negative ints; bool and float are refused."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise PadicInputError(f"{name} must be int, got {type(n).__name__}")
    if n < 0:
        raise PadicInputError(f"{name} must be >= 0, got {n}")
    return int(n)


def as_fraction_strict(x: Any, *, name: str = "value") -> Fraction:
    """
    Convert a rational-like input to Fraction, rejecting bool and float/complex.

    Accepted: int, Fraction, str such as "3/2".
    """
    if isinstance(x, Fraction):
        return x
    if isinstance(x, bool):
        raise PadicInputError(f"{name} must be int/Fraction/str, got bool {x!r}")
    if isinstance(x, int):
        return Fraction(x)
    if isinstance(x, str):
        try:
            return Fraction(x)
        except (ValueError, ZeroDivisionError) as e:
            raise PadicInputError(f"{name} must be a rational string like '3/2', got {x!r}") from e
    if isinstance(x, (float, complex)):
        raise PadicInputError(f"{name} must be exact (int/Fraction/str); {type(x).__name__} is forbidden: {x!r}")
    raise PadicInputError(f"{name} must be int/Fraction/str, got {type(x).__name__}")


def valuation_int(n: int, p: int) -> int:
    """
    p-adic valuation v_p(n) of a non-zero integer.

    v_p(0) is infinite; callers that work modulo p^k use valuation_int_trunc.
    """
    if n == 0:
        raise PadicDomainError("v_p(0) is undefined; use valuation_int_trunc(..., k) in truncated contexts")
    x = abs(int(n))
    v = 0
    while x % p == 0:
        x //= p
        v += 1
    return v


def valuation_int_trunc(n: int, p: int, k: int) -> int:
    """v_p^k(n) := min(k, v_p(n)), with v_p^k(0) := k."""
    if n == 0:
        return int(k)
    return min(int(k), valuation_int(n, p))


def valuation_fraction(x: Fraction, p: int) -> int:
    """v_p(a/b) = v_p(a) - v_p(b) for non-zero rationals."""
    if x == 0:
        raise PadicDomainError("v_p(0) is undefined")
    return valuation_int(x.numerator, p) - valuation_int(x.denominator, p)


def padic_norm(x: Fraction, p: int) -> Fraction:
    """|x|_p = p^(-v_p(x)), |0|_p = 0."""
    if x == 0:
        return Fraction(0)
    return Fraction(1, p) ** valuation_fraction(x, p)


def canonical_symmetric_lift(x: int, modulus: int) -> int:
    """
    Reduce x modulo modulus and lift to the symmetric representative.

    Output r satisfies r ≡ x (mod modulus) and -modulus/2 < r <= modulus/2.
    """
    if modulus <= 0:
        raise PadicInputError(f"modulus must be positive, got {modulus}")
    r = x % modulus
    if r > modulus // 2:
        r -= modulus
    return int(r)


def _env_int(name: str, *, default: int) -> int:
    """Read an env var as a base-10 int; malformed values are a deployment error."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return int(default)
    try:
        return int(str(raw).strip(), 10)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer (base-10), got {raw!r}") from e


# ===========================================================
# Section 2: PrimeSpec
# ===========================================================

@dataclass(frozen=True)
class PrimeSpec:
    """
    Fixed prime and working precision of one tower instance.

        p: the prime; every ring in the tower is a quotient of ℤ_p
        k: working precision. Lazy limit elements decide equality and
           valuation modulo p^k, and verification sweeps default to depth k.
    """
    p: int
    k: int = DEFAULT_PRECISION

    def __post_init__(self):
        if isinstance(self.p, bool) or not isinstance(self.p, int) or self.p < 2:
            raise PadicInputError(f"p must be an int >= 2, got {self.p!r}")
        if isinstance(self.k, bool) or not isinstance(self.k, int) or self.k < 1:
            raise PadicInputError(f"k must be an int >= 1, got {self.k!r}")
        if not is_prime(self.p):
            raise PadicInputError(f"p must be prime, got {self.p}")

    @classmethod
    def from_env(cls) -> "PrimeSpec":
        """Build the spec from PADIC_TOWER_PRIME / PADIC_TOWER_PRECISION."""
        p = _env_int(PRIME_ENV, default=DEFAULT_PRIME)
        k = _env_int(PRECISION_ENV, default=DEFAULT_PRECISION)
        spec = cls(p, k)
        logger.debug("PrimeSpec from environment: p=%s k=%s", spec.p, spec.k)
        return spec

    def modulus(self, n: Optional[int] = None) -> int:
        """p^n, defaulting to the working modulus p^k."""
        level = self.k if n is None else require_level(n)
        return int(self.p ** level)

    def required_precision_for_height(self, height: int) -> int:
        """
        Least k with p^k > height, exact integer arithmetic.

        An integer |N| <= height is recovered from N mod p^k by the symmetric
        lift once p^k > 2 * height.
        """
        if not isinstance(height, int) or height < 0:
            raise PadicInputError(f"height must be a non-negative int, got {height!r}")
        k = 0
        pk = 1
        while pk <= height:
            k += 1
            pk *= self.p
        return max(k, 1)

    def with_precision(self, k: int) -> "PrimeSpec":
        return PrimeSpec(self.p, k)
