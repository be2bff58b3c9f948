"""
Commutative ring interface and the plain source rings ℤ and ℤ[X].

A compatible family f_n : Source → ℤ/p^nℤ only needs the source to expose
zero, one, add, neg and mul; the complete rings in complete_ring extend the
same base with valuation primitives.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Iterable, List, Tuple

from .prime_base import PadicInputError


class CommutativeRing(ABC):
    """Operations on opaque elements; the ring object, not the element, carries them."""

    name: str = "ring"

    @abstractmethod
    def zero(self) -> Any: ...

    @abstractmethod
    def one(self) -> Any: ...

    @abstractmethod
    def from_int(self, n: int) -> Any: ...

    @abstractmethod
    def add(self, a: Any, b: Any) -> Any: ...

    @abstractmethod
    def neg(self, a: Any) -> Any: ...

    @abstractmethod
    def mul(self, a: Any, b: Any) -> Any: ...

    def sub(self, a: Any, b: Any) -> Any:
        return self.add(a, self.neg(b))

    def __repr__(self) -> str:
        return self.name


class IntegerRing(CommutativeRing):
    """ℤ with Python ints."""

    name = "ℤ"

    def zero(self) -> int:
        return 0

    def one(self) -> int:
        return 1

    def from_int(self, n: int) -> int:
        if isinstance(n, bool) or not isinstance(n, int):
            raise PadicInputError(f"ℤ element must be int, got {type(n).__name__}")
        return int(n)

    def add(self, a: int, b: int) -> int:
        return self.from_int(a) + self.from_int(b)

    def neg(self, a: int) -> int:
        return -self.from_int(a)

    def mul(self, a: int, b: int) -> int:
        return self.from_int(a) * self.from_int(b)


@dataclass(frozen=True)
class IntegerPolynomial:
    """
    Univariate integer polynomial P(x) = Σ a_i x^i.

    coefficients are stored low degree first with trailing zeros stripped,
    so equal polynomials compare equal.
    """
    coefficients: Tuple[int, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.coefficients, tuple):
            raise PadicInputError("polynomial coefficients must be a tuple")
        for i, a in enumerate(self.coefficients):
            if isinstance(a, bool) or not isinstance(a, int):
                raise PadicInputError(f"polynomial coefficient must be int, idx={i}, got {type(a).__name__}")
        coeffs = list(self.coefficients)
        while len(coeffs) > 1 and coeffs[-1] == 0:
            coeffs.pop()
        object.__setattr__(self, "coefficients", tuple(coeffs) if coeffs else (0,))

    @classmethod
    def of(cls, coefficients: Iterable[int]) -> "IntegerPolynomial":
        return cls(tuple(int(c) for c in coefficients))

    @classmethod
    def x(cls) -> "IntegerPolynomial":
        return cls((0, 1))

    @property
    def degree(self) -> int:
        """Degree, with deg(0) = 0 by convention."""
        return len(self.coefficients) - 1

    def evaluate(self, x: int) -> int:
        """Exact evaluation by Horner's rule."""
        acc = 0
        for a in reversed(self.coefficients):
            acc = acc * int(x) + int(a)
        return int(acc)

    def evaluate_mod(self, x: int, modulus: int) -> int:
        acc = 0
        for a in reversed(self.coefficients):
            acc = (acc * x + a) % modulus
        return int(acc)

    def derivative(self) -> "IntegerPolynomial":
        if len(self.coefficients) == 1:
            return IntegerPolynomial((0,))
        return IntegerPolynomial(tuple(i * a for i, a in enumerate(self.coefficients) if i > 0))

    def __add__(self, other: "IntegerPolynomial") -> "IntegerPolynomial":
        n = max(len(self.coefficients), len(other.coefficients))
        a = self.coefficients + (0,) * (n - len(self.coefficients))
        b = other.coefficients + (0,) * (n - len(other.coefficients))
        return IntegerPolynomial(tuple(x + y for x, y in zip(a, b)))

    def __neg__(self) -> "IntegerPolynomial":
        return IntegerPolynomial(tuple(-a for a in self.coefficients))

    def __sub__(self, other: "IntegerPolynomial") -> "IntegerPolynomial":
        return self + (-other)

    def __mul__(self, other: "IntegerPolynomial") -> "IntegerPolynomial":
        out: List[int] = [0] * (len(self.coefficients) + len(other.coefficients) - 1)
        for i, a in enumerate(self.coefficients):
            if a == 0:
                continue
            for j, b in enumerate(other.coefficients):
                out[i + j] += a * b
        return IntegerPolynomial(tuple(out))

    def __repr__(self) -> str:
        terms = []
        for i, a in enumerate(self.coefficients):
            if a == 0:
                continue
            if i == 0:
                terms.append(str(a))
            elif i == 1:
                terms.append(f"{a}·X")
            else:
                terms.append(f"{a}·X^{i}")
        return " + ".join(terms) if terms else "0"


class PolynomialRing(CommutativeRing):
    """ℤ[X]."""

    name = "ℤ[X]"

    def zero(self) -> IntegerPolynomial:
        return IntegerPolynomial((0,))

    def one(self) -> IntegerPolynomial:
        return IntegerPolynomial((1,))

    def from_int(self, n: int) -> IntegerPolynomial:
        return IntegerPolynomial((n,))

    def gen(self) -> IntegerPolynomial:
        return IntegerPolynomial.x()

    def add(self, a: IntegerPolynomial, b: IntegerPolynomial) -> IntegerPolynomial:
        return a + b

    def neg(self, a: IntegerPolynomial) -> IntegerPolynomial:
        return -a

    def mul(self, a: IntegerPolynomial, b: IntegerPolynomial) -> IntegerPolynomial:
        return a * b


def is_value_key(x: Any) -> bool:
    """
    True for inputs whose hash follows their value (int, Fraction, str,
    IntegerPolynomial). Identity-hashed objects such as lazy limits are never
    memoised: each ring operation creates a fresh one.
    """
    return isinstance(x, (int, Fraction, str, IntegerPolynomial))
