"""
Finite-precision residue rings R_n = ℤ/p^nℤ and the canonical restrictions.

    R_n elements are stored as their canonical representative in [0, p^n).
    project(m ← n): R_n → R_m reduces the representative modulo p^m and is a
    ring homomorphism for every m <= n. R_0 is the zero ring.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable

from .prime_base import PadicContractError, PadicInputError, PrimeSpec, require_level


class ResidueRing:
    """ℤ/p^nℤ for one fixed level n."""

    __slots__ = ("_p", "_n", "_modulus")

    def __init__(self, p: int, n: int):
        self._p = int(p)
        self._n = require_level(n)
        self._modulus = int(self._p ** self._n)

    @property
    def p(self) -> int:
        return self._p

    @property
    def level(self) -> int:
        return self._n

    @property
    def modulus(self) -> int:
        return self._modulus

    def element(self, value: int) -> "ResidueElement":
        if isinstance(value, bool) or not isinstance(value, int):
            raise PadicInputError(f"residue representative must be int, got {type(value).__name__}")
        return ResidueElement(value, self)

    def zero(self) -> "ResidueElement":
        return ResidueElement(0, self)

    def one(self) -> "ResidueElement":
        return ResidueElement(1, self)

    def add(self, a: "ResidueElement", b: "ResidueElement") -> "ResidueElement":
        return a + b

    def sub(self, a: "ResidueElement", b: "ResidueElement") -> "ResidueElement":
        return a - b

    def mul(self, a: "ResidueElement", b: "ResidueElement") -> "ResidueElement":
        return a * b

    def neg(self, a: "ResidueElement") -> "ResidueElement":
        return -a

    def project(self, x: "ResidueElement", m: int) -> "ResidueElement":
        """Canonical restriction R_n → R_m, m <= n."""
        if x.ring != self:
            raise PadicInputError(f"{x!r} is not an element of {self!r}")
        return x.project(m)

    def __eq__(self, other) -> bool:
        return isinstance(other, ResidueRing) and self._p == other._p and self._n == other._n

    def __hash__(self) -> int:
        return hash((self._p, self._n))

    def __repr__(self) -> str:
        return f"ℤ/{self._p}^{self._n}ℤ"


class ResidueElement:
    """
    Element of ℤ/p^nℤ.

    Normalisation to [0, p^n) is the mathematical reduction map ℤ → ℤ/p^nℤ,
    so any integer is an acceptable representative.
    """

    __slots__ = ("_value", "_ring")

    def __init__(self, value: int, ring: ResidueRing):
        self._ring = ring
        self._value = int(value) % ring.modulus

    @property
    def value(self) -> int:
        """Canonical representative in [0, p^n)."""
        return self._value

    @property
    def ring(self) -> ResidueRing:
        return self._ring

    def _coerce(self, other: Any) -> "ResidueElement":
        if isinstance(other, ResidueElement):
            if other._ring != self._ring:
                raise PadicInputError(f"ring mismatch: {self._ring!r} vs {other._ring!r}")
            return other
        if isinstance(other, int) and not isinstance(other, bool):
            return ResidueElement(other, self._ring)
        raise PadicInputError(f"cannot combine {self!r} with {type(other).__name__}")

    def __add__(self, other) -> "ResidueElement":
        other = self._coerce(other)
        return ResidueElement(self._value + other._value, self._ring)

    def __radd__(self, other) -> "ResidueElement":
        return self + other

    def __sub__(self, other) -> "ResidueElement":
        other = self._coerce(other)
        return ResidueElement(self._value - other._value, self._ring)

    def __rsub__(self, other) -> "ResidueElement":
        return self._coerce(other) - self

    def __mul__(self, other) -> "ResidueElement":
        other = self._coerce(other)
        return ResidueElement(self._value * other._value, self._ring)

    def __rmul__(self, other) -> "ResidueElement":
        return self * other

    def __neg__(self) -> "ResidueElement":
        return ResidueElement(-self._value, self._ring)

    def __pow__(self, e: int) -> "ResidueElement":
        if e < 0:
            return self.inverse() ** (-e)
        return ResidueElement(pow(self._value, e, self._ring.modulus), self._ring)

    def is_zero(self) -> bool:
        return self._value == 0

    def is_unit(self) -> bool:
        # R_0 is the zero ring, where 0 = 1 is a unit.
        return self._ring.level == 0 or self._value % self._ring.p != 0

    def inverse(self) -> "ResidueElement":
        if not self.is_unit():
            raise ZeroDivisionError(f"{self!r} is not a unit")
        if self._ring.level == 0:
            return self
        return ResidueElement(pow(self._value, -1, self._ring.modulus), self._ring)

    def project(self, m: int) -> "ResidueElement":
        """Restrict to R_m. Asking for m > n is a contract violation, never a wrap-around."""
        m = require_level(m, name="m")
        if m > self._ring.level:
            raise PadicContractError(
                f"project(m ← n) requires m <= n, got m={m} n={self._ring.level}"
            )
        return ResidueElement(self._value, _residue_ring(self._ring.p, m))

    def __eq__(self, other) -> bool:
        if isinstance(other, ResidueElement):
            return self._ring == other._ring and self._value == other._value
        if isinstance(other, int) and not isinstance(other, bool):
            # only the canonical representative, so equal values hash alike
            return self._value == other
        return False

    def __hash__(self) -> int:
        return hash(self._value)

    def __int__(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"{self._value} mod {self._ring.p}^{self._ring.level}"


class ResidueTower:
    """The projective system (R_n, project) for one PrimeSpec."""

    def __init__(self, spec: PrimeSpec):
        self.spec = spec
        self.p = spec.p

    def ring(self, n: int) -> ResidueRing:
        return _residue_ring(self.p, require_level(n))

    def element(self, n: int, value: int) -> ResidueElement:
        return self.ring(n).element(value)

    def project(self, x: ResidueElement, m: int) -> ResidueElement:
        if x.ring.p != self.p:
            raise PadicInputError(f"{x!r} does not live in the {self.p}-adic tower")
        return x.project(m)

    def __repr__(self) -> str:
        return f"ResidueTower(p={self.p})"


@lru_cache(maxsize=None)
def _residue_ring(p: int, n: int) -> ResidueRing:
    return ResidueRing(p, n)


class ResidueHom:
    """
    Ring homomorphism Source → R_n, given by its underlying map.

    The map may return a ResidueElement of the target or any int
    representative; the result is always an element of `target`.
    """

    __slots__ = ("level", "target", "_fn", "name")

    def __init__(self, target: ResidueRing, fn: Callable[[Any], Any], *, name: str = "f"):
        self.level = target.level
        self.target = target
        self._fn = fn
        self.name = name

    def __call__(self, r: Any) -> ResidueElement:
        out = self._fn(r)
        if isinstance(out, ResidueElement):
            if out.ring != self.target:
                raise PadicContractError(
                    f"{self.name} must land in {self.target!r}, got an element of {out.ring!r}"
                )
            return out
        return self.target.element(out)

    def value(self, r: Any) -> int:
        return self(r).value

    def then_project(self, m: int) -> "ResidueHom":
        """project(m ← n) ∘ self."""
        m = require_level(m, name="m")
        if m > self.level:
            raise PadicContractError(f"cannot project level {self.level} up to {m}")
        inner = self
        return ResidueHom(
            _residue_ring(self.target.p, m),
            lambda r: inner(r).project(m),
            name=f"π[{m}←{self.level}]∘{self.name}",
        )

    def __repr__(self) -> str:
        return f"{self.name}: → {self.target!r}"
