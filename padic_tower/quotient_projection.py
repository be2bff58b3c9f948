"""
The residue homomorphisms toResidue(n) : ℤ_p → ℤ/p^nℤ.

    toResidue(n)(x) = appr(x, n) mod p^n

Contracts:
  - compatibility: project(m ← n) ∘ toResidue(n) = toResidue(m), m <= n
  - ring homomorphism: 0, 1, +, · preserved
  - kernel: toResidue(n)(x) = 0  ⇔  x ∈ (p^n)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .complete_ring import CompleteRing
from .digit_extractor import DigitExtractor
from .prime_base import PadicContractError, PadicInputError, require_level
from .residue_ring import ResidueElement, ResidueHom, ResidueTower

logger = logging.getLogger(__name__)


class QuotientProjection:
    """Family {toResidue(n)} built on one DigitExtractor."""

    def __init__(self, extractor: DigitExtractor, tower: Optional[ResidueTower] = None):
        if tower is None:
            tower = ResidueTower(extractor.ring.spec)
        if tower.p != extractor.p:
            raise PadicInputError(f"tower prime {tower.p} != ring prime {extractor.p}")
        self.extractor = extractor
        self.tower = tower
        self.p = extractor.p
        self._homs: Dict[int, ResidueHom] = {}

    @classmethod
    def over(cls, ring: CompleteRing) -> "QuotientProjection":
        return cls(DigitExtractor(ring))

    @property
    def ring(self) -> CompleteRing:
        return self.extractor.ring

    def default_depth(self) -> int:
        cap = self.ring.precision_cap
        return self.ring.spec.k if cap is None else cap

    # -------------------------------------------------------
    # the family
    # -------------------------------------------------------

    def to_residue(self, n: int) -> ResidueHom:
        n = self.ring.require_level(n)
        hom = self._homs.get(n)
        if hom is None:
            target = self.tower.ring(n)
            extractor = self.extractor
            hom = ResidueHom(target, lambda x: extractor.appr(x, n), name=f"toResidue({n})")
            self._homs[n] = hom
        return hom

    def apply(self, n: int, x: Any) -> ResidueElement:
        return self.to_residue(n)(x)

    def to_zmod(self) -> ResidueHom:
        """Level-1 map onto the residue field; its kernel is the maximal ideal."""
        return self.to_residue(1)

    def zmod_repr(self, x: Any) -> int:
        return self.apply(1, x).value

    def cast_to_residue(self, k: int, n: int) -> ResidueElement:
        """Image of the integer k; agrees with k mod p^n."""
        if isinstance(k, bool) or not isinstance(k, int):
            raise PadicInputError(f"cast_to_residue expects int, got {type(k).__name__}")
        return self.apply(n, self.ring.from_int(k))

    # -------------------------------------------------------
    # contracts
    # -------------------------------------------------------

    def verify_compatibility(self, x: Any, m: int, n: int) -> bool:
        m = require_level(m, name="m")
        n = require_level(n, name="n")
        if m > n:
            raise PadicContractError(f"compatibility is stated for m <= n, got m={m} n={n}")
        return self.to_residue(n).then_project(m)(x) == self.apply(m, x)

    def ring_hom_report(self, x: Any, y: Any, n: int) -> Dict[str, bool]:
        ring = self.ring
        f = self.to_residue(n)
        return {
            "map_zero": f(ring.zero()) == f.target.zero(),
            "map_one": f(ring.one()) == f.target.one(),
            "map_add": f(ring.add(x, y)) == f(x) + f(y),
            "map_mul": f(ring.mul(x, y)) == f(x) * f(y),
            "map_neg": f(ring.neg(x)) == -f(x),
        }

    def verify_ring_hom(self, x: Any, y: Any, n: int) -> bool:
        report = self.ring_hom_report(x, y, n)
        failed = [name for name, ok in report.items() if not ok]
        if failed:
            logger.warning("toResidue(%s) failed %s on x=%r y=%r", n, failed, x, y)
        return not failed

    def in_kernel(self, x: Any, n: int) -> bool:
        return self.apply(n, x).is_zero()

    def mem_span_pow(self, x: Any, n: int) -> bool:
        """x ∈ (p^n), from the ring primitives alone."""
        return self.ring.mem_span_pow(x, n)

    def verify_kernel(self, x: Any, n: int) -> bool:
        return self.in_kernel(x, n) == self.mem_span_pow(x, n)

    def zmod_congr_of_sub_mem_span(self, x: Any, a: int, b: int, n: int) -> bool:
        """x - a, x - b ∈ (p^n)  ⇒  a ≡ b (mod p^n)."""
        ring = self.ring
        for c in (a, b):
            if not ring.mem_span_pow(ring.sub(x, ring.from_int(c)), n):
                raise PadicContractError(f"x - {c} is not in ({self.p}^{n})")
        return (a - b) % (self.p ** n) == 0

    def ext_of_to_residue(self, x: Any, y: Any, depth: Optional[int] = None) -> bool:
        """x = y iff every projection agrees; checked for levels 0..depth."""
        depth = self.default_depth() if depth is None else require_level(depth, name="depth")
        return all(self.apply(n, x) == self.apply(n, y) for n in range(depth + 1))
