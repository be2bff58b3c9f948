#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Pressure tests for the p-adic tower.

Design rules for the checks:
  1. No weak indicators: a check that a random implementation could pass is useless.
  2. Boundaries are exact: "precisely p^n", never "about p^n".
  3. Poison inputs must be refused, not absorbed.

Run as `python -m padic_tower.selfcheck` or `padic-tower-selfcheck`.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, List, Optional

from .compatible_family import (
    CompatibleFamily,
    CompatibleFamilyReducer,
    hensel_root_family,
    integer_family,
    localized_family,
)
from .complete_ring import LocalizedIntegerRing, PadicLimitRing
from .digit_extractor import DigitExtractor
from .prime_base import (
    PadicCompatibilityError,
    PadicContractError,
    PadicDomainError,
    PadicError,
    PadicPrecisionError,
    PrimeSpec,
)
from .quotient_projection import QuotientProjection
from .ring_base import IntegerPolynomial, IntegerRing
from .universal_lift import UniversalLift

logger = logging.getLogger(__name__)


@dataclass
class PressureTestResult:
    test_name: str
    passed: bool
    expected: Any
    actual: Any
    details: str


class TowerPressureTest:
    """Strict checks of appr / toResidue / nthHom / lift for one PrimeSpec."""

    SAMPLES = (0, 1, 3, -1, 35, Fraction(1, 3), Fraction(-7, 5))

    def __init__(self, spec: PrimeSpec, depth: Optional[int] = None):
        self.spec = spec
        self.p = spec.p
        self.depth = min(spec.k, 8) if depth is None else depth
        self.exact = LocalizedIntegerRing(spec)
        self.projection = QuotientProjection.over(self.exact)
        self.extractor = self.projection.extractor
        self.tower = self.projection.tower
        self.samples = [x for x in self.SAMPLES if Fraction(x).denominator % self.p != 0]

    def run_all_tests(self) -> List[PressureTestResult]:
        results = []

        # tower invariants
        results.append(self.test_appr_bound())
        results.append(self.test_digit_stability())
        results.append(self.test_matches_modular_inverse())
        results.append(self.test_kernel_characterisation())
        results.append(self.test_ring_hom())

        # limits
        results.append(self.test_round_trip())
        results.append(self.test_universal_property())
        results.append(self.test_uniqueness())
        results.append(self.test_hensel_root())

        # boundaries
        results.append(self.test_plateau())
        results.append(self.test_precision_boundary())

        # poison
        results.append(self.test_poison_incompatible_family())
        results.append(self.test_poison_zero_decompose())

        return results

    # -------------------------------------------------------
    # tower invariants
    # -------------------------------------------------------

    def test_appr_bound(self) -> PressureTestResult:
        bad = [
            (x, n)
            for x in self.samples
            for n in range(self.depth + 1)
            if not 0 <= self.extractor.appr(x, n) < self.p ** n
        ]
        return PressureTestResult(
            test_name="appr bound 0 <= appr(x, n) < p^n",
            passed=not bad,
            expected=[],
            actual=bad,
            details=f"{len(self.samples)} samples, levels 0..{self.depth}",
        )

    def test_digit_stability(self) -> PressureTestResult:
        bad = [
            (x, m, n)
            for x in self.samples
            for n in range(self.depth + 1)
            for m in range(n + 1)
            if not self.extractor.dvd_appr_sub_appr(x, m, n)
        ]
        return PressureTestResult(
            test_name="digit stability p^m | appr(x, n) - appr(x, m)",
            passed=not bad,
            expected=[],
            actual=bad,
            details="every pair m <= n",
        )

    def test_matches_modular_inverse(self) -> PressureTestResult:
        """appr on ℤ_(p) must equal a · b^(-1) mod p^n, computed without digits."""
        bad = [
            (x, n)
            for x in self.samples
            for n in range(self.depth + 1)
            if self.extractor.appr(x, n) != self.exact.approximate(x, n)
        ]
        return PressureTestResult(
            test_name="appr agrees with modular inverse",
            passed=not bad,
            expected=[],
            actual=bad,
            details="independent cross-check on ℤ_(p)",
        )

    def test_kernel_characterisation(self) -> PressureTestResult:
        candidates = [0, self.p, self.p ** 2, 3 * self.p ** 3, 1, self.p + 1, -self.p ** 2]
        bad = [
            (x, n)
            for x in candidates
            for n in range(self.depth + 1)
            if not self.projection.verify_kernel(x, n)
        ]
        return PressureTestResult(
            test_name="kernel toResidue(n)(x) = 0 iff x ∈ (p^n)",
            passed=not bad,
            expected=[],
            actual=bad,
            details="ideal membership decided from valuation only",
        )

    def test_ring_hom(self) -> PressureTestResult:
        bad = [
            (x, y, n)
            for x in self.samples
            for y in self.samples
            for n in range(1, self.depth + 1)
            if not self.projection.verify_ring_hom(x, y, n)
        ]
        return PressureTestResult(
            test_name="toResidue(n) is a ring homomorphism",
            passed=not bad,
            expected=[],
            actual=bad,
            details="0, 1, +, ·, negation",
        )

    # -------------------------------------------------------
    # limits
    # -------------------------------------------------------

    def test_round_trip(self) -> PressureTestResult:
        lift_self = UniversalLift.from_projection(self.projection)
        bad = [
            x for x in self.samples
            if lift_self(x).approx(self.depth) != self.exact.approximate(x, self.depth)
        ]
        return PressureTestResult(
            test_name="lift(toResidue) = id",
            passed=not bad,
            expected=[],
            actual=bad,
            details=f"compared modulo {self.p}^{self.depth}",
        )

    def test_universal_property(self) -> PressureTestResult:
        lift = UniversalLift.of_family(localized_family(self.exact, self.tower))
        bad = [
            (x, n)
            for x in self.samples
            for n in range(self.depth + 1)
            if not lift.verify_universal_property(x, n)
        ]
        return PressureTestResult(
            test_name="toResidue(n) ∘ lift(f) = f_n",
            passed=not bad,
            expected=[],
            actual=bad,
            details="f = ℤ_(p) → ℤ/p^nℤ by modular inverse",
        )

    def test_uniqueness(self) -> PressureTestResult:
        lift = UniversalLift.of_family(integer_family(self.tower))
        ints = [0, 1, -1, 5, 7, 35]
        try:
            passed = lift.lift_unique(lambda r: r, ints, self.depth)
            actual: Any = passed
        except PadicContractError as e:
            passed, actual = False, str(e)
        return PressureTestResult(
            test_name="lift is unique",
            passed=passed,
            expected=True,
            actual=actual,
            details="g = canonical inclusion ℤ → ℤ_p",
        )

    def test_hensel_root(self) -> PressureTestResult:
        """A root of X^2 + 1, which is not rational."""
        x = IntegerPolynomial.x()
        poly = x * x + IntegerPolynomial.of([1])
        roots = [r for r in range(self.p) if poly.evaluate_mod(r, self.p) == 0]
        if not roots or self.p == 2:
            return PressureTestResult(
                test_name="Hensel root lift",
                passed=True,
                expected="skipped",
                actual="skipped",
                details=f"X^2 + 1 has no simple root modulo {self.p}",
            )
        family = hensel_root_family(self.tower, poly, roots[0])
        lift = UniversalLift.of_family(family)
        alpha = lift(x)
        limit_ring = lift.limit_ring
        residual = limit_ring.add(limit_ring.mul(alpha, alpha), 1)
        passed = limit_ring.is_zero(residual) and alpha.approx(1) == roots[0]
        return PressureTestResult(
            test_name="Hensel root lift",
            passed=passed,
            expected=0,
            actual=residual.approx(self.spec.k),
            details=f"α^2 + 1 mod {self.p}^{self.spec.k}, α ≡ {roots[0]} (mod {self.p})",
        )

    # -------------------------------------------------------
    # boundaries
    # -------------------------------------------------------

    def test_plateau(self) -> PressureTestResult:
        """A natural number has a finite expansion; the tower must freeze on it."""
        x = self.p + 1
        levels = self.extractor.appr_tower(x, self.depth)
        expected = [0, 1] + [x] * (self.depth - 1)
        return PressureTestResult(
            test_name="plateau on a natural number",
            passed=levels == expected[: self.depth + 1],
            expected=expected[: self.depth + 1],
            actual=levels,
            details=f"x = {x}",
        )

    def test_precision_boundary(self) -> PressureTestResult:
        lazy = DigitExtractor(PadicLimitRing(self.spec))
        try:
            lazy.appr(1, self.spec.k + 1)
        except PadicPrecisionError:
            passed = True
        else:
            passed = False
        return PressureTestResult(
            test_name="levels above k refused on ℤ_p",
            passed=passed,
            expected="PadicPrecisionError",
            actual="raised" if passed else "answered",
            details=f"k = {self.spec.k}",
        )

    # -------------------------------------------------------
    # poison
    # -------------------------------------------------------

    def test_poison_incompatible_family(self) -> PressureTestResult:
        """f_n(r) = r + n is not compatible and must be reported."""
        family = CompatibleFamily(IntegerRing(), self.tower, lambda n, r: r + n, name="shifted")
        reducer = CompatibleFamilyReducer(family)
        try:
            reducer.verify_cauchy(3, self.depth)
        except PadicCompatibilityError as e:
            return PressureTestResult(
                test_name="poison: incompatible family",
                passed=True,
                expected="PadicCompatibilityError",
                actual=e.analysis.get("defects", [])[:1],
                details=str(e),
            )
        return PressureTestResult(
            test_name="poison: incompatible family",
            passed=False,
            expected="PadicCompatibilityError",
            actual="accepted",
            details="shifted family passed the Cauchy check",
        )

    def test_poison_zero_decompose(self) -> PressureTestResult:
        try:
            self.exact.unit_valuation_decompose(0)
        except PadicDomainError:
            passed = True
        else:
            passed = False
        return PressureTestResult(
            test_name="poison: unit/valuation split of 0",
            passed=passed,
            expected="PadicDomainError",
            actual="raised" if passed else "answered",
            details="0 has no unit part",
        )


def run_pressure_tests(spec: Optional[PrimeSpec] = None) -> List[PressureTestResult]:
    spec = PrimeSpec.from_env() if spec is None else spec
    return TowerPressureTest(spec).run_all_tests()


def _configure_smoke_logging() -> None:
    """Install a default handler only when the host application has none."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="[%(levelname)s] %(name)s: %(message)s",
        )
    root.setLevel(logging.INFO)


def main() -> int:
    _configure_smoke_logging()
    try:
        spec = PrimeSpec.from_env()
    except (PadicError, ValueError) as e:
        logger.error("invalid configuration: %s", e)
        return 2
    logger.info("padic_tower selfcheck: START p=%s k=%s", spec.p, spec.k)

    results = run_pressure_tests(spec)
    failed = 0
    for r in results:
        if r.passed:
            logger.info("[PASS] %s (%s)", r.test_name, r.details)
        else:
            failed += 1
            logger.error("[FAIL] %s: expected=%r actual=%r (%s)", r.test_name, r.expected, r.actual, r.details)

    logger.info("padic_tower selfcheck: %s/%s passed", len(results) - failed, len(results))
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
