"""The two CompleteRing collaborators: exact ℤ_(p) and lazy ℤ_p."""

from fractions import Fraction

import pytest

from padic_tower import (
    LocalizedIntegerRing,
    PadicCompatibilityError,
    PadicDomainError,
    PadicInputError,
    PadicLimit,
    PadicLimitRing,
    PadicPrecisionError,
    PrimeSpec,
)


class TestLocalizedIntegerRing:
    def test_membership(self, zp3):
        assert zp3.element("1/2") == Fraction(1, 2)
        with pytest.raises(PadicInputError):
            zp3.element(Fraction(1, 3))
        with pytest.raises(PadicInputError):
            zp3.element(0.25)
        with pytest.raises(PadicInputError):
            zp3.element(True)

    def test_unit_valuation_decompose(self, zp3):
        u, v = zp3.unit_valuation_decompose(Fraction(18, 5))
        assert v == 2
        assert u == Fraction(2, 5)
        assert zp3.is_unit(u)

    def test_decompose_zero_is_a_domain_error(self, zp3):
        with pytest.raises(PadicDomainError):
            zp3.unit_valuation_decompose(0)

    def test_residue_and_approximation(self, zp3):
        # 1/2 = ...1112 in ℤ_3, and 2 · 5 ≡ 1 (mod 9)
        assert zp3.residue_mod_p(Fraction(1, 2)) == 2
        assert zp3.approximate(Fraction(1, 2), 2) == 5
        assert zp3.approximate(Fraction(1, 2), 0) == 0
        assert zp3.mod_part(-1) == 2

    def test_inverse(self, zp3):
        assert zp3.inverse(Fraction(2, 7)) == Fraction(7, 2)
        with pytest.raises(PadicDomainError):
            zp3.inverse(6)

    def test_mem_span_pow_and_norm(self, zp3):
        assert zp3.mem_span_pow(0, 5)
        assert zp3.mem_span_pow(27, 3)
        assert not zp3.mem_span_pow(27, 4)
        assert zp3.norm(Fraction(9, 2)) == Fraction(1, 9)
        assert zp3.norm(0) == 0

    def test_is_exact(self, zp3):
        assert zp3.precision_cap is None
        assert zp3.require_level(10_000) == 10_000


class TestPadicLimit:
    def test_levels_are_memoised_and_reduced(self):
        calls = []

        def oracle(n):
            calls.append(n)
            return -1

        x = PadicLimit(2, oracle, label="-1")
        assert x.approx(3) == 7
        assert x.approx(3) == 7
        assert calls == [3]
        assert x.approx(0) == 0
        assert x.known_precision() == 3

    def test_inconsistent_oracle_is_reported(self):
        x = PadicLimit(3, lambda n: n, label="level")
        x.approx(1)
        with pytest.raises(PadicCompatibilityError) as info:
            x.approx(2)
        assert info.value.analysis["levels"] == (1, 2)

    def test_oracle_must_return_int(self):
        x = PadicLimit(3, lambda n: 1.0)
        with pytest.raises(PadicInputError):
            x.approx(1)

    def test_arithmetic(self, lazy2):
        a, b = lazy2.element(5), lazy2.element(-3)
        assert (a + b).approx(8) == 2
        assert (a * b).approx(8) == (-15) % 256
        assert (a - b).approx(8) == 8
        assert (-a).approx(8) == 251
        assert (1 + a).approx(4) == 6
        assert (10 - a).approx(4) == 5

    def test_prime_mismatch(self):
        with pytest.raises(PadicInputError):
            PadicLimit(2, lambda n: 1) + PadicLimit(3, lambda n: 1)


class TestPadicLimitRing:
    def test_rational_elements(self, lazy2):
        third = lazy2.element(Fraction(1, 3))
        assert (third * 3).approx(8) == 1
        with pytest.raises(PadicInputError):
            lazy2.element(Fraction(1, 2))
        with pytest.raises(PadicInputError):
            lazy2.element(False)

    def test_zero_is_decided_modulo_p_k(self, lazy2):
        assert lazy2.is_zero(0)
        assert lazy2.is_zero(256)
        assert not lazy2.is_zero(128)

    def test_unit_valuation_decompose(self, lazy2):
        u, v = lazy2.unit_valuation_decompose(lazy2.element(-12))
        assert v == 2
        # -12 = 4 · (-3)
        assert u.approx(8) == (-3) % 256
        assert lazy2.residue_mod_p(u) == 1

    def test_decompose_of_truncated_zero(self, lazy2):
        with pytest.raises(PadicDomainError):
            lazy2.unit_valuation_decompose(2 ** 8)

    def test_levels_above_k_are_refused(self, lazy2):
        assert lazy2.precision_cap == 8
        assert lazy2.require_level(8) == 8
        with pytest.raises(PadicPrecisionError):
            lazy2.require_level(9)
        with pytest.raises(PadicPrecisionError):
            lazy2.mem_span_pow(0, 9)

    def test_equal_up_to(self, lazy2):
        assert lazy2.equal_up_to(1, 17, 4)
        assert not lazy2.equal_up_to(1, 17, 5)

    def test_prime_mismatch(self, lazy2):
        foreign = PadicLimitRing(PrimeSpec(3, 4)).element(1)
        with pytest.raises(PadicInputError):
            lazy2.element(foreign)
